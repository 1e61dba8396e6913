"""Creator payouts: manual requests, bank setup and the daily sweep."""

from app.domain.payments.paystack_service import PaystackError
from app.domain.payouts.service import process_daily_payouts
from app.models import Creator, Payout
from app.shared.retry import circuit_breakers
from tests.conftest import make_creator


def fund(db, creator, amount):
    creator.current_balance = amount
    creator.total_earnings = amount
    db.commit()


def open_transfer_breaker():
    breaker = circuit_breakers.get("paystack:transfer")
    for _ in range(5):
        breaker.record_failure()

class TestRequestPayout:
    async def test_payout_debits_balance(self, client, db, creator, creator_user, paystack):
        fund(db, creator, 1000000)
        resp = await client.post("/payouts/request", json={"amount": 4000})
        assert resp.status_code == 201, resp.text
        body = resp.json()
        assert (body["amount"], body["status"], body["paystack_transfer_code"]) == (400000, "processing", "TRF_test123")

        kwargs = paystack["initiate_transfer"].await_args.kwargs
        assert kwargs["recipient"] == "RCP_ada"
        assert kwargs["reference"].startswith(f"odim_po_{creator.id}_")

        db.refresh(creator)
        assert creator.current_balance == 600000

    async def test_insufficient_balance(self, client, db, creator, creator_user, paystack):
        fund(db, creator, 100000)
        resp = await client.post("/payouts/request", json={"amount": 5000})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Insufficient balance"
        paystack["initiate_transfer"].assert_not_awaited()

    async def test_below_minimum(self, client, db, creator, creator_user, paystack):
        fund(db, creator, 1000000)
        resp = await client.post("/payouts/request", json={"amount": 500})
        assert resp.status_code == 422

    async def test_missing_bank_account(self, client, db, login, paystack):
        creator = make_creator(db, paystack_recipient_code=None)
        login(creator.user)
        fund(db, creator, 1000000)
        resp = await client.post("/payouts/request", json={"amount": 5000})
        assert resp.status_code == 400
        assert "Bank account" in resp.json()["detail"]

    async def test_failed_transfer_restores_balance(self, client, db, creator, creator_user, paystack):
        fund(db, creator, 1000000)
        paystack["initiate_transfer"].side_effect = PaystackError("Insufficient platform balance", 400)
        resp = await client.post("/payouts/request", json={"amount": 5000})
        assert resp.status_code == 502

        db.refresh(creator)
        assert creator.current_balance == 1000000
        assert db.query(Payout).count() == 0

    async def test_history_and_summary(self, client, db, creator, creator_user, paystack):
        fund(db, creator, 1000000)
        db.add(Payout(creator_id=creator.id, amount=250000, status="success", paystack_transfer_code="TRF_old"))
        db.commit()
        await client.post("/payouts/request", json={"amount": 1000})

        history = (await client.get("/payouts/history")).json()
        assert len(history) == 2
        assert [p["status"] for p in (await client.get("/payouts/history", params={"status": "success"})).json()] == [
            "success"
        ]

        summary = (await client.get("/payouts/summary")).json()
        assert summary == {
            "current_balance": 900000,
            "total_earnings": 1000000,
            "total_paid_out": 250000,
            "pending": 100000,
            "currency": "NGN",
        }


    async def test_open_breaker_keeps_balance(self, client, db, creator, creator_user):
        fund(db, creator, 1000000)
        open_transfer_breaker()

        resp = await client.post("/payouts/request", json={"amount": 5000})
        assert resp.status_code == 502

        db.refresh(creator)
        assert creator.current_balance == 1000000
        assert db.query(Payout).count() == 0


class TestBankAccount:
    async def test_replace_bank_account(self, client, db, creator, creator_user, paystack):
        paystack["create_transfer_recipient"].return_value = {"recipient_code": "RCP_new"}
        resp = await client.put(
            "/payouts/bank-account",
            json={"bank_code": "044", "account_number": "9876543210", "account_name": "Ada Obi"},
        )
        assert resp.status_code == 200
        db.refresh(creator)
        assert (creator.bank_code, creator.paystack_recipient_code) == ("044", "RCP_new")

    async def test_rejected_account(self, client, db, creator, creator_user, paystack):
        paystack["create_transfer_recipient"].side_effect = PaystackError("Could not resolve account name", 422)
        resp = await client.put(
            "/payouts/bank-account",
            json={"bank_code": "044", "account_number": "9876543210", "account_name": "Ada Obi"},
        )
        assert resp.status_code == 400
        db.refresh(creator)
        assert creator.paystack_recipient_code == "RCP_ada"


class TestDailyPayouts:
    async def test_sweeps_eligible_balances(self, db, paystack):
        ada = make_creator(db)
        bisi = make_creator(db, email="bisi@example.com", username="bisi", paystack_recipient_code="RCP_bisi")
        small = make_creator(db, email="small@example.com", username="small")
        no_bank = make_creator(db, email="nobank@example.com", username="nobank", paystack_recipient_code=None)
        fund(db, ada, 500000)
        fund(db, bisi, 250000)
        fund(db, small, 5000)
        fund(db, no_bank, 900000)
        paystack["initiate_transfer"].side_effect = [{"transfer_code": "TRF_a"}, {"transfer_code": "TRF_b"}]

        results = await process_daily_payouts(db)

        assert sorted(r["creator_id"] for r in results) == sorted([ada.id, bisi.id])
        assert all(r["success"] for r in results)
        balances = {c.username: c.current_balance for c in db.query(Creator).all()}
        assert balances == {"ada": 0, "bisi": 0, "small": 5000, "nobank": 900000}
        assert {p.paystack_transfer_code for p in db.query(Payout).all()} == {"TRF_a", "TRF_b"}

    async def test_one_failure_does_not_stop_batch(self, db, paystack):
        ada = make_creator(db)
        bisi = make_creator(db, email="bisi@example.com", username="bisi", paystack_recipient_code="RCP_bisi")
        fund(db, ada, 500000)
        fund(db, bisi, 250000)
        paystack["initiate_transfer"].side_effect = [
            PaystackError("Recipient is invalid", 400),
            {"transfer_code": "TRF_b"},
        ]

        results = await process_daily_payouts(db)

        by_creator = {r["creator_id"]: r for r in results}
        assert by_creator[ada.id]["success"] is False
        assert by_creator[ada.id]["error"] == "Recipient is invalid"
        assert by_creator[bisi.id]["success"] is True

        db.refresh(ada)
        db.refresh(bisi)
        assert ada.current_balance == 500000
        assert bisi.current_balance == 0

    async def test_open_breaker_fails_each_creator_without_losing_money(self, db):
        ada = make_creator(db)
        bisi = make_creator(db, email="bisi@example.com", username="bisi", paystack_recipient_code="RCP_bisi")
        fund(db, ada, 2000000)
        fund(db, bisi, 3000000)
        open_transfer_breaker()

        results = await process_daily_payouts(db)

        assert [r["success"] for r in results] == [False, False]
        balances = {c.username: c.current_balance for c in db.query(Creator).all()}
        assert balances == {"ada": 2000000, "bisi": 3000000}
        assert db.query(Payout).count() == 0
