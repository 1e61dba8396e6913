"""Checkout initialization and verification."""

from app.domain.payments.paystack_service import PaystackError
from app.models import FanSubscription, Transaction
from tests.conftest import make_plan
from tests.test_webhooks import charge, send_webhook

CHECKOUT = {"email": "Fan@Example.com", "phone": "08031234567", "amount": 5000, "type": "one_time"}


class TestInitialize:
    async def test_one_time_payment(self, client, db, creator, paystack):
        resp = await client.post("/payments/initialize", json={**CHECKOUT, "creator_id": creator.id})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["authorization_url"] == "https://checkout.paystack.com/abc123"
        assert body["reference"].startswith("odim_otp_")

        kwargs = paystack["initialize_transaction"].await_args.kwargs
        assert kwargs["amount"] == 500000
        assert kwargs["email"] == "fan@example.com"
        assert kwargs["subaccount"] == "ACCT_ada"
        assert kwargs["metadata"]["type"] == "one_time"

        tx = db.query(Transaction).one()
        assert (tx.amount, tx.status, tx.creator_id) == (500000, "pending", creator.id)

    async def test_plan_price_is_authoritative(self, client, db, creator, paystack):
        plan = make_plan(db, creator, price=750000)
        resp = await client.post(
            "/payments/initialize",
            json={**CHECKOUT, "type": "subscription", "creator_id": creator.id, "plan_id": plan.id, "amount": 1000},
        )
        assert resp.status_code == 200
        assert paystack["initialize_transaction"].await_args.kwargs["amount"] == 750000
        assert db.query(Transaction).one().payment_metadata["plan_id"] == plan.id

    async def test_inactive_plan(self, client, db, creator, paystack):
        plan = make_plan(db, creator)
        plan.is_active = False
        db.commit()
        resp = await client.post(
            "/payments/initialize", json={**CHECKOUT, "creator_id": creator.id, "plan_id": plan.id}
        )
        assert resp.status_code == 404

    async def test_below_minimum(self, client, creator, paystack):
        resp = await client.post("/payments/initialize", json={**CHECKOUT, "creator_id": creator.id, "amount": 999})
        assert resp.status_code == 422
        paystack["initialize_transaction"].assert_not_awaited()

    async def test_unknown_creator(self, client, paystack):
        resp = await client.post("/payments/initialize", json={**CHECKOUT, "creator_id": 999})
        assert resp.status_code == 404

    async def test_gateway_rejection_maps_to_400(self, client, db, creator, paystack):
        paystack["initialize_transaction"].side_effect = PaystackError("Invalid email", 400)
        resp = await client.post("/payments/initialize", json={**CHECKOUT, "creator_id": creator.id})
        assert resp.status_code == 400
        assert db.query(Transaction).count() == 0

    async def test_gateway_outage_maps_to_502(self, client, creator, paystack):
        paystack["initialize_transaction"].side_effect = PaystackError("Network error", retryable=True)
        resp = await client.post("/payments/initialize", json={**CHECKOUT, "creator_id": creator.id})
        assert resp.status_code == 502

    async def test_rate_limited(self, client, creator, paystack):
        for _ in range(10):
            await client.post("/payments/initialize", json={**CHECKOUT, "creator_id": creator.id})
        resp = await client.post("/payments/initialize", json={**CHECKOUT, "creator_id": creator.id})
        assert resp.status_code == 429


class TestVerify:
    async def _start(self, client, creator):
        resp = await client.post("/payments/initialize", json={**CHECKOUT, "creator_id": creator.id})
        return resp.json()["reference"]

    async def test_success(self, client, db, creator, paystack):
        reference = await self._start(client, creator)
        paystack["verify_transaction"].return_value = {"status": "success", "fees": 7500, "channel": "card"}

        resp = await client.get(f"/payments/verify/{reference}")
        body = resp.json()
        assert body["success"] is True
        assert body["amount"] == 500000
        assert body["data"]["channel"] == "card"

        tx = db.query(Transaction).one()
        assert tx.fee_amount == 7500
        assert tx.net_amount == 492500
        db.refresh(creator)
        assert creator.current_balance == 492500

    async def test_verify_then_webhook_fulfils_subscription_once(self, client, db, creator, paystack):
        plan = make_plan(db, creator)
        resp = await client.post(
            "/payments/initialize",
            json={**CHECKOUT, "type": "subscription", "creator_id": creator.id, "plan_id": plan.id},
        )
        reference = resp.json()["reference"]
        paystack["verify_transaction"].return_value = {"status": "success", "fees": 7500}

        assert (await client.get(f"/payments/verify/{reference}")).json()["success"] is True
        await send_webhook(client, charge(reference=reference))

        sub = db.query(FanSubscription).one()
        assert (sub.status, sub.plan_id) == ("active", plan.id)
        db.refresh(creator)
        assert creator.current_balance == 417500
        assert creator.subscriber_count == 1

    async def test_webhook_then_verify_credits_once(self, client, db, creator, paystack):
        reference = await self._start(client, creator)
        await send_webhook(client, charge(reference=reference))
        paystack["verify_transaction"].return_value = {"status": "success", "fees": 7500}

        assert (await client.get(f"/payments/verify/{reference}")).json()["success"] is True
        db.refresh(creator)
        assert creator.current_balance == 492500

    async def test_abandoned_marks_failed(self, client, db, creator, paystack):
        reference = await self._start(client, creator)
        paystack["verify_transaction"].return_value = {"status": "abandoned"}
        body = (await client.get(f"/payments/verify/{reference}")).json()
        assert body["success"] is False
        assert body["status"] == "failed"

    async def test_still_pending(self, client, creator, paystack):
        reference = await self._start(client, creator)
        paystack["verify_transaction"].return_value = {"status": "ongoing"}
        body = (await client.get(f"/payments/verify/{reference}")).json()
        assert body["status"] == "pending"

    async def test_unknown_reference(self, client, paystack):
        assert (await client.get("/payments/verify/odim_otp_missing")).status_code == 404

    async def test_public_key(self, client):
        assert (await client.get("/payments/public-key")).json() == {"public_key": "pk_test_odim"}
