"""Booking lifecycle: request, escrowed payment, service day, completion and disputes."""

from datetime import date, timedelta

from app.models import Booking, Transaction
from tests.conftest import make_creator, make_service, open_date


def booking_payload(creator, item, day, **overrides):
    payload = {
        "creator_id": creator.id,
        "price_list_item_id": item.id,
        "customer_email": "Chi@Example.com",
        "customer_name": "Chioma Eze",
        "customer_phone": "08031234567",
        "customer_address": "12 Admiralty Way, Lekki",
        "booking_date": day.isoformat(),
    }
    payload.update(overrides)
    return payload


async def create_booking(client, db, creator, price=2000000):
    item = make_service(db, creator, price=price)
    slot = open_date(db, creator)
    resp = await client.post("/bookings", json=booking_payload(creator, item, slot.date))
    assert resp.status_code == 201, resp.text
    return resp.json()


async def pay_booking(client, paystack, booking):
    resp = await client.post(f"/bookings/track/{booking['tracking_token']}/pay")
    assert resp.status_code == 200, resp.text
    reference = resp.json()["reference"]
    paystack["verify_transaction"].return_value = {
        "status": "success",
        "amount": booking["total_amount"],
        "fees": 3000,
        "metadata": {"booking_id": booking["id"]},
    }
    resp = await client.post(
        f"/bookings/track/{booking['tracking_token']}/verify-payment", json={"reference": reference}
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestCreateBooking:
    async def test_create_splits_escrow(self, client, db, creator):
        body = await create_booking(client, db, creator)
        assert body["status"] == "pending"
        assert body["customer_email"] == "chi@example.com"
        assert body["total_amount"] == 2000000
        assert body["platform_fee"] == 100000
        assert body["first_payout_amount"] == 1140000
        assert body["second_payout_amount"] == 760000
        assert len(body["tracking_token"]) == 32

    async def test_unavailable_date_rejected(self, client, db, creator):
        item = make_service(db, creator)
        day = date.today() + timedelta(days=3)
        resp = await client.post("/bookings", json=booking_payload(creator, item, day))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Selected date is not available"

    async def test_past_date_rejected(self, client, db, creator):
        item = make_service(db, creator)
        day = date.today() - timedelta(days=1)
        open_date(db, creator, day=day)
        resp = await client.post("/bookings", json=booking_payload(creator, item, day))
        assert resp.status_code == 400

    async def test_inactive_service_rejected(self, client, db, creator):
        item = make_service(db, creator, is_active=False)
        slot = open_date(db, creator)
        resp = await client.post("/bookings", json=booking_payload(creator, item, slot.date))
        assert resp.status_code == 400

    async def test_fully_booked_date(self, client, db, creator):
        item = make_service(db, creator)
        slot = open_date(db, creator, max_bookings=1)
        first = await client.post("/bookings", json=booking_payload(creator, item, slot.date))
        assert first.status_code == 201
        second = await client.post(
            "/bookings", json=booking_payload(creator, item, slot.date, customer_email="bola@example.com")
        )
        assert second.status_code == 400
        assert second.json()["detail"] == "This date is fully booked"

    async def test_cancelled_booking_frees_slot(self, client, db, creator):
        item = make_service(db, creator)
        slot = open_date(db, creator, max_bookings=1)
        first = (await client.post("/bookings", json=booking_payload(creator, item, slot.date))).json()
        resp = await client.post(f"/bookings/{first['id']}/cancel", json={"tracking_token": first["tracking_token"]})
        assert resp.json()["status"] == "cancelled"

        again = await client.post("/bookings", json=booking_payload(creator, item, slot.date))
        assert again.status_code == 201

    async def test_invalid_phone(self, client, db, creator):
        item = make_service(db, creator)
        slot = open_date(db, creator)
        resp = await client.post("/bookings", json=booking_payload(creator, item, slot.date, customer_phone="080-12"))
        assert resp.status_code == 422


class TestPayment:
    async def test_initialize_holds_funds_on_platform(self, client, db, creator, paystack):
        booking = await create_booking(client, db, creator)
        resp = await client.post(f"/bookings/track/{booking['tracking_token']}/pay")
        assert resp.status_code == 200
        body = resp.json()
        assert body["reference"].startswith("odim_bk_")

        kwargs = paystack["initialize_transaction"].await_args.kwargs
        assert kwargs["amount"] == 2000000
        assert kwargs["subaccount"] is None
        assert kwargs["metadata"]["booking_id"] == booking["id"]

        tx = db.query(Transaction).filter(Transaction.reference == body["reference"]).one()
        assert tx.type == "booking"
        assert tx.status == "pending"

    async def test_verify_releases_first_payout(self, client, db, creator, paystack):
        booking = await create_booking(client, db, creator)
        body = await pay_booking(client, paystack, booking)
        assert body["status"] == "first_payout_done"

        db.refresh(creator)
        assert creator.current_balance == 1140000
        assert creator.total_earnings == 1140000

        tx = db.query(Transaction).filter(Transaction.reference == body["payment_reference"]).one()
        assert tx.status == "success"
        assert tx.net_amount == 2000000 - 3000

    async def test_repeated_verify_does_not_double_credit(self, client, db, creator, paystack):
        booking = await create_booking(client, db, creator)
        paid = await pay_booking(client, paystack, booking)
        resp = await client.post(
            f"/bookings/track/{booking['tracking_token']}/verify-payment",
            json={"reference": paid["payment_reference"]},
        )
        assert resp.status_code == 200
        db.refresh(creator)
        assert creator.current_balance == 1140000

    async def test_amount_mismatch_rejected(self, client, db, creator, paystack):
        booking = await create_booking(client, db, creator)
        paystack["verify_transaction"].return_value = {"status": "success", "amount": 100}
        resp = await client.post(
            f"/bookings/track/{booking['tracking_token']}/verify-payment", json={"reference": "odim_bk_x"}
        )
        assert resp.status_code == 400
        assert db.get(Booking, booking["id"]).status == "pending"

    async def test_failed_payment_rejected(self, client, db, creator, paystack):
        booking = await create_booking(client, db, creator)
        paystack["verify_transaction"].return_value = {"status": "failed", "amount": 2000000}
        resp = await client.post(
            f"/bookings/track/{booking['tracking_token']}/verify-payment", json={"reference": "odim_bk_x"}
        )
        assert resp.status_code == 400

    async def test_cannot_pay_twice(self, client, db, creator, paystack):
        booking = await create_booking(client, db, creator)
        await pay_booking(client, paystack, booking)
        resp = await client.post(f"/bookings/track/{booking['tracking_token']}/pay")
        assert resp.status_code == 409

    async def test_paid_booking_cannot_be_cancelled(self, client, db, creator, paystack):
        booking = await create_booking(client, db, creator)
        await pay_booking(client, paystack, booking)
        resp = await client.post(
            f"/bookings/{booking['id']}/cancel", json={"tracking_token": booking["tracking_token"]}
        )
        assert resp.status_code == 409


class TestCreatorWorkflow:
    async def test_full_lifecycle(self, client, db, creator, creator_user, paystack):
        booking = await create_booking(client, db, creator)
        await pay_booking(client, paystack, booking)

        resp = await client.post(f"/bookings/{booking['id']}/service-day")
        assert resp.json()["status"] == "service_day"

        resp = await client.post(f"/bookings/{booking['id']}/complete")
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"

        db.refresh(creator)
        assert creator.current_balance == 1900000
        assert creator.total_earnings == 1900000

    async def test_complete_requires_payment(self, client, db, creator, creator_user):
        booking = await create_booking(client, db, creator)
        resp = await client.post(f"/bookings/{booking['id']}/complete")
        assert resp.status_code == 409

    async def test_other_creators_booking_is_hidden(self, client, db, creator, login):
        booking = await create_booking(client, db, creator)
        rival = make_creator(db, email="bisi@example.com", username="bisi")
        login(rival.user)
        resp = await client.get(f"/bookings/{booking['id']}")
        assert resp.status_code == 404

    async def test_list_and_filter(self, client, db, creator, creator_user, paystack):
        booking = await create_booking(client, db, creator)
        await pay_booking(client, paystack, booking)

        resp = await client.get("/bookings", params={"status": "first_payout_done"})
        assert [b["id"] for b in resp.json()] == [booking["id"]]
        assert (await client.get("/bookings", params={"status": "pending"})).json() == []
        assert (await client.get("/bookings", params={"status": "bogus"})).status_code == 400

        upcoming = await client.get("/bookings/upcoming")
        assert [b["id"] for b in upcoming.json()] == [booking["id"]]


class TestTracking:
    async def test_preview_hides_customer_details(self, client, db, creator):
        booking = await create_booking(client, db, creator)
        resp = await client.get(f"/bookings/track/{booking['tracking_token']}")
        body = resp.json()
        assert body["status"] == "pending"
        assert body["requires_email"] is True
        assert "customer_email" not in body

    async def test_details_require_matching_email(self, client, db, creator):
        booking = await create_booking(client, db, creator)
        resp = await client.post(f"/bookings/track/{booking['tracking_token']}", json={"email": "eve@example.com"})
        assert resp.status_code == 403

        resp = await client.post(f"/bookings/track/{booking['tracking_token']}", json={"email": "CHI@example.com"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["booking"]["customer_name"] == "Chioma Eze"
        assert body["can_cancel"] is True
        assert body["progress"]["current_step"] == 0

    async def test_unknown_token(self, client):
        assert (await client.get("/bookings/track/nope")).status_code == 404


class TestRefunds:
    async def _paid(self, client, db, creator, paystack):
        booking = await create_booking(client, db, creator)
        await pay_booking(client, paystack, booking)
        return booking

    async def _request(self, client, booking, email="chi@example.com"):
        return await client.post(
            "/bookings/refund-request",
            json={
                "tracking_token": booking["tracking_token"],
                "email": email,
                "reason": "Artist did not show up on the day",
            },
        )

    async def test_request_opens_dispute(self, client, db, creator, paystack):
        booking = await self._paid(client, db, creator, paystack)
        resp = await self._request(client, booking)
        assert resp.status_code == 200
        assert resp.json()["status"] == "disputed"
        assert resp.json()["dispute_status"] == "pending"

        again = await self._request(client, booking)
        assert again.status_code == 409

    async def test_wrong_email_is_not_found(self, client, db, creator, paystack):
        booking = await self._paid(client, db, creator, paystack)
        resp = await self._request(client, booking, email="eve@example.com")
        assert resp.status_code == 404

    async def test_unpaid_booking_cannot_be_disputed(self, client, db, creator):
        booking = await create_booking(client, db, creator)
        resp = await self._request(client, booking)
        assert resp.status_code == 409

    async def test_approve_claws_back_first_payout(self, client, db, creator, creator_user, paystack):
        booking = await self._paid(client, db, creator, paystack)
        await self._request(client, booking)

        resp = await client.post(f"/bookings/{booking['id']}/refund/approve")
        assert resp.status_code == 200
        assert resp.json()["status"] == "refunded"
        assert resp.json()["dispute_status"] == "approved"

        db.refresh(creator)
        assert creator.current_balance == 0
        assert creator.total_earnings == 0

    async def test_approve_with_insufficient_balance(self, client, db, creator, creator_user, paystack):
        booking = await self._paid(client, db, creator, paystack)
        await self._request(client, booking)
        creator.current_balance = 0
        db.commit()

        resp = await client.post(f"/bookings/{booking['id']}/refund/approve")
        assert resp.status_code == 409
        assert db.get(Booking, booking["id"]).status == "disputed"

    async def test_reject_restores_previous_status(self, client, db, creator, creator_user, paystack):
        booking = await self._paid(client, db, creator, paystack)
        await self._request(client, booking)

        resp = await client.post(f"/bookings/{booking['id']}/refund/reject")
        assert resp.json()["status"] == "first_payout_done"
        assert resp.json()["dispute_status"] == "rejected"

        db.refresh(creator)
        assert creator.current_balance == 1140000
