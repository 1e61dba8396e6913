"""Creator content, collections with sections, and paid access checks."""

from datetime import datetime, timedelta

from app.models import Collection, CollectionSubscription, Content, Transaction, TutorialPurchase
from tests.conftest import make_creator, make_plan


def add_collection(db, creator, **kwargs):
    values = {"title": "Bridal Masterclass", "access_type": "one_time", "price": 300000, "is_published": True}
    values.update(kwargs)
    collection = Collection(creator_id=creator.id, **values)
    db.add(collection)
    db.commit()
    db.refresh(collection)
    return collection


def add_tutorial(db, creator, price=200000, **kwargs):
    content = Content(
        creator_id=creator.id,
        title="Cut crease in 10 minutes",
        type="video",
        access_type=kwargs.pop("access_type", "one_time" if price else "free"),
        content_category="tutorial",
        tutorial_price=price,
        is_published=True,
        **kwargs,
    )
    db.add(content)
    db.commit()
    db.refresh(content)
    return content


class TestContent:
    async def test_create_video_starts_pending(self, client, db, creator, creator_user):
        resp = await client.post("/content", json={"title": "Soft glam", "type": "video", "is_published": True})
        assert resp.status_code == 201
        body = resp.json()
        assert body["processing_status"] == "pending"
        assert body["published_at"] is not None

        db.refresh(creator)
        assert creator.content_count == 1

    async def test_paid_tutorial_needs_price(self, client, creator_user):
        resp = await client.post(
            "/content",
            json={"title": "Brows", "type": "video", "content_category": "tutorial", "access_type": "one_time"},
        )
        assert resp.status_code == 422

    async def test_tutorial_price_in_kobo(self, client, creator_user):
        resp = await client.post(
            "/content",
            json={
                "title": "Brows",
                "type": "video",
                "content_category": "tutorial",
                "access_type": "one_time",
                "tutorial_price": 2500,
            },
        )
        assert resp.json()["tutorial_price"] == 250000

    async def test_foreign_plan_rejected(self, client, db, creator_user):
        rival = make_creator(db, email="bisi@example.com", username="bisi")
        plan = make_plan(db, rival)
        resp = await client.post(
            "/content", json={"title": "VIP", "type": "text", "access_type": "subscription", "required_plan_id": plan.id}
        )
        assert resp.status_code == 400

    async def test_unpublish_clears_date(self, client, db, creator, creator_user):
        created = (await client.post("/content", json={"title": "Look", "type": "image", "is_published": True})).json()
        resp = await client.patch(f"/content/{created['id']}", json={"is_published": False})
        assert resp.json()["published_at"] is None

    async def test_delete_clears_intro_video(self, client, db, creator, creator_user):
        created = (await client.post("/content", json={"title": "Intro", "type": "video", "video_id": "pb_1"})).json()
        assert (await client.put("/creators/me/intro-video", json={"content_id": created["id"]})).status_code == 200

        assert (await client.delete(f"/content/{created['id']}")).status_code == 200
        db.refresh(creator)
        assert creator.intro_video_id is None
        assert creator.content_count == 0

    async def test_filter_by_category(self, client, db, creator, creator_user):
        add_tutorial(db, creator)
        await client.post("/content", json={"title": "Look", "type": "image"})
        tutorials = (await client.get("/content", params={"content_category": "tutorial"})).json()
        assert [c["content_category"] for c in tutorials] == ["tutorial"]


class TestCollections:
    async def test_create_with_sections(self, client, db, creator, creator_user):
        resp = await client.post(
            "/collections",
            json={"title": "Bridal", "access_type": "subscription", "subscription_price": 4000, "subscription_type": "recurring"},
        )
        assert resp.status_code == 201
        collection = resp.json()
        assert collection["subscription_price"] == 400000

        section = (await client.post(f"/collections/{collection['id']}/sections", json={"title": "Prep"})).json()
        child = await client.post(
            f"/collections/{collection['id']}/sections", json={"title": "Skin", "parent_section_id": section["id"]}
        )
        assert child.status_code == 201

        content = (await client.post("/content", json={"title": "Primer", "type": "video"})).json()
        path = f"/collections/{collection['id']}/sections/{section['id']}/contents"
        assert (await client.post(path, json={"content_id": content["id"]})).status_code == 201
        assert (await client.post(path, json={"content_id": content["id"]})).status_code == 409

        detail = (await client.get(f"/collections/{collection['id']}")).json()
        prep = next(s for s in detail["sections"] if s["id"] == section["id"])
        assert [c["content_id"] for c in prep["contents"]] == [content["id"]]

    async def test_delete_section_removes_children(self, client, db, creator, creator_user):
        collection = add_collection(db, creator)
        parent = (await client.post(f"/collections/{collection.id}/sections", json={"title": "Prep"})).json()
        await client.post(f"/collections/{collection.id}/sections", json={"title": "Skin", "parent_section_id": parent["id"]})

        assert (await client.delete(f"/collections/{collection.id}/sections/{parent['id']}")).status_code == 200
        assert (await client.get(f"/collections/{collection.id}")).json()["sections"] == []

    async def test_other_creator_cannot_manage(self, client, db, creator_user):
        rival = make_creator(db, email="bisi@example.com", username="bisi")
        collection = add_collection(db, rival)
        assert (await client.get(f"/collections/{collection.id}")).status_code == 404

    async def test_unpublished_is_not_public(self, client, db, creator):
        collection = add_collection(db, creator, is_published=False)
        assert (await client.get(f"/collections/public/{collection.id}")).status_code == 404


class TestPaidAccess:
    async def test_free_collection_is_open(self, client, db, creator):
        collection = add_collection(db, creator, access_type="free", price=None)
        resp = await client.post(f"/collections/public/{collection.id}/access", json={"email": "fan@example.com"})
        assert resp.json() == {"has_access": True}

    async def test_collection_access_respects_expiry(self, client, db, creator):
        collection = add_collection(db, creator)
        db.add(
            CollectionSubscription(
                collection_id=collection.id,
                email="fan@example.com",
                subscription_type="recurring",
                payment_reference="ref",
                status="active",
                expires_at=datetime.utcnow() - timedelta(days=1),
            )
        )
        db.commit()
        resp = await client.post(f"/collections/public/{collection.id}/access", json={"email": "Fan@example.com"})
        assert resp.json() == {"has_access": False}

    async def test_subscribe_starts_checkout(self, client, db, creator, paystack):
        collection = add_collection(db, creator)
        resp = await client.post(f"/collections/public/{collection.id}/subscribe", json={"email": "fan@example.com"})
        assert resp.status_code == 200
        assert resp.json()["reference"].startswith("odim_col_")

        tx = db.query(Transaction).one()
        assert tx.amount == 300000
        assert tx.payment_metadata["collection_id"] == collection.id

    async def test_subscribe_twice(self, client, db, creator, paystack):
        collection = add_collection(db, creator)
        db.add(
            CollectionSubscription(
                collection_id=collection.id,
                email="fan@example.com",
                subscription_type="one_time",
                payment_reference="ref",
                status="active",
            )
        )
        db.commit()
        resp = await client.post(f"/collections/public/{collection.id}/subscribe", json={"email": "fan@example.com"})
        assert resp.status_code == 409

    async def test_tutorial_purchase_flow(self, client, db, creator, paystack):
        tutorial = add_tutorial(db, creator)
        check = await client.post(f"/collections/tutorials/{tutorial.id}/access", json={"email": "fan@example.com"})
        assert check.json() == {"has_access": False}

        resp = await client.post(f"/collections/tutorials/{tutorial.id}/purchase", json={"email": "fan@example.com"})
        assert resp.status_code == 200
        assert paystack["initialize_transaction"].await_args.kwargs["amount"] == 200000

        db.add(TutorialPurchase(content_id=tutorial.id, email="fan@example.com", payment_reference="ref"))
        db.commit()
        check = await client.post(f"/collections/tutorials/{tutorial.id}/access", json={"email": "fan@example.com"})
        assert check.json() == {"has_access": True}
        again = await client.post(f"/collections/tutorials/{tutorial.id}/purchase", json={"email": "fan@example.com"})
        assert again.status_code == 409

    async def test_collection_subscription_unlocks_tutorial(self, client, db, creator):
        collection = add_collection(db, creator)
        tutorial = add_tutorial(db, creator, collection_id=collection.id)
        db.add(
            CollectionSubscription(
                collection_id=collection.id,
                email="fan@example.com",
                subscription_type="one_time",
                payment_reference="ref",
                status="active",
            )
        )
        db.commit()
        check = await client.post(f"/collections/tutorials/{tutorial.id}/access", json={"email": "fan@example.com"})
        assert check.json() == {"has_access": True}

    async def test_free_tutorial_cannot_be_bought(self, client, db, creator, paystack):
        tutorial = add_tutorial(db, creator, price=None)
        resp = await client.post(f"/collections/tutorials/{tutorial.id}/purchase", json={"email": "fan@example.com"})
        assert resp.status_code == 400

    async def test_priced_tutorial_marked_free_stays_paywalled(self, client, db, creator, paystack):
        tutorial = add_tutorial(db, creator, price=500000, access_type="free")
        check = await client.post(f"/collections/tutorials/{tutorial.id}/access", json={"email": "stranger@example.com"})
        assert check.json() == {"has_access": False}

        resp = await client.post(f"/collections/tutorials/{tutorial.id}/purchase", json={"email": "stranger@example.com"})
        assert resp.status_code == 200
        assert paystack["initialize_transaction"].await_args.kwargs["amount"] == 500000
