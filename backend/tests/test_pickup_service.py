"""
Pickup tests.

Verifies:
- Shippers create pickups with items; the named client must be a CLIENT
- The owning shipper and the named client can read a pickup; others cannot
- Listings are scoped per role
"""

import pytest

from app.errors import BadRequestError, ForbiddenError, NotFoundError
from app.models import Item, Pickup, PickupStatus
from app.services import pickup_service


ITEMS = [
    {"category": "phone", "model": "Pixel 8", "estimated_weight_lb": "0.50", "client_shipping_usd": "15"},
    {"category": "laptop", "model": "ThinkPad X1", "estimated_weight_lb": 3, "client_shipping_usd": 40},
]


class TestCreatePickup:
    """Creating pickups and adding items."""

    def test_create_with_items(self, db_session, shipper, client_user, as_principal):
        pickup = pickup_service.create_pickup(
            as_principal(shipper), client_user_id=client_user.id, pickup_date="2026-10-20", items=ITEMS
        )
        db_session.commit()

        assert pickup["status"] == PickupStatus.DRAFT
        assert pickup["owner_user_id"] == shipper.id
        assert pickup["client_user_id"] == client_user.id
        assert pickup["pickup_date"] == "2026-10-20"
        assert [item["model"] for item in pickup["items"]] == ["Pixel 8", "ThinkPad X1"]
        assert pickup["total_shipping_usd"] == "55.00"

    def test_client_must_be_a_client(self, db_session, shipper, other_shipper, as_principal):
        with pytest.raises(BadRequestError) as exc:
            pickup_service.create_pickup(as_principal(shipper), client_user_id=other_shipper.id)
        assert exc.value.message == "Client not found"

    def test_item_needs_category(self, db_session, shipper, as_principal):
        with pytest.raises(BadRequestError):
            pickup_service.create_pickup(as_principal(shipper), items=[{"model": "mystery"}])

        db_session.rollback()
        assert db_session.query(Pickup).count() == 0

    def test_client_cannot_create(self, db_session, client_user, as_principal):
        with pytest.raises(ForbiddenError):
            pickup_service.create_pickup(as_principal(client_user))

    def test_add_item(self, db_session, shipper, make_pickup, as_principal):
        pickup = make_pickup(shipper, weights=())

        item = pickup_service.add_item(as_principal(shipper), pickup.id, "tablet", estimated_weight_lb="1.2")
        db_session.commit()

        assert item["pickup_id"] == pickup.id
        assert item["estimated_weight_lb"] == "1.20"
        assert item["box_id"] is None

    def test_add_item_to_foreign_pickup(self, db_session, shipper, other_shipper, make_pickup, as_principal):
        pickup = make_pickup(other_shipper)

        with pytest.raises(ForbiddenError):
            pickup_service.add_item(as_principal(shipper), pickup.id, "phone")

    def test_add_item_to_cancelled_pickup(self, db_session, shipper, make_pickup, as_principal):
        pickup = make_pickup(shipper)
        pickup.status = PickupStatus.CANCELLED
        db_session.commit()

        with pytest.raises(BadRequestError):
            pickup_service.add_item(as_principal(shipper), pickup.id, "phone")
        assert db_session.query(Item).filter_by(pickup_id=pickup.id).count() == 1

    def test_add_item_to_missing_pickup(self, db_session, shipper, as_principal):
        with pytest.raises(NotFoundError):
            pickup_service.add_item(as_principal(shipper), 9999, "phone")

    def test_item_weight_must_fit_its_column(self, db_session, shipper, make_pickup, as_principal):
        pickup = make_pickup(shipper, weights=())

        with pytest.raises(BadRequestError) as exc:
            pickup_service.add_item(as_principal(shipper), pickup.id, "crate", estimated_weight_lb=5000000)
        assert exc.value.message == "estimated_weight_lb is too large"
        assert db_session.query(Item).filter_by(pickup_id=pickup.id).count() == 0

        item = pickup_service.add_item(as_principal(shipper), pickup.id, "crate", estimated_weight_lb="999999.99")
        db_session.commit()
        assert item["estimated_weight_lb"] == "999999.99"


class TestPickupVisibility:
    """Owner and named client read; everyone else is refused."""

    def test_owner_and_client_read(self, db_session, shipper, client_user, make_pickup, as_principal):
        pickup = make_pickup(shipper, client=client_user)

        assert pickup_service.get_pickup(as_principal(shipper), pickup.id)["id"] == pickup.id
        assert pickup_service.get_pickup(as_principal(client_user), pickup.id)["id"] == pickup.id

    def test_other_shipper_refused(self, db_session, shipper, other_shipper, make_pickup, as_principal):
        pickup = make_pickup(shipper)

        with pytest.raises(ForbiddenError):
            pickup_service.get_pickup(as_principal(other_shipper), pickup.id)

    def test_unnamed_client_refused(self, db_session, shipper, client_user, make_pickup, as_principal):
        pickup = make_pickup(shipper)

        with pytest.raises(ForbiddenError):
            pickup_service.get_pickup(as_principal(client_user), pickup.id)

    def test_listings_are_scoped(
        self, db_session, shipper, other_shipper, client_user, admin_user, make_pickup, as_principal
    ):
        mine = make_pickup(shipper, client=client_user)
        theirs = make_pickup(other_shipper)

        assert [p["id"] for p in pickup_service.list_pickups(as_principal(shipper))] == [mine.id]
        assert [p["id"] for p in pickup_service.list_pickups(as_principal(client_user))] == [mine.id]
        assert {p["id"] for p in pickup_service.list_pickups(as_principal(admin_user))} == {mine.id, theirs.id}

    def test_status_filter(self, db_session, shipper, make_pickup, as_principal):
        make_pickup(shipper)

        assert pickup_service.list_pickups(as_principal(shipper), PickupStatus.CONFIRMED) == []
        with pytest.raises(BadRequestError):
            pickup_service.list_pickups(as_principal(shipper), "LOST")
