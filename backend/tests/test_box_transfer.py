"""
Box ownership transfer tests.

Verifies:
- Only the current owner transfers, and only to another shipper
- created_by_user_id never changes; the creator keeps read access
- The previous owner loses write access after handing the box on
"""

import pytest

from app.errors import BadRequestError, ForbiddenError, NotFoundError
from app.models import Box, BoxStatus
from app.services import box_service


# =============================================================================
# HAPPY PATH
# =============================================================================


class TestTransfer:
    """Ownership moves; authorship stays."""

    def test_transfer_to_shipper(self, db_session, shipper, other_shipper, make_box, as_principal):
        box_id = make_box(as_principal(shipper), label="handoff")

        result = box_service.transfer_box(as_principal(shipper), box_id, other_shipper.email)
        db_session.commit()

        assert result == {"success": True, "new_owner_id": other_shipper.id}
        box = db_session.get(Box, box_id)
        assert box.owner_user_id == other_shipper.id
        assert box.created_by_user_id == shipper.id
        assert box.is_transferred is True

    def test_email_is_case_insensitive(self, db_session, shipper, other_shipper, make_box, as_principal):
        box_id = make_box(as_principal(shipper))

        result = box_service.transfer_box(as_principal(shipper), box_id, "  OTHER@Example.com ")

        assert result["new_owner_id"] == other_shipper.id

    def test_creator_keeps_read_access(self, db_session, shipper, other_shipper, make_pickup, make_box,
                                       as_principal):
        pickup = make_pickup(shipper, weights=(4,))
        box_id = make_box(as_principal(shipper), pickup_ids=[pickup.id])
        box_service.transfer_box(as_principal(shipper), box_id, other_shipper.email)
        db_session.commit()

        creator_view = box_service.get_box(as_principal(shipper), box_id)
        assert creator_view["is_transferred"] is True
        assert [p["id"] for p in creator_view["pickups"]] == [pickup.id]

        # The new owner sees the items but not the creator's pickup breakdown
        owner_view = box_service.get_box(as_principal(other_shipper), box_id)
        assert len(owner_view["items"]) == 1
        assert owner_view["pickups"] is None

    def test_new_owner_can_ship(self, db_session, shipper, other_shipper, make_box, as_principal):
        box_id = make_box(as_principal(shipper))
        box_service.transfer_box(as_principal(shipper), box_id, other_shipper.email)
        db_session.commit()

        box = box_service.update_box(as_principal(other_shipper), box_id, status=BoxStatus.SHIPPED)
        assert box["status"] == BoxStatus.SHIPPED

    def test_previous_owner_loses_write(self, db_session, shipper, other_shipper, make_box, as_principal):
        box_id = make_box(as_principal(shipper))
        box_service.transfer_box(as_principal(shipper), box_id, other_shipper.email)
        db_session.commit()

        with pytest.raises(ForbiddenError):
            box_service.update_box(as_principal(shipper), box_id, label="still mine?")
        with pytest.raises(ForbiddenError):
            box_service.transfer_box(as_principal(shipper), box_id, shipper.email)


# =============================================================================
# REJECTIONS
# =============================================================================


class TestTransferRejections:
    """Target and caller checks."""

    def test_unknown_email(self, db_session, shipper, make_box, as_principal):
        box_id = make_box(as_principal(shipper))

        with pytest.raises(NotFoundError) as exc:
            box_service.transfer_box(as_principal(shipper), box_id, "nobody@example.com")
        assert exc.value.message == "User with email nobody@example.com not found"

    def test_target_must_be_shipper(self, db_session, shipper, client_user, make_box, as_principal):
        box_id = make_box(as_principal(shipper))

        with pytest.raises(BadRequestError) as exc:
            box_service.transfer_box(as_principal(shipper), box_id, client_user.email)
        assert exc.value.message == "Can only transfer boxes to other shippers"

        db_session.rollback()
        assert db_session.get(Box, box_id).owner_user_id == shipper.id

    def test_stranger_cannot_transfer(self, db_session, shipper, other_shipper, make_box, as_principal):
        box_id = make_box(as_principal(shipper))

        with pytest.raises(ForbiddenError):
            box_service.transfer_box(as_principal(other_shipper), box_id, other_shipper.email)

    def test_missing_box(self, db_session, shipper, other_shipper, as_principal):
        with pytest.raises(NotFoundError):
            box_service.transfer_box(as_principal(shipper), 9999, other_shipper.email)

    def test_email_required(self, db_session, shipper, make_box, as_principal):
        box_id = make_box(as_principal(shipper))

        with pytest.raises(BadRequestError):
            box_service.transfer_box(as_principal(shipper), box_id, "")
