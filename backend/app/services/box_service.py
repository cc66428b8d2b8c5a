# Overview: Service-layer operations for boxes; lifecycle, item packing and ownership transfer.

"""
Box Lifecycle and Ownership Transfer

WHY: A box is the unit a shipper ships. Its status drives the status of
every item inside it, and its ownership can move to another shipper while
the original packer keeps read access.

LIFECYCLE:
    OPEN -> SEALED -> SHIPPED -> DELIVERED
- Only OPEN boxes accept item changes
- -> SHIPPED: items become IN_TRANSIT, shipped_at stamped
- -> DELIVERED: items become DELIVERED, delivered_at stamped
- Status values are freely settable; legality of the jump is not checked

OWNERSHIP:
- created_by_user_id never changes
- owner_user_id changes only in transfer_box
- Visible to creator, current owner and ADMIN; only the current owner writes

TRANSACTIONS: Nothing here commits. The cascade, the item reassignment and
the box write all sit in the caller's session and are committed once by
the route (commit_session) or rolled back together.
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..errors import BadRequestError, ForbiddenError, NotFoundError, UnauthenticatedError
from ..extensions import db
from ..models import Box, BoxStatus, Item, ItemStatus, Pickup, User
from ..permissions import Actions, Resources, Roles
from ..validation import MAX_WEIGHT_LB, parse_decimal, parse_id_list
from . import permission_service
from .concurrency import lock_for_update, run_with_retry
from app.time_utils import utcnow


# Item status a box status pushes onto its contents
STATUS_CASCADE = {
    BoxStatus.SHIPPED: ItemStatus.IN_TRANSIT,
    BoxStatus.DELIVERED: ItemStatus.DELIVERED,
}

LIST_FILTERS = ("created", "transferred", "all")

_UNSET = object()


# =============================================================================
# Internal helpers
# =============================================================================

def _require_principal(principal) -> None:
    if principal is None:
        raise UnauthenticatedError()


def _is_admin(principal) -> bool:
    return principal.role == Roles.ADMIN


def _can_view(principal, box: Box) -> bool:
    return (
        box.created_by_user_id == principal.id
        or box.owner_user_id == principal.id
        or _is_admin(principal)
    )


def _load_box(principal, box_id: int, *, for_update: bool = False) -> Box:
    """Load a box and enforce read visibility (NotFound, then Forbidden)."""
    query = db.session.query(Box).filter_by(id=box_id)
    if for_update:
        query = lock_for_update(query)
    box = query.first()

    if not box:
        raise NotFoundError("Box not found")
    if not _can_view(principal, box):
        raise ForbiddenError("You do not have access to this box")
    return box


def _require_owner(principal, box: Box, message: str) -> None:
    if box.owner_user_id != principal.id:
        raise ForbiddenError(message)


def _require_open(box: Box, message: str) -> None:
    if box.status != BoxStatus.OPEN:
        raise BadRequestError(message)


def _verify_owned_pickups(principal, pickup_ids: list[int]) -> None:
    owned = db.session.query(Pickup.id).filter(
        Pickup.id.in_(pickup_ids),
        Pickup.owner_user_id == principal.id,
    ).count()
    if owned != len(pickup_ids):
        raise BadRequestError("One or more pickups not found or not owned by you")


def _assign_pickup_items(box: Box, pickup_ids: list[int]) -> int:
    """Move every item of the given pickups into the box, whatever its state."""
    return db.session.query(Item).filter(
        Item.pickup_id.in_(pickup_ids)
    ).update(
        {Item.box_id: box.id, Item.updated_at: utcnow()},
        synchronize_session="fetch",
    )


def _touch(box: Box) -> None:
    # Bumps version_id so concurrent writers on the same box collide
    box.updated_at = utcnow()


def _box_items(box_id: int) -> list[Item]:
    return db.session.query(Item).filter(Item.box_id == box_id).order_by(Item.id).all()


def _box_view(principal, box: Box) -> dict:
    """
    Serialize a box for a viewer.

    estimated_weight_lb is recomputed from the items actually inside; the
    pickup breakdown is only shown to the creator.
    """
    items = _box_items(box.id)
    estimated = sum((Decimal(item.estimated_weight_lb or 0) for item in items), Decimal("0"))

    pickups = None
    if box.created_by_user_id == principal.id:
        pickup_ids = sorted({item.pickup_id for item in items})
        pickups = []
        if pickup_ids:
            rows = db.session.query(Pickup).filter(Pickup.id.in_(pickup_ids)).order_by(Pickup.id).all()
            pickups = [p.to_dict() for p in rows]

    data = box.to_dict()
    data["estimated_weight_lb"] = f"{estimated:.2f}"
    data["is_transferred"] = box.is_transferred
    data["items"] = [item.to_dict() for item in items]
    data["pickups"] = pickups
    return data


# =============================================================================
# Public operations
# =============================================================================

def create_box(
    principal,
    label: str | None = None,
    shipper_rate_per_lb=None,
    insurance_usd=None,
    pickup_ids=None,
) -> dict:
    """
    Create an OPEN box owned and created by the principal.

    If pickup_ids are given, every one must belong to the principal; all of
    their items are moved into the new box in the same transaction.
    """
    permission_service.require_permission(principal, Actions.CREATE, Resources.BOXES)
    if principal.role == Roles.CLIENT:
        raise ForbiddenError("Clients cannot create boxes")

    rate = parse_decimal(shipper_rate_per_lb, "shipper_rate_per_lb")
    insurance = parse_decimal(insurance_usd, "insurance_usd")
    pickup_ids = parse_id_list(pickup_ids, "pickup_ids")

    def _op():
        if pickup_ids:
            _verify_owned_pickups(principal, pickup_ids)

        box = Box(
            owner_user_id=principal.id,
            created_by_user_id=principal.id,
            label=label,
            shipper_rate_per_lb=rate,
            insurance_usd=insurance if insurance is not None else Decimal("0"),
            status=BoxStatus.OPEN,
        )
        db.session.add(box)
        db.session.flush()

        if pickup_ids:
            _assign_pickup_items(box, pickup_ids)

        return box

    box = run_with_retry(_op)
    current_app.logger.info(
        "box_create box_id=%s user_id=%s pickup_count=%s", box.id, principal.id, len(pickup_ids)
    )
    return _box_view(principal, box)


def get_box(principal, box_id: int) -> dict:
    """Box detail for creator, current owner or admin."""
    permission_service.require_permission(principal, Actions.READ, Resources.BOXES)
    box = _load_box(principal, box_id)
    return _box_view(principal, box)


def update_box(
    principal,
    box_id: int,
    label=_UNSET,
    shipper_rate_per_lb=_UNSET,
    insurance_usd=_UNSET,
    actual_weight_lb=_UNSET,
    status=_UNSET,
) -> dict:
    """
    Update box fields and, on a status change, cascade to the items.

    Only the current owner may update. Omitted arguments are left alone;
    setting the current status again is a no-op.
    """
    _require_principal(principal)
    if status is not _UNSET and status not in BoxStatus.ALL:
        raise BadRequestError(f"Invalid box status: {status}")

    changes = {}
    if label is not _UNSET:
        changes["label"] = label
    if shipper_rate_per_lb is not _UNSET:
        changes["shipper_rate_per_lb"] = parse_decimal(shipper_rate_per_lb, "shipper_rate_per_lb")
    if insurance_usd is not _UNSET:
        changes["insurance_usd"] = parse_decimal(insurance_usd, "insurance_usd") or Decimal("0")
    if actual_weight_lb is not _UNSET:
        changes["actual_weight_lb"] = parse_decimal(actual_weight_lb, "actual_weight_lb", max_value=MAX_WEIGHT_LB)

    def _op():
        box = _load_box(principal, box_id, for_update=True)
        permission_service.require_permission(principal, Actions.UPDATE, Resources.BOXES, instance=box)
        _require_owner(principal, box, "You can only update boxes you own")

        for field, value in changes.items():
            setattr(box, field, value)

        previous = box.status
        if status is not _UNSET and status != previous:
            now = utcnow()
            box.status = status
            item_status = STATUS_CASCADE.get(status)
            if item_status:
                db.session.query(Item).filter(Item.box_id == box.id).update(
                    {Item.status: item_status, Item.updated_at: now},
                    synchronize_session="fetch",
                )
            if status == BoxStatus.SHIPPED:
                box.shipped_at = now
            elif status == BoxStatus.DELIVERED:
                box.delivered_at = now

        if changes or box.status != previous:
            _touch(box)
        db.session.flush()
        return box, previous

    box, previous = run_with_retry(_op)
    if box.status != previous:
        current_app.logger.info(
            "box_status_change box_id=%s from=%s to=%s user_id=%s",
            box.id, previous, box.status, principal.id,
        )
    return _box_view(principal, box)


def add_pickups(principal, box_id: int, pickup_ids) -> dict:
    """Move every item of the principal's pickups into an OPEN box."""
    _require_principal(principal)
    pickup_ids = parse_id_list(pickup_ids, "pickup_ids")
    if not pickup_ids:
        raise BadRequestError("pickup_ids is required")

    def _op():
        box = _load_box(principal, box_id, for_update=True)
        permission_service.require_permission(principal, Actions.UPDATE, Resources.BOXES, instance=box)
        _require_owner(principal, box, "You can only manage boxes you own")
        _require_open(box, "Cannot add items to a sealed or shipped box")

        _verify_owned_pickups(principal, pickup_ids)
        _assign_pickup_items(box, pickup_ids)
        _touch(box)
        db.session.flush()
        return box

    box = run_with_retry(_op)
    return _box_view(principal, box)


def remove_pickup(principal, box_id: int, pickup_id: int) -> dict:
    """Take one pickup's items back out of an OPEN box."""
    _require_principal(principal)
    def _op():
        box = _load_box(principal, box_id, for_update=True)
        permission_service.require_permission(principal, Actions.UPDATE, Resources.BOXES, instance=box)
        _require_owner(principal, box, "You can only manage boxes you own")
        _require_open(box, "Box is not open")

        db.session.query(Item).filter(
            Item.pickup_id == pickup_id,
            Item.box_id == box.id,
        ).update(
            {Item.box_id: None, Item.updated_at: utcnow()},
            synchronize_session="fetch",
        )
        _touch(box)
        db.session.flush()
        return box

    box = run_with_retry(_op)
    return _box_view(principal, box)


def manage_items(principal, box_id: int, add_item_ids=None, remove_item_ids=None) -> dict:
    """
    Reconcile individual items in an OPEN box.

    Added items must come from the principal's own pickups. Removal only
    touches items currently in this box.
    """
    _require_principal(principal)
    add_ids = parse_id_list(add_item_ids, "add_item_ids")
    remove_ids = parse_id_list(remove_item_ids, "remove_item_ids")

    def _op():
        box = _load_box(principal, box_id, for_update=True)
        permission_service.require_permission(principal, Actions.UPDATE, Resources.BOXES, instance=box)
        _require_owner(principal, box, "You can only manage boxes you own")
        _require_open(box, "Box is not open")

        now = utcnow()
        if add_ids:
            owned = db.session.query(Item.id).join(Pickup, Item.pickup_id == Pickup.id).filter(
                Item.id.in_(add_ids),
                Pickup.owner_user_id == principal.id,
            ).count()
            if owned != len(add_ids):
                raise BadRequestError("One or more items not found or not owned by you")
            db.session.query(Item).filter(Item.id.in_(add_ids)).update(
                {Item.box_id: box.id, Item.updated_at: now},
                synchronize_session="fetch",
            )
        if remove_ids:
            db.session.query(Item).filter(
                Item.id.in_(remove_ids),
                Item.box_id == box.id,
            ).update(
                {Item.box_id: None, Item.updated_at: now},
                synchronize_session="fetch",
            )

        _touch(box)
        db.session.flush()
        return box

    box = run_with_retry(_op)
    return _box_view(principal, box)


def transfer_box(principal, box_id: int, new_owner_email: str) -> dict:
    """
    Hand the box to another shipper.

    created_by_user_id is untouched, so the creator keeps read access and
    sees is_transferred=True afterwards.
    """
    _require_principal(principal)
    email = (new_owner_email or "").strip().lower()
    if not email:
        raise BadRequestError("new_owner_email is required")

    def _op():
        box = _load_box(principal, box_id, for_update=True)
        permission_service.require_permission(principal, Actions.UPDATE, Resources.BOXES, instance=box)
        _require_owner(principal, box, "You can only transfer boxes you own")

        new_owner = db.session.query(User).filter_by(email=email).first()
        if not new_owner:
            raise NotFoundError(f"User with email {new_owner_email} not found")
        if new_owner.role != Roles.SHIPPER:
            raise BadRequestError("Can only transfer boxes to other shippers")

        previous_owner = box.owner_user_id
        box.owner_user_id = new_owner.id
        _touch(box)
        db.session.flush()
        return box, previous_owner, new_owner.id

    box, previous_owner, new_owner_id = run_with_retry(_op)
    current_app.logger.info(
        "box_transfer box_id=%s from=%s to=%s", box.id, previous_owner, new_owner_id
    )
    return {"success": True, "new_owner_id": new_owner_id}


def list_boxes(principal, filter: str = "all") -> list[dict]:
    """
    Boxes the shipper created or currently holds, newest first.

    filter:
    - created: I packed it
    - transferred: I hold it but someone else packed it
    - all: either
    """
    permission_service.require_permission(principal, Actions.LIST, Resources.BOXES)
    if principal.role != Roles.SHIPPER and not principal.is_system_user:
        raise ForbiddenError("Only shippers can list boxes")

    filter = filter or "all"
    if filter not in LIST_FILTERS:
        raise BadRequestError(f"Unknown filter: {filter}")

    query = db.session.query(Box)
    if filter == "created":
        query = query.filter(Box.created_by_user_id == principal.id)
    elif filter == "transferred":
        query = query.filter(
            Box.owner_user_id == principal.id,
            Box.created_by_user_id != principal.id,
        )
    else:
        query = query.filter(db.or_(
            Box.owner_user_id == principal.id,
            Box.created_by_user_id == principal.id,
        ))

    rows = []
    for box in query.order_by(Box.created_at.desc(), Box.id.desc()).all():
        data = box.to_dict()
        data["type"] = "CREATED" if box.created_by_user_id == principal.id else "TRANSFERRED_IN"
        data["is_current_owner"] = box.owner_user_id == principal.id
        data["is_transferred"] = box.is_transferred
        rows.append(data)
    return rows
