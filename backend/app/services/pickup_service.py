# Overview: Service-layer operations for pickups and their items.

"""
Pickups and Items

A pickup is a shipper collecting goods from a client; each good is an Item
that can later be packed into a box. The shipper owns the pickup, and the
client named on it can read it.
"""

from __future__ import annotations

from flask import current_app

from ..errors import BadRequestError, ForbiddenError, NotFoundError
from ..extensions import db
from ..models import Item, ItemStatus, Pickup, PickupStatus, User
from ..permissions import Actions, Resources, Roles
from ..validation import MAX_WEIGHT_LB, parse_date, parse_decimal
from . import permission_service
from .concurrency import run_with_retry


def _policy_view(pickup: Pickup) -> dict:
    # Shippers match on owner_user_id, clients on user_id
    return {"owner_user_id": pickup.owner_user_id, "user_id": pickup.client_user_id}


def _pickup_view(pickup: Pickup) -> dict:
    items = db.session.query(Item).filter(Item.pickup_id == pickup.id).order_by(Item.id).all()
    data = pickup.to_dict()
    data["items"] = [item.to_dict() for item in items]
    data["total_shipping_usd"] = f"{sum(item.client_shipping_usd or 0 for item in items):.2f}"
    return data


def _new_item(pickup_id: int, category, model=None, imei=None,
              estimated_weight_lb=0, client_shipping_usd=0) -> Item:
    if not category or not str(category).strip():
        raise BadRequestError("category is required")
    return Item(
        pickup_id=pickup_id,
        category=str(category).strip(),
        model=model,
        imei=imei,
        estimated_weight_lb=parse_decimal(estimated_weight_lb, "estimated_weight_lb", max_value=MAX_WEIGHT_LB) or 0,
        client_shipping_usd=parse_decimal(client_shipping_usd, "client_shipping_usd") or 0,
        status=ItemStatus.PENDING,
    )


def create_pickup(principal, client_user_id: str | None = None, notes: str | None = None,
                  pickup_date=None, items=None) -> dict:
    """
    Create a DRAFT pickup owned by the principal, optionally with items.

    client_user_id, when given, must name an existing CLIENT user.
    """
    permission_service.require_permission(principal, Actions.CREATE, Resources.PICKUPS)
    parsed_date = parse_date(pickup_date, "pickup_date")
    items = items or []
    if not isinstance(items, list):
        raise BadRequestError("items must be a list")

    def _op():
        if client_user_id:
            client = db.session.get(User, client_user_id)
            if not client or client.role != Roles.CLIENT:
                raise BadRequestError("Client not found")

        pickup = Pickup(
            owner_user_id=principal.id,
            client_user_id=client_user_id or None,
            notes=notes,
            pickup_date=parsed_date,
            status=PickupStatus.DRAFT,
        )
        db.session.add(pickup)
        db.session.flush()

        for raw in items:
            if not isinstance(raw, dict):
                raise BadRequestError("items must be objects")
            db.session.add(_new_item(
                pickup.id,
                raw.get("category"),
                model=raw.get("model"),
                imei=raw.get("imei"),
                estimated_weight_lb=raw.get("estimated_weight_lb", 0),
                client_shipping_usd=raw.get("client_shipping_usd", 0),
            ))
        db.session.flush()
        return pickup

    pickup = run_with_retry(_op)
    current_app.logger.info(
        "pickup_create pickup_id=%s user_id=%s item_count=%s", pickup.id, principal.id, len(items)
    )
    return _pickup_view(pickup)


def _load_pickup(pickup_id: int) -> Pickup:
    pickup = db.session.get(Pickup, pickup_id)
    if not pickup:
        raise NotFoundError("Pickup not found")
    return pickup


def add_item(principal, pickup_id: int, category, model=None, imei=None,
             estimated_weight_lb=0, client_shipping_usd=0) -> dict:
    """Add an item to a pickup the principal owns (admins may add to any)."""
    permission_service.require_permission(principal, Actions.CREATE, Resources.ITEMS)

    def _op():
        pickup = _load_pickup(pickup_id)
        if pickup.owner_user_id != principal.id and principal.role != Roles.ADMIN:
            raise ForbiddenError("You can only add items to pickups you own")
        if pickup.status == PickupStatus.CANCELLED:
            raise BadRequestError("Cannot add items to a cancelled pickup")

        item = _new_item(pickup.id, category, model=model, imei=imei,
                         estimated_weight_lb=estimated_weight_lb,
                         client_shipping_usd=client_shipping_usd)
        db.session.add(item)
        db.session.flush()
        return item

    item = run_with_retry(_op)
    return item.to_dict()


def get_pickup(principal, pickup_id: int) -> dict:
    permission_service.require_permission(principal, Actions.READ, Resources.PICKUPS)
    pickup = _load_pickup(pickup_id)
    permission_service.require_permission(
        principal, Actions.READ, Resources.PICKUPS, instance=_policy_view(pickup)
    )
    return _pickup_view(pickup)


def list_pickups(principal, status: str | None = None) -> list[dict]:
    """
    Pickups visible to the principal, newest first.

    The LIST rule passes without an instance, so the owner predicate is
    applied here: shippers see their own, clients the ones naming them,
    admins and the system user everything.
    """
    permission_service.require_permission(principal, Actions.LIST, Resources.PICKUPS)

    query = db.session.query(Pickup)
    if principal.role == Roles.CLIENT:
        query = query.filter(Pickup.client_user_id == principal.id)
    elif principal.role not in (Roles.ADMIN, Roles.SYSTEM):
        query = query.filter(Pickup.owner_user_id == principal.id)

    if status:
        if status not in PickupStatus.ALL:
            raise BadRequestError(f"Invalid pickup status: {status}")
        query = query.filter(Pickup.status == status)

    return [p.to_dict() for p in query.order_by(Pickup.created_at.desc(), Pickup.id.desc()).all()]
