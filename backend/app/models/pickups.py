from __future__ import annotations

from ..extensions import db
from app.time_utils import decimal_str, to_utc_z, utcnow


class PickupStatus:
    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"

    ALL = (DRAFT, CONFIRMED, CANCELLED)


class ItemStatus:
    """
    Flow: PENDING -> IN_BOX -> IN_TRANSIT -> DELIVERED -> HANDED_OFF -> SOLD
          (or RETURNED at any point after IN_TRANSIT)

    IN_TRANSIT and DELIVERED are driven by the containing box's status.
    """
    PENDING = "PENDING"
    IN_BOX = "IN_BOX"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    HANDED_OFF = "HANDED_OFF"
    SOLD = "SOLD"
    RETURNED = "RETURNED"

    ALL = (PENDING, IN_BOX, IN_TRANSIT, DELIVERED, HANDED_OFF, SOLD, RETURNED)


class Pickup(db.Model):
    """
    A shipper collecting goods from a client.

    The shipper (owner_user_id) owns the pickup; its items can later be
    packed into boxes the same shipper creates.
    """
    __tablename__ = "pickups"
    __table_args__ = (
        db.Index("ix_pickups_owner_created", "owner_user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default=PickupStatus.DRAFT)
    notes = db.Column(db.Text, nullable=True)
    pickup_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship("Item", backref="pickup", lazy=True, order_by="Item.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_user_id": self.owner_user_id,
            "client_user_id": self.client_user_id,
            "status": self.status,
            "notes": self.notes,
            "pickup_date": self.pickup_date.isoformat() if self.pickup_date else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Item(db.Model):
    """
    A single shipped good.

    box_id is null until the item is packed. While shipping, status is set
    in bulk by the box lifecycle, never item by item.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.Index("ix_items_box_status", "box_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    pickup_id = db.Column(db.Integer, db.ForeignKey("pickups.id", ondelete="CASCADE"), nullable=False, index=True)
    box_id = db.Column(db.Integer, db.ForeignKey("boxes.id", ondelete="SET NULL"), nullable=True, index=True)

    category = db.Column(db.String(100), nullable=False)
    model = db.Column(db.String(255), nullable=True)
    imei = db.Column(db.String(50), nullable=True)

    estimated_weight_lb = db.Column(db.Numeric(8, 2), nullable=False, default=0)
    client_shipping_usd = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default=ItemStatus.PENDING, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pickup_id": self.pickup_id,
            "box_id": self.box_id,
            "category": self.category,
            "model": self.model,
            "imei": self.imei,
            "estimated_weight_lb": decimal_str(self.estimated_weight_lb),
            "client_shipping_usd": decimal_str(self.client_shipping_usd),
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
