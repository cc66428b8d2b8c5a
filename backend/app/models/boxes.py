from __future__ import annotations

from ..extensions import db
from app.time_utils import decimal_str, to_utc_z, utcnow


class BoxStatus:
    """
    OPEN -> SEALED -> SHIPPED -> DELIVERED

    Values are freely settable by the owner; only OPEN accepts item changes.
    """
    OPEN = "OPEN"
    SEALED = "SEALED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"

    ALL = (OPEN, SEALED, SHIPPED, DELIVERED)


class Box(db.Model):
    """
    Shipping box packed by a shipper.

    OWNERSHIP:
    - created_by_user_id: the packing shipper, immutable after insert
    - owner_user_id: current holder, changes only through a transfer

    Creator and current owner both see the box; only the creator sees the
    pickup breakdown of its items.

    CONCURRENCY: version_id is SQLAlchemy's optimistic lock; a stale write
    raises StaleDataError and is retried by run_with_retry.
    """
    __tablename__ = "boxes"
    __table_args__ = (
        db.Index("ix_boxes_owner_creator", "owner_user_id", "created_by_user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    owner_user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by_user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)

    label = db.Column(db.String(100), nullable=True)

    # Stored estimate is informational; views recompute it from items
    estimated_weight_lb = db.Column(db.Numeric(8, 2), nullable=True)
    actual_weight_lb = db.Column(db.Numeric(8, 2), nullable=True)
    shipper_rate_per_lb = db.Column(db.Numeric(10, 2), nullable=True)
    insurance_usd = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default=BoxStatus.OPEN, index=True)

    shipped_at = db.Column(db.DateTime, nullable=True)
    delivered_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_transferred(self) -> bool:
        return self.created_by_user_id != self.owner_user_id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_user_id": self.owner_user_id,
            "created_by_user_id": self.created_by_user_id,
            "label": self.label,
            "estimated_weight_lb": decimal_str(self.estimated_weight_lb),
            "actual_weight_lb": decimal_str(self.actual_weight_lb),
            "shipper_rate_per_lb": decimal_str(self.shipper_rate_per_lb),
            "insurance_usd": decimal_str(self.insurance_usd),
            "status": self.status,
            "shipped_at": to_utc_z(self.shipped_at),
            "delivered_at": to_utc_z(self.delivered_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
