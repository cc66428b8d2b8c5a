from __future__ import annotations

from ..extensions import db
from app.time_utils import decimal_str, to_utc_z, utcnow


CURRENCIES = ("USD", "NGN", "GBP", "EUR")


class FxRate(db.Model):
    """
    A shipper's exchange rate for one currency pair.

    At most one rate per (owner, from, to) is active; creating a new one
    deactivates the previous.
    """
    __tablename__ = "fx_rates"
    __table_args__ = (
        db.Index("ix_fx_rates_owner_pair_active", "owner_user_id", "from_currency", "to_currency", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    from_currency = db.Column(db.String(3), nullable=False)
    to_currency = db.Column(db.String(3), nullable=False)
    rate = db.Column(db.Numeric(18, 6), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_user_id": self.owner_user_id,
            "from_currency": self.from_currency,
            "to_currency": self.to_currency,
            "rate": decimal_str(self.rate, 6),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
