from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z, utcnow


class VouchStatus:
    """PENDING -> APPROVED | DECLINED (both terminal)."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DECLINED = "DECLINED"

    ALL = (PENDING, APPROVED, DECLINED)


class UserVouch(db.Model):
    """
    A request for an existing user to vouch for a new one.

    voucher_email is free text captured at onboarding; it is matched against
    the approving user's own email and only bound to voucher_user_id once
    that user approves or declines.
    """
    __tablename__ = "user_vouches"
    __table_args__ = (
        db.Index("ix_user_vouches_voucher_status", "voucher_email", "status"),
        db.Index("ix_user_vouches_requester_status", "requester_user_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    requester_user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    voucher_email = db.Column(db.String(255), nullable=False)
    voucher_user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=VouchStatus.PENDING)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    requester = db.relationship("User", foreign_keys=[requester_user_id])
    voucher = db.relationship("User", foreign_keys=[voucher_user_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requester_user_id": self.requester_user_id,
            "voucher_email": self.voucher_email,
            "voucher_user_id": self.voucher_user_id,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
