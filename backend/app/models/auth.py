from __future__ import annotations

import uuid

from ..extensions import db
from app.time_utils import to_utc_z, utcnow


class VerificationStatus:
    """Identity verification state; only the vouch workflow moves it to VERIFIED."""
    UNVERIFIED = "UNVERIFIED"
    PENDING_VOUCH = "PENDING_VOUCH"
    VERIFIED = "VERIFIED"

    ALL = (UNVERIFIED, PENDING_VOUCH, VERIFIED)


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(db.Model):
    """
    User accounts for authentication and attribution.

    ROLES: ADMIN, SHIPPER, CLIENT, SYSTEM. The SYSTEM user is a synthetic
    actor for background jobs (is_system_user=True) and can never log in.

    WHY: Every box, pickup and vouch is attributable to exactly one user.
    Email is the login identifier and the key vouchers are matched on.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_role", "role"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_user_id)

    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False, default="")

    # Bcrypt hashed password (system user has none)
    password_hash = db.Column(db.String(255), nullable=True)

    role = db.Column(db.String(16), nullable=False, default="SHIPPER")
    is_system_user = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    verification_status = db.Column(
        db.String(16), nullable=False, default=VerificationStatus.UNVERIFIED
    )

    business_name = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    last_login_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "is_system_user": self.is_system_user,
            "is_active": self.is_active,
            "verification_status": self.verification_status,
            "business_name": self.business_name,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class SessionToken(db.Model):
    """
    Bearer session tokens.

    WHY: Opaque tokens resolve to a Principal on every request.
    Tokens are cryptographically secure random strings (32 bytes = 64 hex chars).

    SECURITY NOTES:
    - Tokens stored hashed in database (SHA-256)
    - Absolute timeout from SESSION_TTL_HOURS, 2-hour idle timeout
    - Revocable on logout or deactivation
    - Never issued for system users
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime, nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    user = db.relationship("User", backref=db.backref("session_tokens", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
