# Overview: Service-layer operations for session; bearer tokens and principal resolution.

"""
Session Token Management Service

WHY: Secure session management with automatic timeout and revocation.
Tokens are cryptographically secure, hashed in database, and time-limited.

PRINCIPAL: validate_session resolves a token to a Principal, the immutable
identity every service call receives explicitly. Services never read
flask.g; only routes do.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout from SESSION_TTL_HOURS (default one week)
- 2-hour idle timeout (SESSION_IDLE_TIMEOUT)
- Revocable on logout or deactivation
- Never issued for system users
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app, has_app_context

from ..errors import ForbiddenError, NotFoundError
from ..extensions import db
from ..models import SessionToken, User
from . import permission_service
from app.time_utils import utcnow


DEFAULT_SESSION_TTL = timedelta(hours=168)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)


@dataclass(frozen=True)
class Principal:
    """
    The authenticated identity passed to every service operation.

    Built from a User row at validation time; later changes to the row
    (e.g. becoming VERIFIED) show up on the next request.
    """
    id: str
    role: str
    email: str
    is_system_user: bool = False
    verification_status: str = "UNVERIFIED"

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            id=user.id,
            role=user.role,
            email=(user.email or "").lower(),
            is_system_user=bool(user.is_system_user),
            verification_status=user.verification_status,
        )


@dataclass
class SessionContext:
    """Complete session context returned by validate_session."""
    user: User
    session: SessionToken
    principal: Principal


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _session_ttl() -> timedelta:
    if has_app_context():
        return timedelta(hours=int(current_app.config.get("SESSION_TTL_HOURS", 168)))
    return DEFAULT_SESSION_TTL


def create_session(
    user_id: str,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.

    Raises NotFoundError for an unknown user and ForbiddenError for a
    system user (recorded as SYSTEM_SESSION_REFUSED).
    """
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    if user.is_system_user:
        permission_service.log_security_event(
            user_id=user.id,
            event_type="SYSTEM_SESSION_REFUSED",
            success=False,
            reason="Sessions are never issued for system users",
            ip_address=ip_address,
            user_agent=user_agent,
        )
        raise ForbiddenError("System users cannot log in")

    if not user.is_active:
        raise ForbiddenError("User account is deactivated")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _session_ttl(),
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Validate session token and return SessionContext if valid.

    Returns None if:
    - Token is invalid, expired, or revoked
    - User account is deactivated or is a system user

    Updates last_used_at on successful validation (activity tracking).
    """
    now = utcnow()

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout")
        return None

    user = session.user

    if not user or not user.is_active:
        _revoke(session, "User account deactivated")
        return None

    if user.is_system_user:
        _revoke(session, "System user session")
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(
        user=user,
        session=session,
        principal=Principal.from_user(user),
    )


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """
    Revoke session token.

    Returns True if session was revoked, False if not found.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    return True
