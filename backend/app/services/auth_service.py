# Overview: Service-layer operations for auth; user creation, password hashing and login.

"""
Authentication Service

WHY: Every box, pickup and vouch must be attributable to a user. Uses bcrypt
for password hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters, upper, lower, digit and special char required
- Emails are stored lower-cased; login is case-insensitive on email
- System users have no password and never authenticate
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from flask import current_app, has_app_context

from ..errors import BadRequestError
from ..extensions import db
from ..models import User, VerificationStatus
from ..permissions import Roles
from app.time_utils import utcnow


SYSTEM_USER_EMAIL = "system@shipline.internal"


class PasswordValidationError(BadRequestError):
    """Raised when password doesn't meet strength requirements."""
    pass


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def _bcrypt_rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", 12))
    return 12


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=_bcrypt_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    A missing hash (system user) never verifies.
    """
    if not password_hash:
        return False

    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(
    email: str,
    password: str | None,
    role: str = Roles.SHIPPER,
    name: str = "",
    business_name: str | None = None,
    is_system_user: bool = False,
    verification_status: str = VerificationStatus.UNVERIFIED,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        BadRequestError: unknown role, duplicate email, or a non-system
            user without a password
        PasswordValidationError: password doesn't meet requirements
    """
    email = normalize_email(email)
    if not email:
        raise BadRequestError("Email is required")

    if role not in Roles.ALL:
        raise BadRequestError(f"Unknown role: {role}")

    existing = db.session.query(User).filter_by(email=email).first()
    if existing:
        raise BadRequestError("Email already exists")

    if is_system_user:
        password_hash = None
    else:
        if not password:
            raise BadRequestError("Password is required")
        password_hash = hash_password(password)

    user = User(
        email=email,
        name=name or "",
        password_hash=password_hash,
        role=role,
        is_system_user=is_system_user,
        business_name=business_name,
        verification_status=verification_status,
    )

    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    System users are never returned.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
        User.is_system_user.is_(False),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def get_user_by_email(email: str) -> User | None:
    return db.session.query(User).filter_by(email=normalize_email(email)).first()


def ensure_system_user() -> User:
    """
    Get or create the synthetic SYSTEM user used by background jobs.

    Idempotent: safe to call on every `flask system init`.
    """
    user = db.session.query(User).filter_by(is_system_user=True).first()
    if user:
        return user

    return create_user(
        email=SYSTEM_USER_EMAIL,
        password=None,
        role=Roles.SYSTEM,
        name="System",
        is_system_user=True,
        verification_status=VerificationStatus.VERIFIED,
    )
