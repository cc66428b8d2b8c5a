# backend/app/routes/system.py
"""
System health endpoint.

Checks the database, the session table and the presence of the SYSTEM
user that background jobs act as.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import SessionToken, User
from app.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def _elapsed_ms(start_time: float) -> float:
    return round((time.time() - start_time) * 1000, 2)


def check_database_health() -> dict:
    """Check database connectivity with a cheap count."""
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        return {
            "status": "healthy",
            "latency_ms": _elapsed_ms(start_time),
            "details": {"users": user_count},
        }
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": _elapsed_ms(start_time),
            "error": "Database error"
        }


def check_session_service_health() -> dict:
    """Count live sessions and the expired ones awaiting cleanup."""
    start_time = time.time()
    try:
        active_sessions = db.session.query(SessionToken).filter(
            SessionToken.is_revoked.is_(False)
        ).count()

        expired_sessions = db.session.query(SessionToken).filter(
            SessionToken.expires_at < utcnow(),
            SessionToken.is_revoked.is_(False)
        ).count()

        return {
            "status": "healthy",
            "latency_ms": _elapsed_ms(start_time),
            "details": {
                "active_sessions": active_sessions,
                "expired_pending_cleanup": expired_sessions,
            }
        }
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Session service health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": _elapsed_ms(start_time),
            "error": "Session service error"
        }


def check_system_user_health() -> dict:
    """A missing SYSTEM user is degraded, not down: run `flask system init`."""
    start_time = time.time()
    try:
        present = db.session.query(User).filter(User.is_system_user.is_(True)).count() > 0
        if not present:
            return {
                "status": "degraded",
                "latency_ms": _elapsed_ms(start_time),
                "warning": "System user missing; run `flask system init`",
            }
        return {"status": "healthy", "latency_ms": _elapsed_ms(start_time)}
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("System user health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": _elapsed_ms(start_time),
            "error": "System user check error"
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded
    - 503: one or more checks unhealthy
    """
    start_time = time.time()

    checks = {
        "database": check_database_health(),
        "session_service": check_session_service_health(),
        "system_user": check_system_user_health(),
    }

    statuses = [check["status"] for check in checks.values()]
    if "unhealthy" in statuses:
        overall_status, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": _elapsed_ms(start_time),
        "checks": checks,
    }

    return response, http_status
