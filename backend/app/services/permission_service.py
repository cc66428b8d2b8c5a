# Overview: Service-layer operations for permission; the policy engine and security event logging.

"""
Policy Engine and Security Event Logging

WHY: Every service operation asks one question first: may this principal
perform this action on this resource (optionally, this instance)? The answer
comes from the static role registry in app.permissions, never from the
database, so `can` is pure and safe to call anywhere.

DESIGN PRINCIPLES:
- Fail closed: no principal, unknown role or missing rule means False
- Wildcard first: ADMIN and SYSTEM short-circuit before any lookup
- Optimistic without an instance: IS_OWNER/IS_SELF pass when no instance
  is given, so list operations MUST filter their queries by owner
- Log denials only: grants are not logged
"""

from __future__ import annotations

from typing import Any

from flask import current_app, has_app_context

from ..errors import ForbiddenError, UnauthenticatedError
from ..extensions import db
from ..models import SecurityEvent
from ..permissions import WILDCARD, Allow, get_role_rules
from app.time_utils import utcnow


def log_security_event(
    user_id: str | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail.

    WHY: Immutable audit log for security monitoring. Denials are raised
    before any mutation, so committing here never publishes partial work.

    event_type examples:
    - PERMISSION_DENIED
    - SYSTEM_SESSION_REFUSED
    - LOGIN_FAILED
    - LOGOUT
    """
    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event


def can(principal: Any, action: str, resource: str, instance: Any = None) -> bool:
    """
    Decide whether `principal` may perform `action` on `resource`.

    `instance` may be a model object or a mapping; when omitted, ownership
    conditions pass optimistically. Never raises.
    """
    if principal is None:
        return False

    rules = get_role_rules(getattr(principal, "role", None))
    if not rules:
        return False

    if isinstance(rules.get(WILDCARD, {}).get(WILDCARD), Allow):
        return True

    rule = rules.get(resource, {}).get(action)
    if rule is None:
        return False

    try:
        return bool(rule.evaluate(principal, instance))
    except Exception:
        return False


def require_permission(
    principal: Any,
    action: str,
    resource: str,
    instance: Any = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """
    Require permission, raising if denied.

    Raises UnauthenticatedError when there is no principal and ForbiddenError
    when the policy says no. Denials are persisted as PERMISSION_DENIED
    security events and logged at WARNING.
    """
    if principal is None:
        raise UnauthenticatedError()

    if can(principal, action, resource, instance):
        return

    reason = f"Role {principal.role} may not {action} {resource}"
    if has_app_context():
        current_app.logger.warning(
            "permission_denied user_id=%s role=%s action=%s resource=%s",
            principal.id, principal.role, action, resource,
        )
    log_security_event(
        user_id=principal.id,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=action,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    raise ForbiddenError(f"Permission denied: cannot {action} {resource}")
