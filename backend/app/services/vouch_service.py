# Overview: Service-layer operations for vouches; dual-approval identity verification.

"""
Vouch Workflow

WHY: New accounts name two people who can vouch for them. Each voucher
approves or declines from their own account; two approvals make the
requester VERIFIED.

RULES:
- A vouch is addressed to an email, not a user. The approver is matched by
  the email on their own principal, inside the lookup query, so "absent"
  and "addressed to someone else" both read as NotFound.
- PENDING -> APPROVED | DECLINED, and both are terminal.
- VERIFIED is reached once at least 2 vouch rows are APPROVED, and
  never reverted. Declines do not block: the requester stays PENDING_VOUCH.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..errors import BadRequestError, NotFoundError, UnauthenticatedError
from ..extensions import db
from ..models import User, UserVouch, VerificationStatus, VouchStatus
from ..permissions import Actions, Resources
from . import permission_service
from .concurrency import lock_for_update, run_with_retry


REQUIRED_APPROVALS = 2


def _email(principal) -> str:
    return (principal.email or "").strip().lower()


def _vouch_row(vouch: UserVouch, requester: User) -> dict:
    data = vouch.to_dict()
    data["requester_name"] = requester.name
    data["requester_email"] = requester.email
    return data


def request_vouches(principal, voucher_emails) -> list[dict]:
    """
    Open one PENDING vouch per distinct email and mark the requester
    PENDING_VOUCH.

    Raises BadRequestError if the requester is already VERIFIED, names fewer
    than two distinct emails, or names their own email.
    """
    permission_service.require_permission(principal, Actions.CREATE, Resources.VOUCHES)

    if not isinstance(voucher_emails, (list, tuple)):
        raise BadRequestError("voucher_emails must be a list")

    emails = []
    for raw in voucher_emails:
        email = (raw or "").strip().lower() if isinstance(raw, str) else ""
        if not email or "@" not in email:
            raise BadRequestError("voucher_emails must contain valid email addresses")
        if email not in emails:
            emails.append(email)

    if len(emails) < REQUIRED_APPROVALS:
        raise BadRequestError(f"At least {REQUIRED_APPROVALS} distinct voucher emails are required")
    if _email(principal) in emails:
        raise BadRequestError("You cannot vouch for yourself")

    def _op():
        requester = lock_for_update(db.session.query(User).filter_by(id=principal.id)).first()
        if not requester:
            raise NotFoundError("User not found")
        if requester.verification_status == VerificationStatus.VERIFIED:
            raise BadRequestError("User is already verified")

        vouches = [
            UserVouch(requester_user_id=requester.id, voucher_email=email, status=VouchStatus.PENDING)
            for email in emails
        ]
        db.session.add_all(vouches)
        requester.verification_status = VerificationStatus.PENDING_VOUCH
        db.session.flush()
        return vouches

    vouches = run_with_retry(_op)
    current_app.logger.info(
        "vouch_requested requester_id=%s count=%s", principal.id, len(vouches)
    )
    return [v.to_dict() for v in vouches]


def _load_addressed_vouch(principal, vouch_id: int) -> UserVouch:
    vouch = lock_for_update(
        db.session.query(UserVouch).filter(
            UserVouch.id == vouch_id,
            UserVouch.voucher_email == _email(principal),
        )
    ).first()

    if not vouch:
        raise NotFoundError("Vouch request not found")
    if vouch.status != VouchStatus.PENDING:
        raise BadRequestError("Vouch request already processed")
    return vouch


def _verify_if_ready(requester_user_id: str) -> bool:
    """
    Promote the requester to VERIFIED once enough vouches are APPROVED.

    The requester row is locked before counting so approvals of two
    different vouches for the same requester serialize, and the second one
    sees the first one's APPROVED row.
    """
    requester = lock_for_update(
        db.session.query(User).filter_by(id=requester_user_id)
    ).first()
    if requester is None or requester.verification_status == VerificationStatus.VERIFIED:
        return False

    approvals = db.session.query(func.count(UserVouch.id)).filter(
        UserVouch.requester_user_id == requester_user_id,
        UserVouch.status == VouchStatus.APPROVED,
    ).scalar()

    if approvals < REQUIRED_APPROVALS:
        return False

    requester.verification_status = VerificationStatus.VERIFIED
    return True


def approve_vouch(principal, vouch_id: int) -> dict:
    """Approve a vouch addressed to the principal's email."""
    if principal is None:
        raise UnauthenticatedError()

    def _op():
        vouch = _load_addressed_vouch(principal, vouch_id)
        permission_service.require_permission(principal, Actions.UPDATE, Resources.VOUCHES, instance=vouch)

        vouch.status = VouchStatus.APPROVED
        vouch.voucher_user_id = principal.id
        db.session.flush()

        verified = _verify_if_ready(vouch.requester_user_id)
        db.session.flush()
        return vouch.requester_user_id, verified

    requester_id, verified = run_with_retry(_op)
    current_app.logger.info(
        "vouch_approved vouch_id=%s voucher_id=%s requester_id=%s", vouch_id, principal.id, requester_id
    )
    if verified:
        current_app.logger.info("user_verified user_id=%s", requester_id)
    return {"success": True}


def decline_vouch(principal, vouch_id: int) -> dict:
    """Decline a vouch addressed to the principal's email. Requester status is untouched."""
    if principal is None:
        raise UnauthenticatedError()

    def _op():
        vouch = _load_addressed_vouch(principal, vouch_id)
        permission_service.require_permission(principal, Actions.UPDATE, Resources.VOUCHES, instance=vouch)

        vouch.status = VouchStatus.DECLINED
        vouch.voucher_user_id = principal.id
        db.session.flush()

    run_with_retry(_op)
    current_app.logger.info("vouch_declined vouch_id=%s voucher_id=%s", vouch_id, principal.id)
    return {"success": True}


def get_pending_requests(principal) -> list[dict]:
    """Vouches waiting on the principal, oldest first."""
    permission_service.require_permission(principal, Actions.LIST, Resources.VOUCHES)

    rows = db.session.query(UserVouch, User).join(
        User, UserVouch.requester_user_id == User.id
    ).filter(
        UserVouch.voucher_email == _email(principal),
        UserVouch.status == VouchStatus.PENDING,
    ).order_by(UserVouch.created_at, UserVouch.id).all()

    return [_vouch_row(vouch, requester) for vouch, requester in rows]


def get_history(principal) -> list[dict]:
    """Vouches the principal already approved or declined, newest first."""
    permission_service.require_permission(principal, Actions.LIST, Resources.VOUCHES)

    rows = db.session.query(UserVouch, User).join(
        User, UserVouch.requester_user_id == User.id
    ).filter(
        UserVouch.voucher_email == _email(principal),
        UserVouch.status != VouchStatus.PENDING,
    ).order_by(UserVouch.updated_at.desc(), UserVouch.id.desc()).all()

    return [_vouch_row(vouch, requester) for vouch, requester in rows]


def get_my_requests(principal) -> list[dict]:
    """The principal's own outgoing vouch requests."""
    permission_service.require_permission(principal, Actions.READ, Resources.VOUCHES)

    rows = db.session.query(UserVouch).filter(
        UserVouch.requester_user_id == principal.id,
    ).order_by(UserVouch.created_at, UserVouch.id).all()

    return [v.to_dict() for v in rows]
