# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/app/routes/auth.py
"""
Authentication API routes

- Login issues an opaque bearer token (never for system users)
- Logout revokes it
- Onboarding opens the two vouch requests a new account needs
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import bearer_token, require_auth
from ..services import auth_service
from ..services import permission_service
from ..services import session_service
from ..services import vouch_service
from ..services.concurrency import commit_session
from ..validation import require_fields


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Request body: {"email": str, "password": str}

    Returns user info and session token on success.
    Token must be included in Authorization header for protected routes.
    """
    data = require_fields(request.get_json(silent=True), "email", "password")

    user_agent = request.headers.get("User-Agent")
    ip_address = request.remote_addr

    user = auth_service.authenticate(data["email"], data["password"])

    if not user:
        permission_service.log_security_event(
            user_id=None,
            event_type="LOGIN_FAILED",
            success=False,
            reason=f"Invalid credentials for {auth_service.normalize_email(data['email'])}",
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return jsonify({"error": "Invalid credentials"}), 401

    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=user_agent,
        ip_address=ip_address
    )

    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "session": session.to_dict(),
        "message": "Login successful"
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the bearer token used for this request."""
    session_service.revoke_session(bearer_token(), reason="User logout")
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user, as of this request."""
    return jsonify({"user": g.current_user.to_dict()}), 200


@auth_bp.post("/onboard")
@require_auth
def onboard_route():
    """
    Name the people who will vouch for this account.

    Request body: {"voucher_emails": [str, str, ...]}

    Returns:
        201: Vouch requests created, user is PENDING_VOUCH
        400: Fewer than 2 emails, own email, or already verified
    """
    data = require_fields(request.get_json(silent=True), "voucher_emails")

    vouches = vouch_service.request_vouches(g.principal, data["voucher_emails"])
    commit_session()

    return jsonify({"vouches": vouches, "verification_status": "PENDING_VOUCH"}), 201
