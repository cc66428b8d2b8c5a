# backend/app/routes/vouches.py
"""
Vouch API routes: the voucher's inbox and decisions, and the requester's own list.
"""
from flask import Blueprint, jsonify, g

from app.decorators import require_auth
from app.services import vouch_service
from app.services.concurrency import commit_session


vouches_bp = Blueprint("vouches", __name__, url_prefix="/api/vouches")


@vouches_bp.route("/pending", methods=["GET"])
@require_auth
def pending_vouches():
    return jsonify({"vouches": vouch_service.get_pending_requests(g.principal)}), 200


@vouches_bp.route("/history", methods=["GET"])
@require_auth
def vouch_history():
    return jsonify({"vouches": vouch_service.get_history(g.principal)}), 200


@vouches_bp.route("/mine", methods=["GET"])
@require_auth
def my_vouch_requests():
    return jsonify({
        "vouches": vouch_service.get_my_requests(g.principal),
        "verification_status": g.current_user.verification_status,
    }), 200


@vouches_bp.route("/<int:vouch_id>/approve", methods=["POST"])
@require_auth
def approve_vouch(vouch_id: int):
    """
    Approve a vouch addressed to the caller's email.

    Returns:
        200: Approved
        400: Already processed
        404: Not found or not addressed to the caller
    """
    result = vouch_service.approve_vouch(g.principal, vouch_id)
    commit_session()
    return jsonify(result), 200


@vouches_bp.route("/<int:vouch_id>/decline", methods=["POST"])
@require_auth
def decline_vouch(vouch_id: int):
    result = vouch_service.decline_vouch(g.principal, vouch_id)
    commit_session()
    return jsonify(result), 200
