# backend/app/routes/pickups.py
"""
Pickup and item API routes.
"""
from flask import Blueprint, request, jsonify, g

from app.decorators import require_auth
from app.services import pickup_service
from app.services.concurrency import commit_session
from app.validation import require_fields


pickups_bp = Blueprint("pickups", __name__, url_prefix="/api/pickups")


@pickups_bp.route("", methods=["GET"])
@require_auth
def list_pickups():
    """Query params: status (optional DRAFT | CONFIRMED | CANCELLED)"""
    pickups = pickup_service.list_pickups(g.principal, status=request.args.get("status"))
    return jsonify({"pickups": pickups}), 200


@pickups_bp.route("", methods=["POST"])
@require_auth
def create_pickup():
    """
    Create a DRAFT pickup.

    Request body:
    {
        "client_user_id": str (optional),
        "notes": str (optional),
        "pickup_date": "YYYY-MM-DD" (optional),
        "items": [{"category": str, "model": str, "imei": str,
                   "estimated_weight_lb": number, "client_shipping_usd": number}]
    }
    """
    data = request.get_json(silent=True) or {}

    pickup = pickup_service.create_pickup(
        g.principal,
        client_user_id=data.get("client_user_id"),
        notes=data.get("notes"),
        pickup_date=data.get("pickup_date"),
        items=data.get("items"),
    )
    commit_session()

    return jsonify(pickup), 201


@pickups_bp.route("/<int:pickup_id>", methods=["GET"])
@require_auth
def get_pickup(pickup_id: int):
    return jsonify(pickup_service.get_pickup(g.principal, pickup_id)), 200


@pickups_bp.route("/<int:pickup_id>/items", methods=["POST"])
@require_auth
def add_item(pickup_id: int):
    """Request body: {"category": str, "model", "imei", "estimated_weight_lb", "client_shipping_usd"}"""
    data = require_fields(request.get_json(silent=True), "category")

    item = pickup_service.add_item(
        g.principal,
        pickup_id,
        data["category"],
        model=data.get("model"),
        imei=data.get("imei"),
        estimated_weight_lb=data.get("estimated_weight_lb", 0),
        client_shipping_usd=data.get("client_shipping_usd", 0),
    )
    commit_session()

    return jsonify(item), 201
