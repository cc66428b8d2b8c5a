# backend/app/routes/boxes.py
"""
Box API routes: lifecycle, packing and ownership transfer.

Service errors (400/401/403/404) are rendered by the app-level handler,
which also rolls back the session.
"""
from flask import Blueprint, request, jsonify, g

from app.decorators import require_auth
from app.services import box_service
from app.services.concurrency import commit_session
from app.validation import require_fields


boxes_bp = Blueprint("boxes", __name__, url_prefix="/api/boxes")

UPDATABLE_FIELDS = ("label", "shipper_rate_per_lb", "insurance_usd", "actual_weight_lb", "status")


@boxes_bp.route("", methods=["GET"])
@require_auth
def list_boxes():
    """
    List boxes the shipper created or holds.

    Query params:
        filter: created | transferred | all (default all)
    """
    boxes = box_service.list_boxes(g.principal, filter=request.args.get("filter", "all"))
    return jsonify({"boxes": boxes}), 200


@boxes_bp.route("", methods=["POST"])
@require_auth
def create_box():
    """
    Create a new OPEN box.

    Request body:
    {
        "label": str (optional),
        "shipper_rate_per_lb": number (optional),
        "insurance_usd": number (optional),
        "pickup_ids": [int] (optional)
    }

    Returns:
        201: Box created
        400: Invalid request or pickups not owned
        403: Clients cannot create boxes
    """
    data = request.get_json(silent=True) or {}

    box = box_service.create_box(
        g.principal,
        label=data.get("label"),
        shipper_rate_per_lb=data.get("shipper_rate_per_lb"),
        insurance_usd=data.get("insurance_usd"),
        pickup_ids=data.get("pickup_ids"),
    )
    commit_session()

    return jsonify(box), 201


@boxes_bp.route("/<int:box_id>", methods=["GET"])
@require_auth
def get_box(box_id: int):
    return jsonify(box_service.get_box(g.principal, box_id)), 200


@boxes_bp.route("/<int:box_id>", methods=["PATCH"])
@require_auth
def update_box(box_id: int):
    """
    Update box fields or status (current owner only).

    Request body: any of label, shipper_rate_per_lb, insurance_usd,
    actual_weight_lb, status. Omitted keys are left unchanged.
    """
    data = request.get_json(silent=True) or {}
    changes = {key: data[key] for key in UPDATABLE_FIELDS if key in data}

    box = box_service.update_box(g.principal, box_id, **changes)
    commit_session()

    return jsonify(box), 200


@boxes_bp.route("/<int:box_id>/transfer", methods=["POST"])
@require_auth
def transfer_box(box_id: int):
    """
    Transfer a box to another shipper.

    Request body: {"new_owner_email": str}
    """
    data = require_fields(request.get_json(silent=True), "new_owner_email")

    result = box_service.transfer_box(g.principal, box_id, data["new_owner_email"])
    commit_session()

    return jsonify(result), 200


@boxes_bp.route("/<int:box_id>/pickups", methods=["POST"])
@require_auth
def add_pickups(box_id: int):
    """Request body: {"pickup_ids": [int]}"""
    data = require_fields(request.get_json(silent=True), "pickup_ids")

    box = box_service.add_pickups(g.principal, box_id, data["pickup_ids"])
    commit_session()

    return jsonify(box), 200


@boxes_bp.route("/<int:box_id>/pickups/<int:pickup_id>", methods=["DELETE"])
@require_auth
def remove_pickup(box_id: int, pickup_id: int):
    box = box_service.remove_pickup(g.principal, box_id, pickup_id)
    commit_session()

    return jsonify(box), 200


@boxes_bp.route("/<int:box_id>/items", methods=["POST"])
@require_auth
def manage_items(box_id: int):
    """Request body: {"add_item_ids": [int], "remove_item_ids": [int]} (either optional)"""
    data = request.get_json(silent=True) or {}

    box = box_service.manage_items(
        g.principal,
        box_id,
        add_item_ids=data.get("add_item_ids"),
        remove_item_ids=data.get("remove_item_ids"),
    )
    commit_session()

    return jsonify(box), 200
