# backend/app/routes/fx_rates.py
"""
FX rate API routes. Rates are recorded per shipper; no conversion happens here.
"""
from flask import Blueprint, request, jsonify, g

from app.decorators import require_auth
from app.services import fx_rate_service
from app.services.concurrency import commit_session
from app.validation import require_fields


fx_rates_bp = Blueprint("fx_rates", __name__, url_prefix="/api/fx-rates")


@fx_rates_bp.route("", methods=["GET"])
@require_auth
def list_rates():
    """Query params: from, to, active_only=true"""
    rates = fx_rate_service.list_rates(
        g.principal,
        from_currency=request.args.get("from"),
        to_currency=request.args.get("to"),
        active_only=request.args.get("active_only", "").lower() in ("1", "true", "yes"),
    )
    return jsonify({"rates": rates}), 200


@fx_rates_bp.route("", methods=["POST"])
@require_auth
def create_rate():
    """
    Request body: {"from_currency": str, "to_currency": str, "rate": str|number}

    Returns:
        201: Rate created, previous rate for the pair deactivated
        400: Unknown currency, same currency, or non-positive rate
    """
    data = require_fields(request.get_json(silent=True), "from_currency", "to_currency", "rate")

    rate = fx_rate_service.create_rate(
        g.principal, data["from_currency"], data["to_currency"], data["rate"]
    )
    commit_session()

    return jsonify(rate), 201


@fx_rates_bp.route("/current", methods=["GET"])
@require_auth
def current_rate():
    rate = fx_rate_service.get_current_rate(
        g.principal,
        from_currency=request.args.get("from", "USD"),
        to_currency=request.args.get("to", "NGN"),
    )
    return jsonify({"rate": rate}), 200
