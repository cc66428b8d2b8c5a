# Overview: Service-layer operations for FX rates; one active rate per currency pair per shipper.

from __future__ import annotations

from flask import current_app

from ..errors import BadRequestError
from ..extensions import db
from ..models import CURRENCIES, FxRate
from ..permissions import Actions, Resources
from ..validation import parse_decimal
from . import permission_service
from .concurrency import run_with_retry


def _currency(value, field: str) -> str:
    code = (value or "").strip().upper() if isinstance(value, str) else ""
    if code not in CURRENCIES:
        raise BadRequestError(f"{field} must be one of {', '.join(CURRENCIES)}")
    return code


def create_rate(principal, from_currency, to_currency, rate) -> dict:
    """
    Record a new active rate for the pair, deactivating the previous one.

    Rates are stored only; nothing here converts amounts.
    """
    permission_service.require_permission(principal, Actions.CREATE, Resources.FX_RATES)

    from_code = _currency(from_currency, "from_currency")
    to_code = _currency(to_currency, "to_currency")
    if from_code == to_code:
        raise BadRequestError("From and To currencies must be different")
    value = parse_decimal(rate, "rate", allow_none=False, positive=True)

    def _op():
        db.session.query(FxRate).filter(
            FxRate.owner_user_id == principal.id,
            FxRate.from_currency == from_code,
            FxRate.to_currency == to_code,
            FxRate.is_active.is_(True),
        ).update({FxRate.is_active: False}, synchronize_session="fetch")

        new_rate = FxRate(
            owner_user_id=principal.id,
            from_currency=from_code,
            to_currency=to_code,
            rate=value,
            is_active=True,
        )
        db.session.add(new_rate)
        db.session.flush()
        return new_rate

    new_rate = run_with_retry(_op)
    current_app.logger.info(
        "fx_rate_create rate_id=%s pair=%s/%s user_id=%s", new_rate.id, from_code, to_code, principal.id
    )
    return new_rate.to_dict()


def list_rates(principal, from_currency=None, to_currency=None, active_only: bool = False) -> list[dict]:
    """The principal's own rates, newest first."""
    permission_service.require_permission(principal, Actions.LIST, Resources.FX_RATES)

    query = db.session.query(FxRate).filter(FxRate.owner_user_id == principal.id)
    if from_currency:
        query = query.filter(FxRate.from_currency == _currency(from_currency, "from_currency"))
    if to_currency:
        query = query.filter(FxRate.to_currency == _currency(to_currency, "to_currency"))
    if active_only:
        query = query.filter(FxRate.is_active.is_(True))

    return [r.to_dict() for r in query.order_by(FxRate.created_at.desc(), FxRate.id.desc()).all()]


def get_current_rate(principal, from_currency="USD", to_currency="NGN") -> dict | None:
    """Active rate for the pair, or None."""
    permission_service.require_permission(principal, Actions.READ, Resources.FX_RATES)

    rate = db.session.query(FxRate).filter(
        FxRate.owner_user_id == principal.id,
        FxRate.from_currency == _currency(from_currency, "from_currency"),
        FxRate.to_currency == _currency(to_currency, "to_currency"),
        FxRate.is_active.is_(True),
    ).order_by(FxRate.id.desc()).first()

    return rate.to_dict() if rate else None
