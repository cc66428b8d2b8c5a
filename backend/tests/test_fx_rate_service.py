"""
FX rate tests.

Verifies:
- One active rate per shipper and currency pair
- Currency and rate validation
- Clients have no access to FX rates
"""

import pytest

from app.errors import BadRequestError, ForbiddenError
from app.models import FxRate
from app.services import fx_rate_service


class TestFxRates:
    """Creating, listing and reading the current rate."""

    def test_new_rate_deactivates_previous(self, db_session, shipper, as_principal):
        principal = as_principal(shipper)

        first = fx_rate_service.create_rate(principal, "USD", "NGN", "1550.5")
        db_session.commit()
        second = fx_rate_service.create_rate(principal, "usd", "ngn", 1600)
        db_session.commit()

        assert second["rate"] == "1600.000000"
        assert db_session.get(FxRate, first["id"]).is_active is False

        current = fx_rate_service.get_current_rate(principal, "USD", "NGN")
        assert current["id"] == second["id"]
        assert [r["id"] for r in fx_rate_service.list_rates(principal)] == [second["id"], first["id"]]
        assert [r["id"] for r in fx_rate_service.list_rates(principal, active_only=True)] == [second["id"]]

    def test_pairs_are_independent(self, db_session, shipper, as_principal):
        principal = as_principal(shipper)
        fx_rate_service.create_rate(principal, "USD", "NGN", 1500)
        fx_rate_service.create_rate(principal, "GBP", "NGN", 1900)
        db_session.commit()

        assert db_session.query(FxRate).filter_by(is_active=True).count() == 2

    def test_rates_are_per_shipper(self, db_session, shipper, other_shipper, as_principal):
        fx_rate_service.create_rate(as_principal(shipper), "USD", "NGN", 1500)
        db_session.commit()

        assert fx_rate_service.get_current_rate(as_principal(other_shipper)) is None
        assert fx_rate_service.list_rates(as_principal(other_shipper)) == []

    @pytest.mark.parametrize("from_currency,to_currency,rate", [
        ("USD", "USD", 1),
        ("USD", "JPY", 150),
        ("USD", "NGN", 0),
        ("USD", "NGN", -3),
        ("USD", "NGN", "lots"),
        ("USD", "NGN", None),
    ])
    def test_validation(self, db_session, shipper, as_principal, from_currency, to_currency, rate):
        with pytest.raises(BadRequestError):
            fx_rate_service.create_rate(as_principal(shipper), from_currency, to_currency, rate)

    def test_client_has_no_access(self, db_session, client_user, as_principal):
        with pytest.raises(ForbiddenError):
            fx_rate_service.create_rate(as_principal(client_user), "USD", "NGN", 1500)
        with pytest.raises(ForbiddenError):
            fx_rate_service.list_rates(as_principal(client_user))
