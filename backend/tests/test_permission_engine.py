"""
Policy engine tests.

Verifies:
- Fail closed: no principal, unknown role, unregistered triple
- ADMIN and SYSTEM wildcard reach every resource, registered or not
- IS_OWNER / IS_SELF against model-like objects, mappings and no instance
- Rule types evaluate polymorphically
- require_permission raises and records denials
"""

import dataclasses
from types import SimpleNamespace

import pytest

from app.errors import ForbiddenError, UnauthenticatedError
from app.models import SecurityEvent
from app.permissions import (
    ALLOW,
    DENY,
    Actions,
    AnyOf,
    Conditions,
    If,
    Resources,
    Roles,
    describe_role,
    describe_rule,
    get_rule,
    has_full_access,
)
from app.services import permission_service
from app.services.permission_service import can
from app.services.session_service import Principal


def _principal(role, user_id="u-1", email="u1@example.com"):
    return Principal(id=user_id, role=role, email=email, is_system_user=role == Roles.SYSTEM)


SHIPPER = _principal(Roles.SHIPPER, "shipper-1")
CLIENT = _principal(Roles.CLIENT, "client-1")
ADMIN = _principal(Roles.ADMIN, "admin-1")
SYSTEM = _principal(Roles.SYSTEM, "system-1")


# =============================================================================
# FAIL CLOSED
# =============================================================================


class TestFailClosed:
    """Anything not explicitly granted is denied."""

    def test_no_principal_is_denied_everything(self):
        assert can(None, Actions.READ, Resources.BOXES) is False
        assert can(None, Actions.CREATE, Resources.VOUCHES) is False

    def test_unknown_role_is_denied(self):
        ghost = _principal("GHOST")
        assert can(ghost, Actions.READ, Resources.BOXES) is False

    def test_client_cannot_create_boxes(self):
        assert can(CLIENT, Actions.CREATE, Resources.BOXES) is False

    def test_unregistered_action_is_denied(self):
        assert can(SHIPPER, Actions.DELETE, Resources.INVOICES) is False

    def test_unregistered_resource_is_denied_for_scoped_roles(self):
        assert can(SHIPPER, Actions.READ, "warehouses") is False
        assert can(CLIENT, Actions.LIST, "warehouses") is False


# =============================================================================
# WILDCARD ROLES
# =============================================================================


class TestWildcardRoles:
    """ADMIN and SYSTEM short-circuit before any lookup."""

    @pytest.mark.parametrize("principal", [ADMIN, SYSTEM])
    @pytest.mark.parametrize("action", Actions.ALL)
    def test_every_registered_resource(self, principal, action):
        for resource in Resources.ALL:
            assert can(principal, action, resource) is True

    @pytest.mark.parametrize("principal", [ADMIN, SYSTEM])
    def test_unregistered_resource(self, principal):
        assert can(principal, "archive", "warehouses") is True

    @pytest.mark.parametrize("principal", [ADMIN, SYSTEM])
    def test_ownership_is_ignored(self, principal):
        box = SimpleNamespace(owner_user_id="someone-else")
        assert can(principal, Actions.UPDATE, Resources.BOXES, box) is True

    def test_full_access_helper(self):
        assert has_full_access(Roles.ADMIN)
        assert has_full_access(Roles.SYSTEM)
        assert not has_full_access(Roles.SHIPPER)
        assert not has_full_access("GHOST")


# =============================================================================
# OWNERSHIP CONDITIONS
# =============================================================================


class TestOwnershipConditions:
    """IS_OWNER and IS_SELF read the instance; without one they pass."""

    def test_owner_matches(self):
        box = SimpleNamespace(owner_user_id=SHIPPER.id)
        assert can(SHIPPER, Actions.UPDATE, Resources.BOXES, box) is True

    def test_non_owner_denied(self):
        box = SimpleNamespace(owner_user_id="shipper-2")
        assert can(SHIPPER, Actions.UPDATE, Resources.BOXES, box) is False

    def test_no_instance_is_optimistic(self):
        assert can(SHIPPER, Actions.UPDATE, Resources.BOXES) is True
        assert can(CLIENT, Actions.READ, Resources.BOXES) is True

    def test_owner_falls_back_to_user_id(self):
        notification = {"user_id": SHIPPER.id}
        assert can(SHIPPER, Actions.READ, Resources.NOTIFICATIONS, notification) is True

    def test_owner_user_id_wins_over_user_id(self):
        row = {"owner_user_id": "shipper-2", "user_id": SHIPPER.id}
        assert can(SHIPPER, Actions.READ, Resources.PICKUPS, row) is False

    def test_self_uses_user_id_then_id(self):
        assert can(CLIENT, Actions.READ, Resources.USERS, {"id": CLIENT.id}) is True
        assert can(CLIENT, Actions.READ, Resources.USERS, {"user_id": CLIENT.id, "id": 99}) is True
        assert can(CLIENT, Actions.READ, Resources.USERS, {"id": "client-2"}) is False

    def test_malformed_instance_is_denied_not_raised(self):
        assert can(SHIPPER, Actions.UPDATE, Resources.BOXES, object()) is False
        assert can(SHIPPER, Actions.UPDATE, Resources.BOXES, 42) is False

    def test_vouches_are_allowed_without_ownership(self):
        # Visibility for vouches is applied in the query by voucher email
        vouch = SimpleNamespace(owner_user_id="someone-else")
        assert can(CLIENT, Actions.UPDATE, Resources.VOUCHES, vouch) is True


# =============================================================================
# RULE TYPES
# =============================================================================


class TestRuleTypes:
    """Allow, Deny, If and AnyOf share one evaluate() interface."""

    def test_allow_and_deny(self):
        assert ALLOW.evaluate(SHIPPER) is True
        assert DENY.evaluate(SHIPPER) is False

    def test_if_admin(self):
        rule = If(Conditions.IS_ADMIN)
        assert rule.evaluate(ADMIN) is True
        assert rule.evaluate(SHIPPER) is False

    def test_any_of_is_or(self):
        rule = AnyOf((Conditions.IS_ADMIN, Conditions.IS_OWNER))
        theirs = {"owner_user_id": "shipper-2"}
        mine = {"owner_user_id": SHIPPER.id}

        assert rule.evaluate(ADMIN, theirs) is True
        assert rule.evaluate(SHIPPER, mine) is True
        assert rule.evaluate(SHIPPER, theirs) is False

    def test_rules_are_immutable(self):
        rule = If(Conditions.IS_OWNER)
        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.condition = Conditions.IS_ADMIN

    def test_descriptions(self):
        assert describe_rule(get_rule(Roles.SHIPPER, Resources.BOXES, Actions.CREATE)) == "allow"
        assert describe_rule(get_rule(Roles.SHIPPER, Resources.BOXES, Actions.UPDATE)) == "if is-owner"
        assert describe_rule(get_rule(Roles.CLIENT, Resources.BOXES, Actions.CREATE)) == "not granted"

    def test_describe_role_lists_every_rule(self):
        rows = describe_role(Roles.CLIENT)
        assert ("boxes", "read", "if is-self") in rows
        assert all(resource != "fx_rates" for resource, _, _ in rows)


# =============================================================================
# REQUIRE PERMISSION
# =============================================================================


class TestRequirePermission:
    """Raising variant used by every service operation."""

    def test_missing_principal_is_unauthenticated(self, db_session):
        with pytest.raises(UnauthenticatedError):
            permission_service.require_permission(None, Actions.READ, Resources.BOXES)

    def test_denial_raises_forbidden_and_is_recorded(self, db_session, client_user):
        principal = Principal.from_user(client_user)

        with pytest.raises(ForbiddenError):
            permission_service.require_permission(principal, Actions.CREATE, Resources.BOXES)

        event = db_session.query(SecurityEvent).filter_by(user_id=client_user.id).one()
        assert event.event_type == "PERMISSION_DENIED"
        assert event.resource == Resources.BOXES
        assert event.action == Actions.CREATE
        assert event.success is False

    def test_grant_records_nothing(self, db_session, shipper):
        permission_service.require_permission(Principal.from_user(shipper), Actions.CREATE, Resources.BOXES)
        assert db_session.query(SecurityEvent).count() == 0
