# Overview: Roles, resources, actions, conditions and the permission rule types.
# A rule is one of: Allow, Deny, If(condition), AnyOf(conditions).

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union


WILDCARD = "*"


class Roles:
    """Coarse permission classes a principal can hold."""
    ADMIN = "ADMIN"
    SHIPPER = "SHIPPER"
    CLIENT = "CLIENT"
    SYSTEM = "SYSTEM"  # Synthetic actor for background jobs; never gets a session

    ALL = (ADMIN, SHIPPER, CLIENT, SYSTEM)


class Resources:
    USERS = "users"
    PROFILES = "profiles"
    SHIPPER_CLIENTS = "shipper_clients"
    PICKUPS = "pickups"
    ITEMS = "items"
    BOXES = "boxes"
    SHIPMENTS = "shipments"
    PICKUP_REQUESTS = "pickup_requests"
    FX_RATES = "fx_rates"
    TEMPLATES = "templates"
    INVOICES = "invoices"
    NOTIFICATIONS = "notifications"
    PAYMENT_METHODS = "payment_methods"
    VOUCHES = "vouches"

    ALL = (
        USERS, PROFILES, SHIPPER_CLIENTS, PICKUPS, ITEMS, BOXES, SHIPMENTS,
        PICKUP_REQUESTS, FX_RATES, TEMPLATES, INVOICES, NOTIFICATIONS,
        PAYMENT_METHODS, VOUCHES,
    )


class Actions:
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"

    ALL = (CREATE, READ, UPDATE, DELETE, LIST)


class Conditions:
    """Instance-dependent predicates a rule can require."""
    IS_OWNER = "is-owner"  # instance.owner_user_id (or user_id) is the principal
    IS_SELF = "is-self"    # instance.user_id (or id) is the principal
    IS_ADMIN = "is-admin"
    IS_SYSTEM = "is-system"

    ALL = (IS_OWNER, IS_SELF, IS_ADMIN, IS_SYSTEM)


def _instance_value(instance: Any, *keys: str) -> Any:
    """First non-None attribute (or mapping key) of `instance` among `keys`."""
    for key in keys:
        try:
            if isinstance(instance, Mapping):
                value = instance.get(key)
            else:
                value = getattr(instance, key, None)
        except (AttributeError, TypeError):
            value = None
        if value is not None:
            return value
    return None


def evaluate_condition(condition: str, principal: Any, instance: Any = None) -> bool:
    """
    Evaluate one condition for a principal against an optional instance.

    IS_SELF and IS_OWNER are optimistic without an instance: the caller is
    expected to apply the same predicate to its collection query.
    """
    if condition == Conditions.IS_ADMIN:
        return principal.role == Roles.ADMIN

    if condition == Conditions.IS_SYSTEM:
        return principal.role == Roles.SYSTEM

    if condition == Conditions.IS_SELF:
        if instance is None:
            return True
        return _instance_value(instance, "user_id", "id") == principal.id

    if condition == Conditions.IS_OWNER:
        if instance is None:
            return True
        return _instance_value(instance, "owner_user_id", "user_id") == principal.id

    return False


@dataclass(frozen=True)
class Allow:
    """Unconditional grant."""

    def evaluate(self, principal: Any, instance: Any = None) -> bool:
        return True

    def describe(self) -> str:
        return "allow"


@dataclass(frozen=True)
class Deny:
    """Explicit refusal (same effect as an absent rule)."""

    def evaluate(self, principal: Any, instance: Any = None) -> bool:
        return False

    def describe(self) -> str:
        return "deny"


@dataclass(frozen=True)
class If:
    """Grant when a single condition holds."""
    condition: str

    def evaluate(self, principal: Any, instance: Any = None) -> bool:
        return evaluate_condition(self.condition, principal, instance)

    def describe(self) -> str:
        return f"if {self.condition}"


@dataclass(frozen=True)
class AnyOf:
    """Grant when any of the conditions holds."""
    conditions: tuple[str, ...]

    def evaluate(self, principal: Any, instance: Any = None) -> bool:
        return any(evaluate_condition(c, principal, instance) for c in self.conditions)

    def describe(self) -> str:
        return "any of " + ", ".join(self.conditions)


PermissionRule = Union[Allow, Deny, If, AnyOf]

ALLOW = Allow()
DENY = Deny()
IS_OWNER = If(Conditions.IS_OWNER)
IS_SELF = If(Conditions.IS_SELF)
