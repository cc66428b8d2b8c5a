# Overview: Permission system package.
# Re-exports the role registry, rule types and lookup helpers.

from .definitions import (
    WILDCARD,
    Roles,
    Resources,
    Actions,
    Conditions,
    Allow,
    Deny,
    If,
    AnyOf,
    PermissionRule,
    ALLOW,
    DENY,
    IS_OWNER,
    IS_SELF,
    evaluate_condition,
)
from .roles import (
    ROLE_PERMISSIONS,
    ADMIN_PERMISSIONS,
    SHIPPER_PERMISSIONS,
    CLIENT_PERMISSIONS,
    SYSTEM_PERMISSIONS,
)
from .helpers import (
    get_role_rules,
    has_full_access,
    get_rule,
    describe_rule,
    describe_role,
)

__all__ = [
    "WILDCARD",
    "Roles",
    "Resources",
    "Actions",
    "Conditions",
    "Allow",
    "Deny",
    "If",
    "AnyOf",
    "PermissionRule",
    "ALLOW",
    "DENY",
    "IS_OWNER",
    "IS_SELF",
    "evaluate_condition",
    "ROLE_PERMISSIONS",
    "ADMIN_PERMISSIONS",
    "SHIPPER_PERMISSIONS",
    "CLIENT_PERMISSIONS",
    "SYSTEM_PERMISSIONS",
    "get_role_rules",
    "has_full_access",
    "get_rule",
    "describe_rule",
    "describe_role",
]
