# Overview: Utility functions for role registry lookups and inspection.

from .definitions import WILDCARD, Allow
from .roles import ROLE_PERMISSIONS


def get_role_rules(role):
    """Get the resource -> action -> rule table for a role (None if unknown)."""
    return ROLE_PERMISSIONS.get(role)


def has_full_access(role):
    """Check if a role carries the wildcard rule."""
    rules = get_role_rules(role)
    if not rules:
        return False
    return isinstance(rules.get(WILDCARD, {}).get(WILDCARD), Allow)


def get_rule(role, resource, action):
    """Get the rule for one (role, resource, action) triple, or None."""
    rules = get_role_rules(role)
    if not rules:
        return None
    return rules.get(resource, {}).get(action)


def describe_rule(rule):
    """Human-readable form of a rule; a missing rule reads as a denial."""
    if rule is None:
        return "not granted"
    return rule.describe()


def describe_role(role):
    """Flatten a role's table into rows of (resource, action, description)."""
    rules = get_role_rules(role) or {}
    rows = []
    for resource in sorted(rules):
        for action in sorted(rules[resource]):
            rows.append((resource, action, describe_rule(rules[resource][action])))
    return rows
