# Overview: Static role registry: role -> resource -> action -> rule.
# An absent entry is a denial; only ADMIN and SYSTEM carry the wildcard.

from .definitions import (
    ALLOW,
    IS_OWNER,
    IS_SELF,
    WILDCARD,
    Actions,
    Resources,
    Roles,
)


def _owned_crud() -> dict:
    """Create anything; touch only what you own."""
    return {
        Actions.CREATE: ALLOW,
        Actions.READ: IS_OWNER,
        Actions.UPDATE: IS_OWNER,
        Actions.DELETE: IS_OWNER,
        Actions.LIST: IS_OWNER,
    }


# -- ADMIN --

ADMIN_PERMISSIONS = {
    WILDCARD: {WILDCARD: ALLOW},
}


# -- SYSTEM --
# Background jobs and seeding; same reach as admin, never interactive.

SYSTEM_PERMISSIONS = {
    WILDCARD: {WILDCARD: ALLOW},
}


# -- SHIPPER --

SHIPPER_PERMISSIONS = {
    Resources.USERS: {
        Actions.READ: IS_SELF,
        Actions.UPDATE: IS_SELF,
    },
    Resources.PROFILES: {
        Actions.CREATE: ALLOW,
        Actions.READ: IS_SELF,
        Actions.UPDATE: IS_SELF,
    },
    Resources.SHIPPER_CLIENTS: _owned_crud(),
    Resources.PICKUPS: _owned_crud(),
    Resources.ITEMS: _owned_crud(),
    Resources.BOXES: _owned_crud(),
    Resources.SHIPMENTS: _owned_crud(),
    Resources.PICKUP_REQUESTS: _owned_crud(),
    Resources.TEMPLATES: _owned_crud(),
    Resources.PAYMENT_METHODS: _owned_crud(),
    # Rates are readable without ownership; queries still scope to the shipper
    Resources.FX_RATES: {
        Actions.CREATE: ALLOW,
        Actions.READ: ALLOW,
        Actions.LIST: ALLOW,
        Actions.UPDATE: IS_OWNER,
    },
    Resources.INVOICES: {
        Actions.CREATE: ALLOW,
        Actions.READ: IS_OWNER,
        Actions.LIST: IS_OWNER,
    },
    Resources.NOTIFICATIONS: {
        Actions.READ: IS_OWNER,
        Actions.UPDATE: IS_OWNER,
        Actions.LIST: IS_OWNER,
    },
    # Vouch visibility is the voucher-email predicate applied in the query
    Resources.VOUCHES: {
        Actions.CREATE: ALLOW,
        Actions.READ: ALLOW,
        Actions.LIST: ALLOW,
        Actions.UPDATE: ALLOW,
    },
}


# -- CLIENT --
# Receives shipping services; never creates boxes.

CLIENT_PERMISSIONS = {
    Resources.USERS: {
        Actions.READ: IS_SELF,
        Actions.UPDATE: IS_SELF,
    },
    Resources.PROFILES: {
        Actions.READ: IS_SELF,
        Actions.UPDATE: IS_SELF,
    },
    Resources.PICKUPS: {
        Actions.READ: IS_SELF,
        Actions.LIST: ALLOW,  # filtered to own pickups in query
    },
    Resources.ITEMS: {
        Actions.READ: IS_SELF,
        Actions.LIST: ALLOW,
    },
    Resources.BOXES: {
        Actions.READ: IS_SELF,
        Actions.LIST: ALLOW,
    },
    Resources.SHIPMENTS: {
        Actions.READ: IS_SELF,
        Actions.LIST: ALLOW,
    },
    Resources.PICKUP_REQUESTS: {
        Actions.CREATE: ALLOW,
        Actions.READ: IS_SELF,
        Actions.LIST: ALLOW,
    },
    Resources.INVOICES: {
        Actions.READ: IS_SELF,
        Actions.LIST: ALLOW,
    },
    Resources.NOTIFICATIONS: {
        Actions.READ: IS_SELF,
        Actions.LIST: ALLOW,
        Actions.UPDATE: IS_SELF,  # mark as read
    },
    Resources.VOUCHES: {
        Actions.CREATE: ALLOW,
        Actions.READ: ALLOW,
        Actions.LIST: ALLOW,
        Actions.UPDATE: ALLOW,
    },
}


ROLE_PERMISSIONS = {
    Roles.ADMIN: ADMIN_PERMISSIONS,
    Roles.SHIPPER: SHIPPER_PERMISSIONS,
    Roles.CLIENT: CLIENT_PERMISSIONS,
    Roles.SYSTEM: SYSTEM_PERMISSIONS,
}
