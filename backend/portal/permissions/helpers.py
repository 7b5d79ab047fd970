# Overview: Utility functions for role and capability lookups.

from .definitions import CAPABILITY_DEFINITIONS
from .roles import ALL_ROLES, ROLE_CAPABILITIES


def get_all_capability_codes():
    """Get list of all capability codes."""
    return [cap[0] for cap in CAPABILITY_DEFINITIONS]


def get_capability_definition(code):
    """Get full definition for a capability code."""
    for cap in CAPABILITY_DEFINITIONS:
        if cap[0] == code:
            return {
                "code": cap[0],
                "name": cap[1],
                "description": cap[2],
                "category": cap[3],
            }
    return None


def validate_role(role):
    """Check if a role string is a known role."""
    return role in ALL_ROLES


def get_role_capabilities(role):
    """Capabilities granted to a role. Unknown roles get none (fail closed)."""
    return ROLE_CAPABILITIES.get(role, frozenset())


def role_has_capability(role, code):
    return code in get_role_capabilities(role)
