# Overview: Role and capability package.
# Every role check in the portal goes through these lookups instead of
# comparing role strings in place.

from .roles import Role, ALL_ROLES, ROLE_CAPABILITIES
from .helpers import (
    get_all_capability_codes,
    get_capability_definition,
    get_role_capabilities,
    role_has_capability,
    validate_role,
)

__all__ = [
    "Role",
    "ALL_ROLES",
    "ROLE_CAPABILITIES",
    "get_all_capability_codes",
    "get_capability_definition",
    "get_role_capabilities",
    "role_has_capability",
    "validate_role",
]
