# Overview: Portal roles and the capability set each role resolves to.


class Role:
    """Role strings as stored on User.role."""
    SUPER_ADMIN = "SUPER_ADMIN"
    ACCOUNT_ADMIN = "ACCOUNT_ADMIN"
    OPERATION = "OPERATION"
    BUYER = "BUYER"


ALL_ROLES = (Role.SUPER_ADMIN, Role.ACCOUNT_ADMIN, Role.OPERATION, Role.BUYER)


ROLE_CAPABILITIES = {
    Role.SUPER_ADMIN: frozenset({
        "GENERATE_REPORTS",
        "EXPORT_REPORTS",
        "REPORT_ALL_COMPANIES",
        "VIEW_COMPANY_BREAKDOWN",
        "VIEW_AUDIT_LOGS",
    }),
    Role.OPERATION: frozenset({
        "GENERATE_REPORTS",
        "EXPORT_REPORTS",
        "REPORT_ALL_COMPANIES",
    }),
    # Bound to the caller's own company
    Role.ACCOUNT_ADMIN: frozenset({
        "GENERATE_REPORTS",
        "EXPORT_REPORTS",
    }),
    Role.BUYER: frozenset(),
}
