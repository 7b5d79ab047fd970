# Overview: All capability definitions organized by category.
# Each capability is defined as: (code, name, description, category)

from .categories import CapabilityCategory


# -- REPORTS --

REPORT_CAPABILITIES = [
    (
        "GENERATE_REPORTS",
        "Generate Reports",
        "Run sales, inventory, customer, product and order reports",
        CapabilityCategory.REPORTS,
    ),
    (
        "EXPORT_REPORTS",
        "Export Reports",
        "Download reports as CSV",
        CapabilityCategory.REPORTS,
    ),
]


# -- COMPANIES --

COMPANY_CAPABILITIES = [
    (
        "REPORT_ALL_COMPANIES",
        "Report Across Companies",
        "Reports are not restricted to the caller's company",
        CapabilityCategory.COMPANIES,
    ),
    (
        "VIEW_COMPANY_BREAKDOWN",
        "View Company Breakdown",
        "See per-company revenue in the sales report",
        CapabilityCategory.COMPANIES,
    ),
]


# -- AUDIT --

AUDIT_CAPABILITIES = [
    (
        "VIEW_AUDIT_LOGS",
        "View Audit Logs",
        "Run the audit log report",
        CapabilityCategory.AUDIT,
    ),
]


CAPABILITY_DEFINITIONS = (
    REPORT_CAPABILITIES
    + COMPANY_CAPABILITIES
    + AUDIT_CAPABILITIES
)
