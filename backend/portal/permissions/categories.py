# Overview: Capability category constants for grouping related capabilities.


class CapabilityCategory:
    """Capability categories for organization and UI display."""
    REPORTS = "REPORTS"
    COMPANIES = "COMPANIES"
    AUDIT = "AUDIT"
