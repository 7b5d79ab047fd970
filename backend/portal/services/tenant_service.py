"""
Company Scope for Reports

WHY: Reports mix several queries over orders and users. If one of them
forgets the company filter, an account admin sees another company's data.
The scope is therefore resolved once per request into a ReportScope and
every query that touches company-owned rows goes through ReportScope.apply.

SECURITY INVARIANTS:
1. Company-bound roles (no REPORT_ALL_COMPANIES) always get their own
   company, whatever companyId the client sent
2. A company-bound caller without a company is denied, never widened to
   "all companies"
3. Company filters are added with bound parameters, never string-built SQL

USAGE:
    scope = resolve_report_scope(g.role, g.company_id, request_company_id)
    query = scope.apply(db.session.query(Order), Order.company_id)
"""

from __future__ import annotations

from dataclasses import dataclass

from ..permissions import role_has_capability


class ScopeError(Exception):
    """Raised when a caller cannot be given any report scope."""
    pass


@dataclass(frozen=True)
class ReportScope:
    """
    Row-level scope for one report invocation.

    company_id None means all companies, which is only possible when
    bound is False.
    """
    company_id: int | None = None
    bound: bool = False

    def apply(self, query, column):
        """Filter query on column == company_id, or return it unchanged when unrestricted."""
        if self.company_id is None:
            return query
        return query.filter(column == self.company_id)


def resolve_report_scope(
    role: str,
    caller_company_id: int | None,
    requested_company_id: int | None = None,
) -> ReportScope:
    """
    Resolve the company scope for a report request.

    Raises:
        ScopeError if the role is company-bound but the caller has no company
    """
    if role_has_capability(role, "REPORT_ALL_COMPANIES"):
        return ReportScope(company_id=requested_company_id, bound=False)

    if caller_company_id is None:
        raise ScopeError("Company-bound caller has no company")

    return ReportScope(company_id=caller_company_id, bound=True)
