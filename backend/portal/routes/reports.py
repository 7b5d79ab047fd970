# Overview: Flask API route for report generation; parses input and returns JSON or CSV responses.

import time

from flask import Blueprint, Response, current_app, g, jsonify, request

from ..decorators import forbidden, require_auth, require_capability
from ..permissions import role_has_capability
from ..services import reporting_service
from ..services.csv_export import to_csv
from ..services.reporting_service import (
    FormatNotImplemented,
    InvalidDateRange,
    InvalidReportFormat,
    InvalidReportType,
)
from ..services.tenant_service import ScopeError, resolve_report_scope


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


class _BadParameter(Exception):
    pass


def _parse_company_id() -> int | None:
    raw = request.args.get("companyId")
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise _BadParameter("companyId must be an integer")


@reports_bp.get("")
@require_auth
@require_capability("GENERATE_REPORTS")
def generate_report_route():
    """
    Generate a report.

    Query: type, dateFrom, dateTo, format (json|csv|xlsx), companyId
    Requires: GENERATE_REPORTS (EXPORT_REPORTS for csv)
    Available to: SUPER_ADMIN, ACCOUNT_ADMIN (own company only), OPERATION
    """
    # Empty values fall back to the defaults; format is case-sensitive
    report_type = request.args.get("type") or "sales"
    fmt = request.args.get("format") or "json"

    try:
        reporting_service.check_report_type(report_type)
        reporting_service.check_format(fmt)
        if fmt == "csv" and not role_has_capability(g.role, "EXPORT_REPORTS"):
            return forbidden()
        scope = resolve_report_scope(g.role, g.company_id, _parse_company_id())
        start, end = reporting_service.resolve_date_range(
            request.args.get("dateFrom"),
            request.args.get("dateTo"),
            window_days=current_app.config.get(
                "REPORT_DEFAULT_WINDOW_DAYS", reporting_service.DEFAULT_WINDOW_DAYS
            ),
        )
    except InvalidReportType:
        return jsonify({"error": "Invalid report type"}), 400
    except (FormatNotImplemented, InvalidReportFormat, InvalidDateRange, _BadParameter) as e:
        return jsonify({"error": str(e)}), 400
    except ScopeError:
        current_app.logger.warning(
            "Forbidden: %s user %s has no company scope", g.role, g.current_user.id
        )
        return forbidden()

    started = time.perf_counter()
    try:
        result = reporting_service.generate_report(
            report_type, start=start, end=end, scope=scope, role=g.role
        )

        if fmt == "csv" and not result.denied:
            body = to_csv(
                result.headers,
                result.data,
                quote_style=current_app.config.get("REPORT_CSV_QUOTE_STYLE", "rfc4180"),
            )
            filename = reporting_service.csv_filename(report_type)
            response = Response(body, status=200, content_type="text/csv")
            response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
        else:
            user = g.current_user
            envelope = reporting_service.build_envelope(
                report_type,
                start=start,
                end=end,
                generated_by={"name": user.name, "email": user.email},
                result=result,
            )
            response = jsonify(envelope)

    except Exception:
        current_app.logger.exception("Failed to generate %s report", report_type)
        return jsonify({"error": "Internal Server Error"}), 500

    elapsed_ms = (time.perf_counter() - started) * 1000
    current_app.logger.info(
        "Generated %s report (%s) for %s, company=%s%s, rows=%d in %.1f ms",
        report_type, fmt, g.role, scope.company_id, " (bound)" if scope.bound else "",
        result.row_count, elapsed_ms,
    )
    if elapsed_ms > current_app.config.get("REPORT_SLOW_THRESHOLD_MS", 2000):
        current_app.logger.warning("Slow %s report: %.1f ms", report_type, elapsed_ms)

    return response, 200
