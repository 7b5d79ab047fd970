# Overview: Pytest coverage for report aggregation in the reporting service.

"""
Report Generator Tests

Runs each report type directly against the service with an explicit
ReportScope, checking summaries, breakdowns and the tabular projection.
"""

from datetime import datetime, timedelta

import pytest

from portal.permissions import Role
from portal.services import reporting_service
from portal.services.reporting_service import (
    AUDIT_SOFT_DENIAL,
    InvalidDateRange,
    InvalidReportType,
    ReportResult,
    build_envelope,
    resolve_date_range,
)
from portal.services.tenant_service import ReportScope

from conftest import make_audit_log, make_order, make_product, make_user


MARCH_START = datetime(2026, 3, 1)
MARCH_END = datetime(2026, 3, 31, 23, 59, 59)
ALL = ReportScope()


def run(report_type, role=Role.SUPER_ADMIN, scope=ALL, start=MARCH_START, end=MARCH_END) -> ReportResult:
    return reporting_service.generate_report(report_type, start=start, end=end, scope=scope, role=role)


class TestDateRange:

    def test_defaults_to_thirty_days_ending_now(self):
        now = datetime(2026, 5, 20, 12, 0)
        start, end = resolve_date_range(None, None, now=now)
        assert end == now
        assert start == now - timedelta(days=30)

    def test_window_length_is_configurable(self):
        now = datetime(2026, 5, 20, 12, 0)
        start, _ = resolve_date_range(None, None, now=now, window_days=7)
        assert start == datetime(2026, 5, 13, 12, 0)

    def test_date_only_to_covers_whole_day(self):
        start, end = resolve_date_range("2026-03-01", "2026-03-31")
        assert start == datetime(2026, 3, 1)
        assert end.date() == datetime(2026, 3, 31).date()
        assert end.hour == 23 and end.minute == 59

    def test_datetime_to_is_kept_exact(self):
        _, end = resolve_date_range("2026-03-01", "2026-03-31T08:00:00Z")
        assert end == datetime(2026, 3, 31, 8, 0)

    def test_offsets_are_normalized_to_utc(self):
        start, _ = resolve_date_range("2026-03-01T02:00:00+02:00", "2026-03-02")
        assert start == datetime(2026, 3, 1, 0, 0)

    def test_missing_from_counts_back_from_to(self):
        start, end = resolve_date_range(None, "2026-01-31T00:00:00")
        assert start == end - timedelta(days=30)

    def test_inverted_range_rejected(self):
        with pytest.raises(InvalidDateRange):
            resolve_date_range("2026-04-01", "2026-03-01")

    def test_malformed_date_rejected(self):
        with pytest.raises(InvalidDateRange):
            resolve_date_range("yesterday", None)


class TestDispatch:

    def test_unknown_type_rejected(self, db_session):
        with pytest.raises(InvalidReportType):
            run("margins")

    @pytest.mark.parametrize("fmt", ["json", "csv"])
    def test_supported_formats(self, fmt):
        assert reporting_service.check_format(fmt) == fmt

    def test_xlsx_not_implemented(self):
        with pytest.raises(reporting_service.FormatNotImplemented):
            reporting_service.check_format("xlsx")

    def test_unknown_format_rejected(self):
        with pytest.raises(reporting_service.InvalidReportFormat):
            reporting_service.check_format("pdf")


class TestSalesReport:

    def test_summary_excludes_cancelled(self, db_session, march_sales):
        result = run("sales", scope=ReportScope(company_id=march_sales["orders"][0].company_id))
        summary = result.payload["summary"]

        assert summary["totalOrders"] == 2
        assert summary["totalRevenue"] == 150.00
        assert summary["averageOrderValue"] == 75.00

    def test_average_is_zero_without_orders(self, db_session):
        summary = run("sales").payload["summary"]
        assert summary == {"totalOrders": 0, "totalRevenue": 0.0, "averageOrderValue": 0.0}

    def test_daily_sales_grouped_by_date(self, db_session, march_sales):
        daily = run("sales").payload["dailySales"]

        assert [row["date"] for row in daily] == ["2026-03-02", "2026-03-04"]
        assert daily[0]["ordersCount"] == 2
        assert daily[0]["totalRevenue"] == 150.00
        assert daily[0]["avgOrderValue"] == 75.00
        assert daily[1]["totalRevenue"] == 80.00

    def test_company_breakdown_for_super_admin(self, db_session, march_sales):
        by_company = run("sales").payload["salesByCompany"]

        assert [row["companyName"] for row in by_company] == ["Acme Retail", "Beta Wholesale"]
        assert by_company[0]["totalRevenue"] == 150.00
        assert by_company[0]["ordersCount"] == 2
        assert by_company[1]["totalRevenue"] == 80.00

    @pytest.mark.parametrize("role", [Role.OPERATION, Role.ACCOUNT_ADMIN])
    def test_company_breakdown_empty_for_other_roles(self, db_session, march_sales, role):
        assert run("sales", role=role).payload["salesByCompany"] == []

    def test_top_products_by_revenue(self, db_session, march_sales):
        top = run("sales").payload["topProducts"]

        assert [row["sku"] for row in top] == ["CAP-1", "TEE-1"]
        assert top[0]["totalSold"] == 13
        assert top[0]["totalRevenue"] == 130.00
        # Cancelled 20 x TEE-1 is not counted
        assert top[1]["totalSold"] == 4
        assert top[1]["totalRevenue"] == 100.00

    def test_top_products_scoped_to_company(self, db_session, march_sales):
        company_a_id = march_sales["orders"][0].company_id
        top = run("sales", scope=ReportScope(company_id=company_a_id, bound=True)).payload["topProducts"]

        assert [(row["sku"], row["totalRevenue"]) for row in top] == [("TEE-1", 100.00), ("CAP-1", 50.00)]

    def test_top_products_limit(self, app, db_session, category, buyer_a):
        for index in range(12):
            product = make_product(db_session, category, f"SKU-{index:02d}", price_cents=100 * (index + 1))
            make_order(
                db_session, f"ORD-{index:02d}", buyer_a, product.price_cents, datetime(2026, 3, 5),
                items=[(product, 1, product.price_cents)],
            )

        top = run("sales").payload["topProducts"]
        assert len(top) == 10
        assert top[0]["sku"] == "SKU-11"

        app.config["REPORT_TOP_PRODUCTS_LIMIT"] = 3
        try:
            assert len(run("sales").payload["topProducts"]) == 3
        finally:
            app.config["REPORT_TOP_PRODUCTS_LIMIT"] = 10

    def test_orders_outside_range_ignored(self, db_session, march_sales):
        result = run("sales", start=datetime(2026, 3, 3), end=datetime(2026, 3, 31))
        assert result.payload["summary"]["totalOrders"] == 1
        assert result.payload["summary"]["totalRevenue"] == 80.00

    def test_projection_matches_orders(self, db_session, march_sales):
        result = run("sales")

        assert result.headers == ["Order Number", "Date", "Customer", "Company", "Total", "Status", "Items"]
        assert len(result.data) == len(result.payload["orders"]) == 3
        assert result.data[0] == ["ORD-A1", "2026-03-02", "Ben Buyer", "Acme Retail", 100.0, "DELIVERED", 1]

    def test_order_without_company_shows_na(self, db_session, category, super_admin):
        make_order(db_session, "ORD-NC", super_admin, 1234, datetime(2026, 3, 10))
        row = run("sales").payload["orders"][0]
        assert row["company"] == "N/A"
        assert row["total"] == 12.34


class TestInventoryReport:

    def test_low_stock_includes_out_of_stock(self, db_session, category):
        make_product(db_session, category, "P-0", stock=0, min_stock=5)
        make_product(db_session, category, "P-3", stock=3, min_stock=5)
        make_product(db_session, category, "P-10", stock=10, min_stock=5)

        summary = run("inventory").payload["summary"]

        assert summary["totalProducts"] == 3
        assert summary["outOfStockItems"] == 1
        assert summary["lowStockItems"] == 2

    def test_value_and_status(self, db_session, category):
        make_product(db_session, category, "A", name="Alpha", price_cents=250, stock=4, min_stock=1)
        make_product(db_session, category, "B", name="Bravo", price_cents=1000, stock=0, min_stock=1, status="INACTIVE")

        result = run("inventory")
        summary = result.payload["summary"]

        assert summary["totalInventoryValue"] == 10.00
        assert summary["activeProducts"] == 1
        assert [row["stockStatus"] for row in result.payload["products"]] == ["Good", "Out of Stock"]
        assert [row["sku"] for row in result.payload["outOfStockProducts"]] == ["B"]

    def test_total_sold_counts_order_items_in_scope(self, db_session, march_sales):
        company_a_id = march_sales["orders"][0].company_id

        everyone = {row["sku"]: row["totalSold"] for row in run("inventory").payload["products"]}
        company_a = {
            row["sku"]: row["totalSold"]
            for row in run("inventory", scope=ReportScope(company_id=company_a_id, bound=True)).payload["products"]
        }

        # Historical item count, cancelled orders included
        assert everyone == {"TEE-1": 2, "CAP-1": 2}
        assert company_a == {"TEE-1": 2, "CAP-1": 1}

    def test_projection_columns(self, db_session, category):
        make_product(db_session, category, "P-1", name="Widget", price_cents=1999, stock=2, min_stock=5)
        result = run("inventory")
        assert result.data == [["Widget", "P-1", "Fashion", 2, 5, 19.99, 39.98, "ACTIVE", 0, "Low Stock"]]


class TestCustomersReport:

    def test_summary(self, db_session, company_a, march_sales, buyer_a, buyer_b):
        make_user(db_session, "Old Timer", "old@acme.example", Role.BUYER, company_a, created_at=datetime(2025, 1, 1))
        make_user(db_session, "Newbie", "new@acme.example", Role.BUYER, company_a, created_at=datetime(2026, 3, 15))

        scope = ReportScope(company_id=company_a.id, bound=True)
        result = run("customers", role=Role.ACCOUNT_ADMIN, scope=scope)
        summary = result.payload["summary"]

        assert summary["totalCustomers"] == 3
        assert summary["activeCustomers"] == 1
        assert summary["newCustomers"] == 1
        assert {row["email"] for row in result.payload["customers"]} == {
            "buyer@acme.example", "old@acme.example", "new@acme.example",
        }

    def test_orders_and_spend(self, db_session, march_sales, buyer_a):
        rows = {row["email"]: row for row in run("customers").payload["customers"]}

        assert rows["buyer@acme.example"]["totalOrders"] == 3
        # Cancelled order is counted but not spent
        assert rows["buyer@acme.example"]["totalSpent"] == 150.00
        assert rows["buyer@beta.example"]["totalSpent"] == 80.00

    def test_projection_renders_never_and_yes(self, db_session, company_a):
        make_user(db_session, "Quiet", "quiet@acme.example", Role.BUYER, company_a, created_at=datetime(2026, 2, 1))
        result = run("customers")
        assert result.data == [
            ["Quiet", "quiet@acme.example", "Acme Retail", "BUYER", "2026-02-01", "Never", 0, 0.0, "Yes"]
        ]


class TestProductsReport:

    def test_performance_in_range(self, db_session, march_sales):
        rows = {row["sku"]: row for row in run("products").payload["products"]}

        assert rows["TEE-1"]["totalSold"] == 4
        assert rows["TEE-1"]["revenue"] == 100.00
        assert rows["TEE-1"]["lastSold"] == "2026-03-02T10:00:00Z"
        assert rows["CAP-1"]["totalSold"] == 13
        assert rows["CAP-1"]["lastSold"] == "2026-03-04T12:00:00Z"

    def test_unsold_product(self, db_session, category):
        make_product(db_session, category, "IDLE", name="Idle", price_cents=500, stock=3)
        result = run("products")

        assert result.payload["products"][0]["lastSold"] is None
        assert result.payload["products"][0]["totalSold"] == 0
        assert result.data == [["Idle", "IDLE", "Fashion", 5.0, 3, 0, 0.0, "Never"]]

    def test_scope_limits_sales_figures(self, db_session, march_sales):
        company_b_id = march_sales["orders"][-1].company_id
        scope = ReportScope(company_id=company_b_id, bound=True)
        rows = {row["sku"]: row for row in run("products", scope=scope).payload["products"]}

        assert rows["TEE-1"]["totalSold"] == 0
        assert rows["CAP-1"]["totalSold"] == 8
        assert rows["CAP-1"]["revenue"] == 80.00


class TestOrdersReport:

    def test_status_breakdown_and_revenue(self, db_session, march_sales):
        summary = run("orders").payload["summary"]

        assert summary["totalOrders"] == 4
        assert summary["statusBreakdown"] == {"DELIVERED": 2, "CANCELLED": 1, "SHIPPED": 1}
        assert summary["totalRevenue"] == 230.00

    def test_newest_first_with_payment_status(self, db_session, march_sales):
        rows = run("orders").payload["orders"]

        assert [row["orderNumber"] for row in rows] == ["ORD-B1", "ORD-A3", "ORD-A2", "ORD-A1"]
        assert rows[0]["paymentStatus"] == "PENDING"
        assert rows[2]["paymentStatus"] == "Pending"
        assert rows[3]["paymentStatus"] == "COMPLETED"

    def test_projection_columns(self, db_session, march_sales):
        result = run("orders")
        assert result.headers[-1] == "Payment Status"
        assert result.data[0] == ["ORD-B1", "2026-03-04", "Bea Buyer", "Beta Wholesale", "SHIPPED", 80.0, 1, "PENDING"]


class TestAuditReport:

    def test_summary(self, db_session, super_admin, operation_user):
        make_audit_log(db_session, "USER_CREATED", datetime(2026, 3, 1, 9), user=super_admin)
        make_audit_log(db_session, "USER_CREATED", datetime(2026, 3, 2, 9), user=operation_user, severity="warning")
        make_audit_log(db_session, "LOGIN_FAILED", datetime(2026, 3, 3, 9), severity="critical")
        make_audit_log(db_session, "LOGIN_FAILED", datetime(2026, 4, 3, 9))

        result = run("audit")
        summary = result.payload["summary"]

        assert summary["totalLogs"] == 3
        assert summary["actionBreakdown"] == {"USER_CREATED": 2, "LOGIN_FAILED": 1}
        assert summary["severityBreakdown"] == {"info": 1, "warning": 1, "critical": 1}
        assert summary["uniqueUsers"] == 2
        assert result.payload["auditLogs"][0]["action"] == "LOGIN_FAILED"
        assert result.data[0][0] == "2026-03-03T09:00:00Z"

    def test_unique_users_ignores_anonymous_rows(self, db_session, super_admin):
        make_audit_log(db_session, "LOGIN_FAILED", datetime(2026, 3, 1, 9))
        make_audit_log(db_session, "LOGIN_FAILED", datetime(2026, 3, 2, 9))
        make_audit_log(db_session, "USER_CREATED", datetime(2026, 3, 3, 9), user=super_admin)

        # Rows without a user are not counted as a user. Earlier portal
        # exports counted the missing user once, which would give 2 here.
        assert run("audit").payload["summary"]["uniqueUsers"] == 1

    def test_row_limit(self, app, db_session):
        for day in range(1, 6):
            make_audit_log(db_session, f"ACTION_{day}", datetime(2026, 3, day))

        app.config["REPORT_AUDIT_ROW_LIMIT"] = 2
        try:
            result = run("audit")
        finally:
            app.config["REPORT_AUDIT_ROW_LIMIT"] = 1000

        assert result.payload["summary"]["totalLogs"] == 2
        assert [row["action"] for row in result.payload["auditLogs"]] == ["ACTION_5", "ACTION_4"]

    @pytest.mark.parametrize("role", [Role.ACCOUNT_ADMIN, Role.OPERATION])
    def test_soft_denial_for_non_super_admin(self, db_session, role):
        result = run("audit", role=role)
        assert result.denied
        assert result.payload == {"error": AUDIT_SOFT_DENIAL}
        assert result.data == []


class TestEnvelope:

    def test_common_fields_then_payload(self):
        result = ReportResult(payload={"summary": {"x": 1}}, headers=["A"], data=[[1]])
        envelope = build_envelope(
            "sales",
            start=MARCH_START,
            end=datetime(2026, 3, 31, 23, 59, 59, 999999),
            generated_by={"name": "Sam", "email": "sam@portal.test"},
            result=result,
            generated_at=datetime(2026, 4, 1, 8, 0),
        )

        assert envelope["reportType"] == "sales"
        assert envelope["dateRange"] == {"from": "2026-03-01T00:00:00Z", "to": "2026-03-31T23:59:59Z"}
        assert envelope["generatedAt"] == "2026-04-01T08:00:00Z"
        assert envelope["generatedBy"] == {"name": "Sam", "email": "sam@portal.test"}
        assert envelope["summary"] == {"x": 1}
        assert envelope["headers"] == ["A"]
        assert envelope["data"] == [[1]]

    def test_denied_envelope_has_no_table(self):
        result = ReportResult(payload={"error": AUDIT_SOFT_DENIAL}, denied=True)
        envelope = build_envelope(
            "audit", start=MARCH_START, end=MARCH_END,
            generated_by={"name": "A", "email": "a@x"}, result=result,
        )
        assert envelope["error"] == AUDIT_SOFT_DENIAL
        assert "data" not in envelope

    def test_csv_filename(self):
        assert reporting_service.csv_filename("orders", datetime(2026, 3, 9, 17, 0)) == "orders_report_2026-03-09.csv"
