# Overview: Service-layer operations for reporting; encapsulates aggregation queries and their tabular projections.

"""
Report Generator

One entry point, generate_report, dispatches on report type. Every
generator returns a ReportResult: the JSON payload plus a headers/data
projection of the same rows. The JSON envelope and the CSV export are both
built from that one result, so the two formats cannot drift apart.

All company filtering goes through the ReportScope resolved by the route.
The reporting path only reads; it never writes an audit row or touches
stock.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from flask import current_app
from sqlalchemy import case, func
from sqlalchemy.orm import joinedload, selectinload

from portal.extensions import db
from portal.models import (
    AuditLog,
    Company,
    Order,
    OrderItem,
    Product,
    User,
    CANCELLED,
)
from portal.permissions import role_has_capability
from portal.services.tenant_service import ReportScope
from portal.time_utils import (
    end_of_day,
    is_date_only,
    parse_iso_datetime,
    to_date_str,
    to_naive_utc,
    to_utc_z,
    utcnow,
)


REPORT_TYPES = ("sales", "inventory", "customers", "products", "orders", "audit")
REPORT_FORMATS = ("json", "csv", "xlsx")

AUDIT_SOFT_DENIAL = "Unauthorized to access audit logs"
XLSX_NOT_IMPLEMENTED = "XLSX format not yet implemented. Please use CSV or JSON."

DEFAULT_WINDOW_DAYS = 30
DEFAULT_TOP_PRODUCTS_LIMIT = 10
DEFAULT_AUDIT_ROW_LIMIT = 1000


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


class InvalidReportType(ReportError):
    pass


class InvalidReportFormat(ReportError):
    pass


class FormatNotImplemented(ReportError):
    pass


class InvalidDateRange(ReportError):
    pass


@dataclass
class ReportResult:
    """Aggregated report: JSON payload and its tabular (CSV) projection."""
    payload: dict
    headers: list[str] = field(default_factory=list)
    data: list[list[Any]] = field(default_factory=list)
    # True for the audit soft denial: a 200 body carrying only an error
    denied: bool = False

    @property
    def row_count(self) -> int:
        return len(self.data)


# =============================================================================
# REQUEST VALIDATION
# =============================================================================

def check_report_type(report_type: str) -> str:
    if report_type not in REPORT_TYPES:
        raise InvalidReportType("Invalid report type")
    return report_type


def check_format(fmt: str) -> str:
    if fmt == "xlsx":
        raise FormatNotImplemented(XLSX_NOT_IMPLEMENTED)
    if fmt not in REPORT_FORMATS:
        raise InvalidReportFormat("Invalid report format")
    return fmt


def resolve_date_range(
    date_from: str | None,
    date_to: str | None,
    *,
    now: datetime | None = None,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> tuple[datetime, datetime]:
    """
    Resolve the report window.

    - dateTo defaults to now; a date-only dateTo covers that whole day
    - dateFrom defaults to window_days before dateTo
    - an inverted range is rejected, never swapped
    """
    try:
        start = parse_iso_datetime(date_from)
        end = parse_iso_datetime(date_to)
    except ValueError:
        raise InvalidDateRange("dateFrom and dateTo must be ISO-8601 dates")

    if end is None:
        end = now or utcnow()
    elif is_date_only(date_to):
        end = end_of_day(end)

    if start is None:
        start = end - timedelta(days=window_days)

    if start > end:
        raise InvalidDateRange("dateFrom must be on or before dateTo")

    return start, end


# =============================================================================
# HELPERS
# =============================================================================

def cents_to_amount(cents: int | None) -> float:
    return round((cents or 0) / 100.0, 2)


def _average_amount(total_cents: int, count: int) -> float:
    if not count:
        return 0.0
    return round(total_cents / count / 100.0, 2)


def _config(key: str, default: int) -> int:
    return int(current_app.config.get(key, default))


@contextmanager
def read_only_unit():
    """
    Run report queries in one transaction that is always rolled back.

    Rolling back returns the pooled connection on success and failure alike.
    """
    try:
        yield db.session
    finally:
        db.session.rollback()


def _in_range(query, column, start: datetime, end: datetime):
    return query.filter(column >= start, column <= end)


def _order_row(order: Order) -> dict:
    return {
        "orderNumber": order.order_number,
        "date": to_utc_z(order.created_at),
        "customer": order.user.name if order.user else None,
        "company": order.company.name if order.company else "N/A",
        "total": cents_to_amount(order.total_cents),
        "status": order.status,
        "itemCount": len(order.items),
    }


def _stock_status(product: Product) -> str:
    if product.stock == 0:
        return "Out of Stock"
    if product.stock <= product.min_stock:
        return "Low Stock"
    return "Good"


# =============================================================================
# SALES
# =============================================================================

def sales_report(*, start: datetime, end: datetime, scope: ReportScope, role: str) -> ReportResult:
    top_limit = _config("REPORT_TOP_PRODUCTS_LIMIT", DEFAULT_TOP_PRODUCTS_LIMIT)

    orders_query = db.session.query(Order).options(
        joinedload(Order.user),
        joinedload(Order.company),
        selectinload(Order.items),
    ).filter(Order.status != CANCELLED)
    orders_query = _in_range(orders_query, Order.created_at, start, end)
    orders = scope.apply(orders_query, Order.company_id).order_by(
        Order.created_at.asc(), Order.id.asc()
    ).all()

    day_expr = func.date(Order.created_at)
    daily_query = db.session.query(
        day_expr.label("day"),
        func.count(Order.id).label("orders_count"),
        func.coalesce(func.sum(Order.total_cents), 0).label("revenue_cents"),
    ).filter(Order.status != CANCELLED)
    daily_query = _in_range(daily_query, Order.created_at, start, end)
    daily_rows = scope.apply(daily_query, Order.company_id).group_by(day_expr).order_by(day_expr).all()

    company_rows = []
    if role_has_capability(role, "VIEW_COMPANY_BREAKDOWN"):
        revenue_expr = func.coalesce(func.sum(Order.total_cents), 0)
        company_query = db.session.query(
            Company.id.label("company_id"),
            Company.name.label("company_name"),
            func.count(Order.id).label("orders_count"),
            revenue_expr.label("revenue_cents"),
        ).select_from(Order).join(Company, Order.company_id == Company.id).filter(
            Order.status != CANCELLED,
        )
        company_query = _in_range(company_query, Order.created_at, start, end)
        company_rows = scope.apply(company_query, Order.company_id).group_by(
            Company.id, Company.name
        ).order_by(revenue_expr.desc(), Company.name.asc()).all()

    product_revenue = func.coalesce(func.sum(OrderItem.unit_price_cents * OrderItem.quantity), 0)
    top_query = db.session.query(
        Product.id.label("product_id"),
        Product.name.label("product_name"),
        Product.sku.label("sku"),
        func.coalesce(func.sum(OrderItem.quantity), 0).label("total_sold"),
        product_revenue.label("revenue_cents"),
    ).select_from(OrderItem).join(
        Order, OrderItem.order_id == Order.id
    ).join(
        Product, OrderItem.product_id == Product.id
    ).filter(Order.status != CANCELLED)
    top_query = _in_range(top_query, Order.created_at, start, end)
    top_rows = scope.apply(top_query, Order.company_id).group_by(
        Product.id, Product.name, Product.sku
    ).order_by(product_revenue.desc(), Product.name.asc()).limit(top_limit).all()

    total_cents = sum(order.total_cents for order in orders)

    return ReportResult(
        payload={
            "summary": {
                "totalOrders": len(orders),
                "totalRevenue": cents_to_amount(total_cents),
                "averageOrderValue": _average_amount(total_cents, len(orders)),
            },
            "dailySales": [
                {
                    "date": to_date_str(row.day),
                    "ordersCount": int(row.orders_count or 0),
                    "totalRevenue": cents_to_amount(int(row.revenue_cents or 0)),
                    "avgOrderValue": _average_amount(int(row.revenue_cents or 0), int(row.orders_count or 0)),
                }
                for row in daily_rows
            ],
            "salesByCompany": [
                {
                    "companyId": row.company_id,
                    "companyName": row.company_name,
                    "ordersCount": int(row.orders_count or 0),
                    "totalRevenue": cents_to_amount(int(row.revenue_cents or 0)),
                    "avgOrderValue": _average_amount(int(row.revenue_cents or 0), int(row.orders_count or 0)),
                }
                for row in company_rows
            ],
            "topProducts": [
                {
                    "productName": row.product_name,
                    "sku": row.sku,
                    "totalSold": int(row.total_sold or 0),
                    "totalRevenue": cents_to_amount(int(row.revenue_cents or 0)),
                }
                for row in top_rows
            ],
            "orders": [_order_row(order) for order in orders],
        },
        headers=["Order Number", "Date", "Customer", "Company", "Total", "Status", "Items"],
        data=[
            [
                order.order_number,
                to_date_str(order.created_at),
                order.user.name if order.user else None,
                order.company.name if order.company else "N/A",
                cents_to_amount(order.total_cents),
                order.status,
                len(order.items),
            ]
            for order in orders
        ],
    )


# =============================================================================
# INVENTORY
# =============================================================================

def inventory_report(*, start: datetime, end: datetime, scope: ReportScope, role: str) -> ReportResult:
    # The catalog is shared; only the order-derived counts are company scoped.
    products = db.session.query(Product).options(
        joinedload(Product.category)
    ).order_by(Product.name.asc(), Product.id.asc()).all()

    sold_query = db.session.query(
        OrderItem.product_id,
        func.count(OrderItem.id).label("item_count"),
    ).join(Order, OrderItem.order_id == Order.id)
    sold_counts = {
        row.product_id: int(row.item_count or 0)
        for row in scope.apply(sold_query, Order.company_id).group_by(OrderItem.product_id).all()
    }

    rows = []
    for product in products:
        rows.append(
            {
                "name": product.name,
                "sku": product.sku,
                "category": product.category.name if product.category else None,
                "currentStock": product.stock,
                "minStock": product.min_stock,
                "price": cents_to_amount(product.price_cents),
                "inventoryValue": cents_to_amount(product.price_cents * product.stock),
                "status": product.status,
                "totalSold": sold_counts.get(product.id, 0),
                "stockStatus": _stock_status(product),
            }
        )

    # Out-of-stock products are also low-stock (stock 0 <= min_stock).
    low_stock = [row for row in rows if row["currentStock"] <= row["minStock"]]
    out_of_stock = [row for row in rows if row["currentStock"] == 0]
    value_cents = sum(product.price_cents * product.stock for product in products)

    return ReportResult(
        payload={
            "summary": {
                "totalProducts": len(products),
                "activeProducts": sum(1 for product in products if product.status == "ACTIVE"),
                "lowStockItems": len(low_stock),
                "outOfStockItems": len(out_of_stock),
                "totalInventoryValue": cents_to_amount(value_cents),
            },
            "lowStockProducts": low_stock,
            "outOfStockProducts": out_of_stock,
            "products": rows,
        },
        headers=[
            "Name", "SKU", "Category", "Current Stock", "Min Stock", "Price",
            "Inventory Value", "Status", "Total Sold", "Stock Status",
        ],
        data=[
            [
                row["name"],
                row["sku"],
                row["category"],
                row["currentStock"],
                row["minStock"],
                row["price"],
                row["inventoryValue"],
                row["status"],
                row["totalSold"],
                row["stockStatus"],
            ]
            for row in rows
        ],
    )


# =============================================================================
# CUSTOMERS
# =============================================================================

def customers_report(*, start: datetime, end: datetime, scope: ReportScope, role: str) -> ReportResult:
    users_query = db.session.query(User).options(joinedload(User.company))
    users = scope.apply(users_query, User.company_id).order_by(User.name.asc(), User.id.asc()).all()

    spent_expr = func.coalesce(
        func.sum(case((Order.status != CANCELLED, Order.total_cents), else_=0)), 0
    )
    activity_query = db.session.query(
        Order.user_id,
        func.count(Order.id).label("orders_count"),
        spent_expr.label("spent_cents"),
    )
    activity_query = _in_range(activity_query, Order.created_at, start, end)
    activity = {
        row.user_id: (int(row.orders_count or 0), int(row.spent_cents or 0))
        for row in scope.apply(activity_query, Order.company_id).group_by(Order.user_id).all()
    }

    customers = []
    data = []
    for user in users:
        orders_count, spent_cents = activity.get(user.id, (0, 0))
        company_name = user.company.name if user.company else "N/A"
        customers.append(
            {
                "name": user.name,
                "email": user.email,
                "company": company_name,
                "role": user.role,
                "joinDate": to_utc_z(user.created_at),
                "lastLogin": to_utc_z(user.last_login_at),
                "totalOrders": orders_count,
                "totalSpent": cents_to_amount(spent_cents),
                "isActive": user.is_active,
            }
        )
        data.append(
            [
                user.name,
                user.email,
                company_name,
                user.role,
                to_date_str(user.created_at),
                to_date_str(user.last_login_at) or "Never",
                orders_count,
                cents_to_amount(spent_cents),
                "Yes" if user.is_active else "No",
            ]
        )

    return ReportResult(
        payload={
            "summary": {
                "totalCustomers": len(users),
                "activeCustomers": sum(1 for user in users if activity.get(user.id, (0, 0))[0] > 0),
                "newCustomers": sum(
                    1 for user in users
                    if user.created_at is not None and start <= to_naive_utc(user.created_at) <= end
                ),
            },
            "customers": customers,
        },
        headers=[
            "Name", "Email", "Company", "Role", "Join Date", "Last Login",
            "Total Orders", "Total Spent", "Active",
        ],
        data=data,
    )


# =============================================================================
# PRODUCTS
# =============================================================================

def products_report(*, start: datetime, end: datetime, scope: ReportScope, role: str) -> ReportResult:
    products = db.session.query(Product).options(
        joinedload(Product.category)
    ).order_by(Product.name.asc(), Product.id.asc()).all()

    perf_query = db.session.query(
        OrderItem.product_id,
        func.coalesce(func.sum(OrderItem.quantity), 0).label("total_sold"),
        func.coalesce(func.sum(OrderItem.unit_price_cents * OrderItem.quantity), 0).label("revenue_cents"),
        func.max(Order.created_at).label("last_sold"),
    ).join(Order, OrderItem.order_id == Order.id).filter(Order.status != CANCELLED)
    perf_query = _in_range(perf_query, Order.created_at, start, end)
    performance = {
        row.product_id: row
        for row in scope.apply(perf_query, Order.company_id).group_by(OrderItem.product_id).all()
    }

    rows = []
    data = []
    for product in products:
        perf = performance.get(product.id)
        total_sold = int(perf.total_sold or 0) if perf else 0
        revenue = cents_to_amount(int(perf.revenue_cents or 0)) if perf else 0.0
        last_sold = perf.last_sold if perf else None
        if isinstance(last_sold, str):
            last_sold = parse_iso_datetime(last_sold)
        category_name = product.category.name if product.category else None

        rows.append(
            {
                "name": product.name,
                "sku": product.sku,
                "category": category_name,
                "price": cents_to_amount(product.price_cents),
                "stock": product.stock,
                "totalSold": total_sold,
                "revenue": revenue,
                "lastSold": to_utc_z(last_sold),
            }
        )
        data.append(
            [
                product.name,
                product.sku,
                category_name,
                cents_to_amount(product.price_cents),
                product.stock,
                total_sold,
                revenue,
                to_date_str(last_sold) or "Never",
            ]
        )

    return ReportResult(
        payload={"products": rows},
        headers=["Name", "SKU", "Category", "Price", "Stock", "Total Sold", "Revenue", "Last Sold"],
        data=data,
    )


# =============================================================================
# ORDERS
# =============================================================================

def orders_report(*, start: datetime, end: datetime, scope: ReportScope, role: str) -> ReportResult:
    orders_query = db.session.query(Order).options(
        joinedload(Order.user),
        joinedload(Order.company),
        selectinload(Order.items),
        selectinload(Order.payment_records),
    )
    orders_query = _in_range(orders_query, Order.created_at, start, end)
    orders = scope.apply(orders_query, Order.company_id).order_by(
        Order.created_at.desc(), Order.id.desc()
    ).all()

    status_counts: dict[str, int] = {}
    for order in orders:
        status_counts[order.status] = status_counts.get(order.status, 0) + 1

    revenue_cents = sum(order.total_cents for order in orders if order.status != CANCELLED)

    rows = []
    data = []
    for order in orders:
        payment_status = order.payment_records[0].status if order.payment_records else "Pending"
        row = _order_row(order)
        row["paymentStatus"] = payment_status
        rows.append(row)
        data.append(
            [
                order.order_number,
                to_date_str(order.created_at),
                row["customer"],
                row["company"],
                order.status,
                row["total"],
                row["itemCount"],
                payment_status,
            ]
        )

    return ReportResult(
        payload={
            "summary": {
                "totalOrders": len(orders),
                "statusBreakdown": status_counts,
                "totalRevenue": cents_to_amount(revenue_cents),
            },
            "orders": rows,
        },
        headers=["Order Number", "Date", "Customer", "Company", "Status", "Total", "Items", "Payment Status"],
        data=data,
    )


# =============================================================================
# AUDIT
# =============================================================================

def audit_report(*, start: datetime, end: datetime, scope: ReportScope, role: str) -> ReportResult:
    # Soft denial: a normal 200 body, not a 403
    if not role_has_capability(role, "VIEW_AUDIT_LOGS"):
        return ReportResult(payload={"error": AUDIT_SOFT_DENIAL}, denied=True)

    limit = _config("REPORT_AUDIT_ROW_LIMIT", DEFAULT_AUDIT_ROW_LIMIT)
    query = _in_range(db.session.query(AuditLog), AuditLog.timestamp, start, end)
    logs = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()

    action_counts: dict[str, int] = {}
    severity_counts: dict[str, int] = {}
    for log in logs:
        action_counts[log.action] = action_counts.get(log.action, 0) + 1
        severity_counts[log.severity] = severity_counts.get(log.severity, 0) + 1

    return ReportResult(
        payload={
            "summary": {
                "totalLogs": len(logs),
                "actionBreakdown": action_counts,
                "severityBreakdown": severity_counts,
                "uniqueUsers": len({log.user_id for log in logs if log.user_id is not None}),
            },
            "auditLogs": [
                {
                    "timestamp": to_utc_z(log.timestamp),
                    "action": log.action,
                    "resource": log.resource,
                    "userName": log.user_name,
                    "userEmail": log.user_email,
                    "severity": log.severity,
                    "category": log.category,
                    "ipAddress": log.ip_address,
                }
                for log in logs
            ],
        },
        headers=["Timestamp", "Action", "Resource", "User Name", "User Email", "Severity", "Category", "IP Address"],
        data=[
            [
                to_utc_z(log.timestamp),
                log.action,
                log.resource,
                log.user_name,
                log.user_email,
                log.severity,
                log.category,
                log.ip_address,
            ]
            for log in logs
        ],
    )


_GENERATORS = {
    "sales": sales_report,
    "inventory": inventory_report,
    "customers": customers_report,
    "products": products_report,
    "orders": orders_report,
    "audit": audit_report,
}


def generate_report(
    report_type: str,
    *,
    start: datetime,
    end: datetime,
    scope: ReportScope,
    role: str,
) -> ReportResult:
    """
    Run the aggregation for one report type.

    Queries run one after another in a single read-only transaction; any
    failure propagates and no partial result is returned.
    """
    generator = _GENERATORS.get(check_report_type(report_type))
    with read_only_unit():
        return generator(start=start, end=end, scope=scope, role=role)


def build_envelope(
    report_type: str,
    *,
    start: datetime,
    end: datetime,
    generated_by: dict,
    result: ReportResult,
    generated_at: datetime | None = None,
) -> dict:
    """JSON body: common header fields followed by the type-specific payload."""
    envelope = {
        "reportType": report_type,
        "dateRange": {"from": to_utc_z(start), "to": to_utc_z(end)},
        "generatedAt": to_utc_z(generated_at or utcnow()),
        "generatedBy": generated_by,
    }
    envelope.update(result.payload)
    if not result.denied:
        envelope["headers"] = result.headers
        envelope["data"] = result.data
    return envelope


def csv_filename(report_type: str, today: datetime | None = None) -> str:
    day = (today or utcnow()).date().isoformat()
    return f"{report_type}_report_{day}.csv"
