# Overview: Flask CLI command groups for bootstrap, sessions, and report generation.

# backend/portal/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Idempotent demo data: companies, catalog, one user per role, orders, audit rows.
#
# Sessions (stand-in for the sign-in service):
# - python -m flask sessions issue admin@portal.local
#   Print a bearer token for the user.
# - python -m flask sessions revoke <token>
#   Revoke a bearer token.
#
# Reports:
# - python -m flask reports generate --email admin@portal.local --type sales --format csv
#   Run a report as that user and print the JSON or CSV body.
# - python -m flask reports capabilities
#   Show which capabilities each role resolves to.

import json
from datetime import timedelta

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import (
    AuditLog,
    Category,
    Company,
    Order,
    OrderItem,
    PaymentRecord,
    Product,
    User,
)
from .permissions import (
    ALL_ROLES,
    Role,
    get_all_capability_codes,
    get_capability_definition,
    get_role_capabilities,
    validate_role,
)
from .services import reporting_service, session_service
from .services.csv_export import to_csv
from .services.reporting_service import ReportError
from .services.tenant_service import ScopeError, resolve_report_scope
from .time_utils import utcnow


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


DEMO_COMPANIES = [
    ("Acme Retail", "orders@acme.example"),
    ("Beta Wholesale", "buying@beta.example"),
]

DEMO_CATEGORIES = [
    ("Fashion", "fashion"),
    ("Accessories", "accessories"),
    ("Footwear", "footwear"),
]

# (name, sku, category slug, price_cents, stock, min_stock, status)
DEMO_PRODUCTS = [
    ("Classic Tee", "TEE-001", "fashion", 1999, 120, 20, "ACTIVE"),
    ("Denim Jacket", "JKT-002", "fashion", 8950, 4, 10, "ACTIVE"),
    ("Leather Belt", "BLT-003", "accessories", 2500, 0, 5, "ACTIVE"),
    ("Canvas Tote", "TOT-004", "accessories", 1500, 60, 15, "INACTIVE"),
    ("Trail Runner", "SHO-005", "footwear", 12000, 18, 6, "ACTIVE"),
]


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """
    Seed demo data for local report runs.

    Creates two companies, a small catalog, one user per role (password-less;
    use `flask sessions issue` for tokens), orders across the last three weeks
    and a handful of audit rows. Skips if any company already exists.
    """
    if db.session.query(Company).first():
        click.echo("WARN  Companies already exist, skipping demo seed")
        return

    now = utcnow()

    companies = []
    for name, email in DEMO_COMPANIES:
        company = Company(name=name, email=email)
        db.session.add(company)
        companies.append(company)

    categories = {}
    for name, slug in DEMO_CATEGORIES:
        category = Category(name=name, slug=slug)
        db.session.add(category)
        categories[slug] = category
    db.session.flush()

    products = []
    for name, sku, slug, price, stock, min_stock, status in DEMO_PRODUCTS:
        product = Product(
            name=name,
            sku=sku,
            category_id=categories[slug].id,
            price_cents=price,
            stock=stock,
            min_stock=min_stock,
            status=status,
        )
        db.session.add(product)
        products.append(product)

    users = {
        Role.SUPER_ADMIN: User(name="Super Admin", email="admin@portal.local", role=Role.SUPER_ADMIN),
        Role.OPERATION: User(name="Ops Lead", email="ops@portal.local", role=Role.OPERATION),
        Role.ACCOUNT_ADMIN: User(
            name="Acme Admin", email="admin@acme.example", role=Role.ACCOUNT_ADMIN, company=companies[0]
        ),
        Role.BUYER: User(name="Acme Buyer", email="buyer@acme.example", role=Role.BUYER, company=companies[0]),
    }
    beta_buyer = User(name="Beta Buyer", email="buyer@beta.example", role=Role.BUYER, company=companies[1])
    db.session.add_all(list(users.values()) + [beta_buyer])
    db.session.flush()

    statuses = ["DELIVERED", "SHIPPED", "PROCESSING", "CONFIRMED", "PENDING", "CANCELLED"]
    for index in range(12):
        buyer = users[Role.BUYER] if index % 2 == 0 else beta_buyer
        product = products[index % len(products)]
        quantity = 1 + index % 3
        subtotal = product.price_cents * quantity
        tax = subtotal // 10
        order = Order(
            order_number=f"ORD-{index + 1:06d}",
            status=statuses[index % len(statuses)],
            subtotal_cents=subtotal,
            tax_cents=tax,
            shipping_cents=500,
            discount_cents=0,
            total_cents=subtotal + tax + 500,
            user_id=buyer.id,
            company_id=buyer.company_id,
            created_at=now - timedelta(days=index * 2, hours=index),
        )
        db.session.add(order)
        db.session.flush()
        db.session.add(OrderItem(
            order_id=order.id,
            product_id=product.id,
            quantity=quantity,
            unit_price_cents=product.price_cents,
        ))
        db.session.add(PaymentRecord(
            order_id=order.id,
            status="COMPLETED" if order.status in ("DELIVERED", "SHIPPED") else "PENDING",
            payment_method="invoice",
            amount_cents=order.total_cents,
        ))

    admin = users[Role.SUPER_ADMIN]
    for index, (action, resource, severity, category) in enumerate([
        ("USER_CREATED", "user", "info", "user_management"),
        ("LOGIN_FAILED", "session", "warning", "authentication"),
        ("SETTINGS_UPDATED", "settings", "info", "system"),
        ("PRODUCT_DELETED", "product", "warning", "data"),
    ]):
        db.session.add(AuditLog(
            timestamp=now - timedelta(days=index),
            action=action,
            resource=resource,
            resource_id=str(index + 1),
            user_id=admin.id,
            user_email=admin.email,
            user_name=admin.name,
            severity=severity,
            category=category,
            ip_address="127.0.0.1",
        ))

    db.session.commit()
    click.echo(f"PASS Seeded {len(companies)} companies, {len(products)} products, 12 orders")
    for role, user in users.items():
        click.echo(f"   {role:<14} -> {user.email}")


@click.group('sessions')
def sessions_group():
    """Bearer session commands."""


@sessions_group.command('issue')
@click.argument('email')
@with_appcontext
def issue_session(email):
    """Print a bearer token for the user with EMAIL."""
    user = db.session.query(User).filter_by(email=email).first()
    if not user:
        click.echo(f"FAIL No user with email {email}")
        raise SystemExit(1)
    if not user.is_active:
        click.echo(f"FAIL User {email} is deactivated")
        raise SystemExit(1)
    session, token = session_service.create_session(user.id)
    click.echo(token)
    click.echo(f"expires {session.expires_at.isoformat()}Z", err=True)


@sessions_group.command('revoke')
@click.argument('token')
@with_appcontext
def revoke_session(token):
    """Revoke a bearer token."""
    if session_service.revoke_session(token):
        click.echo("PASS Session revoked")
    else:
        click.echo("WARN  Unknown or already revoked token")


@click.group('reports')
def reports_group():
    """Report generation commands."""


@reports_group.command('generate')
@click.option('--email', required=True, help='Run the report as this user')
@click.option('--type', 'report_type', default='sales', show_default=True,
              type=click.Choice(reporting_service.REPORT_TYPES))
@click.option('--format', 'fmt', default='json', show_default=True, type=click.Choice(['json', 'csv']))
@click.option('--date-from', default=None, help='ISO date or datetime')
@click.option('--date-to', default=None, help='ISO date or datetime')
@click.option('--company-id', default=None, type=int)
@with_appcontext
def generate_report(email, report_type, fmt, date_from, date_to, company_id):
    """Run a report with the same scoping rules as GET /api/reports."""
    user = db.session.query(User).filter_by(email=email).first()
    if not user:
        click.echo(f"FAIL No user with email {email}")
        raise SystemExit(1)
    if not validate_role(user.role):
        click.echo(f"FAIL User {email} has unknown role {user.role}")
        raise SystemExit(1)

    capabilities = get_role_capabilities(user.role)
    if "GENERATE_REPORTS" not in capabilities or (fmt == "csv" and "EXPORT_REPORTS" not in capabilities):
        click.echo(f"FAIL Role {user.role} may not generate this report")
        raise SystemExit(1)

    try:
        scope = resolve_report_scope(user.role, user.company_id, company_id)
        start, end = reporting_service.resolve_date_range(
            date_from,
            date_to,
            window_days=current_app.config.get(
                "REPORT_DEFAULT_WINDOW_DAYS", reporting_service.DEFAULT_WINDOW_DAYS
            ),
        )
        result = reporting_service.generate_report(
            report_type, start=start, end=end, scope=scope, role=user.role
        )
    except (ReportError, ScopeError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    if fmt == "csv" and not result.denied:
        click.echo(to_csv(
            result.headers,
            result.data,
            quote_style=current_app.config.get("REPORT_CSV_QUOTE_STYLE", "rfc4180"),
        ))
        return

    envelope = reporting_service.build_envelope(
        report_type,
        start=start,
        end=end,
        generated_by={"name": user.name, "email": user.email},
        result=result,
    )
    click.echo(json.dumps(envelope, indent=2, default=str))


@reports_group.command('capabilities')
def list_capabilities():
    """List capability definitions, then the capability set for every role."""
    for code in get_all_capability_codes():
        definition = get_capability_definition(code)
        click.echo(f"{code:<24} [{definition['category']}] {definition['description']}")
    click.echo("")
    for role in ALL_ROLES:
        caps = sorted(get_role_capabilities(role))
        click.echo(f"{role:<14} {', '.join(caps) if caps else '(none)'}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(sessions_group)
    app.cli.add_command(reports_group)
