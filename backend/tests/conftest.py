"""
Pytest fixtures for portal backend tests.

Provides test database setup, companies, one user per role, bearer
session helpers, and builders for catalog, order and audit rows.
"""

from datetime import datetime

import pytest
from portal import create_app
from portal.extensions import db
from portal.models import (
    AuditLog, Category, Company, Order, OrderItem, PaymentRecord, Product, User,
)
from portal.permissions import Role
from portal.services.session_service import create_session


# Fixed window used by most report tests
MARCH_FROM = "2026-03-01"
MARCH_TO = "2026-03-31"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_ENGINE_OPTIONS': {},
        'REPORT_SLOW_THRESHOLD_MS': 60000,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def company_a(db_session):
    """Create Company A."""
    company = Company(name="Acme Retail", email="orders@acme.example")
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture(scope='function')
def company_b(db_session):
    """Create Company B."""
    company = Company(name="Beta Wholesale", email="buying@beta.example")
    db_session.add(company)
    db_session.commit()
    return company


def make_user(db_session, name, email, role, company=None, created_at=None, is_active=True):
    user = User(
        name=name,
        email=email,
        role=role,
        company_id=company.id if company else None,
        is_active=is_active,
    )
    if created_at is not None:
        user.created_at = created_at
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def super_admin(db_session):
    return make_user(db_session, "Sam Super", "super@portal.test", Role.SUPER_ADMIN)


@pytest.fixture(scope='function')
def operation_user(db_session):
    return make_user(db_session, "Olive Ops", "ops@portal.test", Role.OPERATION)


@pytest.fixture(scope='function')
def account_admin_a(db_session, company_a):
    return make_user(db_session, "Ada Admin", "admin@acme.example", Role.ACCOUNT_ADMIN, company_a)


@pytest.fixture(scope='function')
def buyer_a(db_session, company_a):
    return make_user(db_session, "Ben Buyer", "buyer@acme.example", Role.BUYER, company_a)


@pytest.fixture(scope='function')
def buyer_b(db_session, company_b):
    return make_user(db_session, "Bea Buyer", "buyer@beta.example", Role.BUYER, company_b)


def auth_headers(user) -> dict:
    """Issue a session for the user and return Authorization headers."""
    _, token = create_session(user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def super_admin_headers(super_admin):
    return auth_headers(super_admin)


@pytest.fixture(scope='function')
def operation_headers(operation_user):
    return auth_headers(operation_user)


@pytest.fixture(scope='function')
def account_admin_headers(account_admin_a):
    return auth_headers(account_admin_a)


@pytest.fixture(scope='function')
def buyer_headers(buyer_a):
    return auth_headers(buyer_a)


@pytest.fixture(scope='function')
def category(db_session):
    category = Category(name="Fashion", slug="fashion")
    db_session.add(category)
    db_session.commit()
    return category


def make_product(db_session, category, sku, *, name=None, price_cents=1000, stock=10, min_stock=5, status="ACTIVE"):
    product = Product(
        category_id=category.id,
        name=name or f"Product {sku}",
        sku=sku,
        price_cents=price_cents,
        stock=stock,
        min_stock=min_stock,
        status=status,
    )
    db_session.add(product)
    db_session.commit()
    return product


def make_order(
    db_session,
    number,
    user,
    total_cents,
    created_at,
    *,
    status="DELIVERED",
    company=None,
    items=(),
    payment_status=None,
):
    """
    Create an order.

    company defaults to the user's company. items is a sequence of
    (product, quantity, unit_price_cents).
    """
    order = Order(
        order_number=number,
        status=status,
        subtotal_cents=total_cents,
        total_cents=total_cents,
        user_id=user.id,
        company_id=company.id if company is not None else user.company_id,
        created_at=created_at,
    )
    db_session.add(order)
    db_session.flush()
    for product, quantity, unit_price_cents in items:
        db_session.add(OrderItem(
            order_id=order.id,
            product_id=product.id,
            quantity=quantity,
            unit_price_cents=unit_price_cents,
        ))
    if payment_status:
        db_session.add(PaymentRecord(order_id=order.id, status=payment_status, amount_cents=total_cents))
    db_session.commit()
    return order


def make_audit_log(db_session, action, timestamp, *, user=None, severity="info", category="system"):
    log = AuditLog(
        timestamp=timestamp,
        action=action,
        resource="user",
        resource_id="1",
        user_id=user.id if user else None,
        user_email=user.email if user else None,
        user_name=user.name if user else None,
        severity=severity,
        category=category,
        ip_address="10.0.0.1",
    )
    db_session.add(log)
    db_session.commit()
    return log


@pytest.fixture(scope='function')
def march_sales(db_session, category, company_a, company_b, buyer_a, buyer_b):
    """
    Orders in March 2026 across two companies.

    Company A: 100.00 + 50.00 delivered, 500.00 cancelled.
    Company B: 80.00 shipped.
    """
    tee = make_product(db_session, category, "TEE-1", name="Tee", price_cents=2500)
    cap = make_product(db_session, category, "CAP-1", name="Cap", price_cents=1000)

    orders = [
        make_order(
            db_session, "ORD-A1", buyer_a, 10000, datetime(2026, 3, 2, 10, 0),
            items=[(tee, 4, 2500)], payment_status="COMPLETED",
        ),
        make_order(
            db_session, "ORD-A2", buyer_a, 5000, datetime(2026, 3, 2, 15, 30),
            items=[(cap, 5, 1000)],
        ),
        make_order(
            db_session, "ORD-A3", buyer_a, 50000, datetime(2026, 3, 3, 9, 0),
            status="CANCELLED", items=[(tee, 20, 2500)],
        ),
        make_order(
            db_session, "ORD-B1", buyer_b, 8000, datetime(2026, 3, 4, 12, 0),
            status="SHIPPED", items=[(cap, 8, 1000)], payment_status="PENDING",
        ),
    ]
    return {"products": {"tee": tee, "cap": cap}, "orders": orders}
