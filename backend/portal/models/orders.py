from __future__ import annotations

from ..extensions import db


CANCELLED = "CANCELLED"


class Order(db.Model):
    """
    Customer order.

    By convention total = subtotal + tax + shipping - discount (not enforced).
    CANCELLED orders never count towards revenue.
    """
    __tablename__ = "orders"
    __table_args__ = (
        # Composite index for company-scoped report queries by status and date
        db.Index("ix_orders_company_status_created", "company_id", "status", "created_at"),
        db.Index("ix_orders_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable order number (e.g., "ORD-000123")
    order_number = db.Column(db.String(64), nullable=False, unique=True)

    status = db.Column(db.String(16), nullable=False, default="PENDING", index=True)

    # Money in cents
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    shipping_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", backref=db.backref("orders", lazy=True))
    company = db.relationship("Company", backref=db.backref("orders", lazy=True))


class OrderItem(db.Model):
    """Order line. unit_price_cents is a snapshot and may differ from the current product price."""
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", backref=db.backref("items", lazy=True, order_by="OrderItem.id"))
    product = db.relationship("Product", backref=db.backref("order_items", lazy=True))


class PaymentRecord(db.Model):
    """Payment attempt against an order; the first record drives the reported payment status."""
    __tablename__ = "payment_records"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default="PENDING")  # PENDING, COMPLETED, FAILED, REFUNDED
    payment_method = db.Column(db.String(32), nullable=True)
    amount_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship(
        "Order",
        backref=db.backref("payment_records", lazy=True, order_by="PaymentRecord.id"),
    )
