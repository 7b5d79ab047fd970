from .companies import Company
from .catalog import Category, Product
from .orders import Order, OrderItem, PaymentRecord, CANCELLED
from .auth import User, SessionToken
from .audit import AuditLog

__all__ = [
    'Company',
    'Category', 'Product',
    'Order', 'OrderItem', 'PaymentRecord', 'CANCELLED',
    'User', 'SessionToken',
    'AuditLog',
]
