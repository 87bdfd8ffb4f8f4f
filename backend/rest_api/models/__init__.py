"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class, TimestampMixin, shared column types
- table: Table, DiningSession
- catalog: Product, ProductVariant
- order: Order, OrderItem, OrderNote
- billing: ConsolidatedOrder, ConsolidatedOrderItem
- audit: TableClosureRecord
"""

# Base classes
from .base import Base, TimestampMixin, utcnow

# Tables and dining sessions
from .table import Table, DiningSession

# Catalog
from .catalog import Product, ProductVariant

# Orders
from .order import Order, OrderItem, OrderNote

# Consolidated invoices
from .billing import ConsolidatedOrder, ConsolidatedOrderItem, ImmutableRecordError

# Audit
from .audit import TableClosureRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "utcnow",
    "Table",
    "DiningSession",
    "Product",
    "ProductVariant",
    "Order",
    "OrderItem",
    "OrderNote",
    "ConsolidatedOrder",
    "ConsolidatedOrderItem",
    "ImmutableRecordError",
    "TableClosureRecord",
]
