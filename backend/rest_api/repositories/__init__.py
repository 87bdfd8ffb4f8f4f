"""
Repository Pattern implementation.
Centralizes data access with guaranteed eager loading.

Usage:
    from rest_api.repositories import OrderRepository, OrderFilters

    repo = OrderRepository(db)
    orders = repo.find_all(OrderFilters(table_number="12", statuses=["pending"]))
    order = repo.find_by_id(123, for_update=True)
"""

from .base import BaseRepository, RepositoryFilters
from .order import OrderRepository, OrderFilters
from .catalog import CatalogRepository, ResolvedProduct
from .table import TableRepository, TableFilters, DiningSessionRepository
from .billing import ConsolidatedOrderRepository

__all__ = [
    # Base
    "BaseRepository",
    "RepositoryFilters",
    # Order
    "OrderRepository",
    "OrderFilters",
    # Catalog
    "CatalogRepository",
    "ResolvedProduct",
    # Table
    "TableRepository",
    "TableFilters",
    "DiningSessionRepository",
    # Billing
    "ConsolidatedOrderRepository",
]
