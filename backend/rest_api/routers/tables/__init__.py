"""
Tables routers - /api/tables/*
Handles table closure, open orders of a table and table status.
"""

from .routes import router

__all__ = ["router"]
