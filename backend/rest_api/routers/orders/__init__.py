"""
Orders routers - /api/orders/*
Handles order placement, payment confirmation and individual completion.
"""

from .routes import router

__all__ = ["router"]
