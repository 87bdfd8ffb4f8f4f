"""
Kitchen routers - /api/kitchen/*
Handles kitchen staff operations on the order queue.
"""

from .orders import router

__all__ = ["router"]
