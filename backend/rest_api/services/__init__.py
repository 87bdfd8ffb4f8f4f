"""
Services module for business logic.

CLEAN ARCHITECTURE:
- domain/: Application services (business logic), called by the routers
- events/: Order notifications over Redis pub/sub

Usage:
    from rest_api.services.domain import KitchenService
    service = KitchenService(db, notifier)
    service.mark_ready(order_id, "beverage")
"""
