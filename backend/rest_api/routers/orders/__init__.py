"""
Order routers - /api/orders/*
Staff-facing order mutations.
"""

from .items import router as items_router

router = items_router

__all__ = ["router", "items_router"]
