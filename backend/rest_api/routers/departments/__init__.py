"""
Department routers - /api/kitchen/* and /api/bar/*
Read-only dashboards for kitchen and bar staff.
"""

from .dashboards import kitchen_router, bar_router

__all__ = ["kitchen_router", "bar_router"]
