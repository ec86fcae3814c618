"""Storefront API package."""

from storefront.api.routes import offer_router, order_router, task_router

__all__ = ["order_router", "task_router", "offer_router"]
