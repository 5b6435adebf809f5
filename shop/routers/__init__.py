"""
API routers for shop service endpoints.
"""

from . import (
    health_router,
    item_router,
    member_router,
    order_api_router,
    order_router,
    order_simple_api_router,
)

__all__ = [
    "health_router",
    "item_router",
    "member_router",
    "order_api_router",
    "order_router",
    "order_simple_api_router",
]
