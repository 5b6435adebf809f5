"""
Service layer - Use cases orchestrating repositories and transactions.
"""

from .item_service import ItemService
from .member_service import MemberService
from .order_query_service import OrderQueryService, OrderQueryStrategy, QueryResult
from .order_service import OrderService

__all__ = [
    "ItemService",
    "MemberService",
    "OrderQueryService",
    "OrderQueryStrategy",
    "OrderService",
    "QueryResult",
]
