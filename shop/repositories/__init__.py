"""
Repository layer - Data access over the SQLAlchemy session.
"""

from .item_repository import ItemRepository
from .member_repository import MemberRepository
from .order_repository import OrderRepository, OrderSearch

__all__ = ["ItemRepository", "MemberRepository", "OrderRepository", "OrderSearch"]
