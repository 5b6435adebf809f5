"""
Direct DTO projection queries for orders.

These queries select scalar columns straight into response DTOs, so no
entity is loaded into the session at all. The query shape is tied to one
response shape and is not reusable for anything else.
"""

from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..dto import AddressDto, OrderItemQueryDto, OrderQueryDto, SimpleOrderQueryDto
from ..models import Delivery, Item, Member, Order, OrderItem


class OrderQueryRepository:
    """Read-only projection queries over the order tables."""

    def __init__(self, db: Session):
        self.db = db

    def _order_rows(self, offset: int = 0, limit: Optional[int] = None):
        stmt = (
            select(
                Order.id,
                Member.name,
                Order.order_date,
                Order.status,
                Delivery.city,
                Delivery.street,
                Delivery.zipcode,
            )
            .join(Order.member)
            .join(Order.delivery)
            .order_by(Order.id)
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return self.db.execute(stmt).all()

    def find_simple_order_query_dtos(self) -> List[SimpleOrderQueryDto]:
        """One query: order, member name and delivery address."""
        return [
            SimpleOrderQueryDto(
                order_id=row.id,
                name=row.name,
                order_date=row.order_date,
                order_status=row.status,
                address=AddressDto(city=row.city, street=row.street, zipcode=row.zipcode),
            )
            for row in self._order_rows()
        ]

    def find_order_query_dtos(self, offset: int = 0, limit: Optional[int] = None) -> List[OrderQueryDto]:
        """
        Two queries: the (paged) order rows, then all their item rows.

        Item rows are fetched with a single IN clause over the order ids
        from the first query and grouped in memory. With no orders the
        second query is skipped.
        """
        orders = [
            OrderQueryDto(
                order_id=row.id,
                name=row.name,
                order_date=row.order_date,
                order_status=row.status,
                address=AddressDto(city=row.city, street=row.street, zipcode=row.zipcode),
            )
            for row in self._order_rows(offset, limit)
        ]
        if not orders:
            return orders

        items_by_order = self._find_order_item_map([order.order_id for order in orders])
        for order in orders:
            order.order_items = items_by_order.get(order.order_id, [])
        return orders

    def _find_order_item_map(self, order_ids: List[int]) -> Dict[int, List[OrderItemQueryDto]]:
        stmt = (
            select(
                OrderItem.order_id,
                Item.name.label("item_name"),
                OrderItem.order_price,
                OrderItem.count.label("item_count"),
            )
            .join(OrderItem.item)
            .where(OrderItem.order_id.in_(order_ids))
            .order_by(OrderItem.order_id, OrderItem.id)
        )
        grouped: Dict[int, List[OrderItemQueryDto]] = defaultdict(list)
        for row in self.db.execute(stmt):
            grouped[row.order_id].append(
                OrderItemQueryDto(
                    order_id=row.order_id,
                    item_name=row.item_name,
                    order_price=row.order_price,
                    count=row.item_count,
                )
            )
        return grouped
