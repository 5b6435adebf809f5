"""
Order persistence and entity-returning order queries.

Each finder returns ``LoadedOrders`` tagged with exactly what its SQL
materialized:

- ``find_all``: orders only, every association lazy
- ``find_all_with_member_delivery``: to-one fetch join, paginated in SQL
- ``find_all_with_items``: to-one and order item fetch join in one query

Only ``order_items`` can ever be fetch-joined. Joining a second collection
in the same statement would multiply rows across both collections, so no
finder offers it.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

import structlog
from sqlalchemy import Select, select
from sqlalchemy.orm import Session, contains_eager
from sqlalchemy.orm.attributes import set_committed_value

from ..domain.exceptions import EntityNotFoundException
from ..models import Member, Order, OrderItem, OrderStatus
from .fetching import ALL_ASSOCIATIONS, TO_ONE_ASSOCIATIONS, LoadedOrders, deduplicate_by_primary_key

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrderSearch:
    """
    Order filter.

    Attributes:
        member_name: Case-insensitive literal substring of the member name
            (``%`` and ``_`` are not wildcards)
        order_status: Exact status match
    """

    member_name: Optional[str] = None
    order_status: Optional[OrderStatus] = None


class OrderRepository:
    """SQLAlchemy access to orders."""

    def __init__(self, db: Session):
        """
        Initialize repository.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def save(self, order: Order) -> Order:
        """Add the order with its delivery and items, and flush."""
        self.db.add(order)
        self.db.flush()
        return order

    def find_one(self, order_id: int) -> Order:
        """
        Get order by ID.

        Raises:
            EntityNotFoundException: If no order has this id
        """
        order = self.db.get(Order, order_id)
        if order is None:
            raise EntityNotFoundException("Order", order_id)
        return order

    @staticmethod
    def _apply_search(stmt: Select, search: Optional[OrderSearch]) -> Select:
        """Add search criteria. ``stmt`` must already join ``Order.member``."""
        if search is None:
            return stmt
        if search.order_status is not None:
            stmt = stmt.where(Order.status == search.order_status)
        if search.member_name:
            stmt = stmt.where(Member.name.icontains(search.member_name, autoescape=True))
        return stmt

    def find_all(self, search: Optional[OrderSearch] = None) -> LoadedOrders:
        """
        Find orders without loading any association.

        The member join only serves filtering; ``member`` stays lazy.
        """
        stmt = select(Order).join(Order.member)
        stmt = self._apply_search(stmt, search).order_by(Order.id)

        orders = list(self.db.scalars(stmt))
        return LoadedOrders(orders=orders, loaded=frozenset())

    def find_all_with_member_delivery(
        self,
        offset: int = 0,
        limit: Optional[int] = None,
        search: Optional[OrderSearch] = None,
    ) -> LoadedOrders:
        """
        Find orders with member and delivery fetch-joined.

        To-one joins do not multiply rows, so offset/limit go to the
        database as-is.
        """
        stmt = (
            select(Order)
            .join(Order.member)
            .join(Order.delivery)
            .options(contains_eager(Order.member), contains_eager(Order.delivery))
        )
        stmt = self._apply_search(stmt, search).order_by(Order.id).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        orders = list(self.db.scalars(stmt))
        return LoadedOrders(orders=orders, loaded=TO_ONE_ASSOCIATIONS)

    def find_all_with_items(self, offset: int = 0, limit: Optional[int] = None) -> LoadedOrders:
        """
        Find orders with the whole graph in a single query.

        The result has one row per order item, so each order repeats.
        Rows are deduplicated by primary key after loading. Any
        offset/limit is applied in memory to the deduplicated orders,
        since paging the joined rows in SQL would cut orders apart.
        """
        stmt = (
            select(Order, OrderItem)
            .join(Order.member)
            .join(Order.delivery)
            .outerjoin(Order.order_items)
            .outerjoin(OrderItem.item)
            .options(
                contains_eager(Order.member),
                contains_eager(Order.delivery),
                contains_eager(OrderItem.item),
            )
            .order_by(Order.id, OrderItem.id)
        )
        rows = self.db.execute(stmt).all()

        items_by_order: Dict[int, List[OrderItem]] = defaultdict(list)
        for order, order_item in rows:
            if order_item is not None:
                items_by_order[order.id].append(order_item)

        orders = deduplicate_by_primary_key(order for order, _ in rows)
        for order in orders:
            set_committed_value(order, "order_items", items_by_order.get(order.id, []))

        if offset or limit is not None:
            logger.warning(
                "Collection fetch join paged in memory",
                rows=len(rows),
                orders=len(orders),
                offset=offset,
                limit=limit,
            )
            end = None if limit is None else offset + limit
            orders = orders[offset:end]

        return LoadedOrders(orders=orders, loaded=ALL_ASSOCIATIONS)
