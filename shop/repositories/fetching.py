"""
Association loading helpers for the order graph.

Repositories hand back a ``LoadedOrders`` result: the orders plus the set of
association paths that are already materialized on them. Everything that
needs the graph (DTO mapping in particular) checks that tag instead of
touching lazy attributes and hoping for the best.

Also here: explicit initialization for the lazy strategies, primary-key
deduplication for fetch-joined rows, and the batch-fetch resolver for
paginated collection loading.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Hashable, Iterable, Iterator, List, Sequence, TypeVar

import structlog
from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.attributes import set_committed_value

from ..domain.exceptions import AssociationNotLoadedException
from ..models import Order, OrderItem

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Association paths, relative to Order
MEMBER = "member"
DELIVERY = "delivery"
ORDER_ITEMS = "order_items"
ORDER_ITEMS_ITEM = "order_items.item"

TO_ONE_ASSOCIATIONS: FrozenSet[str] = frozenset({MEMBER, DELIVERY})
ALL_ASSOCIATIONS: FrozenSet[str] = TO_ONE_ASSOCIATIONS | {ORDER_ITEMS, ORDER_ITEMS_ITEM}


@dataclass(frozen=True)
class LoadedOrders:
    """
    Orders together with the association paths already loaded on them.

    Attributes:
        orders: Order entities, in result order, without duplicates
        loaded: Dotted association paths that are materialized on every order
    """

    orders: List[Order] = field(default_factory=list)
    loaded: FrozenSet[str] = frozenset()

    def __len__(self) -> int:
        return len(self.orders)

    def __iter__(self) -> Iterator[Order]:
        return iter(self.orders)

    def require(self, *paths: str) -> None:
        """
        Fail unless every path in ``paths`` is loaded.

        Raises:
            AssociationNotLoadedException: Listing the missing paths.
        """
        missing = set(paths) - self.loaded
        if missing:
            raise AssociationNotLoadedException(missing, self.loaded)

    def with_loaded(self, *paths: str) -> "LoadedOrders":
        return LoadedOrders(orders=self.orders, loaded=self.loaded | frozenset(paths))


def _walk(instances: Iterable[object], parts: Sequence[str]) -> None:
    if not parts:
        return

    key, rest = parts[0], parts[1:]
    children: List[object] = []
    for instance in instances:
        # AttributeState.value fires the lazy loader if needed
        value = sa_inspect(instance).attrs[key].value
        if value is None:
            continue
        if isinstance(value, list):
            children.extend(value)
        else:
            children.append(value)

    _walk(children, rest)


def initialize_associations(loaded: LoadedOrders, *paths: str) -> LoadedOrders:
    """
    Force lazy associations to load, one access at a time.

    This is the N+1 path: each uninitialized association costs a query
    per parent. Used by the entity strategies to make the cost explicit
    and to tag the result accordingly.

    Args:
        loaded: Orders to initialize
        paths: Dotted association paths, e.g. ``"order_items.item"``

    Returns:
        The same orders tagged with ``paths`` as loaded
    """
    for path in paths:
        _walk(loaded.orders, path.split("."))
    return loaded.with_loaded(*paths)


def deduplicate_by_primary_key(entities: Iterable[T]) -> List[T]:
    """
    Drop repeated entities, keeping the first one seen for each primary key.

    Joined result sets repeat the parent once per child row. Order of
    first appearance is preserved.
    """
    seen: Dict[Hashable, T] = {}
    for entity in entities:
        key = sa_inspect(entity).identity
        if key not in seen:
            seen[key] = entity
    return list(seen.values())


def chunked(values: Sequence[T], size: int) -> List[List[T]]:
    """Split ``values`` into consecutive chunks of at most ``size`` elements."""
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [list(values[i : i + size]) for i in range(0, len(values), size)]


class BatchFetchResolver:
    """
    Load ``Order.order_items`` for many orders with grouped IN queries.

    Orders whose collection is still unloaded are sorted by id and split
    into batches of ``batch_size``. Each batch costs exactly one query,
    which also joins the referenced item (a to-one join, so row count is
    unaffected). The fetched rows are installed as the committed
    collection value so later access does not hit the database.
    """

    def __init__(self, db: Session, batch_size: int):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.db = db
        self.batch_size = batch_size
        self.last_batch_count = 0

    def resolve_order_items(self, loaded: LoadedOrders) -> LoadedOrders:
        """
        Materialize order items (and their items) for every order.

        Args:
            loaded: Orders with at least their to-one associations loaded

        Returns:
            The same orders tagged with the order item paths
        """
        pending: Dict[int, Order] = {
            order.id: order
            for order in loaded.orders
            if ORDER_ITEMS in sa_inspect(order).unloaded
        }
        batches = chunked(sorted(pending), self.batch_size)

        for order_ids in batches:
            stmt = (
                select(OrderItem)
                .options(joinedload(OrderItem.item))
                .where(OrderItem.order_id.in_(order_ids))
                .order_by(OrderItem.order_id, OrderItem.id)
            )
            grouped: Dict[int, List[OrderItem]] = defaultdict(list)
            for order_item in self.db.scalars(stmt):
                grouped[order_item.order_id].append(order_item)

            for order_id in order_ids:
                set_committed_value(pending[order_id], ORDER_ITEMS, grouped.get(order_id, []))

        self.last_batch_count = len(batches)
        logger.debug(
            "Batch fetched order items",
            parents=len(pending),
            batch_size=self.batch_size,
            batches=len(batches),
        )
        return loaded.with_loaded(ORDER_ITEMS, ORDER_ITEMS_ITEM)
