"""
Order listing strategies.

Each strategy returns the same orders and items; they differ only in how
many statements they send and whether pagination happens in SQL.

| Strategy | Statements for N orders            | Paging    |
|----------|------------------------------------|-----------|
| v1       | 1 + N member + N delivery + N items (+ item lookups) | none |
| v2       | same as v1, mapped to DTOs         | none      |
| v3       | 1 (one fetch join over everything) | in memory |
| v3.1     | 1 + ceil(N / batch size)           | SQL       |
| v4       | 1 + 1 (DTO projection)             | SQL       |

The "simple" listings cover only member and delivery and stop at v4.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import structlog

from ..database import QueryCounter
from ..domain.exceptions import ValidationException
from ..dto import OrderDto, OrderView, SimpleOrderDto, SimpleOrderView
from ..metrics import track_order_query
from ..repositories.fetching import (
    ALL_ASSOCIATIONS,
    TO_ONE_ASSOCIATIONS,
    BatchFetchResolver,
    initialize_associations,
)
from ..repositories.order_query_repository import OrderQueryRepository
from ..repositories.order_repository import OrderRepository

logger = structlog.get_logger(__name__)


class OrderQueryStrategy(str, Enum):
    """Order retrieval strategies, named after their API version."""

    ENTITY = "v1"
    ENTITY_TO_DTO = "v2"
    FETCH_JOIN = "v3"
    BATCH_FETCH = "v3.1"
    DTO_PROJECTION = "v4"

    @property
    def paginates(self) -> bool:
        return self in (
            OrderQueryStrategy.FETCH_JOIN,
            OrderQueryStrategy.BATCH_FETCH,
            OrderQueryStrategy.DTO_PROJECTION,
        )


@dataclass
class QueryResult:
    """
    Listing outcome.

    Attributes:
        strategy: Strategy that produced ``data``
        data: Response DTOs
        statements: SQL statements executed, mapping included
    """

    strategy: OrderQueryStrategy
    data: List
    statements: int


class OrderQueryService:
    """Runs order listings with a chosen strategy and measures them."""

    def __init__(
        self,
        order_repository: OrderRepository,
        order_query_repository: OrderQueryRepository,
        batch_fetch_resolver: BatchFetchResolver,
    ):
        self.order_repository = order_repository
        self.order_query_repository = order_query_repository
        self.batch_fetch_resolver = batch_fetch_resolver

    def find_orders(
        self,
        strategy: OrderQueryStrategy,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> QueryResult:
        """
        List orders with their items.

        Raises:
            ValidationException: If paging is requested from a strategy
                that cannot page
        """
        if not strategy.paginates and (offset or limit is not None):
            raise ValidationException("offset/limit", f"{offset}/{limit}", f"{strategy.value} does not paginate")

        loaders = {
            OrderQueryStrategy.ENTITY: lambda: OrderView.from_loaded(
                initialize_associations(self.order_repository.find_all(), *sorted(ALL_ASSOCIATIONS))
            ),
            OrderQueryStrategy.ENTITY_TO_DTO: lambda: OrderDto.from_loaded(
                initialize_associations(self.order_repository.find_all(), *sorted(ALL_ASSOCIATIONS))
            ),
            OrderQueryStrategy.FETCH_JOIN: lambda: OrderDto.from_loaded(
                self.order_repository.find_all_with_items(offset, limit)
            ),
            OrderQueryStrategy.BATCH_FETCH: lambda: OrderDto.from_loaded(
                self.batch_fetch_resolver.resolve_order_items(
                    self.order_repository.find_all_with_member_delivery(offset, limit)
                )
            ),
            OrderQueryStrategy.DTO_PROJECTION: lambda: self.order_query_repository.find_order_query_dtos(
                offset, limit
            ),
        }
        return self._measure(strategy, "orders", loaders[strategy])

    def find_simple_orders(self, strategy: OrderQueryStrategy) -> QueryResult:
        """
        List orders with member and delivery only.

        Raises:
            ValidationException: For the batch fetch strategy, which only
                concerns collections
        """
        loaders = {
            OrderQueryStrategy.ENTITY: lambda: SimpleOrderView.from_loaded(
                initialize_associations(self.order_repository.find_all(), *sorted(TO_ONE_ASSOCIATIONS))
            ),
            OrderQueryStrategy.ENTITY_TO_DTO: lambda: SimpleOrderDto.from_loaded(
                initialize_associations(self.order_repository.find_all(), *sorted(TO_ONE_ASSOCIATIONS))
            ),
            OrderQueryStrategy.FETCH_JOIN: lambda: SimpleOrderDto.from_loaded(
                self.order_repository.find_all_with_member_delivery()
            ),
            OrderQueryStrategy.DTO_PROJECTION: self.order_query_repository.find_simple_order_query_dtos,
        }
        if strategy not in loaders:
            raise ValidationException("strategy", strategy.value, "not available for simple orders")
        return self._measure(strategy, "simple-orders", loaders[strategy])

    def _measure(self, strategy: OrderQueryStrategy, shape: str, load: Callable[[], List]) -> QueryResult:
        start_time = time.time()
        with QueryCounter(self.order_repository.db.connection()) as counter:
            data = load()
        duration = time.time() - start_time

        track_order_query(strategy.value, shape, counter.count, duration)
        logger.info(
            "Orders listed",
            strategy=strategy.value,
            shape=shape,
            orders=len(data),
            statements=counter.count,
            duration_ms=round(duration * 1000, 2),
        )
        return QueryResult(strategy=strategy, data=data, statements=counter.count)
