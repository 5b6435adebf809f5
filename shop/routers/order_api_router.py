"""
Order listing router.

Same orders, five retrieval strategies. Every response carries the
number of SQL statements it cost in ``X-Query-Count``.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from ..config import settings
from ..dependencies import get_order_query_service
from ..dto import OrderDto, OrderQueryDto, OrderView
from ..schemas import ErrorResponse
from ..services.order_query_service import OrderQueryService, OrderQueryStrategy, QueryResult

router = APIRouter(prefix="/api", tags=["orders"])


def respond_with_query_stats(result: QueryResult, response: Response) -> List:
    """Attach strategy and statement count headers and return the data."""
    response.headers["X-Query-Strategy"] = result.strategy.value
    response.headers["X-Query-Count"] = str(result.statements)
    return result.data


@router.get(
    "/v1/orders",
    response_model=List[OrderView],
    summary="List orders as entities",
    description="Loads orders, then initializes every association one by one (N+1).",
)
def orders_v1(
    response: Response,
    service: OrderQueryService = Depends(get_order_query_service),
):
    return respond_with_query_stats(service.find_orders(OrderQueryStrategy.ENTITY), response)


@router.get(
    "/v2/orders",
    response_model=List[OrderDto],
    summary="List orders as DTOs (lazy loading)",
    description="Same loading as v1, mapped to DTOs afterwards.",
)
def orders_v2(
    response: Response,
    service: OrderQueryService = Depends(get_order_query_service),
):
    return respond_with_query_stats(service.find_orders(OrderQueryStrategy.ENTITY_TO_DTO), response)


@router.get(
    "/v3/orders",
    response_model=List[OrderDto],
    summary="List orders with one fetch join",
    description=(
        "Single query over orders, members, deliveries, order items and items. "
        "Paging, if requested, happens in memory after deduplication."
    ),
)
def orders_v3(
    response: Response,
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=settings.MAX_PAGE_LIMIT),
    service: OrderQueryService = Depends(get_order_query_service),
):
    return respond_with_query_stats(
        service.find_orders(OrderQueryStrategy.FETCH_JOIN, offset, limit), response
    )


@router.get(
    "/v3.1/orders",
    response_model=List[OrderDto],
    responses={400: {"description": "Invalid paging", "model": ErrorResponse}},
    summary="List orders page with batch-fetched items",
    description="To-one fetch join paged in SQL, then order items in IN-clause batches.",
)
def orders_v3_page(
    response: Response,
    offset: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    service: OrderQueryService = Depends(get_order_query_service),
):
    return respond_with_query_stats(
        service.find_orders(OrderQueryStrategy.BATCH_FETCH, offset, limit), response
    )


@router.get(
    "/v4/orders",
    response_model=List[OrderQueryDto],
    summary="List orders by direct DTO projection",
    description="One projection query for orders, one IN-clause query for their items.",
)
def orders_v4(
    response: Response,
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=settings.MAX_PAGE_LIMIT),
    service: OrderQueryService = Depends(get_order_query_service),
):
    return respond_with_query_stats(
        service.find_orders(OrderQueryStrategy.DTO_PROJECTION, offset, limit), response
    )
