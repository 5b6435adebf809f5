"""
Simple order listing router.

Orders with their to-one associations (member, delivery) only.
"""

from typing import List

from fastapi import APIRouter, Depends, Response

from ..dependencies import get_order_query_service
from ..dto import SimpleOrderDto, SimpleOrderQueryDto, SimpleOrderView
from ..services.order_query_service import OrderQueryService, OrderQueryStrategy
from .order_api_router import respond_with_query_stats

router = APIRouter(prefix="/api", tags=["simple-orders"])


@router.get("/v1/simple-orders", response_model=List[SimpleOrderView])
def simple_orders_v1(
    response: Response,
    service: OrderQueryService = Depends(get_order_query_service),
):
    """Orders as entities with member and delivery initialized one by one."""
    return respond_with_query_stats(service.find_simple_orders(OrderQueryStrategy.ENTITY), response)


@router.get("/v2/simple-orders", response_model=List[SimpleOrderDto])
def simple_orders_v2(
    response: Response,
    service: OrderQueryService = Depends(get_order_query_service),
):
    """DTOs over lazily loaded members and deliveries: 1 + N + N statements."""
    return respond_with_query_stats(
        service.find_simple_orders(OrderQueryStrategy.ENTITY_TO_DTO), response
    )


@router.get("/v3/simple-orders", response_model=List[SimpleOrderDto])
def simple_orders_v3(
    response: Response,
    service: OrderQueryService = Depends(get_order_query_service),
):
    """DTOs over one member/delivery fetch join."""
    return respond_with_query_stats(service.find_simple_orders(OrderQueryStrategy.FETCH_JOIN), response)


@router.get("/v4/simple-orders", response_model=List[SimpleOrderQueryDto])
def simple_orders_v4(
    response: Response,
    service: OrderQueryService = Depends(get_order_query_service),
):
    """DTOs projected directly from one query."""
    return respond_with_query_stats(
        service.find_simple_orders(OrderQueryStrategy.DTO_PROJECTION), response
    )
