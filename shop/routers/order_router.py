"""
Order command router.

Placing, searching and cancelling orders.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_order_service
from ..dto import SimpleOrderDto
from ..models import OrderStatus
from ..repositories.order_repository import OrderSearch
from ..schemas import CreateOrderRequest, ErrorResponse, IdResponse
from ..services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post(
    "",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Not enough stock", "model": ErrorResponse},
        404: {"description": "Member or item not found", "model": ErrorResponse},
        409: {"description": "Item changed concurrently", "model": ErrorResponse},
    },
    summary="Place order",
)
def create_order(
    request: CreateOrderRequest,
    service: OrderService = Depends(get_order_service),
):
    return IdResponse(id=service.order(request.member_id, request.item_id, request.count))


@router.get("", response_model=List[SimpleOrderDto], summary="Search orders")
def search_orders(
    member_name: Optional[str] = Query(None, alias="memberName", max_length=255),
    order_status: Optional[OrderStatus] = Query(None, alias="orderStatus"),
    service: OrderService = Depends(get_order_service),
):
    """Filter by member name substring and/or exact status."""
    return service.find_orders(OrderSearch(member_name=member_name, order_status=order_status))


@router.post(
    "/{order_id}/cancel",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"description": "Order not found", "model": ErrorResponse},
        409: {"description": "Order already delivered or cancelled", "model": ErrorResponse},
    },
    summary="Cancel order",
)
def cancel_order(order_id: int, service: OrderService = Depends(get_order_service)):
    service.cancel_order(order_id)
