"""
Item router.

Books, albums and movies share one endpoint set; ``type`` picks the
subtype on creation.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from ..dependencies import get_item_service
from ..schemas import CreateItemRequest, ErrorResponse, IdResponse, ItemResponse, UpdateItemRequest
from ..services.item_service import ItemService

router = APIRouter(prefix="/api/items", tags=["items"])

NOT_FOUND = {404: {"description": "Item not found", "model": ErrorResponse}}


@router.post("", response_model=IdResponse, status_code=status.HTTP_201_CREATED, summary="Register item")
def create_item(
    request: CreateItemRequest,
    service: ItemService = Depends(get_item_service),
):
    return IdResponse(id=service.save_item(request.to_entity()))


@router.get("", response_model=List[ItemResponse], summary="List items")
def list_items(service: ItemService = Depends(get_item_service)):
    return [ItemResponse.from_entity(item) for item in service.find_items()]


@router.get("/{item_id}", response_model=ItemResponse, responses=NOT_FOUND, summary="Get item")
def get_item(item_id: int, service: ItemService = Depends(get_item_service)):
    return ItemResponse.from_entity(service.find_one(item_id))


@router.put(
    "/{item_id}",
    response_model=ItemResponse,
    responses={
        **NOT_FOUND,
        409: {"description": "Item changed concurrently", "model": ErrorResponse},
    },
    summary="Update item",
)
def update_item(
    item_id: int,
    request: UpdateItemRequest,
    service: ItemService = Depends(get_item_service),
):
    item = service.update_item(item_id, request.name, request.price, request.stock_quantity)
    return ItemResponse.from_entity(item)
