"""
Response DTOs for order listings.

Every DTO is a plain pydantic model built from already-materialized data:
no ORM instance is reachable from a DTO, and building one never runs SQL.
Entity-based DTOs are built from a ``LoadedOrders`` result and check its
loaded tag before touching any association.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import Address, DeliveryStatus, Item, Member, Order, OrderItem, OrderStatus
from .repositories.fetching import ALL_ASSOCIATIONS, TO_ONE_ASSOCIATIONS, LoadedOrders


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AddressDto(CamelModel):
    """Embedded address."""

    city: Optional[str] = None
    street: Optional[str] = None
    zipcode: Optional[str] = None

    @classmethod
    def from_address(cls, address: Optional[Address]) -> Optional["AddressDto"]:
        if address is None:
            return None
        return cls(city=address.city, street=address.street, zipcode=address.zipcode)

    def to_address(self) -> Address:
        return Address(city=self.city, street=self.street, zipcode=self.zipcode)


# Entity -> DTO


class OrderItemDto(CamelModel):
    """One ordered line: item name, unit price at purchase, count."""

    item_name: str
    order_price: int
    count: int

    @classmethod
    def from_entity(cls, order_item: OrderItem) -> "OrderItemDto":
        return cls(
            item_name=order_item.item.name,
            order_price=order_item.order_price,
            count=order_item.count,
        )


class SimpleOrderDto(CamelModel):
    """Order with its to-one associations flattened in."""

    order_id: int
    name: str = Field(description="Member name")
    order_date: datetime
    order_status: OrderStatus
    address: Optional[AddressDto] = None

    @classmethod
    def from_entity(cls, order: Order) -> "SimpleOrderDto":
        return cls(
            order_id=order.id,
            name=order.member.name,
            order_date=order.order_date,
            order_status=order.status,
            address=AddressDto.from_address(order.delivery.address),
        )

    @classmethod
    def from_loaded(cls, loaded: LoadedOrders) -> List["SimpleOrderDto"]:
        loaded.require(*TO_ONE_ASSOCIATIONS)
        return [cls.from_entity(order) for order in loaded]


class OrderDto(SimpleOrderDto):
    """Order with its items."""

    order_items: List[OrderItemDto] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, order: Order) -> "OrderDto":
        return cls(
            order_id=order.id,
            name=order.member.name,
            order_date=order.order_date,
            order_status=order.status,
            address=AddressDto.from_address(order.delivery.address),
            order_items=[OrderItemDto.from_entity(order_item) for order_item in order.order_items],
        )

    @classmethod
    def from_loaded(cls, loaded: LoadedOrders) -> List["OrderDto"]:
        loaded.require(*ALL_ASSOCIATIONS)
        return [cls.from_entity(order) for order in loaded]


# Direct query projections


class OrderItemQueryDto(CamelModel):
    """Order item row projected straight from SQL."""

    order_id: Optional[int] = Field(default=None, exclude=True)
    item_name: str
    order_price: int
    count: int


class SimpleOrderQueryDto(CamelModel):
    """Order row projected straight from SQL, to-one columns only."""

    order_id: int
    name: str
    order_date: datetime
    order_status: OrderStatus
    address: Optional[AddressDto] = None


class OrderQueryDto(SimpleOrderQueryDto):
    """Order row projected straight from SQL; items attached afterwards."""

    order_items: List[OrderItemQueryDto] = Field(default_factory=list)


# Entity-shaped views


class MemberView(CamelModel):
    id: int
    name: str
    address: Optional[AddressDto] = None

    @classmethod
    def from_entity(cls, member: Member) -> "MemberView":
        return cls(id=member.id, name=member.name, address=AddressDto.from_address(member.address))


class DeliveryView(CamelModel):
    id: int
    address: Optional[AddressDto] = None
    status: DeliveryStatus


class ItemView(CamelModel):
    id: int
    name: str
    price: int
    stock_quantity: int

    @classmethod
    def from_entity(cls, item: Item) -> "ItemView":
        return cls(id=item.id, name=item.name, price=item.price, stock_quantity=item.stock_quantity)


class OrderItemView(CamelModel):
    id: int
    item: ItemView
    order_price: int
    count: int
    total_price: int


class SimpleOrderView(CamelModel):
    """
    Order in its persisted shape, with member and delivery nested.

    Mirrors the entity graph rather than a response contract, so any
    schema change leaks to clients. Kept for the entity-returning
    endpoints only.
    """

    id: int
    member: MemberView
    delivery: DeliveryView
    order_date: datetime
    status: OrderStatus

    @classmethod
    def _base_fields(cls, order: Order) -> dict:
        delivery = order.delivery
        return {
            "id": order.id,
            "member": MemberView.from_entity(order.member),
            "delivery": DeliveryView(
                id=delivery.id,
                address=AddressDto.from_address(delivery.address),
                status=delivery.status,
            ),
            "order_date": order.order_date,
            "status": order.status,
        }

    @classmethod
    def from_loaded(cls, loaded: LoadedOrders) -> List["SimpleOrderView"]:
        loaded.require(*TO_ONE_ASSOCIATIONS)
        return [cls(**cls._base_fields(order)) for order in loaded]


class OrderView(SimpleOrderView):
    """Entity-shaped order including its items."""

    order_items: List[OrderItemView]
    total_price: int

    @classmethod
    def from_loaded(cls, loaded: LoadedOrders) -> List["OrderView"]:
        loaded.require(*ALL_ASSOCIATIONS)
        views = []
        for order in loaded:
            order_items = [
                OrderItemView(
                    id=order_item.id,
                    item=ItemView.from_entity(order_item.item),
                    order_price=order_item.order_price,
                    count=order_item.count,
                    total_price=order_item.total_price,
                )
                for order_item in order.order_items
            ]
            views.append(
                cls(
                    **cls._base_fields(order),
                    order_items=order_items,
                    total_price=sum(view.total_price for view in order_items),
                )
            )
        return views
