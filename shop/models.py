"""
Database models for the shop service.

SQLAlchemy ORM models for the order entity graph:
Order -> Member (many-to-one), Order -> Delivery (one-to-one),
Order -> OrderItem (one-to-many), OrderItem -> Item (many-to-one).

Every association is lazy. How much of the graph gets materialized is
decided by the repositories, never by the mapping.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import composite, declarative_base, relationship

from .domain.exceptions import (
    NotEnoughStockException,
    OrderAlreadyCancelledException,
    OrderAlreadyDeliveredException,
)

Base: Any = declarative_base()


class OrderStatus(str, enum.Enum):
    """Order lifecycle states."""

    ORDERED = "ORDERED"
    CANCELLED = "CANCELLED"


class DeliveryStatus(str, enum.Enum):
    """Delivery states. COMP is terminal."""

    READY = "READY"
    COMP = "COMP"


@dataclass(frozen=True)
class Address:
    """
    Embedded address value object.

    Mapped as a composite over three columns on the owning table.
    """

    city: Optional[str] = None
    street: Optional[str] = None
    zipcode: Optional[str] = None


class Member(Base):
    """
    Registered customer.

    Attributes:
        id: Primary key identifier
        name: Display name, unique across members
        address: Embedded home address
        orders: Orders placed by this member
    """

    __tablename__ = "member"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, nullable=False, index=True)

    city = Column(String(100), nullable=True)
    street = Column(String(255), nullable=True)
    zipcode = Column(String(20), nullable=True)
    address = composite(Address, city, street, zipcode)

    orders = relationship("Order", back_populates="member", lazy="select")

    def __repr__(self) -> str:
        return f"<Member id={self.id} name={self.name!r}>"


class Item(Base):
    """
    Sellable item with stock tracking.

    Single-table inheritance over ``item``; ``dtype`` tells the subtypes
    apart. ``version`` is bumped on every flush so that two transactions
    changing the same stock cannot both win.
    """

    __tablename__ = "item"

    id = Column(Integer, primary_key=True)
    dtype = Column(String(31), nullable=False)
    name = Column(String(255), nullable=False)
    price = Column(Integer, nullable=False, default=0)
    stock_quantity = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {
        "polymorphic_on": dtype,
        "polymorphic_identity": "I",
        "version_id_col": version,
    }

    def add_stock(self, quantity: int) -> None:
        """Increase stock by ``quantity``."""
        self.stock_quantity += quantity

    def remove_stock(self, quantity: int) -> None:
        """
        Decrease stock by ``quantity``.

        Raises:
            NotEnoughStockException: If stock would drop below zero.
                Stock is left untouched in that case.
        """
        rest = self.stock_quantity - quantity
        if rest < 0:
            raise NotEnoughStockException(self.name, quantity, self.stock_quantity)
        self.stock_quantity = rest

    def change(self, name: str, price: int, stock_quantity: int) -> None:
        """Apply an update; the session flushes it on commit."""
        self.name = name
        self.price = price
        self.stock_quantity = stock_quantity

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id} name={self.name!r} stock={self.stock_quantity}>"


class Book(Item):
    author = Column(String(255), nullable=True)
    isbn = Column(String(32), nullable=True)

    __mapper_args__ = {"polymorphic_identity": "B", "polymorphic_load": "inline"}


class Album(Item):
    artist = Column(String(255), nullable=True)
    etc = Column(String(255), nullable=True)

    __mapper_args__ = {"polymorphic_identity": "A", "polymorphic_load": "inline"}


class Movie(Item):
    director = Column(String(255), nullable=True)
    actor = Column(String(255), nullable=True)

    __mapper_args__ = {"polymorphic_identity": "M", "polymorphic_load": "inline"}


class Delivery(Base):
    """Shipping record owned by exactly one order."""

    __tablename__ = "delivery"

    id = Column(Integer, primary_key=True)
    city = Column(String(100), nullable=True)
    street = Column(String(255), nullable=True)
    zipcode = Column(String(20), nullable=True)
    address = composite(Address, city, street, zipcode)
    status = Column(
        Enum(DeliveryStatus, native_enum=False, length=20),
        nullable=False,
        default=DeliveryStatus.READY,
    )

    order = relationship("Order", back_populates="delivery", uselist=False, lazy="select")


class Order(Base):
    """
    Customer order.

    Created together with its delivery and order items in one
    transaction; cancelled instead of deleted.

    Attributes:
        id: Primary key identifier
        member: Owning member
        delivery: Delivery record (one-to-one)
        order_items: Ordered lines
        order_date: Placement timestamp (UTC, naive)
        status: ORDERED or CANCELLED
    """

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    member_id = Column(Integer, ForeignKey("member.id"), nullable=False, index=True)
    delivery_id = Column(Integer, ForeignKey("delivery.id"), unique=True, nullable=False)
    order_date = Column(DateTime, nullable=False)
    status = Column(Enum(OrderStatus, native_enum=False, length=20), nullable=False)

    member = relationship("Member", back_populates="orders", lazy="select")
    delivery = relationship("Delivery", back_populates="order", lazy="select")
    order_items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy="select",
    )

    @classmethod
    def create_order(cls, member: Member, delivery: Delivery, *order_items: "OrderItem") -> "Order":
        """Build a new ORDERED order for ``member``."""
        order = cls(
            member=member,
            delivery=delivery,
            status=OrderStatus.ORDERED,
            order_date=datetime.now(timezone.utc).replace(tzinfo=None),
        )
        for order_item in order_items:
            order.add_order_item(order_item)
        return order

    def add_order_item(self, order_item: "OrderItem") -> None:
        self.order_items.append(order_item)

    def cancel(self) -> None:
        """
        Cancel the order and put stock back.

        Raises:
            OrderAlreadyCancelledException: If the order is already cancelled.
                Stock is not restored a second time.
            OrderAlreadyDeliveredException: If delivery is already complete.
        """
        if self.status == OrderStatus.CANCELLED:
            raise OrderAlreadyCancelledException(self.id)
        if self.delivery is not None and self.delivery.status == DeliveryStatus.COMP:
            raise OrderAlreadyDeliveredException(self.id)

        self.status = OrderStatus.CANCELLED
        for order_item in self.order_items:
            order_item.cancel()

    @property
    def total_price(self) -> int:
        """Sum of order price times count over all lines."""
        return sum(order_item.total_price for order_item in self.order_items)

    def __repr__(self) -> str:
        return f"<Order id={self.id} status={self.status}>"


class OrderItem(Base):
    """
    One line of an order.

    ``order_price`` is the unit price at purchase time and never follows
    later item price changes.
    """

    __tablename__ = "order_item"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("item.id"), nullable=False, index=True)
    order_price = Column(Integer, nullable=False)
    count = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="order_items", lazy="select")
    item = relationship("Item", lazy="select")

    @classmethod
    def create_order_item(cls, item: Item, order_price: int, count: int) -> "OrderItem":
        """Reserve ``count`` units of ``item`` and build the line."""
        item.remove_stock(count)
        return cls(item=item, order_price=order_price, count=count)

    def cancel(self) -> None:
        self.item.add_stock(self.count)

    @property
    def total_price(self) -> int:
        return self.order_price * self.count
