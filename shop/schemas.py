"""
Pydantic models for request/response schemas.

Member, item and order command payloads. Order listing DTOs live in
``dto.py``.
"""

from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import Field

from .dto import AddressDto, CamelModel
from .models import Album, Book, Item, Member, Movie

T = TypeVar("T")


# Generic wrappers


class Result(CamelModel, Generic[T]):
    """List wrapper so the response can grow fields without breaking clients."""

    count: int
    data: List[T]


class IdResponse(CamelModel):
    id: int


class ErrorResponse(CamelModel):
    """Error response model."""

    success: bool = False
    error: str
    message: str
    details: dict = Field(default_factory=dict)


# Members


class CreateMemberRequest(CamelModel):
    """Model for member registration."""

    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[AddressDto] = None


class UpdateMemberRequest(CamelModel):
    """Model for renaming a member."""

    name: str = Field(..., min_length=1, max_length=255)


class UpdateMemberResponse(CamelModel):
    id: int
    name: str


class MemberResponse(CamelModel):
    id: int
    name: str
    address: Optional[AddressDto] = None

    @classmethod
    def from_entity(cls, member: Member) -> "MemberResponse":
        return cls(id=member.id, name=member.name, address=AddressDto.from_address(member.address))


# Items


class CreateItemRequest(CamelModel):
    """Model for item registration. Subtype-specific fields are optional."""

    type: Literal["BOOK", "ALBUM", "MOVIE"] = "BOOK"
    name: str = Field(..., min_length=1, max_length=255)
    price: int = Field(..., ge=0)
    stock_quantity: int = Field(..., ge=0)
    author: Optional[str] = None
    isbn: Optional[str] = None
    artist: Optional[str] = None
    etc: Optional[str] = None
    director: Optional[str] = None
    actor: Optional[str] = None

    def to_entity(self) -> Item:
        common = {"name": self.name, "price": self.price, "stock_quantity": self.stock_quantity}
        if self.type == "ALBUM":
            return Album(artist=self.artist, etc=self.etc, **common)
        if self.type == "MOVIE":
            return Movie(director=self.director, actor=self.actor, **common)
        return Book(author=self.author, isbn=self.isbn, **common)


class UpdateItemRequest(CamelModel):
    """Model for updating item name, price and stock."""

    name: str = Field(..., min_length=1, max_length=255)
    price: int = Field(..., ge=0)
    stock_quantity: int = Field(..., ge=0)


class ItemResponse(CamelModel):
    id: int
    type: str
    name: str
    price: int
    stock_quantity: int
    author: Optional[str] = None
    isbn: Optional[str] = None
    artist: Optional[str] = None
    etc: Optional[str] = None
    director: Optional[str] = None
    actor: Optional[str] = None

    @classmethod
    def from_entity(cls, item: Item) -> "ItemResponse":
        kind = {Book: "BOOK", Album: "ALBUM", Movie: "MOVIE"}.get(type(item), "ITEM")
        extra = {
            key: getattr(item, key)
            for key in ("author", "isbn", "artist", "etc", "director", "actor")
            if hasattr(item, key)
        }
        return cls(
            id=item.id,
            type=kind,
            name=item.name,
            price=item.price,
            stock_quantity=item.stock_quantity,
            **extra,
        )


# Orders


class CreateOrderRequest(CamelModel):
    """Model for placing an order for one item."""

    member_id: int
    item_id: int
    count: int = Field(..., ge=1)
