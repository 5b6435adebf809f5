"""
Item persistence.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.exceptions import EntityNotFoundException
from ..models import Item


class ItemRepository:
    """SQLAlchemy access to items of every subtype."""

    def __init__(self, db: Session):
        self.db = db

    def save(self, item: Item) -> Item:
        """Add the item (or reattach a detached one) and flush."""
        if item.id is None:
            self.db.add(item)
        else:
            item = self.db.merge(item)
        self.db.flush()
        return item

    def find_one(self, item_id: int) -> Item:
        """
        Get item by ID, loaded as its concrete subtype.

        Raises:
            EntityNotFoundException: If no item has this id
        """
        item = self.db.get(Item, item_id)
        if item is None:
            raise EntityNotFoundException("Item", item_id)
        return item

    def find_all(self) -> List[Item]:
        return list(self.db.scalars(select(Item).order_by(Item.id)))
