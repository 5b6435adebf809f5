"""
Item registration and maintenance.
"""

from typing import List

import structlog
from sqlalchemy.orm import Session

from ..database import transactional
from ..models import Item
from ..repositories.item_repository import ItemRepository

logger = structlog.get_logger(__name__)


class ItemService:
    """Item use cases."""

    def __init__(self, db: Session, item_repository: ItemRepository):
        self.db = db
        self.item_repository = item_repository

    def save_item(self, item: Item) -> int:
        with transactional(self.db):
            item = self.item_repository.save(item)
            item_id = item.id
        logger.info("Item saved", item_id=item_id, item_type=type(item).__name__)
        return item_id

    def update_item(self, item_id: int, name: str, price: int, stock_quantity: int) -> Item:
        """
        Update an item by loading it and changing it in place.

        The session detects the change and flushes it on commit; the
        version column makes a concurrent update fail instead of being
        overwritten.
        """
        with transactional(self.db):
            item = self.item_repository.find_one(item_id)
            item.change(name, price, stock_quantity)
        return item

    def find_items(self) -> List[Item]:
        return self.item_repository.find_all()

    def find_one(self, item_id: int) -> Item:
        return self.item_repository.find_one(item_id)
