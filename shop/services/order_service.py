"""
Order placement, cancellation and search.
"""

from typing import List, Optional

import structlog
from sqlalchemy.orm import Session

from ..database import transactional
from ..domain.exceptions import ShopServiceException, ValidationException
from ..dto import SimpleOrderDto
from ..metrics import track_order_operation
from ..models import Delivery, DeliveryStatus, Order, OrderItem
from ..repositories.item_repository import ItemRepository
from ..repositories.member_repository import MemberRepository
from ..repositories.order_repository import OrderRepository, OrderSearch

logger = structlog.get_logger(__name__)


class OrderService:
    """
    Order lifecycle.

    Placement and cancellation each run in one transaction: stock,
    order, order items and delivery change together or not at all.
    """

    def __init__(
        self,
        db: Session,
        order_repository: OrderRepository,
        member_repository: MemberRepository,
        item_repository: ItemRepository,
    ):
        self.db = db
        self.order_repository = order_repository
        self.member_repository = member_repository
        self.item_repository = item_repository

    def order(self, member_id: int, item_id: int, count: int) -> int:
        """
        Place an order for ``count`` units of one item.

        The delivery goes to the member's address and the current item
        price is captured as the order price.

        Returns:
            New order id

        Raises:
            ValidationException: If count is not positive
            EntityNotFoundException: If member or item does not exist
            NotEnoughStockException: If stock is below ``count``
            ConcurrentModificationException: If the item changed concurrently
        """
        if count < 1:
            raise ValidationException("count", count, "must be at least 1")

        try:
            with transactional(self.db):
                member = self.member_repository.find_one(member_id)
                item = self.item_repository.find_one(item_id)

                delivery = Delivery(address=member.address, status=DeliveryStatus.READY)
                order_item = OrderItem.create_order_item(item, item.price, count)
                order = Order.create_order(member, delivery, order_item)

                self.order_repository.save(order)
                order_id = order.id
        except ShopServiceException:
            track_order_operation("order", success=False)
            raise

        track_order_operation("order", success=True)
        logger.info("Order placed", order_id=order_id, member_id=member_id, item_id=item_id, count=count)
        return order_id

    def cancel_order(self, order_id: int) -> None:
        """
        Cancel an order and restore the stock of its items.

        Raises:
            EntityNotFoundException: If the order does not exist
            OrderAlreadyDeliveredException: If the delivery is complete
        """
        try:
            with transactional(self.db):
                order = self.order_repository.find_one(order_id)
                order.cancel()
        except ShopServiceException:
            track_order_operation("cancel", success=False)
            raise

        track_order_operation("cancel", success=True)
        logger.info("Order cancelled", order_id=order_id)

    def find_orders(self, search: Optional[OrderSearch] = None) -> List[SimpleOrderDto]:
        """Search orders by member name and status."""
        loaded = self.order_repository.find_all_with_member_delivery(search=search)
        return SimpleOrderDto.from_loaded(loaded)
