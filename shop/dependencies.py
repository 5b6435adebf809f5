"""
Shared dependencies for the application.

Builds repositories and services per request from the request's session.
Collaborators are passed in through constructors; nothing is looked up
globally.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .repositories.fetching import BatchFetchResolver
from .repositories.item_repository import ItemRepository
from .repositories.member_repository import MemberRepository
from .repositories.order_query_repository import OrderQueryRepository
from .repositories.order_repository import OrderRepository
from .services.item_service import ItemService
from .services.member_service import MemberService
from .services.order_query_service import OrderQueryService
from .services.order_service import OrderService


def get_member_service(db: Session = Depends(get_db)) -> MemberService:
    return MemberService(db, MemberRepository(db))


def get_item_service(db: Session = Depends(get_db)) -> ItemService:
    return ItemService(db, ItemRepository(db))


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(
        db,
        order_repository=OrderRepository(db),
        member_repository=MemberRepository(db),
        item_repository=ItemRepository(db),
    )


def get_order_query_service(db: Session = Depends(get_db)) -> OrderQueryService:
    """
    Order listing service.

    The batch size for collection loading comes from
    ``DEFAULT_BATCH_FETCH_SIZE``.
    """
    return OrderQueryService(
        order_repository=OrderRepository(db),
        order_query_repository=OrderQueryRepository(db),
        batch_fetch_resolver=BatchFetchResolver(db, settings.DEFAULT_BATCH_FETCH_SIZE),
    )
