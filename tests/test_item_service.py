"""
Tests for item registration and updates.
"""

import pytest

from shop.domain.exceptions import EntityNotFoundException
from shop.models import Album, Book, Movie
from shop.repositories.item_repository import ItemRepository
from shop.services.item_service import ItemService


@pytest.fixture
def item_service(db_session):
    return ItemService(db_session, ItemRepository(db_session))


def test_save_item_assigns_id(item_service):
    item_id = item_service.save_item(Book(name="JPA", price=10000, stock_quantity=10, author="Kim"))

    book = item_service.find_one(item_id)
    assert isinstance(book, Book)
    assert book.author == "Kim"
    assert book.version == 1


def test_subtypes_share_one_table(db_session, item_service):
    item_service.save_item(Book(name="book", price=1, stock_quantity=1))
    item_service.save_item(Album(name="album", price=2, stock_quantity=2, artist="IU"))
    item_service.save_item(Movie(name="movie", price=3, stock_quantity=3, director="Bong"))
    db_session.expunge_all()

    items = item_service.find_items()

    assert [type(item) for item in items] == [Book, Album, Movie]
    assert [item.dtype for item in items] == ["B", "A", "M"]


def test_update_item_changes_fields_and_version(db_session, item_service):
    item_id = item_service.save_item(Book(name="JPA", price=10000, stock_quantity=10))

    item_service.update_item(item_id, "JPA 2nd", 20000, 5)

    db_session.expunge_all()
    book = item_service.find_one(item_id)
    assert (book.name, book.price, book.stock_quantity) == ("JPA 2nd", 20000, 5)
    assert book.version == 2


def test_update_missing_item(item_service):
    with pytest.raises(EntityNotFoundException):
        item_service.update_item(1, "x", 1, 1)
