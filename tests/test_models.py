"""
Tests for domain behaviour on the entity graph (no database needed).
"""

from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from shop.domain.exceptions import (
    NotEnoughStockException,
    OrderAlreadyCancelledException,
    OrderAlreadyDeliveredException,
)
from shop.models import (
    Address,
    Book,
    Delivery,
    DeliveryStatus,
    Item,
    Member,
    Order,
    OrderItem,
    OrderStatus,
)


def _order(stock=10, count=3, price=10000):
    member = Member(name="kim", address=Address("Seoul", "Main St 1", "04524"))
    book = Book(name="JPA", price=price, stock_quantity=stock)
    order_item = OrderItem.create_order_item(book, book.price, count)
    order = Order.create_order(member, Delivery(address=member.address), order_item)
    return order, book


class TestItemStock:
    """Tests for stock changes on items"""

    def test_remove_stock_decrements(self):
        book = Book(name="JPA", price=10000, stock_quantity=10)
        book.remove_stock(4)
        assert book.stock_quantity == 6

    def test_remove_stock_to_zero(self):
        book = Book(name="JPA", price=10000, stock_quantity=3)
        book.remove_stock(3)
        assert book.stock_quantity == 0

    def test_remove_more_than_stock_fails_and_keeps_stock(self):
        book = Book(name="JPA", price=10000, stock_quantity=2)

        with pytest.raises(NotEnoughStockException) as exc_info:
            book.remove_stock(3)

        assert book.stock_quantity == 2
        assert exc_info.value.details == {"item": "JPA", "requested": 3, "available": 2}

    def test_add_stock(self):
        book = Book(name="JPA", price=10000, stock_quantity=2)
        book.add_stock(5)
        assert book.stock_quantity == 7

    def test_change(self):
        book = Book(name="JPA", price=10000, stock_quantity=2)
        book.change("JPA 2nd", 12000, 8)
        assert (book.name, book.price, book.stock_quantity) == ("JPA 2nd", 12000, 8)


class TestOrder:
    """Tests for order creation and cancellation"""

    def test_create_order(self):
        order, book = _order(stock=10, count=3, price=10000)

        assert order.status == OrderStatus.ORDERED
        assert order.order_date is not None
        assert order.member.name == "kim"
        assert order.delivery.address == Address("Seoul", "Main St 1", "04524")
        assert len(order.order_items) == 1
        assert order.total_price == 30000
        assert book.stock_quantity == 7

    def test_order_price_is_snapshot(self):
        order, book = _order(price=10000)
        book.change(book.name, 99999, book.stock_quantity)
        assert order.order_items[0].order_price == 10000

    def test_cancel_restores_stock(self):
        order, book = _order(stock=10, count=3)

        order.cancel()

        assert order.status == OrderStatus.CANCELLED
        assert book.stock_quantity == 10

    def test_cancel_delivered_order_fails(self):
        order, book = _order(stock=10, count=3)
        order.delivery.status = DeliveryStatus.COMP

        with pytest.raises(OrderAlreadyDeliveredException):
            order.cancel()

        assert order.status == OrderStatus.ORDERED
        assert book.stock_quantity == 7

    def test_cancel_cancelled_order_fails(self):
        order, book = _order(stock=10, count=3)
        order.cancel()

        with pytest.raises(OrderAlreadyCancelledException):
            order.cancel()

        assert book.stock_quantity == 10

    def test_total_price_over_several_lines(self):
        member = Member(name="lee")
        first = Book(name="A", price=1000, stock_quantity=10)
        second = Book(name="B", price=2500, stock_quantity=10)
        order = Order.create_order(
            member,
            Delivery(),
            OrderItem.create_order_item(first, first.price, 2),
            OrderItem.create_order_item(second, second.price, 4),
        )
        assert order.total_price == 2 * 1000 + 4 * 2500


class TestPersistence:
    """Tests for mapping details against the database"""

    def test_address_is_embedded(self, db_session, make_member):
        member = make_member("kim", city="Busan")
        db_session.commit()
        db_session.expunge_all()

        loaded = db_session.get(Member, member.id)
        assert loaded.address == Address("Busan", "Main St 1", "04524")

    def test_item_subtype_discriminator(self, db_session, make_book):
        book = make_book("JPA")
        db_session.commit()
        db_session.expunge_all()

        loaded = db_session.get(Item, book.id)
        assert isinstance(loaded, Book)
        assert loaded.dtype == "B"
        assert loaded.author == "Kim"

    def test_version_increments_on_update(self, db_session, make_book):
        book = make_book("JPA")
        db_session.commit()
        assert book.version == 1

        book.change("JPA", 11000, 50)
        db_session.commit()
        assert book.version == 2

    def test_order_requires_delivery(self, db_session, make_member):
        member = make_member("kim")
        db_session.add(Order(member=member, status=OrderStatus.ORDERED, order_date=datetime(2026, 1, 1)))

        with pytest.raises(IntegrityError):
            db_session.flush()
