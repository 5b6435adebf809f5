"""
Test configuration and fixtures
"""

import os

# Must be set before the shop package creates its engine
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"

from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from shop.app import app  # noqa: E402
from shop.database import get_db  # noqa: E402
from shop.models import Address, Base, Book, Delivery, DeliveryStatus, Member, Order, OrderItem  # noqa: E402

# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    # Mock init_db to prevent creating tables on the application engine
    with patch("shop.app.init_db"):
        app.dependency_overrides[get_db] = override_get_db
        with TestClient(app) as test_client:
            yield test_client
        app.dependency_overrides.clear()


def create_member(db, name: str, city: str = "Seoul") -> Member:
    member = Member(name=name, address=Address(city=city, street="Main St 1", zipcode="04524"))
    db.add(member)
    db.flush()
    return member


def create_book(db, name: str, price: int = 10000, stock_quantity: int = 100) -> Book:
    book = Book(name=name, price=price, stock_quantity=stock_quantity, author="Kim", isbn="978-0")
    db.add(book)
    db.flush()
    return book


@pytest.fixture
def seed_orders(db_session):
    """
    Build ``order_count`` orders, each with its own member and
    ``items_per_order`` distinct books (line ``j`` orders ``j + 1`` units).

    Commits, clears the identity map and returns the order ids, so that
    every association has to come from the database again.
    """

    def _seed(order_count: int = 3, items_per_order: int = 2):
        order_ids = []
        for i in range(order_count):
            member = create_member(db_session, f"member{i}", city=f"city{i}")
            order_items = []
            for j in range(items_per_order):
                book = create_book(db_session, f"book{i}-{j}", price=10000 * (j + 1))
                order_items.append(OrderItem.create_order_item(book, book.price, j + 1))
            delivery = Delivery(address=member.address, status=DeliveryStatus.READY)
            order = Order.create_order(member, delivery, *order_items)
            db_session.add(order)
            db_session.flush()
            order_ids.append(order.id)

        db_session.commit()
        db_session.expunge_all()
        return order_ids

    return _seed


@pytest.fixture
def make_member(db_session):
    return lambda name, city="Seoul": create_member(db_session, name, city)


@pytest.fixture
def make_book(db_session):
    return lambda name, price=10000, stock_quantity=100: create_book(
        db_session, name, price, stock_quantity
    )
