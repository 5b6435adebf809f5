"""
Tests for the order listing strategies.

All strategies must return the same orders; they differ in statement
count. Seeded orders each have their own member and distinct items, so
no lazy load can be served from the identity map.
"""

import math

import pytest

from shop.database import QueryCounter
from shop.domain.exceptions import ValidationException
from shop.dto import OrderDto, OrderView, SimpleOrderView
from shop.repositories.fetching import BatchFetchResolver
from shop.repositories.order_query_repository import OrderQueryRepository
from shop.repositories.order_repository import OrderRepository
from shop.services.order_query_service import OrderQueryService, OrderQueryStrategy

ORDER_COUNT = 5
ITEMS_PER_ORDER = 2


def build_service(db, batch_size=100):
    return OrderQueryService(
        order_repository=OrderRepository(db),
        order_query_repository=OrderQueryRepository(db),
        batch_fetch_resolver=BatchFetchResolver(db, batch_size),
    )


def normalize(order):
    """Reduce any order shape to (id, member name, city, [(item, price, count)])."""
    if isinstance(order, OrderView):
        return (
            order.id,
            order.member.name,
            order.delivery.address.city,
            [(line.item.name, line.order_price, line.count) for line in order.order_items],
        )
    return (
        order.order_id,
        order.name,
        order.address.city,
        [(line.item_name, line.order_price, line.count) for line in order.order_items],
    )


def normalize_simple(order):
    if isinstance(order, SimpleOrderView):
        return order.id, order.member.name, order.delivery.address.city, order.status
    return order.order_id, order.name, order.address.city, order.order_status


@pytest.fixture
def order_ids(seed_orders):
    return seed_orders(ORDER_COUNT, ITEMS_PER_ORDER)


class TestEquivalence:
    """Every strategy returns the v1 baseline"""

    @pytest.mark.parametrize(
        "strategy",
        [
            OrderQueryStrategy.ENTITY_TO_DTO,
            OrderQueryStrategy.FETCH_JOIN,
            OrderQueryStrategy.BATCH_FETCH,
            OrderQueryStrategy.DTO_PROJECTION,
        ],
    )
    def test_orders_match_baseline(self, db_session, order_ids, strategy):
        baseline = [normalize(o) for o in build_service(db_session).find_orders(OrderQueryStrategy.ENTITY).data]
        db_session.expunge_all()

        result = build_service(db_session).find_orders(strategy)

        assert [normalize(o) for o in result.data] == baseline
        assert [o[0] for o in baseline] == order_ids
        assert all(len(o[3]) == ITEMS_PER_ORDER for o in baseline)

    @pytest.mark.parametrize(
        "strategy",
        [
            OrderQueryStrategy.ENTITY_TO_DTO,
            OrderQueryStrategy.FETCH_JOIN,
            OrderQueryStrategy.DTO_PROJECTION,
        ],
    )
    def test_simple_orders_match_baseline(self, db_session, order_ids, strategy):
        service = build_service(db_session)
        baseline = [normalize_simple(o) for o in service.find_simple_orders(OrderQueryStrategy.ENTITY).data]
        db_session.expunge_all()

        result = build_service(db_session).find_simple_orders(strategy)

        assert [normalize_simple(o) for o in result.data] == baseline

    def test_order_item_lines_keep_purchase_values(self, db_session, order_ids):
        result = build_service(db_session).find_orders(OrderQueryStrategy.DTO_PROJECTION)

        first = result.data[0]
        assert [(line.item_name, line.order_price, line.count) for line in first.order_items] == [
            ("book0-0", 10000, 1),
            ("book0-1", 20000, 2),
        ]


class TestStatementCounts:
    """Statement counts per strategy for N orders"""

    def test_entity_strategy_is_n_plus_one(self, db_session, order_ids):
        result = build_service(db_session).find_orders(OrderQueryStrategy.ENTITY)

        # orders + member, delivery and order items per order + one item per line
        expected = 1 + 3 * ORDER_COUNT + ORDER_COUNT * ITEMS_PER_ORDER
        assert result.statements == expected

    def test_entity_to_dto_strategy_is_n_plus_one(self, db_session, order_ids):
        result = build_service(db_session).find_orders(OrderQueryStrategy.ENTITY_TO_DTO)
        assert result.statements == 1 + 3 * ORDER_COUNT + ORDER_COUNT * ITEMS_PER_ORDER

    def test_fetch_join_is_one_statement(self, db_session, order_ids):
        result = build_service(db_session).find_orders(OrderQueryStrategy.FETCH_JOIN)
        assert result.statements == 1
        assert len(result.data) == ORDER_COUNT

    @pytest.mark.parametrize("batch_size", [1, 2, 3, 5, 100])
    def test_batch_fetch_issues_ceil_n_over_b_batches(self, db_session, order_ids, batch_size):
        service = build_service(db_session, batch_size)

        result = service.find_orders(OrderQueryStrategy.BATCH_FETCH, 0, 100)

        batches = math.ceil(ORDER_COUNT / batch_size)
        assert service.batch_fetch_resolver.last_batch_count == batches
        assert result.statements == 1 + batches

    def test_projection_is_two_statements(self, db_session, order_ids):
        result = build_service(db_session).find_orders(OrderQueryStrategy.DTO_PROJECTION)
        assert result.statements == 2

    def test_projection_without_orders_skips_item_query(self, db_session):
        result = build_service(db_session).find_orders(OrderQueryStrategy.DTO_PROJECTION)
        assert result.data == []
        assert result.statements == 1

    def test_batch_fetch_without_orders(self, db_session):
        service = build_service(db_session)
        result = service.find_orders(OrderQueryStrategy.BATCH_FETCH, 0, 10)
        assert result.data == []
        assert result.statements == 1
        assert service.batch_fetch_resolver.last_batch_count == 0

    def test_simple_order_counts(self, db_session, order_ids):
        service = build_service(db_session)
        counts = {}
        for strategy in (
            OrderQueryStrategy.ENTITY,
            OrderQueryStrategy.ENTITY_TO_DTO,
            OrderQueryStrategy.FETCH_JOIN,
            OrderQueryStrategy.DTO_PROJECTION,
        ):
            db_session.expunge_all()
            counts[strategy] = service.find_simple_orders(strategy).statements

        assert counts == {
            OrderQueryStrategy.ENTITY: 1 + 2 * ORDER_COUNT,
            OrderQueryStrategy.ENTITY_TO_DTO: 1 + 2 * ORDER_COUNT,
            OrderQueryStrategy.FETCH_JOIN: 1,
            OrderQueryStrategy.DTO_PROJECTION: 1,
        }

    def test_mapping_issues_no_statements(self, db_session, order_ids):
        loaded = OrderRepository(db_session).find_all_with_items()

        with QueryCounter(db_session.get_bind()) as counter:
            dtos = OrderDto.from_loaded(loaded)

        assert counter.count == 0
        assert len(dtos) == ORDER_COUNT


class TestPaging:
    """Offset/limit handling"""

    @pytest.mark.parametrize(
        "strategy",
        [OrderQueryStrategy.FETCH_JOIN, OrderQueryStrategy.BATCH_FETCH, OrderQueryStrategy.DTO_PROJECTION],
    )
    def test_page_of_orders(self, db_session, order_ids, strategy):
        result = build_service(db_session).find_orders(strategy, offset=1, limit=2)

        assert [normalize(o)[0] for o in result.data] == order_ids[1:3]
        assert all(len(normalize(o)[3]) == ITEMS_PER_ORDER for o in result.data)

    def test_offset_past_end(self, db_session, order_ids):
        result = build_service(db_session).find_orders(OrderQueryStrategy.BATCH_FETCH, offset=50, limit=10)
        assert result.data == []

    @pytest.mark.parametrize("strategy", [OrderQueryStrategy.ENTITY, OrderQueryStrategy.ENTITY_TO_DTO])
    def test_entity_strategies_reject_paging(self, db_session, strategy):
        with pytest.raises(ValidationException):
            build_service(db_session).find_orders(strategy, offset=0, limit=10)

    def test_simple_orders_reject_batch_fetch(self, db_session):
        with pytest.raises(ValidationException):
            build_service(db_session).find_simple_orders(OrderQueryStrategy.BATCH_FETCH)
