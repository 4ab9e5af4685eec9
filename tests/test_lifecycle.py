"""Tests for order confirmation and cancellation."""

import pytest

from storefront.errors import InvalidStateError, OrderNotFoundError
from storefront.models import OrderItemRequest, OrderStatus


@pytest.fixture
def order_a(orders, product_p):
    """The order from scenario A: 3 x P (stock 10 -> 7)."""
    return orders.place_order("cust1", "market-m", [OrderItemRequest(product_p.id, 3)])


class TestConfirm:
    def test_scenario_d_confirm_keeps_stock(self, orders, order_a, product_p, stock_of):
        confirmed = orders.confirm_order(order_a.id)

        assert confirmed.status is OrderStatus.CONFIRMED
        assert confirmed.confirmed_at is not None
        assert stock_of(product_p.id) == 7

    def test_scenario_d_cancel_after_confirm_fails(self, orders, order_a, product_p, stock_of):
        orders.confirm_order(order_a.id)

        with pytest.raises(InvalidStateError) as exc_info:
            orders.cancel_order(order_a.id)

        assert exc_info.value.status == "CONFIRMED"
        assert orders.get_order_by_id(order_a.id).status is OrderStatus.CONFIRMED
        assert stock_of(product_p.id) == 7

    def test_unknown_order(self, orders):
        with pytest.raises(OrderNotFoundError):
            orders.confirm_order("order-missing")


class TestCancel:
    def test_scenario_c_cancel_restores_stock(self, orders, order_a, product_p, stock_of):
        cancelled = orders.cancel_order(order_a.id)

        assert cancelled.status is OrderStatus.CANCELLED
        assert cancelled.cancelled_at is not None
        assert cancelled.confirmed_at is None
        assert stock_of(product_p.id) == 10

    def test_cancel_restores_every_line(self, db, orders, stock_of):
        a = db.catalog.create(market_id="market-m", name="A", price=1.0, stock=5)
        b = db.catalog.create(market_id="market-m", name="B", price=1.0, stock=8)
        order = orders.place_order(
            "cust1", "market-m", [OrderItemRequest(a.id, 5), OrderItemRequest(b.id, 2)]
        )
        assert (stock_of(a.id), stock_of(b.id)) == (0, 6)

        orders.cancel_order(order.id)

        assert (stock_of(a.id), stock_of(b.id)) == (5, 8)

    def test_cancel_adds_back_on_top_of_later_edits(self, db, orders, order_a, product_p, stock_of):
        db.catalog.update_stock(product_p.id, 20)

        orders.cancel_order(order_a.id)

        assert stock_of(product_p.id) == 23

    def test_deleted_product_is_skipped(self, db, orders, product_p, stock_of):
        other = db.catalog.create(market_id="market-m", name="Other", price=1.0, stock=4)
        order = orders.place_order(
            "cust1", "market-m", [OrderItemRequest(product_p.id, 3), OrderItemRequest(other.id, 1)]
        )
        db.catalog.delete(other.id)

        cancelled = orders.cancel_order(order.id)

        assert cancelled.status is OrderStatus.CANCELLED
        assert stock_of(product_p.id) == 10

    def test_unknown_order(self, orders):
        with pytest.raises(OrderNotFoundError):
            orders.cancel_order("order-missing")


class TestTerminality:
    @pytest.mark.parametrize(
        "first,second",
        [
            ("confirm_order", "confirm_order"),
            ("confirm_order", "cancel_order"),
            ("cancel_order", "cancel_order"),
            ("cancel_order", "confirm_order"),
        ],
    )
    def test_second_transition_always_fails(self, orders, order_a, first, second):
        getattr(orders, first)(order_a.id)

        with pytest.raises(InvalidStateError):
            getattr(orders, second)(order_a.id)

    def test_double_cancel_restores_only_once(self, orders, order_a, product_p, stock_of):
        orders.cancel_order(order_a.id)
        with pytest.raises(InvalidStateError):
            orders.cancel_order(order_a.id)

        assert stock_of(product_p.id) == 10
