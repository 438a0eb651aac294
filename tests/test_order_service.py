"""Order lifecycle against a real (SQLite) database.

Covers checkout of a cart into an order and the stock reconciliation
performed by status changes, including concurrent payment of one order.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from shop.data.models import CartModel, OrderItemModel, OrderModel, ProductModel
from shop.domain.orders import CartLine, CartNotActive, OrderError, OrderStatus, StockAdjustment
from shop.repos.order_repo import OrderRepo
from shop.services.order_service import OrderService

from conftest import stock_of

LINES = [
    CartLine(product_id=7, quantity=3, unit_price=Decimal("12.50")),
    CartLine(product_id=9, quantity=1, unit_price=Decimal("30.00")),
]


def create_order(order_service, shop_data, lines=LINES):
    return order_service.create_order_from_cart(
        user_id=shop_data["user_id"],
        cart_id=shop_data["cart_id"],
        items=lines,
        customer_name="Ana",
        customer_email="ana@example.com",
    )


def count(session_factory, model):
    with session_factory() as s:
        return s.execute(select(func.count()).select_from(model)).scalar_one()


# ---- creation ----

def test_create_order_snapshots_cart(order_service, session_factory, shop_data, notifications):
    order_id = create_order(order_service, shop_data)

    with session_factory() as s:
        order = s.get(OrderModel, order_id)
        assert order.status == "pending"
        assert order.total == Decimal("67.50")
        assert order.customer_email == "ana@example.com"
        assert s.get(CartModel, shop_data["cart_id"]).status == "converted"
        lines = s.execute(select(OrderItemModel).where(OrderItemModel.order_id == order_id)).scalars().all()
        assert sorted((l.product_id, l.quantity, l.unit_price) for l in lines) == [
            (7, 3, Decimal("12.50")),
            (9, 1, Decimal("30.00")),
        ]

    # stock is only committed on payment
    assert stock_of(session_factory, 7) == 10
    assert stock_of(session_factory, 9) == 4
    assert notifications.orders == [(1, order_id)]


def test_total_uses_snapshot_prices_not_catalog(order_service, session_factory, shop_data):
    with session_factory.begin() as s:
        s.get(ProductModel, 7).price = Decimal("99.00")

    order_id = create_order(order_service, shop_data)

    with session_factory.begin() as s:
        s.get(ProductModel, 9).price = Decimal("1.00")
    order = order_service.get_order(order_id)
    assert order["total"] == Decimal("67.50")


def test_create_order_is_atomic(order_service, session_factory, shop_data, notifications, monkeypatch):
    lines = LINES + [CartLine(product_id=7, quantity=1, unit_price=Decimal("12.50"))]
    original_add_line = OrderRepo.add_line
    calls = {"n": 0}

    def failing_add_line(self, line):
        calls["n"] += 1
        if calls["n"] == 2:
            raise SQLAlchemyError("forced failure on second line")
        return original_add_line(self, line)

    monkeypatch.setattr(OrderRepo, "add_line", failing_add_line)

    with pytest.raises(SQLAlchemyError, match="forced failure"):
        create_order(order_service, shop_data, lines)

    assert count(session_factory, OrderModel) == 0
    assert count(session_factory, OrderItemModel) == 0
    with session_factory() as s:
        assert s.get(CartModel, shop_data["cart_id"]).status == "active"
    assert notifications.orders == []


def test_notification_failure_does_not_undo_order(session_factory, shop_data):
    class BrokenNotifications:
        def send_order_notification(self, user_id, order_id):
            raise ConnectionError("broker down")

    order_id = create_order(OrderService(session_factory, BrokenNotifications()), shop_data)
    assert count(session_factory, OrderModel) == 1
    assert order_id is not None


# ---- status transitions ----

def test_example_scenario_pay_then_cancel(order_service, session_factory, shop_data, notifications):
    order_id = create_order(order_service, shop_data)

    result = order_service.update_order_status(order_id, "paid")
    assert result.ok
    assert result.value.adjustment == StockAdjustment.DECREASE
    assert stock_of(session_factory, 7) == 7
    assert stock_of(session_factory, 9) == 3

    result = order_service.update_order_status(order_id, OrderStatus.CANCELLED)
    assert result.ok
    assert result.value.previous_status == OrderStatus.PAID
    assert result.value.adjustment == StockAdjustment.INCREASE
    assert stock_of(session_factory, 7) == 10
    assert stock_of(session_factory, 9) == 4

    assert notifications.statuses == [(order_id, "paid"), (order_id, "cancelled")]


def test_cancelling_pending_order_keeps_stock(order_service, session_factory, shop_data):
    order_id = create_order(order_service, shop_data)

    result = order_service.update_order_status(order_id, "cancelled")

    assert result.ok and result.value.adjustment is None
    assert order_service.get_order(order_id)["status"] == "cancelled"
    assert stock_of(session_factory, 7) == 10
    assert stock_of(session_factory, 9) == 4


@pytest.mark.parametrize("status", ["pending", "paid", "cancelled"])
def test_same_status_is_a_no_op(order_service, session_factory, shop_data, notifications, status):
    order_id = create_order(order_service, shop_data)
    if status != "pending":
        order_service.update_order_status(order_id, status)
    before = (stock_of(session_factory, 7), stock_of(session_factory, 9))
    notified = list(notifications.statuses)

    result = order_service.update_order_status(order_id, status)

    assert result.ok
    assert not result.value.changed
    assert (stock_of(session_factory, 7), stock_of(session_factory, 9)) == before
    assert notifications.statuses == notified


def test_repaying_after_cancel_decrements_again(order_service, session_factory, shop_data):
    order_id = create_order(order_service, shop_data)

    order_service.update_order_status(order_id, "cancelled")
    order_service.update_order_status(order_id, "paid")

    assert stock_of(session_factory, 7) == 7


def test_decrement_floors_at_zero(order_service, session_factory, shop_data):
    with session_factory.begin() as s:
        s.get(ProductModel, 7).stock = 2
    order_id = create_order(order_service, shop_data, [CartLine(product_id=7, quantity=5, unit_price=Decimal("12.50"))])

    result = order_service.update_order_status(order_id, "paid")

    assert result.ok
    assert stock_of(session_factory, 7) == 0
    assert order_service.get_order(order_id)["status"] == "paid"


def test_missing_order_is_not_found(order_service, session_factory, shop_data, notifications):
    result = order_service.update_order_status(424242, "paid")

    assert not result.ok
    assert result.error == OrderError.NOT_FOUND
    assert stock_of(session_factory, 7) == 10
    assert notifications.statuses == []


def test_missing_product_is_skipped(order_service, session_factory, shop_data):
    order_id = create_order(
        order_service,
        shop_data,
        LINES + [CartLine(product_id=555, quantity=1, unit_price=Decimal("1.00"))],
    )

    result = order_service.update_order_status(order_id, "paid")

    assert result.ok
    assert stock_of(session_factory, 7) == 7


def test_failed_stock_write_rolls_back_status(order_service, session_factory, shop_data, monkeypatch):
    from shop.repos.product_repo import ProductRepo

    order_id = create_order(order_service, shop_data)
    original_lock = ProductRepo.lock_product

    def failing_lock(self, product_id):
        if product_id == 9:
            raise SQLAlchemyError("lock timeout")
        return original_lock(self, product_id)

    monkeypatch.setattr(ProductRepo, "lock_product", failing_lock)

    with pytest.raises(SQLAlchemyError):
        order_service.update_order_status(order_id, "paid")

    assert order_service.get_order(order_id)["status"] == "pending"
    assert stock_of(session_factory, 7) == 10


def test_concurrent_payment_decrements_once(order_service, session_factory, shop_data):
    order_id = create_order(order_service, shop_data)
    barrier = threading.Barrier(2)

    def pay():
        barrier.wait()
        return order_service.update_order_status(order_id, "paid")

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = [f.result() for f in [pool.submit(pay), pool.submit(pay)]]

    assert all(r.ok for r in results)
    assert sorted(r.value.changed for r in results) == [False, True]
    assert stock_of(session_factory, 7) == 7
    assert stock_of(session_factory, 9) == 3
    assert order_service.get_order(order_id)["status"] == "paid"


# ---- checkout and queries ----

def test_checkout_active_cart(order_service, session_factory, shop_data):
    result = order_service.checkout(user_id=1)

    assert result.ok
    checkout = result.value
    assert checkout.totals["total"] == Decimal("67.50")
    assert {i["product_id"] for i in checkout.items} == {7, 9}

    order = order_service.get_order(checkout.order_id)
    assert order["customer_name"] == "Ana"
    assert order["customer_email"] == "ana@example.com"

    # the converted cart cannot be checked out twice
    assert order_service.checkout(user_id=1).error == OrderError.NO_ACTIVE_CART


def test_checkout_empty_cart(order_service, session_factory, shop_data):
    with session_factory.begin() as s:
        s.add(CartModel(id=200, user_id=2, status="active"))

    assert order_service.checkout(user_id=2).error == OrderError.EMPTY_CART
    assert order_service.checkout(user_id=3).error == OrderError.NO_ACTIVE_CART


def test_order_listing_falls_back_to_user_contact(order_service, shop_data):
    order_id = order_service.create_order_from_cart(
        user_id=1, cart_id=shop_data["cart_id"], items=LINES
    )

    mine = order_service.get_orders_for_user(1)
    assert [o["id"] for o in mine] == [order_id]
    assert mine[0]["customer_name"] == "Ana"
    assert mine[0]["customer_email"] == "ana@example.com"
    assert mine[0]["totals"]["total"] == Decimal("67.50")
    assert [i["name"] for i in mine[0]["items"]] == ["Vanilla cone", "Chocolate tub"]

    assert order_service.get_orders_for_user(2) == []
    assert [o["id"] for o in order_service.get_all_orders()] == [order_id]
    assert order_service.get_order(999) is None


def test_converted_cart_cannot_become_a_second_order(order_service, session_factory, shop_data, notifications):
    first = create_order(order_service, shop_data)

    with pytest.raises(CartNotActive):
        create_order(order_service, shop_data)

    assert count(session_factory, OrderModel) == 1
    assert count(session_factory, OrderItemModel) == 2
    assert notifications.orders == [(1, first)]


def test_concurrent_checkouts_of_one_cart_create_one_order(order_service, session_factory, shop_data, monkeypatch):
    barrier = threading.Barrier(2)
    original_create = OrderService.create_order_from_cart

    def create_after_both_read_the_cart(self, *args, **kwargs):
        barrier.wait()
        return original_create(self, *args, **kwargs)

    monkeypatch.setattr(OrderService, "create_order_from_cart", create_after_both_read_the_cart)

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = [f.result() for f in [pool.submit(order_service.checkout, 1), pool.submit(order_service.checkout, 1)]]

    assert sorted(r.ok for r in results) == [False, True]
    assert [r.error for r in results if not r.ok] == [OrderError.NO_ACTIVE_CART]
    assert count(session_factory, OrderModel) == 1
    assert count(session_factory, OrderItemModel) == 2
    with session_factory() as s:
        assert s.get(CartModel, shop_data["cart_id"]).status == "converted"
