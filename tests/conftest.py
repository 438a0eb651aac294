# tests/conftest.py
import os

# configure before any shop module reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal

import pytest

import shop.data.models  # noqa: F401
from shop.data.database import Base, build_engine, build_session_factory
from shop.data.models import CartItemModel, CartModel, ProductModel, UserModel
from shop.services.order_service import OrderService


class StubNotifications:
    """Records notifications instead of queueing Celery tasks."""

    def __init__(self):
        self.orders = []
        self.statuses = []

    def send_order_notification(self, user_id, order_id):
        self.orders.append((user_id, order_id))

    def send_status_notification(self, order_id, status):
        self.statuses.append((order_id, status))


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'shop.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def notifications():
    return StubNotifications()


@pytest.fixture
def order_service(session_factory, notifications):
    return OrderService(session_factory, notifications)


@pytest.fixture
def shop_data(session_factory):
    """User 1 with an active cart: 3 x product 7 at 12.50 and 1 x product 9 at 30.00."""
    with session_factory.begin() as s:
        s.add(UserModel(id=1, name="Ana", email="ana@example.com"))
        s.add_all(
            [
                ProductModel(id=7, name="Vanilla cone", price=Decimal("12.50"), stock=10),
                ProductModel(id=9, name="Chocolate tub", price=Decimal("30.00"), stock=4),
            ]
        )
        s.flush()
        cart = CartModel(id=100, user_id=1, status="active")
        s.add(cart)
        s.flush()
        s.add_all(
            [
                CartItemModel(cart_id=100, product_id=7, quantity=3, unit_price=Decimal("12.50")),
                CartItemModel(cart_id=100, product_id=9, quantity=1, unit_price=Decimal("30.00")),
            ]
        )
    return {"user_id": 1, "cart_id": 100, "products": (7, 9)}


def stock_of(session_factory, product_id):
    with session_factory() as s:
        return s.get(ProductModel, product_id).stock
