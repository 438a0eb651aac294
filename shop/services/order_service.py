# shop/services/order_service.py
from decimal import Decimal
from typing import Sequence

from sqlalchemy.orm import Session, sessionmaker

from shop.data.models.order import OrderModel
from shop.data.models.order_item import OrderItemModel
from shop.domain.orders import (
    CartLine,
    CartNotActive,
    CheckoutResult,
    OrderError,
    OrderStatus,
    OrderStatusChange,
    Result,
    StockAdjustment,
    adjusted_stock,
    stock_adjustment_for,
)
from shop.repos.cart_repo import CartRepo
from shop.repos.order_repo import OrderRepo
from shop.repos.product_repo import ProductRepo
from shop.repos.user_repo import UserRepo
from shop.services.notification_service import NotificationService
from shop.utils.logging import get_logger
from shop.utils.totals import calculate_totals

logger = get_logger(__name__)


class _OrderNotFound(Exception):
    """Aborts the status transaction when the order row does not exist."""


class OrderService:
    """
    Order lifecycle: checkout of a cart into an order and status changes
    with stock reconciliation.

    Every command runs in its own transaction opened from ``session_factory``
    and is attempted once; persistence errors roll the transaction back and
    propagate unchanged.
    """

    def __init__(self, session_factory: sessionmaker, notification_service: NotificationService | None = None):
        self.session_factory = session_factory
        self.notification_service = notification_service or NotificationService()

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_order_from_cart(
        self,
        user_id: int,
        cart_id: int,
        items: Sequence[CartLine],
        customer_name: str | None = None,
        customer_email: str | None = None,
    ) -> int:
        """
        Use Case: Turn a cart snapshot into a pending order.

        The total is taken from the unit prices in ``items``, not from the
        catalog. The order, its lines and the cart's ``converted`` flag are
        written in one transaction. Stock is not touched until the order
        is paid.

        Raises ``CartNotActive`` (nothing written) when the cart is no longer
        active, e.g. a concurrent checkout converted it first.
        """
        total = calculate_totals(items)["total"]

        with self.session_factory.begin() as session:
            repo = OrderRepo(session)
            order = repo.add_order(
                OrderModel(
                    user_id=user_id,
                    cart_id=cart_id,
                    total=total,
                    status=OrderStatus.PENDING.value,
                    customer_name=customer_name,
                    customer_email=customer_email,
                )
            )
            order_id = order.id

            for item in items:
                repo.add_line(
                    OrderItemModel(
                        order_id=order_id,
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                    )
                )

            if not CartRepo(session).mark_converted(cart_id):
                raise CartNotActive(cart_id)

        logger.info(f"Order {order_id} created from cart {cart_id} (total {total})")
        self._notify(self.notification_service.send_order_notification, user_id, order_id)

        return order_id

    def update_order_status(self, order_id: int, status: OrderStatus | str) -> Result[OrderStatusChange]:
        """
        Use Case: Change an order's status and reconcile stock.

        The order row stays locked from the status read until commit, so
        concurrent calls for the same order run one after another and see
        each other's result.

        Returns ``Result.failure(OrderError.NOT_FOUND)`` when the order does
        not exist; nothing is written in that case.
        """
        requested = OrderStatus(status)

        try:
            change = self._apply_status(order_id, requested)
        except _OrderNotFound:
            logger.info(f"Order {order_id} not found, status {requested.value} not applied")
            return Result.failure(OrderError.NOT_FOUND)

        if change.changed:
            logger.info(
                f"Order {order_id} status {change.previous_status.value} -> {change.status.value}"
                f" (stock: {change.adjustment.value if change.adjustment else 'unchanged'})"
            )
            self._notify(self.notification_service.send_status_notification, order_id, change.status.value)

        return Result.success(change)

    def checkout(
        self,
        user_id: int,
        customer_name: str | None = None,
        customer_email: str | None = None,
    ) -> Result[CheckoutResult]:
        """
        Use Case: Checkout of the user's active cart.

        Customer name and e-mail default to the user's own.
        """
        with self.session_factory() as session:
            cart_repo = CartRepo(session)
            cart = cart_repo.get_active_cart_by_user(user_id)
            if not cart:
                return Result.failure(OrderError.NO_ACTIVE_CART)

            cart_id = cart.id
            lines = [
                CartLine(product_id=i.product_id, quantity=i.quantity, unit_price=Decimal(i.unit_price))
                for i in cart_repo.get_cart_items(cart_id)
            ]
            if not lines:
                return Result.failure(OrderError.EMPTY_CART)

            contact = UserRepo(session).get_contact(user_id)
            if contact is not None:
                customer_name = customer_name or contact.name
                customer_email = customer_email or contact.email

        try:
            order_id = self.create_order_from_cart(
                user_id=user_id,
                cart_id=cart_id,
                items=lines,
                customer_name=customer_name,
                customer_email=customer_email,
            )
        except CartNotActive:
            logger.info(f"Cart {cart_id} of user {user_id} was converted by another checkout")
            return Result.failure(OrderError.NO_ACTIVE_CART)

        items = self.get_order_items(order_id)

        return Result.success(CheckoutResult(order_id=order_id, items=items, totals=calculate_totals(items)))

    # =====================================================
    # QUERIES
    # =====================================================
    def get_order(self, order_id: int) -> dict | None:
        with self.session_factory() as session:
            repo = OrderRepo(session)
            row = repo.get_order_view(order_id)
            if row is None:
                return None
            return self._with_items(repo, row)

    def get_orders_for_user(self, user_id: int) -> list[dict]:
        with self.session_factory() as session:
            repo = OrderRepo(session)
            return [self._with_items(repo, row) for row in repo.list_order_views(user_id)]

    def get_all_orders(self) -> list[dict]:
        with self.session_factory() as session:
            repo = OrderRepo(session)
            return [self._with_items(repo, row) for row in repo.list_order_views()]

    def get_order_items(self, order_id: int) -> list[dict]:
        with self.session_factory() as session:
            return [dict(row) for row in OrderRepo(session).get_item_views(order_id)]

    # =====================================================
    # INTERNALS
    # =====================================================
    def _apply_status(self, order_id: int, requested: OrderStatus) -> OrderStatusChange:
        with self.session_factory.begin() as session:
            repo = OrderRepo(session)
            order = repo.lock_order(order_id)
            if order is None:
                raise _OrderNotFound(order_id)

            previous = OrderStatus(order.status)
            if previous == requested:
                return OrderStatusChange(order_id=order_id, previous_status=previous, status=requested)

            order.status = requested.value
            session.flush()

            adjustment = stock_adjustment_for(previous, requested)
            if adjustment is not None:
                self._adjust_stock(session, repo, order_id, adjustment)

        return OrderStatusChange(
            order_id=order_id,
            previous_status=previous,
            status=requested,
            adjustment=adjustment,
        )

    def _adjust_stock(self, session: Session, repo: OrderRepo, order_id: int, adjustment: StockAdjustment) -> None:
        # lines come ordered by product id, so product locks are always taken in the same order
        products = ProductRepo(session)

        for line in repo.get_lines(order_id):
            if not line.product_id or not line.quantity or line.quantity <= 0:
                continue

            product = products.lock_product(line.product_id)
            if product is None:
                logger.warning(f"Order {order_id}: product {line.product_id} no longer exists, stock not adjusted")
                continue

            current = product.stock or 0
            new_stock = adjusted_stock(current, line.quantity, adjustment)
            if new_stock != current:
                product.stock = new_stock

        session.flush()

    def _with_items(self, repo: OrderRepo, row) -> dict:
        order = dict(row)
        items = [dict(i) for i in repo.get_item_views(order["id"])]
        order["items"] = items
        order["totals"] = calculate_totals(items)
        return order

    @staticmethod
    def _notify(send, *args):
        try:
            send(*args)
        except Exception as e:
            logger.warning(f"Failed to queue notification {send.__name__}{args}: {e}")
