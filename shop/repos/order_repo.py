# shop/repos/order_repo.py
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from shop.data.models.order import OrderModel
from shop.data.models.order_item import OrderItemModel
from shop.data.models.product import ProductModel
from shop.data.models.user import UserModel


_ORDER_COLUMNS = (
    OrderModel.id,
    OrderModel.user_id,
    OrderModel.cart_id,
    OrderModel.total,
    OrderModel.status,
    OrderModel.created_at,
    func.coalesce(OrderModel.customer_name, UserModel.name).label("customer_name"),
    func.coalesce(OrderModel.customer_email, UserModel.email).label("customer_email"),
)


class OrderRepo:
    """Persistence for orders and order lines.

    The repo never commits; transaction boundaries belong to the caller.
    """

    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def add_line(self, line: OrderItemModel) -> OrderItemModel:
        self.db.add(line)
        self.db.flush()
        return line

    def lock_order(self, order_id: int) -> OrderModel | None:
        """Read the order holding an exclusive row lock until the transaction ends."""
        return self.db.execute(
            select(OrderModel).where(OrderModel.id == order_id).with_for_update()
        ).scalar_one_or_none()

    def get_lines(self, order_id: int) -> list[OrderItemModel]:
        return list(
            self.db.execute(
                select(OrderItemModel)
                .where(OrderItemModel.order_id == order_id)
                .order_by(OrderItemModel.product_id, OrderItemModel.id)
            ).scalars()
        )

    def get_order_view(self, order_id: int):
        return self.db.execute(
            select(*_ORDER_COLUMNS)
            .outerjoin(UserModel, OrderModel.user_id == UserModel.id)
            .where(OrderModel.id == order_id)
        ).mappings().first()

    def list_order_views(self, user_id: int | None = None):
        stmt = select(*_ORDER_COLUMNS).outerjoin(UserModel, OrderModel.user_id == UserModel.id)
        if user_id is not None:
            stmt = stmt.where(OrderModel.user_id == user_id)
        stmt = stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        return self.db.execute(stmt).mappings().all()

    def get_item_views(self, order_id: int):
        return self.db.execute(
            select(
                OrderItemModel.id,
                OrderItemModel.product_id,
                OrderItemModel.quantity,
                OrderItemModel.unit_price,
                ProductModel.name,
            )
            .join(ProductModel, OrderItemModel.product_id == ProductModel.id)
            .where(OrderItemModel.order_id == order_id)
            .order_by(OrderItemModel.id)
        ).mappings().all()
