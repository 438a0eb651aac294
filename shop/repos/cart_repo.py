# shop/repos/cart_repo.py
from sqlalchemy import select, delete, update
from sqlalchemy.orm import Session

from shop.data.models.cart import CartModel
from shop.data.models.cart_item import CartItemModel
from shop.data.models.product import ProductModel
from shop.domain.orders import CartStatus


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_active_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel)
            .where(CartModel.user_id == user_id, CartModel.status == CartStatus.ACTIVE.value)
            .order_by(CartModel.created_at.desc(), CartModel.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel).where(CartItemModel.cart_id == cart_id).order_by(CartItemModel.id)
            ).scalars()
        )

    def get_item_views(self, cart_id: int):
        return self.db.execute(
            select(
                CartItemModel.id,
                CartItemModel.product_id,
                CartItemModel.quantity,
                CartItemModel.unit_price,
                ProductModel.name,
            )
            .join(ProductModel, CartItemModel.product_id == ProductModel.id)
            .where(CartItemModel.cart_id == cart_id)
            .order_by(CartItemModel.id)
        ).mappings().all()

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def get_item(self, item_id: int) -> CartItemModel | None:
        return self.db.get(CartItemModel, item_id)

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def update_item_quantity(self, item: CartItemModel, quantity: int) -> CartItemModel:
        item.quantity = quantity
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.commit()

    def clear_cart(self, cart_id: int) -> None:
        self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))
        self.db.commit()

    def mark_converted(self, cart_id: int) -> bool:
        """Flag an active cart as checked out. Runs inside the caller's transaction.

        Returns False when the cart is missing or was already converted.
        """
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.status == CartStatus.ACTIVE.value)
            .values(status=CartStatus.CONVERTED.value)
        )
        return result.rowcount == 1
