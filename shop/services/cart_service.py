# shop/services/cart_service.py
from sqlalchemy.orm import Session

from shop.data.models.cart import CartModel
from shop.data.models.cart_item import CartItemModel
from shop.domain.orders import CartStatus
from shop.repos.cart_repo import CartRepo
from shop.repos.product_repo import ProductRepo
from shop.utils.logging import get_logger
from shop.utils.totals import calculate_totals

logger = get_logger(__name__)


class CartService:
    """
    Use cases of the shopper's cart. A user has at most one active cart;
    it is created on first use and frozen (``converted``) by checkout.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    # =====================================================
    # QUERY
    # =====================================================
    def get_cart(self, user_id: int):
        """
        Use Case: Active cart with its lines and totals.
        """
        cart = self.get_or_create_active_cart(user_id)
        items = [dict(row) for row in self.repo.get_item_views(cart.id)]

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "status": cart.status,
            "items": items,
            "totals": calculate_totals(items),
        }

    # =====================================================
    # COMMANDS
    # =====================================================
    def get_or_create_active_cart(self, user_id: int) -> CartModel:
        existing = self.repo.get_active_cart_by_user(user_id)
        if existing:
            return existing

        created = self.repo.create_cart(CartModel(user_id=user_id, status=CartStatus.ACTIVE.value))
        logger.info(f"Cart {created.id} created for user {user_id}")
        return created

    def add_item(self, user_id: int, product_id: int, quantity: int):
        """
        Use Case: Add a product to the active cart.

        The unit price is the catalog price at the moment of adding; it is
        the price the order will be charged at. Adding a product that is
        already in the cart increases its quantity.
        """
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        product = self.products.get_product(product_id)
        if not product:
            raise LookupError("Product not found")

        cart = self.get_or_create_active_cart(user_id)

        existing_item = self.repo.get_cart_item(cart.id, product_id)
        if existing_item:
            self.repo.update_item_quantity(existing_item, existing_item.quantity + quantity)
        else:
            self.repo.add_cart_item(
                CartItemModel(
                    cart_id=cart.id,
                    product_id=product_id,
                    quantity=quantity,
                    unit_price=product.price,
                )
            )

        return self.get_cart(user_id)

    def update_item_quantity(self, user_id: int, item_id: int, quantity: int):
        """
        Use Case: Set a line's quantity. Zero or less removes the line.
        """
        item = self._owned_item(user_id, item_id)

        if quantity <= 0:
            self.repo.delete_item(item)
        else:
            self.repo.update_item_quantity(item, quantity)

        return self.get_cart(user_id)

    def remove_item(self, user_id: int, item_id: int):
        item = self._owned_item(user_id, item_id)
        self.repo.delete_item(item)
        return self.get_cart(user_id)

    def clear_cart(self, user_id: int):
        cart = self.get_or_create_active_cart(user_id)
        self.repo.clear_cart(cart.id)
        return self.get_cart(user_id)

    def _owned_item(self, user_id: int, item_id: int) -> CartItemModel:
        item = self.repo.get_item(item_id)
        if not item:
            raise LookupError("Cart item not found")

        cart = self.repo.get_cart(item.cart_id)
        if cart.user_id != user_id:
            raise PermissionError("Cart item belongs to another user")
        if cart.status != CartStatus.ACTIVE.value:
            raise ValueError("Cart can no longer be modified")

        return item
