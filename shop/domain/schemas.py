# shop/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import List
from decimal import Decimal
from datetime import datetime

from shop.domain.orders import OrderStatus


class Totals(BaseModel):
    subtotal: Decimal
    total: Decimal


# ---- users ----
class UserCreate(BaseModel):
    """Schema for creating a user."""

    id: int = Field(..., gt=0, description="User id (> 0)")
    name: str = Field(..., min_length=1, max_length=120, description="Display name")
    email: EmailStr | None = None


class UserRead(BaseModel):
    id: int
    name: str
    email: str | None = None

    model_config = ConfigDict(from_attributes=True)


# ---- catalog ----
class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = None
    active: bool = True


class CategoryOut(CategoryIn):
    id: int

    model_config = ConfigDict(from_attributes=True)


class ProductIn(BaseModel):
    """Schema for creating or replacing a product."""

    name: str = Field(..., min_length=1, max_length=160)
    description: str | None = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(0, ge=0)
    category_id: int | None = Field(None, gt=0)
    active: bool = True


class ProductOut(ProductIn):
    id: int
    category_name: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ---- cart ----
class ItemIn(BaseModel):
    """Schema for adding a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product id (> 0)")
    quantity: int = Field(..., gt=0, description="Units to add (> 0)")


class ItemQuantityIn(BaseModel):
    # zero or negative removes the line
    quantity: int


class CartItemOut(BaseModel):
    id: int
    product_id: int
    name: str | None = None
    quantity: int
    unit_price: Decimal


class CartOut(BaseModel):
    cart_id: int
    user_id: int
    status: str
    items: List[CartItemOut]
    totals: Totals


# ---- orders ----
class CheckoutIn(BaseModel):
    customer_name: str | None = Field(None, max_length=120)
    customer_email: EmailStr | None = None


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    name: str | None = None
    quantity: int
    unit_price: Decimal


class CheckoutOut(BaseModel):
    order_id: int
    items: List[OrderItemOut]
    totals: Totals


class OrderOut(BaseModel):
    """Schema for an order with its lines (response)."""

    id: int
    user_id: int
    cart_id: int
    status: OrderStatus
    total: Decimal
    customer_name: str | None = None
    customer_email: str | None = None
    created_at: datetime
    items: List[OrderItemOut] = []
    totals: Totals

    model_config = ConfigDict(from_attributes=True)


class OrderListOut(BaseModel):
    orders: List[OrderOut]


class OrderStatusIn(BaseModel):
    status: OrderStatus


class OrderStatusOut(BaseModel):
    order_id: int
    status: OrderStatus
    items: List[OrderItemOut]
