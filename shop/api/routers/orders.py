# shop/api/routers/orders.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from shop.data.database import get_session_factory
from shop.domain.orders import OrderError
from shop.domain.schemas import (
    CheckoutIn,
    CheckoutOut,
    OrderListOut,
    OrderStatusIn,
    OrderStatusOut,
)
from shop.services.notification_service import NotificationService
from shop.services.order_service import OrderService
from shop.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

_CHECKOUT_ERRORS = {
    OrderError.NO_ACTIVE_CART: "No active cart",
    OrderError.EMPTY_CART: "Cart is empty",
}


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_service(
    session_factory: sessionmaker = Depends(get_session_factory),
    notification_service: NotificationService = Depends(get_notification_service),
) -> OrderService:
    return OrderService(session_factory, notification_service)


@router.post("/checkout", response_model=CheckoutOut, status_code=201)
def checkout(
    payload: CheckoutIn | None = None,
    user_id: int = Query(..., gt=0),
    svc: OrderService = Depends(get_service),
):
    """
    Turns the user's active cart into a pending order.
    """
    payload = payload or CheckoutIn()
    try:
        result = svc.checkout(
            user_id=user_id,
            customer_name=payload.customer_name,
            customer_email=payload.customer_email,
        )
    except SQLAlchemyError:
        logger.exception(f"Checkout failed for user {user_id}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if not result.ok:
        raise HTTPException(status_code=400, detail=_CHECKOUT_ERRORS[result.error])

    checkout_result = result.value
    return {
        "order_id": checkout_result.order_id,
        "items": checkout_result.items,
        "totals": checkout_result.totals,
    }


@router.get("/mine", response_model=OrderListOut)
def list_my_orders(user_id: int = Query(..., gt=0), svc: OrderService = Depends(get_service)):
    return {"orders": svc.get_orders_for_user(user_id)}


@router.get("/", response_model=OrderListOut)
def list_all_orders(svc: OrderService = Depends(get_service)):
    return {"orders": svc.get_all_orders()}


@router.patch("/{order_id}/status", response_model=OrderStatusOut)
def update_order_status(
    order_id: int,
    payload: OrderStatusIn,
    svc: OrderService = Depends(get_service),
):
    """
    Changes the order status; paying or reversing a paid order adjusts stock.
    """
    try:
        result = svc.update_order_status(order_id, payload.status)
    except SQLAlchemyError:
        logger.exception(f"Status update to {payload.status.value} failed for order {order_id}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if result.error == OrderError.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Order not found")

    return {
        "order_id": order_id,
        "status": result.value.status,
        "items": svc.get_order_items(order_id),
    }
