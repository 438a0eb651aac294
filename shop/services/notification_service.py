# shop/services/notification_service.py
from shop.celery_worker import celery_app
from shop.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Queues customer notifications on the Celery broker.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_id: int):
        """
        Notifies the customer that the order was received.
        """
        send_order_notification_task.delay(user_id, order_id)

    @staticmethod
    def send_status_notification(order_id: int, status: str):
        send_status_notification_task.delay(order_id, status)


@celery_app.task(name="shop.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int):
    """
    Celery task. Only logs; an e-mail or push gateway would be called here.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} received")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}


@celery_app.task(name="shop.services.notification_service.send_status_notification_task")
def send_status_notification_task(order_id: int, status: str):
    logger.info(f"[NOTIFICATION] Order {order_id} is now {status}")
    return {"order_id": order_id, "order_status": status, "status": "sent"}
