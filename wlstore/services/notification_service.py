# wlstore/services/notification_service.py
import smtplib
from email.message import EmailMessage

from wlstore.celery_worker import celery_app
from wlstore.data.database import SessionLocal
from wlstore.repos.user_repo import UserRepo
from wlstore.utils.settings import SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, MAIL_FROM
from wlstore.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_MESSAGES = {
    "pending": "We have received your order and it is waiting for confirmation.",
    "processing": "Your order is being processed.",
    "shipped": "Your order is on its way.",
    "completed": "Your order has been delivered. Thank you for shopping with us!",
    "cancelled": "Your order has been cancelled.",
}


class NotificationService:
    """
    Customer notifications about order status changes.
    Delivery goes through Celery so requests never wait on SMTP.
    """

    @staticmethod
    def send_order_status_notification(order_id: int, user_id: int, status: str):
        send_order_status_notification_task.delay(order_id, user_id, status)


def _send_mail(to: str, subject: str, body: str) -> None:
    msg = EmailMessage()
    msg["From"] = MAIL_FROM
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body)

    with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=10) as smtp:
        smtp.starttls()
        if SMTP_USER:
            smtp.login(SMTP_USER, SMTP_PASSWORD)
        smtp.send_message(msg)


@celery_app.task(name="wlstore.services.notification_service.send_order_status_notification_task")
def send_order_status_notification_task(order_id: int, user_id: int, status: str):
    db = SessionLocal()
    try:
        user = UserRepo(db).get_user(user_id)
    finally:
        db.close()

    if not user:
        logger.warning(f"[NOTIFICATION] Order {order_id}: user {user_id} no longer exists")
        return {"order_id": order_id, "user_id": user_id, "status": "skipped"}

    subject = f"WLStore order #{order_id}: {status}"
    body = f"Hi {user.name},\n\n{STATUS_MESSAGES.get(status, f'Order status: {status}.')}\n\nWLStore"

    if not SMTP_HOST:
        logger.info(f"[NOTIFICATION] {user.email}: {subject}")
        return {"order_id": order_id, "user_id": user_id, "status": "logged"}

    _send_mail(user.email, subject, body)
    logger.info(f"[NOTIFICATION] Mail sent to {user.email} for order {order_id}")
    return {"order_id": order_id, "user_id": user_id, "status": "sent"}
