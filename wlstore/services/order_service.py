# wlstore/services/order_service.py
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from wlstore.data.models.order import OrderModel
from wlstore.data.models.user import UserModel
from wlstore.domain.errors import NotFoundError
from wlstore.domain import order_status
from wlstore.repos.order_repo import OrderRepo
from wlstore.repos.product_repo import ProductRepo
from wlstore.services.activity_service import activity_feed
from wlstore.services.cart_service import order_to_dict
from wlstore.services.notification_service import NotificationService
from wlstore.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Orders are carts whose status moved past "cart".
    Kept apart from CartService: nothing here mutates items or prices.
    """

    def __init__(self, db: Session, notifications: NotificationService | None = None):
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.notifications = notifications or NotificationService()

    def _views(self, orders: List[OrderModel]) -> List[Dict[str, Any]]:
        codes = {i.product_code for o in orders for i in o.items}
        products = self.products.get_prices(codes)
        return [order_to_dict(o, products) for o in orders]

    def _require(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def list_user_orders(self, user_id: int) -> List[Dict[str, Any]]:
        return self._views(self.repo.list_by_user(user_id))

    def get_order(self, order_id: int, user: UserModel) -> Dict[str, Any]:
        order = self._require(order_id)

        if order.user_id != user.id and not user.is_admin:
            raise PermissionError("Access to this order is not allowed")

        return self._views([order])[0]

    def list_orders(self, status: str | None = None, skip: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
        if status and status not in order_status.STATUSES:
            raise ValueError(f"Unknown status '{status}'")
        return self._views(self.repo.list_orders(status, skip, limit))

    def update_status(self, order_id: int, new_status: str, admin: UserModel) -> Dict[str, Any]:
        order = self._require(order_id)
        previous = order.status

        if previous == order_status.CART:
            logger.warning(f"Order {order_id}: admin status change on an open cart refused")
            raise ValueError("Carts leave the 'cart' status only through checkout")

        try:
            order_status.ensure_transition(previous, new_status)
        except ValueError:
            logger.warning(f"Order {order_id}: rejected status change {previous} -> {new_status}")
            raise

        order.status = new_status
        order.status_changed_at = datetime.now(timezone.utc)
        saved = self.repo.save(order)

        logger.info(f"Order {order_id} status {previous} -> {new_status} by admin {admin.id}")
        activity_feed.record(
            "order",
            f"Order #{order_id} updated: {previous.upper()} -> {new_status.upper()}",
            orderId=order_id,
            userId=saved.user_id,
            status=new_status,
            previousStatus=previous,
            totalAmount=str(saved.total_price),
            actionType="status_update",
            updatedBy=admin.username,
            source="order_management",
        )
        self.notifications.send_order_status_notification(order_id, saved.user_id, new_status)

        return self._views([saved])[0]

    def delete_order(self, order_id: int, admin: UserModel) -> None:
        order = self._require(order_id)
        self.repo.delete(order)

        logger.info(f"Order {order_id} deleted by admin {admin.id}")
        activity_feed.record(
            "order",
            f"Order #{order_id} deleted",
            orderId=order_id,
            actionType="deleted",
            updatedBy=admin.username,
            severity="warning",
            source="order_management",
        )

    def stats(self) -> List[Dict[str, Any]]:
        rows = {status: (count, revenue) for status, count, revenue in self.repo.stats_by_status()}
        return [
            {"status": status, "count": rows.get(status, (0, 0))[0], "revenue": rows.get(status, (0, 0))[1]}
            for status in order_status.STATUSES
            if status != order_status.CART
        ]
