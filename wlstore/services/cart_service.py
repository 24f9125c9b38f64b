# wlstore/services/cart_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from wlstore.data.models.order import OrderModel
from wlstore.data.models.order_item import OrderItemModel
from wlstore.data.models.product import ProductModel
from wlstore.domain.errors import NotFoundError
from wlstore.domain import order_status
from wlstore.repos.order_repo import OrderRepo
from wlstore.repos.product_repo import ProductRepo, unit_price
from wlstore.services.activity_service import activity_feed
from wlstore.services.notification_service import NotificationService
from wlstore.utils.logging import get_logger

logger = get_logger(__name__)


def compute_total(order: OrderModel, products: Dict[str, ProductModel]) -> Decimal:
    #items whose product vanished count as 0
    return sum(
        (unit_price(products.get(i.product_code)) * i.quantity for i in order.items),
        Decimal("0.00"),
    )


def order_to_dict(order: OrderModel, products: Dict[str, ProductModel]) -> Dict[str, Any]:
    items = []
    for i in order.items:
        product = products.get(i.product_code)
        price = unit_price(product)
        items.append(
            {
                "product_code": i.product_code,
                "quantity": i.quantity,
                "name": product.name if product else None,
                "unit_price": price,
                "subtotal": price * i.quantity,
            }
        )

    return {
        "id": order.id,
        "user_id": order.user_id,
        "status": order.status,
        "items": items,
        "total_price": Decimal(str(order.total_price or 0)),
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "status_changed_at": order.status_changed_at,
        "allowed_next_statuses": order_status.allowed_next(order.status),
    }


class CartService:
    """
    Use cases of the user's active cart.
    Commands (add, update, remove, clear, checkout) mutate it and always
    recompute total_price from current product prices; get only reads.
    """

    def __init__(self, db: Session, notifications: NotificationService | None = None):
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.notifications = notifications or NotificationService()

    def _view(self, order: OrderModel) -> Dict[str, Any]:
        products = self.products.get_prices(i.product_code for i in order.items)
        return order_to_dict(order, products)

    def _recompute_and_save(self, cart: OrderModel) -> Dict[str, Any]:
        products = self.products.get_prices(i.product_code for i in cart.items)
        cart.total_price = compute_total(cart, products)
        saved = self.repo.save(cart)
        return order_to_dict(saved, products)

    def _create_cart(self, user_id: int) -> OrderModel:
        logger.info(f"Creating cart for user {user_id}")
        return self.repo.create_order(
            OrderModel(user_id=user_id, status=order_status.CART, total_price=Decimal("0.00"))
        )

    def _require_cart(self, user_id: int) -> OrderModel:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")
        return cart

    @staticmethod
    def _find_item(cart: OrderModel, product_code: str) -> OrderItemModel | None:
        return next((i for i in cart.items if i.product_code == product_code), None)

    @staticmethod
    def _check_stock(product: ProductModel, quantity: int) -> None:
        #checked only, stock is never reserved or decremented
        if quantity > product.stock:
            raise ValueError(
                f"Insufficient stock for product '{product.code}': "
                f"requested {quantity}, available {product.stock}"
            )

    #query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return {
                "id": None,
                "user_id": user_id,
                "status": order_status.CART,
                "items": [],
                "total_price": Decimal("0.00"),
                "allowed_next_statuses": order_status.allowed_next(order_status.CART),
            }
        return self._view(cart)

    #commands
    def add_item(self, user_id: int, product_code: str, quantity: int = 1) -> Dict[str, Any]:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        product = self.products.get_by_code(product_code)
        if not product:
            raise NotFoundError(f"Product '{product_code}' not found")

        cart = self.repo.get_cart_by_user(user_id)
        item = self._find_item(cart, product_code) if cart else None
        new_quantity = quantity + (item.quantity if item else 0)
        self._check_stock(product, new_quantity)

        #carts are created lazily on the first successful add
        cart = cart or self._create_cart(user_id)

        if item:
            logger.info(
                f"Product {product_code} already in cart {cart.id}, "
                f"quantity {item.quantity} -> {new_quantity}"
            )
            item.quantity = new_quantity
        else:
            logger.info(f"Adding product {product_code} x{quantity} to cart {cart.id}")
            cart.items.append(OrderItemModel(product_code=product_code, quantity=quantity))

        return self._recompute_and_save(cart)

    def update_item(self, user_id: int, product_code: str, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        cart = self._require_cart(user_id)
        item = self._find_item(cart, product_code)
        if not item:
            raise NotFoundError(f"Product '{product_code}' is not in the cart")

        product = self.products.get_by_code(product_code)
        if not product:
            raise NotFoundError(f"Product '{product_code}' not found")
        self._check_stock(product, quantity)

        logger.info(f"Cart {cart.id}: product {product_code} quantity {item.quantity} -> {quantity}")
        item.quantity = quantity
        return self._recompute_and_save(cart)

    def remove_item(self, user_id: int, product_code: str) -> Dict[str, Any]:
        cart = self._require_cart(user_id)
        item = self._find_item(cart, product_code)
        if not item:
            raise NotFoundError(f"Product '{product_code}' is not in the cart")

        logger.info(f"Removing product {product_code} from cart {cart.id}")
        cart.items.remove(item)
        return self._recompute_and_save(cart)

    def clear(self, user_id: int) -> Dict[str, Any]:
        cart = self._require_cart(user_id)
        logger.info(f"Clearing cart {cart.id}")
        cart.items.clear()
        return self._recompute_and_save(cart)

    def checkout(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart or not cart.items:
            raise ValueError("Cannot check out an empty cart")

        order_status.ensure_transition(cart.status, order_status.PENDING)

        products = self.products.get_prices(i.product_code for i in cart.items)
        cart.total_price = compute_total(cart, products)
        cart.status = order_status.PENDING
        cart.status_changed_at = datetime.now(timezone.utc)
        saved = self.repo.save(cart)

        logger.info(f"Cart {saved.id} checked out by user {user_id}, total {saved.total_price}")
        activity_feed.record(
            "order",
            f"New order #{saved.id} (total {saved.total_price})",
            orderId=saved.id,
            userId=user_id,
            status=saved.status,
            totalAmount=str(saved.total_price),
            itemCount=len(saved.items),
            actionType="new_order",
            source="order_management",
        )
        self.notifications.send_order_status_notification(saved.id, user_id, saved.status)

        return order_to_dict(saved, products)
