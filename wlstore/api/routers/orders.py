# wlstore/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wlstore.api.deps import get_current_user
from wlstore.api.errors import raise_http
from wlstore.data.database import get_db
from wlstore.data.models.user import UserModel
from wlstore.domain.schemas import CartItemIn, OrderOut, QuantityIn
from wlstore.services.cart_service import CartService
from wlstore.services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("/cart", response_model=OrderOut)
def get_cart(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    return CartService(db).get_cart(user.id)


@router.post("/cart/items", response_model=OrderOut)
def add_item(
    payload: CartItemIn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return CartService(db).add_item(user.id, payload.product_code, payload.quantity)
    except ValueError as e:
        raise_http(e)


@router.put("/cart/items/{product_code}", response_model=OrderOut)
def update_item(
    product_code: str,
    payload: QuantityIn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return CartService(db).update_item(user.id, product_code, payload.quantity)
    except ValueError as e:
        raise_http(e)


@router.delete("/cart/items/{product_code}", response_model=OrderOut)
def remove_item(
    product_code: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return CartService(db).remove_item(user.id, product_code)
    except ValueError as e:
        raise_http(e)


@router.delete("/cart", response_model=OrderOut)
def clear_cart(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return CartService(db).clear(user.id)
    except ValueError as e:
        raise_http(e)


@router.post("/checkout", response_model=OrderOut, status_code=201)
def checkout(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    """Turns the active cart into a pending order."""
    try:
        return CartService(db).checkout(user.id)
    except ValueError as e:
        raise_http(e)


@router.get("/", response_model=List[OrderOut])
def list_my_orders(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    return OrderService(db).list_user_orders(user.id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return OrderService(db).get_order(order_id, user)
    except (ValueError, PermissionError) as e:
        raise_http(e)
