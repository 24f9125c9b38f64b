# wlstore/api/routers/admin.py
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from wlstore.api.deps import get_rate_limiter, require_admin
from wlstore.api.errors import raise_http
from wlstore.data.database import get_db
from wlstore.data.models.user import UserModel
from wlstore.domain.schemas import OrderOut, OrderStatusStat, StatsOut, StatusUpdateIn, UserOut, UserStatusIn
from wlstore.services.admin_service import AdminService
from wlstore.services.order_service import OrderService
from wlstore.services.rate_limiter import RateLimiter
from wlstore.services.user_service import UserService

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def get_admin_service(
    db: Session = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> AdminService:
    return AdminService(db, limiter=limiter)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/dashboard")
def dashboard(svc: AdminService = Depends(get_admin_service)):
    return svc.dashboard()


@router.get("/stats", response_model=StatsOut)
def stats(svc: AdminService = Depends(get_admin_service)):
    return svc.stats()


@router.get("/activities")
def activities(svc: AdminService = Depends(get_admin_service)):
    items = svc.activities()
    return {
        "success": True,
        "data": items,
        "last_updated": _now(),
        "total_activities": len(items),
    }


@router.get("/order-activities")
def order_activities(svc: AdminService = Depends(get_admin_service)):
    result = svc.order_activities()
    return {
        "success": True,
        "data": result["activities"],
        "last_updated": _now(),
        "total_order_activities": len(result["activities"]),
        "memory_activities": result["memory_activities"],
        "db_activities": result["db_activities"],
    }


@router.get("/system-status")
def system_status(svc: AdminService = Depends(get_admin_service)):
    return {"success": True, "timestamp": _now(), "data": svc.system_status()}


@router.get("/users", response_model=List[UserOut])
def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return UserService(db).list_users(skip, limit)


@router.put("/users/{user_id}/status", response_model=UserOut)
def set_user_status(
    user_id: int,
    payload: UserStatusIn,
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return UserService(db).set_active(user_id, payload.is_active, admin)
    except ValueError as e:
        raise_http(e)


@router.get("/orders", response_model=List[OrderOut])
def list_orders(
    status: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    try:
        return OrderService(db).list_orders(status, skip, limit)
    except ValueError as e:
        raise_http(e)


@router.get("/orders/stats", response_model=List[OrderStatusStat])
def order_stats(db: Session = Depends(get_db)):
    return OrderService(db).stats()


@router.put("/orders/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: StatusUpdateIn,
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return OrderService(db).update_status(order_id, payload.status, admin)
    except ValueError as e:
        raise_http(e)


@router.delete("/orders/{order_id}", status_code=204)
def delete_order(
    order_id: int,
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        OrderService(db).delete_order(order_id, admin)
    except ValueError as e:
        raise_http(e)
    return Response(status_code=204)
