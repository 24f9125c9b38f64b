# wlstore/services/admin_service.py
import time
from datetime import datetime, timezone, timedelta
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wlstore.data.models.order import OrderModel
from wlstore.domain import order_status
from wlstore.repos.order_repo import OrderRepo
from wlstore.repos.product_repo import ProductRepo
from wlstore.repos.user_repo import UserRepo
from wlstore.services.activity_service import ActivityFeed, activity_feed, as_utc
from wlstore.services.rate_limiter import RateLimiter
from wlstore.utils.settings import ACTIVITY_FEED_WINDOW_HOURS, APP_VERSION
from wlstore.utils.logging import get_logger

logger = get_logger(__name__)

STARTED_AT = time.monotonic()

FEED_LIMIT = 20
ORDER_FEED_LIMIT = 10
ORDER_FEED_WINDOW_HOURS = 2
RECENT_UPDATE_SECONDS = 5 * 60


def uptime_seconds() -> int:
    return int(time.monotonic() - STARTED_AT)


def _order_activity(order: OrderModel, now: datetime) -> Dict[str, Any]:
    #checkout is the only way into pending, so a pending order has not been touched since
    is_updated = order.status != order_status.PENDING
    timestamp = as_utc(order.status_changed_at or order.updated_at)
    is_recent = (now - timestamp).total_seconds() < RECENT_UPDATE_SECONDS
    customer = order.user.name if order.user else "Unknown"

    if is_updated:
        text = f"Order #{order.id} updated, status: {order.status.upper()}"
    else:
        text = f'New order #{order.id} from "{customer}" (total {order.total_price})'

    return {
        "id": f"order-{order.id}-{int(timestamp.timestamp() * 1000)}",
        "type": "order",
        "text": text,
        "timestamp": timestamp,
        "data": {
            "orderId": order.id,
            "customerName": customer,
            "customerEmail": order.user.email if order.user else "",
            "status": order.status,
            "totalAmount": str(order.total_price),
            "itemCount": len(order.items),
            "actionType": "status_update" if is_updated else "new_order",
            "isRecentUpdate": is_recent,
            "severity": "high" if is_recent else "info",
            "source": "order_management",
        },
    }


def _by_newest(activities: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(activities, key=lambda a: as_utc(a["timestamp"]), reverse=True)


class AdminService:
    """Read-only reporting over products, users and orders plus the in-memory feed."""

    def __init__(self, db: Session, feed: ActivityFeed = activity_feed, limiter: RateLimiter | None = None):
        self.db = db
        self.products = ProductRepo(db)
        self.users = UserRepo(db)
        self.orders = OrderRepo(db)
        self.feed = feed
        self.limiter = limiter

    def stats(self) -> Dict[str, Any]:
        stats = {
            "total_users": self.users.count(),
            "total_products": self.products.count(),
            "total_orders": self.orders.count_orders(),
            "total_revenue": self.orders.total_revenue(),
        }
        logger.info(f"Dashboard stats: {stats}")
        return stats

    def _db_activities(self, since: datetime, now: datetime) -> List[Dict[str, Any]]:
        activities = []

        for p in self.products.created_since(since, limit=15):
            created = as_utc(p.created_at)
            activities.append(
                {
                    "id": f"product-{p.id}-{int(created.timestamp() * 1000)}",
                    "type": "product",
                    "text": f'Product "{p.name}" added (price {p.price})',
                    "timestamp": created,
                    "data": {
                        "productCode": p.code,
                        "productName": p.name,
                        "price": str(p.price),
                        "stock": p.stock,
                        "severity": "info",
                        "source": "product_management",
                    },
                }
            )

        for o in self.orders.touched_since(since, limit=15):
            activities.append(_order_activity(o, now))

        for u in self.users.created_since(since, limit=10):
            created = as_utc(u.created_at)
            activities.append(
                {
                    "id": f"user-{u.id}-{int(created.timestamp() * 1000)}",
                    "type": "user",
                    "text": f'New user "{u.username}" registered ({u.email})',
                    "timestamp": created,
                    "data": {
                        "userId": u.id,
                        "username": u.username,
                        "email": u.email,
                        "isActive": u.is_active,
                        "severity": "info",
                        "source": "user_management",
                    },
                }
            )

        return activities

    def activities(self, limit: int = FEED_LIMIT) -> List[Dict[str, Any]]:
        now = datetime.now(timezone.utc)
        since = now - timedelta(hours=ACTIVITY_FEED_WINDOW_HOURS)

        try:
            from_db = self._db_activities(since, now)
        except SQLAlchemyError as e:
            logger.error(f"Loading database activities failed: {e}")
            #later queries share this session
            self.db.rollback()
            self.feed.record(
                "system",
                "Error loading database activities",
                error=str(e),
                severity="error",
                source="system_error",
            )
            from_db = []

        return _by_newest(from_db + self.feed.recent())[:limit]

    def order_activities(self, limit: int = ORDER_FEED_LIMIT) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        since = now - timedelta(hours=ORDER_FEED_WINDOW_HOURS)

        from_memory = self.feed.recent(kind="order", limit=ORDER_FEED_LIMIT)
        from_db = [_order_activity(o, now) for o in self.orders.touched_since(since, limit=15)]

        #memory entries win over db entries for the same order and action
        seen = set()
        unique = []
        for activity in from_memory + from_db:
            key = (activity["data"].get("orderId"), activity["data"].get("actionType"))
            if key in seen:
                continue
            seen.add(key)
            unique.append(activity)

        return {
            "activities": _by_newest(unique)[:limit],
            "memory_activities": len(from_memory),
            "db_activities": len(from_db),
        }

    def database_status(self) -> Dict[str, Any]:
        started = time.perf_counter()
        try:
            self.orders.ping()
        except SQLAlchemyError as e:
            logger.error(f"Database ping failed: {e}")
            self.db.rollback()
            return {"status": "disconnected", "is_online": False, "response_time_ms": -1, "health": "error"}

        elapsed = int((time.perf_counter() - started) * 1000)
        if elapsed > 1000:
            health = "slow"
        elif elapsed > 500:
            health = "warning"
        else:
            health = "healthy"
        return {"status": "connected", "is_online": True, "response_time_ms": elapsed, "health": health}

    def system_status(self) -> Dict[str, Any]:
        database = self.database_status()
        redis_online = self.limiter.ping() if self.limiter else None
        uptime = uptime_seconds()

        status = "healthy"
        warnings = []
        if not database["is_online"]:
            status = "critical"
            warnings.append("Database disconnected")
        elif database["health"] == "slow":
            status = "warning"
            warnings.append("Slow database response")
        elif database["health"] == "warning":
            warnings.append("Database response degraded")

        if redis_online is False:
            status = "warning" if status == "healthy" else status
            warnings.append("Redis unavailable, rate limiting disabled")

        if uptime < 300:
            warnings.append("Recent restart detected")

        return {
            "server": {"status": "active", "uptime": uptime, "version": APP_VERSION, "is_online": True},
            "database": database,
            "redis": {
                "status": "unknown" if redis_online is None else ("connected" if redis_online else "disconnected"),
                "is_online": redis_online,
            },
            "overall": {
                "status": status,
                "is_online": database["is_online"],
                "warnings": warnings,
                "last_updated": datetime.now(timezone.utc).isoformat(),
            },
        }

    def dashboard(self) -> Dict[str, Any]:
        started = time.perf_counter()
        data = {
            "stats": self.stats(),
            "activities": self.activities(),
            "system_status": self.system_status(),
        }
        return {
            "success": True,
            "data": data,
            "meta": {
                "response_time_ms": int((time.perf_counter() - started) * 1000),
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "server_uptime": uptime_seconds(),
            },
        }

    def health(self) -> Dict[str, Any]:
        database = self.database_status()
        return {
            "status": "healthy" if database["is_online"] else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": uptime_seconds(),
            "version": APP_VERSION,
            "services": {"database": database["status"], "api": "active"},
        }
