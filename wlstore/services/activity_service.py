# wlstore/services/activity_service.py
import secrets
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Dict, List

from wlstore.utils.settings import ACTIVITY_FEED_SIZE
from wlstore.utils.logging import get_logger

logger = get_logger(__name__)


def as_utc(value: datetime) -> datetime:
    #sqlite hands back naive datetimes, everything we store is utc
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ActivityFeed:
    """
    Bounded, newest-first list of recent admin-visible events.
    Lives in process memory only, a restart empties it.
    """

    def __init__(self, size: int = ACTIVITY_FEED_SIZE):
        self._items: deque = deque(maxlen=size)
        self._lock = threading.Lock()

    def record(self, kind: str, text: str, **data: Any) -> str:
        now = datetime.now(timezone.utc)
        activity_id = f"{kind}-{int(now.timestamp() * 1000)}-{secrets.token_hex(4)}"
        activity = {
            "id": activity_id,
            "type": kind,
            "text": text,
            "timestamp": now,
            "data": {
                **data,
                "source": data.get("source", "system"),
                "severity": data.get("severity", "info"),
                "category": data.get("category", kind),
            },
        }
        with self._lock:
            self._items.appendleft(activity)

        logger.info(f"[{kind.upper()}] activity {activity_id}: {text}")
        return activity_id

    def recent(self, kind: str | None = None, limit: int | None = None) -> List[Dict[str, Any]]:
        with self._lock:
            items = [dict(a) for a in self._items if kind is None or a["type"] == kind]
        return items[:limit] if limit is not None else items

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


activity_feed = ActivityFeed()
