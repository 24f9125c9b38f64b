# wlstore/domain/order_status.py
from typing import Dict, FrozenSet

from wlstore.domain.errors import InvalidTransitionError

CART = "cart"
PENDING = "pending"
PROCESSING = "processing"
SHIPPED = "shipped"
COMPLETED = "completed"
CANCELLED = "cancelled"

STATUSES = (CART, PENDING, PROCESSING, SHIPPED, COMPLETED, CANCELLED)

TRANSITIONS: Dict[str, FrozenSet[str]] = {
    CART: frozenset({PENDING}),
    PENDING: frozenset({PROCESSING, CANCELLED}),
    PROCESSING: frozenset({SHIPPED, CANCELLED}),
    SHIPPED: frozenset({COMPLETED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
}

# statuses that count towards revenue
REVENUE_STATUSES = (PENDING, PROCESSING, SHIPPED, COMPLETED)


def allowed_next(current: str) -> list[str]:
    return sorted(TRANSITIONS.get(current, frozenset()))


def is_terminal(status: str) -> bool:
    return status in TRANSITIONS and not TRANSITIONS[status]


def ensure_transition(current: str, target: str) -> None:
    if target not in TRANSITIONS:
        raise InvalidTransitionError(
            f"Unknown status '{target}'. Valid statuses: {', '.join(STATUSES)}"
        )

    if target in TRANSITIONS.get(current, frozenset()):
        return

    if is_terminal(current):
        raise InvalidTransitionError(
            f"Cannot change status from '{current}' to '{target}': "
            f"'{current}' is a terminal status"
        )

    raise InvalidTransitionError(
        f"Cannot change status from '{current}' to '{target}'. "
        f"Allowed next statuses: {', '.join(allowed_next(current))}"
    )
