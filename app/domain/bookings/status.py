"""Booking status values and the legal transitions between them"""

PENDING = "pending"
PAID = "paid"
FIRST_PAYOUT_DONE = "first_payout_done"
SERVICE_DAY = "service_day"
COMPLETED = "completed"
DISPUTED = "disputed"
REFUNDED = "refunded"
CANCELLED = "cancelled"

ALL_STATUSES = (
    PENDING,
    PAID,
    FIRST_PAYOUT_DONE,
    SERVICE_DAY,
    COMPLETED,
    DISPUTED,
    REFUNDED,
    CANCELLED,
)

TRANSITIONS: dict[str, frozenset] = {
    PENDING: frozenset({PAID, CANCELLED}),
    PAID: frozenset({FIRST_PAYOUT_DONE, DISPUTED}),
    FIRST_PAYOUT_DONE: frozenset({SERVICE_DAY, COMPLETED, DISPUTED}),
    SERVICE_DAY: frozenset({COMPLETED, DISPUTED}),
    # Rejected disputes fall back to where the money stands
    DISPUTED: frozenset({REFUNDED, PAID, FIRST_PAYOUT_DONE}),
    COMPLETED: frozenset(),
    REFUNDED: frozenset(),
    CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

# Bookings the creator still has to show up for
UPCOMING_STATUSES = (PAID, FIRST_PAYOUT_DONE, SERVICE_DAY)

STATUS_LABELS = {
    PENDING: {"label": "Pending Payment", "color": "gray"},
    PAID: {"label": "Paid", "color": "blue"},
    FIRST_PAYOUT_DONE: {"label": "Confirmed", "color": "indigo"},
    SERVICE_DAY: {"label": "Service Day", "color": "purple"},
    COMPLETED: {"label": "Completed", "color": "green"},
    DISPUTED: {"label": "Disputed", "color": "orange"},
    REFUNDED: {"label": "Refunded", "color": "red"},
    CANCELLED: {"label": "Cancelled", "color": "gray"},
}


class InvalidTransitionError(ValueError):
    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move booking from '{current}' to '{target}'")
        self.current = current
        self.target = target


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def ensure_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)


def status_label(status: str) -> dict:
    return STATUS_LABELS.get(status, {"label": status, "color": "gray"})
