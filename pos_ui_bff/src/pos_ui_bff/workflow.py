# src/pos_ui_bff/workflow.py
"""
Order lifecycle: PENDING -> READY_TO_SERVE -> TO_PAY -> COMPLETED.

Pure lookups over a closed set of statuses. Advancing an order is done by the
caller, which sends the computed next status to the backend.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    READY_TO_SERVE = "READY_TO_SERVE"
    TO_PAY = "TO_PAY"
    COMPLETED = "COMPLETED"


# Top-to-bottom order in which status groups are rendered
ORDERED_STATUSES: Tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.READY_TO_SERVE,
    OrderStatus.TO_PAY,
    OrderStatus.COMPLETED,
)

STATUS_LABELS: Dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Pendiente",
    OrderStatus.READY_TO_SERVE: "Listo para servir",
    OrderStatus.TO_PAY: "Por pagar",
    OrderStatus.COMPLETED: "Completado",
}

# COMPLETED is terminal
NEXT_STATUS: Dict[OrderStatus, OrderStatus] = {
    OrderStatus.PENDING: OrderStatus.READY_TO_SERVE,
    OrderStatus.READY_TO_SERVE: OrderStatus.TO_PAY,
    OrderStatus.TO_PAY: OrderStatus.COMPLETED,
}


def parse_status(value: Any) -> Optional[OrderStatus]:
    if isinstance(value, OrderStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return OrderStatus(value)
    except ValueError:
        return None


def status_label(value: Any) -> Optional[str]:
    current = parse_status(value)
    if current is None:
        return None
    return STATUS_LABELS[current]


def next_status(value: Any) -> Optional[OrderStatus]:
    """The status one step forward, or None for COMPLETED and unknown values."""
    current = parse_status(value)
    if current is None:
        return None
    return NEXT_STATUS.get(current)


def next_status_label(value: Any) -> Optional[str]:
    """Caption for the action that advances an order in `value`."""
    upcoming = next_status(value)
    if upcoming is None:
        return None
    return STATUS_LABELS[upcoming]


def group_by_status(orders: Iterable[Mapping[str, Any]]) -> List[Tuple[OrderStatus, List[Mapping[str, Any]]]]:
    """
    Bucket orders by status, buckets in ORDERED_STATUSES order.
    Empty buckets are left out, as are orders whose status is not recognised.
    """
    buckets: Dict[OrderStatus, List[Mapping[str, Any]]] = {}
    for order in orders:
        current = parse_status(order.get("status"))
        if current is None:
            continue
        buckets.setdefault(current, []).append(order)
    return [(current, buckets[current]) for current in ORDERED_STATUSES if current in buckets]
