# apps/orders/workflow.py
"""
Kitchen workflow policy for order items.

Items move one step at a time along ORDERED_STATUSES. CANCELLED is a
side-terminal state: reachable only through order cancellation, never
through next_status / is_valid_forward_transition.

Rows written by the older six-stage workflow may still carry PACKAGING or
OUT_FOR_DELIVERY. Those are mapped onto the current stages on the way out
(normalize_status / normalize_history) and never written back.
"""
from typing import Iterable, List, Optional, Tuple

from .models.status import OrderItemStatus

ORDERED_STATUSES: Tuple[str, ...] = (
    OrderItemStatus.PENDING.value,
    OrderItemStatus.FRYING.value,
    OrderItemStatus.READY_FOR_PICKUP.value,
    OrderItemStatus.COMPLETED.value,
)

TERMINAL_CANCEL = OrderItemStatus.CANCELLED.value

_POSITION = {status: index for index, status in enumerate(ORDERED_STATUSES)}

LEGACY_STATUS_MAP = {
    OrderItemStatus.PACKAGING.value: OrderItemStatus.FRYING.value,
    OrderItemStatus.OUT_FOR_DELIVERY.value: OrderItemStatus.READY_FOR_PICKUP.value,
}


def _position(status) -> int:
    return _POSITION.get(str(status), -1)


def next_status(current) -> Optional[str]:
    index = _position(current)
    if index < 0 or index + 1 >= len(ORDERED_STATUSES):
        return None
    return ORDERED_STATUSES[index + 1]


def is_valid_forward_transition(current, target) -> bool:
    """
    Same position or exactly one step ahead. Callers reject the no-op case themselves.
    """
    current_index = _position(current)
    target_index = _position(target)
    if current_index < 0 or target_index < 0:
        return False
    return current_index <= target_index <= current_index + 1


def is_final_status(status) -> bool:
    return status == TERMINAL_CANCEL or _position(status) == len(ORDERED_STATUSES) - 1


def normalize_status(status) -> str:
    status = str(status)
    return LEGACY_STATUS_MAP.get(status, status)


def normalize_history(entries: Iterable[Tuple[str, object]]) -> List[Tuple[str, object]]:
    """
    (status, changed_at) pairs -> normalized, oldest first, with consecutive
    duplicates produced by the mapping collapsed to the first occurrence.
    """
    normalized = []
    for status, changed_at in sorted(entries, key=lambda entry: entry[1]):
        status = normalize_status(status)
        if normalized and normalized[-1][0] == status:
            continue
        normalized.append((status, changed_at))
    return normalized
