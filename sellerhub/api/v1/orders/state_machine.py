"""
Order state machine for managing real order status transitions
"""

from typing import Dict, FrozenSet, List
from sellerhub.models.order import OrderStatus

# Status -> statuses a seller or admin may move a real order to
ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({
        OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED, OrderStatus.CANCELLED
    }),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED, OrderStatus.FAILED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset({OrderStatus.REFUNDED}),
    # Failed deliveries can be retried
    OrderStatus.FAILED: frozenset({OrderStatus.CANCELLED, OrderStatus.PROCESSING}),
    OrderStatus.REFUNDED: frozenset(),
}

class OrderStateMachine:
    """
    Valid status transitions of a real order

    Synthetic orders never enter the state machine; the overlay rejects
    them before a transition is looked up.
    """

    def __init__(self, transitions: Dict[OrderStatus, FrozenSet[OrderStatus]] = ORDER_TRANSITIONS):
        self.transitions = transitions

    def _next(self, status: OrderStatus) -> FrozenSet[OrderStatus]:
        return self.transitions.get(status, frozenset())

    def can_transition(self, current_status: OrderStatus, new_status: OrderStatus) -> bool:
        return new_status in self._next(current_status)

    def get_valid_transitions(self, current_status: OrderStatus) -> List[OrderStatus]:
        """
        Next statuses reachable from a status

        Args:
            current_status: Status the order is in now

        Returns:
            Reachable statuses sorted by value, so error messages are stable
        """
        return sorted(self._next(current_status), key=lambda s: s.value)

    def is_cancellable(self, status: OrderStatus) -> bool:
        return OrderStatus.CANCELLED in self._next(status)
