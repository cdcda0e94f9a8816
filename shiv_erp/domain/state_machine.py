"""
Transition tables for orders and billing documents.

Every (status, action) pair missing from a table is a rejected transition.
"""

from .exceptions import InvalidStateError
from .value_objects import (
    BillingAction,
    BillingStatus,
    OrderAction,
    OrderKind,
    OrderStatus,
)

_COMMON_ORDER_TRANSITIONS: dict[tuple[OrderStatus, OrderAction], OrderStatus] = {
    (OrderStatus.DRAFT, OrderAction.CONFIRM): OrderStatus.CONFIRMED,
    (OrderStatus.DRAFT, OrderAction.CANCEL): OrderStatus.CANCELLED,
    (OrderStatus.CONFIRMED, OrderAction.BILL): OrderStatus.BILLED,
}

ORDER_TRANSITIONS: dict[OrderKind, dict[tuple[OrderStatus, OrderAction], OrderStatus]] = {
    # Sales orders cannot be cancelled or reverted once confirmed.
    OrderKind.SALES: dict(_COMMON_ORDER_TRANSITIONS),
    OrderKind.PURCHASE: {
        **_COMMON_ORDER_TRANSITIONS,
        (OrderStatus.CONFIRMED, OrderAction.CANCEL): OrderStatus.CANCELLED,
        (OrderStatus.CONFIRMED, OrderAction.REVERT_TO_DRAFT): OrderStatus.DRAFT,
        (OrderStatus.CANCELLED, OrderAction.REVERT_TO_DRAFT): OrderStatus.DRAFT,
    },
}

BILLING_TRANSITIONS: dict[tuple[BillingStatus, BillingAction], BillingStatus] = {
    (BillingStatus.DRAFT, BillingAction.CONFIRM): BillingStatus.CONFIRMED,
    (BillingStatus.DRAFT, BillingAction.CANCEL): BillingStatus.CANCELLED,
    (BillingStatus.CONFIRMED, BillingAction.CANCEL): BillingStatus.CANCELLED,
}

_ORDER_REJECTIONS = {
    OrderAction.CONFIRM: "Only draft {kind} can be confirmed",
    OrderAction.CANCEL: "{kind} in status '{status}' cannot be cancelled",
    OrderAction.BILL: "Only confirmed {kind} can be billed",
    OrderAction.REVERT_TO_DRAFT: "{kind} in status '{status}' cannot be reverted to draft",
}


def order_label(kind: OrderKind) -> str:
    return "Sales Order" if kind == OrderKind.SALES else "Purchase Order"


def next_order_status(kind: OrderKind, status: OrderStatus, action: OrderAction) -> OrderStatus:
    target = ORDER_TRANSITIONS[kind].get((status, action))
    if target is None:
        raise InvalidStateError(
            _ORDER_REJECTIONS[action].format(kind=order_label(kind), status=status.value),
            status=status.value,
            action=action.value,
        )
    return target


def next_billing_status(status: BillingStatus, action: BillingAction) -> BillingStatus:
    target = BILLING_TRANSITIONS.get((status, action))
    if target is None:
        raise InvalidStateError(
            f"Document in status '{status.value}' cannot {action.value}",
            status=status.value,
            action=action.value,
        )
    return target


def allowed_order_actions(kind: OrderKind, status: OrderStatus) -> list[OrderAction]:
    return [action for (src, action) in ORDER_TRANSITIONS[kind] if src == status]
