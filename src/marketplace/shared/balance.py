"""Reasons recorded with every balance movement."""

from enum import Enum


class BalanceReason(Enum):
    TOP_UP = "TopUp"
    ORDER_PAID = "OrderPaid"
    ORDER_CANCELLED = "OrderCancelled"
    RETURN_REFUNDED = "ReturnRefunded"
