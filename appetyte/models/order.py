"""
Order models and the order status state machine
"""

from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field

from .base import BaseEntity, TimestampMixin, paise_to_rupees


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"        # terminal
    CANCELED = "canceled"          # terminal


# Provider-driven forward steps, one at a time
NEXT_STATUS: Dict[OrderStatus, OrderStatus] = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.OUT_FOR_DELIVERY: OrderStatus.DELIVERED,
}

CANCELABLE_STATUSES: Tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.OUT_FOR_DELIVERY,
)


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    current, target = OrderStatus(current), OrderStatus(target)
    if target == OrderStatus.CANCELED:
        return current in CANCELABLE_STATUSES
    return NEXT_STATUS.get(current) == target


class Order(BaseEntity, TimestampMixin):
    id: int
    customer_id: int
    provider_id: int
    meal_id: int
    selected_option: str
    delivery_address: Optional[str] = None
    status: OrderStatus
    amount_paise: int
    notes: Optional[str] = None
    canceled_at: Optional[datetime] = None

    @property
    def amount_rupees(self) -> float:
        return paise_to_rupees(self.amount_paise)

    @property
    def is_cancelable(self) -> bool:
        return OrderStatus(self.status) in CANCELABLE_STATUSES


class PlacedOrder(BaseModel):
    """Result of an atomic placement"""
    order: Order
    balance_paise: int = Field(..., description="Customer balance after the debit")


class CanceledOrder(BaseModel):
    """Result of an atomic cancellation"""
    order: Order
    refunded_paise: int
    balance_paise: int = Field(..., description="Customer balance after the refund")


class OrderDetail(Order):
    """Order joined with its meal and customer, for listings"""
    meal_date: date
    meal_type: str
    customer_name: Optional[str] = None
    customer_mobile: Optional[str] = None
