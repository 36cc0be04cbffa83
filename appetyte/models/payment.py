"""
Payment models
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from .base import BaseEntity, TimestampMixin, paise_to_rupees


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class Payment(BaseEntity, TimestampMixin):
    """Manual top-up against a customer balance"""
    id: int
    customer_id: int
    provider_id: int
    amount_paise: int
    reference: Optional[str] = None
    status: PaymentStatus
    settled_at: Optional[datetime] = None

    @property
    def amount_rupees(self) -> float:
        return paise_to_rupees(self.amount_paise)
