"""
Customer account and balance ledger models
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from .base import BaseEntity, TimestampMixin, paise_to_rupees


class TransactionType(str, Enum):
    DEBIT = "debit"        # order placed
    REFUND = "refund"      # order canceled
    PAYMENT = "payment"    # top-up settled


class Customer(BaseEntity, TimestampMixin):
    id: int
    provider_id: int
    name: str
    mobile_number: str
    email: Optional[str] = None
    address: Optional[str] = None
    current_balance_paise: int = Field(0, description="Negative means the customer owes money")
    has_subscription: bool = False

    @property
    def balance_rupees(self) -> float:
        return paise_to_rupees(self.current_balance_paise)

    @property
    def amount_due_paise(self) -> int:
        return max(0, -self.current_balance_paise)


class Transaction(BaseEntity, TimestampMixin):
    """Audit entry for every balance movement"""
    id: int
    customer_id: int
    provider_id: int
    type: TransactionType
    amount_paise: int
    order_id: Optional[int] = None
    payment_id: Optional[int] = None
    description: Optional[str] = None
