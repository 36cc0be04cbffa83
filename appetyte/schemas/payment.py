"""
Payment request schemas
"""

from typing import Optional

from pydantic import BaseModel, Field

from ..models.payment import PaymentStatus


class PaymentCreateRequest(BaseModel):
    customer_id: int
    amount_paise: int = Field(..., gt=0)
    status: PaymentStatus = PaymentStatus.PENDING
    reference: Optional[str] = None
