"""
Customer request/response schemas
"""

from typing import Optional

from pydantic import BaseModel, Field


class CustomerCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    mobile_number: str
    email: Optional[str] = None
    address: Optional[str] = None


class CustomerUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class BalanceResponse(BaseModel):
    customer_id: int
    balance_paise: int
    amount_due_paise: int
