"""
Order request schemas
"""

from typing import Optional

from pydantic import BaseModel, Field

from ..models.order import OrderStatus


class OrderCreateRequest(BaseModel):
    """Customer order; the address field used depends on the provider's delivery mode"""
    meal_id: int
    selected_option: str = Field(..., min_length=1)
    delivery_address: Optional[str] = Field(None, description="Custom delivery mode")
    delivery_address_id: Optional[int] = Field(None, description="Fixed delivery mode")
    notes: Optional[str] = Field(None, max_length=500)


class OrderStatusUpdateRequest(BaseModel):
    status: OrderStatus
