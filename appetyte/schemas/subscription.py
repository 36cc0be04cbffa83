"""
Subscription request schemas
"""

from datetime import date
from typing import Dict, List

from pydantic import BaseModel, Field

from ..models.meal import MealType


class SubscriptionApproveRequest(BaseModel):
    meal_types: List[MealType] = Field(..., min_length=1)
    start_date: date
    end_date: date
    delivery_address_ids: Dict[MealType, int] = Field(default_factory=dict)


class SubscriptionRenewRequest(BaseModel):
    end_date: date


class DeliveryAddressAssignRequest(BaseModel):
    meal_type: MealType
    address_id: int


class AutoOrderToggleRequest(BaseModel):
    enabled: bool


class SkipRequest(BaseModel):
    skip_date: date
    meal_type: MealType
