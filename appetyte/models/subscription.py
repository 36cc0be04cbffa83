"""
Subscription models
"""

from datetime import date
from enum import Enum
from typing import Dict, List

from pydantic import Field

from .base import BaseEntity, TimestampMixin
from .meal import MealType


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Subscription(BaseEntity, TimestampMixin):
    id: int
    customer_id: int
    provider_id: int
    meal_types: List[MealType]
    delivery_address_ids: Dict[str, int] = Field(default_factory=dict, description="meal type -> delivery address id")
    start_date: date
    end_date: date
    active: bool = True
    auto_order: bool = True

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def days_left(self, today: date) -> int:
        return max(0, (self.end_date - today).days)


class SubscriptionRequest(BaseEntity, TimestampMixin):
    id: int
    customer_id: int
    provider_id: int
    status: RequestStatus


class SubscriptionSkip(BaseEntity, TimestampMixin):
    """One date + meal type excluded from auto-ordering"""
    id: int
    subscription_id: int
    customer_id: int
    skip_date: date
    meal_type: MealType
