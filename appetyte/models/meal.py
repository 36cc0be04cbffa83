"""
Meal models
"""

from datetime import date, time
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .base import BaseEntity, TimestampMixin, paise_to_rupees


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


class Meal(BaseEntity, TimestampMixin):
    """One meal of one provider on one date; up to two named options"""
    id: int
    provider_id: int
    date: date
    meal_type: MealType
    option_1: str
    option_2: Optional[str] = None
    price_paise: int
    cut_off_time: time

    @property
    def options(self) -> List[str]:
        return [o for o in (self.option_1, self.option_2) if o]

    @property
    def default_option(self) -> str:
        return self.option_1

    @property
    def price_rupees(self) -> float:
        return paise_to_rupees(self.price_paise)


class CustomerMealView(BaseModel):
    """Meal as shown to a customer, with the live ordering window"""
    meal: Meal
    orderable: bool = Field(..., description="Strict cutoff check, no grace")
    status: str
    time_left: str
    urgency: str
