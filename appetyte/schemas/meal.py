"""
Meal request schemas
"""

from datetime import date, time
from typing import Optional

from pydantic import BaseModel, Field

from ..models.meal import MealType


class MealCreateRequest(BaseModel):
    date: date
    meal_type: MealType
    option_1: str = Field(..., min_length=1)
    option_2: Optional[str] = None
    price_paise: int = Field(..., gt=0, description="Price in paise")
    cut_off_time: time = Field(..., description="Provider-local HH:MM")


class MealUpdateRequest(BaseModel):
    option_1: Optional[str] = None
    option_2: Optional[str] = None
    price_paise: Optional[int] = Field(None, gt=0)
    cut_off_time: Optional[time] = None
