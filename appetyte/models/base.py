"""
Base model classes shared by the domain models
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class TimestampMixin(BaseModel):
    """Creation timestamp"""
    created_at: Optional[datetime] = None


class BaseEntity(BaseModel):
    """Base for models built from database rows"""

    model_config = {"from_attributes": True}


def paise_to_rupees(paise: int) -> float:
    return paise / 100
