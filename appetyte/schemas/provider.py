"""
Provider request/response schemas
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class ProviderPublicResponse(BaseModel):
    """What a customer page needs to know about a provider"""
    id: int
    business_name: str
    slug: str
    service_area: Optional[str] = None
    contact_number: Optional[str] = None
    delivery_mode: str


class DeliveryModeRequest(BaseModel):
    mode: Literal["custom", "fixed"]


class DeliveryAddressRequest(BaseModel):
    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)


class DeliveryAddressUpdateRequest(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
