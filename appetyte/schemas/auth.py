"""
Auth request/response schemas
"""

from typing import Optional

from pydantic import BaseModel, Field


class ProviderSignupRequest(BaseModel):
    """Provider signup"""
    business_name: str = Field(..., min_length=1, description="Also determines the routing slug")
    owner_name: str = Field(..., min_length=1)
    contact_number: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    service_area: Optional[str] = None
    password: str = Field(..., min_length=6, max_length=72)


class CustomerSignupRequest(BaseModel):
    """Customer self-signup on a provider's page"""
    provider_slug: str = Field(..., description="Provider routing slug")
    name: str = Field(..., min_length=1)
    mobile_number: str = Field(..., description="10-digit Indian mobile number")
    email: Optional[str] = None
    address: Optional[str] = None
    password: str = Field(..., min_length=6, max_length=72)


class LoginRequest(BaseModel):
    """Password login; without a password only the development mock login applies"""
    role: str = Field(..., pattern="^(provider|customer)$")
    email: Optional[str] = Field(None, description="Provider email")
    provider_slug: Optional[str] = Field(None, description="Customer's provider")
    mobile_number: Optional[str] = Field(None, description="Customer mobile number")
    password: Optional[str] = None


class TokenResponse(BaseModel):
    token: str
    token_type: str = "Bearer"
    role: str
    account_id: int
    provider_id: int
