"""
Provider (tenant) models and delivery addressing mode
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .base import BaseEntity, TimestampMixin


class DeliveryAddress(BaseEntity, TimestampMixin):
    """Named, reusable address offered by a provider in fixed mode"""
    id: int
    provider_id: int
    name: str
    address: str


class CustomDelivery(BaseModel):
    """Customers type their own delivery address"""
    mode: Literal["custom"] = "custom"


class FixedDelivery(BaseModel):
    """Customers pick one of the provider's addresses"""
    mode: Literal["fixed"] = "fixed"
    addresses: List[DeliveryAddress] = Field(default_factory=list)

    def find(self, address_id: int) -> Optional[DeliveryAddress]:
        for addr in self.addresses:
            if addr.id == address_id:
                return addr
        return None


DeliveryMode = Annotated[Union[CustomDelivery, FixedDelivery], Field(discriminator="mode")]


class Provider(BaseEntity, TimestampMixin):
    id: int
    business_name: str
    owner_name: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[str] = None
    service_area: Optional[str] = None
    slug: str
    account_status: str = "active"
    delivery_mode: Literal["custom", "fixed"] = "custom"
