"""
Provider routes
Public lookup by slug, the provider's own profile, delivery settings and
fixed delivery addresses.
"""

from fastapi import APIRouter, Depends

from ...core.database import DatabaseManager, get_db
from ...core.error_handler import create_success_response
from ...core.security import Principal, get_principal, require_provider
from ...schemas.provider import (
    DeliveryAddressRequest,
    DeliveryAddressUpdateRequest,
    DeliveryModeRequest,
    ProviderPublicResponse,
)
from ...services.provider_service import ProviderService

router = APIRouter()


@router.get("/slug-available")
def slug_available(business_name: str, db: DatabaseManager = Depends(get_db)):
    return {"available": ProviderService(db).is_slug_available(business_name)}


@router.get("/me")
def get_my_provider(principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    return create_success_response(ProviderService(db).get_provider(principal.provider_id))


@router.get("/delivery")
def get_delivery_mode(principal: Principal = Depends(get_principal), db: DatabaseManager = Depends(get_db)):
    """Delivery mode of the caller's provider; fixed mode lists its addresses"""
    return create_success_response(ProviderService(db).get_delivery_mode(principal.provider_id))


@router.put("/delivery")
def set_delivery_mode(req: DeliveryModeRequest, principal: Principal = Depends(require_provider),
                      db: DatabaseManager = Depends(get_db)):
    return create_success_response(ProviderService(db).set_delivery_mode(principal.provider_id, req.mode))


@router.get("/addresses")
def list_addresses(principal: Principal = Depends(get_principal), db: DatabaseManager = Depends(get_db)):
    return create_success_response(ProviderService(db).list_addresses(principal.provider_id))


@router.post("/addresses")
def add_address(req: DeliveryAddressRequest, principal: Principal = Depends(require_provider),
                db: DatabaseManager = Depends(get_db)):
    return create_success_response(ProviderService(db).add_address(principal.provider_id, req.name, req.address))


@router.put("/addresses/{address_id}")
def update_address(address_id: int, req: DeliveryAddressUpdateRequest,
                   principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    address = ProviderService(db).update_address(principal.provider_id, address_id, req.name, req.address)
    return create_success_response(address)


@router.delete("/addresses/{address_id}")
def delete_address(address_id: int, principal: Principal = Depends(require_provider),
                   db: DatabaseManager = Depends(get_db)):
    ProviderService(db).delete_address(principal.provider_id, address_id)
    return create_success_response(message="Address deleted")


@router.get("/{slug}", response_model=ProviderPublicResponse)
def get_provider_by_slug(slug: str, db: DatabaseManager = Depends(get_db)):
    """Public provider page data"""
    provider = ProviderService(db).get_by_slug(slug)
    return ProviderPublicResponse(**provider.model_dump())
