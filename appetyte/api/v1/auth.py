"""
Authentication routes

Provider signup, customer self-signup on a provider's page, password login
and the development login that issues tokens for existing accounts.
"""

from fastapi import APIRouter, Depends

from ...config.settings import settings
from ...core.database import DatabaseManager, get_db
from ...core.exceptions import AuthenticationError, NotFoundError, ValidationError
from ...core.security import ROLE_CUSTOMER, ROLE_PROVIDER, create_access_token
from ...schemas.auth import CustomerSignupRequest, LoginRequest, ProviderSignupRequest, TokenResponse
from ...services.customer_service import CustomerService
from ...services.provider_service import ProviderService

router = APIRouter()


def _token_for(role: str, account_id: int, provider_id: int) -> TokenResponse:
    return TokenResponse(
        token=create_access_token(account_id, role, provider_id),
        role=role,
        account_id=account_id,
        provider_id=provider_id,
    )


@router.post("/providers/signup", response_model=TokenResponse)
def provider_signup(req: ProviderSignupRequest, db: DatabaseManager = Depends(get_db)):
    """Register a provider; fails with BUSINESS_NAME_TAKEN when the slug exists"""
    provider = ProviderService(db).signup(
        business_name=req.business_name,
        owner_name=req.owner_name,
        contact_number=req.contact_number,
        email=req.email,
        service_area=req.service_area,
        password=req.password,
    )
    return _token_for(ROLE_PROVIDER, provider.id, provider.id)


@router.post("/customers/signup", response_model=TokenResponse)
def customer_signup(req: CustomerSignupRequest, db: DatabaseManager = Depends(get_db)):
    provider = ProviderService(db).get_by_slug(req.provider_slug)
    customer = CustomerService(db).create_customer(
        provider_id=provider.id,
        name=req.name,
        mobile_number=req.mobile_number,
        email=req.email,
        address=req.address,
        password=req.password,
    )
    return _token_for(ROLE_CUSTOMER, customer.id, provider.id)


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, db: DatabaseManager = Depends(get_db)):
    """
    Issue a token for an existing provider (by email) or customer (by
    provider slug + mobile number).

    With a password the credentials are checked. Without one this is the
    development login, available only when mock auth is enabled.
    """
    if req.password is not None:
        return _password_login(req, db)

    if not settings.mock_auth_enabled:
        raise AuthenticationError("Password-less login is disabled")

    try:
        if req.role == ROLE_PROVIDER:
            if not req.email:
                raise ValidationError("Email is required")
            provider = ProviderService(db).get_by_email(req.email)
            return _token_for(ROLE_PROVIDER, provider.id, provider.id)

        if not req.provider_slug or not req.mobile_number:
            raise ValidationError("Provider and mobile number are required")
        provider = ProviderService(db).get_by_slug(req.provider_slug)
        customer = CustomerService(db).get_by_mobile(provider.id, req.mobile_number)
        return _token_for(ROLE_CUSTOMER, customer.id, provider.id)
    except NotFoundError:
        raise AuthenticationError("No account found for these details")


def _password_login(req: LoginRequest, db: DatabaseManager) -> TokenResponse:
    if req.role == ROLE_PROVIDER:
        if not req.email:
            raise ValidationError("Email is required")
        provider = ProviderService(db).authenticate(req.email, req.password)
        return _token_for(ROLE_PROVIDER, provider.id, provider.id)

    if not req.provider_slug or not req.mobile_number:
        raise ValidationError("Provider and mobile number are required")
    try:
        provider = ProviderService(db).get_by_slug(req.provider_slug)
    except NotFoundError:
        raise AuthenticationError("Invalid mobile number or password")
    customer = CustomerService(db).authenticate(provider.id, req.mobile_number, req.password)
    return _token_for(ROLE_CUSTOMER, customer.id, provider.id)
