"""
Customer routes
Customers read their own profile, balance and ledger; providers manage their
customer list.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...core.database import DatabaseManager, get_db
from ...core.error_handler import create_success_response
from ...core.security import Principal, require_customer, require_provider
from ...models.customer import Customer
from ...schemas.customer import BalanceResponse, CustomerCreateRequest, CustomerUpdateRequest
from ...services.customer_service import CustomerService

router = APIRouter()


def _balance(customer: Customer) -> BalanceResponse:
    return BalanceResponse(
        customer_id=customer.id,
        balance_paise=customer.current_balance_paise,
        amount_due_paise=customer.amount_due_paise,
    )


@router.get("/me")
def get_me(principal: Principal = Depends(require_customer), db: DatabaseManager = Depends(get_db)):
    return create_success_response(CustomerService(db).get_customer(principal.account_id))


@router.put("/me")
def update_me(req: CustomerUpdateRequest, principal: Principal = Depends(require_customer),
              db: DatabaseManager = Depends(get_db)):
    customer = CustomerService(db).update_customer(
        principal.account_id, name=req.name, email=req.email, address=req.address
    )
    return create_success_response(customer)


@router.get("/me/balance", response_model=BalanceResponse)
def get_my_balance(principal: Principal = Depends(require_customer), db: DatabaseManager = Depends(get_db)):
    return _balance(CustomerService(db).get_customer(principal.account_id))


@router.get("/me/transactions")
def get_my_transactions(limit: int = Query(100, ge=1, le=500),
                        principal: Principal = Depends(require_customer),
                        db: DatabaseManager = Depends(get_db)):
    return create_success_response(CustomerService(db).list_transactions(principal.account_id, limit))


# Provider side

@router.get("")
def list_customers(search: Optional[str] = None, principal: Principal = Depends(require_provider),
                   db: DatabaseManager = Depends(get_db)):
    return create_success_response(CustomerService(db).list_customers(principal.provider_id, search))


@router.post("")
def create_customer(req: CustomerCreateRequest, principal: Principal = Depends(require_provider),
                    db: DatabaseManager = Depends(get_db)):
    customer = CustomerService(db).create_customer(
        principal.provider_id, req.name, req.mobile_number, req.email, req.address
    )
    return create_success_response(customer, "Customer created")


@router.get("/{customer_id}")
def get_customer(customer_id: int, principal: Principal = Depends(require_provider),
                 db: DatabaseManager = Depends(get_db)):
    return create_success_response(CustomerService(db).get_customer(customer_id, principal.provider_id))


@router.put("/{customer_id}")
def update_customer(customer_id: int, req: CustomerUpdateRequest,
                    principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    customer = CustomerService(db).update_customer(
        customer_id, principal.provider_id, name=req.name, email=req.email, address=req.address
    )
    return create_success_response(customer)


@router.get("/{customer_id}/balance", response_model=BalanceResponse)
def get_customer_balance(customer_id: int, principal: Principal = Depends(require_provider),
                         db: DatabaseManager = Depends(get_db)):
    return _balance(CustomerService(db).get_customer(customer_id, principal.provider_id))


@router.get("/{customer_id}/transactions")
def get_customer_transactions(customer_id: int, principal: Principal = Depends(require_provider),
                              db: DatabaseManager = Depends(get_db)):
    service = CustomerService(db)
    service.get_customer(customer_id, principal.provider_id)
    return create_success_response(service.list_transactions(customer_id))
