"""
Payment routes
Providers record manual payments and settle them; customers see their history.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ...core.database import DatabaseManager, get_db
from ...core.error_handler import create_success_response
from ...core.security import Principal, require_customer, require_provider
from ...models.payment import PaymentStatus
from ...schemas.payment import PaymentCreateRequest
from ...services.customer_service import CustomerService
from ...services.payment_service import PaymentService

router = APIRouter()


@router.get("/my")
def list_my_payments(principal: Principal = Depends(require_customer), db: DatabaseManager = Depends(get_db)):
    return create_success_response(PaymentService(db).list_payments(principal.account_id))


@router.get("")
def list_payments(customer_id: Optional[int] = None, status: Optional[PaymentStatus] = None,
                  principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    service = PaymentService(db)
    if customer_id is not None:
        CustomerService(db).get_customer(customer_id, principal.provider_id)
        payments = service.list_payments(customer_id)
    else:
        payments = service.list_provider_payments(principal.provider_id, status.value if status else None)
    return create_success_response(payments)


@router.post("")
def record_payment(req: PaymentCreateRequest, principal: Principal = Depends(require_provider),
                   db: DatabaseManager = Depends(get_db)):
    """A payment recorded as paid credits the balance immediately"""
    payment = PaymentService(db).record_payment(
        customer_id=req.customer_id,
        amount_paise=req.amount_paise,
        status=req.status.value,
        reference=req.reference,
        provider_id=principal.provider_id,
    )
    return create_success_response(payment, "Payment recorded")


@router.post("/{payment_id}/paid")
def mark_paid(payment_id: int, principal: Principal = Depends(require_provider),
              db: DatabaseManager = Depends(get_db)):
    return create_success_response(PaymentService(db).mark_paid(payment_id, principal.provider_id))


@router.post("/{payment_id}/failed")
def mark_failed(payment_id: int, principal: Principal = Depends(require_provider),
                db: DatabaseManager = Depends(get_db)):
    return create_success_response(PaymentService(db).mark_failed(payment_id, principal.provider_id))
