"""
Subscription routes

Customer side: request a subscription, view it, skip meals.
Provider side: approve or reject requests, renew, deactivate, and assign
per-meal-type delivery addresses.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ...core.clock import service_today
from ...core.database import DatabaseManager, get_db
from ...core.error_handler import create_success_response
from ...core.security import Principal, require_customer, require_provider
from ...models.subscription import RequestStatus
from ...schemas.subscription import (
    AutoOrderToggleRequest,
    DeliveryAddressAssignRequest,
    SkipRequest,
    SubscriptionApproveRequest,
    SubscriptionRenewRequest,
)
from ...services.subscription_service import SubscriptionService

router = APIRouter()


# Customer side

@router.post("/requests")
def request_subscription(principal: Principal = Depends(require_customer), db: DatabaseManager = Depends(get_db)):
    request = SubscriptionService(db).request_subscription(principal.account_id)
    return create_success_response(request, "Subscription requested")


@router.get("/my")
def get_my_subscription(principal: Principal = Depends(require_customer), db: DatabaseManager = Depends(get_db)):
    subscription = SubscriptionService(db).get_active_subscription(principal.account_id, principal.provider_id)
    data = None
    if subscription:
        data = {"subscription": subscription, "days_left": subscription.days_left(service_today())}
    return create_success_response(data)


@router.get("/skips")
def list_my_skips(principal: Principal = Depends(require_customer), db: DatabaseManager = Depends(get_db)):
    return create_success_response(SubscriptionService(db).list_skips(principal.account_id))


@router.post("/{subscription_id}/skips")
def skip_meal(subscription_id: int, req: SkipRequest, principal: Principal = Depends(require_customer),
              db: DatabaseManager = Depends(get_db)):
    skip = SubscriptionService(db).skip_meal(subscription_id, principal.account_id, req.skip_date, req.meal_type)
    return create_success_response(skip, "Meal skipped")


@router.delete("/skips/{skip_id}")
def unskip_meal(skip_id: int, principal: Principal = Depends(require_customer),
                db: DatabaseManager = Depends(get_db)):
    SubscriptionService(db).unskip(skip_id, principal.account_id)
    return create_success_response(message="Skip removed")


# Provider side

@router.get("/requests")
def list_requests(status: Optional[RequestStatus] = None, principal: Principal = Depends(require_provider),
                  db: DatabaseManager = Depends(get_db)):
    requests = SubscriptionService(db).list_requests(principal.provider_id, status.value if status else None)
    return create_success_response(requests)


@router.post("/requests/{request_id}/approve")
def approve_request(request_id: int, req: SubscriptionApproveRequest,
                    principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    subscription = SubscriptionService(db).approve_request(
        request_id,
        principal.provider_id,
        meal_types=req.meal_types,
        start_date=req.start_date,
        end_date=req.end_date,
        delivery_address_ids=req.delivery_address_ids,
    )
    return create_success_response(subscription, "Subscription approved")


@router.post("/requests/{request_id}/reject")
def reject_request(request_id: int, principal: Principal = Depends(require_provider),
                   db: DatabaseManager = Depends(get_db)):
    return create_success_response(SubscriptionService(db).reject_request(request_id, principal.provider_id))


@router.get("")
def list_subscriptions(active: Optional[bool] = None, principal: Principal = Depends(require_provider),
                       db: DatabaseManager = Depends(get_db)):
    return create_success_response(SubscriptionService(db).list_subscriptions(principal.provider_id, active))


@router.post("/{subscription_id}/renew")
def renew_subscription(subscription_id: int, req: SubscriptionRenewRequest,
                       principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    subscription = SubscriptionService(db).renew(subscription_id, req.end_date, principal.provider_id)
    return create_success_response(subscription, "Subscription renewed")


@router.post("/{subscription_id}/deactivate")
def deactivate_subscription(subscription_id: int, principal: Principal = Depends(require_provider),
                            db: DatabaseManager = Depends(get_db)):
    return create_success_response(SubscriptionService(db).deactivate(subscription_id, principal.provider_id))


@router.put("/{subscription_id}/auto-order")
def set_auto_order(subscription_id: int, req: AutoOrderToggleRequest,
                   principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    subscription = SubscriptionService(db).set_auto_order(subscription_id, req.enabled, principal.provider_id)
    return create_success_response(subscription)


@router.put("/{subscription_id}/delivery-address")
def set_delivery_address(subscription_id: int, req: DeliveryAddressAssignRequest,
                         principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    subscription = SubscriptionService(db).set_delivery_address(
        subscription_id, req.meal_type, req.address_id, principal.provider_id
    )
    return create_success_response(subscription)
