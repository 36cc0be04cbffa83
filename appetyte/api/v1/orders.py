"""
Order routes

Customers place and cancel their own orders; providers list orders, move
them through the delivery steps or cancel them administratively.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...core.database import DatabaseManager, get_db
from ...core.error_handler import create_success_response
from ...core.exceptions import OrderNotFoundError
from ...core.security import Principal, get_principal, require_customer, require_provider
from ...models.order import OrderStatus
from ...schemas.order import OrderCreateRequest, OrderStatusUpdateRequest
from ...services.order_service import OrderService

router = APIRouter()


@router.post("")
def create_order(req: OrderCreateRequest, principal: Principal = Depends(require_customer),
                 db: DatabaseManager = Depends(get_db)):
    """
    Place an order for one of today's meals.

    The meal's current price is debited from the customer's balance in the
    same transaction that records the order.
    """
    placed = OrderService(db).place_order(
        customer_id=principal.account_id,
        meal_id=req.meal_id,
        selected_option=req.selected_option,
        delivery_address=req.delivery_address,
        delivery_address_id=req.delivery_address_id,
        notes=req.notes,
    )
    return create_success_response(placed, "Order placed")


@router.get("/my")
def list_my_orders(limit: int = Query(50, ge=1, le=200), principal: Principal = Depends(require_customer),
                   db: DatabaseManager = Depends(get_db)):
    return create_success_response(OrderService(db).list_customer_orders(principal.account_id, limit))


@router.get("/canceled")
def list_canceled_orders(principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    return create_success_response(OrderService(db).list_canceled_orders(principal.provider_id))


@router.get("")
def list_orders(meal_date: Optional[date] = Query(None, alias="date"), status: Optional[OrderStatus] = None,
                principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    orders = OrderService(db).list_provider_orders(
        principal.provider_id, meal_date, status.value if status else None
    )
    return create_success_response(orders)


@router.get("/{order_id}")
def get_order(order_id: int, principal: Principal = Depends(get_principal), db: DatabaseManager = Depends(get_db)):
    order = OrderService(db).get_order(order_id)
    if order.provider_id != principal.provider_id:
        raise OrderNotFoundError()
    if principal.is_customer and order.customer_id != principal.account_id:
        raise OrderNotFoundError()
    return create_success_response(order)


@router.post("/{order_id}/cancel")
def cancel_order(order_id: int, principal: Principal = Depends(get_principal),
                 db: DatabaseManager = Depends(get_db)):
    """Customers are held to the cancellation window; providers are not"""
    service = OrderService(db)
    if principal.is_customer:
        canceled = service.cancel_order(order_id, customer_id=principal.account_id)
    else:
        canceled = service.cancel_order(order_id, provider_id=principal.provider_id, enforce_window=False)
    return create_success_response(canceled, "Order canceled")


@router.put("/{order_id}/status")
def update_order_status(order_id: int, req: OrderStatusUpdateRequest,
                        principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    order = OrderService(db).advance_status(order_id, principal.provider_id, req.status.value)
    return create_success_response(order, "Order updated")
