"""
API routes and endpoints.
"""

from fastapi import APIRouter
from .v1 import auth, customers, functions, meals, orders, payments, providers, reports, subscriptions

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(providers.router, prefix="/providers", tags=["providers"])
api_router.include_router(customers.router, prefix="/customers", tags=["customers"])
api_router.include_router(meals.router, prefix="/meals", tags=["meals"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
api_router.include_router(subscriptions.router, prefix="/subscriptions", tags=["subscriptions"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(functions.router, prefix="/functions", tags=["functions"])
