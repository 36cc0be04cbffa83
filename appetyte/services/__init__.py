"""
Business logic services.
Contains service layer implementations for core business operations.
"""

from .auto_order_service import AutoOrderService, AutoOrderSummary
from .customer_service import CustomerService
from .meal_service import MealService
from .order_service import BalancePolicy, OrderService
from .payment_service import PaymentService
from .provider_service import ProviderService
from .report_service import ReportService
from .subscription_service import SubscriptionService

__all__ = [
    "AutoOrderService",
    "AutoOrderSummary",
    "BalancePolicy",
    "CustomerService",
    "MealService",
    "OrderService",
    "PaymentService",
    "ProviderService",
    "ReportService",
    "SubscriptionService",
]
