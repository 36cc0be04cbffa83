"""
Application exceptions.

Every error raised by the service layer derives from BaseApplicationError and
carries a stable error_code; core.error_handler maps the code to an HTTP status.
"""

from typing import Any, Dict, Optional


class BaseApplicationError(Exception):
    """Base class for all application errors"""

    default_code = "APPLICATION_ERROR"
    default_message = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message or self.default_message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        super().__init__(self.message)


class DatabaseError(BaseApplicationError):
    default_code = "DATABASE_ERROR"
    default_message = "Something went wrong. Please try again."


class ConcurrencyError(BaseApplicationError):
    default_code = "CONCURRENCY_CONFLICT"
    default_message = "The system is busy. Please try again."


class AuthenticationError(BaseApplicationError):
    default_code = "AUTHENTICATION_REQUIRED"
    default_message = "Authentication required"


class PermissionDeniedError(BaseApplicationError):
    default_code = "PERMISSION_DENIED"
    default_message = "You do not have access to this resource"


class ValidationError(BaseApplicationError):
    default_code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class NotFoundError(BaseApplicationError):
    default_code = "RESOURCE_NOT_FOUND"
    default_message = "Resource not found"


class ProviderNotFoundError(NotFoundError):
    default_code = "PROVIDER_NOT_FOUND"
    default_message = "Provider not found"


class CustomerNotFoundError(NotFoundError):
    default_code = "CUSTOMER_NOT_FOUND"
    default_message = "Customer not found"


class MealNotFoundError(NotFoundError):
    default_code = "MEAL_NOT_FOUND"
    default_message = "Meal not found"


class OrderNotFoundError(NotFoundError):
    default_code = "ORDER_NOT_FOUND"
    default_message = "Order not found"


class PaymentNotFoundError(NotFoundError):
    default_code = "PAYMENT_NOT_FOUND"
    default_message = "Payment not found"


class SubscriptionNotFoundError(NotFoundError):
    default_code = "SUBSCRIPTION_NOT_FOUND"
    default_message = "Subscription not found"


class DeliveryAddressNotFoundError(NotFoundError):
    default_code = "DELIVERY_ADDRESS_NOT_FOUND"
    default_message = "Delivery address not found"


class BusinessRuleError(BaseApplicationError):
    """Business rule rejection"""
    default_code = "BUSINESS_RULE_VIOLATION"
    default_message = "Request violates a business rule"


class InsufficientBalanceError(BusinessRuleError):
    default_code = "INSUFFICIENT_BALANCE"
    default_message = "Insufficient balance"


class OrderingClosedError(BusinessRuleError):
    default_code = "ORDERING_CLOSED"
    default_message = "Ordering is closed for this meal"


class CancellationWindowClosedError(BusinessRuleError):
    default_code = "CANCELLATION_WINDOW_CLOSED"
    default_message = "Orders can no longer be canceled within 15 minutes of the cutoff"


class OrderNotCancelableError(BusinessRuleError):
    default_code = "ORDER_NOT_CANCELABLE"
    default_message = "This order can no longer be canceled"


class InvalidStatusTransitionError(BusinessRuleError):
    default_code = "INVALID_STATUS_TRANSITION"
    default_message = "Invalid order status change"


class MealLockedError(BusinessRuleError):
    default_code = "MEAL_LOCKED"
    default_message = "The meal cutoff has passed and it can no longer be changed"


class DuplicateOrderError(BusinessRuleError):
    default_code = "DUPLICATE_ORDER"
    default_message = "An order for this meal already exists"


class BusinessNameTakenError(BusinessRuleError):
    default_code = "BUSINESS_NAME_TAKEN"
    default_message = "This business name is already registered. Please choose a different name."
