"""
Error handling
Uniform error response shape and the FastAPI exception handlers.

- Application errors map their error_code to an HTTP status
- Request validation errors become VALIDATION_ERROR (422)
- Anything else is logged with its traceback and returned as INTERNAL_ERROR
"""

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from .exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


class ErrorResponse:
    """Standard error response"""

    def __init__(self, error_code: str, message: str,
                 details: Optional[Dict[str, Any]] = None,
                 http_status: int = 400):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }

    def to_json_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.http_status,
            content=self.to_dict()
        )


class ErrorHandler:
    """Global error handler"""

    ERROR_CODE_STATUS_MAP = {
        "VALIDATION_ERROR": 400,
        "AUTHENTICATION_REQUIRED": 401,
        "PERMISSION_DENIED": 403,
        "RESOURCE_NOT_FOUND": 404,
        "BUSINESS_RULE_VIOLATION": 422,
        "INTERNAL_ERROR": 500,
        "DATABASE_ERROR": 500,
        "CONCURRENCY_CONFLICT": 409,

        # Not found
        "PROVIDER_NOT_FOUND": 404,
        "CUSTOMER_NOT_FOUND": 404,
        "MEAL_NOT_FOUND": 404,
        "ORDER_NOT_FOUND": 404,
        "PAYMENT_NOT_FOUND": 404,
        "SUBSCRIPTION_NOT_FOUND": 404,
        "DELIVERY_ADDRESS_NOT_FOUND": 404,

        # Orders
        "INSUFFICIENT_BALANCE": 400,
        "ORDERING_CLOSED": 400,
        "CANCELLATION_WINDOW_CLOSED": 400,
        "ORDER_NOT_CANCELABLE": 400,
        "INVALID_STATUS_TRANSITION": 400,
        "DUPLICATE_ORDER": 409,

        # Meals and providers
        "MEAL_LOCKED": 400,
        "BUSINESS_NAME_TAKEN": 409,
    }

    @classmethod
    def handle_application_error(cls, error: BaseApplicationError) -> ErrorResponse:
        http_status = cls.ERROR_CODE_STATUS_MAP.get(error.error_code, 400)
        return ErrorResponse(
            error_code=error.error_code,
            message=error.message,
            details=error.details,
            http_status=http_status
        )

    @classmethod
    def handle_http_exception(cls, error: HTTPException) -> ErrorResponse:
        return ErrorResponse(
            error_code="HTTP_ERROR",
            message=str(error.detail),
            details={"status_code": error.status_code},
            http_status=error.status_code
        )

    @classmethod
    def handle_validation_error(cls, error: Exception) -> ErrorResponse:
        if hasattr(error, "errors"):
            errors = [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                for e in error.errors()
            ]
        else:
            errors = str(error)
        return ErrorResponse(
            error_code="VALIDATION_ERROR",
            message="Request validation failed",
            details={"validation_errors": errors},
            http_status=422
        )

    @classmethod
    def handle_unknown_error(cls, error: Exception) -> ErrorResponse:
        logger.error("Unhandled error: %s", error, exc_info=error)
        return ErrorResponse(
            error_code="INTERNAL_ERROR",
            message="Something went wrong. Please try again.",
            details={"error_type": type(error).__name__},
            http_status=500
        )


async def application_error_handler(request: Request, exc: BaseApplicationError) -> JSONResponse:
    if ErrorHandler.ERROR_CODE_STATUS_MAP.get(exc.error_code, 400) >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return ErrorHandler.handle_application_error(exc).to_json_response()


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return ErrorHandler.handle_http_exception(exc).to_json_response()


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return ErrorHandler.handle_validation_error(exc).to_json_response()


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return ErrorHandler.handle_unknown_error(exc).to_json_response()


def create_success_response(data: Any = None, message: str = "OK") -> Dict[str, Any]:
    """Standard success envelope"""
    response = {
        "success": True,
        "message": message
    }
    if data is not None:
        response["data"] = data
    return response
