"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to HTTP status codes by the global exception handler
in main.py. The order orchestrator also catches them at its boundary and turns
them into failed OrderResult values, using ``code`` as the result's error code.
"""
from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    code = "domain_error"

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class NotFoundError(DomainError):
    """Resource not found (404)."""
    code = "not_found"

    def __init__(self, resource_type: str, identifier: str, details: dict | None = None):
        message = f"{resource_type} not found: {identifier}"
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class ValidationError(DomainError):
    """Validation error (400)."""
    code = "validation_error"

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class PermissionDeniedError(DomainError):
    """Permission denied (403)."""
    code = "permission_denied"

    def __init__(self, message: str = "Permission denied", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class UnauthorizedError(DomainError):
    """Unauthorized access (401)."""
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED, details=details)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    code = "conflict"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class PaymentNotCompletedError(DomainError):
    """Payment capture returned a status other than COMPLETED (402)."""
    code = "payment_not_completed"

    def __init__(self, capture_status: str, details: dict | None = None):
        message = f"PayPal payment was not completed successfully (status: {capture_status or 'unknown'})"
        super().__init__(message, status_code=status.HTTP_402_PAYMENT_REQUIRED, details=details)


class FulfillmentError(DomainError):
    """An order cannot be turned into a fulfillment order (400)."""
    code = "fulfillment_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class GatewayError(DomainError):
    """Upstream API error (502)."""
    code = "gateway_error"

    def __init__(self, message: str, upstream_status: int | None = None, details: dict | None = None):
        details = dict(details or {})
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        super().__init__(message, status_code=status.HTTP_502_BAD_GATEWAY, details=details)
        self.upstream_status = upstream_status


class PaymentGatewayError(GatewayError):
    """PayPal returned a non-2xx response or could not be reached."""
    code = "payment_gateway_error"


class FulfillmentGatewayError(GatewayError):
    """Printful returned a non-2xx response or could not be reached."""
    code = "fulfillment_gateway_error"
