"""
BagFlow - Custom Exception Hierarchy

Provides structured, typed exceptions with error codes for consistent
error handling across the application. Every exception is converted to a
JSON response by the handlers registered in app.main.

Usage:
    from app.exceptions import NotFoundError, RemainingQuantityExceededError

    raise NotFoundError("Roll", roll_id)
    raise RemainingQuantityExceededError(requested=Decimal("15"), remaining=Decimal("10"))
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional


class BagFlowException(Exception):
    """
    Base exception for all BagFlow errors.

    Attributes:
        message: Human-readable error message (English)
        message_ar: Arabic message shown on the factory floor terminals
        error_code: Machine-readable error code (e.g., "NOT_FOUND")
        status_code: HTTP status code to return
        details: Additional context for the caller
    """

    error_code: str = "BAGFLOW_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        message_ar: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.message_ar = message_ar
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result: Dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.message_ar:
            result["message_ar"] = self.message_ar
        if self.details:
            result["details"] = self.details
        return result


def _kg(value: Decimal) -> str:
    return f"{Decimal(value).quantize(Decimal('0.001')).normalize():f}"


# ===================
# 400 Bad Request Errors
# ===================


class InvalidInputError(BagFlowException):
    """Raised when numeric or structural input is malformed or out of range."""

    error_code = "INVALID_INPUT"
    status_code = 400

    def __init__(
        self,
        message: str = "Invalid input",
        *,
        field: Optional[str] = None,
        value: Any = None,
        message_ar: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, message_ar=message_ar or "بيانات غير صالحة", details=details)


class UnknownProductTypeError(BagFlowException):
    """Raised when a punching code has no overrun policy (strict mode only)."""

    error_code = "UNKNOWN_PRODUCT_TYPE"
    status_code = 400

    def __init__(self, punching: Optional[str], *, known: Optional[List[str]] = None):
        details: Dict[str, Any] = {"punching": punching}
        if known:
            details["known_punching_codes"] = known
        super().__init__(
            f"No overrun policy for punching type '{punching}'",
            message_ar="نوع التخريم غير معروف",
            details=details,
        )


class RemainingQuantityExceededError(BagFlowException):
    """Raised when a roll or cut weight would overshoot what is left to produce."""

    error_code = "REMAINING_QUANTITY_EXCEEDED"
    status_code = 400

    def __init__(
        self,
        *,
        requested: Decimal,
        remaining: Decimal,
        tolerance: Decimal = Decimal("0"),
        subject: str = "production order",
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["requested_kg"] = float(requested)
        details["remaining_kg"] = float(remaining)
        details["tolerance_kg"] = float(tolerance)
        self.remaining = remaining
        super().__init__(
            f"Weight {_kg(requested)} kg exceeds the remaining quantity of the "
            f"{subject} ({_kg(remaining)} kg remaining)",
            message_ar=f"الوزن يتجاوز الكمية المتبقية ({_kg(remaining)} كغ)",
            details=details,
        )


class MachineInactiveError(BagFlowException):
    """Raised when a stage transition targets a machine that is not active."""

    error_code = "MACHINE_INACTIVE"
    status_code = 400

    def __init__(self, machine_id: str, status: str):
        super().__init__(
            f"Machine {machine_id} is not active (status: {status})",
            message_ar=f"ماكينة غير نشطة: {machine_id}",
            details={"machine_id": machine_id, "machine_status": status},
        )


class InvalidTransitionError(BagFlowException):
    """Raised when a status or stage change is not allowed from the current state."""

    error_code = "INVALID_TRANSITION"
    status_code = 400

    def __init__(
        self,
        message: str = "Status transition not allowed",
        *,
        current: Optional[str] = None,
        requested: Optional[str] = None,
        allowed: Optional[List[str]] = None,
        message_ar: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if current is not None:
            details["current_status"] = current
        if requested is not None:
            details["requested_status"] = requested
        if allowed is not None:
            details["allowed_statuses"] = allowed
        super().__init__(
            message,
            message_ar=message_ar or "لا يمكن تغيير الحالة",
            details=details,
        )


# ===================
# 404 Not Found Errors
# ===================


class NotFoundError(BagFlowException):
    """Raised when a resource is not found."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Any = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["resource"] = resource
        if resource_id is not None:
            details["resource_id"] = str(resource_id)
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, message_ar="العنصر غير موجود", details=details)


# ===================
# 409 Conflict Errors
# ===================


class ConflictError(BagFlowException):
    """Raised when there's a resource conflict."""

    error_code = "CONFLICT"
    status_code = 409

    def __init__(
        self,
        message: str = "Resource conflict",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, message_ar="تعارض في البيانات", details=details)


class ConcurrencyError(ConflictError):
    """Raised when concurrent modification is detected."""

    error_code = "CONCURRENCY_ERROR"

    def __init__(
        self,
        message: str = "Resource was modified by another request",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
