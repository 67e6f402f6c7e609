"""
Custom exceptions for the booking core.

Every domain failure carries an ErrorCode, a human readable message,
structured details and the HTTP status the API layer should answer with.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Authorization
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"

    # Business logic errors
    BOOKING_CONFLICT = "BOOKING_CONFLICT"
    INVALID_STATE = "INVALID_STATE"

    # External service errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    CALENDAR_FETCH_FAILED = "CALENDAR_FETCH_FAILED"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# Request / Input Exceptions
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when input fails domain validation"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            status_code=422
        )


class InvalidDateRangeError(ValidationError):
    """Exception raised when check-out does not fall after check-in"""

    def __init__(self, check_in: Any, check_out: Any):
        super().__init__(
            message="Check-out date must be after check-in date",
            field="check_out_date",
            details={"check_in_date": str(check_in), "check_out_date": str(check_out)},
            error_code=ErrorCode.INVALID_DATE_RANGE,
        )


class NotFoundError(BaseAppException):
    """Exception raised when a referenced entity does not exist"""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            message=f"{resource} with identifier '{identifier}' not found",
            error_code=ErrorCode.RESOURCE_NOT_FOUND,
            details={"resource": resource, "identifier": str(identifier)},
            status_code=404
        )


class ForbiddenError(BaseAppException):
    """Exception raised when an entity belongs to another organization"""

    def __init__(self, message: str = "You do not have access to this resource",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.AUTHORIZATION_FAILED,
            details=details,
            status_code=403
        )


# ========================================
# Booking Exceptions
# ========================================

class AvailabilityConflict(BaseAppException):
    """Exception raised when a stay overlaps blocking bookings"""

    def __init__(self, property_id: str, conflicts: List[Dict[str, Any]]):
        self.conflicts = conflicts
        super().__init__(
            message="Property is not available for the selected dates",
            error_code=ErrorCode.BOOKING_CONFLICT,
            details={"property_id": property_id, "conflicts": conflicts},
            status_code=409
        )


class StateConflict(BaseAppException):
    """Exception raised when an operation is illegal in the current status"""

    def __init__(self, message: str, current_status: Any,
                 target_status: Optional[Any] = None):
        current = getattr(current_status, "value", current_status)
        self.current_status = current
        details: Dict[str, Any] = {"current_status": current}
        if target_status is not None:
            details["target_status"] = getattr(target_status, "value", target_status)
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_STATE,
            details=details,
            status_code=409
        )


# ========================================
# External Service Exceptions
# ========================================

class ExternalServiceError(BaseAppException):
    """Exception raised when an upstream service fails"""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR,
    ):
        details = dict(details or {})
        details["service"] = service_name
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            status_code=502
        )


class CalendarFetchError(ExternalServiceError):
    """Exception raised when an external iCal feed cannot be retrieved"""

    def __init__(self, url: str, reason: str):
        super().__init__(
            service_name="ical",
            message=f"Failed to fetch calendar: {reason}",
            details={"url": url},
            error_code=ErrorCode.CALENDAR_FETCH_FAILED,
        )
