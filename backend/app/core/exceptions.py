"""
Custom Exceptions for UniTrack
==============================

Use these instead of generic Exception to:
1. Make errors more specific and debuggable
2. Let the API layer map every failure to one status code
3. Keep user-facing messages stable while exposing a machine-readable code

Usage:
    from app.core.exceptions import ResourceNotFoundError, CapacityExceededError

    if course is None:
        raise ResourceNotFoundError("Course", course_id)

    if course.enrolled_count >= course.max_students:
        raise CapacityExceededError("Course is full")
"""

from typing import Optional, Any, Dict

from fastapi import status


class UniTrackError(Exception):
    """Base exception for all UniTrack errors"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(UniTrackError):
    """Missing, invalid or expired credential, or the principal no longer exists"""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class InvalidTokenError(AuthenticationError):
    """JWT token is malformed, wrongly signed or expired"""

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


class AuthorizationError(UniTrackError):
    """Role or ownership check failed"""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access denied"):
        super().__init__(message, code="FORBIDDEN")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(UniTrackError):
    """Base class for not found errors"""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource_type: str, resource_id: Optional[str] = None):
        super().__init__(
            f"{resource_type} not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(UniTrackError):
    """Schema or business-rule violation"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class DuplicateRecordError(ValidationError):
    """A record with the same natural key already exists"""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = "DUPLICATE_RECORD"


class CapacityExceededError(ValidationError):
    """A bounded collection is already full"""

    def __init__(self, message: str = "Course is full"):
        super().__init__(message)
        self.code = "CAPACITY_EXCEEDED"


class InvalidTransitionError(ValidationError):
    """Status change not allowed from the current state"""

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot change status from {current} to {target}")
        self.code = "INVALID_STATUS_TRANSITION"
        self.details = {"current": current, "target": target}


class InvalidFileTypeError(ValidationError):
    """File type not allowed"""

    def __init__(self, file_type: str, allowed_types: list):
        super().__init__(
            f"File type '{file_type}' not allowed. Allowed: {', '.join(allowed_types)}"
        )
        self.code = "INVALID_FILE_TYPE"
        self.details = {"file_type": file_type, "allowed_types": allowed_types}


# ============================================
# Payment Errors
# ============================================

class PaymentVerificationError(UniTrackError):
    """Gateway signature did not match"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Payment verification failed"):
        super().__init__(message, code="PAYMENT_VERIFICATION_FAILED")


# ============================================
# External Service Errors (500-type)
# ============================================

class ExternalServiceError(UniTrackError):
    """A collaborator outside the process failed"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, service: Optional[str] = None):
        super().__init__(message, code="EXTERNAL_SERVICE_ERROR")
        if service:
            self.details["service"] = service


class PaymentGatewayError(ExternalServiceError):
    """Order creation at the payment gateway failed"""

    def __init__(self, message: str = "Failed to create payment order"):
        super().__init__(message, service="razorpay")
        self.code = "PAYMENT_GATEWAY_ERROR"


class ReportGenerationError(ExternalServiceError):
    """PDF rendering failed"""

    def __init__(self, message: str = "Failed to generate report", report_type: Optional[str] = None):
        super().__init__(message, service="reportlab")
        self.code = "REPORT_GENERATION_FAILED"
        if report_type:
            self.details["report_type"] = report_type


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: UniTrackError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    body = {
        "message": error.message,
        "code": error.code,
        "detail": error.message,
    }
    if error.details:
        body["details"] = error.details
    return body
