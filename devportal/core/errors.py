"""
Standardized error message catalog for the access portal.

Centralizes all error messages for consistency and security (no raw store
or collaborator text ever reaches a response body).
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Authorization Errors (AUTH_*)
    AUTH_INSUFFICIENT_PERMISSIONS = "AUTH_001"
    AUTH_NOT_AUTHENTICATED = "AUTH_002"

    # Validation Errors (VAL_*)
    VAL_INVALID_INPUT = "VAL_001"
    VAL_UNKNOWN_PRODUCT = "VAL_002"
    VAL_PRODUCT_NOT_PUBLISHED = "VAL_003"
    VAL_UNKNOWN_PLAN_TIER = "VAL_004"
    VAL_INVALID_NAME = "VAL_005"

    # Business Logic Errors (BUS_*)
    BUS_RESOURCE_NOT_FOUND = "BUS_001"
    BUS_RESOURCE_ALREADY_EXISTS = "BUS_002"
    BUS_INVALID_STATE_TRANSITION = "BUS_003"
    BUS_CONCURRENT_MODIFICATION = "BUS_004"

    # System Errors (SYS_*)
    SYS_INTERNAL_ERROR = "SYS_001"
    SYS_STORE_ERROR = "SYS_002"
    SYS_STORE_TIMEOUT = "SYS_003"
    SYS_EXTERNAL_SERVICE_ERROR = "SYS_004"


class ErrorMessages:
    """Centralized error message definitions."""

    _messages: Dict[ErrorCode, str] = {
        ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS: "You don't have permission to perform this action",
        ErrorCode.AUTH_NOT_AUTHENTICATED: "Authentication required",

        ErrorCode.VAL_INVALID_INPUT: "Invalid input provided",
        ErrorCode.VAL_UNKNOWN_PRODUCT: "API product {name} does not exist",
        ErrorCode.VAL_PRODUCT_NOT_PUBLISHED: "API product {name} is not published",
        ErrorCode.VAL_UNKNOWN_PLAN_TIER: "Plan tier {tier} is not offered by API product {name}",
        ErrorCode.VAL_INVALID_NAME: "Must be lowercase alphanumeric with hyphens, start and end with alphanumeric",

        ErrorCode.BUS_RESOURCE_NOT_FOUND: "Requested resource not found",
        ErrorCode.BUS_RESOURCE_ALREADY_EXISTS: "Resource already exists",
        ErrorCode.BUS_INVALID_STATE_TRANSITION: "Invalid state transition",
        ErrorCode.BUS_CONCURRENT_MODIFICATION: "Resource was modified concurrently",

        ErrorCode.SYS_INTERNAL_ERROR: "An internal error occurred. Please try again later",
        ErrorCode.SYS_STORE_ERROR: "The resource store is temporarily unavailable",
        ErrorCode.SYS_STORE_TIMEOUT: "The resource store did not respond in time",
        ErrorCode.SYS_EXTERNAL_SERVICE_ERROR: "External service is temporarily unavailable",
    }

    @classmethod
    def get(cls, code: ErrorCode, **kwargs: Any) -> str:
        """
        Get error message for a given error code.

        Args:
            code: Error code
            **kwargs: Additional context for formatting

        Returns:
            Formatted error message
        """
        base_message = cls._messages.get(code, "An error occurred")

        if kwargs:
            try:
                return base_message.format(**kwargs)
            except KeyError:
                return base_message

        return base_message


class ErrorResponse:
    """Standardized error response structure."""

    def __init__(
        self,
        code: ErrorCode,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message or ErrorMessages.get(code)
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API response."""
        response: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }

        if self.details:
            response["error"]["details"] = self.details

        return response

    @classmethod
    def internal_error(cls) -> "ErrorResponse":
        """Create the response used for anything unclassified."""
        return cls(code=ErrorCode.SYS_INTERNAL_ERROR)
