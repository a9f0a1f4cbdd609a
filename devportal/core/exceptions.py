"""
Custom exceptions for the application.

Every exception carries the HTTP status the boundary maps it to and an
error-catalog code; ``message`` is always safe to show to the caller.
"""
from typing import Any, Dict, Optional

from devportal.core.errors import ErrorCode, ErrorMessages


class DevPortalException(Exception):
    """Base exception for all portal exceptions."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.SYS_INTERNAL_ERROR,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.code = code
        super().__init__(self.message)


class ValidationError(DevPortalException):
    """Malformed or inconsistent input, e.g. an unknown plan tier."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: ErrorCode = ErrorCode.VAL_INVALID_INPUT,
    ):
        details = {"field": field} if field else {}
        super().__init__(message, status_code=400, details=details, code=code)


class AuthorizationError(DevPortalException):
    """Policy denial."""

    def __init__(
        self,
        message: str = ErrorMessages.get(ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS),
        action: Optional[str] = None,
    ):
        details = {"action": action} if action else {}
        super().__init__(
            message,
            status_code=403,
            details=details,
            code=ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS,
        )


class NotFoundError(DevPortalException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Any):
        message = f"{resource} {resource_id} not found"
        super().__init__(
            message,
            status_code=404,
            details={"resource": resource},
            code=ErrorCode.BUS_RESOURCE_NOT_FOUND,
        )


class InvalidStateError(DevPortalException):
    """Illegal lifecycle transition, including a lost compare-and-swap race."""

    def __init__(self, message: str, current_state: Optional[str] = None):
        details = {"current_state": current_state} if current_state else {}
        super().__init__(
            message,
            status_code=409,
            details=details,
            code=ErrorCode.BUS_INVALID_STATE_TRANSITION,
        )


class ConflictError(DevPortalException):
    """Store-level conflict: version mismatch or duplicate id."""

    def __init__(
        self,
        message: str = ErrorMessages.get(ErrorCode.BUS_CONCURRENT_MODIFICATION),
        code: ErrorCode = ErrorCode.BUS_CONCURRENT_MODIFICATION,
    ):
        super().__init__(message, status_code=409, code=code)


class StoreError(DevPortalException):
    """Any other collaborator failure. Never retried by the core."""

    def __init__(
        self,
        operation: Optional[str] = None,
        code: ErrorCode = ErrorCode.SYS_STORE_ERROR,
        status_code: int = 500,
    ):
        details = {"operation": operation} if operation else {}
        super().__init__(
            ErrorMessages.get(code),
            status_code=status_code,
            details=details,
            code=code,
        )


class StoreTimeoutError(StoreError):
    """The store did not answer within the caller-supplied timeout."""

    def __init__(self, operation: Optional[str] = None, timeout: Optional[float] = None):
        super().__init__(operation, code=ErrorCode.SYS_STORE_TIMEOUT, status_code=504)
        if timeout is not None:
            self.details["timeout_seconds"] = timeout


class CredentialIssuanceError(StoreError):
    """The credential issuer failed after an approval was committed."""

    def __init__(self, request_id: Optional[str] = None):
        super().__init__(
            "credential_issuance",
            code=ErrorCode.SYS_EXTERNAL_SERVICE_ERROR,
        )
        if request_id:
            self.details["request"] = request_id
