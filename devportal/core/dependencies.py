"""
Dependency injection for FastAPI.
"""
from fastapi import Depends, Request
from structlog.contextvars import bind_contextvars

from devportal.core.errors import ErrorCode, ErrorMessages
from devportal.core.exceptions import DevPortalException
from devportal.services.access import AccessPortal, Caller


def get_portal(request: Request) -> AccessPortal:
    """Get the access services built at startup."""
    return request.app.state.portal


async def get_caller(
    request: Request,
    portal: AccessPortal = Depends(get_portal),
) -> Caller:
    """
    Resolve the caller and classify the role once for this request.

    Anonymous callers are returned with the unknown role; the services decide
    what that means (denial for actions, empty results for listings).
    """
    caller = await portal.identity.resolve_caller(request.headers)
    if caller.identity is not None:
        bind_contextvars(user_id=caller.identity.id, role=caller.role.value)
    return caller


async def get_authenticated_caller(caller: Caller = Depends(get_caller)) -> Caller:
    """
    Require an authenticated caller.

    Raises:
        DevPortalException: 401 when no identity could be resolved
    """
    if not caller.is_authenticated:
        raise DevPortalException(
            ErrorMessages.get(ErrorCode.AUTH_NOT_AUTHENTICATED),
            status_code=401,
            code=ErrorCode.AUTH_NOT_AUTHENTICATED,
        )
    return caller
