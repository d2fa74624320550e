from fastapi import Request, status
from fastapi.responses import JSONResponse

from socialauth.core.config import request_logger
from socialauth.core.exceptions.types import (
    AppException,
    AuthenticationException,
    BadRequestException,
    NotImplementedException,
    OAuthException,
)


async def general_exception_handler(request: Request, exc: AppException):
    """
    Handles general exceptions by returning a JSON response with the error message.

    Args:
        request: The request object.
        exc (AppException): The exception instance.

    Returns:
        JSONResponse: A response containing the error message and its status code.
    """
    request_logger.error(f"GeneralException: {exc}")
    content: dict = {"detail": f"An unexpected error occurred.\n{str(exc)}"}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


async def authentication_exception_handler(
    request: Request, exc: AuthenticationException
):
    """
    Handles authentication exceptions, including actions attempted before login.

    Args:
        request: The request object.
        exc (AuthenticationException): The authentication exception instance.

    Returns:
        JSONResponse: A response containing the error message and status code 401.
    """
    request_logger.warning(f"{type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc)},
    )


async def oauth_exception_handler(request: Request, exc: OAuthException):
    """
    Handles OAuth/OpenID provider exceptions by returning a JSON response.

    Args:
        request: The request object.
        exc (OAuthException): The OAuth exception instance.

    Returns:
        JSONResponse: A response containing the error message and status code 400.
    """
    request_logger.warning(f"OAuthException ({exc.provider}): {exc}")
    content: dict = {"detail": str(exc)}
    if exc.provider:
        content["provider"] = exc.provider
    return JSONResponse(status_code=exc.status_code, content=content)


async def bad_request_exception_handler(request: Request, exc: BadRequestException):
    """
    Handles bad request exceptions: unknown or missing provider ids,
    unbuildable return URLs and rejected OAuth state.

    Args:
        request: The request object.
        exc (BadRequestException): The bad request exception instance.

    Returns:
        JSONResponse: A response containing the error message and status code 400.
    """
    request_logger.warning(f"{type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc)},
    )


async def not_implemented_exception_handler(
    request: Request, exc: NotImplementedException
):
    request_logger.info(f"NotImplementedException: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc)},
    )


exception_schema = {
    status.HTTP_500_INTERNAL_SERVER_ERROR: {
        "description": "Internal Server Error",
        "content": {
            "application/json": {
                "example": {"detail": "Some internal server error message"},
            }
        },
    },
    status.HTTP_400_BAD_REQUEST: {
        "description": "Bad Request",
        "content": {
            "application/json": {
                "example": {"detail": "Unknown authentication provider: orkut"},
            }
        },
    },
    status.HTTP_401_UNAUTHORIZED: {
        "description": "Authentication Error",
        "content": {
            "application/json": {
                "example": {
                    "detail": "No active provider. Call login before this action."
                },
            }
        },
    },
}


__all__ = [
    "general_exception_handler",
    "authentication_exception_handler",
    "oauth_exception_handler",
    "bad_request_exception_handler",
    "not_implemented_exception_handler",
    "exception_schema",
]
