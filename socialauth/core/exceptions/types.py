from fastapi import status


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code or status.HTTP_500_INTERNAL_SERVER_ERROR
        self.details = details
        super().__init__(message)


class AuthenticationException(AppException):
    """Exception raised for authentication-related errors."""

    def __init__(self, message: str = "Authentication failed."):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class LoginRequiredException(AuthenticationException):
    """Exception raised when an action needs a provider but login was never called."""

    def __init__(
        self, message: str = "No active provider. Call login before this action."
    ):
        super().__init__(message)


class OAuthException(AppException):
    """Exception raised for OAuth/OpenID protocol or provider errors."""

    def __init__(
        self,
        message: str = "OAuth authentication failed.",
        provider: str | None = None,
    ):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)
        self.provider = provider


class BadRequestException(AppException):
    """Exception raised for bad request errors."""

    def __init__(self, message: str = "Bad request."):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ProviderNotSelectedException(BadRequestException):
    """Exception raised when login is attempted without a provider id."""

    def __init__(
        self, message: str = "No provider selected. Set the provider id first."
    ):
        super().__init__(message)


class UnknownProviderException(BadRequestException):
    """Exception raised when a provider id matches no registered provider."""

    def __init__(self, selector: str | None = None, message: str | None = None):
        super().__init__(message or f"Unknown authentication provider: {selector}")
        self.selector = selector


class ReturnUrlException(BadRequestException):
    """Exception raised when the callback URL cannot be built."""

    def __init__(self, message: str = "Unable to build the return URL."):
        super().__init__(message)


class InvalidStateException(BadRequestException):
    """Exception raised when OAuth state parameter is invalid."""

    def __init__(self, message: str = "Invalid state parameter."):
        super().__init__(message)


class NotImplementedException(AppException):
    """Exception raised when a provider does not support an operation."""

    def __init__(
        self,
        message: str = "This feature is not yet implemented.",
        details: dict | None = None,
    ):
        super().__init__(message, status.HTTP_501_NOT_IMPLEMENTED, details)


__all__ = [
    "AppException",
    "AuthenticationException",
    "LoginRequiredException",
    "OAuthException",
    "BadRequestException",
    "ProviderNotSelectedException",
    "UnknownProviderException",
    "ReturnUrlException",
    "InvalidStateException",
    "NotImplementedException",
]
