"""
Shared dependencies for FastAPI endpoints.

"""

from socialauth.core.dependencies.session import (
    SESSION_KEY,
    CurrentRequestContext,
    CurrentSocialAuthSession,
    ExistingSocialAuthSession,
    get_existing_socialauth_session,
    get_request_context,
    get_session_store,
    get_socialauth_session,
    get_view_resolver,
)

__all__ = [
    "SESSION_KEY",
    # Dependency functions
    "get_existing_socialauth_session",
    "get_request_context",
    "get_session_store",
    "get_socialauth_session",
    "get_view_resolver",
    # Type aliases
    "CurrentRequestContext",
    "CurrentSocialAuthSession",
    "ExistingSocialAuthSession",
]
