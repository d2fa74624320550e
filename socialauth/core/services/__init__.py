from socialauth.core.services.socialauth import (
    ExternalRedirect,
    RequestContext,
    SocialAuthService,
    SocialAuthSession,
)
from socialauth.core.services.session_store import SessionStore, session_store

__all__ = [
    "ExternalRedirect",
    "RequestContext",
    "SessionStore",
    "SocialAuthService",
    "SocialAuthSession",
    "session_store",
]
