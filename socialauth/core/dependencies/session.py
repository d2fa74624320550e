"""
Session dependencies for FastAPI endpoints.

- Resolving the caller's ``SocialAuthSession`` from the signed session cookie
- Building the ``RequestContext`` the facade needs from the current request

Example usage:
    from socialauth.core.dependencies import CurrentSocialAuthSession

    @router.get("/profile")
    async def get_profile(session: CurrentSocialAuthSession):
        return SocialAuthService.get_profile(session)
"""

from typing import Annotated
from urllib.parse import urlsplit

from fastapi import Depends, Request

from socialauth.core.services.session_store import SessionStore, session_store
from socialauth.core.services.socialauth import RequestContext, SocialAuthSession

# Key of the store entry inside the Starlette session cookie
SESSION_KEY = "socialauth_key"

_DEFAULT_PORTS = {"http": 80, "https": 443}


def get_session_store() -> SessionStore:
    return session_store


def get_socialauth_session(
    request: Request,
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> SocialAuthSession:
    """
    Return the caller's social auth session, creating it on first use.

    The store key is kept in the signed session cookie, so a new browser
    gets a fresh, empty session.
    """
    key = request.session.get(SESSION_KEY)
    if not key:
        key = SessionStore.new_key()
        request.session[SESSION_KEY] = key
    return store.get_or_create(key)


def get_existing_socialauth_session(
    request: Request,
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> SocialAuthSession:
    """
    Return the caller's live session without allocating one.

    A caller with no live session gets a blank session that is not stored
    and sets no cookie.
    """
    key = request.session.get(SESSION_KEY)
    session = store.get(key) if key else None
    return session if session is not None else SocialAuthSession()


def _local_path(url: str | None) -> str | None:
    """
    Return ``url`` if it is a path on this site, else None.

    Browsers read ``\\`` as ``/`` and drop tabs and newlines, so both are
    refused along with anything carrying a scheme or host.
    """
    if not url or "\\" in url or any(ord(c) < 0x20 for c in url):
        return None
    parts = urlsplit(url)
    if parts.scheme or parts.netloc:
        return None
    if not parts.path.startswith("/") or parts.path.startswith("//"):
        return None
    return parts.path + (f"?{parts.query}" if parts.query else "")


def get_request_context(request: Request) -> RequestContext:
    """
    Describe the current request for return URL computation.

    The return point is the ``next`` query parameter, or else the path of
    the page the login link was clicked on (``Referer``).
    """
    url = request.url
    scheme = url.scheme
    return_point = _local_path(request.query_params.get("next"))
    if return_point is None:
        referer = request.headers.get("referer")
        if referer:
            parts = urlsplit(referer)
            if parts.netloc == url.netloc:
                return_point = _local_path(
                    parts.path + (f"?{parts.query}" if parts.query else "")
                )

    return RequestContext(
        server_name=url.hostname or "",
        server_port=url.port or _DEFAULT_PORTS.get(scheme, 80),
        scheme=scheme,
        path=return_point,
    )


def get_view_resolver(request: Request):
    """Prefix view URLs with the application's mount path."""
    root_path = request.scope.get("root_path", "").rstrip("/")

    def resolve_view(view_url: str) -> str:
        return f"{root_path}{view_url}"

    return resolve_view


CurrentSocialAuthSession = Annotated[
    SocialAuthSession, Depends(get_socialauth_session)
]
ExistingSocialAuthSession = Annotated[
    SocialAuthSession, Depends(get_existing_socialauth_session)
]
CurrentRequestContext = Annotated[RequestContext, Depends(get_request_context)]
