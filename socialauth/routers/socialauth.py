"""
Social auth router exposing the session facade over HTTP.

This module provides endpoints for:
- Starting a login with a provider (redirect to the provider)
- The provider callback (verification)
- Reading the verified profile or a fresh one from the provider
- Contact import
- Status update
- Logout

All endpoints are prefixed with /socialauth when mounted in the main app.
The caller's session is identified by the signed session cookie.
"""

from typing import Annotated, Callable

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse

from socialauth.core.config import auth_logger, settings
from socialauth.core.dependencies import (
    CurrentRequestContext,
    CurrentSocialAuthSession,
    ExistingSocialAuthSession,
    get_view_resolver,
)
from socialauth.core.schemas import (
    ContactListResponse,
    ContactResponse,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    StatusResponse,
    StatusUpdateRequest,
)
from socialauth.core.services import SocialAuthService


router = APIRouter()


@router.get(
    "/login",
    response_model=LoginResponse,
    summary="Start social login",
    description="""
## Start Social Login

Selects a provider for the current session and redirects the browser to it.

### Query Parameters

| Parameter | Type | Description |
|-----------|------|-------------|
| `id` | string | `facebook`, `foursquare`, `github`, `google`, `hotmail`, `linkedin`, `twitter`, `yahoo`, or an OpenID URL. Optional if already set on the session. |
| `view_url` | string | Relative URL the provider returns to. Defaults to the configured callback view. |
| `next` | string | Local path to remember as return point. Defaults to the `Referer` path. |

### Responses

- `307` redirect to the provider
- `200` `LoginResponse` when the provider needs no redirect
- `400` unknown or missing provider id, or return URL cannot be built
""",
    responses={307: {"description": "Redirect to the identity provider"}},
)
async def login(
    session: CurrentSocialAuthSession,
    request_context: CurrentRequestContext,
    resolve_view: Annotated[Callable[[str], str], Depends(get_view_resolver)],
    provider_id: Annotated[
        str | None,
        Query(alias="id", description="Provider id or OpenID identifier URL"),
    ] = None,
    view_url: Annotated[
        str | None, Query(description="Relative URL of the callback view")
    ] = None,
    next_path: Annotated[
        str | None,
        Query(alias="next", description="Local path to come back to after login"),
    ] = None,
) -> LoginResponse | RedirectResponse:
    """
    Start authentication with the selected provider.

    Args:
        session: The caller's social auth session.
        request_context: Host, port and return point of the current request.
        resolve_view: Prefixes the view URL with the app mount path.
        provider_id: Provider id; replaces the one stored on the session when given.
        view_url: Callback view; replaces the stored one when given.
        next_path: Return point; applied through ``request_context``, which
            falls back to the Referer when it is missing or not local.

    Returns:
        LoginResponse | RedirectResponse: A 307 redirect to the provider, or
            a LoginResponse when the provider returned no URL.
    """
    if provider_id is not None:
        session.id = provider_id
    if view_url is not None:
        session.view_url = view_url
    elif session.view_url is None:
        session.view_url = settings.SOCIALAUTH_VIEW_URL

    redirect = await SocialAuthService.login(session, request_context, resolve_view)
    if redirect is None:
        return LoginResponse(provider_id=session.id or "")

    return RedirectResponse(url=redirect.url, status_code=307)


@router.get(
    "/callback",
    response_model=ProfileResponse,
    summary="Provider callback",
    description="""
## Provider Callback

The identity provider redirects the browser here after the user
authenticates. The query string is verified by the provider selected at
login, and the resulting profile is stored on the session.

Returns the profile, or a `307` back to the page login was started from
when redirect-after-verify is enabled.
""",
)
async def callback(
    request: Request,
    session: ExistingSocialAuthSession,
) -> ProfileResponse | RedirectResponse:
    profile = await SocialAuthService.verify(session, dict(request.query_params))
    auth_logger.info(
        f"Social login verified: provider={profile.provider_id}, "
        f"user_id={profile.validated_id}"
    )

    if settings.SOCIALAUTH_REDIRECT_AFTER_VERIFY and session.return_point:
        return RedirectResponse(url=session.return_point, status_code=307)

    return ProfileResponse.from_profile(profile)


@router.get(
    "/profile",
    response_model=ProfileResponse | None,
    summary="Verified profile",
)
async def get_profile(session: ExistingSocialAuthSession) -> ProfileResponse | None:
    """Return the profile stored by the last verification, or null."""
    profile = SocialAuthService.get_profile(session)
    return ProfileResponse.from_profile(profile) if profile else None


@router.get(
    "/user-profile",
    response_model=ProfileResponse,
    summary="Fetch profile from provider",
)
async def get_user_profile(session: ExistingSocialAuthSession) -> ProfileResponse:
    """Retrieve the user profile from the provider."""
    profile = await SocialAuthService.get_user_profile(session)
    return ProfileResponse.from_profile(profile)


@router.get(
    "/contacts",
    response_model=ContactListResponse,
    summary="Import contacts",
    description="""
## Import Contacts

Fetches the user's contacts from the provider (address book, friends or
followed accounts depending on the provider). Returns `501` when the
provider offers no contact API.
""",
)
async def get_contact_list(session: ExistingSocialAuthSession) -> ContactListResponse:
    contacts = await SocialAuthService.get_contact_list(session)
    return ContactListResponse(
        provider_id=session.provider.provider_name if session.provider else "",
        count=len(contacts),
        contacts=[ContactResponse.from_contact(c) for c in contacts],
    )


@router.get(
    "/status",
    response_model=StatusResponse,
    summary="Pending status message",
)
async def get_status(session: ExistingSocialAuthSession) -> StatusResponse:
    """Return the status message stored on the session (not the provider's)."""
    return StatusResponse(status=session.status)


@router.put(
    "/status",
    response_model=MessageResponse,
    summary="Update status",
    description="""
## Update Status

Stores the status message on the session and posts it to the provider.
Returns `501` when the provider does not support status updates.
""",
)
async def update_status(
    payload: StatusUpdateRequest,
    session: ExistingSocialAuthSession,
) -> MessageResponse:
    session.status = payload.status
    await SocialAuthService.update_status(session)
    return MessageResponse(message="Status updated successfully")


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Log out",
)
async def logout(session: ExistingSocialAuthSession) -> MessageResponse:
    """Reset the social auth session."""
    SocialAuthService.logout(session)
    return MessageResponse(message="Logged out successfully")
