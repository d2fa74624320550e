"""
Session facade over the identity providers.

``SocialAuthSession`` holds what one browser session knows about its social
login; ``SocialAuthService`` performs the actions on it. Nothing here speaks
a protocol: every action forwards to the provider instance obtained from
``AuthProviderFactory`` at login.

Example usage:
    session = SocialAuthSession()
    session.id = "facebook"
    session.view_url = "/callback"

    redirect = await SocialAuthService.login(
        session,
        RequestContext(server_name="app.example.com", server_port=8080, path="/"),
    )
    # Send the browser to redirect.url; on the callback request:
    profile = await SocialAuthService.verify(session, request.query_params)
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from socialauth.core.config import session_logger
from socialauth.core.exceptions.types import LoginRequiredException, ReturnUrlException
from socialauth.core.services.oauth import (
    AuthProviderFactory,
    BaseAuthProvider,
    Contact,
    Profile,
)


__all__ = [
    "ExternalRedirect",
    "RequestContext",
    "SocialAuthService",
    "SocialAuthSession",
]

_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass
class SocialAuthSession:
    """
    Per-session state of the social login.

    Attributes:
        id: Provider id ("facebook", "google", ...) or an OpenID URL.
            Must be set before login.
        profile: Profile returned by the last successful verify.
        provider: Provider instance created by login.
        status: Status message to post with update_status.
        view_url: Relative URL of the view the provider returns to,
            e.g. "/openid/callback".
        return_point: Path the user was on when login started.
    """

    id: str | None = None
    profile: Profile | None = None
    provider: BaseAuthProvider | None = None
    status: str | None = None
    view_url: str | None = None
    return_point: str | None = None


@dataclass(frozen=True)
class RequestContext:
    """Inbound request data needed to build the return URL."""

    server_name: str
    server_port: int
    scheme: str = "http"
    path: str | None = None


@dataclass(frozen=True)
class ExternalRedirect:
    """Navigation result of login: send the browser to ``url``."""

    url: str
    return_point: str | None = None


class SocialAuthService:
    """
    Actions of the social login facade.

    Every method takes the session explicitly. Errors from the provider
    factory and the providers propagate unchanged.
    """

    @classmethod
    def init(cls, session: SocialAuthSession) -> None:
        """Reset every field of the session."""
        session.id = None
        session.profile = None
        session.provider = None
        session.status = None
        session.view_url = None
        session.return_point = None

    @classmethod
    def return_to_url(
        cls,
        session: SocialAuthSession,
        request: RequestContext,
        resolve_view: Callable[[str], str] | None = None,
    ) -> str:
        """
        Build the absolute callback URL from the request and the view URL.

        The port is left out when it is the scheme's default port.

        Args:
            session: The session holding ``view_url``.
            request: Host, port and scheme of the current request.
            resolve_view: Maps the view URL to the path to expose, e.g. to
                add an application prefix. Identity when omitted.

        Returns:
            str: e.g. "http://app.example.com:8080/callback".

        Raises:
            ReturnUrlException: If the view URL is unset, the host is empty or
                malformed, the port is out of range, or the path is not absolute.
        """
        if session.view_url is None:
            raise ReturnUrlException("No view URL set for the return URL.")

        host = request.server_name
        if not host or any(c in host for c in "/?#@ "):
            raise ReturnUrlException(f"Invalid server name: {host!r}")

        port = request.server_port
        if not 0 < port < 65536:
            raise ReturnUrlException(f"Invalid server port: {port}")

        scheme = (request.scheme or "http").lower()
        path = resolve_view(session.view_url) if resolve_view else session.view_url
        if not path.startswith("/"):
            raise ReturnUrlException(f"View URL must be an absolute path: {path!r}")

        if _DEFAULT_PORTS.get(scheme) == port:
            return f"{scheme}://{host}{path}"
        return f"{scheme}://{host}:{port}{path}"

    @classmethod
    async def login(
        cls,
        session: SocialAuthSession,
        request: RequestContext,
        resolve_view: Callable[[str], str] | None = None,
    ) -> ExternalRedirect | None:
        """
        Start authentication with the provider selected by ``session.id``.

        Returns:
            ExternalRedirect | None: Where to send the browser, remembering the
                current path as return point; None if the provider needs no
                redirect.

        Raises:
            ProviderNotSelectedException: If no provider id is set.
            UnknownProviderException: If the provider id is unknown.
            ReturnUrlException: If the return URL cannot be built.
            OAuthException: If the provider fails to produce a login URL.
        """
        session.provider = AuthProviderFactory.get_instance(session.id)
        return_to = cls.return_to_url(session, request, resolve_view)

        url = await session.provider.get_login_redirect_url(return_to)
        session_logger.info(f"Redirecting to: {url}")

        if url is None:
            return None

        session.return_point = request.path
        return ExternalRedirect(url=url, return_point=session.return_point)

    @classmethod
    def _provider(cls, session: SocialAuthSession) -> BaseAuthProvider:
        if session.provider is None:
            raise LoginRequiredException()
        return session.provider

    @classmethod
    async def verify(
        cls, session: SocialAuthSession, params: Mapping[str, str]
    ) -> Profile:
        """
        Verify the provider's callback and store the resulting profile.

        Args:
            session: The session that started the login.
            params: Query parameters of the callback request.

        Raises:
            LoginRequiredException: If login was not called.
        """
        provider = cls._provider(session)
        session_logger.info(f"Verifying authentication information from: {session.id}")
        session.profile = await provider.verify_response(params)
        return session.profile

    @classmethod
    def logout(cls, session: SocialAuthSession) -> None:
        cls.init(session)

    @classmethod
    def get_profile(cls, session: SocialAuthSession) -> Profile | None:
        return session.profile

    @classmethod
    async def update_status(cls, session: SocialAuthSession) -> None:
        """
        Post ``session.status`` to the provider.

        Note that this does not read the user's current status.

        Raises:
            LoginRequiredException: If login was not called.
            NotImplementedException: If the provider cannot post statuses.
        """
        await cls._provider(session).update_status(session.status)

    @classmethod
    async def get_contact_list(cls, session: SocialAuthSession) -> list[Contact]:
        """
        Import the user's contacts from the provider.

        Raises:
            LoginRequiredException: If login was not called.
            NotImplementedException: If the provider has no contacts API.
        """
        return await cls._provider(session).get_contact_list()

    @classmethod
    async def get_user_profile(cls, session: SocialAuthSession) -> Profile:
        """
        Retrieve the user profile from the provider.

        Raises:
            LoginRequiredException: If login was not called.
        """
        return await cls._provider(session).get_user_profile()
