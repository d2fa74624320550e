"""
OAuth 2.0 authorization-code flow shared by all OAuth 2.0 providers.

A concrete provider only declares its endpoints and scopes and maps the
provider's user document to a ``Profile``:

    class ExampleProvider(OAuth2Provider):
        provider_name = "example"
        _AUTHORIZATION_URL = "https://example.com/oauth/authorize"
        _TOKEN_URL = "https://example.com/oauth/token"
        _SCOPES = ["profile"]

        async def _fetch_profile(self) -> Profile:
            data = await self._api_get("https://api.example.com/me", "profile")
            return Profile(provider_id=self.provider_name, validated_id=data["id"])
"""

from abc import abstractmethod
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

import httpx

from socialauth.core.config import auth_logger
from socialauth.core.enums import ProviderFamily
from socialauth.core.exceptions.types import (
    AuthenticationException,
    InvalidStateException,
    OAuthException,
)
from socialauth.core.services.oauth.base import (
    BaseAuthProvider,
    OAuthStateManager,
    OAuthTokens,
    Profile,
    generate_state,
)


__all__ = ["OAuth2Provider"]


class OAuth2Provider(BaseAuthProvider):
    """
    Base class for OAuth 2.0 providers.

    Login builds the authorization URL with a signed ``state`` that carries
    the return URL and a nonce held by this instance. The callback is
    accepted only if the state verifies and its nonce matches, so a callback
    can never complete someone else's login.

    Class attributes to override:
        _AUTHORIZATION_URL: Authorization endpoint.
        _TOKEN_URL: Token endpoint.
        _SCOPES: Scopes requested.
        _SCOPE_SEPARATOR: Separator used to join scopes.
        _TOKEN_METHOD: HTTP method of the token request ("POST" or "GET").
        _TOKEN_AUTH_BASIC: Send client credentials as HTTP Basic auth.
        _ACCESS_TOKEN_PARAM: Query parameter carrying the access token, for
            providers that do not accept a Bearer header.
    """

    family = ProviderFamily.OAUTH2

    _AUTHORIZATION_URL: str
    _TOKEN_URL: str
    _SCOPES: list[str] = []
    _SCOPE_SEPARATOR: str = " "
    _TOKEN_METHOD: str = "POST"
    _TOKEN_AUTH_BASIC: bool = False
    _ACCESS_TOKEN_PARAM: str | None = None

    def __init__(self) -> None:
        super().__init__()
        self._nonce: str | None = None
        self._redirect_uri: str | None = None
        self.tokens: OAuthTokens | None = None

    def _authorization_params(self, redirect_uri: str, state: str) -> dict[str, str]:
        params = {
            "client_id": self._client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "state": state,
        }
        if self._SCOPES:
            params["scope"] = self._SCOPE_SEPARATOR.join(self._SCOPES)
        return params

    async def get_login_redirect_url(self, return_to_url: str) -> str | None:
        """
        Generate the authorization URL for this provider.

        Args:
            return_to_url: The URI to redirect to after authorization.
                           Must be registered with the provider.

        Returns:
            str: The full authorization URL with query parameters.
        """
        self._nonce = generate_state(16)
        self._redirect_uri = return_to_url
        state = OAuthStateManager.encode_state(
            callback_url=return_to_url, nonce=self._nonce
        )
        params = self._authorization_params(return_to_url, state)
        return f"{self._AUTHORIZATION_URL}?{urlencode(params)}"

    async def verify_response(self, params: Mapping[str, str]) -> Profile:
        """
        Validate the callback, exchange the code and load the profile.

        Args:
            params: Callback query parameters (code, state or error).

        Returns:
            Profile: The authenticated user's profile.

        Raises:
            OAuthException: If the provider returned an error, parameters are
                missing, or the token exchange / profile request fails.
            InvalidStateException: If the state is invalid, expired or was
                not issued by this instance.
        """
        error = params.get("error")
        if error:
            description = params.get("error_description") or error
            auth_logger.info(
                f"{self.provider_name} callback returned error: {error} - {description}"
            )
            raise OAuthException(
                message=f"{self.provider_name} authorization failed: {description}",
                provider=self.provider_name,
            )

        code = params.get("code")
        state = params.get("state")
        if not code or not state:
            raise OAuthException(
                message="Missing required OAuth parameters",
                provider=self.provider_name,
            )

        if self._nonce is None or self._redirect_uri is None:
            raise InvalidStateException(
                f"No {self.provider_name} login is in progress for this session."
            )

        state_data = OAuthStateManager.decode_state(state)
        if state_data is None or state_data.nonce != self._nonce:
            auth_logger.warning(
                f"{self.provider_name} callback: invalid or expired state parameter"
            )
            raise InvalidStateException()

        self.tokens = await self.exchange_code_for_tokens(code, self._redirect_uri)
        self._nonce = None
        self._profile = await self._fetch_profile()
        auth_logger.info(
            f"{self.provider_name} user verified: user_id={self._profile.validated_id}"
        )
        return self._profile

    async def exchange_code_for_tokens(
        self, code: str, redirect_uri: str
    ) -> OAuthTokens:
        """
        Exchange an authorization code for access tokens.

        Args:
            code: The authorization code from the OAuth callback.
            redirect_uri: The same redirect URI used in authorization.

        Returns:
            OAuthTokens: Container with the access token and related data.

        Raises:
            OAuthException: If token exchange fails.
        """
        data = {
            "code": code,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        }
        kwargs: dict[str, Any] = {"headers": {"Accept": "application/json"}}
        if self._TOKEN_AUTH_BASIC:
            kwargs["auth"] = (self._client_id, self._client_secret)
        else:
            data["client_id"] = self._client_id
            data["client_secret"] = self._client_secret

        if self._TOKEN_METHOD == "GET":
            kwargs["params"] = data
        else:
            kwargs["data"] = data

        response = await self._send(
            self._TOKEN_METHOD, self._TOKEN_URL, "token exchange", **kwargs
        )
        token_data = response.json()

        # Some providers report errors in a 200 body
        if "error" in token_data:
            error_msg = token_data.get("error_description", token_data.get("error"))
            auth_logger.error(f"{self.provider_name} token exchange error: {error_msg}")
            raise OAuthException(
                message=f"{self.provider_name} token exchange failed: {error_msg}",
                provider=self.provider_name,
            )

        auth_logger.info(f"{self.provider_name} token exchange successful")

        return OAuthTokens(
            access_token=token_data["access_token"],
            token_type=token_data.get("token_type", "Bearer"),
            expires_in=token_data.get("expires_in"),
            refresh_token=token_data.get("refresh_token"),
            scope=token_data.get("scope"),
            id_token=token_data.get("id_token"),
        )

    def _require_tokens(self) -> OAuthTokens:
        if self.tokens is None:
            raise AuthenticationException(
                f"{self.provider_name}: user has not been verified yet."
            )
        return self.tokens

    def _authorize(
        self, headers: dict[str, str] | None, params: dict[str, Any] | None
    ) -> tuple[dict[str, str], dict[str, Any]]:
        tokens = self._require_tokens()
        headers = dict(headers or {})
        params = dict(params or {})
        if self._ACCESS_TOKEN_PARAM:
            params[self._ACCESS_TOKEN_PARAM] = tokens.access_token
        else:
            headers["Authorization"] = f"Bearer {tokens.access_token}"
        return headers, params

    async def _api_get_response(
        self,
        url: str,
        action: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        headers, params = self._authorize(headers, params)
        return await self._send("GET", url, action, headers=headers, params=params)

    async def _api_get(
        self,
        url: str,
        action: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = await self._api_get_response(url, action, params, headers)
        return response.json()

    async def _api_post(
        self,
        url: str,
        action: str,
        data: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        expected: tuple[int, ...] = (200, 201),
    ) -> Any:
        headers, params = self._authorize(headers, None)
        response = await self._send(
            "POST",
            url,
            action,
            expected=expected,
            headers=headers,
            params=params,
            data=data,
            json=json,
        )
        return response.json() if response.content else None

    async def get_user_profile(self) -> Profile:
        """
        Retrieve the user's profile from the provider.

        Returns:
            Profile: A freshly fetched profile.

        Raises:
            AuthenticationException: If the user has not been verified yet.
            OAuthException: If the profile request fails.
        """
        self._require_tokens()
        self._profile = await self._fetch_profile()
        return self._profile

    @abstractmethod
    async def _fetch_profile(self) -> Profile:
        """Load the authenticated user's profile using the access token."""
        pass
