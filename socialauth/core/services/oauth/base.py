"""
Base provider abstraction and shared data structures.

Every identity provider (OAuth 1.0a, OAuth 2.0 or OpenID 2.0) implements
``BaseAuthProvider``. An instance is created per login and keeps the
per-user protocol state (request tokens, state nonce, access token, profile)
between the redirect to the provider and the callback.

Example usage:
    from socialauth.core.services.oauth.base import BaseAuthProvider, Profile

    class MyProvider(BaseAuthProvider):
        provider_name = "my_provider"
        family = ProviderFamily.OAUTH2

        async def get_login_redirect_url(self, return_to_url: str) -> str | None:
            ...

        async def verify_response(self, params: Mapping[str, str]) -> Profile:
            ...

        async def get_user_profile(self) -> Profile:
            ...
"""

import secrets
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from socialauth.core.config import auth_logger, settings
from socialauth.core.enums import ProviderFamily
from socialauth.core.exceptions.types import (
    AuthenticationException,
    NotImplementedException,
    OAuthException,
)


__all__ = [
    "BaseAuthProvider",
    "Contact",
    "OAuthStateData",
    "OAuthStateManager",
    "OAuthTokens",
    "Profile",
    "generate_state",
]


def generate_state(length: int = 32) -> str:
    """
    Generate a cryptographically secure random token.

    Args:
        length: Number of random bytes to generate. Default is 32 bytes
                which produces a 64-character hex string.

    Returns:
        str: A hex-encoded random string of length * 2 characters.
    """
    return secrets.token_hex(length)


@dataclass
class OAuthTokens:
    """
    Container for tokens returned by a provider.

    Attributes:
        access_token: The access token for API calls.
        token_type: The type of token (usually "Bearer").
        expires_in: Optional token expiration time in seconds.
        refresh_token: Optional refresh token.
        scope: Optional space-separated list of granted scopes.
        id_token: Optional OpenID Connect ID token (JWT).
        token_secret: OAuth 1.0a token secret, used for request signing.
    """

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None
    id_token: str | None = None
    token_secret: str | None = None


@dataclass
class Profile:
    """
    Normalized user profile returned by every provider.

    Attributes:
        provider_id: The provider name (e.g., "facebook", "openid").
        validated_id: The user's unique id at the provider (claimed id for OpenID).
        first_name: Optional given name.
        last_name: Optional family name.
        full_name: Optional full name.
        display_name: Optional screen name / nickname.
        email: Optional email address.
        gender: Optional gender as reported by the provider.
        dob: Optional date of birth, in the provider's format.
        country: Optional country.
        language: Optional language or locale.
        location: Optional free-form location.
        profile_image_url: Optional URL of the user's picture.
        raw_data: The complete raw response from the provider.

    Example:
        >>> profile = Profile(provider_id="google", validated_id="123", email="a@b.c")
        >>> profile.to_dict()["email"]
        'a@b.c'
    """

    provider_id: str
    validated_id: str
    first_name: str | None = None
    last_name: str | None = None
    full_name: str | None = None
    display_name: str | None = None
    email: str | None = None
    gender: str | None = None
    dob: str | None = None
    country: str | None = None
    language: str | None = None
    location: str | None = None
    profile_image_url: str | None = None
    raw_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_id": self.provider_id,
            "validated_id": self.validated_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "display_name": self.display_name,
            "email": self.email,
            "gender": self.gender,
            "dob": self.dob,
            "country": self.country,
            "language": self.language,
            "location": self.location,
            "profile_image_url": self.profile_image_url,
            "raw_data": self.raw_data,
        }


@dataclass
class Contact:
    """
    A contact imported from the user's account at a provider.

    Attributes:
        id: Optional id of the contact at the provider.
        first_name: Optional given name.
        last_name: Optional family name.
        display_name: Optional display or screen name.
        email: Optional primary email.
        other_emails: Additional email addresses.
        profile_url: Optional link to the contact's public profile.
        raw_data: The raw provider record.
    """

    id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    email: str | None = None
    other_emails: list[str] = field(default_factory=list)
    profile_url: str | None = None
    raw_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "display_name": self.display_name,
            "email": self.email,
            "other_emails": list(self.other_emails),
            "profile_url": self.profile_url,
            "raw_data": self.raw_data,
        }


_state_serializer = URLSafeTimedSerializer(
    secret_key=settings.SESSION_SECRET_KEY,
    salt="socialauth-oauth-state",
)


@dataclass
class OAuthStateData:
    """Data encoded in OAuth state parameter."""

    callback_url: str | None = None
    nonce: str = field(default_factory=lambda: secrets.token_hex(16))


class OAuthStateManager:
    """
    Manager for encoding/decoding OAuth state parameters.

    Uses itsdangerous to sign and serialize state data, ensuring
    it hasn't been tampered with and hasn't expired.
    """

    @classmethod
    def encode_state(
        cls,
        callback_url: str | None = None,
        nonce: str | None = None,
    ) -> str:
        """
        Encode OAuth state data into a signed, URL-safe string.

        Args:
            callback_url: The return URL the provider will redirect to.
            nonce: Nonce to bind the state to one provider instance.
                   A fresh one is generated when omitted.

        Returns:
            str: Signed, URL-safe state string.
        """
        data = {
            "callback_url": callback_url,
            "nonce": nonce or secrets.token_hex(16),
        }
        return _state_serializer.dumps(data)

    @classmethod
    def decode_state(cls, state: str) -> OAuthStateData | None:
        """
        Decode and verify OAuth state parameter.

        Args:
            state: The signed state string from OAuth callback.

        Returns:
            OAuthStateData if valid, None if invalid or expired.
        """
        try:
            data = _state_serializer.loads(
                state, max_age=settings.OAUTH_STATE_MAX_AGE_SECONDS
            )
        except (BadSignature, SignatureExpired):
            return None
        if not isinstance(data, dict):
            return None
        return OAuthStateData(
            callback_url=data.get("callback_url"),
            nonce=data.get("nonce", ""),
        )


class BaseAuthProvider(ABC):
    """
    Abstract base class for identity providers.

    Class level: credentials and one shared ``httpx.AsyncClient`` per provider
    class, managed by ``init()`` / ``aclose()``.

    Instance level: the state of one user's authentication. An instance is
    obtained from ``AuthProviderFactory`` when a session logs in and lives
    as long as that session keeps it.

    Subclasses must implement:
        - provider_name / family: Class attributes
        - get_login_redirect_url: URL to send the browser to
        - verify_response: Validate the provider callback and return the profile
        - get_user_profile: Profile of the authenticated user

    Subclasses may override update_status and get_contact_list; the
    defaults raise NotImplementedException.
    """

    provider_name: str
    family: ProviderFamily

    _client_id: str = ""
    _client_secret: str = ""
    _client: httpx.AsyncClient | None = None

    def __init__(self) -> None:
        self._profile: Profile | None = None

    @classmethod
    async def init(
        cls,
        client_id: str | None = None,
        client_secret: str | None = None,
    ) -> None:
        """
        Initialize the provider class.

        Sets up the HTTP client and optionally overrides credentials.
        Should be called during application startup.

        Args:
            client_id: Optional client id (consumer key for OAuth 1.0a).
            client_secret: Optional client secret (consumer secret for OAuth 1.0a).
        """
        if client_id is not None:
            cls._client_id = client_id
        if client_secret is not None:
            cls._client_secret = client_secret

        await cls.aclose()
        cls._client = httpx.AsyncClient(
            timeout=httpx.Timeout(30.0),
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            follow_redirects=True,
        )
        auth_logger.info(f"{cls.__name__} initialized")

    @classmethod
    async def aclose(cls) -> None:
        """
        Close the HTTP client and cleanup resources.

        Should be called during application shutdown.
        """
        if cls._client is not None:
            try:
                await cls._client.aclose()
            finally:
                cls._client = None
                auth_logger.info(f"{cls.__name__} closed")

    @classmethod
    async def _get_client(cls) -> httpx.AsyncClient:
        if cls._client is None:
            await cls.init()
            assert cls._client is not None, "Client initialization failed"
        return cls._client

    async def _send(
        self,
        method: str,
        url: str,
        action: str,
        expected: tuple[int, ...] = (200,),
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Send a request to the provider and turn failures into OAuthException.

        Args:
            method: HTTP method.
            url: Absolute URL.
            action: Human-readable name of the call, used in errors and logs.
            expected: Status codes considered successful.
            **kwargs: Passed through to ``httpx.AsyncClient.request``.

        Returns:
            httpx.Response: The successful response.

        Raises:
            OAuthException: On network errors or unexpected status codes.
        """
        client = await self._get_client()
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            auth_logger.error(f"{self.provider_name} {action} network error: {e}")
            raise OAuthException(
                message=f"{self.provider_name} {action} failed: network error",
                provider=self.provider_name,
            ) from e

        if response.status_code not in expected:
            auth_logger.error(
                f"{self.provider_name} {action} failed: "
                f"status={response.status_code}, response={response.text}"
            )
            raise OAuthException(
                message=f"{self.provider_name} {action} failed: {response.text}",
                provider=self.provider_name,
            )
        return response

    def _require_profile(self) -> Profile:
        if self._profile is None:
            raise AuthenticationException(
                f"{self.provider_name}: user has not been verified yet."
            )
        return self._profile

    @abstractmethod
    async def get_login_redirect_url(self, return_to_url: str) -> str | None:
        """
        Build the URL the user's browser must be sent to.

        Args:
            return_to_url: Absolute callback URL the provider redirects back to.

        Returns:
            str | None: The provider URL, or None when no redirect is needed.

        Raises:
            OAuthException: If the provider cannot be reached or refuses the request.
        """
        pass

    @abstractmethod
    async def verify_response(self, params: Mapping[str, str]) -> Profile:
        """
        Verify the callback request and return the authenticated user's profile.

        Args:
            params: Query parameters of the inbound callback request.

        Returns:
            Profile: The verified user's profile.

        Raises:
            OAuthException: If the provider reports an error or verification fails.
            InvalidStateException: If the callback does not belong to this login.
        """
        pass

    @abstractmethod
    async def get_user_profile(self) -> Profile:
        """
        Return the profile of the authenticated user.

        Raises:
            AuthenticationException: If verify_response has not succeeded yet.
        """
        pass

    async def update_status(self, status: str) -> None:
        """
        Post a status message for the user.

        Raises:
            NotImplementedException: If the provider does not support it.
        """
        raise NotImplementedException(
            f"Status update is not supported by {self.provider_name}."
        )

    async def get_contact_list(self) -> list[Contact]:
        """
        Fetch the user's contacts.

        Raises:
            NotImplementedException: If the provider does not support it.
        """
        raise NotImplementedException(
            f"Contact import is not supported by {self.provider_name}."
        )
