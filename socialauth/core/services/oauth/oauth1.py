"""
OAuth 1.0a flow with HMAC-SHA1 request signing (RFC 5849).

Login obtains a temporary request token and sends the user to the
provider's authorize page; the callback's ``oauth_verifier`` is then
exchanged for an access token and secret that sign every API call.
"""

import base64
import hashlib
import hmac
import time
from abc import abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

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
    OAuthTokens,
    Profile,
    generate_state,
)


__all__ = [
    "OAuth1Provider",
    "percent_encode",
    "signature_base_string",
    "sign_hmac_sha1",
]


def percent_encode(value: Any) -> str:
    """Percent-encode a value as RFC 5849 section 3.6 requires."""
    return quote(str(value), safe="~")


def _normalize_url(url: str) -> str:
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    netloc = parts.netloc.lower()
    if (scheme == "http" and netloc.endswith(":80")) or (
        scheme == "https" and netloc.endswith(":443")
    ):
        netloc = netloc.rsplit(":", 1)[0]
    return urlunsplit((scheme, netloc, parts.path or "/", "", ""))


def signature_base_string(
    method: str, url: str, params: Iterable[tuple[str, str]]
) -> str:
    """
    Build the signature base string of a request.

    Query parameters already present in ``url`` are part of the signed
    parameter set.

    Args:
        method: HTTP method.
        url: Request URL, with or without query string.
        params: oauth_* protocol parameters plus form body parameters.

    Returns:
        str: ``METHOD&encoded-base-url&encoded-normalized-params``.
    """
    all_params = list(params) + parse_qsl(urlsplit(url).query, keep_blank_values=True)
    pairs = sorted((percent_encode(k), percent_encode(v)) for k, v in all_params)
    normalized = "&".join(f"{k}={v}" for k, v in pairs)
    return "&".join(
        [
            method.upper(),
            percent_encode(_normalize_url(url)),
            percent_encode(normalized),
        ]
    )


def sign_hmac_sha1(
    method: str,
    url: str,
    params: Iterable[tuple[str, str]],
    consumer_secret: str,
    token_secret: str = "",
) -> str:
    """Return the base64 HMAC-SHA1 signature of a request."""
    base_string = signature_base_string(method, url, params)
    key = f"{percent_encode(consumer_secret)}&{percent_encode(token_secret or '')}"
    digest = hmac.new(key.encode(), base_string.encode(), hashlib.sha1).digest()
    return base64.b64encode(digest).decode()


class OAuth1Provider(BaseAuthProvider):
    """
    Base class for OAuth 1.0a providers.

    ``_client_id`` / ``_client_secret`` hold the consumer key and secret.

    Class attributes to override:
        _REQUEST_TOKEN_URL: Temporary credentials endpoint.
        _AUTHORIZE_URL: Resource owner authorization page.
        _ACCESS_TOKEN_URL: Token credentials endpoint.
    """

    family = ProviderFamily.OAUTH1

    _REQUEST_TOKEN_URL: str
    _AUTHORIZE_URL: str
    _ACCESS_TOKEN_URL: str

    def __init__(self) -> None:
        super().__init__()
        self._request_token: str | None = None
        self._request_token_secret: str | None = None
        self.tokens: OAuthTokens | None = None

    def _oauth_params(self, token: str | None = None, **extra: str) -> dict[str, str]:
        params = {
            "oauth_consumer_key": self._client_id,
            "oauth_nonce": generate_state(16),
            "oauth_signature_method": "HMAC-SHA1",
            "oauth_timestamp": str(int(time.time())),
            "oauth_version": "1.0",
        }
        if token:
            params["oauth_token"] = token
        params.update(extra)
        return params

    def _authorization_header(
        self,
        method: str,
        url: str,
        oauth_params: Mapping[str, str],
        request_params: Mapping[str, Any],
        token_secret: str = "",
    ) -> str:
        signature = sign_hmac_sha1(
            method,
            url,
            list(oauth_params.items()) + [(k, str(v)) for k, v in request_params.items()],
            self._client_secret,
            token_secret,
        )
        signed = {**oauth_params, "oauth_signature": signature}
        return "OAuth " + ", ".join(
            f'{percent_encode(k)}="{percent_encode(v)}"' for k, v in sorted(signed.items())
        )

    async def _signed_request(
        self,
        method: str,
        url: str,
        action: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        json: Any = None,
        token: str | None = None,
        token_secret: str = "",
        extra_oauth: dict[str, str] | None = None,
        expected: tuple[int, ...] = (200,),
    ) -> httpx.Response:
        # JSON bodies are not part of the signature
        request_params = {**(params or {}), **(data or {})}
        oauth_params = self._oauth_params(token, **(extra_oauth or {}))
        header = self._authorization_header(
            method, url, oauth_params, request_params, token_secret
        )
        return await self._send(
            method,
            url,
            action,
            expected=expected,
            headers={"Authorization": header},
            params=params,
            data=data,
            json=json,
        )

    async def get_login_redirect_url(self, return_to_url: str) -> str | None:
        """
        Obtain a request token and build the authorize URL.

        Raises:
            OAuthException: If the provider refuses the request token.
        """
        response = await self._signed_request(
            "POST",
            self._REQUEST_TOKEN_URL,
            "request token",
            extra_oauth={"oauth_callback": return_to_url},
        )
        data = dict(parse_qsl(response.text))
        if data.get("oauth_callback_confirmed") != "true" or not data.get(
            "oauth_token"
        ):
            auth_logger.error(
                f"{self.provider_name} request token rejected: {response.text}"
            )
            raise OAuthException(
                message=f"{self.provider_name} request token was not confirmed",
                provider=self.provider_name,
            )

        self._request_token = data["oauth_token"]
        self._request_token_secret = data.get("oauth_token_secret", "")
        return f"{self._AUTHORIZE_URL}?{urlencode({'oauth_token': self._request_token})}"

    async def verify_response(self, params: Mapping[str, str]) -> Profile:
        """
        Exchange the callback's verifier for access credentials.

        Raises:
            OAuthException: If the user denied access or parameters are missing.
            InvalidStateException: If the callback token is not the request
                token issued to this instance.
        """
        if params.get("denied"):
            raise OAuthException(
                message=f"{self.provider_name} authorization was denied",
                provider=self.provider_name,
            )

        token = params.get("oauth_token")
        verifier = params.get("oauth_verifier")
        if not token or not verifier:
            raise OAuthException(
                message="Missing required OAuth parameters",
                provider=self.provider_name,
            )

        if self._request_token is None or token != self._request_token:
            auth_logger.warning(
                f"{self.provider_name} callback: unexpected request token"
            )
            raise InvalidStateException("Request token does not match this login.")

        response = await self._signed_request(
            "POST",
            self._ACCESS_TOKEN_URL,
            "access token exchange",
            token=token,
            token_secret=self._request_token_secret or "",
            extra_oauth={"oauth_verifier": verifier},
        )
        data = dict(parse_qsl(response.text))
        if not data.get("oauth_token") or not data.get("oauth_token_secret"):
            raise OAuthException(
                message=f"{self.provider_name} access token exchange failed: "
                f"{response.text}",
                provider=self.provider_name,
            )

        self.tokens = OAuthTokens(
            access_token=data["oauth_token"],
            token_type="OAuth",
            token_secret=data["oauth_token_secret"],
        )
        self._request_token = None
        self._request_token_secret = None
        auth_logger.info(f"{self.provider_name} access token exchange successful")

        self._profile = await self._fetch_profile()
        return self._profile

    def _require_tokens(self) -> OAuthTokens:
        if self.tokens is None:
            raise AuthenticationException(
                f"{self.provider_name}: user has not been verified yet."
            )
        return self.tokens

    async def _api_get(
        self, url: str, action: str, params: dict[str, Any] | None = None
    ) -> Any:
        tokens = self._require_tokens()
        response = await self._signed_request(
            "GET",
            url,
            action,
            params=params,
            token=tokens.access_token,
            token_secret=tokens.token_secret or "",
        )
        return response.json()

    async def _api_post(
        self,
        url: str,
        action: str,
        data: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        tokens = self._require_tokens()
        response = await self._signed_request(
            "POST",
            url,
            action,
            data=data,
            json=json,
            token=tokens.access_token,
            token_secret=tokens.token_secret or "",
            expected=(200, 201),
        )
        return response.json() if response.content else None

    async def get_user_profile(self) -> Profile:
        self._require_tokens()
        self._profile = await self._fetch_profile()
        return self._profile

    @abstractmethod
    async def _fetch_profile(self) -> Profile:
        """Load the authenticated user's profile with signed requests."""
        pass
