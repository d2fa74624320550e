"""Yahoo provider (OpenID Connect over OAuth 2.0)."""

from socialauth.core.config import settings
from socialauth.core.services.oauth.base import Profile
from socialauth.core.services.oauth.oauth2 import OAuth2Provider


__all__ = ["YahooAuthProvider"]


class YahooAuthProvider(OAuth2Provider):
    provider_name: str = "yahoo"

    _client_id: str = settings.YAHOO_CLIENT_ID
    _client_secret: str = settings.YAHOO_CLIENT_SECRET

    _AUTHORIZATION_URL: str = "https://api.login.yahoo.com/oauth2/request_auth"
    _TOKEN_URL: str = "https://api.login.yahoo.com/oauth2/get_token"
    _USERINFO_URL: str = "https://api.login.yahoo.com/openid/v1/userinfo"
    # Yahoo wants the client credentials as HTTP Basic auth
    _TOKEN_AUTH_BASIC: bool = True

    _SCOPES: list[str] = ["openid", "email", "profile"]

    async def _fetch_profile(self) -> Profile:
        data = await self._api_get(self._USERINFO_URL, "user info retrieval")
        return Profile(
            provider_id=self.provider_name,
            validated_id=data["sub"],
            first_name=data.get("given_name"),
            last_name=data.get("family_name"),
            full_name=data.get("name"),
            display_name=data.get("nickname"),
            email=data.get("email"),
            gender=data.get("gender"),
            dob=data.get("birthdate"),
            language=data.get("locale"),
            profile_image_url=data.get("picture"),
            raw_data=data,
        )
