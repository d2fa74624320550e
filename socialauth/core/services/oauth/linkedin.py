"""
LinkedIn provider (Sign In with LinkedIn using OpenID Connect).

Status updates are published as UGC posts authored by the signed-in member.
"""

from socialauth.core.config import auth_logger, settings
from socialauth.core.services.oauth.base import Profile
from socialauth.core.services.oauth.oauth2 import OAuth2Provider


__all__ = ["LinkedInAuthProvider"]


class LinkedInAuthProvider(OAuth2Provider):
    provider_name: str = "linkedin"

    _client_id: str = settings.LINKEDIN_CLIENT_ID
    _client_secret: str = settings.LINKEDIN_CLIENT_SECRET

    _AUTHORIZATION_URL: str = "https://www.linkedin.com/oauth/v2/authorization"
    _TOKEN_URL: str = "https://www.linkedin.com/oauth/v2/accessToken"
    _USERINFO_URL: str = "https://api.linkedin.com/v2/userinfo"
    _UGC_POSTS_URL: str = "https://api.linkedin.com/v2/ugcPosts"

    _SCOPES: list[str] = ["openid", "profile", "email", "w_member_social"]

    async def _fetch_profile(self) -> Profile:
        data = await self._api_get(self._USERINFO_URL, "user info retrieval")
        locale = data.get("locale")
        country, language = None, None
        if isinstance(locale, dict):
            country, language = locale.get("country"), locale.get("language")
        elif locale:
            language = locale
        return Profile(
            provider_id=self.provider_name,
            validated_id=data["sub"],
            first_name=data.get("given_name"),
            last_name=data.get("family_name"),
            full_name=data.get("name"),
            email=data.get("email"),
            country=country,
            language=language,
            profile_image_url=data.get("picture"),
            raw_data=data,
        )

    async def update_status(self, status: str) -> None:
        """Share ``status`` as a public text post."""
        if self._profile is None:
            self._profile = await self._fetch_profile()

        body = {
            "author": f"urn:li:person:{self._profile.validated_id}",
            "lifecycleState": "PUBLISHED",
            "specificContent": {
                "com.linkedin.ugc.ShareContent": {
                    "shareCommentary": {"text": status},
                    "shareMediaCategory": "NONE",
                }
            },
            "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
        }
        await self._api_post(
            self._UGC_POSTS_URL,
            "status update",
            json=body,
            headers={"X-Restli-Protocol-Version": "2.0.0"},
        )
        auth_logger.info("linkedin status updated")
