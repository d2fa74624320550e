"""
Facebook OAuth 2.0 provider (Graph API).

Graph API Endpoints:
    - Authorization: https://www.facebook.com/v19.0/dialog/oauth
    - Token: https://graph.facebook.com/v19.0/oauth/access_token
    - Me: https://graph.facebook.com/v19.0/me
    - Friends: https://graph.facebook.com/v19.0/me/friends
    - Feed: https://graph.facebook.com/v19.0/me/feed
"""

from socialauth.core.config import auth_logger, settings
from socialauth.core.services.oauth.base import Contact, Profile
from socialauth.core.services.oauth.oauth2 import OAuth2Provider


__all__ = ["FacebookAuthProvider"]


class FacebookAuthProvider(OAuth2Provider):
    """Facebook provider: profile, friends as contacts, status via the feed."""

    provider_name: str = "facebook"

    _client_id: str = settings.FACEBOOK_CLIENT_ID
    _client_secret: str = settings.FACEBOOK_CLIENT_SECRET

    _GRAPH_URL: str = "https://graph.facebook.com/v19.0"
    _AUTHORIZATION_URL: str = "https://www.facebook.com/v19.0/dialog/oauth"
    _TOKEN_URL: str = f"{_GRAPH_URL}/oauth/access_token"
    _TOKEN_METHOD: str = "GET"

    _SCOPES: list[str] = ["email", "public_profile", "user_friends", "user_birthday"]
    _SCOPE_SEPARATOR: str = ","

    _PROFILE_FIELDS: str = (
        "id,first_name,last_name,name,email,gender,birthday,locale,location,picture"
    )

    async def _fetch_profile(self) -> Profile:
        data = await self._api_get(
            f"{self._GRAPH_URL}/me",
            "user info retrieval",
            params={"fields": self._PROFILE_FIELDS},
        )
        picture = (data.get("picture") or {}).get("data") or {}
        location = data.get("location") or {}
        return Profile(
            provider_id=self.provider_name,
            validated_id=data["id"],
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            full_name=data.get("name"),
            email=data.get("email"),
            gender=data.get("gender"),
            dob=data.get("birthday"),
            language=data.get("locale"),
            location=location.get("name"),
            profile_image_url=picture.get("url"),
            raw_data=data,
        )

    async def update_status(self, status: str) -> None:
        """Publish ``status`` on the user's feed."""
        result = await self._api_post(
            f"{self._GRAPH_URL}/me/feed",
            "status update",
            data={"message": status},
        )
        auth_logger.info(f"facebook status updated: post_id={(result or {}).get('id')}")

    async def get_contact_list(self) -> list[Contact]:
        """
        Import the user's friends, following Graph API paging.

        Only friends who also use the application are returned by Facebook.
        """
        contacts: list[Contact] = []
        url: str | None = f"{self._GRAPH_URL}/me/friends"
        params: dict | None = {"fields": "id,name,first_name,last_name", "limit": 100}

        while url:
            data = await self._api_get(url, "contact list retrieval", params=params)
            for friend in data.get("data", []):
                contacts.append(
                    Contact(
                        id=friend.get("id"),
                        first_name=friend.get("first_name"),
                        last_name=friend.get("last_name"),
                        display_name=friend.get("name"),
                        profile_url=f"https://www.facebook.com/{friend.get('id')}",
                        raw_data=friend,
                    )
                )
            # The "next" link already carries every query parameter
            url = (data.get("paging") or {}).get("next")
            params = None

        return contacts
