"""
Foursquare OAuth 2.0 provider.

Foursquare takes the access token as the ``oauth_token`` query parameter and
every API call needs a ``v`` version date.
"""

from typing import Any

from socialauth.core.config import settings
from socialauth.core.services.oauth.base import Contact, Profile
from socialauth.core.services.oauth.oauth2 import OAuth2Provider


__all__ = ["FoursquareAuthProvider"]


class FoursquareAuthProvider(OAuth2Provider):
    provider_name: str = "foursquare"

    _client_id: str = settings.FOURSQUARE_CLIENT_ID
    _client_secret: str = settings.FOURSQUARE_CLIENT_SECRET

    _AUTHORIZATION_URL: str = "https://foursquare.com/oauth2/authenticate"
    _TOKEN_URL: str = "https://foursquare.com/oauth2/access_token"
    _TOKEN_METHOD: str = "GET"
    _ACCESS_TOKEN_PARAM: str = "oauth_token"

    _API_URL: str = "https://api.foursquare.com/v2"
    _API_VERSION: str = "20231010"

    _FRIENDS_PAGE_SIZE: int = 500

    async def _get_response(
        self, path: str, action: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        data = await self._api_get(
            f"{self._API_URL}{path}",
            action,
            params={"v": self._API_VERSION, **(params or {})},
        )
        return data.get("response", {})

    async def _fetch_profile(self) -> Profile:
        user = (await self._get_response("/users/self", "user info retrieval"))["user"]
        photo = user.get("photo") or {}
        image_url = None
        if photo.get("prefix") and photo.get("suffix"):
            image_url = f"{photo['prefix']}original{photo['suffix']}"
        full_name = " ".join(
            part for part in (user.get("firstName"), user.get("lastName")) if part
        )
        return Profile(
            provider_id=self.provider_name,
            validated_id=str(user["id"]),
            first_name=user.get("firstName"),
            last_name=user.get("lastName"),
            full_name=full_name or None,
            email=(user.get("contact") or {}).get("email"),
            gender=user.get("gender"),
            location=user.get("homeCity"),
            profile_image_url=image_url,
            raw_data=user,
        )

    async def get_contact_list(self) -> list[Contact]:
        """Import the user's friends page by page until ``count`` is reached."""
        contacts: list[Contact] = []
        offset = 0

        while True:
            response = await self._get_response(
                "/users/self/friends",
                "contact list retrieval",
                params={"limit": self._FRIENDS_PAGE_SIZE, "offset": offset},
            )
            friends = response.get("friends") or {}
            items = friends.get("items", [])
            for friend in items:
                contacts.append(
                    Contact(
                        id=str(friend.get("id")),
                        first_name=friend.get("firstName"),
                        last_name=friend.get("lastName"),
                        email=(friend.get("contact") or {}).get("email"),
                        profile_url=f"https://foursquare.com/user/{friend.get('id')}",
                        raw_data=friend,
                    )
                )
            offset += len(items)
            if not items or offset >= friends.get("count", 0):
                break

        return contacts
