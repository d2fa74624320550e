"""
Twitter (X) OAuth 1.0a provider.

Endpoints:
    - Request token: https://api.twitter.com/oauth/request_token
    - Authenticate: https://api.twitter.com/oauth/authenticate
    - Access token: https://api.twitter.com/oauth/access_token
    - Credentials: https://api.twitter.com/1.1/account/verify_credentials.json
    - Friends: https://api.twitter.com/1.1/friends/list.json
    - Post: https://api.twitter.com/2/tweets
"""

from socialauth.core.config import auth_logger, settings
from socialauth.core.services.oauth.base import Contact, Profile
from socialauth.core.services.oauth.oauth1 import OAuth1Provider


__all__ = ["TwitterAuthProvider"]


class TwitterAuthProvider(OAuth1Provider):
    """Twitter provider: profile, friends as contacts and status posting."""

    provider_name: str = "twitter"

    _client_id: str = settings.TWITTER_CLIENT_ID
    _client_secret: str = settings.TWITTER_CLIENT_SECRET

    _REQUEST_TOKEN_URL: str = "https://api.twitter.com/oauth/request_token"
    _AUTHORIZE_URL: str = "https://api.twitter.com/oauth/authenticate"
    _ACCESS_TOKEN_URL: str = "https://api.twitter.com/oauth/access_token"
    _CREDENTIALS_URL: str = "https://api.twitter.com/1.1/account/verify_credentials.json"
    _FRIENDS_URL: str = "https://api.twitter.com/1.1/friends/list.json"
    _TWEETS_URL: str = "https://api.twitter.com/2/tweets"

    async def _fetch_profile(self) -> Profile:
        data = await self._api_get(
            self._CREDENTIALS_URL,
            "user info retrieval",
            params={"include_email": "true", "skip_status": "true"},
        )
        return Profile(
            provider_id=self.provider_name,
            validated_id=data["id_str"],
            full_name=data.get("name"),
            display_name=data.get("screen_name"),
            email=data.get("email"),
            language=data.get("lang"),
            location=data.get("location"),
            profile_image_url=data.get("profile_image_url_https"),
            raw_data=data,
        )

    async def update_status(self, status: str) -> None:
        result = await self._api_post(
            self._TWEETS_URL, "status update", json={"text": status}
        )
        tweet_id = ((result or {}).get("data") or {}).get("id")
        auth_logger.info(f"twitter status updated: tweet_id={tweet_id}")

    async def get_contact_list(self) -> list[Contact]:
        """Import the accounts the user follows, walking the cursor pages."""
        contacts: list[Contact] = []
        cursor = "-1"
        while cursor != "0":
            data = await self._api_get(
                self._FRIENDS_URL,
                "contact list retrieval",
                params={"cursor": cursor, "count": "200", "skip_status": "true"},
            )
            for user in data.get("users", []):
                contacts.append(
                    Contact(
                        id=user.get("id_str"),
                        display_name=user.get("screen_name"),
                        first_name=user.get("name"),
                        profile_url=f"https://twitter.com/{user.get('screen_name')}",
                        raw_data=user,
                    )
                )
            cursor = str(data.get("next_cursor_str", "0"))
        return contacts
