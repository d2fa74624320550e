"""
GitHub OAuth provider.

GitHub API Endpoints:
    - Authorization: https://github.com/login/oauth/authorize
    - Token: https://github.com/login/oauth/access_token
    - User: https://api.github.com/user
    - Emails: https://api.github.com/user/emails
    - Following: https://api.github.com/user/following
"""

from socialauth.core.config import auth_logger, settings
from socialauth.core.exceptions.types import OAuthException
from socialauth.core.services.oauth.base import Contact, Profile
from socialauth.core.services.oauth.oauth2 import OAuth2Provider


__all__ = ["GitHubAuthProvider"]


class GitHubAuthProvider(OAuth2Provider):
    """
    GitHub OAuth provider.

    GitHub has no address book; contact import returns the accounts the user
    follows.

    Scopes requested:
        - read:user: Read user profile data
        - user:email: Access user email addresses
    """

    provider_name: str = "github"

    _client_id: str = settings.GITHUB_CLIENT_ID
    _client_secret: str = settings.GITHUB_CLIENT_SECRET

    _AUTHORIZATION_URL: str = "https://github.com/login/oauth/authorize"
    _TOKEN_URL: str = "https://github.com/login/oauth/access_token"
    _USER_URL: str = "https://api.github.com/user"
    _EMAILS_URL: str = "https://api.github.com/user/emails"
    _FOLLOWING_URL: str = "https://api.github.com/user/following"

    _SCOPES: list[str] = ["read:user", "user:email"]

    _API_HEADERS: dict[str, str] = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }

    async def _get_primary_email(self) -> str | None:
        """
        Fetch the user's primary verified email.

        Falls back to the first verified email, then to the first email.
        Failures are logged and yield None; the email is optional.
        """
        try:
            emails = await self._api_get(
                self._EMAILS_URL, "email retrieval", headers=self._API_HEADERS
            )
        except OAuthException as e:
            auth_logger.warning(f"Failed to fetch GitHub emails: {e.message}")
            return None

        for email_data in emails:
            if email_data.get("primary") and email_data.get("verified"):
                return email_data["email"]

        for email_data in emails:
            if email_data.get("verified"):
                return email_data["email"]

        if emails:
            return emails[0]["email"]
        return None

    async def _fetch_profile(self) -> Profile:
        user_data = await self._api_get(
            self._USER_URL, "user info retrieval", headers=self._API_HEADERS
        )

        email = user_data.get("email")
        if not email:
            email = await self._get_primary_email()

        name = user_data.get("name")
        first_name, last_name = None, None
        if name:
            first_name, _, last_name = name.partition(" ")

        return Profile(
            provider_id=self.provider_name,
            validated_id=str(user_data["id"]),
            first_name=first_name,
            last_name=last_name or None,
            full_name=name,
            display_name=user_data.get("login"),
            email=email,
            location=user_data.get("location"),
            profile_image_url=user_data.get("avatar_url"),
            raw_data=user_data,
        )

    async def get_contact_list(self) -> list[Contact]:
        """Import every followed account, following the ``Link: rel="next"`` pages."""
        contacts: list[Contact] = []
        url: str | None = self._FOLLOWING_URL
        params: dict | None = {"per_page": 100}

        while url:
            response = await self._api_get_response(
                url, "contact list retrieval", params=params, headers=self._API_HEADERS
            )
            for user in response.json():
                contacts.append(
                    Contact(
                        id=str(user["id"]),
                        display_name=user.get("login"),
                        profile_url=user.get("html_url"),
                        raw_data=user,
                    )
                )
            url = response.links.get("next", {}).get("url")
            params = None

        return contacts
