"""
Google OAuth 2.0 provider.

Signs the user in with OpenID Connect scopes and imports contacts from the
People API.

Google API Endpoints:
    - Authorization: https://accounts.google.com/o/oauth2/v2/auth
    - Token: https://oauth2.googleapis.com/token
    - User Info: https://www.googleapis.com/oauth2/v3/userinfo
    - Connections: https://people.googleapis.com/v1/people/me/connections
"""

from socialauth.core.config import auth_logger, settings
from socialauth.core.services.oauth.base import Contact, Profile
from socialauth.core.services.oauth.oauth2 import OAuth2Provider


__all__ = ["GoogleAuthProvider"]


class GoogleAuthProvider(OAuth2Provider):
    """
    Google OAuth 2.0 provider.

    Scopes requested:
        - openid, email, profile: OpenID Connect sign in
        - contacts.readonly: contact import

    Example:
        >>> provider = GoogleAuthProvider()
        >>> url = await provider.get_login_redirect_url("https://app.com/callback")
        >>> # ... browser comes back to the callback
        >>> profile = await provider.verify_response(request.query_params)
        >>> contacts = await provider.get_contact_list()
    """

    provider_name: str = "google"

    _client_id: str = settings.GOOGLE_CLIENT_ID
    _client_secret: str = settings.GOOGLE_CLIENT_SECRET

    _AUTHORIZATION_URL: str = "https://accounts.google.com/o/oauth2/v2/auth"
    _TOKEN_URL: str = "https://oauth2.googleapis.com/token"
    _USERINFO_URL: str = "https://www.googleapis.com/oauth2/v3/userinfo"
    _CONNECTIONS_URL: str = "https://people.googleapis.com/v1/people/me/connections"

    _SCOPES: list[str] = [
        "openid",
        "email",
        "profile",
        "https://www.googleapis.com/auth/contacts.readonly",
    ]

    _CONNECTIONS_PAGE_SIZE: int = 1000

    def _authorization_params(self, redirect_uri: str, state: str) -> dict[str, str]:
        params = super()._authorization_params(redirect_uri, state)
        params["access_type"] = "offline"
        params["prompt"] = "consent"
        return params

    async def _fetch_profile(self) -> Profile:
        user_data = await self._api_get(self._USERINFO_URL, "user info retrieval")
        return Profile(
            provider_id=self.provider_name,
            validated_id=user_data["sub"],
            first_name=user_data.get("given_name"),
            last_name=user_data.get("family_name"),
            full_name=user_data.get("name"),
            email=user_data.get("email"),
            language=user_data.get("locale"),
            profile_image_url=user_data.get("picture"),
            raw_data=user_data,
        )

    async def get_contact_list(self) -> list[Contact]:
        """
        Import the user's contacts from the People API, following pagination.

        Returns:
            list[Contact]: Contacts that have at least a name or an email.
        """
        contacts: list[Contact] = []
        page_token: str | None = None

        while True:
            params = {
                "personFields": "names,emailAddresses,urls",
                "pageSize": self._CONNECTIONS_PAGE_SIZE,
            }
            if page_token:
                params["pageToken"] = page_token

            data = await self._api_get(
                self._CONNECTIONS_URL, "contact list retrieval", params=params
            )

            for person in data.get("connections", []):
                names = person.get("names") or [{}]
                emails = [
                    e["value"] for e in person.get("emailAddresses", []) if e.get("value")
                ]
                urls = person.get("urls") or [{}]
                if not emails and not names[0]:
                    continue
                contacts.append(
                    Contact(
                        id=person.get("resourceName"),
                        first_name=names[0].get("givenName"),
                        last_name=names[0].get("familyName"),
                        display_name=names[0].get("displayName"),
                        email=emails[0] if emails else None,
                        other_emails=emails[1:],
                        profile_url=urls[0].get("value"),
                        raw_data=person,
                    )
                )

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        auth_logger.info(f"google contacts retrieved: count={len(contacts)}")
        return contacts
