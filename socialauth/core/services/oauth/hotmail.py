"""
Hotmail / Outlook.com provider on the Microsoft identity platform.

Endpoints:
    - Authorization: https://login.microsoftonline.com/common/oauth2/v2.0/authorize
    - Token: https://login.microsoftonline.com/common/oauth2/v2.0/token
    - Me: https://graph.microsoft.com/v1.0/me
    - Contacts: https://graph.microsoft.com/v1.0/me/contacts
"""

from socialauth.core.config import auth_logger, settings
from socialauth.core.services.oauth.base import Contact, Profile
from socialauth.core.services.oauth.oauth2 import OAuth2Provider


__all__ = ["HotmailAuthProvider"]


class HotmailAuthProvider(OAuth2Provider):
    """Microsoft account provider with Outlook contact import."""

    provider_name: str = "hotmail"

    _client_id: str = settings.HOTMAIL_CLIENT_ID
    _client_secret: str = settings.HOTMAIL_CLIENT_SECRET

    _AUTHORIZATION_URL: str = (
        "https://login.microsoftonline.com/common/oauth2/v2.0/authorize"
    )
    _TOKEN_URL: str = "https://login.microsoftonline.com/common/oauth2/v2.0/token"
    _ME_URL: str = "https://graph.microsoft.com/v1.0/me"
    _CONTACTS_URL: str = "https://graph.microsoft.com/v1.0/me/contacts"

    _SCOPES: list[str] = ["openid", "email", "profile", "User.Read", "Contacts.Read"]

    async def _fetch_profile(self) -> Profile:
        data = await self._api_get(self._ME_URL, "user info retrieval")
        return Profile(
            provider_id=self.provider_name,
            validated_id=data["id"],
            first_name=data.get("givenName"),
            last_name=data.get("surname"),
            full_name=data.get("displayName"),
            email=data.get("mail") or data.get("userPrincipalName"),
            language=data.get("preferredLanguage"),
            location=data.get("officeLocation"),
            raw_data=data,
        )

    async def get_contact_list(self) -> list[Contact]:
        contacts: list[Contact] = []
        url: str | None = self._CONTACTS_URL
        params: dict | None = {
            "$select": "id,givenName,surname,displayName,emailAddresses",
            "$top": 100,
        }

        while url:
            data = await self._api_get(url, "contact list retrieval", params=params)
            for item in data.get("value", []):
                emails = [
                    e["address"] for e in item.get("emailAddresses", []) if e.get("address")
                ]
                contacts.append(
                    Contact(
                        id=item.get("id"),
                        first_name=item.get("givenName"),
                        last_name=item.get("surname"),
                        display_name=item.get("displayName"),
                        email=emails[0] if emails else None,
                        other_emails=emails[1:],
                        raw_data=item,
                    )
                )
            url = data.get("@odata.nextLink")
            params = None

        auth_logger.info(f"hotmail contacts retrieved: count={len(contacts)}")
        return contacts
