from enum import Enum


class AuthProviders(str, Enum):
    """Identity providers a session can authenticate against."""

    FACEBOOK = "facebook"
    FOURSQUARE = "foursquare"
    GITHUB = "github"
    GOOGLE = "google"
    HOTMAIL = "hotmail"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"
    YAHOO = "yahoo"
    OPENID = "openid"


class ProviderFamily(str, Enum):
    """Authentication protocol implemented by a provider."""

    OAUTH1 = "oauth1"
    OAUTH2 = "oauth2"
    OPENID = "openid"


__all__ = [
    "AuthProviders",
    "ProviderFamily",
]
