"""
Identity provider implementations.

This package contains the provider abstraction used by the session facade:
- BaseAuthProvider: Abstract base class for all providers
- OAuth2Provider / OAuth1Provider / OpenIdProvider: One base per protocol family
- Facebook, Foursquare, GitHub, Google, Hotmail, LinkedIn, Twitter, Yahoo
- AuthProviderFactory: Provider id to provider instance
- OAuthStateManager: Signed OAuth state parameters

Example usage:
    from socialauth.core.services.oauth import AuthProviderFactory

    provider = AuthProviderFactory.get_instance("google")
    url = await provider.get_login_redirect_url("https://app.com/callback")

    # Browser comes back to the callback
    profile = await provider.verify_response(request.query_params)
"""

from socialauth.core.services.oauth.base import (
    BaseAuthProvider,
    Contact,
    OAuthStateData,
    OAuthStateManager,
    OAuthTokens,
    Profile,
    generate_state,
)
from socialauth.core.services.oauth.oauth1 import OAuth1Provider
from socialauth.core.services.oauth.oauth2 import OAuth2Provider
from socialauth.core.services.oauth.openid import OpenIdProvider
from socialauth.core.services.oauth.facebook import FacebookAuthProvider
from socialauth.core.services.oauth.foursquare import FoursquareAuthProvider
from socialauth.core.services.oauth.github import GitHubAuthProvider
from socialauth.core.services.oauth.google import GoogleAuthProvider
from socialauth.core.services.oauth.hotmail import HotmailAuthProvider
from socialauth.core.services.oauth.linkedin import LinkedInAuthProvider
from socialauth.core.services.oauth.twitter import TwitterAuthProvider
from socialauth.core.services.oauth.yahoo import YahooAuthProvider
from socialauth.core.services.oauth.factory import AuthProviderFactory

__all__ = [
    "AuthProviderFactory",
    "BaseAuthProvider",
    "Contact",
    "OAuthStateData",
    "OAuthStateManager",
    "OAuthTokens",
    "Profile",
    "generate_state",
    "OAuth1Provider",
    "OAuth2Provider",
    "OpenIdProvider",
    "FacebookAuthProvider",
    "FoursquareAuthProvider",
    "GitHubAuthProvider",
    "GoogleAuthProvider",
    "HotmailAuthProvider",
    "LinkedInAuthProvider",
    "TwitterAuthProvider",
    "YahooAuthProvider",
]
