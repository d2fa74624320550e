"""
Provider factory: turns a session's provider id into a provider instance.

Example usage:
    from socialauth.core.services.oauth.factory import AuthProviderFactory

    provider = AuthProviderFactory.get_instance("facebook")
    provider = AuthProviderFactory.get_instance("https://openid.example.com/")
"""

from socialauth.core.enums import AuthProviders
from socialauth.core.exceptions.types import (
    ProviderNotSelectedException,
    UnknownProviderException,
)
from socialauth.core.services.oauth.base import BaseAuthProvider
from socialauth.core.services.oauth.facebook import FacebookAuthProvider
from socialauth.core.services.oauth.foursquare import FoursquareAuthProvider
from socialauth.core.services.oauth.github import GitHubAuthProvider
from socialauth.core.services.oauth.google import GoogleAuthProvider
from socialauth.core.services.oauth.hotmail import HotmailAuthProvider
from socialauth.core.services.oauth.linkedin import LinkedInAuthProvider
from socialauth.core.services.oauth.openid import OpenIdProvider
from socialauth.core.services.oauth.twitter import TwitterAuthProvider
from socialauth.core.services.oauth.yahoo import YahooAuthProvider


__all__ = ["AuthProviderFactory"]


class AuthProviderFactory:
    """
    Registry of provider classes keyed by ``AuthProviders``.

    A provider id is either one of the ``AuthProviders`` values
    (case-insensitive) or an ``http(s)://`` OpenID identifier URL.
    """

    _providers: dict[AuthProviders, type[BaseAuthProvider]] = {
        AuthProviders.FACEBOOK: FacebookAuthProvider,
        AuthProviders.FOURSQUARE: FoursquareAuthProvider,
        AuthProviders.GITHUB: GitHubAuthProvider,
        AuthProviders.GOOGLE: GoogleAuthProvider,
        AuthProviders.HOTMAIL: HotmailAuthProvider,
        AuthProviders.LINKEDIN: LinkedInAuthProvider,
        AuthProviders.TWITTER: TwitterAuthProvider,
        AuthProviders.YAHOO: YahooAuthProvider,
        AuthProviders.OPENID: OpenIdProvider,
    }

    @classmethod
    def register(
        cls, provider: AuthProviders, provider_class: type[BaseAuthProvider]
    ) -> None:
        """
        Register or replace the class used for a provider.

        Raises:
            ValueError: If provider_class is not a BaseAuthProvider.
        """
        if not issubclass(provider_class, BaseAuthProvider):
            raise ValueError(
                f"Provider class {provider_class.__name__} must extend BaseAuthProvider"
            )
        cls._providers[provider] = provider_class

    @classmethod
    def provider_classes(cls) -> list[type[BaseAuthProvider]]:
        """Return the registered provider classes, without duplicates."""
        return list(dict.fromkeys(cls._providers.values()))

    @classmethod
    def parse_selector(
        cls, selector: str | AuthProviders | None
    ) -> tuple[AuthProviders, str | None]:
        """
        Resolve a provider id.

        Args:
            selector: Provider name, ``AuthProviders`` member or OpenID URL.

        Returns:
            tuple: (provider, OpenID identifier URL or None).

        Raises:
            ProviderNotSelectedException: If selector is empty.
            UnknownProviderException: If selector matches no provider, or is
                ``openid`` without an identifier URL.

        Example:
            >>> AuthProviderFactory.parse_selector("Google")
            (<AuthProviders.GOOGLE: 'google'>, None)
            >>> AuthProviderFactory.parse_selector("https://me.example.com/")
            (<AuthProviders.OPENID: 'openid'>, 'https://me.example.com/')
        """
        if isinstance(selector, AuthProviders):
            if selector is AuthProviders.OPENID:
                raise UnknownProviderException(
                    selector.value, "The openid provider needs an identifier URL."
                )
            return selector, None

        if selector is None or not selector.strip():
            raise ProviderNotSelectedException()

        value = selector.strip()
        if value.lower().startswith(("http://", "https://")):
            return AuthProviders.OPENID, value

        try:
            provider = AuthProviders(value.lower())
        except ValueError:
            raise UnknownProviderException(value) from None

        if provider is AuthProviders.OPENID:
            raise UnknownProviderException(
                value, "The openid provider needs an identifier URL."
            )
        return provider, None

    @classmethod
    def get_instance(cls, selector: str | AuthProviders | None) -> BaseAuthProvider:
        """
        Create a new provider instance for a provider id.

        Raises:
            ProviderNotSelectedException: If selector is empty.
            UnknownProviderException: If no provider matches.
        """
        provider, identifier = cls.parse_selector(selector)
        provider_class = cls._providers.get(provider)
        if provider_class is None:
            raise UnknownProviderException(provider.value)

        if identifier is not None:
            return provider_class(identifier)  # type: ignore[call-arg]
        return provider_class()
