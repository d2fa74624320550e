from functools import lru_cache
import logging
import os
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from socialauth.core.logger import setup_logger, init_sentry


class Settings(BaseSettings):
    # Application settings
    ENVIRONMENT: str = "development"  # Options: development, production, test
    APP_NAME: str = "SocialAuth"
    APP_VERSION: str = "1.2.0"
    APP_DESCRIPTION: str = """
SocialAuth delegates user authentication to OAuth and OpenID providers
(Facebook, Foursquare, GitHub, Google, Hotmail, LinkedIn, Twitter, Yahoo or
any OpenID 2.0 endpoint).

Besides signing users in, it can read the user's profile, import their
contacts and post a status update on providers that allow it.
"""
    DEBUG: bool = False
    LOG_DIR: str = "logs"

    # Session settings
    SESSION_COOKIE_NAME: str = "socialauth_session"
    SESSION_SECRET_KEY: str = "supersecretkey"
    SESSION_SAME_SITE_COOKIE_POLICY: Literal["lax", "strict", "none"] = "lax"

    # SocialAuth session facade
    SOCIALAUTH_VIEW_URL: str = "/socialauth/callback"
    SOCIALAUTH_SESSION_TTL_SECONDS: int = 3600
    SOCIALAUTH_REDIRECT_AFTER_VERIFY: bool = False

    # OAuth state settings
    OAUTH_STATE_MAX_AGE_SECONDS: int = 600

    # OAuth 2.0 provider credentials
    FACEBOOK_CLIENT_ID: str = ""
    FACEBOOK_CLIENT_SECRET: str = ""
    FOURSQUARE_CLIENT_ID: str = ""
    FOURSQUARE_CLIENT_SECRET: str = ""
    GITHUB_CLIENT_ID: str = ""
    GITHUB_CLIENT_SECRET: str = ""
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    HOTMAIL_CLIENT_ID: str = ""
    HOTMAIL_CLIENT_SECRET: str = ""
    LINKEDIN_CLIENT_ID: str = ""
    LINKEDIN_CLIENT_SECRET: str = ""
    YAHOO_CLIENT_ID: str = ""
    YAHOO_CLIENT_SECRET: str = ""

    # OAuth 1.0a consumer credentials
    TWITTER_CLIENT_ID: str = ""
    TWITTER_CLIENT_SECRET: str = ""

    # OpenID settings (realm defaults to the return URL's origin)
    OPENID_REALM: str | None = None

    # Sentry settings
    SENTRY_DSN: str = ""
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    model_config: SettingsConfigDict = SettingsConfigDict(  # type: ignore
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _validate_production_secrets(self) -> "Settings":
        """Ensure insecure default secrets are overridden in production."""
        if self.ENVIRONMENT != "production":
            return self

        if self.SESSION_SECRET_KEY == "supersecretkey":
            raise ValueError(
                "ENVIRONMENT is 'production' but SESSION_SECRET_KEY still has "
                "its insecure default value. Set it via environment variables "
                "or .env file."
            )

        return self


@lru_cache()
def get_settings() -> Settings:
    return Settings()  # type: ignore


settings = get_settings()

if not settings.DEBUG:
    init_sentry(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )


def _component_logger(component: str, file_name: str) -> logging.Logger:
    return setup_logger(
        name=f"{component}_logger",
        log_file=os.path.join(settings.LOG_DIR, file_name),
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        sentry_tag=component,
    )


app_logger = _component_logger("app", "app.log")
request_logger = _component_logger("request", "requests.log")
auth_logger = _component_logger("auth", "auth.log")
session_logger = _component_logger("session", "session.log")
