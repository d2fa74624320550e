import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

# Set once sentry_sdk.init has run in this process
_sentry_initialized = False


def init_sentry(
    dsn: str,
    environment: str = "development",
    traces_sample_rate: float = 1.0,
) -> bool:
    """
    Start Sentry error tracking for the process.

    Only the first successful call has an effect. The SDK is imported lazily,
    so a deployment without ``sentry-sdk`` simply runs without it.

    Returns:
        bool: Whether this call performed the initialization.
    """
    global _sentry_initialized

    if _sentry_initialized or not dsn:
        return False

    try:
        import sentry_sdk
        from sentry_sdk.integrations.asyncio import AsyncioIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration
    except ImportError:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=traces_sample_rate,
        integrations=[
            # INFO records become breadcrumbs, ERROR records become events
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            AsyncioIntegration(),
        ],
    )
    _sentry_initialized = True
    return True


def _tag_sentry_component(tag: str) -> None:
    try:
        import sentry_sdk
    except ImportError:
        return
    sentry_sdk.set_tag("component", tag)


def _build_handlers(log_file: str, level: int) -> list[logging.Handler]:
    directory = os.path.dirname(log_file)
    if directory:
        os.makedirs(directory, exist_ok=True)

    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            log_file,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        ),
        logging.StreamHandler(),
    ]
    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logger(
    name: str,
    log_file: str,
    level: int = logging.INFO,
    sentry_tag: Optional[str] = None,
) -> logging.Logger:
    """
    Return the logger ``name``, logging to ``log_file`` (rotated) and stderr.

    A logger that already has handlers is returned as is, apart from its
    level, so repeated setup never duplicates output. When Sentry is running,
    ``sentry_tag`` is attached as the ``component`` tag.
    """
    if sentry_tag and _sentry_initialized:
        _tag_sentry_component(sentry_tag)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        for handler in _build_handlers(log_file, level):
            logger.addHandler(handler)
    return logger
