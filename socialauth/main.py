from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette.middleware.sessions import SessionMiddleware

from socialauth.core.config import settings, app_logger
from socialauth.core.exceptions.handlers import (
    authentication_exception_handler,
    bad_request_exception_handler,
    exception_schema,
    general_exception_handler,
    not_implemented_exception_handler,
    oauth_exception_handler,
)
from socialauth.core.exceptions.types import (
    AppException,
    AuthenticationException,
    BadRequestException,
    NotImplementedException,
    OAuthException,
)
from socialauth.core.services import session_store
from socialauth.core.services.oauth import AuthProviderFactory
from socialauth.routers import socialauth_router


EXCEPTION_HANDLERS = {
    NotImplementedException: not_implemented_exception_handler,
    OAuthException: oauth_exception_handler,
    AuthenticationException: authentication_exception_handler,
    BadRequestException: bad_request_exception_handler,
    AppException: general_exception_handler,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    providers = AuthProviderFactory.provider_classes()

    app_logger.info(f"{settings.APP_NAME} starting ({settings.ENVIRONMENT}).")
    for provider_class in providers:
        await provider_class.init()
    app_logger.info(f"HTTP clients ready for {len(providers)} identity providers.")

    yield

    app_logger.info(f"{settings.APP_NAME} stopping.")
    for provider_class in providers:
        await provider_class.aclose()
    purged = session_store.purge_expired()
    app_logger.info(
        f"Identity provider clients closed, {purged} expired sessions purged."
    )


app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=settings.APP_DESCRIPTION,
    debug=settings.DEBUG,
    openapi_url="/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    responses=exception_schema,
)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

# Holds only the key of the server-side social auth session
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SOCIALAUTH_SESSION_TTL_SECONDS,
    https_only=not settings.DEBUG,
    same_site=settings.SESSION_SAME_SITE_COOKIE_POLICY,
)

app.include_router(socialauth_router, prefix="/socialauth", tags=["Social Auth"])


@app.get("/", include_in_schema=False)
async def root(request: Request):
    docs_base = str(request.base_url).rstrip("/")
    return {
        "message": f"{settings.APP_NAME} {settings.APP_VERSION}",
        "documentations": {
            "swagger": f"{docs_base}/docs",
            "redoc": f"{docs_base}/redoc",
        },
        "version": settings.APP_VERSION,
    }


@app.head("/health", include_in_schema=False)
@app.get("/health")
async def health_check():
    """Liveness check; also reports how many social auth sessions are held."""
    return {
        "status": "ok",
        "checks": {"sessions": len(session_store)},
    }
