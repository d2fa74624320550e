from socialauth.routers.socialauth import router as socialauth_router

__all__ = ["socialauth_router"]
