"""API routers."""

from app.routers.auth import router as auth_router
from app.routers.functions import router as functions_router
from app.routers.profile import router as profile_router

__all__ = ["auth_router", "profile_router", "functions_router"]
