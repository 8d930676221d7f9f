"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Paths are mounted at the root (/register, /login) because that
is the contract existing clients call. /me is the only protected route;
it declares its own bearer dependency.
"""

from fastapi import APIRouter

from authcore.api.auth import router as auth_router
from authcore.api.health import router as health_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
