"""API route aggregation.

All routers registered here get mounted in main.py. None of them require
authentication: callers without a token are served in anonymous mode and
admin-only operations are refused by the service layer.
"""

from fastapi import APIRouter

from authority_registry.api.authority_persons import router as authority_persons_router
from authority_registry.api.health import router as health_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(authority_persons_router, tags=["authority-persons"])
