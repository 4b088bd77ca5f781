"""API router for version 1."""
from fastapi import APIRouter

from daybook.api.v1.endpoints import admin, auth, cron, push, users


api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(push.router)
api_router.include_router(cron.router)
api_router.include_router(admin.router)
