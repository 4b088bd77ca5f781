"""API endpoint modules for v1."""

from daybook.api.v1.endpoints import admin, auth, cron, push, users

__all__ = [
    "admin",
    "auth",
    "cron",
    "push",
    "users",
]
