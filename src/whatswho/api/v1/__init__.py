# src/whatswho/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    messages_router,
    realtime_router,
    users_router,
)

__all__ = [
    "auth_router",
    "messages_router",
    "realtime_router",
    "users_router",
]
