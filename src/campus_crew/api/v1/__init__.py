"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    auth_router,
    chats_router,
    gigs_router,
    global_chat_router,
    offers_router,
    profiles_router,
    system_router,
)

__all__ = [
    "auth_router",
    "profiles_router",
    "gigs_router",
    "offers_router",
    "chats_router",
    "global_chat_router",
    "admin_router",
    "system_router",
]
