"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .auth import router as auth_router
from .chats import router as chats_router
from .gigs import router as gigs_router
from .global_chat import router as global_chat_router
from .offers import router as offers_router
from .profiles import router as profiles_router
from .system import router as system_router

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
