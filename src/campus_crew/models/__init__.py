"""SQLAlchemy models for the Campus Crew application."""

from .chat import Chat, Message, MessageRead, MessageType
from .gig import Gig, GigCategory, GigStatus
from .global_message import GlobalMessage
from .offer import Offer, OfferStatus
from .profile import Profile

__all__ = [
    "Chat", "Message", "MessageRead", "MessageType",
    "Gig", "GigCategory", "GigStatus",
    "GlobalMessage",
    "Offer", "OfferStatus",
    "Profile",
]
