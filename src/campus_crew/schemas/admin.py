"""Admin panel Pydantic schemas."""

from pydantic import BaseModel


class UserDeleteResponse(BaseModel):
    """Counts of everything removed with a user."""

    deleted_gigs: int
    deleted_offers: int
    deleted_chats: int
    deleted_messages: int


class UserStatsResponse(BaseModel):
    """Activity summary for one user."""

    total_gigs: int
    active_gigs: int
    completed_gigs: int
    total_offers: int
