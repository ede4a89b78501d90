"""Offer-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class OfferCreate(BaseModel):
    """Schema for making an offer on a gig."""

    gig_id: int
    message: str = Field("", max_length=2000)
    proposed_budget: float = Field(..., gt=0)


class OfferUpdate(BaseModel):
    """Edits allowed on a pending offer."""

    message: str | None = Field(None, max_length=2000)
    proposed_budget: float | None = Field(None, gt=0)


class OfferStatusUpdate(BaseModel):
    """Gig poster's decision on an offer."""

    status: Literal["pending", "accepted", "rejected"]


class OfferResponse(BaseModel):
    """Schema for offer information returned by the API."""

    id: int
    gig_id: int
    gig_title: str
    gig_posted_by: str
    offered_by: str
    offered_by_name: str
    message: str
    proposed_budget: float
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
