"""Gig-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from campus_crew.models.gig import GigCategory


def _normalise_category(value: object) -> object:
    if isinstance(value, str):
        for category in GigCategory:
            if category.value.lower() == value.strip().lower():
                return category
    return value


class GigCreate(BaseModel):
    """Schema for posting a new gig.

    The poster's id, name and college come from the caller's profile.
    """

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    category: GigCategory
    budget: float = Field(..., gt=0, description="Amount offered for the task")
    deadline: datetime = Field(..., description="Must be in the future at submission time")
    location: str = Field("", max_length=200)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Title must not be blank")
        return value.strip()

    @field_validator("category", mode="before")
    @classmethod
    def _category_case_insensitive(cls, value: object) -> object:
        return _normalise_category(value)


class GigUpdate(BaseModel):
    """Partial update; only these fields of a gig are mutable."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    category: GigCategory | None = None
    budget: float | None = Field(None, gt=0)
    deadline: datetime | None = None
    location: str | None = Field(None, max_length=200)

    @field_validator("category", mode="before")
    @classmethod
    def _category_case_insensitive(cls, value: object) -> object:
        return _normalise_category(value)


class GigResponse(BaseModel):
    """Schema for gig information returned by the API."""

    id: int
    title: str
    description: str
    category: str
    budget: float
    deadline: datetime
    location: str
    college: str
    posted_by: str
    posted_by_name: str
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GigDeleteResponse(BaseModel):
    """Counts of dependents removed with a gig."""

    deleted_offers: int
    deleted_chats: int
    deleted_messages: int
