"""Profile-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProfileUpdate(BaseModel):
    """Fields a student may change on their own profile."""

    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    college: str | None = Field(None, max_length=200)
    year: str | None = Field(None, max_length=20)
    branch: str | None = Field(None, max_length=100)
    roll_number: str | None = Field(None, max_length=50)
    phone: str | None = Field(None, max_length=20)
    profile_picture: str | None = None


class ProfileResponse(BaseModel):
    """Schema for profile information returned by the API."""

    id: str
    email: str | None
    first_name: str
    last_name: str
    display_name: str
    college: str
    year: str
    branch: str
    roll_number: str
    phone: str
    profile_picture: str | None
    auth_method: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
