from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.roles import UserRole


class ProfileResponse(BaseModel):
    """Response model for profile data."""

    id: UUID
    user_type: UserRole
    full_name: str
    age: int
    bio: Optional[str]
    location: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class StudentProfileResponse(BaseModel):
    id: UUID
    university: str
    course: str
    student_type: str

    model_config = ConfigDict(from_attributes=True)
