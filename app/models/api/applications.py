from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    AWAITING_PAYMENT = "awaiting_payment"
    REJECTED = "rejected"


class SubmitApplicationRequest(BaseModel):
    """Request model for a student applying to a room."""

    room_id: UUID
    student_id: UUID
    message: str = Field(default="", description="Note to the host")


class AcceptApplicationRequest(BaseModel):
    """Request model for a host accepting an application."""

    room_id: UUID
    student_id: UUID
    elderly_id: UUID = Field(..., description="Host performing the action")


class RejectApplicationRequest(BaseModel):
    elderly_id: UUID = Field(..., description="Host performing the action")


class FinalizePaymentRequest(BaseModel):
    student_id: UUID = Field(..., description="Student confirming the payment")


class ApplicationResponse(BaseModel):
    """Response model for application data."""

    id: UUID
    room_id: UUID
    student_id: UUID
    status: ApplicationStatus
    message: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AcceptApplicationResult(BaseModel):
    """Outcome of an accept, including what the best-effort steps managed."""

    application: ApplicationResponse
    conversation_id: Optional[UUID]
    conversation_created: bool
    rejected_application_ids: List[UUID] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class StudentProfileSummary(BaseModel):
    university: str
    course: str
    student_type: str


class ApplicantSummary(BaseModel):
    id: UUID
    full_name: str = ""
    age: int = 0
    bio: str = ""
    student_profile: Optional[StudentProfileSummary] = None


class RoomApplicationDetail(BaseModel):
    """Application row as a host sees it, enriched with the applicant."""

    id: UUID
    status: ApplicationStatus
    message: str
    created_at: datetime
    student: ApplicantSummary


class RoomSummary(BaseModel):
    id: UUID
    title: str
    location: str
    elderly_name: str = ""


class StudentApplicationDetail(BaseModel):
    """Application row as the applying student sees it."""

    id: UUID
    status: ApplicationStatus
    message: str
    created_at: datetime
    room: Optional[RoomSummary]
