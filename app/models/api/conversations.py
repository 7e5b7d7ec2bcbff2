from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .messages import MessageResponse


class ConversationResponse(BaseModel):
    """Response model for conversation data."""

    id: UUID
    room_id: UUID
    elderly_id: UUID
    student_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationHeader(BaseModel):
    """What a participant sees at the top of a conversation."""

    id: UUID
    room_title: str
    other_user_id: UUID
    other_user_name: str


class LastMessagePreview(BaseModel):
    content: str
    created_at: datetime
    is_read: bool


class ConversationSummary(BaseModel):
    """Inbox entry for one conversation."""

    id: UUID
    room_id: UUID
    room_title: str
    other_user_id: UUID
    other_user_name: str
    updated_at: datetime
    last_message: Optional[LastMessagePreview]
    unread_count: int


class ConversationView(BaseModel):
    """Snapshot returned when a live conversation is opened."""

    conversation: ConversationHeader
    messages: List[MessageResponse]
    status: str
