import uuid

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from app.database import Base


class ConversationModel(Base):
    """SQLAlchemy model for conversations table."""

    __tablename__ = "conversations"
    __table_args__ = (
        UniqueConstraint(
            "room_id", "elderly_id", "student_id", name="uq_conversation_pairing"
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    room_id = Column(Uuid(as_uuid=True), ForeignKey("rooms.id"), nullable=False)
    elderly_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=func.now())
    # Bumped on every message send; used for inbox ordering only
    updated_at = Column(DateTime(timezone=True), default=func.now())

    # Relationships
    messages = relationship(
        "MessageModel", back_populates="conversation", cascade="all, delete-orphan"
    )
    room = relationship("RoomModel")
