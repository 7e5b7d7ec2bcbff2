import uuid

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from app.database import Base


class ApplicationModel(Base):
    """SQLAlchemy model for room_applications table."""

    __tablename__ = "room_applications"
    __table_args__ = (
        UniqueConstraint("student_id", "room_id", name="uq_application_student_room"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    room_id = Column(Uuid(as_uuid=True), ForeignKey("rooms.id"), nullable=False)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    message = Column(Text, default="")
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now()
    )

    # Relationships
    room = relationship("RoomModel", back_populates="applications")

    # status IN ('pending', 'accepted', 'awaiting_payment', 'rejected')
