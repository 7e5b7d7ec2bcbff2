import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from app.database import Base


class RoomModel(Base):
    """SQLAlchemy model for rooms table."""

    __tablename__ = "rooms"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    elderly_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    title = Column(String(255), nullable=False)
    location = Column(String(255), default="")
    monthly_price = Column(Numeric(10, 2), nullable=False)
    # Base price plus enabled services; NULL when the host offers none
    total_monthly_price = Column(Numeric(10, 2))
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now()
    )

    # Relationships
    elderly = relationship("ProfileModel")
    applications = relationship("ApplicationModel", back_populates="room")
