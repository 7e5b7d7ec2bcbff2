import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Uuid, func
from sqlalchemy.orm import relationship

from app.database import Base


class RentalModel(Base):
    """SQLAlchemy model for rentals table."""

    __tablename__ = "rentals"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    room_id = Column(Uuid(as_uuid=True), ForeignKey("rooms.id"), nullable=False)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    elderly_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    monthly_amount = Column(Numeric(10, 2), nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True))
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), default=func.now())

    # Relationships
    payments = relationship("PaymentModel", back_populates="rental")

    # status IN ('active', 'completed', 'cancelled')
