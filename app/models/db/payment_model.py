import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Uuid, func
from sqlalchemy.orm import relationship

from app.database import Base


class PaymentModel(Base):
    """SQLAlchemy model for payments table."""

    __tablename__ = "payments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    rental_id = Column(Uuid(as_uuid=True), ForeignKey("rentals.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    platform_fee = Column(Numeric(10, 2), nullable=False)
    elderly_amount = Column(Numeric(10, 2), nullable=False)
    payment_date = Column(DateTime(timezone=True))
    due_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), default=func.now())

    # Relationships
    rental = relationship("RentalModel", back_populates="payments")

    # status IN ('pending', 'completed', 'failed')
