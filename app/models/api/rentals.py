from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PaymentResponse(BaseModel):
    """Response model for payment data."""

    id: UUID
    rental_id: UUID
    amount: Decimal
    platform_fee: Decimal
    elderly_amount: Decimal
    payment_date: Optional[datetime]
    due_date: datetime
    status: str  # 'pending', 'completed', 'failed'

    model_config = ConfigDict(from_attributes=True)


class RentalResponse(BaseModel):
    """Response model for rental data."""

    id: UUID
    room_id: UUID
    student_id: UUID
    elderly_id: UUID
    monthly_amount: Decimal
    start_date: datetime
    end_date: Optional[datetime]
    status: str  # 'active', 'completed', 'cancelled'
    payment: Optional[PaymentResponse] = None

    model_config = ConfigDict(from_attributes=True)
