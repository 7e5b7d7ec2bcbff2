from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class RoomResponse(BaseModel):
    """Response model for room data."""

    id: UUID
    elderly_id: UUID
    title: str
    location: Optional[str]
    monthly_price: Decimal
    total_monthly_price: Optional[Decimal]
    is_available: bool

    model_config = ConfigDict(from_attributes=True)

    @property
    def rent_amount(self) -> Decimal:
        """Monthly rent charged: total price when set, else base price."""
        return self.total_monthly_price or self.monthly_price
