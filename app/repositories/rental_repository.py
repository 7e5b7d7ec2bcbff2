from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.api.rentals import PaymentResponse, RentalResponse
from app.models.db.payment_model import PaymentModel
from app.models.db.rental_model import RentalModel
from app.repositories.base_repository import BaseRepository


class RentalRepository(BaseRepository[RentalModel, RentalResponse]):
    """Repository for rental operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, RentalModel)

    def _to_pydantic(self, db_model: Any) -> RentalResponse:
        """Convert SQLAlchemy RentalModel to Pydantic RentalResponse."""
        return RentalResponse(
            id=db_model.id,
            room_id=db_model.room_id,
            student_id=db_model.student_id,
            elderly_id=db_model.elderly_id,
            monthly_amount=db_model.monthly_amount,
            start_date=db_model.start_date,
            end_date=db_model.end_date,
            status=db_model.status,
        )

    def _from_pydantic(self, pydantic_model: RentalResponse) -> RentalModel:
        """Convert Pydantic RentalResponse to SQLAlchemy RentalModel."""
        return RentalModel(
            id=pydantic_model.id,
            room_id=pydantic_model.room_id,
            student_id=pydantic_model.student_id,
            elderly_id=pydantic_model.elderly_id,
            monthly_amount=pydantic_model.monthly_amount,
            start_date=pydantic_model.start_date,
            end_date=pydantic_model.end_date,
            status=pydantic_model.status,
        )


class PaymentRepository(BaseRepository[PaymentModel, PaymentResponse]):
    """Repository for payment operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, PaymentModel)

    def _to_pydantic(self, db_model: Any) -> PaymentResponse:
        """Convert SQLAlchemy PaymentModel to Pydantic PaymentResponse."""
        return PaymentResponse(
            id=db_model.id,
            rental_id=db_model.rental_id,
            amount=db_model.amount,
            platform_fee=db_model.platform_fee,
            elderly_amount=db_model.elderly_amount,
            payment_date=db_model.payment_date,
            due_date=db_model.due_date,
            status=db_model.status,
        )

    def _from_pydantic(self, pydantic_model: PaymentResponse) -> PaymentModel:
        """Convert Pydantic PaymentResponse to SQLAlchemy PaymentModel."""
        return PaymentModel(
            id=pydantic_model.id,
            rental_id=pydantic_model.rental_id,
            amount=pydantic_model.amount,
            platform_fee=pydantic_model.platform_fee,
            elderly_amount=pydantic_model.elderly_amount,
            payment_date=pydantic_model.payment_date,
            due_date=pydantic_model.due_date,
            status=pydantic_model.status,
        )
