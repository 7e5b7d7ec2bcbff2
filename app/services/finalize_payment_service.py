import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Tuple
from uuid import UUID, uuid4

from dateutil.relativedelta import relativedelta
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidTransitionError, NotFoundError
from app.models.api.applications import ApplicationStatus
from app.models.api.rentals import PaymentResponse, RentalResponse
from app.repositories.application_repository import ApplicationRepository
from app.repositories.rental_repository import PaymentRepository, RentalRepository
from app.repositories.room_repository import RoomRepository

logger = logging.getLogger(__name__)

PLATFORM_FEE_RATE = Decimal("0.10")
CENT = Decimal("0.01")


def split_payment(amount: Decimal) -> Tuple[Decimal, Decimal]:
    """Return (platform_fee, elderly_amount); the two always sum to ``amount``."""
    amount = Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    platform_fee = (amount * PLATFORM_FEE_RATE).quantize(CENT, rounding=ROUND_HALF_UP)
    return platform_fee, amount - platform_fee


class FinalizePaymentService:
    """Service for students confirming payment of an accepted application."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.application_repo = ApplicationRepository(db)
        self.payment_repo = PaymentRepository(db)
        self.rental_repo = RentalRepository(db)
        self.room_repo = RoomRepository(db)

    async def finalize_payment(
        self, application_id: UUID, student_id: UUID
    ) -> RentalResponse:
        """
        Turn an application awaiting payment into a rental, in one transaction:
        1. Move the application from awaiting_payment to accepted
        2. Create the active rental at the room's monthly rent
        3. Record the completed payment with the platform fee split
        4. Take the room off the market

        Any failure rolls every step back and is raised to the caller.
        """
        application = await self.application_repo.get_for_student(
            application_id, student_id
        )
        if not application:
            raise NotFoundError("Application not found")
        if application.status is not ApplicationStatus.AWAITING_PAYMENT:
            raise InvalidTransitionError("Application is not awaiting payment")

        room = await self.room_repo.get_by_id(application.room_id)
        if not room:
            raise NotFoundError("Room not found")
        if not room.is_available:
            raise InvalidTransitionError("Room is no longer available")

        amount = room.rent_amount
        platform_fee, elderly_amount = split_payment(amount)
        now = datetime.now(timezone.utc)

        try:
            # Step 1: Guards against a concurrent or repeated finalize
            moved = await self.application_repo.transition(
                application.id,
                ApplicationStatus.AWAITING_PAYMENT,
                ApplicationStatus.ACCEPTED,
                commit=False,
            )
            if not moved:
                raise InvalidTransitionError("Application is not awaiting payment")

            # Step 2: Rental
            rental = await self.rental_repo.create(
                RentalResponse(
                    id=uuid4(),
                    room_id=room.id,
                    student_id=student_id,
                    elderly_id=room.elderly_id,
                    monthly_amount=amount,
                    start_date=now,
                    end_date=None,
                    status="active",
                ),
                commit=False,
            )

            # Step 3: Payment
            payment = await self.payment_repo.create(
                PaymentResponse(
                    id=uuid4(),
                    rental_id=rental.id,
                    amount=amount,
                    platform_fee=platform_fee,
                    elderly_amount=elderly_amount,
                    payment_date=now,
                    due_date=now + relativedelta(months=1),
                    status="completed",
                ),
                commit=False,
            )

            # Step 4: Room leaves the candidate pool, once
            if not await self.room_repo.mark_unavailable(room.id, commit=False):
                raise InvalidTransitionError("Room is no longer available")

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.error("Error processing payment for application %s", application_id)
            raise

        logger.info(
            "Rental %s started for room %s (amount %s, fee %s)",
            rental.id,
            room.id,
            amount,
            platform_fee,
        )
        return rental.model_copy(update={"payment": payment})
