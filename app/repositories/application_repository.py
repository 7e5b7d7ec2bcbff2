from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import aliased, selectinload

from app.models.api.applications import ApplicationResponse, ApplicationStatus
from app.models.db.application_model import ApplicationModel
from app.models.db.room_model import RoomModel
from app.repositories.base_repository import BaseRepository

# Statuses that may move to awaiting_payment, and those that hold the room
CLAIMABLE_STATUSES = [
    ApplicationStatus.PENDING.value,
    ApplicationStatus.AWAITING_PAYMENT.value,
]
HOLDING_STATUSES = [
    ApplicationStatus.AWAITING_PAYMENT.value,
    ApplicationStatus.ACCEPTED.value,
]


class ApplicationRepository(BaseRepository[ApplicationModel, ApplicationResponse]):
    """Repository for room application operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ApplicationModel)

    async def create_pending(
        self, room_id: UUID, student_id: UUID, message: str
    ) -> ApplicationResponse:
        """Insert a new application in the pending state."""
        now = datetime.now(timezone.utc)
        application = ApplicationResponse(
            id=uuid4(),
            room_id=room_id,
            student_id=student_id,
            status=ApplicationStatus.PENDING,
            message=message,
            created_at=now,
            updated_at=now,
        )
        return await self.create(application)

    async def get_for_student(
        self, application_id: UUID, student_id: UUID
    ) -> Optional[ApplicationResponse]:
        """Get an application only if it belongs to the given student."""
        query = select(self.model_class).where(
            self.model_class.id == application_id,
            self.model_class.student_id == student_id,
        )
        result = await self.db.execute(query)
        db_model = result.scalar_one_or_none()
        return self._to_pydantic(db_model) if db_model else None

    async def list_by_room(self, room_id: UUID) -> List[ApplicationResponse]:
        """Get all applications for a room, newest first."""
        query = (
            select(self.model_class)
            .where(self.model_class.room_id == room_id)
            .order_by(self.model_class.created_at.desc())
        )
        result = await self.db.execute(query)
        return [self._to_pydantic(db_model) for db_model in result.scalars().all()]

    async def list_by_student_with_rooms(self, student_id: UUID) -> List[Any]:
        """Get a student's applications with room and host loaded, newest first."""
        query = (
            select(self.model_class)
            .where(self.model_class.student_id == student_id)
            .options(
                selectinload(self.model_class.room).selectinload(RoomModel.elderly)
            )
            .order_by(self.model_class.created_at.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def set_status(
        self, application_id: UUID, status: ApplicationStatus, commit: bool = True
    ) -> Optional[ApplicationResponse]:
        """Move one application to a new status."""
        return await self.update(
            application_id,
            {"status": status.value, "updated_at": datetime.now(timezone.utc)},
            commit=commit,
        )

    async def transition(
        self,
        application_id: UUID,
        from_status: ApplicationStatus,
        to_status: ApplicationStatus,
        commit: bool = True,
    ) -> bool:
        """Move an application only if it is still in ``from_status``.

        Returns False when another writer got there first.
        """
        statement = (
            update(self.model_class)
            .where(
                self.model_class.id == application_id,
                self.model_class.status == from_status.value,
            )
            .values(status=to_status.value, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(statement)
        await self._persist(commit)
        return (result.rowcount or 0) == 1

    async def claim_for_payment(self, application_id: UUID, room_id: UUID) -> bool:
        """Move an application to awaiting_payment and commit.

        Only a pending or already awaiting application qualifies, and only
        while no other application of the room is awaiting payment or
        accepted. Returns False when either condition fails.
        """
        # Accepts on the same room queue behind this lock
        await self.db.execute(
            select(RoomModel.id).where(RoomModel.id == room_id).with_for_update()
        )

        sibling = aliased(self.model_class)
        holder = select(sibling.id).where(
            sibling.room_id == room_id,
            sibling.id != application_id,
            sibling.status.in_(HOLDING_STATUSES),
        )
        statement = (
            update(self.model_class)
            .where(
                self.model_class.id == application_id,
                self.model_class.status.in_(CLAIMABLE_STATUSES),
                ~holder.exists(),
            )
            .values(
                status=ApplicationStatus.AWAITING_PAYMENT.value,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(statement)
        await self.db.commit()
        return (result.rowcount or 0) == 1

    async def refresh(self, application_id: UUID) -> Optional[ApplicationResponse]:
        """Re-read an application after a bulk status write."""
        query = (
            select(self.model_class)
            .where(self.model_class.id == application_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        db_model = result.scalar_one_or_none()
        return self._to_pydantic(db_model) if db_model else None

    async def reject_pending_siblings(
        self, room_id: UUID, accepted_id: UUID
    ) -> List[UUID]:
        """Reject every other pending application for the room.

        Returns the ids that were pending when the cascade started.
        """
        query = select(self.model_class.id).where(
            self.model_class.room_id == room_id,
            self.model_class.status == ApplicationStatus.PENDING.value,
            self.model_class.id != accepted_id,
        )
        result = await self.db.execute(query)
        sibling_ids = list(result.scalars().all())
        if not sibling_ids:
            return []

        statement = (
            update(self.model_class)
            .where(
                self.model_class.id.in_(sibling_ids),
                self.model_class.status == ApplicationStatus.PENDING.value,
            )
            .values(
                status=ApplicationStatus.REJECTED.value,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(statement)
        await self.db.commit()
        return sibling_ids

    def _to_pydantic(self, db_model: Any) -> ApplicationResponse:
        """Convert SQLAlchemy ApplicationModel to Pydantic ApplicationResponse."""
        return ApplicationResponse(
            id=db_model.id,
            room_id=db_model.room_id,
            student_id=db_model.student_id,
            status=db_model.status,
            message=db_model.message or "",
            created_at=db_model.created_at,
            updated_at=db_model.updated_at,
        )

    def _from_pydantic(self, pydantic_model: ApplicationResponse) -> ApplicationModel:
        """Convert Pydantic ApplicationResponse to SQLAlchemy ApplicationModel."""
        return ApplicationModel(
            id=pydantic_model.id,
            room_id=pydantic_model.room_id,
            student_id=pydantic_model.student_id,
            status=pydantic_model.status.value,
            message=pydantic_model.message,
            created_at=pydantic_model.created_at,
            updated_at=pydantic_model.updated_at,
        )
