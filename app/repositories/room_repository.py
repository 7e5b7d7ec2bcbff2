from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.api.rooms import RoomResponse
from app.models.db.room_model import RoomModel
from app.repositories.base_repository import BaseRepository


class RoomRepository(BaseRepository[RoomModel, RoomResponse]):
    """Repository for room operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, RoomModel)

    async def mark_unavailable(self, room_id: UUID, commit: bool = True) -> bool:
        """Take a room out of the pool of candidates.

        Returns False when the room is unknown or already off the market.
        """
        statement = (
            update(self.model_class)
            .where(
                self.model_class.id == room_id,
                self.model_class.is_available.is_(True),
            )
            .values(is_available=False, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(statement)
        await self._persist(commit)
        return (result.rowcount or 0) == 1

    def _to_pydantic(self, db_model: Any) -> RoomResponse:
        """Convert SQLAlchemy RoomModel to Pydantic RoomResponse."""
        return RoomResponse(
            id=db_model.id,
            elderly_id=db_model.elderly_id,
            title=db_model.title,
            location=db_model.location,
            monthly_price=db_model.monthly_price,
            total_monthly_price=db_model.total_monthly_price,
            is_available=db_model.is_available,
        )

    def _from_pydantic(self, pydantic_model: RoomResponse) -> RoomModel:
        """Convert Pydantic RoomResponse to SQLAlchemy RoomModel."""
        return RoomModel(
            id=pydantic_model.id,
            elderly_id=pydantic_model.elderly_id,
            title=pydantic_model.title,
            location=pydantic_model.location,
            monthly_price=pydantic_model.monthly_price,
            total_monthly_price=pydantic_model.total_monthly_price,
            is_available=pydantic_model.is_available,
        )
