from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.models.api.conversations import ConversationResponse
from app.models.db.conversation_model import ConversationModel
from app.models.roles import UserRole
from app.repositories.base_repository import BaseRepository


class ConversationRepository(BaseRepository[ConversationModel, ConversationResponse]):
    """Repository for conversation operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ConversationModel)

    async def create_for_pairing(
        self, room_id: UUID, elderly_id: UUID, student_id: UUID
    ) -> ConversationResponse:
        """Insert the conversation for a (room, host, student) triple.

        Raises ``IntegrityError`` when the triple already has one.
        """
        now = datetime.now(timezone.utc)
        conversation = ConversationResponse(
            id=uuid4(),
            room_id=room_id,
            elderly_id=elderly_id,
            student_id=student_id,
            created_at=now,
            updated_at=now,
        )
        return await self.create(conversation)

    async def get_by_pairing(
        self, room_id: UUID, elderly_id: UUID, student_id: UUID
    ) -> Optional[ConversationResponse]:
        """Find the conversation for a (room, host, student) triple."""
        query = select(self.model_class).where(
            self.model_class.room_id == room_id,
            self.model_class.elderly_id == elderly_id,
            self.model_class.student_id == student_id,
        )
        result = await self.db.execute(query)
        db_model = result.scalar_one_or_none()
        return self._to_pydantic(db_model) if db_model else None

    async def get_with_room(self, conversation_id: UUID) -> Optional[Any]:
        """Get the conversation row with its room loaded."""
        query = (
            select(self.model_class)
            .where(self.model_class.id == conversation_id)
            .options(selectinload(self.model_class.room))
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_for_participant(
        self, role: UserRole, profile_id: UUID
    ) -> List[Any]:
        """Get a profile's conversations with rooms loaded, most active first."""
        query = (
            select(self.model_class)
            .where(role.own_column(self.model_class) == profile_id)
            .options(selectinload(self.model_class.room))
            .order_by(self.model_class.updated_at.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def touch(self, conversation_id: UUID) -> None:
        """Bump updated_at so the conversation sorts first in inboxes."""
        statement = (
            update(self.model_class)
            .where(self.model_class.id == conversation_id)
            .values(updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(statement)
        await self.db.commit()

    def _to_pydantic(self, db_model: Any) -> ConversationResponse:
        """Convert SQLAlchemy ConversationModel to Pydantic ConversationResponse."""
        return ConversationResponse(
            id=db_model.id,
            room_id=db_model.room_id,
            elderly_id=db_model.elderly_id,
            student_id=db_model.student_id,
            created_at=db_model.created_at,
            updated_at=db_model.updated_at,
        )

    def _from_pydantic(self, pydantic_model: ConversationResponse) -> ConversationModel:
        """Convert Pydantic ConversationResponse to SQLAlchemy ConversationModel."""
        return ConversationModel(
            id=pydantic_model.id,
            room_id=pydantic_model.room_id,
            elderly_id=pydantic_model.elderly_id,
            student_id=pydantic_model.student_id,
            created_at=pydantic_model.created_at,
            updated_at=pydantic_model.updated_at,
        )
