from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.api.messages import MessageResponse
from app.models.db.message_model import MessageModel
from app.repositories.base_repository import BaseRepository


class MessageRepository(BaseRepository[MessageModel, MessageResponse]):
    """Repository for message operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, MessageModel)

    async def create_message(
        self, conversation_id: UUID, sender_id: UUID, content: str
    ) -> MessageResponse:
        """Append an unread message to a conversation."""
        message = MessageResponse(
            id=uuid4(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            is_read=False,
            created_at=datetime.now(timezone.utc),
        )
        return await self.create(message)

    async def get_by_conversation(
        self,
        conversation_id: UUID,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[MessageResponse]:
        """Get messages for a conversation, oldest first."""
        query = (
            select(self.model_class)
            .where(self.model_class.conversation_id == conversation_id)
            .order_by(self.model_class.created_at)
        )  # type: ignore
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        result = await self.db.execute(query)
        db_models = result.scalars().all()
        return [self._to_pydantic(db_model) for db_model in db_models]

    async def get_last_message(
        self, conversation_id: UUID
    ) -> Optional[MessageResponse]:
        """Get the most recent message of a conversation."""
        query = (
            select(self.model_class)
            .where(self.model_class.conversation_id == conversation_id)
            .order_by(self.model_class.created_at.desc())
            .limit(1)
        )
        result = await self.db.execute(query)
        db_model = result.scalar_one_or_none()
        return self._to_pydantic(db_model) if db_model else None

    async def count_unread(self, conversation_id: UUID, viewer_id: UUID) -> int:
        """Count unread messages addressed to the viewer."""
        query = select(func.count()).where(
            self.model_class.conversation_id == conversation_id,
            self.model_class.sender_id != viewer_id,
            self.model_class.is_read.is_(False),
        )
        result = await self.db.execute(query)
        return int(result.scalar() or 0)

    async def mark_read(self, conversation_id: UUID, viewer_id: UUID) -> int:
        """Mark every unread message not sent by the viewer as read."""
        statement = (
            update(self.model_class)
            .where(
                self.model_class.conversation_id == conversation_id,
                self.model_class.sender_id != viewer_id,
                self.model_class.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(statement)
        await self.db.commit()
        return result.rowcount or 0

    def _to_pydantic(self, db_model: Any) -> MessageResponse:
        """Convert SQLAlchemy MessageModel to Pydantic MessageResponse."""
        return MessageResponse(
            id=db_model.id,
            conversation_id=db_model.conversation_id,
            sender_id=db_model.sender_id,
            content=db_model.content,
            is_read=db_model.is_read,
            created_at=db_model.created_at,
        )

    def _from_pydantic(self, pydantic_model: MessageResponse) -> MessageModel:
        """Convert Pydantic MessageResponse to SQLAlchemy MessageModel."""
        return MessageModel(
            id=pydantic_model.id,
            conversation_id=pydantic_model.conversation_id,
            sender_id=pydantic_model.sender_id,
            content=pydantic_model.content,
            is_read=pydantic_model.is_read,
            created_at=pydantic_model.created_at,
        )
