import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError
from app.models.api.conversations import ConversationHeader
from app.models.api.messages import MessageResponse
from app.models.roles import UserRole
from app.repositories.conversation_repository import ConversationRepository
from app.repositories.message_repository import MessageRepository
from app.repositories.profile_repository import ProfileRepository

logger = logging.getLogger(__name__)


class GetConversationMessagesService:
    """Service for reading a conversation and tracking what was read."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.conversation_repo = ConversationRepository(db)
        self.message_repo = MessageRepository(db)
        self.profile_repo = ProfileRepository(db)

    async def get_conversation_messages(
        self,
        conversation_id: str,
        limit: Optional[int] = 100,
        offset: Optional[int] = 0,
        viewer_id: Optional[UUID] = None,
    ) -> List[MessageResponse]:
        """
        Get messages for a specific conversation:

        1. Verify conversation exists and, given a viewer, that they take part
        2. Retrieve messages oldest first; ``limit=None`` returns all of them
        3. Return formatted responses
        """
        # Validate parameters
        if limit is not None and (limit <= 0 or limit > 1000):
            raise ValueError("Limit must be between 1 and 1000")
        if offset is not None and offset < 0:
            raise ValueError("Offset must be non-negative")

        # Step 1: Verify conversation exists
        conversation = await self.conversation_repo.get_by_id(UUID(conversation_id))
        if not conversation:
            raise NotFoundError("Conversation not found")
        if viewer_id is not None:
            UserRole.for_participant(conversation, viewer_id)

        # Step 2: Get messages from repository
        return await self.message_repo.get_by_conversation(
            conversation_id=conversation.id, limit=limit, offset=offset or 0
        )

    async def get_conversation_header(
        self, conversation_id: UUID, viewer_id: UUID
    ) -> ConversationHeader:
        """Room title and counterpart name, as seen by one participant."""
        conversation = await self.conversation_repo.get_with_room(conversation_id)
        if not conversation:
            raise NotFoundError("Conversation not found")

        role = UserRole.for_participant(conversation, viewer_id)
        other_user_id = role.counterpart_id(conversation)
        other_user = await self.profile_repo.get_by_id(other_user_id)

        return ConversationHeader(
            id=conversation.id,
            room_title=conversation.room.title if conversation.room else "",
            other_user_id=other_user_id,
            other_user_name=other_user.full_name if other_user else "",
        )

    async def mark_messages_read(self, conversation_id: UUID, viewer_id: UUID) -> int:
        """Mark every unread message addressed to the viewer as read."""
        conversation = await self.conversation_repo.get_by_id(conversation_id)
        if not conversation:
            raise NotFoundError("Conversation not found")
        UserRole.for_participant(conversation, viewer_id)

        updated = await self.message_repo.mark_read(conversation_id, viewer_id)
        if updated:
            logger.debug(
                "Marked %d messages read in conversation %s", updated, conversation_id
            )
        return updated
