import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError
from app.models.api.messages import MessageResponse, SendMessageRequest
from app.models.roles import UserRole
from app.realtime.feed import ChangeFeed, change_feed
from app.repositories.conversation_repository import ConversationRepository
from app.repositories.message_repository import MessageRepository

logger = logging.getLogger(__name__)


class SendMessageService:
    """Service for sending messages within a conversation."""

    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed or change_feed
        self.message_repo = MessageRepository(db)
        self.conversation_repo = ConversationRepository(db)

    async def send_message(self, request: SendMessageRequest) -> MessageResponse:
        """
        Main business logic for sending a message:
        1. Validate content and that the sender takes part in the conversation
        2. Save message to database
        3. Publish the insert to live subscribers
        4. Bump the conversation's updated_at (best-effort)
        5. Return response
        """
        # Step 1: Validate
        content = request.content.strip()
        if not content:
            raise ValueError("Message content cannot be empty")

        conversation = await self.conversation_repo.get_by_id(request.conversation_id)
        if not conversation:
            raise NotFoundError("Conversation not found")
        UserRole.for_participant(conversation, request.sender_id)

        # Step 2: Save to database
        message = await self.message_repo.create_message(
            conversation_id=conversation.id,
            sender_id=request.sender_id,
            content=content,
        )
        logger.info(
            "Message %s inserted in conversation %s", message.id, conversation.id
        )

        # Step 3: Notify subscribers in commit order
        self.feed.publish_insert("messages", message.model_dump())

        # Step 4: Liveness marker for inbox ordering
        await self._touch_conversation(conversation.id)

        return message

    async def _touch_conversation(self, conversation_id: UUID) -> None:
        try:
            await self.conversation_repo.touch(conversation_id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Error updating conversation %s: %s", conversation_id, e)
