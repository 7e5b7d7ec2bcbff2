from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError
from app.models.api.conversations import ConversationSummary, LastMessagePreview
from app.repositories.conversation_repository import ConversationRepository
from app.repositories.message_repository import MessageRepository
from app.repositories.profile_repository import ProfileRepository


class ListConversationsService:
    """Service for building a profile's conversation inbox."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.conversation_repo = ConversationRepository(db)
        self.message_repo = MessageRepository(db)
        self.profile_repo = ProfileRepository(db)

    async def list_conversations(self, profile_id: UUID) -> List[ConversationSummary]:
        """
        List a profile's conversations:

        1. Resolve the profile's role
        2. Retrieve its conversations, most recently active first
        3. Attach counterpart names, last message and unread count
        """
        # Step 1: Role decides which side of the conversation we are on
        profile = await self.profile_repo.get_by_id(profile_id)
        if not profile:
            raise NotFoundError("Profile not found")
        role = profile.user_type

        # Step 2: Get conversations from repository
        conversations = await self.conversation_repo.list_for_participant(
            role, profile_id
        )
        counterpart_ids = {role.counterpart_id(c) for c in conversations}
        names = {
            p.id: p.full_name for p in await self.profile_repo.get_many(counterpart_ids)
        }

        # Step 3: Enrich each entry
        summaries = []
        for conversation in conversations:
            last_message = await self.message_repo.get_last_message(conversation.id)
            unread_count = await self.message_repo.count_unread(
                conversation.id, profile_id
            )
            other_user_id = role.counterpart_id(conversation)
            summaries.append(
                ConversationSummary(
                    id=conversation.id,
                    room_id=conversation.room_id,
                    room_title=conversation.room.title if conversation.room else "",
                    other_user_id=other_user_id,
                    other_user_name=names.get(other_user_id, ""),
                    updated_at=conversation.updated_at,
                    last_message=(
                        LastMessagePreview(
                            content=last_message.content,
                            created_at=last_message.created_at,
                            is_read=last_message.is_read,
                        )
                        if last_message
                        else None
                    ),
                    unread_count=unread_count,
                )
            )
        return summaries
