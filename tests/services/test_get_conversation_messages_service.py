from types import SimpleNamespace
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, PermissionDeniedError
from app.models.api.conversations import ConversationResponse
from app.repositories.message_repository import MessageRepository
from app.services.get_conversation_messages_service import (
    GetConversationMessagesService,
)


class TestGetConversationMessagesService:
    """Unit tests for GetConversationMessagesService."""

    @pytest.fixture
    def service(self, mock_db: AsyncMock) -> GetConversationMessagesService:
        """GetConversationMessagesService instance."""
        return GetConversationMessagesService(mock_db)

    @pytest.mark.asyncio
    async def test_get_conversation_messages_invalid_limit(
        self, service: GetConversationMessagesService
    ) -> None:
        """Test error when limit is invalid."""
        conversation_id = str(uuid4())

        with pytest.raises(ValueError, match="Limit must be between 1 and 1000"):
            await service.get_conversation_messages(conversation_id, limit=0)

        with pytest.raises(ValueError, match="Limit must be between 1 and 1000"):
            await service.get_conversation_messages(conversation_id, limit=1001)

    @pytest.mark.asyncio
    async def test_get_conversation_messages_invalid_offset(
        self, service: GetConversationMessagesService
    ) -> None:
        """Test error when offset is negative."""
        with pytest.raises(ValueError, match="Offset must be non-negative"):
            await service.get_conversation_messages(str(uuid4()), offset=-1)

    @pytest.mark.asyncio
    async def test_get_conversation_messages_not_found(
        self, service: GetConversationMessagesService
    ) -> None:
        """Test error when conversation doesn't exist."""
        with patch.object(
            service.conversation_repo, "get_by_id", new_callable=AsyncMock
        ) as mock_get:
            mock_get.return_value = None

            with pytest.raises(NotFoundError, match="Conversation not found"):
                await service.get_conversation_messages(str(uuid4()))


class TestGetConversationMessagesServiceIntegration:
    """Integration tests for history, header and read tracking."""

    @pytest.fixture
    async def history(
        self,
        test_db: AsyncSession,
        homeshare: SimpleNamespace,
        conversation: ConversationResponse,
    ) -> SimpleNamespace:
        repo = MessageRepository(test_db)
        first = await repo.create_message(
            conversation.id, homeshare.host_id, "Bem-vinda, Ana"
        )
        second = await repo.create_message(
            conversation.id, homeshare.student_id, "Obrigada!"
        )
        third = await repo.create_message(
            conversation.id, homeshare.host_id, "Quando chega?"
        )
        return SimpleNamespace(first=first, second=second, third=third)

    @pytest.mark.asyncio
    async def test_messages_are_oldest_first(
        self,
        test_db: AsyncSession,
        conversation: ConversationResponse,
        history: SimpleNamespace,
    ) -> None:
        """Test that history comes back in send order and can be paged."""
        service = GetConversationMessagesService(test_db)

        messages = await service.get_conversation_messages(str(conversation.id))
        assert [m.id for m in messages] == [
            history.first.id,
            history.second.id,
            history.third.id,
        ]

        page = await service.get_conversation_messages(
            str(conversation.id), limit=1, offset=1
        )
        assert [m.id for m in page] == [history.second.id]

        everything = await service.get_conversation_messages(
            str(conversation.id), limit=None
        )
        assert len(everything) == 3

    @pytest.mark.asyncio
    async def test_header_shows_counterpart_for_each_side(
        self,
        test_db: AsyncSession,
        homeshare: SimpleNamespace,
        conversation: ConversationResponse,
    ) -> None:
        """Test that each participant sees the other one's name."""
        service = GetConversationMessagesService(test_db)

        as_student = await service.get_conversation_header(
            conversation.id, homeshare.student_id
        )
        as_host = await service.get_conversation_header(
            conversation.id, homeshare.host_id
        )

        assert as_student.room_title == "Quarto luminoso em Alvalade"
        assert as_student.other_user_id == homeshare.host_id
        assert as_student.other_user_name == "Maria Silva"
        assert as_host.other_user_id == homeshare.student_id
        assert as_host.other_user_name == "Ana Pereira"

    @pytest.mark.asyncio
    async def test_header_for_outsider_is_denied(
        self,
        test_db: AsyncSession,
        homeshare: SimpleNamespace,
        conversation: ConversationResponse,
    ) -> None:
        """Test that a third profile cannot open the conversation."""
        service = GetConversationMessagesService(test_db)

        with pytest.raises(PermissionDeniedError):
            await service.get_conversation_header(conversation.id, homeshare.rival_id)

        with pytest.raises(NotFoundError):
            await service.get_conversation_header(uuid4(), homeshare.host_id)

    @pytest.mark.asyncio
    async def test_mark_read_only_touches_inbound_messages(
        self,
        test_db: AsyncSession,
        homeshare: SimpleNamespace,
        conversation: ConversationResponse,
        history: SimpleNamespace,
    ) -> None:
        """Test that a viewer only marks the other side's messages read."""
        service = GetConversationMessagesService(test_db)

        assert await service.mark_messages_read(conversation.id, homeshare.student_id) == 2
        assert await service.mark_messages_read(conversation.id, homeshare.student_id) == 0

        repo = MessageRepository(test_db)
        assert await repo.count_unread(conversation.id, homeshare.student_id) == 0
        assert await repo.count_unread(conversation.id, homeshare.host_id) == 1

    @pytest.mark.asyncio
    async def test_history_and_read_for_outsider_are_denied(
        self,
        test_db: AsyncSession,
        homeshare: SimpleNamespace,
        conversation: ConversationResponse,
        history: SimpleNamespace,
    ) -> None:
        """Test that a third profile can neither read nor mark messages."""
        service = GetConversationMessagesService(test_db)

        with pytest.raises(PermissionDeniedError):
            await service.get_conversation_messages(
                str(conversation.id), viewer_id=homeshare.rival_id
            )
        with pytest.raises(PermissionDeniedError):
            await service.mark_messages_read(conversation.id, homeshare.rival_id)
        with pytest.raises(NotFoundError):
            await service.mark_messages_read(uuid4(), homeshare.student_id)

        repo = MessageRepository(test_db)
        assert await repo.count_unread(conversation.id, homeshare.student_id) == 2

        messages = await service.get_conversation_messages(
            str(conversation.id), viewer_id=homeshare.host_id
        )
        assert len(messages) == 3
