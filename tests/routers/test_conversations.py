import uuid
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, Generator
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from app.database import Base, get_session_factory
from app.exceptions import NotFoundError, PermissionDeniedError
from app.main import app
from app.models.api.conversations import ConversationHeader, ConversationSummary
from app.models.api.messages import MessageResponse
from app.models.db import ConversationModel, MessageModel, ProfileModel, RoomModel
from app.realtime.feed import ChangeFeed, ChannelState, get_change_feed


class TestConversationsRouter:
    """Unit tests for the conversations router endpoints."""

    @pytest.fixture
    def client(self) -> TestClient:
        """Test client for FastAPI app."""
        return TestClient(app)

    def test_list_conversations(self, client: TestClient) -> None:
        """Test that the inbox endpoint calls the service with the profile."""
        profile_id = uuid4()
        summary = ConversationSummary(
            id=uuid4(),
            room_id=uuid4(),
            room_title="Quarto luminoso em Alvalade",
            other_user_id=uuid4(),
            other_user_name="Ana Pereira",
            updated_at=datetime.now(timezone.utc),
            last_message=None,
            unread_count=3,
        )

        with patch(
            "app.routers.conversations.ListConversationsService"
        ) as mock_service_class:
            mock_service = MagicMock()
            mock_service.list_conversations = AsyncMock(return_value=[summary])
            mock_service_class.return_value = mock_service

            response = client.get(
                "/api/conversations", params={"profile_id": str(profile_id)}
            )

            assert response.status_code == 200
            data = response.json()
            assert data[0]["unread_count"] == 3
            assert data[0]["last_message"] is None
            mock_service.list_conversations.assert_called_once_with(profile_id)

    def test_list_conversations_unknown_profile(self, client: TestClient) -> None:
        """Test that an unknown profile is a 404."""
        with patch(
            "app.routers.conversations.ListConversationsService"
        ) as mock_service_class:
            mock_service = MagicMock()
            mock_service.list_conversations = AsyncMock(
                side_effect=NotFoundError("Profile not found")
            )
            mock_service_class.return_value = mock_service

            response = client.get(
                "/api/conversations", params={"profile_id": str(uuid4())}
            )

            assert response.status_code == 404

    def test_get_conversation_header(self, client: TestClient) -> None:
        """Test the conversation header endpoint."""
        conversation_id = uuid4()
        viewer_id = uuid4()
        header = ConversationHeader(
            id=conversation_id,
            room_title="Quarto luminoso em Alvalade",
            other_user_id=uuid4(),
            other_user_name="Maria Silva",
        )

        with patch(
            "app.routers.conversations.GetConversationMessagesService"
        ) as mock_service_class:
            mock_service = MagicMock()
            mock_service.get_conversation_header = AsyncMock(return_value=header)
            mock_service_class.return_value = mock_service

            response = client.get(
                f"/api/conversations/{conversation_id}",
                params={"viewer_id": str(viewer_id)},
            )

            assert response.status_code == 200
            assert response.json()["other_user_name"] == "Maria Silva"
            mock_service.get_conversation_header.assert_called_once_with(
                conversation_id, viewer_id
            )

    def test_get_conversation_header_outsider(self, client: TestClient) -> None:
        """Test that a non-participant gets a 403."""
        with patch(
            "app.routers.conversations.GetConversationMessagesService"
        ) as mock_service_class:
            mock_service = MagicMock()
            mock_service.get_conversation_header = AsyncMock(
                side_effect=PermissionDeniedError("Not a participant")
            )
            mock_service_class.return_value = mock_service

            response = client.get(
                f"/api/conversations/{uuid4()}", params={"viewer_id": str(uuid4())}
            )

            assert response.status_code == 403

    def test_get_conversation_messages(self, client: TestClient) -> None:
        """Test the message history endpoint."""
        conversation_id = uuid4()
        viewer_id = uuid4()
        message = MessageResponse(
            id=uuid4(),
            conversation_id=conversation_id,
            sender_id=uuid4(),
            content="Olá",
            is_read=True,
            created_at=datetime.now(timezone.utc),
        )

        with patch(
            "app.routers.conversations.GetConversationMessagesService"
        ) as mock_service_class:
            mock_service = MagicMock()
            mock_service.get_conversation_messages = AsyncMock(return_value=[message])
            mock_service_class.return_value = mock_service

            response = client.get(
                f"/api/conversations/{conversation_id}/messages",
                params={"limit": 50, "offset": 10, "viewer_id": str(viewer_id)},
            )

            assert response.status_code == 200
            assert response.json()[0]["content"] == "Olá"
            mock_service.get_conversation_messages.assert_called_once_with(
                conversation_id=str(conversation_id),
                limit=50,
                offset=10,
                viewer_id=viewer_id,
            )

    def test_get_conversation_messages_validation(self, client: TestClient) -> None:
        """Test query parameter bounds."""
        conversation_id = uuid4()

        response = client.get(
            f"/api/conversations/{conversation_id}/messages", params={"limit": 0}
        )
        assert response.status_code == 422

        response = client.get(
            f"/api/conversations/{conversation_id}/messages", params={"offset": -1}
        )
        assert response.status_code == 422

        response = client.get("/api/conversations/not-a-uuid/messages")
        assert response.status_code == 422

    def test_mark_conversation_read(self, client: TestClient) -> None:
        """Test that the read endpoint reports how many messages flipped."""
        conversation_id = uuid4()
        viewer_id = uuid4()

        with patch(
            "app.routers.conversations.GetConversationMessagesService"
        ) as mock_service_class:
            mock_service = MagicMock()
            mock_service.mark_messages_read = AsyncMock(return_value=2)
            mock_service_class.return_value = mock_service

            response = client.post(
                f"/api/conversations/{conversation_id}/read",
                params={"viewer_id": str(viewer_id)},
            )

            assert response.status_code == 200
            assert response.json() == {"updated": 2}
            mock_service.mark_messages_read.assert_called_once_with(
                conversation_id, viewer_id
            )

    def test_read_by_outsider_is_forbidden(self, client: TestClient) -> None:
        """Test that only participants can read or mark a conversation."""
        with patch(
            "app.routers.conversations.GetConversationMessagesService"
        ) as mock_service_class:
            mock_service = MagicMock()
            mock_service.get_conversation_messages = AsyncMock(
                side_effect=PermissionDeniedError("Not a participant")
            )
            mock_service.mark_messages_read = AsyncMock(
                side_effect=PermissionDeniedError("Not a participant")
            )
            mock_service_class.return_value = mock_service

            conversation_id = uuid4()
            params = {"viewer_id": str(uuid4())}
            response = client.get(
                f"/api/conversations/{conversation_id}/messages", params=params
            )
            assert response.status_code == 403

            response = client.post(
                f"/api/conversations/{conversation_id}/read", params=params
            )
            assert response.status_code == 403

    def test_messages_require_viewer(self, client: TestClient) -> None:
        """Test that the history endpoint needs to know who is reading."""
        response = client.get(f"/api/conversations/{uuid4()}/messages")
        assert response.status_code == 422


def _next_frame(websocket: Any, frame_type: str) -> Dict[str, Any]:
    """Skip status frames until one of ``frame_type`` arrives."""
    while True:
        frame = websocket.receive_json()
        if frame["type"] == frame_type:
            return frame


class TestLiveConversation:
    """Integration tests for the live conversation websocket."""

    @pytest.fixture
    def live(self, tmp_path: Path) -> Generator[SimpleNamespace, None, None]:
        """Seed a file database and point the live endpoint at it."""
        path = tmp_path / "live.db"
        ids = SimpleNamespace(
            host_id=uuid.uuid4(),
            student_id=uuid.uuid4(),
            outsider_id=uuid.uuid4(),
            room_id=uuid.uuid4(),
            conversation_id=uuid.uuid4(),
            path=path,
        )
        now = datetime.now(timezone.utc)

        sync_engine = create_engine(f"sqlite:///{path}")
        Base.metadata.create_all(sync_engine)
        with Session(sync_engine) as session:
            session.add_all(
                [
                    ProfileModel(
                        id=ids.host_id, user_type="elderly", full_name="Maria Silva"
                    ),
                    ProfileModel(
                        id=ids.student_id, user_type="student", full_name="Ana Pereira"
                    ),
                    ProfileModel(
                        id=ids.outsider_id, user_type="student", full_name="Tomás Reis"
                    ),
                ]
            )
            session.flush()
            session.add(
                RoomModel(
                    id=ids.room_id,
                    elderly_id=ids.host_id,
                    title="Quarto luminoso em Alvalade",
                    monthly_price=Decimal("300.00"),
                )
            )
            session.flush()
            session.add(
                ConversationModel(
                    id=ids.conversation_id,
                    room_id=ids.room_id,
                    elderly_id=ids.host_id,
                    student_id=ids.student_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            session.flush()
            session.add(
                MessageModel(
                    id=uuid.uuid4(),
                    conversation_id=ids.conversation_id,
                    sender_id=ids.host_id,
                    content="Bem-vinda",
                    is_read=False,
                    created_at=now,
                )
            )
            session.commit()
        sync_engine.dispose()

        # NullPool: connections are opened on the test client's own event loop
        factory = async_sessionmaker(
            create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool),
            class_=AsyncSession,
            expire_on_commit=False,
        )
        feed = ChangeFeed()
        ids.feed = feed
        app.dependency_overrides[get_session_factory] = lambda: factory
        app.dependency_overrides[get_change_feed] = lambda: feed
        yield ids
        app.dependency_overrides.clear()

    def test_history_then_live_send(self, live: SimpleNamespace) -> None:
        """Test that a participant gets history and sees their own sends."""
        client = TestClient(app)
        url = (
            f"/api/conversations/{live.conversation_id}/live"
            f"?viewer_id={live.student_id}"
        )

        with client.websocket_connect(url) as websocket:
            history = websocket.receive_json()
            assert history["type"] == "history"
            assert history["conversation"]["room_title"] == "Quarto luminoso em Alvalade"
            assert history["conversation"]["other_user_name"] == "Maria Silva"
            assert [m["content"] for m in history["messages"]] == ["Bem-vinda"]

            websocket.send_json({"type": "send", "content": "  Obrigada!  "})
            frame = _next_frame(websocket, "message")
            assert frame["message"]["content"] == "Obrigada!"
            assert frame["message"]["sender_id"] == str(live.student_id)

            websocket.send_json({"type": "send", "content": "   "})
            error = _next_frame(websocket, "error")
            assert error["detail"] == "Message content cannot be empty"

            websocket.send_json({"type": "typing"})
            error = _next_frame(websocket, "error")
            assert error["detail"] == "Unknown frame type"

    def test_outsider_is_refused(self, live: SimpleNamespace) -> None:
        """Test that a non-participant gets an error frame instead of history."""
        client = TestClient(app)
        url = (
            f"/api/conversations/{live.conversation_id}/live"
            f"?viewer_id={live.outsider_id}"
        )

        with client.websocket_connect(url) as websocket:
            frame = websocket.receive_json()

        assert frame["type"] == "error"
        assert "not a participant" in frame["detail"]

    def test_reconnect_delivers_missed_messages(
        self, live: SimpleNamespace, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that a message written while the channel was down reaches the client."""
        monkeypatch.setattr("app.realtime.session.RECONNECT_DELAY_SECONDS", 0.05)
        client = TestClient(app)
        url = (
            f"/api/conversations/{live.conversation_id}/live"
            f"?viewer_id={live.student_id}"
        )
        channel_name = f"conversation:{live.conversation_id}"

        with client.websocket_connect(url) as websocket:
            assert websocket.receive_json()["type"] == "history"

            websocket.portal.call(
                live.feed.report_status, channel_name, ChannelState.CHANNEL_ERROR
            )
            # Written straight to the store, so the feed never sees it
            sync_engine = create_engine(f"sqlite:///{live.path}")
            with Session(sync_engine) as session:
                session.add(
                    MessageModel(
                        id=uuid.uuid4(),
                        conversation_id=live.conversation_id,
                        sender_id=live.host_id,
                        content="Perdida",
                        is_read=False,
                        created_at=datetime.now(timezone.utc),
                    )
                )
                session.commit()
            sync_engine.dispose()

            frame = _next_frame(websocket, "message")
            assert frame["message"]["content"] == "Perdida"
            assert frame["message"]["sender_id"] == str(live.host_id)

    def test_history_failure_closes_the_channel(self, live: SimpleNamespace) -> None:
        """Test that a store error while opening is reported and cleaned up."""
        client = TestClient(app)
        url = (
            f"/api/conversations/{live.conversation_id}/live"
            f"?viewer_id={live.student_id}"
        )

        with patch(
            "app.realtime.session.GetConversationMessagesService.get_conversation_messages",
            AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down"))),
        ):
            with client.websocket_connect(url) as websocket:
                frame = websocket.receive_json()

        assert frame == {"type": "error", "detail": "Conversation could not be loaded"}
        assert live.feed.channel_count == 0
