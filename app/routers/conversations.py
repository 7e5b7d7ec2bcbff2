import asyncio
import logging
from typing import AsyncIterator, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import db_session, get_session_factory
from app.exceptions import NotFoundError, PermissionDeniedError
from app.models.api.conversations import ConversationHeader, ConversationSummary
from app.models.api.messages import MarkReadResponse, MessageResponse
from app.realtime.feed import ChangeFeed, get_change_feed
from app.realtime.session import ConversationSession, SessionEvent
from app.routers.errors import raise_http_error
from app.services.get_conversation_messages_service import (
    GetConversationMessagesService,
)
from app.services.list_conversations_service import ListConversationsService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[ConversationSummary])
async def list_conversations(
    profile_id: UUID = Query(..., description="Profile whose inbox to list"),
    db: AsyncSession = Depends(db_session),
) -> List[ConversationSummary]:
    """
    List a profile's conversations, most recently active first.

    Each entry carries the room title, the other participant's name, the
    last message and how many messages the profile has not read yet.
    """
    try:
        service = ListConversationsService(db)
        return await service.list_conversations(profile_id)
    except Exception as e:
        raise_http_error(e)


@router.get("/{conversation_id}", response_model=ConversationHeader)
async def get_conversation(
    conversation_id: UUID,
    viewer_id: UUID = Query(..., description="Participant viewing the conversation"),
    db: AsyncSession = Depends(db_session),
) -> ConversationHeader:
    """Get the room title and counterpart of a conversation."""
    try:
        service = GetConversationMessagesService(db)
        return await service.get_conversation_header(conversation_id, viewer_id)
    except Exception as e:
        raise_http_error(e)


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
async def get_conversation_messages(
    conversation_id: UUID,
    limit: Optional[int] = Query(
        100, description="Maximum number of messages to return", ge=1, le=1000
    ),
    offset: Optional[int] = Query(0, description="Number of messages to skip", ge=0),
    viewer_id: UUID = Query(..., description="Participant reading the history"),
    db: AsyncSession = Depends(db_session),
) -> List[MessageResponse]:
    """
    Get messages for a specific conversation, oldest first.

    Query parameters:
    - limit: Maximum number of messages to return (default: 100, max: 1000)
    - offset: Number of messages to skip (default: 0)
    - viewer_id: Must be one of the two participants
    """
    try:
        service = GetConversationMessagesService(db)
        return await service.get_conversation_messages(
            conversation_id=str(conversation_id),
            limit=limit,
            offset=offset,
            viewer_id=viewer_id,
        )
    except Exception as e:
        raise_http_error(e)


@router.post("/{conversation_id}/read", response_model=MarkReadResponse)
async def mark_conversation_read(
    conversation_id: UUID,
    viewer_id: UUID = Query(..., description="Participant who read the messages"),
    db: AsyncSession = Depends(db_session),
) -> MarkReadResponse:
    """Mark every message the viewer received in this conversation as read."""
    try:
        service = GetConversationMessagesService(db)
        updated = await service.mark_messages_read(conversation_id, viewer_id)
        return MarkReadResponse(updated=updated)
    except Exception as e:
        raise_http_error(e)


@router.websocket("/{conversation_id}/live")
async def live_conversation(
    websocket: WebSocket,
    conversation_id: UUID,
    viewer_id: UUID = Query(...),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    feed: ChangeFeed = Depends(get_change_feed),
) -> None:
    """
    Live conversation channel.

    Sends one ``history`` frame, then ``message`` and ``status`` frames as
    they happen, including messages recovered after a reconnect. Clients
    send ``{"type": "send", "content": "..."}``.
    """
    await websocket.accept()
    session = ConversationSession(conversation_id, viewer_id, session_factory, feed)
    try:
        view = await session.open()
    except (NotFoundError, PermissionDeniedError) as e:
        await session.close()
        await websocket.send_json({"type": "error", "detail": str(e)})
        await websocket.close(code=1008)
        return
    except SQLAlchemyError:
        logger.exception("Error opening conversation %s", conversation_id)
        await session.close()
        await websocket.send_json(
            {"type": "error", "detail": "Conversation could not be loaded"}
        )
        await websocket.close(code=1011)
        return

    updates = session.updates()
    await websocket.send_json({"type": "history", **view.model_dump(mode="json")})
    forwarder = asyncio.create_task(_forward_updates(updates, websocket))
    try:
        while True:
            frame = await websocket.receive_json()
            if frame.get("type") != "send":
                await websocket.send_json(
                    {"type": "error", "detail": "Unknown frame type"}
                )
                continue
            try:
                await session.send(str(frame.get("content", "")))
            except (ValueError, NotFoundError, PermissionDeniedError) as e:
                await websocket.send_json({"type": "error", "detail": str(e)})
            except SQLAlchemyError:
                await websocket.send_json(
                    {"type": "error", "detail": "Message could not be sent"}
                )
    except WebSocketDisconnect:
        logger.info("Viewer %s left conversation %s", viewer_id, conversation_id)
    finally:
        await session.close()
        forwarder.cancel()
        await asyncio.gather(forwarder, return_exceptions=True)


async def _forward_updates(
    updates: AsyncIterator[SessionEvent], websocket: WebSocket
) -> None:
    async for event in updates:
        await websocket.send_json(event.model_dump(mode="json", exclude_none=True))
