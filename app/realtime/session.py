"""Per-conversation live session.

A session loads the conversation and its history, listens for message
inserts on the conversation's channel, keeps one ordered list without
duplicate ids, marks inbound messages read, and recovers from channel
drops by re-fetching the full history after a fixed delay. Every timer and
background task it starts is owned by the session and released by
``close()``.
"""

import asyncio
import logging
import os
from enum import Enum
from typing import Any, AsyncIterator, Coroutine, List, Optional, Set
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.api.conversations import ConversationHeader, ConversationView
from app.models.api.messages import MessageResponse, SendMessageRequest
from app.realtime.feed import Channel, ChangeFeed, ChannelState, Row
from app.services.get_conversation_messages_service import (
    GetConversationMessagesService,
)
from app.services.send_message_service import SendMessageService

logger = logging.getLogger(__name__)

RECONNECT_DELAY_SECONDS = float(os.getenv("REALTIME_RECONNECT_SECONDS", "5"))


class ConnectionStatus(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class SessionEvent(BaseModel):
    """Something a live consumer should render."""

    type: str  # 'message' or 'status'
    message: Optional[MessageResponse] = None
    status: Optional[ConnectionStatus] = None


class ConversationSession:
    """Live view of one conversation for one participant."""

    def __init__(
        self,
        conversation_id: UUID,
        viewer_id: UUID,
        session_factory: async_sessionmaker[AsyncSession],
        feed: ChangeFeed,
        reconnect_delay: Optional[float] = None,
    ):
        self.conversation_id = conversation_id
        self.viewer_id = viewer_id
        self.session_factory = session_factory
        self.feed = feed
        self.reconnect_delay = (
            RECONNECT_DELAY_SECONDS if reconnect_delay is None else reconnect_delay
        )

        self.status = ConnectionStatus.CONNECTING
        self.conversation: Optional[ConversationHeader] = None
        self.draft = ""

        self._messages: List[MessageResponse] = []
        self._message_ids: Set[UUID] = set()
        self._channel: Optional[Channel] = None
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set["asyncio.Task[None]"] = set()
        self._listeners: List["asyncio.Queue[Optional[SessionEvent]]"] = []
        self._sending = False
        self._closed = False

    @property
    def channel_name(self) -> str:
        return f"conversation:{self.conversation_id}"

    @property
    def messages(self) -> List[MessageResponse]:
        return list(self._messages)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    async def __aenter__(self) -> "ConversationSession":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def open(self) -> ConversationView:
        """Load the conversation and its history, then go live.

        A failed open leaves the session closed and off the feed.
        """
        logger.info("Opening conversation %s for %s", self.conversation_id, self.viewer_id)
        try:
            async with self.session_factory() as db:
                service = GetConversationMessagesService(db)
                self.conversation = await service.get_conversation_header(
                    self.conversation_id, self.viewer_id
                )

            self._channel = (
                self.feed.channel(self.channel_name)
                .on_insert(
                    "messages",
                    self._handle_insert,
                    conversation_id=self.conversation_id,
                )
                .subscribe(self._handle_status)
            )
            await self.resync()
        except BaseException:
            await self.close()
            raise
        return self.snapshot()

    def snapshot(self) -> ConversationView:
        if self.conversation is None:
            raise RuntimeError("Conversation session is not open")
        return ConversationView(
            conversation=self.conversation,
            messages=self.messages,
            status=self.status.value,
        )

    async def resync(self) -> None:
        """Replace the message list with a full fetch and mark inbound read.

        Messages the session had not seen yet are published to listeners.
        """
        async with self.session_factory() as db:
            service = GetConversationMessagesService(db)
            history = await service.get_conversation_messages(
                str(self.conversation_id), limit=None, viewer_id=self.viewer_id
            )
        if self._closed:
            return

        # Pushes that landed while the fetch was in flight stay at the tail
        fetched_ids = {message.id for message in history}
        recovered = [m for m in history if m.id not in self._message_ids]
        late = [m for m in self._messages if m.id not in fetched_ids]
        self._messages = list(history) + late
        self._message_ids = fetched_ids | {m.id for m in late}
        logger.debug(
            "Loaded %d messages for conversation %s (%d new)",
            len(self._messages),
            self.conversation_id,
            len(recovered),
        )
        for message in recovered:
            self._publish(SessionEvent(type="message", message=message))
        await self._mark_read()

    async def send(self, content: Optional[str] = None) -> Optional[MessageResponse]:
        """Send ``content`` (or the current draft) as the viewer.

        The draft is cleared before the write and restored if it fails.
        Returns None when another send is still in flight.
        """
        if self._sending:
            return None
        text = (self.draft if content is None else content).strip()
        if not text:
            raise ValueError("Message content cannot be empty")

        self.draft = ""
        self._sending = True
        try:
            async with self.session_factory() as db:
                service = SendMessageService(db, self.feed)
                message = await service.send_message(
                    SendMessageRequest(
                        conversation_id=self.conversation_id,
                        sender_id=self.viewer_id,
                        content=text,
                    )
                )
        except Exception:
            logger.error("Failed to send message in conversation %s", self.conversation_id)
            self.draft = text
            raise
        finally:
            self._sending = False

        self._merge(message)
        return message

    def updates(self) -> AsyncIterator[SessionEvent]:
        """Merged messages and status changes from now until the session closes.

        The listener is registered immediately, not on first iteration.
        """
        queue: "asyncio.Queue[Optional[SessionEvent]]" = asyncio.Queue()
        if self._closed:
            queue.put_nowait(None)
        else:
            self._listeners.append(queue)
        return self._drain(queue)

    async def _drain(
        self, queue: "asyncio.Queue[Optional[SessionEvent]]"
    ) -> AsyncIterator[SessionEvent]:
        try:
            while True:
                event = await queue.get()
                if event is None:
                    return
                yield event
        finally:
            if queue in self._listeners:
                self._listeners.remove(queue)

    async def close(self) -> None:
        """Cancel the reconnect timer and background work, then leave the channel."""
        if self._closed:
            return
        self._closed = True
        logger.info("Closing conversation %s for %s", self.conversation_id, self.viewer_id)

        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        if self._channel is not None:
            self._channel.unsubscribe()
            self._channel = None

        for queue in self._listeners:
            queue.put_nowait(None)

    def _handle_insert(self, row: Row) -> None:
        if self._closed:
            return
        message = MessageResponse.model_validate(row)
        if not self._merge(message):
            logger.debug("Message %s already present, skipping", message.id)
            return
        if message.sender_id != self.viewer_id:
            self._spawn(self._mark_read())

    def _handle_status(self, state: ChannelState, error: Optional[Exception]) -> None:
        if self._closed:
            return
        if error is not None:
            logger.error("Channel %s error: %s", self.channel_name, error)
            self._set_status(ConnectionStatus.DISCONNECTED)
        elif state == ChannelState.SUBSCRIBED:
            self._set_status(ConnectionStatus.CONNECTED)
        elif state in (ChannelState.CHANNEL_ERROR, ChannelState.TIMED_OUT):
            logger.error("Channel %s lost: %s", self.channel_name, state.value)
            self._set_status(ConnectionStatus.DISCONNECTED)

    def _set_status(self, status: ConnectionStatus) -> None:
        if status != self.status:
            self.status = status
            self._publish(SessionEvent(type="status", status=status))
        if status == ConnectionStatus.DISCONNECTED and self._reconnect_handle is None:
            logger.info(
                "Connection lost, reconnecting in %s seconds", self.reconnect_delay
            )
            loop = asyncio.get_running_loop()
            self._reconnect_handle = loop.call_later(
                self.reconnect_delay, self._reconnect
            )

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        if self._closed:
            return
        logger.info("Reconnecting conversation %s", self.conversation_id)
        self._set_status(ConnectionStatus.CONNECTING)
        self._spawn(self.resync())

    def _merge(self, message: MessageResponse) -> bool:
        if message.id in self._message_ids:
            return False
        self._message_ids.add(message.id)
        self._messages.append(message)
        self._publish(SessionEvent(type="message", message=message))
        return True

    def _publish(self, event: SessionEvent) -> None:
        for queue in self._listeners:
            queue.put_nowait(event)

    async def _mark_read(self) -> None:
        try:
            async with self.session_factory() as db:
                service = GetConversationMessagesService(db)
                await service.mark_messages_read(self.conversation_id, self.viewer_id)
        except Exception:
            logger.exception(
                "Error marking messages as read in conversation %s",
                self.conversation_id,
            )

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: "asyncio.Task[None]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Background work failed in conversation %s",
                self.conversation_id,
                exc_info=error,
            )
