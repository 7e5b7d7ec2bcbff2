"""In-process change feed.

Writers publish committed row inserts; readers open named channels, register
insert handlers with column filters and subscribe with a status callback. A
transport bridging an external notification stream reports its lifecycle
through ``report_status``.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
InsertCallback = Callable[[Row], None]
StatusCallback = Callable[["ChannelState", Optional[Exception]], None]


class ChannelState(str, Enum):
    SUBSCRIBED = "SUBSCRIBED"
    CHANNEL_ERROR = "CHANNEL_ERROR"
    TIMED_OUT = "TIMED_OUT"
    CLOSED = "CLOSED"


class Channel:
    """A named subscription to insert events."""

    def __init__(self, feed: "ChangeFeed", name: str):
        self.feed = feed
        self.name = name
        self.subscribed = False
        self._handlers: List[Tuple[str, Dict[str, Any], InsertCallback]] = []
        self._status_callback: Optional[StatusCallback] = None

    def on_insert(
        self, table: str, callback: InsertCallback, **filters: Any
    ) -> "Channel":
        """Call ``callback`` for inserts into ``table`` whose columns equal ``filters``."""
        self._handlers.append((table, filters, callback))
        return self

    def subscribe(self, callback: Optional[StatusCallback] = None) -> "Channel":
        """Start receiving events; the ack arrives on the next loop iteration."""
        self._status_callback = callback
        self.subscribed = True
        self.feed._attach(self)
        asyncio.get_running_loop().call_soon(
            self._notify_status, ChannelState.SUBSCRIBED, None
        )
        return self

    def unsubscribe(self) -> None:
        if not self.subscribed:
            return
        self.subscribed = False
        self.feed._detach(self)
        self._status_callback = None

    def _deliver(self, table: str, row: Row) -> None:
        for handler_table, filters, callback in self._handlers:
            if handler_table != table or not _matches(row, filters):
                continue
            try:
                callback(row)
            except Exception:
                logger.exception(
                    "Insert handler failed on channel %s for table %s", self.name, table
                )

    def _notify_status(
        self, state: ChannelState, error: Optional[Exception] = None
    ) -> None:
        if not self.subscribed or self._status_callback is None:
            return
        try:
            self._status_callback(state, error)
        except Exception:
            logger.exception("Status handler failed on channel %s", self.name)


class ChangeFeed:
    """Fan-out of row inserts to subscribed channels, in publish order."""

    def __init__(self) -> None:
        self._channels: Dict[str, List[Channel]] = {}

    def channel(self, name: str) -> Channel:
        return Channel(self, name)

    def publish_insert(self, table: str, row: Row) -> None:
        """Deliver a committed insert to every matching subscriber."""
        for channels in list(self._channels.values()):
            for channel in list(channels):
                channel._deliver(table, row)

    def report_status(
        self, name: str, state: ChannelState, error: Optional[Exception] = None
    ) -> None:
        """Forward a transport lifecycle event to the channels with this name."""
        for channel in list(self._channels.get(name, [])):
            channel._notify_status(state, error)

    def subscriber_count(self, name: str) -> int:
        return len(self._channels.get(name, []))

    @property
    def channel_count(self) -> int:
        """Number of channel names with at least one subscriber."""
        return len(self._channels)

    def _attach(self, channel: Channel) -> None:
        self._channels.setdefault(channel.name, []).append(channel)

    def _detach(self, channel: Channel) -> None:
        channels = self._channels.get(channel.name, [])
        if channel in channels:
            channels.remove(channel)
        if not channels:
            self._channels.pop(channel.name, None)


def _matches(row: Row, filters: Dict[str, Any]) -> bool:
    return all(str(row.get(column)) == str(value) for column, value in filters.items())


# Process-wide feed shared by writers and live sessions
change_feed = ChangeFeed()


def get_change_feed() -> ChangeFeed:
    """Dependency returning the process-wide change feed."""
    return change_feed
