# Live conversation delivery. Sessions live in app.realtime.session.
from .feed import Channel, ChangeFeed, ChannelState, change_feed, get_change_feed

__all__ = [
    "Channel",
    "ChangeFeed",
    "ChannelState",
    "change_feed",
    "get_change_feed",
]
