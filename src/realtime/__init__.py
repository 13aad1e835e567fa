"""
Can't Stop Real-time Sync.

Broadcasts of committed actions to multiplayer rooms.
"""

from src.realtime.events import EventPayload, GameEvent
from src.realtime.subscriptions import ChannelManager

__all__ = [
    "ChannelManager",
    "EventPayload",
    "GameEvent",
]
