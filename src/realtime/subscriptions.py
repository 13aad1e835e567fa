"""
Can't Stop - Broadcast Channels

Pushes each committed transition to the room's Supabase Realtime
broadcast channel. One channel per room is joined lazily on first send
and kept until the room is released.
Uses a background thread with an asyncio event loop since the sync
Realtime client in supabase-py is not implemented.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

from supabase import Client

from src.realtime.events import EventPayload

logger = logging.getLogger(__name__)

BROADCAST_EVENT = "game_event"


def channel_name(room_id: str) -> str:
    return f"room:{room_id}"


class ChannelManager:
    """Owns the per-room broadcast channels.

    Bridges the async Realtime API with the sync service by running an
    asyncio event loop in a daemon thread.
    """

    def __init__(self, client: Client) -> None:
        self._client = client
        self._channels: dict[str, Any] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        """Start the background event loop if not running."""
        with self._lock:
            if self._loop is None or not self._loop.is_running():
                self._loop = asyncio.new_event_loop()
                self._thread = threading.Thread(
                    target=self._run_loop, daemon=True, name="realtime-loop"
                )
                self._thread.start()
            return self._loop

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def broadcast(self, payload: EventPayload, timeout: float = 5.0) -> None:
        """Send an event to everyone listening on the room's channel.

        Blocks until sent or until `timeout` seconds pass; errors are
        raised to the caller, which decides whether they matter.
        """
        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(
            self._broadcast_async(payload), loop
        )
        future.result(timeout=timeout)

    async def _broadcast_async(self, payload: EventPayload) -> None:
        channel = self._channels.get(payload.room_id)
        if channel is None:
            channel = self._client.realtime.channel(channel_name(payload.room_id))
            await channel.subscribe()
            self._channels[payload.room_id] = channel
            logger.info("Joined broadcast channel for room %s", payload.room_id)
        await channel.send_broadcast(BROADCAST_EVENT, payload.to_message())

    def release(self, room_id: str) -> None:
        """Leave the room's broadcast channel, if one was joined."""
        channel = self._channels.pop(room_id, None)
        if channel is None:
            return

        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(self._leave_async(channel), loop)
        try:
            future.result(timeout=10)
        except Exception:
            logger.exception("Error leaving channel for room %s", room_id)

        logger.info("Left broadcast channel for room %s", room_id)

    async def _leave_async(self, channel: Any) -> None:
        await channel.unsubscribe()
        await self._client.realtime.remove_channel(channel)

    def release_all(self) -> None:
        for room_id in list(self._channels):
            self.release(room_id)

    @property
    def active_rooms(self) -> list[str]:
        """Room IDs with a joined broadcast channel."""
        return list(self._channels.keys())

    def shutdown(self) -> None:
        """Leave every channel, then stop the background event loop."""
        self.release_all()
        if self._loop and self._loop.is_running():
            self._loop.call_soon_threadsafe(self._loop.stop)
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5)
        self._loop = None
        self._thread = None
