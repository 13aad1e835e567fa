"""
Can't Stop - Room Manager

Reads and status updates for the `game_rooms` table. Creating, joining and
leaving rooms happens in the front end, not here.
"""

from supabase import Client

from src.database.models import GameRoom
from src.engine.errors import ConcurrentModificationError

ROOM_WAITING = "waiting"
ROOM_PLAYING = "playing"
ROOM_FINISHED = "finished"


class RoomManager:
    """Manages room status in Supabase."""

    def __init__(self, client: Client) -> None:
        self.client = client
        self.table = client.table("game_rooms")

    def get_by_id(self, room_id: str) -> GameRoom | None:
        """Look up a room by its UUID."""
        data = (
            self.table
            .select("*")
            .eq("id", room_id)
            .execute()
        )
        if data.data:
            return GameRoom.model_validate(data.data[0])
        return None

    def get_by_code(self, code: str) -> GameRoom | None:
        """Look up a room by its shareable room id (case-insensitive)."""
        data = (
            self.table
            .select("*")
            .eq("room_id", code.strip().lower())
            .execute()
        )
        if data.data:
            return GameRoom.model_validate(data.data[0])
        return None

    def update_status(
        self,
        room_id: str,
        status: str,
        *,
        expected: str | None = None,
    ) -> GameRoom:
        """
        Update room status (waiting, playing, finished).

        Args:
            room_id: The room to update
            status: New status
            expected: Only update if the room currently has this status

        Raises:
            ConcurrentModificationError: If `expected` no longer matches
        """
        query = self.table.update({"status": status}).eq("id", room_id)
        if expected is not None:
            query = query.eq("status", expected)
        data = query.execute()

        if not data.data:
            raise ConcurrentModificationError(
                f"Room {room_id} is no longer {expected or 'available'}."
            )
        return GameRoom.model_validate(data.data[0])
