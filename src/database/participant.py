"""
Can't Stop - Participant Manager

Read access to the `room_participants` table. Turn order is join order.
"""

from supabase import Client

from src.database.models import RoomParticipant


class ParticipantManager:
    """Reads room participants from Supabase."""

    def __init__(self, client: Client) -> None:
        self.client = client
        self.table = client.table("room_participants")

    def list_by_room(self, room_id: str) -> list[RoomParticipant]:
        """Get all participants in a room, earliest joiner first."""
        data = (
            self.table
            .select("*")
            .eq("room_id", room_id)
            .order("joined_at")
            .execute()
        )
        return [RoomParticipant.model_validate(row) for row in data.data]

    def list_user_ids(self, room_id: str) -> list[str]:
        """Player ids in join order, as used for turn rotation."""
        return [p.user_id for p in self.list_by_room(room_id)]
