"""
Can't Stop - Win and History Records

Per-room win counters (`room_wins`) and completed-game records
(`game_history`). These outlive the game state row they were derived from.
"""

from datetime import datetime, timezone
from typing import Sequence

from supabase import Client

from src.database.models import GameHistory, RoomWins


def game_duration_seconds(started_at: datetime, finished_at: datetime | None = None) -> int:
    """Whole seconds between game start and finish, never negative."""
    finished_at = finished_at or datetime.now(timezone.utc)
    if started_at.tzinfo is None:
        started_at = started_at.replace(tzinfo=timezone.utc)
    return max(0, int((finished_at - started_at).total_seconds()))


class StatsManager:
    """Manages win counts and game history in Supabase."""

    def __init__(self, client: Client) -> None:
        self.client = client
        self.wins_table = client.table("room_wins")
        self.history_table = client.table("game_history")

    def get_wins(self, room_id: str, user_id: str) -> int:
        """Current win count of a player in a room (0 if none yet)."""
        data = (
            self.wins_table
            .select("wins_count")
            .eq("room_id", room_id)
            .eq("user_id", user_id)
            .execute()
        )
        if data.data:
            return int(data.data[0].get("wins_count") or 0)
        return 0

    def record_win(self, room_id: str, user_id: str) -> RoomWins:
        """Add one win for a player, creating the counter if needed."""
        wins = self.get_wins(room_id, user_id) + 1
        data = (
            self.wins_table
            .upsert(
                {
                    "room_id": room_id,
                    "user_id": user_id,
                    "wins_count": wins,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                on_conflict="room_id,user_id",
            )
            .execute()
        )
        return RoomWins.model_validate(data.data[0])

    def record_history(
        self,
        room_id: str,
        winner_id: str,
        participant_ids: Sequence[str],
        duration_seconds: int,
    ) -> GameHistory:
        """Append one completed-game record."""
        data = (
            self.history_table
            .insert({
                "room_id": room_id,
                "winner_user_id": winner_id,
                "participants": list(participant_ids),
                "game_duration_seconds": max(0, int(duration_seconds)),
                "completed_at": datetime.now(timezone.utc).isoformat(),
            })
            .execute()
        )
        return GameHistory.model_validate(data.data[0])

    def list_wins(self, room_id: str) -> list[RoomWins]:
        """Win counters for a room, most wins first."""
        data = (
            self.wins_table
            .select("*")
            .eq("room_id", room_id)
            .order("wins_count", desc=True)
            .execute()
        )
        return [RoomWins.model_validate(row) for row in data.data]

    def list_history(self, room_id: str, limit: int = 20) -> list[GameHistory]:
        """Most recent completed games in a room."""
        data = (
            self.history_table
            .select("*")
            .eq("room_id", room_id)
            .order("completed_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [GameHistory.model_validate(row) for row in data.data]
