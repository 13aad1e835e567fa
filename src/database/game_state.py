"""
Can't Stop - Game State Manager

CRUD operations for the `game_states` table.

`save` is a compare-and-swap: the UPDATE only matches the row if its
`updated_at` is still the value that was read, so two racing requests can
never both commit against the same stale state.
"""

import logging

from supabase import Client

from src.database.models import GameState
from src.engine.base import CantStopState, utc_now_iso
from src.engine.errors import ConcurrentModificationError

logger = logging.getLogger(__name__)


def _row_values(state: CantStopState) -> dict:
    return {
        "current_turn_user_id": state.current_player,
        "turn_number": state.turn_number,
        "game_data": state.data.to_dict(),
        "phase": state.phase.value,
    }


class GameStateManager:
    """Manages active game state in Supabase."""

    def __init__(self, client: Client) -> None:
        self.client = client
        self.table = client.table("game_states")

    def create(self, room_id: str, state: CantStopState) -> GameState:
        """Insert the opening state for a room."""
        data = (
            self.table
            .insert({"room_id": room_id, **_row_values(state)})
            .execute()
        )
        return GameState.model_validate(data.data[0])

    def get(self, room_id: str) -> GameState | None:
        """Get the latest game state for a room."""
        data = (
            self.table
            .select("*")
            .eq("room_id", room_id)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if data.data:
            return GameState.model_validate(data.data[0])
        return None

    def save(self, current: GameState, state: CantStopState) -> GameState:
        """
        Write the next state if nobody else has written since `current` was read.

        Args:
            current: The row the new state was computed from
            state: The engine's next state

        Returns:
            The updated row

        Raises:
            ConcurrentModificationError: If the row changed in the meantime
        """
        data = (
            self.table
            .update({**_row_values(state), "updated_at": utc_now_iso()})
            .eq("id", current.id)
            .eq("updated_at", current.updated_at.isoformat())
            .execute()
        )
        if not data.data:
            logger.warning(
                "Game state %s for room %s changed since it was read",
                current.id, current.room_id,
            )
            raise ConcurrentModificationError(
                "The game changed while your action was processed."
            )
        return GameState.model_validate(data.data[0])

    def delete(self, room_id: str) -> None:
        """Delete game state for a room."""
        self.table.delete().eq("room_id", room_id).execute()
