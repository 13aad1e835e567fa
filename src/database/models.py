"""
Can't Stop - Database Models

Pydantic models that mirror the Supabase table schemas.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.engine.base import CantStopState, GameData, Phase


class GameRoom(BaseModel):
    """Mirrors the `game_rooms` table."""

    id: str
    room_id: str = Field(min_length=3, max_length=20)
    host_user_id: str
    status: str = "waiting"
    max_players: int = 4
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RoomParticipant(BaseModel):
    """Mirrors the `room_participants` table."""

    id: str
    room_id: str
    user_id: str
    joined_at: datetime
    is_ready: bool = False

    model_config = {"from_attributes": True}


class GameState(BaseModel):
    """Mirrors the `game_states` table."""

    id: str
    room_id: str
    current_turn_user_id: str | None = None
    turn_number: int = 1
    game_data: dict[str, Any] = Field(default_factory=dict)
    phase: Phase = Phase.ROLLING
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    def to_engine(self, participants: list[str] | tuple[str, ...]) -> CantStopState:
        """Build the engine's view of this row."""
        return CantStopState(
            current_player=self.current_turn_user_id or "",
            turn_number=self.turn_number,
            phase=self.phase,
            data=GameData.from_dict(self.game_data),
            participants=tuple(participants),
        )


class RoomWins(BaseModel):
    """Mirrors the `room_wins` table."""

    room_id: str
    user_id: str
    wins_count: int = 0
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class GameHistory(BaseModel):
    """Mirrors the `game_history` table."""

    id: str | None = None
    room_id: str
    winner_user_id: str
    participants: list[str] = Field(default_factory=list)
    game_duration_seconds: int = Field(default=0, ge=0)
    completed_at: datetime

    model_config = {"from_attributes": True}
