"""
Can't Stop Database Layer.

Supabase integration for rooms, participants, game state and win records.
"""

from src.database.client import get_supabase_client, reset_supabase_client
from src.database.game_state import GameStateManager
from src.database.models import GameHistory, GameRoom, GameState, RoomParticipant, RoomWins
from src.database.participant import ParticipantManager
from src.database.room import RoomManager
from src.database.stats import StatsManager

__all__ = [
    "get_supabase_client",
    "reset_supabase_client",
    "GameHistory",
    "GameRoom",
    "GameState",
    "GameStateManager",
    "ParticipantManager",
    "RoomManager",
    "RoomParticipant",
    "RoomWins",
    "StatsManager",
]
