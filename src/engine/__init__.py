"""
Can't Stop Game Engine.

Pure Python game logic with zero UI/database dependencies.
Handles dice pairing, climber placement, bust detection and victory.
"""

from src.engine.base import (
    Action,
    CantStopState,
    DiceRoll,
    GameData,
    GameLog,
    Outcome,
    Phase,
    TransitionResult,
)
from src.engine.board import COLUMN_HEIGHTS, height
from src.engine.cant_stop import CantStopEngine
from src.engine.combinations import all_pairings, legal_pairings
from src.engine.errors import (
    CantStopError,
    ConcurrentModificationError,
    GameNotFoundError,
    GameSetupError,
    InvalidCombinationError,
    NoStagedCombinationError,
    PhaseMismatchError,
    TurnMismatchError,
)
from src.engine.rotation import next_player

__all__ = [
    # Data Classes
    "CantStopState",
    "DiceRoll",
    "GameData",
    "GameLog",
    "TransitionResult",
    # Enums
    "Action",
    "Outcome",
    "Phase",
    # Board and rules
    "COLUMN_HEIGHTS",
    "height",
    "all_pairings",
    "legal_pairings",
    "next_player",
    # Engine
    "CantStopEngine",
    # Errors
    "CantStopError",
    "ConcurrentModificationError",
    "GameNotFoundError",
    "GameSetupError",
    "InvalidCombinationError",
    "NoStagedCombinationError",
    "PhaseMismatchError",
    "TurnMismatchError",
]
