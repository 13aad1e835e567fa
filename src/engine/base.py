"""
Can't Stop - Game Engine Base Classes

This module defines the foundational data structures and enums used throughout
the game engine. All classes are immutable (frozen dataclasses) so the engine
can hand back a new state without ever touching the one it was given.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Sequence


MIN_PLAYERS = 2
MAX_PLAYERS = 4
DICE_COUNT = 4
DIE_FACES = 6
MAX_TEMP_MARKERS = 3
WINNING_COLUMNS = 3


class Phase(Enum):
    """Phase of the current turn, as stored in `game_states.phase`."""
    ROLLING = "rolling"
    CHOOSING = "choosing"
    DECIDING = "deciding"
    BUSTING = "busting"    # legacy rows only; Roll or Stop settles the bust
    FINISHED = "finished"


class Action(Enum):
    """Player actions accepted by the state machine."""
    ROLL = "roll"
    CHOOSE = "choose"
    CONTINUE = "continue"
    STOP = "stop"


class Outcome(Enum):
    """What a successful transition means for the caller."""
    CONTINUE = "continue"
    BUST = "bust"
    VICTORY = "victory"


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class DiceRoll:
    """
    Immutable representation of a roll of four six-sided dice.

    Attributes:
        values: Tuple of dice face values
    """
    values: tuple[int, ...]

    def __post_init__(self) -> None:
        """Validate dice count and face range."""
        if len(self.values) != DICE_COUNT:
            raise ValueError(
                f"A roll needs exactly {DICE_COUNT} dice, got {len(self.values)}."
            )
        for value in self.values:
            if not (1 <= value <= DIE_FACES):
                raise ValueError(
                    f"Invalid die value {value}. Must be between 1 and {DIE_FACES}."
                )

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, index: int) -> int:
        return self.values[index]

    @classmethod
    def from_sequence(cls, values: Sequence[int]) -> "DiceRoll":
        """Create a DiceRoll from any sequence type."""
        return cls(values=tuple(values))


@dataclass(frozen=True)
class GameLog:
    """
    A single entry of the game log.

    Attributes:
        message: Human-readable event text
        player_id: Player the event is attributed to (None for system events)
        timestamp: ISO-8601 time the entry was written
    """
    message: str
    player_id: str | None = None
    timestamp: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameLog":
        return cls(
            message=data.get("message", ""),
            player_id=data.get("playerId"),
            timestamp=data.get("timestamp"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"message": self.message}
        if self.player_id is not None:
            data["playerId"] = self.player_id
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        return data


def _int_keys(mapping: Mapping[Any, Any] | None) -> dict[int, Any]:
    """JSON object keys come back as strings; columns are integers."""
    return {int(key): value for key, value in (mapping or {}).items()}


@dataclass(frozen=True)
class GameData:
    """
    The mutable-over-time payload of a game, stored as JSON.

    Attributes:
        columns: column -> player id -> permanently banked steps
        temp_markers: column -> player id holding a climber there this turn
        temp_progress: column -> provisional steps climbed this turn
        completed_columns: column -> player id who completed it
        dice_values: The last four faces rolled this turn
        logs: Append-only game log
        selected_combination: Column touches staged for Continue/Stop
        turn_completed: column -> permanent progress before it was completed
            this turn (undone if the turn busts)
    """
    columns: dict[int, dict[str, int]] = field(default_factory=dict)
    temp_markers: dict[int, str] = field(default_factory=dict)
    temp_progress: dict[int, int] = field(default_factory=dict)
    completed_columns: dict[int, str] = field(default_factory=dict)
    dice_values: tuple[int, ...] = field(default_factory=tuple)
    logs: tuple[GameLog, ...] = field(default_factory=tuple)
    selected_combination: tuple[int, ...] | None = None
    turn_completed: dict[int, int] = field(default_factory=dict)

    def progress(self, column: int, player_id: str) -> int:
        """Permanent progress of a player in a column."""
        return self.columns.get(column, {}).get(player_id, 0)

    def effective_progress(self, column: int, player_id: str) -> int:
        """Permanent progress plus any provisional steps climbed this turn."""
        temp = 0
        if self.temp_markers.get(column) == player_id:
            temp = self.temp_progress.get(column, 0)
        return self.progress(column, player_id) + temp

    def completed_count(self, player_id: str) -> int:
        """Number of columns a player has completed."""
        return sum(1 for owner in self.completed_columns.values() if owner == player_id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "GameData":
        """Create GameData from the database JSON format."""
        data = data or {}
        columns = {
            column: {str(player): int(steps) for player, steps in (per_player or {}).items()}
            for column, per_player in _int_keys(data.get("columns")).items()
        }
        selected = data.get("selectedCombination")
        return cls(
            columns=columns,
            temp_markers={c: str(p) for c, p in _int_keys(data.get("tempMarkers")).items()},
            temp_progress={c: int(s) for c, s in _int_keys(data.get("tempProgress")).items()},
            completed_columns={
                c: str(p) for c, p in _int_keys(data.get("completedColumns")).items()
            },
            dice_values=tuple(data.get("diceValues") or ()),
            logs=tuple(GameLog.from_dict(entry) for entry in data.get("logs") or ()),
            selected_combination=tuple(selected) if selected else None,
            turn_completed={c: int(s) for c, s in _int_keys(data.get("turnCompleted")).items()},
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the database JSON format."""
        data: dict[str, Any] = {
            "columns": {
                str(column): dict(per_player)
                for column, per_player in sorted(self.columns.items())
            },
            "tempMarkers": {str(c): p for c, p in sorted(self.temp_markers.items())},
            "tempProgress": {str(c): s for c, s in sorted(self.temp_progress.items())},
            "completedColumns": {
                str(c): p for c, p in sorted(self.completed_columns.items())
            },
            "diceValues": list(self.dice_values),
            "logs": [entry.to_dict() for entry in self.logs],
        }
        if self.selected_combination is not None:
            data["selectedCombination"] = list(self.selected_combination)
        if self.turn_completed:
            data["turnCompleted"] = {str(c): s for c, s in sorted(self.turn_completed.items())}
        return data


@dataclass(frozen=True)
class CantStopState:
    """
    Everything the state machine needs to decide the next state.

    Attributes:
        current_player: Player whose turn it is
        turn_number: Increases by one each time the turn passes
        phase: Current phase of the turn
        data: Board, markers and log
        participants: Player ids in join order (fixed for the game)
    """
    current_player: str
    turn_number: int
    phase: Phase
    data: GameData
    participants: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TransitionResult:
    """
    Result of applying one action.

    Attributes:
        state: The next state (callers persist this)
        outcome: Continue / bust / victory
        dice: The roll, for Roll actions
        legal_pairings: Pairings the player may choose from, for Roll actions
        winner: Winning player id on victory
    """
    state: CantStopState
    outcome: Outcome = Outcome.CONTINUE
    dice: DiceRoll | None = None
    legal_pairings: tuple[tuple[int, int], ...] = field(default_factory=tuple)
    winner: str | None = None

    @property
    def can_continue(self) -> bool:
        """False when the roll busted or the game is over."""
        return self.outcome == Outcome.CONTINUE
