"""
Can't Stop - Realtime Event Definitions

Event types and broadcast payloads for committed game actions.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from src.engine.base import Action, Outcome, TransitionResult


class GameEvent(Enum):
    """Events broadcast after a committed action."""

    GAME_STARTED = auto()
    DICE_ROLLED = auto()
    COMBINATION_CHOSEN = auto()
    PROGRESSED = auto()
    PLAYER_BUST = auto()
    TURN_ADVANCED = auto()
    GAME_WON = auto()


@dataclass
class EventPayload:
    """Wrapper for realtime event data."""

    event: GameEvent
    room_id: str
    player_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> dict[str, Any]:
        """Broadcast body."""
        return {
            "event": self.event.name.lower(),
            "roomId": self.room_id,
            "playerId": self.player_id,
            "data": self.data,
        }


_ACTION_EVENT_MAP: dict[Action, GameEvent] = {
    Action.ROLL: GameEvent.DICE_ROLLED,
    Action.CHOOSE: GameEvent.COMBINATION_CHOSEN,
    Action.CONTINUE: GameEvent.PROGRESSED,
    Action.STOP: GameEvent.TURN_ADVANCED,
}


def event_for_transition(action: Action, result: TransitionResult) -> GameEvent:
    """The event to broadcast after an action has been committed."""
    if result.outcome == Outcome.VICTORY:
        return GameEvent.GAME_WON
    if result.outcome == Outcome.BUST:
        return GameEvent.PLAYER_BUST
    return _ACTION_EVENT_MAP[action]
