"""
Can't Stop - Game Service

The request-handling seam around the engine. Each action:

1. loads the room's game state and participants,
2. asks the stateless engine for the next state,
3. saves it with a compare-and-swap on `updated_at`,
4. then, independently, records wins/history and broadcasts the change.

Steps 1-3 repeat against fresh state when another request commits first.
Nothing in step 4 can undo step 3.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from httpx import RemoteProtocolError
from supabase import Client

from src.config.settings import Settings, configure_logging, get_settings
from src.database.client import get_supabase_client, reset_supabase_client
from src.database.game_state import GameStateManager
from src.database.models import GameState
from src.database.participant import ParticipantManager
from src.database.room import ROOM_FINISHED, ROOM_PLAYING, ROOM_WAITING, RoomManager
from src.database.stats import StatsManager, game_duration_seconds
from src.engine.base import (
    MAX_PLAYERS,
    MIN_PLAYERS,
    Action,
    CantStopState,
    DiceRoll,
    Outcome,
    TransitionResult,
)
from src.engine.cant_stop import CantStopEngine
from src.engine.combinations import unique_pairings
from src.engine.errors import (
    CantStopError,
    ConcurrentModificationError,
    GameNotFoundError,
    GameSetupError,
    PhaseMismatchError,
)
from src.realtime.events import EventPayload, GameEvent, event_for_transition
from src.realtime.subscriptions import ChannelManager

logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (RemoteProtocolError, ConnectionError, OSError)


def _db_retry(
    fn: Callable[..., Any],
    *args: Any,
    retries: int = 2,
    on_retry: Callable[[], None] | None = None,
    **kwargs: Any,
) -> Any:
    """Call *fn* with simple retry on transient connection errors."""
    for attempt in range(retries + 1):
        try:
            return fn(*args, **kwargs)
        except _TRANSIENT_ERRORS:
            if attempt == retries:
                raise
            logger.warning("Transient database error, retrying (%d/%d)", attempt + 1, retries)
            if on_retry is not None:
                on_retry()
            time.sleep(0.3)


@dataclass
class ActionResult:
    """Outcome of a service call: success data, or a structured failure."""

    ok: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    error_kind: str | None = None

    @classmethod
    def success(cls, **data: Any) -> "ActionResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, exc: CantStopError) -> "ActionResult":
        return cls(ok=False, error=str(exc), error_kind=exc.kind)


class CantStopService:
    """Runs player actions against persisted rooms."""

    def __init__(
        self,
        client: Client | None = None,
        *,
        settings: Settings | None = None,
        games: GameStateManager | None = None,
        participants: ParticipantManager | None = None,
        rooms: RoomManager | None = None,
        stats: StatsManager | None = None,
        channels: ChannelManager | None = None,
        roller: Callable[[], DiceRoll] | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.games = games or GameStateManager(client)
        self.participants = participants or ParticipantManager(client)
        self.rooms = rooms or RoomManager(client)
        self.stats = stats or StatsManager(client)
        self.channels = channels
        self._roller = roller or CantStopEngine.roll_dice
        self._client_factory: Callable[[], Client] | None = None

    @classmethod
    def connect(cls, **kwargs: Any) -> "CantStopService":
        """Build a service on the shared Supabase client, with broadcasting."""
        configure_logging(kwargs.get("settings"))
        client = get_supabase_client()
        kwargs.setdefault("channels", ChannelManager(client))
        service = cls(client, **kwargs)
        service._client_factory = get_supabase_client
        return service

    def _reconnect(self) -> None:
        """Rebuild the managers on a fresh client after a transport error."""
        if self._client_factory is None:
            return
        reset_supabase_client()
        client = self._client_factory()
        self.games = GameStateManager(client)
        self.participants = ParticipantManager(client)
        self.rooms = RoomManager(client)
        self.stats = StatsManager(client)

    # === Player actions ===

    def roll(self, room_id: str, player_id: str) -> ActionResult:
        """Roll four dice for the turn holder."""

        def step(state: CantStopState) -> TransitionResult:
            return CantStopEngine.roll(state, player_id, roller=self._roller)

        def describe(result: TransitionResult) -> dict[str, Any]:
            return {
                "diceValues": list(result.dice.values) if result.dice else [],
                "legalPairings": [list(p) for p in unique_pairings(result.legal_pairings)],
                "canContinue": result.can_continue,
            }

        return self._run(room_id, player_id, Action.ROLL, step, describe)

    def choose_combination(
        self,
        room_id: str,
        player_id: str,
        combination: Sequence[int],
    ) -> ActionResult:
        """Stage a pairing; it is re-validated against the stored roll."""

        def step(state: CantStopState) -> TransitionResult:
            return CantStopEngine.choose_combination(state, player_id, combination)

        return self._run(room_id, player_id, Action.CHOOSE, step, lambda result: {})

    def continue_turn(self, room_id: str, player_id: str) -> ActionResult:
        """Climb with the staged pairing and keep rolling."""

        def step(state: CantStopState) -> TransitionResult:
            return CantStopEngine.continue_turn(state, player_id)

        return self._run(room_id, player_id, Action.CONTINUE, step, lambda result: {})

    def stop(self, room_id: str, player_id: str) -> ActionResult:
        """Bank progress and end the turn, possibly winning the game."""

        def step(state: CantStopState) -> TransitionResult:
            return CantStopEngine.stop(state, player_id)

        def describe(result: TransitionResult) -> dict[str, Any]:
            data: dict[str, Any] = {"gameEnded": result.outcome == Outcome.VICTORY}
            if result.winner is not None:
                data["winner"] = result.winner
            return data

        return self._run(room_id, player_id, Action.STOP, step, describe)

    # === Game setup ===

    def start_game(self, room_id: str, host_user_id: str) -> ActionResult:
        """
        Move a waiting room into play and create its opening game state.

        The first participant to have joined takes the first turn.
        """
        try:
            room = _db_retry(self.rooms.get_by_id, room_id, on_retry=self._reconnect)
            if room is None:
                raise GameNotFoundError(f"Room {room_id} not found.")
            if room.host_user_id != host_user_id:
                raise GameSetupError("Only the host can start the game.", kind="NotHost")
            if room.status != ROOM_WAITING:
                raise PhaseMismatchError(f"Room is {room.status}, not waiting for players.")

            participants = _db_retry(
                self.participants.list_by_room, room_id, on_retry=self._reconnect
            )
            if len(participants) < MIN_PLAYERS:
                raise GameSetupError(
                    f"At least {MIN_PLAYERS} players are needed.", kind="NotEnoughPlayers"
                )
            if len(participants) > min(MAX_PLAYERS, room.max_players):
                raise GameSetupError("Too many players in the room.", kind="TooManyPlayers")
            if not all(p.is_ready for p in participants):
                raise GameSetupError("Every player must be ready.", kind="NotAllReady")

            state = CantStopEngine.new_game([p.user_id for p in participants])
            self.rooms.update_status(room_id, ROOM_PLAYING, expected=ROOM_WAITING)
        except CantStopError as exc:
            logger.info("Start rejected for room %s: %s", room_id, exc)
            return ActionResult.failure(exc)

        try:
            row = self.games.create(room_id, state)
        except Exception:
            logger.exception("Could not create game state for room %s, reopening it", room_id)
            self.rooms.update_status(room_id, ROOM_WAITING, expected=ROOM_PLAYING)
            raise

        logger.info(
            "Game started in room %s with %d players, %s first",
            room_id, len(state.participants), state.current_player,
        )
        self._notify(room_id, host_user_id, GameEvent.GAME_STARTED, row)
        return ActionResult.success(firstPlayer=state.current_player)

    # === Read side ===

    def snapshot(self, room_id: str) -> dict[str, Any]:
        """Current room, participants, game state and choosable pairings.

        Callers use this to re-display the game after a rejected action.
        """
        room = _db_retry(self.rooms.get_by_id, room_id, on_retry=self._reconnect)
        participants = _db_retry(self.participants.list_by_room, room_id, on_retry=self._reconnect)
        row = _db_retry(self.games.get, room_id, on_retry=self._reconnect)

        pairings: list[list[int]] = []
        if row is not None:
            state = row.to_engine([p.user_id for p in participants])
            pairings = [list(p) for p in unique_pairings(CantStopEngine.available_pairings(state))]

        return {
            "room": room,
            "participants": participants,
            "game_state": row,
            "legal_pairings": pairings,
        }

    # === Internals ===

    def _load(self, room_id: str) -> tuple[GameState, CantStopState]:
        row = _db_retry(self.games.get, room_id, on_retry=self._reconnect)
        if row is None:
            raise GameNotFoundError(f"No game in progress for room {room_id}.")
        ids = _db_retry(self.participants.list_user_ids, room_id, on_retry=self._reconnect)
        return row, row.to_engine(ids)

    def _commit(
        self,
        room_id: str,
        step: Callable[[CantStopState], TransitionResult],
    ) -> tuple[GameState, TransitionResult]:
        """Load, transition and compare-and-swap, re-validating on conflict."""
        attempts = self.settings.max_commit_retries
        for attempt in range(1, attempts + 1):
            row, state = self._load(room_id)
            result = step(state)
            try:
                return self.games.save(row, result.state), result
            except ConcurrentModificationError:
                if attempt == attempts:
                    logger.error(
                        "Giving up on room %s after %d conflicting writes", room_id, attempts
                    )
                    raise
                logger.warning(
                    "Conflicting write in room %s, re-validating (%d/%d)",
                    room_id, attempt, attempts,
                )
        raise ConcurrentModificationError("No commit attempts were made.")

    def _run(
        self,
        room_id: str,
        player_id: str,
        action: Action,
        step: Callable[[CantStopState], TransitionResult],
        describe: Callable[[TransitionResult], dict[str, Any]],
    ) -> ActionResult:
        try:
            row, result = self._commit(room_id, step)
        except CantStopError as exc:
            logger.info(
                "Rejected %s by %s in room %s: %s", action.value, player_id, room_id, exc
            )
            return ActionResult.failure(exc)

        logger.info(
            "Room %s: %s by %s -> %s (turn %d, %s)",
            room_id, action.value, player_id, result.state.phase.value,
            result.state.turn_number, result.outcome.value,
        )

        if result.outcome == Outcome.VICTORY and result.winner is not None:
            self._record_victory(room_id, row, result)

        self._notify(room_id, player_id, event_for_transition(action, result), row)
        if result.outcome == Outcome.VICTORY and self.channels is not None:
            self.channels.release(room_id)
        return ActionResult.success(**describe(result))

    def _record_victory(
        self,
        room_id: str,
        row: GameState,
        result: TransitionResult,
    ) -> None:
        """Best-effort bookkeeping once the finished state is committed."""
        winner = result.winner
        participants = list(result.state.participants)

        try:
            self.rooms.update_status(room_id, ROOM_FINISHED)
        except Exception:
            logger.exception("Could not mark room %s finished", room_id)

        try:
            self.stats.record_win(room_id, winner)
        except Exception:
            logger.exception("Could not record win for %s in room %s", winner, room_id)

        try:
            self.stats.record_history(
                room_id, winner, participants, game_duration_seconds(row.created_at)
            )
        except Exception:
            logger.exception("Could not record history for room %s", room_id)

    def _notify(
        self,
        room_id: str,
        player_id: str,
        event: GameEvent,
        row: GameState,
    ) -> None:
        """Fire-and-forget broadcast of the committed state."""
        if self.channels is None:
            return
        payload = EventPayload(
            event=event,
            room_id=room_id,
            player_id=player_id,
            data={"game_state": row.model_dump(mode="json")},
        )
        try:
            self.channels.broadcast(payload, timeout=self.settings.broadcast_timeout)
        except Exception:
            logger.exception("Broadcast of %s failed for room %s", event.name, room_id)
