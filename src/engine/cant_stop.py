"""
Can't Stop - Turn/Phase State Machine

Push-your-luck column race for 2-4 players.

Game Rules:
- Roll four D6 and split them into two pairs; each pair's sum names a column
- Place up to three climbers per turn on columns you advance this turn
- Continue to roll again, or Stop to bank the climbers' progress
- A roll with no usable pairing is a bust: the turn's unbanked progress is lost
- Reaching the top of a column claims it for good; three columns wins

The engine is stateless. Each action takes a CantStopState and returns a new
one inside a TransitionResult, or raises a CantStopError before building
anything, so a rejected action never changes the state it was given.
"""

import random
from dataclasses import replace
from typing import Callable, Sequence

from src.engine.base import (
    DICE_COUNT,
    DIE_FACES,
    WINNING_COLUMNS,
    Action,
    CantStopState,
    DiceRoll,
    GameData,
    GameLog,
    Outcome,
    Phase,
    TransitionResult,
    utc_now_iso,
)
from src.engine.board import height
from src.engine.combinations import (
    Pairing,
    all_pairings,
    has_room_for,
    is_bust,
    legal_pairings,
)
from src.engine.errors import (
    InvalidCombinationError,
    NoStagedCombinationError,
    PhaseMismatchError,
    TurnMismatchError,
)
from src.engine.rotation import next_player
from src.engine.validators import validate_combination, validate_participants

MSG_GAME_START = "Game started!"
MSG_BUST = "Bust! Unbanked progress was lost."
MSG_STOP = "Stopped and banked progress."
MSG_NEXT_TURN = "Next player's turn."


def _msg_roll(values: Sequence[int]) -> str:
    return "Rolled " + ", ".join(str(v) for v in values)


def _msg_chose(combination: Sequence[int]) -> str:
    return f"Chose {combination[0]} and {combination[1]}"


def _msg_advanced(combination: Sequence[int]) -> str:
    return f"Advanced on {combination[0]} and {combination[1]}"


def _msg_completed(column: int) -> str:
    return f"Completed column {column}"


def _msg_victory(columns: int) -> str:
    return f"Won by completing {columns} columns!"


class _Draft:
    """Mutable working copy of GameData used while building the next state."""

    def __init__(self, data: GameData) -> None:
        self.columns = {column: dict(per_player) for column, per_player in data.columns.items()}
        self.temp_markers = dict(data.temp_markers)
        self.temp_progress = dict(data.temp_progress)
        self.completed_columns = dict(data.completed_columns)
        self.dice_values = data.dice_values
        self.logs = list(data.logs)
        self.selected_combination = data.selected_combination
        self.turn_completed = dict(data.turn_completed)

    def log(self, message: str, player_id: str | None = None) -> None:
        self.logs.append(GameLog(message=message, player_id=player_id, timestamp=utc_now_iso()))

    def progress(self, column: int, player_id: str) -> int:
        return self.columns.get(column, {}).get(player_id, 0)

    def completed_count(self, player_id: str) -> int:
        return sum(1 for owner in self.completed_columns.values() if owner == player_id)

    def clear_turn(self) -> None:
        """Drop everything that only lives for the current turn."""
        self.temp_markers = {}
        self.temp_progress = {}
        self.selected_combination = None
        self.turn_completed = {}

    def freeze(self) -> GameData:
        return GameData(
            columns=self.columns,
            temp_markers=self.temp_markers,
            temp_progress=self.temp_progress,
            completed_columns=self.completed_columns,
            dice_values=tuple(self.dice_values),
            logs=tuple(self.logs),
            selected_combination=self.selected_combination,
            turn_completed=self.turn_completed,
        )


def _complete_column(draft: _Draft, column: int, player_id: str) -> None:
    draft.turn_completed[column] = draft.progress(column, player_id)
    draft.columns.setdefault(column, {})[player_id] = height(column)
    draft.completed_columns[column] = player_id
    draft.temp_markers.pop(column, None)
    draft.temp_progress.pop(column, None)
    draft.log(_msg_completed(column), player_id)


def _advance(draft: _Draft, combination: Sequence[int], player_id: str) -> None:
    """
    Climb one step per column touch.

    A pairing like (7, 7) touches column 7 twice, so completion is checked
    after every single step. Touches on a column that is already completed
    (including one completed by the first touch) are ignored, and so are
    touches that would need a fourth climber.
    """
    for column in combination:
        if column in draft.completed_columns:
            continue
        if not has_room_for(draft.temp_markers, column, player_id):
            continue
        draft.temp_markers[column] = player_id
        draft.temp_progress[column] = draft.temp_progress.get(column, 0) + 1
        if draft.progress(column, player_id) + draft.temp_progress[column] >= height(column):
            _complete_column(draft, column, player_id)


def _bank(draft: _Draft, player_id: str) -> None:
    """Turn the player's provisional steps into permanent progress."""
    for column in sorted(draft.temp_markers):
        if draft.temp_markers[column] != player_id or column in draft.completed_columns:
            continue
        steps = draft.temp_progress.get(column, 0)
        if not steps:
            continue
        banked = min(draft.progress(column, player_id) + steps, height(column))
        draft.columns.setdefault(column, {})[player_id] = banked
        if banked >= height(column):
            _complete_column(draft, column, player_id)
    draft.clear_turn()


def _undo_turn_completions(draft: _Draft, player_id: str) -> None:
    """A bust takes back every column the player topped out this turn."""
    for column, before in draft.turn_completed.items():
        draft.completed_columns.pop(column, None)
        if before:
            draft.columns[column][player_id] = before
        else:
            draft.columns[column].pop(player_id, None)
            if not draft.columns[column]:
                del draft.columns[column]
    draft.turn_completed = {}


def _pass_turn(state: CantStopState, draft: _Draft) -> CantStopState:
    """Hand the turn to the next participant in join order."""
    following = next_player(state.current_player, state.participants)
    draft.clear_turn()
    draft.dice_values = ()
    draft.log(MSG_NEXT_TURN)
    return CantStopState(
        current_player=following,
        turn_number=state.turn_number + 1,
        phase=Phase.ROLLING,
        data=draft.freeze(),
        participants=state.participants,
    )


# === Handlers, one per legal (phase, action) pair ===


def _roll(
    state: CantStopState,
    player_id: str,
    draw: Callable[[], DiceRoll],
    combination: Sequence[int] | None,
) -> TransitionResult:
    dice = draw()
    legal = legal_pairings(all_pairings(dice), state.data, player_id)

    draft = _Draft(state.data)
    draft.dice_values = dice.values
    draft.log(_msg_roll(dice.values), player_id)

    if is_bust(legal):
        _undo_turn_completions(draft, player_id)
        draft.log(MSG_BUST, player_id)
        return TransitionResult(
            state=_pass_turn(state, draft),
            outcome=Outcome.BUST,
            dice=dice,
        )

    return TransitionResult(
        state=replace(state, phase=Phase.CHOOSING, data=draft.freeze()),
        outcome=Outcome.CONTINUE,
        dice=dice,
        legal_pairings=tuple(legal),
    )


def _choose(
    state: CantStopState,
    player_id: str,
    draw: Callable[[], DiceRoll],
    combination: Sequence[int] | None,
) -> TransitionResult:
    if combination is None:
        raise InvalidCombinationError("No combination was submitted.")
    chosen = validate_combination(combination)

    if len(state.data.dice_values) != DICE_COUNT:
        raise InvalidCombinationError("There is no roll to choose a combination from.")

    legal = legal_pairings(all_pairings(state.data.dice_values), state.data, player_id)
    if chosen not in legal:
        raise InvalidCombinationError(
            f"Combination {chosen[0]}+{chosen[1]} is not available for this roll."
        )

    draft = _Draft(state.data)
    for column in chosen:
        if has_room_for(draft.temp_markers, column, player_id):
            draft.temp_markers[column] = player_id

    draft.selected_combination = chosen
    draft.log(_msg_chose(chosen), player_id)

    return TransitionResult(state=replace(state, phase=Phase.DECIDING, data=draft.freeze()))


def _continue(
    state: CantStopState,
    player_id: str,
    draw: Callable[[], DiceRoll],
    combination: Sequence[int] | None,
) -> TransitionResult:
    staged = state.data.selected_combination
    if not staged:
        raise NoStagedCombinationError("Choose a combination before continuing.")

    draft = _Draft(state.data)
    draft.log(_msg_advanced(staged), player_id)
    _advance(draft, staged, player_id)
    draft.selected_combination = None

    return TransitionResult(state=replace(state, phase=Phase.ROLLING, data=draft.freeze()))


def _finish_stop(state: CantStopState, draft: _Draft, player_id: str) -> TransitionResult:
    _bank(draft, player_id)
    draft.log(MSG_STOP, player_id)

    if draft.completed_count(player_id) >= WINNING_COLUMNS:
        draft.log(_msg_victory(WINNING_COLUMNS), player_id)
        finished = replace(state, phase=Phase.FINISHED, data=draft.freeze())
        return TransitionResult(state=finished, outcome=Outcome.VICTORY, winner=player_id)

    return TransitionResult(state=_pass_turn(state, draft))


def _stop_from_rolling(
    state: CantStopState,
    player_id: str,
    draw: Callable[[], DiceRoll],
    combination: Sequence[int] | None,
) -> TransitionResult:
    if not state.data.dice_values:
        raise PhaseMismatchError("Nothing to bank: roll at least once before stopping.")
    return _finish_stop(state, _Draft(state.data), player_id)


def _stop_from_deciding(
    state: CantStopState,
    player_id: str,
    draw: Callable[[], DiceRoll],
    combination: Sequence[int] | None,
) -> TransitionResult:
    draft = _Draft(state.data)
    if state.data.selected_combination:
        draft.log(_msg_advanced(state.data.selected_combination), player_id)
        _advance(draft, state.data.selected_combination, player_id)
    return _finish_stop(state, draft, player_id)


def _settle_bust(
    state: CantStopState,
    player_id: str,
    draw: Callable[[], DiceRoll],
    combination: Sequence[int] | None,
) -> TransitionResult:
    """Finish a turn left in the busting phase by an older build."""
    draft = _Draft(state.data)
    _undo_turn_completions(draft, player_id)
    draft.log(MSG_BUST, player_id)
    return TransitionResult(state=_pass_turn(state, draft), outcome=Outcome.BUST)


Handler = Callable[
    [CantStopState, str, Callable[[], DiceRoll], Sequence[int] | None],
    TransitionResult,
]

# Anything not listed here is rejected with PhaseMismatchError.
_TRANSITIONS: dict[tuple[Phase, Action], Handler] = {
    (Phase.ROLLING, Action.ROLL): _roll,
    (Phase.ROLLING, Action.STOP): _stop_from_rolling,
    (Phase.CHOOSING, Action.CHOOSE): _choose,
    (Phase.DECIDING, Action.CONTINUE): _continue,
    (Phase.DECIDING, Action.STOP): _stop_from_deciding,
    (Phase.BUSTING, Action.ROLL): _settle_bust,
    (Phase.BUSTING, Action.STOP): _settle_bust,
}


class CantStopEngine:
    """
    Stateless engine for Can't Stop.

    All methods are class methods operating on immutable data.
    State is passed in and returned, never stored.
    """

    NUM_DICE = DICE_COUNT
    WINNING_COLUMNS = WINNING_COLUMNS

    @classmethod
    def roll_dice(cls) -> DiceRoll:
        """Roll four D6."""
        values = tuple(random.randint(1, DIE_FACES) for _ in range(cls.NUM_DICE))
        return DiceRoll(values=values)

    @classmethod
    def new_game(cls, participants: Sequence[str]) -> CantStopState:
        """
        Build the opening state: first joiner rolls, turn 1.

        Args:
            participants: Player ids in join order (2-4)

        Returns:
            Initial CantStopState
        """
        ids = validate_participants(participants)
        data = GameData(logs=(GameLog(message=MSG_GAME_START, timestamp=utc_now_iso()),))
        return CantStopState(
            current_player=ids[0],
            turn_number=1,
            phase=Phase.ROLLING,
            data=data,
            participants=ids,
        )

    @classmethod
    def apply(
        cls,
        state: CantStopState,
        action: Action,
        player_id: str,
        *,
        dice: DiceRoll | Sequence[int] | None = None,
        roller: Callable[[], DiceRoll] | None = None,
        combination: Sequence[int] | None = None,
    ) -> TransitionResult:
        """
        Validate and apply one action.

        Args:
            state: Current state
            action: What the player wants to do
            player_id: The acting player
            dice: Optional pre-determined roll (for testing)
            roller: Dice source used when no roll is given; only called
                once the turn and phase checks have passed
            combination: The chosen pairing, for Action.CHOOSE

        Returns:
            TransitionResult with the next state

        Raises:
            TurnMismatchError: If player_id is not the turn holder
            PhaseMismatchError: If the action is not valid in this phase
            InvalidCombinationError: If the pairing is not legal for the roll
            NoStagedCombinationError: If Continue has nothing to apply
        """
        if state.current_player != player_id:
            raise TurnMismatchError(f"It is not {player_id}'s turn.")

        handler = _TRANSITIONS.get((state.phase, action))
        if handler is None:
            raise PhaseMismatchError(
                f"Cannot {action.value} while the game is {state.phase.value}."
            )

        def draw() -> DiceRoll:
            if dice is None:
                return (roller or cls.roll_dice)()
            if isinstance(dice, DiceRoll):
                return dice
            return DiceRoll.from_sequence(dice)

        return handler(state, player_id, draw, combination)

    @classmethod
    def roll(
        cls,
        state: CantStopState,
        player_id: str,
        dice: DiceRoll | Sequence[int] | None = None,
        roller: Callable[[], DiceRoll] | None = None,
    ) -> TransitionResult:
        """Roll four dice; busts pass the turn immediately."""
        return cls.apply(state, Action.ROLL, player_id, dice=dice, roller=roller)

    @classmethod
    def choose_combination(
        cls,
        state: CantStopState,
        player_id: str,
        combination: Sequence[int],
    ) -> TransitionResult:
        """Stage one of the legal pairings and place climbers."""
        return cls.apply(state, Action.CHOOSE, player_id, combination=combination)

    @classmethod
    def continue_turn(cls, state: CantStopState, player_id: str) -> TransitionResult:
        """Climb with the staged pairing and return to rolling."""
        return cls.apply(state, Action.CONTINUE, player_id)

    @classmethod
    def stop(cls, state: CantStopState, player_id: str) -> TransitionResult:
        """Bank the turn's progress, then win or pass the turn."""
        return cls.apply(state, Action.STOP, player_id)

    @classmethod
    def available_pairings(cls, state: CantStopState) -> list[Pairing]:
        """Legal pairings for the stored roll (empty outside `choosing`)."""
        if state.phase != Phase.CHOOSING or len(state.data.dice_values) != DICE_COUNT:
            return []
        return legal_pairings(
            all_pairings(state.data.dice_values), state.data, state.current_player
        )

    @classmethod
    def has_won(cls, data: GameData, player_id: str) -> bool:
        """True once the player owns the winning number of columns."""
        return data.completed_count(player_id) >= cls.WINNING_COLUMNS
