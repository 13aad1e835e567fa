"""
Can't Stop - Base Classes Tests

Tests for dataclasses, enums, and validation utilities.
"""

import pytest
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
from src.engine.errors import (
    CantStopError,
    GameSetupError,
    InvalidCombinationError,
    TurnMismatchError,
)
from src.engine.rotation import next_player
from src.engine.validators import (
    validate_combination,
    validate_dice_values,
    validate_participants,
    validate_player_count,
)


class TestPhase:
    """Tests for Phase enum."""

    def test_stored_values(self):
        assert [p.value for p in Phase] == [
            "rolling", "choosing", "deciding", "busting", "finished",
        ]

    def test_from_stored_value(self):
        assert Phase("deciding") is Phase.DECIDING


class TestAction:
    def test_values(self):
        assert {a.value for a in Action} == {"roll", "choose", "continue", "stop"}


class TestDiceRoll:
    """Tests for DiceRoll dataclass."""

    def test_create_valid_roll(self):
        roll = DiceRoll(values=(1, 2, 5, 6))
        assert len(roll) == 4
        assert roll.values == (1, 2, 5, 6)

    def test_wrong_count_raises(self):
        with pytest.raises(ValueError, match="exactly 4 dice"):
            DiceRoll(values=(1, 2, 3))

    def test_invalid_value_raises(self):
        with pytest.raises(ValueError, match="Invalid die value 7"):
            DiceRoll(values=(1, 2, 3, 7))

    def test_zero_value_raises(self):
        with pytest.raises(ValueError, match="Invalid die value 0"):
            DiceRoll(values=(0, 1, 2, 3))

    def test_from_sequence_list(self):
        roll = DiceRoll.from_sequence([6, 5, 4, 3])
        assert roll.values == (6, 5, 4, 3)

    def test_indexing(self):
        roll = DiceRoll(values=(2, 4, 6, 1))
        assert roll[0] == 2
        assert roll[-1] == 1

    def test_frozen(self):
        roll = DiceRoll(values=(1, 1, 1, 1))
        with pytest.raises(AttributeError):
            roll.values = (2, 2, 2, 2)  # type: ignore[misc]


class TestGameLog:
    def test_round_trip_uses_camel_case(self):
        entry = GameLog(message="Rolled 1, 2, 3, 4", player_id="alice",
                        timestamp="2024-01-01T00:00:00+00:00")
        stored = entry.to_dict()
        assert stored == {
            "message": "Rolled 1, 2, 3, 4",
            "playerId": "alice",
            "timestamp": "2024-01-01T00:00:00+00:00",
        }
        assert GameLog.from_dict(stored) == entry

    def test_system_entry_omits_player(self):
        assert GameLog(message="Game started!").to_dict() == {"message": "Game started!"}


class TestGameData:
    """Tests for GameData JSON conversion and progress helpers."""

    @pytest.fixture
    def stored(self):
        return {
            "columns": {"7": {"alice": 4, "bob": 2}, "12": {"bob": 3}},
            "tempMarkers": {"7": "alice"},
            "tempProgress": {"7": 2},
            "completedColumns": {"12": "bob"},
            "diceValues": [3, 4, 1, 6],
            "logs": [{"message": "Game started!"}],
            "selectedCombination": [7, 7],
        }

    def test_from_dict_converts_column_keys(self, stored):
        data = GameData.from_dict(stored)
        assert data.columns == {7: {"alice": 4, "bob": 2}, 12: {"bob": 3}}
        assert data.temp_markers == {7: "alice"}
        assert data.temp_progress == {7: 2}
        assert data.completed_columns == {12: "bob"}
        assert data.dice_values == (3, 4, 1, 6)
        assert data.selected_combination == (7, 7)
        assert data.logs[0].message == "Game started!"

    def test_to_dict_writes_stored_format(self, stored):
        assert GameData.from_dict(stored).to_dict() == stored

    def test_missing_fields_default_empty(self):
        data = GameData.from_dict({})
        assert data.columns == {}
        assert data.dice_values == ()
        assert data.selected_combination is None
        assert "selectedCombination" not in data.to_dict()
        assert "turnCompleted" not in data.to_dict()

    def test_turn_completed_round_trip(self, stored):
        stored["turnCompleted"] = {"4": 6}
        data = GameData.from_dict(stored)
        assert data.turn_completed == {4: 6}
        assert data.to_dict()["turnCompleted"] == {"4": 6}

    def test_none_payload(self):
        assert GameData.from_dict(None) == GameData()

    def test_progress_defaults_to_zero(self):
        assert GameData().progress(7, "alice") == 0

    def test_effective_progress_adds_own_climber(self, stored):
        data = GameData.from_dict(stored)
        assert data.progress(7, "alice") == 4
        assert data.effective_progress(7, "alice") == 6

    def test_effective_progress_ignores_other_climber(self, stored):
        data = GameData.from_dict(stored)
        assert data.effective_progress(7, "bob") == 2

    def test_completed_count(self):
        data = GameData(completed_columns={2: "alice", 5: "bob", 9: "alice"})
        assert data.completed_count("alice") == 2
        assert data.completed_count("carol") == 0


class TestTransitionResult:
    def _state(self):
        return CantStopState(current_player="alice", turn_number=1,
                             phase=Phase.ROLLING, data=GameData())

    def test_defaults(self):
        result = TransitionResult(state=self._state())
        assert result.outcome == Outcome.CONTINUE
        assert result.can_continue is True
        assert result.legal_pairings == ()
        assert result.winner is None

    @pytest.mark.parametrize("outcome", [Outcome.BUST, Outcome.VICTORY])
    def test_cannot_continue_after_bust_or_victory(self, outcome):
        assert TransitionResult(state=self._state(), outcome=outcome).can_continue is False


class TestErrors:
    def test_errors_are_value_errors(self):
        assert issubclass(CantStopError, ValueError)
        assert issubclass(TurnMismatchError, CantStopError)

    def test_kind_tags(self):
        assert TurnMismatchError("x").kind == "TurnMismatch"
        assert InvalidCombinationError("x").kind == "InvalidCombination"

    def test_setup_error_kind_override(self):
        assert GameSetupError("x").kind == "GameSetup"
        assert GameSetupError("x", kind="NotHost").kind == "NotHost"


class TestRotation:
    def test_advances_in_join_order(self):
        assert next_player("alice", ["alice", "bob", "carol"]) == "bob"

    def test_wraps_around(self):
        assert next_player("carol", ["alice", "bob", "carol"]) == "alice"

    def test_two_players_alternate(self):
        assert next_player("bob", ("alice", "bob")) == "alice"

    def test_unknown_player_raises(self):
        with pytest.raises(ValueError, match="not a participant"):
            next_player("dave", ["alice", "bob"])

    def test_empty_list_raises(self):
        with pytest.raises(ValueError, match="without participants"):
            next_player("alice", [])


class TestValidators:
    """Tests for validation functions."""

    class TestValidateDiceValues:
        def test_valid_values(self):
            assert validate_dice_values([1, 2, 3, 6]) == (1, 2, 3, 6)

        @pytest.mark.parametrize("values", [[], [1, 2, 3], [1, 2, 3, 4, 5]])
        def test_wrong_count(self, values):
            with pytest.raises(ValueError, match="Exactly 4 dice required"):
                validate_dice_values(values)

        def test_invalid_value(self):
            with pytest.raises(ValueError, match="index 2 is 7"):
                validate_dice_values([1, 2, 7, 3])

        def test_non_integer_value(self):
            with pytest.raises(ValueError, match="must be an integer"):
                validate_dice_values([1, 2, "3", 4])

    class TestValidateCombination:
        def test_sorted(self):
            assert validate_combination([8, 6]) == (6, 8)

        def test_same_column(self):
            assert validate_combination((7, 7)) == (7, 7)

        @pytest.mark.parametrize("combination", [[7], [1, 7], [7, 13], [2, 3, 4]])
        def test_rejects_bad_shape_or_range(self, combination):
            with pytest.raises(InvalidCombinationError):
                validate_combination(combination)

        def test_rejects_non_iterable(self):
            with pytest.raises(InvalidCombinationError):
                validate_combination(7)  # type: ignore[arg-type]

        def test_rejects_bool(self):
            with pytest.raises(InvalidCombinationError):
                validate_combination([True, 7])

    class TestValidatePlayers:
        @pytest.mark.parametrize("count", [2, 3, 4])
        def test_valid_counts(self, count):
            assert validate_player_count(count) == count

        @pytest.mark.parametrize("count", [0, 1, 5])
        def test_invalid_counts(self, count):
            with pytest.raises(ValueError, match="Player count must be 2-4"):
                validate_player_count(count)

        def test_participants_keep_order(self):
            assert validate_participants(["bob", "alice"]) == ("bob", "alice")

        def test_empty_id_rejected(self):
            with pytest.raises(ValueError, match="non-empty"):
                validate_participants(["alice", ""])
