"""
Can't Stop - Test Configuration and Fixtures

Common fixtures and test data for all test modules.
"""

from typing import Any, Callable
from unittest.mock import MagicMock

import pytest

from src.engine.base import CantStopState, GameData, Phase


# =============================================================================
# DICE TEST DATA
# =============================================================================

@pytest.fixture
def pairing_rolls() -> dict[str, tuple[tuple[int, ...], list[tuple[int, int]]]]:
    """
    Rolls with their three pairings, in resolver order.

    Returns:
        Dict mapping name to (dice_values, expected_pairings)
    """
    return {
        "doubles_pairs": ((3, 3, 4, 4), [(6, 8), (7, 7), (7, 7)]),
        "all_ones": ((1, 1, 1, 1), [(2, 2), (2, 2), (2, 2)]),
        "all_sixes": ((6, 6, 6, 6), [(12, 12), (12, 12), (12, 12)]),
        "straight": ((1, 2, 3, 4), [(3, 7), (4, 6), (5, 5)]),
        "unsorted_sums": ((6, 5, 1, 2), [(3, 11), (7, 7), (6, 8)]),
        "mixed": ((2, 5, 6, 1), [(7, 7), (6, 8), (3, 11)]),
    }


# =============================================================================
# GAME STATE FIXTURES
# =============================================================================

@pytest.fixture
def two_players() -> tuple[str, ...]:
    return ("alice", "bob")


@pytest.fixture
def three_players() -> tuple[str, ...]:
    return ("alice", "bob", "carol")


@pytest.fixture
def make_state(two_players) -> Callable[..., CantStopState]:
    """
    Factory for engine states.

    Keyword arguments that are not state fields are passed to GameData.
    """

    def _make(
        current: str = "alice",
        phase: Phase = Phase.ROLLING,
        turn_number: int = 1,
        participants: tuple[str, ...] | None = None,
        **data_fields: Any,
    ) -> CantStopState:
        return CantStopState(
            current_player=current,
            turn_number=turn_number,
            phase=phase,
            data=GameData(**data_fields),
            participants=participants or two_players,
        )

    return _make


# =============================================================================
# SUPABASE MOCKS
# =============================================================================

_QUERY_METHODS = ("select", "insert", "update", "upsert", "delete", "eq", "order", "limit")


@pytest.fixture
def make_table() -> Callable[..., Any]:
    """
    Factory for a mocked Supabase table whose query builder chains.

    Every builder method returns the table itself, and `execute()` returns
    an object whose `.data` is the given rows.
    """

    def _make(rows: list[dict] | None = None) -> Any:
        table = MagicMock()
        for name in _QUERY_METHODS:
            getattr(table, name).return_value = table
        table.execute.return_value = MagicMock(data=rows or [])
        return table

    return _make
