"""
Can't Stop - Input Validation Utilities

Provides validation functions for game engine inputs. All validators
either return validated data or raise descriptive ValueError exceptions.
"""

from typing import Sequence

from src.engine.base import DICE_COUNT, DIE_FACES, MAX_PLAYERS, MIN_PLAYERS
from src.engine.board import is_valid_column
from src.engine.errors import InvalidCombinationError


def validate_dice_values(values: Sequence[int]) -> tuple[int, ...]:
    """
    Validate and normalize a roll of four dice.

    Args:
        values: Sequence of dice values to validate

    Returns:
        Validated values as a tuple

    Raises:
        ValueError: If validation fails
    """
    values_tuple = tuple(values)
    if len(values_tuple) != DICE_COUNT:
        raise ValueError(f"Exactly {DICE_COUNT} dice required, got {len(values_tuple)}.")

    for i, value in enumerate(values_tuple):
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"Die value at index {i} must be an integer, got {type(value).__name__}.")
        if not (1 <= value <= DIE_FACES):
            raise ValueError(
                f"Die value at index {i} is {value}, must be between 1 and {DIE_FACES}."
            )

    return values_tuple


def validate_combination(combination: Sequence[int]) -> tuple[int, int]:
    """
    Validate a submitted pairing and return it sorted.

    Args:
        combination: The two column sums the player picked

    Returns:
        The pairing as a sorted 2-tuple

    Raises:
        InvalidCombinationError: If it is not two column numbers
    """
    try:
        values = tuple(combination)
    except TypeError:
        raise InvalidCombinationError("Combination must be a pair of column numbers.") from None

    if len(values) != 2:
        raise InvalidCombinationError(f"Combination must have 2 sums, got {len(values)}.")

    for value in values:
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidCombinationError(
                f"Combination sums must be integers, got {type(value).__name__}."
            )
        if not is_valid_column(value):
            raise InvalidCombinationError(f"Combination sum {value} is not a column (2-12).")

    low, high = sorted(values)
    return (low, high)


def validate_player_count(count: int) -> int:
    """
    Validate number of players.

    Raises:
        ValueError: If count is not 2-4
    """
    if not isinstance(count, int):
        raise ValueError(f"Player count must be an integer, got {type(count).__name__}.")

    if not (MIN_PLAYERS <= count <= MAX_PLAYERS):
        raise ValueError(f"Player count must be {MIN_PLAYERS}-{MAX_PLAYERS}, got {count}.")

    return count


def validate_participants(participants: Sequence[str]) -> tuple[str, ...]:
    """
    Validate an ordered participant list.

    Args:
        participants: Player ids in join order

    Returns:
        The ids as a tuple, order preserved

    Raises:
        ValueError: On a bad count, empty id or duplicate id
    """
    ids = tuple(str(p) for p in participants)
    validate_player_count(len(ids))

    if any(not p for p in ids):
        raise ValueError("Participant ids must be non-empty.")
    if len(set(ids)) != len(ids):
        raise ValueError("Participant ids must be unique.")

    return ids
