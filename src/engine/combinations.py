"""
Can't Stop - Combination Resolver

Four dice can be split into two pairs in exactly three ways. Each pair's sum
names a column. A pairing is legal when every column it names is still open
and either already carries one of the player's climbers or a new climber
could still be placed (fewer than three on the board).
"""

from typing import Iterable, Sequence

from src.engine.base import MAX_TEMP_MARKERS, DiceRoll, GameData
from src.engine.validators import validate_dice_values

Pairing = tuple[int, int]


def all_pairings(dice: DiceRoll | Sequence[int]) -> list[Pairing]:
    """
    Compute the three ways to pair four dice.

    Args:
        dice: A DiceRoll or four dice values

    Returns:
        Three sorted pairs of sums, in the order
        (d0+d1, d2+d3), (d0+d2, d1+d3), (d0+d3, d1+d2)
    """
    values = dice.values if isinstance(dice, DiceRoll) else validate_dice_values(dice)
    d0, d1, d2, d3 = values

    pairings = []
    for a, b in ((d0 + d1, d2 + d3), (d0 + d2, d1 + d3), (d0 + d3, d1 + d2)):
        pairings.append((a, b) if a <= b else (b, a))
    return pairings


def is_pairing_legal(pairing: Sequence[int], data: GameData, player_id: str) -> bool:
    """
    Check one pairing against completed columns and the climber cap.

    Each sum is judged on its own against the current board. When both sums
    need a new climber but only one is left, the pairing is still legal and
    only the first sum gets a climber when it is applied.
    """
    under_cap = len(data.temp_markers) < MAX_TEMP_MARKERS
    for column in pairing:
        if column in data.completed_columns:
            return False
        if data.temp_markers.get(column) != player_id and not under_cap:
            return False
    return True


def legal_pairings(
    pairings: Iterable[Sequence[int]],
    data: GameData,
    player_id: str,
) -> list[Pairing]:
    """
    Filter pairings down to the ones the player may apply.

    Args:
        pairings: Candidate pairings (usually from all_pairings)
        data: Current game data
        player_id: The acting player

    Returns:
        Legal pairings, order and duplicates preserved
    """
    return [
        (pairing[0], pairing[1])
        for pairing in pairings
        if is_pairing_legal(pairing, data, player_id)
    ]


def is_bust(legal: Sequence[Pairing]) -> bool:
    """A roll busts when no pairing can be applied."""
    return len(legal) == 0


def unique_pairings(pairings: Iterable[Pairing]) -> list[Pairing]:
    """Drop repeated pairings, keeping first-seen order (for display)."""
    seen: set[Pairing] = set()
    result = []
    for pairing in pairings:
        if pairing not in seen:
            seen.add(pairing)
            result.append(pairing)
    return result


def has_room_for(temp_markers: dict[int, str], column: int, player_id: str) -> bool:
    """True if the player already climbs `column` or may start a new climber there."""
    if temp_markers.get(column) == player_id:
        return True
    return column not in temp_markers and len(temp_markers) < MAX_TEMP_MARKERS
