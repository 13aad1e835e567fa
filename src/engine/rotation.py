"""
Can't Stop - Turn Rotation

Strict round-robin by join order.
"""

from typing import Sequence


def next_player(current_player: str, participants: Sequence[str]) -> str:
    """
    Return the player who acts after `current_player`.

    Args:
        current_player: Player whose turn is ending
        participants: Player ids in join order

    Returns:
        The next player id, wrapping from last to first

    Raises:
        ValueError: If the list is empty or does not contain the player
    """
    if not participants:
        raise ValueError("Cannot rotate turns without participants.")

    try:
        index = list(participants).index(current_player)
    except ValueError:
        raise ValueError(f"Player {current_player} is not a participant.") from None

    return participants[(index + 1) % len(participants)]
