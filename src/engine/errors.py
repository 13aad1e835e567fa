"""
Can't Stop - Engine Errors

Every rule violation is a ValueError subclass carrying a `kind` tag that the
service layer reports back to the caller. All of them are raised before the
engine builds a new state, so a rejected action never changes anything.
"""


class CantStopError(ValueError):
    """Base class for rejected actions."""

    kind = "CantStopError"


class TurnMismatchError(CantStopError):
    """The acting player is not the turn holder."""

    kind = "TurnMismatch"


class PhaseMismatchError(CantStopError):
    """The action is not valid in the current phase."""

    kind = "PhaseMismatch"


class InvalidCombinationError(CantStopError):
    """The chosen pairing is not in the currently legal set."""

    kind = "InvalidCombination"


class NoStagedCombinationError(CantStopError):
    """Continue was requested without a chosen combination."""

    kind = "NoStagedCombination"


class ConcurrentModificationError(CantStopError):
    """The stored state changed between load and save."""

    kind = "ConcurrentModification"


class GameNotFoundError(CantStopError):
    """No game state exists for the room."""

    kind = "GameNotFound"


class GameSetupError(CantStopError):
    """The room cannot start a game (players, readiness or host)."""

    kind = "GameSetup"

    def __init__(self, message: str, kind: str | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind
