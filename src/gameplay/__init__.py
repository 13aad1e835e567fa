"""
Can't Stop Gameplay.

Loads rooms, applies player actions through the engine, and commits them.
"""

from src.gameplay.service import ActionResult, CantStopService

__all__ = ["ActionResult", "CantStopService"]
