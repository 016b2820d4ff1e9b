from __future__ import annotations

import logging
from dataclasses import replace

from .schemas import GameState, StatusRecord

logger = logging.getLogger(__name__)


class GameStateStore:
    """
    Owns the canonical GameState.

    ``commit`` is the only writer. It builds a complete new GameState and swaps
    it in with a single assignment, so ``read`` never sees half of an update.
    """

    def __init__(self, initial: GameState | None = None) -> None:
        self._initial = initial or GameState()
        self._state = self._initial
        self.version = 0

    def read(self) -> GameState:
        return self._state

    def commit(self, record: StatusRecord) -> bool:
        """Apply the parsed subfields of ``record``. Returns False if nothing applied."""
        if record.is_empty:
            return False

        current = self._state
        updated = current
        if record.health is not None:
            updated = replace(updated, health=record.health)
        if record.inventory is not None:
            updated = replace(updated, inventory=tuple(record.inventory))

        self._state = updated
        self.version += 1
        logger.debug("Committed state v%s: %s", self.version, updated.to_json())
        return True

    def reset(self) -> None:
        self._state = self._initial
        self.version = 0


__all__ = ["GameStateStore"]
