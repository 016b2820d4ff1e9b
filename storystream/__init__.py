"""Streamed text-adventure turns with an embedded game status marker."""

from .controller import TurnController, TurnInProgressError
from .marker import MarkerScanner, scan_marker
from .schemas import GameState, StatusRecord, TurnEvent, TurnEventKind, TurnPhase, TurnResult
from .session import GameSession
from .state import GameStateStore
from .status_parser import parse_status

__all__ = [
    "GameSession",
    "GameState",
    "GameStateStore",
    "MarkerScanner",
    "StatusRecord",
    "TurnController",
    "TurnEvent",
    "TurnEventKind",
    "TurnInProgressError",
    "TurnPhase",
    "TurnResult",
    "parse_status",
    "scan_marker",
]
