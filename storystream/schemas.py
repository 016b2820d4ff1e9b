from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


INITIAL_HEALTH = 100


@dataclass(frozen=True)
class GameState:
    health: int = INITIAL_HEALTH
    inventory: Tuple[str, ...] = ()

    def to_json(self) -> Dict[str, Any]:
        return {
            "health": self.health,
            "inventory": list(self.inventory),
        }

    def inventory_text(self) -> str:
        return ", ".join(self.inventory) if self.inventory else "Empty"


@dataclass(frozen=True)
class StatusRecord:
    """Parsed marker fields. ``None`` means the subfield did not parse."""
    health: Optional[int] = None
    inventory: Optional[Tuple[str, ...]] = None
    errors: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.health is None and self.inventory is None

    def to_json(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.health is not None:
            payload["health"] = self.health
        if self.inventory is not None:
            payload["inventory"] = list(self.inventory)
        if self.errors:
            payload["errors"] = list(self.errors)
        return payload


@dataclass(frozen=True)
class RawMarker:
    start: int
    end: int
    text: str
    body: str


class TurnPhase(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    FAILED = "failed"


@dataclass
class Turn:
    prompt: str
    accumulated_text: str = ""
    display_text: str = ""
    phase: TurnPhase = TurnPhase.SUBMITTING
    is_complete: bool = False


class TurnEventKind(str, Enum):
    DISPLAY = "display"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class TurnEvent:
    kind: TurnEventKind
    text: str
    state: Optional[GameState] = None
    error: Optional[BaseException] = None


@dataclass
class TurnResult:
    prompt: str
    text: str
    state: GameState
    committed: bool = False
    record: Optional[StatusRecord] = None
    error: Optional[BaseException] = None
    raw_text: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_json(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "prompt": self.prompt,
            "text": self.text,
            "state": self.state.to_json(),
            "committed": self.committed,
        }
        if self.record is not None:
            payload["record"] = self.record.to_json()
        if self.error is not None:
            payload["error"] = str(self.error)
        if self.metadata:
            payload["metadata"] = self.metadata
        return payload


__all__ = [
    "INITIAL_HEALTH",
    "GameState",
    "StatusRecord",
    "RawMarker",
    "TurnPhase",
    "Turn",
    "TurnEventKind",
    "TurnEvent",
    "TurnResult",
]
