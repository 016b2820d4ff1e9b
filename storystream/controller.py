from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterable, Callable, Optional

from .llm_interaction.adapter import FragmentStream
from .marker import MarkerScanner
from .schemas import TurnEvent, TurnEventKind, Turn, TurnPhase, TurnResult
from .state import GameStateStore
from .status_parser import DEFAULT_MAX_HEALTH, parse_status

logger = logging.getLogger(__name__)

EventListener = Callable[[TurnEvent], None]
SourceFactory = Callable[[str], AsyncIterable[Any]]


class TurnInProgressError(RuntimeError):
    """Raised when a prompt is submitted while another turn is running."""


class TurnController:
    """
    Runs one prompt/stream/commit cycle at a time.

    Phases: IDLE -> SUBMITTING -> STREAMING -> FINALIZING -> IDLE,
    or SUBMITTING/STREAMING -> FAILED -> IDLE on a transport error, and
    FINALIZING -> FAILED -> IDLE when the reply cannot be applied.

    Every fragment re-derives the safe display string from the whole reply so
    far. The status marker is parsed and committed once, in FINALIZING.
    """

    def __init__(
        self,
        source_factory: SourceFactory,
        store: Optional[GameStateStore] = None,
        *,
        on_event: Optional[EventListener] = None,
        max_health: int = DEFAULT_MAX_HEALTH,
        verbose: bool = False,
    ) -> None:
        self.source_factory = source_factory
        self.store = store or GameStateStore()
        self.on_event = on_event
        self.max_health = max_health
        self.verbose = verbose
        self.phase = TurnPhase.IDLE
        self.turn: Optional[Turn] = None

    def is_busy(self) -> bool:
        return self.phase is not TurnPhase.IDLE

    # -----------------------

    async def submit(self, prompt: str, on_event: Optional[EventListener] = None) -> TurnResult:
        if self.is_busy():
            raise TurnInProgressError(f"A turn is already {self.phase.value}.")
        text = (prompt or "").strip()
        if not text:
            raise ValueError("Prompt must not be empty.")

        listener = on_event or self.on_event
        turn = Turn(prompt=text)
        self.turn = turn
        self._set_phase(turn, TurnPhase.SUBMITTING)
        scanner = MarkerScanner()

        try:
            async for delta in FragmentStream(self.source_factory(text)):
                if self.phase is TurnPhase.SUBMITTING:
                    self._set_phase(turn, TurnPhase.STREAMING)

                display = scanner.feed(delta)
                turn.accumulated_text = scanner.text
                logger.debug("Fragment %r (%s chars total)", delta, len(turn.accumulated_text))

                if display != turn.display_text:
                    turn.display_text = display
                    self._publish(listener, TurnEvent(kind=TurnEventKind.DISPLAY, text=display))

        except asyncio.CancelledError as exc:
            self._fail(turn, listener, exc)
            self._set_phase(turn, TurnPhase.IDLE)
            raise

        except Exception as exc:
            result = self._fail(turn, listener, exc)
            self._set_phase(turn, TurnPhase.IDLE)
            return result

        try:
            return self._finalize(turn, scanner, listener)
        except Exception as exc:
            logger.exception("Turn could not be finalized")
            return self._fail(turn, listener, exc)
        finally:
            self._set_phase(turn, TurnPhase.IDLE)

    # -----------------------

    def _finalize(self, turn: Turn, scanner: MarkerScanner, listener: Optional[EventListener]) -> TurnResult:
        self._set_phase(turn, TurnPhase.FINALIZING)
        scan = scanner.finish()

        record = None
        committed = False
        if scan.marker is not None:
            record = parse_status(scan.marker, max_health=self.max_health)
            if record.errors:
                logger.warning("Malformed status marker %r: %s", scan.marker.text, "; ".join(record.errors))
            committed = self.store.commit(record)
        elif scan.truncated:
            logger.warning("Status marker was never closed; game state unchanged")
        else:
            logger.debug("Reply carried no status marker")

        turn.display_text = scan.display
        turn.is_complete = True
        state = self.store.read()

        self._publish(listener, TurnEvent(kind=TurnEventKind.DISPLAY, text=scan.display))
        self._publish(listener, TurnEvent(kind=TurnEventKind.COMPLETED, text=scan.display, state=state))

        return TurnResult(
            prompt=turn.prompt,
            text=scan.display,
            state=state,
            committed=committed,
            record=record,
            raw_text=turn.accumulated_text,
            metadata={"version": self.store.version},
        )

    def _fail(self, turn: Turn, listener: Optional[EventListener], exc: BaseException) -> TurnResult:
        self._set_phase(turn, TurnPhase.FAILED)
        if isinstance(exc, asyncio.CancelledError):
            logger.warning("Turn cancelled after %s chars", len(turn.accumulated_text))
        else:
            logger.error("Turn failed: %s", exc)

        state = self.store.read()
        self._publish(listener, TurnEvent(kind=TurnEventKind.FAILED, text=turn.display_text, state=state, error=exc))

        return TurnResult(
            prompt=turn.prompt,
            text=turn.display_text,
            state=state,
            error=exc,
            raw_text=turn.accumulated_text,
            metadata={"version": self.store.version},
        )

    def _set_phase(self, turn: Turn, phase: TurnPhase) -> None:
        self.phase = phase
        turn.phase = phase
        if self.verbose:
            logger.info("[TURN] %s", phase.value.upper())

    @staticmethod
    def _publish(listener: Optional[EventListener], event: TurnEvent) -> None:
        if listener is None:
            return
        try:
            listener(event)
        except Exception:
            logger.exception("Turn event listener failed on %s event", event.kind.value)


__all__ = ["TurnController", "TurnInProgressError", "EventListener", "SourceFactory"]
