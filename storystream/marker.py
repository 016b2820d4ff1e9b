"""
Marker scanning for streamed replies.

The generator closes every reply with a status marker such as
``[STATUS]HEALTH:80,INVENTORY:torch,rusty key[/STATUS]``. While the reply is
still streaming, nothing from the start sentinel onwards may reach the player,
and a trailing fragment that could still grow into the start sentinel
(``"[STA"``) is held back as well. Once the stream is complete the marker span
is cut out of the narrative and handed to the status parser.

Detection is a plain sentinel search. ``scan_marker`` is the pure form used for
one-off checks; ``MarkerScanner`` keeps the buffer of a live turn and only
searches the newly appended text on every fragment. Both return the same
``ScanResult`` for the same text.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .schemas import RawMarker

START_SENTINEL = "[STATUS]"
END_SENTINEL = "[/STATUS]"


@dataclass(frozen=True)
class ScanResult:
    display: str
    marker: Optional[RawMarker] = None
    has_start: bool = False

    @property
    def truncated(self) -> bool:
        """Start sentinel seen but no complete marker."""
        return self.has_start and self.marker is None


# -------------------------
# Pure scanner
# -------------------------

def scan_marker(text: str, complete: bool = False) -> ScanResult:
    return _resolve(text, text.find(START_SENTINEL), complete)


def partial_sentinel_length(text: str) -> int:
    """Length of the longest proper prefix of the start sentinel ending ``text``."""
    for size in range(len(START_SENTINEL) - 1, 0, -1):
        if text.endswith(START_SENTINEL[:size]):
            return size
    return 0


def _resolve(text: str, start: int, complete: bool) -> ScanResult:
    if start == -1:
        if complete:
            return ScanResult(display=text.strip())
        cut = len(text) - partial_sentinel_length(text)
        return ScanResult(display=text[:cut].strip())

    before = text[:start]
    if not complete:
        return ScanResult(display=before.strip(), has_start=True)

    body_start = start + len(START_SENTINEL)
    end = text.find(END_SENTINEL, body_start)
    if end == -1:
        return ScanResult(display=before.strip(), has_start=True)

    stop = end + len(END_SENTINEL)
    marker = RawMarker(
        start=start,
        end=stop,
        text=text[start:stop],
        body=text[body_start:end],
    )
    return ScanResult(
        display=(before + text[stop:]).strip(),
        marker=marker,
        has_start=True,
    )


# -------------------------
# Incremental scanner
# -------------------------

class MarkerScanner:
    """Accumulates one reply and tracks the start sentinel as text arrives."""

    def __init__(self) -> None:
        self._text = ""
        self._start = -1
        self._searched = 0

    @property
    def text(self) -> str:
        return self._text

    def feed(self, delta: str) -> str:
        """Append a fragment and return the current safe display string."""
        if delta:
            self._text += delta
            if self._start == -1:
                # A sentinel may straddle the previous fragment boundary.
                offset = max(0, self._searched - (len(START_SENTINEL) - 1))
                self._start = self._text.find(START_SENTINEL, offset)
                self._searched = len(self._text)
        return self.display()

    def display(self) -> str:
        return self.result().display

    def result(self, complete: bool = False) -> ScanResult:
        return _resolve(self._text, self._start, complete)

    def finish(self) -> ScanResult:
        return self.result(complete=True)


__all__ = [
    "START_SENTINEL",
    "END_SENTINEL",
    "ScanResult",
    "scan_marker",
    "partial_sentinel_length",
    "MarkerScanner",
]
