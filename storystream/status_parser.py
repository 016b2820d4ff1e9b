from __future__ import annotations

import logging
from typing import List, Optional, Tuple, Union

from .marker import scan_marker
from .schemas import RawMarker, StatusRecord

logger = logging.getLogger(__name__)

HEALTH_LABEL = "HEALTH:"
INVENTORY_LABEL = "INVENTORY:"
ITEM_SEPARATOR = ","
DEFAULT_MAX_HEALTH = 9999

_DIGITS = frozenset("0123456789")


# =========================
# Record Parser
# =========================

def parse_status(
    marker: Union[RawMarker, str],
    *,
    max_health: int = DEFAULT_MAX_HEALTH,
) -> StatusRecord:
    """
    Parse a status marker into a StatusRecord.

    Each subfield degrades on its own: a bad health value leaves ``health`` as
    None but the inventory is still read, and vice versa. Never raises.
    """
    body = _marker_body(marker)
    errors: List[str] = []

    label_at = body.find(INVENTORY_LABEL)
    if label_at == -1:
        health_text = body
        inventory: Optional[Tuple[str, ...]] = None
        errors.append("missing INVENTORY field")
    else:
        health_text = body[:label_at]
        inventory = parse_inventory(body[label_at + len(INVENTORY_LABEL):])

    health, health_error = parse_health(
        health_text.strip().rstrip(ITEM_SEPARATOR),
        max_health=max_health,
    )
    if health_error:
        errors.insert(0, health_error)

    return StatusRecord(health=health, inventory=inventory, errors=tuple(errors))


# =========================
# Field Parsers
# =========================

def parse_health(text: str, *, max_health: int = DEFAULT_MAX_HEALTH) -> Tuple[Optional[int], Optional[str]]:
    stripped = text.strip()
    if not stripped.startswith(HEALTH_LABEL):
        return None, "missing HEALTH field"

    digits = stripped[len(HEALTH_LABEL):].strip()
    if not digits or not set(digits) <= _DIGITS:
        return None, f"health is not a non-negative integer: {digits!r}"

    significant = digits.lstrip("0") or "0"
    if len(significant) > len(str(max_health)):
        logger.warning("Health with %s digits above limit, clamped to %s", len(significant), max_health)
        return max_health, None

    value = int(significant)
    if value > max_health:
        logger.warning("Health %s above limit, clamped to %s", value, max_health)
        value = max_health
    return value, None


def parse_inventory(text: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in text.split(ITEM_SEPARATOR) if item.strip())


def _marker_body(marker: Union[RawMarker, str]) -> str:
    if isinstance(marker, RawMarker):
        return marker.body
    found = scan_marker(marker, complete=True).marker
    return found.body if found is not None else marker


__all__ = [
    "DEFAULT_MAX_HEALTH",
    "parse_status",
    "parse_health",
    "parse_inventory",
]
