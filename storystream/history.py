from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple


class History:
    """Keeps the chat transcript sent back to the generator on every turn."""

    ROLES = {"player": "user", "narrator": "assistant"}

    def __init__(self, max_turns: Optional[int] = None) -> None:
        """
        max_turns: None means unbounded; otherwise keep only the most recent N entries.
        """
        self.max_turns = max_turns
        self.turns: List[Tuple[str, str]] = []

    def add_player_turn(self, text: str) -> None:
        self._add("player", text)

    def add_dm_turn(self, text: str) -> None:
        self._add("narrator", text)

    def add_exchange(self, prompt: str, reply: str) -> None:
        self.add_player_turn(prompt)
        self.add_dm_turn(reply)

    def recent(self, limit: int | None = None) -> Sequence[Tuple[str, str]]:
        lim = limit or self.max_turns
        return self.turns[-lim:] if lim else list(self.turns)

    def as_messages(self, system_prompt: str = "", limit: int | None = None) -> List[Dict[str, str]]:
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        for role, content in self.recent(limit):
            messages.append({"role": self.ROLES[role], "content": content})
        return messages

    def clear(self) -> None:
        self.turns = []

    def _add(self, role: str, content: str) -> None:
        text = content.strip()
        if not text:
            return
        self.turns.append((role, text))
        if self.max_turns is not None and len(self.turns) > self.max_turns:
            self.turns = self.turns[-self.max_turns :]


__all__ = ["History"]
