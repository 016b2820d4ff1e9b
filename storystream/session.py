from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from .config import Settings
from .controller import EventListener, TurnController
from .history import History
from .llm_interaction.adapter import LLMAdapter
from .llm_interaction.prompt_texts import DUNGEON_MASTER_PROMPT, START_PROMPT
from .schemas import GameState, TurnResult
from .state import GameStateStore

logger = logging.getLogger(__name__)


class GameSession:
    """One adventure: chat transcript, game state and the turn controller."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        adapter: Optional[LLMAdapter] = None,
        system_prompt: str = DUNGEON_MASTER_PROMPT,
        on_event: Optional[EventListener] = None,
    ) -> None:

        self.settings = settings or Settings()
        self.system_prompt = system_prompt
        self.history = History(max_turns=self.settings.history_turns)
        self.store = GameStateStore()
        self.turn_index = 0

        self.adapter = adapter or LLMAdapter(
            model=self.settings.model,
            host=self.settings.host,
            default_options=self.settings.llm_options(),
            max_attempts=self.settings.max_attempts,
            verbose=self.settings.verbose,
        )

        self.controller = TurnController(
            self._reply_stream,
            self.store,
            on_event=on_event,
            max_health=self.settings.max_health,
            verbose=self.settings.verbose,
        )

    # -----------------------

    def is_busy(self) -> bool:
        return self.controller.is_busy()

    def state(self) -> GameState:
        return self.store.read()

    async def start(self, on_event: Optional[EventListener] = None) -> TurnResult:
        """Ask the Dungeon Master for the opening scene."""
        return await self.submit(START_PROMPT, on_event)

    async def submit(self, prompt: str, on_event: Optional[EventListener] = None) -> TurnResult:
        result = await self.controller.submit(prompt, on_event)
        if result.ok:
            self.turn_index += 1
        return result

    def reset(self) -> None:
        if self.is_busy():
            raise RuntimeError("Cannot reset while a turn is running.")
        self.history.clear()
        self.store.reset()
        self.turn_index = 0

    def snapshot(self) -> Dict[str, Any]:
        history: List[Dict[str, str]] = [
            {"role": role, "content": content}
            for role, content in self.history.turns
        ]
        return {
            "turn": self.turn_index,
            "version": self.store.version,
            "state": self.store.read().to_json(),
            "history": history,
        }

    # -----------------------

    async def _reply_stream(self, prompt: str) -> AsyncIterator[str]:
        messages = self.history.as_messages(self.system_prompt)
        messages.append({"role": "user", "content": prompt})

        reply: List[str] = []
        async for delta in self.adapter.stream_chat("narrate", messages):
            reply.append(delta)
            yield delta

        # Only finished exchanges go into the transcript.
        self.history.add_exchange(prompt, "".join(reply))
        logger.debug("History now holds %s entries", len(self.history.turns))


__all__ = ["GameSession"]
