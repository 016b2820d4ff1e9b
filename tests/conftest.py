# tests/conftest.py
# ============================================================
# Shared pytest fixtures for all tests under tests/:
#   - scripted_source: fake fragment source for the turn controller
#   - fake_ollama: stand-in for ollama.AsyncClient with scripted replies
#   - make_session: GameSession wired to fake_ollama
# ============================================================

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pytest


# ---------- Ensure project root is importable ----------
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storystream.config import Settings  # noqa: E402
from storystream.llm_interaction.adapter import LLMAdapter  # noqa: E402
from storystream.session import GameSession  # noqa: E402


# ---------- Scripted fragment source ----------
class ScriptedSource:
    """
    Callable source factory: every call returns an async generator that yields
    the scripted fragments, then raises ``error`` if one was given.
    ``gate`` (an asyncio.Event) pauses the stream before ``pause_after`` fragments.
    """

    def __init__(
        self,
        fragments: Sequence[Any],
        *,
        error: Optional[BaseException] = None,
        gate: Optional[asyncio.Event] = None,
        pause_after: int = 0,
    ) -> None:
        self.fragments = list(fragments)
        self.error = error
        self.gate = gate
        self.pause_after = pause_after
        self.prompts: List[str] = []

    def __call__(self, prompt: str):
        self.prompts.append(prompt)
        return self._generate()

    async def _generate(self):
        for idx, fragment in enumerate(self.fragments):
            if self.gate is not None and idx == self.pause_after:
                await self.gate.wait()
            await asyncio.sleep(0)
            yield fragment
        if self.error is not None:
            raise self.error


@pytest.fixture
def scripted_source():
    def _make(fragments: Sequence[Any], **kwargs: Any) -> ScriptedSource:
        return ScriptedSource(fragments, **kwargs)
    return _make


# ---------- Fake Ollama client ----------
class FakeOllama:
    """
    Replaces ollama.AsyncClient. ``replies`` is consumed one entry per chat()
    call; each entry is a list of text parts, or an exception raised before the
    first part, or a (parts, exception) tuple raised after the parts.
    Entering and leaving the client as a context manager is counted.
    """

    def __init__(self, replies: Sequence[Any]) -> None:
        self.replies = list(replies)
        self.calls: List[Dict[str, Any]] = []
        self.hosts: List[Optional[str]] = []
        self.opened = 0
        self.closed = 0

    def factory(self, host: Optional[str]) -> "FakeOllama":
        self.hosts.append(host)
        return self

    async def __aenter__(self) -> "FakeOllama":
        self.opened += 1
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed += 1

    async def chat(self, *, model: str, messages, options=None, stream: bool = False):
        self.calls.append({
            "model": model,
            "messages": [dict(m) for m in messages],
            "options": dict(options or {}),
            "stream": stream,
        })
        if not self.replies:
            raise AssertionError("FakeOllama ran out of scripted replies.")
        reply = self.replies.pop(0)
        return self._parts(reply)

    @staticmethod
    async def _parts(reply: Any):
        if isinstance(reply, BaseException):
            raise reply
        parts, error = reply if isinstance(reply, tuple) else (reply, None)
        for text in parts:
            await asyncio.sleep(0)
            yield {"message": {"role": "assistant", "content": text}, "done": False}
        if error is not None:
            raise error


@pytest.fixture
def fake_ollama():
    def _make(replies: Sequence[Any]) -> FakeOllama:
        return FakeOllama(replies)
    return _make


@pytest.fixture
def make_session(fake_ollama):
    def _make(replies: Sequence[Any], **settings: Any):
        client = fake_ollama(replies)
        config = Settings(model="test-model", **settings)
        adapter = LLMAdapter(
            model=config.model,
            default_options=config.llm_options(),
            max_attempts=config.max_attempts,
            client_factory=client.factory,
        )
        return GameSession(config, adapter=adapter), client
    return _make
