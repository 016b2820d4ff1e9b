from __future__ import annotations

import logging
from typing import Any, AsyncIterable, AsyncIterator, Callable, Dict, List, Mapping, Optional

import ollama
from ollama import ResponseError

logger = logging.getLogger(__name__)


class LLMError(RuntimeError):
    """Raised when the language model transport fails."""


# -------------------------------------------------
# Fragment stream
# -------------------------------------------------

class FragmentStream:
    """
    Pull-based text deltas over an asynchronous fragment source.

    Source items may be plain strings, Ollama chat parts or mappings with a
    ``message.content`` field. Empty deltas are skipped. Any error raised by
    the source surfaces as LLMError; cancellation is left untouched.
    The stream is single use.
    """

    def __init__(self, source: AsyncIterable[Any]) -> None:
        self._source = source
        self._iterator: Optional[AsyncIterator[Any]] = None
        self.fragments = 0

    def __aiter__(self) -> "FragmentStream":
        return self

    async def __anext__(self) -> str:
        while True:
            try:
                if self._iterator is None:
                    self._iterator = self._source.__aiter__()
                chunk = await self._iterator.__anext__()
            except (StopAsyncIteration, LLMError):
                raise
            except Exception as exc:
                raise LLMError(f"Fragment stream failed: {exc}") from exc

            text = extract_fragment_text(chunk)
            if text:
                self.fragments += 1
                return text


def extract_fragment_text(chunk: Any) -> str:
    if chunk is None:
        return ""
    if isinstance(chunk, str):
        return chunk

    message = getattr(chunk, "message", None)
    if message is None and isinstance(chunk, Mapping):
        message = chunk.get("message")
    if not message:
        return ""

    if hasattr(message, "model_dump"):
        payload = message.model_dump(exclude_none=True)
    elif isinstance(message, Mapping):
        payload = message
    else:
        payload = {"content": getattr(message, "content", "")}

    content = payload.get("content") or ""
    if isinstance(content, list):
        content = "".join(map(str, content))
    return str(content)


# -------------------------------------------------
# Ollama gateway
# -------------------------------------------------

class LLMAdapter:
    """
    Thin gateway around the Ollama chat API for streamed replies.
    Opening a stream is retried until the first fragment arrives; after that a
    transport error ends the stream.
    """

    def __init__(
        self,
        model: str,
        *,
        host: Optional[str] = None,
        default_options: Optional[Mapping[str, Any]] = None,
        stage_options: Optional[Mapping[str, Mapping[str, Any]]] = None,
        max_attempts: int = 3,
        verbose: bool = False,
        client_factory: Optional[Callable[[Optional[str]], Any]] = None,
    ) -> None:

        self.model = model
        self.host = host
        self.default_options = dict(default_options or {})
        self.stage_options = dict(stage_options or {})
        self.max_attempts = max(1, max_attempts)
        self.verbose = verbose
        self.client_factory = client_factory or (lambda host: ollama.AsyncClient(host=host))

    # -------------------------------------------------

    def stream_chat(self, stage: str, messages: List[Dict[str, str]]) -> FragmentStream:
        return FragmentStream(self._chat_parts(stage, list(messages)))

    async def _chat_parts(self, stage: str, messages: List[Dict[str, str]]) -> AsyncIterator[Any]:
        options = self._stage_options(stage)

        if self.verbose:
            logger.info("[%s] stream requested (%s messages)", stage.upper(), len(messages))

        last_error: Optional[BaseException] = None

        for attempt in range(1, self.max_attempts + 1):
            delivered = 0
            try:
                async with self.client_factory(self.host) as client:
                    parts = await client.chat(
                        model=self.model,
                        messages=messages,
                        options=options,
                        stream=True,
                    )
                    async for part in parts:
                        delivered += 1
                        yield part
                if self.verbose:
                    logger.info("[%s] stream finished (%s parts)", stage.upper(), delivered)
                return

            except (ResponseError, ConnectionError) as exc:
                if delivered:
                    raise LLMError(f"Stage '{stage}' stream broke after {delivered} parts: {exc}") from exc
                last_error = exc
                logger.warning("[%s] attempt %s failed to open stream: %s", stage.upper(), attempt, exc)

        raise LLMError(f"Stage '{stage}' failed after {self.max_attempts} attempts.") from last_error

    # -------------------------------------------------

    def _stage_options(self, stage: str) -> Dict[str, Any]:
        options = dict(self.default_options)
        if stage in self.stage_options:
            options.update(self.stage_options[stage])
        return options


__all__ = ["LLMAdapter", "LLMError", "FragmentStream", "extract_fragment_text"]
