# storystream/llm_interaction/__init__.py

"""
1) Adapter -------- How to talk to the model
2) Prompt Texts --- What instructions to give


adapter.py
"How we talk to LLMs"
It is the transport + normalization layer.
Given a chat transcript, how do we get a stream of text deltas from a model?
Nothing else in the system knows about Ollama, everything else just iterates:
async for delta in adapter.stream_chat(stage, messages)
FragmentStream also wraps any other async source (tests, replays) the same way.


prompt_texts.py
"What instructions we give to LLMs"
The Dungeon Master system instruction, including the status marker contract
the rest of the package relies on, and the opening prompt of a session.
"""

from .adapter import FragmentStream, LLMAdapter, LLMError, extract_fragment_text
from .prompt_texts import DUNGEON_MASTER_PROMPT, START_PROMPT

__all__ = [
    "FragmentStream",
    "LLMAdapter",
    "LLMError",
    "extract_fragment_text",
    "DUNGEON_MASTER_PROMPT",
    "START_PROMPT",
]
