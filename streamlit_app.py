from __future__ import annotations

import asyncio
from typing import Callable, Dict, List

import streamlit as st

from storystream.config import ConfigError, Settings
from storystream.schemas import TurnEvent, TurnEventKind, TurnResult
from storystream.session import GameSession

CURSOR = "▌"


def _config_signature(model: str) -> str:
    return model.strip()


def _stream_into_placeholder(placeholder) -> Callable[[TurnEvent], None]:
    def _on_event(event: TurnEvent) -> None:
        if event.kind is TurnEventKind.DISPLAY:
            placeholder.markdown(event.text + CURSOR)
        else:
            placeholder.markdown(event.text or "_..._")
    return _on_event


def _run_turn(session: GameSession, prompt: str | None) -> TurnResult:
    placeholder = st.empty()
    on_event = _stream_into_placeholder(placeholder)
    if prompt is None:
        return asyncio.run(session.start(on_event))
    return asyncio.run(session.submit(prompt, on_event))


def _record_result(result: TurnResult) -> None:
    messages: List[Dict[str, str]] = st.session_state.messages
    messages.append({"role": "assistant", "content": result.text})
    if not result.ok:
        st.error(f"Failed to generate a response: {result.error}")


def _initialize_session(model: str) -> None:
    try:
        settings = Settings.from_env(model=model or None)
    except ConfigError as exc:
        st.error(f"Initialization Failed: {exc}")
        st.stop()

    st.session_state.session = GameSession(settings)
    st.session_state.messages = []
    st.session_state.config_sig = _config_signature(model)
    st.session_state.needs_intro = True


def _render_status(session: GameSession) -> None:
    state = session.state()
    st.metric("Health", state.health)
    st.markdown(f"**Inventory:** {state.inventory_text()}")


def main() -> None:
    st.set_page_config(page_title="Dungeon Adventure", layout="centered")
    st.title("Dungeon Adventure")
    st.caption("Describe what you do. The Dungeon Master narrates the outcome.")

    with st.sidebar:
        st.header("Session")
        model = st.text_input("Ollama model", value=st.session_state.get("model_input", ""), key="model_input")
        start_new = st.button("Start new session")
        st.header("Status")
        status_slot = st.container()

    sig = _config_signature(model)
    if "session" not in st.session_state or start_new or st.session_state.get("config_sig") != sig:
        _initialize_session(model)

    session: GameSession = st.session_state.session

    for message in st.session_state.messages:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])

    if st.session_state.get("needs_intro"):
        st.session_state.needs_intro = False
        with st.chat_message("assistant"):
            _record_result(_run_turn(session, None))

    player_input = st.chat_input("What do you do?", disabled=session.is_busy())
    if player_input and player_input.strip():
        st.session_state.messages.append({"role": "user", "content": f"> {player_input.strip()}"})
        with st.chat_message("user"):
            st.markdown(f"> {player_input.strip()}")
        with st.chat_message("assistant"):
            _record_result(_run_turn(session, player_input))

    with status_slot:
        _render_status(session)


if __name__ == "__main__":
    main()
