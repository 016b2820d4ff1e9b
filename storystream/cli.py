from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence, TextIO

from .config import ConfigError, Settings
from .controller import TurnInProgressError
from .schemas import GameState, TurnEvent, TurnEventKind
from .session import GameSession


def format_status(state: GameState) -> str:
    return f"[Status] Health: {state.health} | Inventory: {state.inventory_text()}"


class ConsoleRenderer:
    """Prints the safe display string as it grows."""

    def __init__(self, out: TextIO = sys.stdout) -> None:
        self.out = out
        self.shown = ""

    def __call__(self, event: TurnEvent) -> None:
        if event.kind is TurnEventKind.DISPLAY:
            self._show(event.text)
        elif event.kind is TurnEventKind.COMPLETED:
            self.out.write("\n\n")
            if event.state is not None:
                self.out.write(format_status(event.state) + "\n\n")
            self.shown = ""
        elif event.kind is TurnEventKind.FAILED:
            self._show(event.text)
            self.out.write(f"\n[Error] The Dungeon Master is unavailable: {event.error}\n\n")
            self.shown = ""
        self.out.flush()

    def _show(self, text: str) -> None:
        if text.startswith(self.shown):
            self.out.write(text[len(self.shown):])
        else:
            self.out.write("\n" + text)
        self.shown = text


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Dark fantasy text adventure narrated by an Ollama model.")
    parser.add_argument("--model", help="Ollama model id (defaults to STORYSTREAM_MODEL or llama3.1:8b)")
    parser.add_argument("--host", help="Ollama host (defaults to OLLAMA_HOST)")
    parser.add_argument("--history-turns", type=int, help="Keep only the most recent N transcript entries")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging and state snapshots")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        settings = Settings.from_env(
            model=args.model,
            host=args.host,
            history_turns=args.history_turns,
            verbose=args.verbose or None,
        )
    except ConfigError as exc:
        print(f"Initialization Failed: {exc}", file=sys.stderr)
        return 1

    renderer = ConsoleRenderer()
    session = GameSession(settings, on_event=renderer)

    print("Dungeon adventure. Type 'quit' to leave.\n")
    asyncio.run(session.start())

    while True:
        try:
            player_line = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break
        if not player_line:
            continue
        if player_line.lower() in {"quit", "exit"}:
            print("Goodbye.")
            break

        print()
        try:
            result = asyncio.run(session.submit(player_line))
        except TurnInProgressError as exc:
            logging.warning("Ignored input: %s", exc)
            continue
        except KeyboardInterrupt:
            print("\n[Interrupted]\n")
            continue

        if args.verbose:
            print(f"[Turn] {json.dumps(result.to_json(), indent=2)}")
            print(f"[Session] {json.dumps(session.snapshot(), indent=2)}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
