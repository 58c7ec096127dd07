from __future__ import annotations

import asyncio
import logging
import sys
from typing import Callable, Dict, Optional, TextIO

from .cards import Card
from .channel import WebSocketChannel
from .config import ClientConfig
from .models import Control
from .session import GameSession

LOGGER = logging.getLogger("cah_client")

PROMPT = "[g]et [t]ap [b]ack [n]ext [s]ubmit [h]elp [q]uit > "

# ConsoleUI stands in for the phone screen: cards are printed, buttons are
# letters typed at the prompt.


class ConsoleUI:
    def __init__(self, out: Optional[TextIO] = None, read_line: Callable[[str], str] = input) -> None:
        self.out = out or sys.stdout
        self.read_line = read_line
        self.enabled: Dict[Control, bool] = {control: False for control in Control}

    def render_current_card(self, card: Optional[Card], marked: bool) -> None:
        if card is None:
            self._print("(no cards in hand)")
            return
        star = "*" if marked else " "
        self._print(f"[{star}] #{card.id}: {card.content}")

    def render_prompt(self, card: Optional[Card]) -> None:
        if card is None:
            self._print("Prompt: --")
            return
        self._print(f"Prompt: {card.content} (pick {card.pick_count})")

    def notify(self, message: str) -> None:
        self._print(f">>> {message}")

    def set_control_enabled(self, control: Control, enabled: bool) -> None:
        self.enabled[control] = enabled

    def prompt_for_player_name(self) -> str:
        return self.read_line("Player name: ").strip()

    def _print(self, text: str) -> None:
        print(text, file=self.out)


def print_help(ui: ConsoleUI) -> None:
    ui.notify("g: get cards | t: mark/unmark the shown card | b/n: previous/next card")
    ui.notify("s: submit marked cards | q: leave the game")
    available = ", ".join(control.value for control, on in ui.enabled.items() if on) or "none"
    ui.notify(f"Enabled: {available}")


def handle_command(session: GameSession, ui: ConsoleUI, text: str) -> bool:
    """Run one typed command. Returns False when the player wants to quit."""

    choice = text.strip().lower()[:1]
    if not choice:
        session.show_current_card()
    elif choice == "q":
        return False
    elif choice == "g":
        session.request_cards()
    elif choice == "t":
        session.tap()
    elif choice == "b":
        session.back()
    elif choice == "n":
        session.next()
    elif choice == "s":
        session.submit()
    elif choice == "h":
        print_help(ui)
    else:
        ui.notify(f"Unknown command '{text.strip()}', press h for help.")
    return True


async def run_console(config: ClientConfig, ui: Optional[ConsoleUI] = None) -> None:
    ui = ui or ConsoleUI()
    session = GameSession(ui, config)
    session.ensure_player_name()
    channel = WebSocketChannel(config.url)
    reader = asyncio.create_task(
        channel.run(session.client.dispatch, on_open=lambda: session.start(channel))
    )
    loop = asyncio.get_running_loop()
    try:
        while not reader.done():
            line = await loop.run_in_executor(None, ui.read_line, PROMPT)
            if reader.done():
                break
            if not handle_command(session, ui, line):
                break
    except (EOFError, KeyboardInterrupt):
        LOGGER.info("Input closed")
    finally:
        session.stop()
        await channel.close()
        if not reader.done():
            reader.cancel()
        try:
            await reader
        except asyncio.CancelledError:
            pass
        except OSError as exc:
            LOGGER.error("Failed to connect to %s: %s", config.url, exc)
