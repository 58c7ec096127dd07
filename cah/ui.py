from __future__ import annotations

from typing import Optional, Protocol

from .cards import Card
from .models import Control


class GameUI(Protocol):
    """Callbacks a front end provides to the game session."""

    def render_current_card(self, card: Optional[Card], marked: bool) -> None:
        ...

    def render_prompt(self, card: Optional[Card]) -> None:
        ...

    def notify(self, message: str) -> None:
        ...

    def set_control_enabled(self, control: Control, enabled: bool) -> None:
        ...

    def prompt_for_player_name(self) -> str:
        ...
