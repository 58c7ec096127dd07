from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from cah.cards import Card
from cah.config import ClientConfig
from cah.models import CardType, Control, StatusUpdate
from cah.session import GameSession


class DummyChannel:
    """Records outbound payloads instead of talking to a host."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.error = error

    def send(self, payload: Dict[str, Any]) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append(payload)


class RecordingHandlers:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    def on_game_joined(self, player: str, opponent: str) -> None:
        self.calls.append(("joined", (player, opponent)))

    def on_got_cards(self, is_czar: bool, cards: Sequence[Card], prompt: Optional[Card]) -> None:
        self.calls.append(("got_cards", (is_czar, list(cards), prompt)))

    def on_game_error(self, message: str) -> None:
        self.calls.append(("error", (message,)))

    def on_game_status_update(self, status: StatusUpdate) -> None:
        self.calls.append(("status", (status,)))

    def on_player_drop(self, player: str) -> None:
        self.calls.append(("drop", (player,)))

    def on_cards_played(self, card_ids: Sequence[int]) -> None:
        self.calls.append(("played", (list(card_ids),)))

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.calls]


class RecordingUI:
    def __init__(self, player_name: str = "Tester") -> None:
        self.player_name = player_name
        self.rendered: List[Tuple[Optional[Card], bool]] = []
        self.prompts: List[Optional[Card]] = []
        self.messages: List[str] = []
        self.controls: Dict[Control, bool] = {}
        self.name_requests = 0

    def render_current_card(self, card: Optional[Card], marked: bool) -> None:
        self.rendered.append((card, marked))

    def render_prompt(self, card: Optional[Card]) -> None:
        self.prompts.append(card)

    def notify(self, message: str) -> None:
        self.messages.append(message)

    def set_control_enabled(self, control: Control, enabled: bool) -> None:
        self.controls[control] = enabled

    def prompt_for_player_name(self) -> str:
        self.name_requests += 1
        return self.player_name


def response(card_id: int, content: Optional[str] = None) -> Card:
    return Card(id=card_id, content=content or f"Response {card_id}")


def prompt(card_id: int = 900, pick: int = 1) -> Card:
    return Card(id=card_id, content="What's that smell? ____", type=CardType.PROMPT, pick_count=pick)


def got_cards_payload(*card_ids: int, czar: bool = False, prompt_card: Optional[Card] = None) -> Dict[str, Any]:
    cards = [response(card_id).to_payload() for card_id in card_ids]
    if prompt_card is not None:
        cards.append(prompt_card.to_payload())
    return {"event": "got_cards", "cards": cards, "czar": czar}


def create_session(name: str = "Alice", **config: Any) -> Tuple[GameSession, RecordingUI, DummyChannel]:
    """A started session wired to recording fakes."""
    ui = RecordingUI()
    session = GameSession(ui, ClientConfig(player_name=name, **config))
    channel = DummyChannel()
    session.start(channel)
    return session, ui, channel
