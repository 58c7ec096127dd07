from __future__ import annotations

import logging
from typing import Optional, Sequence

from .cards import Card
from .client import Channel, ProtocolClient
from .config import ClientConfig
from .models import Control, MoveCard, StatusUpdate
from .state import HandState, SubmissionRefused
from .ui import GameUI

LOGGER = logging.getLogger("cah_client")


class GameSession:
    """Binds the protocol client, the hand state and a front end together.

    The session is the handler set the protocol client dispatches to, and it
    is also what the front end calls for player actions (get cards, tap,
    back/next, submit).
    """

    def __init__(self, ui: GameUI, config: Optional[ClientConfig] = None) -> None:
        self.ui = ui
        self.config = config or ClientConfig()
        self.state = HandState()
        self.client = ProtocolClient(self, fallthrough=self.config.legacy_fallthrough)

    @property
    def player_name(self) -> str:
        return self.config.player_name

    # Lifecycle ------------------------------------------------------------

    def start(self, channel: Channel) -> None:
        self.ensure_player_name()
        self.client.attach(channel)
        self._sync_controls()
        self.client.join(self.player_name)

    def stop(self) -> None:
        if self.client.has_channel:
            self.client.leave(self.player_name)
        self.client.detach()

    def ensure_player_name(self) -> str:
        if self.config.has_placeholder_name:
            name = (self.ui.prompt_for_player_name() or "").strip()
            if name:
                self.config.player_name = name
            else:
                LOGGER.info("No player name given; keeping %s", self.config.player_name)
        return self.config.player_name

    # Player actions -------------------------------------------------------

    def request_cards(self) -> bool:
        if not self.state.controls()[Control.GET_CARDS]:
            self.ui.notify("Wait for the next round before asking for more cards.")
            return False
        return self.client.request_hand(self.config.hand_size)

    def tap(self) -> None:
        marked = self.state.toggle_mark()
        if marked is None:
            self.ui.notify("You don't have any cards yet.")
            return
        self.show_current_card()

    def back(self) -> None:
        self._move(MoveCard.BACK)

    def next(self) -> None:
        self._move(MoveCard.NEXT)

    def submit(self) -> bool:
        """Send the marked cards. Marks are dropped whether or not the send works."""

        try:
            card_ids = self.state.take_submission()
        except SubmissionRefused as exc:
            self.ui.notify(_refusal_message(exc))
            return False

        sent = self.client.submit_cards(card_ids)
        if not sent:
            LOGGER.warning("Submission of %s was not delivered", card_ids)
        self.show_current_card()
        self._sync_controls()
        return sent

    # Protocol handlers ----------------------------------------------------

    def on_game_joined(self, player: str, opponent: str) -> None:
        LOGGER.info("Game joined as %s (opponent=%s)", player, opponent or "-")
        self._sync_controls()
        self.ui.notify(f"Welcome to the game, {player}")

    def on_got_cards(self, is_czar: bool, cards: Sequence[Card], prompt: Optional[Card]) -> None:
        LOGGER.info("onGotCards: %d card(s), czar=%s", len(cards), is_czar)
        self.state.on_got_cards(is_czar, cards, prompt)
        self.show_current_card()
        self.ui.notify(f"Received {len(cards)} new cards.")
        if is_czar:
            self.ui.notify("You're the Card Czar! All hail the Czar!")
        if prompt is not None:
            self.ui.render_prompt(prompt)
        self._sync_controls()

    def on_game_error(self, message: str) -> None:
        LOGGER.error("%s", message)
        self.ui.notify(f"Something went wrong on the server: {message}")

    def on_game_status_update(self, status: StatusUpdate) -> None:
        LOGGER.info("Status update: %s", status.value)
        self.state.on_status_update(status)
        if status is StatusUpdate.NEXT_ROUND_START:
            self.ui.notify("Next round is starting.")
        elif status is StatusUpdate.GOT_AWESOME:
            self.ui.notify(f"Awesome point! You now have {self.state.awesome_points}.")
        elif status is StatusUpdate.END_GAME:
            self.ui.notify("Game over.")
            self.ui.render_prompt(None)
            self.show_current_card()
        self._sync_controls()

    def on_player_drop(self, player: str) -> None:
        LOGGER.info("Player dropped: %s", player)
        self.ui.notify(f"{player} left the game.")

    def on_cards_played(self, card_ids: Sequence[int]) -> None:
        removed = self.state.on_cards_played(card_ids)
        if removed:
            self.ui.notify("Card[s] submitted!")
        self.show_current_card()
        self._sync_controls()

    # Helpers --------------------------------------------------------------

    def _move(self, direction: MoveCard) -> None:
        if self.state.move_cursor(direction) is None:
            self.ui.notify("You don't have any cards yet.")
            return
        self.show_current_card()

    def show_current_card(self) -> None:
        snapshot = self.state.snapshot()
        card = snapshot.current_card
        self.ui.render_current_card(card, card is not None and snapshot.is_marked(card))

    def _sync_controls(self) -> None:
        for control, enabled in self.state.controls().items():
            self.ui.set_control_enabled(control, enabled)


def _refusal_message(exc: SubmissionRefused) -> str:
    if exc.reason == "czar":
        return "The Card Czar doesn't play cards this round."
    if exc.reason == "empty":
        return "You need to tap a card to mark it to be played."
    if exc.reason == "pick_count":
        return f"This round needs {exc.needed} card(s); you marked {exc.marked}."
    return "You can't submit cards right now."
