from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Protocol, Sequence

import websockets

from . import codec
from .cards import Card
from .errors import ChannelUnavailable, EncodeFailure
from .models import Command, EventType, StatusUpdate

LOGGER = logging.getLogger("cah_client")

# ProtocolClient only frames messages. Game state lives with whoever
# implements GameHandlers (see session.GameSession).


class Channel(Protocol):
    def send(self, payload: Dict[str, Any]) -> None:
        ...


class GameHandlers(Protocol):
    def on_game_joined(self, player: str, opponent: str) -> None:
        ...

    def on_got_cards(self, is_czar: bool, cards: Sequence[Card], prompt: Optional[Card]) -> None:
        ...

    def on_game_error(self, message: str) -> None:
        ...

    def on_game_status_update(self, status: StatusUpdate) -> None:
        ...

    def on_player_drop(self, player: str) -> None:
        ...

    def on_cards_played(self, card_ids: Sequence[int]) -> None:
        ...


class ProtocolClient:
    def __init__(
        self,
        handlers: GameHandlers,
        channel: Optional[Channel] = None,
        *,
        fallthrough: bool = False,
    ) -> None:
        self.handlers = handlers
        self.channel = channel
        self.fallthrough = fallthrough

    # Channel lifecycle ---------------------------------------------------

    @property
    def has_channel(self) -> bool:
        return self.channel is not None

    def attach(self, channel: Channel) -> None:
        self.channel = channel

    def detach(self) -> None:
        self.channel = None

    # Commands ------------------------------------------------------------

    def join(self, name: str) -> bool:
        """Ask the host to seat ``name`` in the current game."""
        LOGGER.debug("join: %s", name)
        return self._send("join a game", Command.JOIN, name=name)

    def leave(self, name: str) -> bool:
        LOGGER.debug("leave: %s", name)
        return self._send("leave a game", Command.DROPOUT, name=name)

    def request_hand(self, hand_size: Optional[int] = None) -> bool:
        """Ask the host to deal; cards come back later as a GOT_CARDS event."""
        LOGGER.debug("request cards (hand_size=%s)", hand_size)
        if hand_size is None:
            return self._send("request cards", Command.CARD_REQUEST)
        return self._send("request cards", Command.CARD_REQUEST, hand_size=hand_size)

    def submit_cards(self, card_ids: Iterable[int]) -> bool:
        ids = list(card_ids)
        LOGGER.debug("submit cards: %s", ids)
        return self._send("submit cards", Command.PLAY_CARDS, cards=ids)

    def _send(self, purpose: str, command: Command, **fields: Any) -> bool:
        # A dropped command must never take the session down; the player
        # retries through the UI.
        try:
            if self.channel is None:
                raise ChannelUnavailable("no channel attached")
            self.channel.send(codec.encode(command, **fields))
        except EncodeFailure:
            LOGGER.exception("Cannot create object to %s", purpose)
            return False
        except ChannelUnavailable as exc:
            LOGGER.error("Unable to %s, message stream is not attached: %s", purpose, exc)
            return False
        except (OSError, websockets.ConnectionClosed) as exc:
            LOGGER.error("Unable to send message to %s: %s", purpose, exc)
            return False
        return True

    # Inbound -------------------------------------------------------------

    def dispatch(self, payload: Any) -> int:
        """Route one inbound payload to the handler set.

        Returns the number of handler invocations, which is at most one
        unless legacy fall-through dispatch is enabled.
        """

        LOGGER.debug("onMessageReceived: %s", payload)
        invoked = 0
        for event in codec.decode(payload, fallthrough=self.fallthrough):
            if isinstance(event, codec.Malformed):
                LOGGER.warning("Unknown message: %s", payload)
                continue
            self._invoke(event)
            invoked += 1
        return invoked

    def _invoke(self, event: codec.Event) -> None:
        handlers = self.handlers
        LOGGER.debug("%s", event.tag.value if event.tag else "MALFORMED")
        if event.tag is EventType.PLAYER_JOIN:
            handlers.on_game_joined(event.player, event.opponent)
        elif event.tag is EventType.PLAYER_DROP:
            handlers.on_player_drop(event.player)
        elif event.tag is EventType.GAME_STATUS_UPDATE:
            handlers.on_game_status_update(event.status)
        elif event.tag is EventType.CARD_PLAYED:
            handlers.on_cards_played(list(event.card_ids))
        elif event.tag is EventType.GOT_CARDS:
            handlers.on_got_cards(event.is_czar, list(event.cards), event.prompt)
        else:
            handlers.on_game_error(event.message)
