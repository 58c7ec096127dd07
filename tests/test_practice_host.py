import asyncio
import json
import logging

import pytest

from cah.codec import GotCards, decode
from cah.models import CardType
from practice.deck import PROMPT_TEXTS, RESPONSE_TEXTS, build_deck, deal
from practice.server import HostConfig, PracticeHost


# Fake sockets so we can exercise the host without opening real connections.
class DummyWebSocket:
    def __init__(self) -> None:
        self.sent: list[str] = []

    async def send(self, message: str) -> None:
        self.sent.append(message)

    def payloads(self) -> list[dict]:
        return [json.loads(raw) for raw in self.sent]

    def last(self) -> dict:
        return json.loads(self.sent[-1])


class ScriptedWebSocket(DummyWebSocket):
    """Replays inbound frames through `async for`, then ends like a closed socket."""

    def __init__(self, *frames: dict) -> None:
        super().__init__()
        self.frames = [json.dumps(frame) for frame in frames]

    async def _iterate(self):
        for frame in self.frames:
            yield frame

    def __aiter__(self):
        return self._iterate()


def command(host, websocket, name, payload):
    return asyncio.run(host.handle_message(websocket, payload, name))


def seat_players(host, *names):
    sockets = {}
    for name in names:
        websocket = DummyWebSocket()
        assert command(host, websocket, None, {"command": "JOIN", "name": name}) == name
        sockets[name] = websocket
    return sockets


def deal_all(host, sockets):
    hands = {}
    for name, websocket in sockets.items():
        command(host, websocket, name, {"command": "CARD_REQUEST"})
        (event,) = decode(websocket.last())
        assert isinstance(event, GotCards)
        hands[name] = event
    return hands


def test_build_deck_is_seeded_and_complete():
    first = build_deck(CardType.RESPONSE, seed=3)
    second = build_deck(CardType.RESPONSE, seed=3)
    assert [card.id for card in first] == [card.id for card in second]
    assert len(first) == len(RESPONSE_TEXTS)
    prompts = build_deck(CardType.PROMPT, seed=3)
    assert len(prompts) == len(PROMPT_TEXTS)
    assert all(card.is_prompt for card in prompts)


def test_deal_raises_when_deck_exhausted():
    deck = build_deck(CardType.RESPONSE, seed=1)[:2]
    deal(deck, 2)
    with pytest.raises(ValueError, match="Not enough cards"):
        deal(deck, 1)


def test_join_reports_other_players():
    host = PracticeHost(HostConfig(seed=5))
    sockets = seat_players(host, "Alice", "Bob")
    assert sockets["Bob"].last() == {"event": "player_join", "player": "Bob", "opponent": "Alice"}
    assert host.czar == "Alice"
    assert host.prompt is not None


def test_join_rejects_taken_name():
    host = PracticeHost(HostConfig(seed=5))
    seat_players(host, "Alice")
    intruder = DummyWebSocket()
    assert command(host, intruder, None, {"command": "JOIN", "name": "Alice"}) is None
    assert intruder.last()["code"] == "NAME_TAKEN"


def test_commands_require_join():
    host = PracticeHost(HostConfig(seed=5))
    websocket = DummyWebSocket()
    command(host, websocket, None, {"command": "CARD_REQUEST"})
    assert websocket.last() == {"event": "error", "code": "NOT_JOINED", "message": "Join the game first"}
    command(host, websocket, None, {"command": "SHUFFLE"})
    assert websocket.last()["code"] == "UNKNOWN_COMMAND"


def test_card_request_deals_hand_with_prompt_and_czar_flag():
    host = PracticeHost(HostConfig(hand_size=5, seed=5))
    sockets = seat_players(host, "Alice", "Bob")
    hands = deal_all(host, sockets)
    assert len(hands["Alice"].cards) == 5
    assert hands["Alice"].is_czar is True
    assert hands["Bob"].is_czar is False
    assert hands["Bob"].prompt == host.prompt
    command(host, sockets["Bob"], "Bob", {"command": "CARD_REQUEST"})
    (event,) = decode(sockets["Bob"].last())
    assert event.cards == ()


def test_play_cards_validates_submission():
    host = PracticeHost(HostConfig(seed=5))
    sockets = seat_players(host, "Alice", "Bob", "Cy")
    hands = deal_all(host, sockets)
    needed = host.prompt.pick_count

    command(host, sockets["Alice"], "Alice", {"command": "PLAY_CARDS", "cards": [hands["Alice"].cards[0].id]})
    assert sockets["Alice"].last()["code"] == "CZAR_CANNOT_PLAY"

    foreign = [card.id for card in hands["Cy"].cards[:needed]]
    command(host, sockets["Bob"], "Bob", {"command": "PLAY_CARDS", "cards": foreign})
    assert sockets["Bob"].last()["code"] == "NOT_IN_HAND"

    too_many = [card.id for card in hands["Bob"].cards[: needed + 1]]
    command(host, sockets["Bob"], "Bob", {"command": "PLAY_CARDS", "cards": too_many})
    assert sockets["Bob"].last()["code"] == "WRONG_PICK_COUNT"

    command(host, sockets["Bob"], "Bob", {"command": "PLAY_CARDS", "cards": "1"})
    assert sockets["Bob"].last()["code"] == "BAD_SCHEMA"


def test_round_resolves_once_everyone_played():
    host = PracticeHost(HostConfig(seed=5))
    sockets = seat_players(host, "Alice", "Bob")
    hands = deal_all(host, sockets)
    first_prompt = host.prompt
    played = [card.id for card in hands["Bob"].cards[: first_prompt.pick_count]]

    command(host, sockets["Bob"], "Bob", {"command": "PLAY_CARDS", "cards": played})

    events = sockets["Bob"].payloads()[-3:]
    assert events[0] == {"event": "card_played", "cards": [str(card_id) for card_id in played]}
    assert events[1] == {"event": "game_status_update", "status_type": "GOT_AWESOME"}
    assert events[2] == {"event": "game_status_update", "status_type": "NEXT_ROUND_START"}
    assert sockets["Alice"].last() == events[2]
    assert host.czar == "Bob"
    assert host.prompt != first_prompt
    assert host.players["Bob"].awesome_points == 1
    assert host.round_number == 1


def test_dropout_notifies_others_and_rotates_czar():
    host = PracticeHost(HostConfig(seed=5))
    sockets = seat_players(host, "Alice", "Bob", "Cy")
    assert command(host, sockets["Alice"], "Alice", {"command": "DROPOUT", "name": "Alice"}) is None
    assert "Alice" not in host.players
    assert {"event": "player_drop", "player": "Alice"} in sockets["Bob"].payloads()
    assert host.czar in {"Bob", "Cy"}


def test_connection_crash_is_logged_and_seat_released(monkeypatch, caplog):
    host = PracticeHost(HostConfig(seed=5))

    def boom(seat):
        raise RuntimeError("deck on fire")

    monkeypatch.setattr(host, "_deal_hand", boom)
    websocket = ScriptedWebSocket({"command": "JOIN", "name": "Alice"}, {"command": "CARD_REQUEST"})
    with caplog.at_level(logging.ERROR, logger="cah_practice"):
        asyncio.run(host._handle_connection(websocket))
    assert "Practice host connection crashed for Alice" in caplog.text
    assert "deck on fire" in caplog.text
    assert "Alice" not in host.players
