from __future__ import annotations

import argparse
import asyncio
import logging
import random
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Dict, List, Optional, Tuple

import websockets
from websockets.asyncio.server import ServerConnection, serve
from websockets.http11 import Request, Response

from cah import codec
from cah.cards import Card, parse_card_id
from cah.errors import DecodeFailure, EncodeFailure
from cah.models import CardType, Command, EventType, StatusUpdate

from .deck import build_deck, deal, recycle

LOGGER = logging.getLogger("cah_practice")

# PracticeHost plays the cast receiver's part so the phone client can be
# exercised end to end: one table, players seated in join order, the czar
# rotating each round and a random winner standing in for the czar's pick.

Outgoing = List[Tuple[ServerConnection, Dict[str, Any]]]


class HostError(Exception):
    def __init__(self, code: str, msg: str) -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg


@dataclass
class HostConfig:
    hand_size: int = 7
    seed: Optional[int] = None


@dataclass
class PlayerSeat:
    name: str
    websocket: ServerConnection
    hand: List[Card] = field(default_factory=list)
    awesome_points: int = 0


def event_payload(event: EventType, **fields: Any) -> Dict[str, Any]:
    return {"event": event.value.lower(), **fields}


def error_payload(code: str, msg: str) -> Dict[str, Any]:
    return event_payload(EventType.ERROR, code=code, message=msg)


class PracticeHost:
    def __init__(self, config: Optional[HostConfig] = None) -> None:
        self.config = config or HostConfig()
        self.rng = random.Random(self.config.seed)
        self.responses = build_deck(CardType.RESPONSE, rng=self.rng)
        self.prompts = build_deck(CardType.PROMPT, rng=self.rng)
        self.discards: List[Card] = []
        self.used_prompts: List[Card] = []
        self.players: Dict[str, PlayerSeat] = {}
        self.czar: Optional[str] = None
        self.prompt: Optional[Card] = None
        self.submissions: Dict[str, List[int]] = {}
        self.round_number = 0
        self.lock = asyncio.Lock()

    async def start(self, host: str = "0.0.0.0", port: int = 9876) -> None:
        async with serve(self._handle_connection, host, port, process_request=_process_request):
            LOGGER.info("Practice host listening on %s:%s", host, port)
            await asyncio.Future()

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        name: Optional[str] = None
        try:
            async for raw in websocket:
                try:
                    message = codec.loads(raw)
                except DecodeFailure as exc:
                    LOGGER.warning("Unreadable frame: %s", exc)
                    await self._send(websocket, error_payload("BAD_JSON", "Message is not a JSON object"))
                    continue
                name = await self.handle_message(websocket, message, name)
        except websockets.ConnectionClosed:
            pass
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Practice host connection crashed for %s: %s", name or "anonymous", exc)
        finally:
            if name is not None and self._seat_for(name, websocket) is not None:
                await self._deliver(await self._locked(self._drop_player, name))
            LOGGER.info("Connection closed (%s)", name or "anonymous")

    async def handle_message(
        self,
        websocket: ServerConnection,
        message: Dict[str, Any],
        name: Optional[str],
    ) -> Optional[str]:
        """Apply one command and return the player name bound to the socket."""

        command_raw = message.get("command")
        try:
            try:
                command = Command(str(command_raw).strip().upper())
            except ValueError:
                raise HostError("UNKNOWN_COMMAND", f"Unsupported command {command_raw!r}") from None

            if command is Command.JOIN:
                requested = self._require_name(message)
                if name is not None and name != requested:
                    raise HostError("ALREADY_JOINED", f"Already playing as {name}")
                outgoing = await self._locked(self._join, websocket, requested)
                name = requested
            elif command is Command.DROPOUT:
                if name is None:
                    raise HostError("NOT_JOINED", "Join the game first")
                outgoing = await self._locked(self._drop_player, name)
                name = None
            elif command is Command.CARD_REQUEST:
                seat = self._joined_seat(websocket, name)
                outgoing = await self._locked(self._deal_hand, seat)
            else:
                seat = self._joined_seat(websocket, name)
                outgoing = await self._locked(self._play_cards, seat, message.get("cards"))
        except HostError as exc:
            LOGGER.info("Rejected %s from %s: %s", command_raw, name or "anonymous", exc.code)
            outgoing = [(websocket, error_payload(exc.code, exc.msg))]
        await self._deliver(outgoing)
        return name

    # Commands ---------------------------------------------------------------

    def _join(self, websocket: ServerConnection, name: str) -> Outgoing:
        existing = self.players.get(name)
        if existing is not None and existing.websocket is not websocket:
            raise HostError("NAME_TAKEN", f"{name} is already playing")
        if existing is None:
            self.players[name] = PlayerSeat(name=name, websocket=websocket)
            LOGGER.info("%s joined (%d player(s))", name, len(self.players))
        if self.czar is None:
            self.czar = name
        if self.prompt is None:
            self._draw_prompt()
        opponents = ", ".join(other for other in self.players if other != name)
        return [(websocket, event_payload(EventType.PLAYER_JOIN, player=name, opponent=opponents))]

    def _drop_player(self, name: str) -> Outgoing:
        seat = self.players.pop(name, None)
        if seat is None:
            return []
        LOGGER.info("%s dropped out", name)
        self.discards.extend(seat.hand)
        self.submissions.pop(name, None)
        outgoing: Outgoing = [
            (other.websocket, event_payload(EventType.PLAYER_DROP, player=name)) for other in self.players.values()
        ]
        if not self.players:
            self.czar = None
            self.submissions.clear()
            return outgoing
        if self.czar == name:
            self.czar = None
            # Cards played to the departed czar's prompt stay played.
            outgoing.extend(self._resolve_round())
        elif self._round_complete():
            outgoing.extend(self._resolve_round())
        return outgoing

    def _deal_hand(self, seat: PlayerSeat) -> Outgoing:
        missing = max(0, self.config.hand_size - len(seat.hand))
        if len(self.responses) < missing:
            recycle(self.responses, self.discards, self.rng)
        try:
            dealt = deal(self.responses, min(missing, len(self.responses)))
        except ValueError as exc:
            raise HostError("DECK_EMPTY", str(exc)) from exc
        seat.hand.extend(dealt)
        cards = [card.to_payload() for card in dealt]
        if self.prompt is not None:
            cards.append(self.prompt.to_payload())
        LOGGER.debug("Dealt %d card(s) to %s", len(dealt), seat.name)
        return [(seat.websocket, event_payload(EventType.GOT_CARDS, cards=cards, czar=seat.name == self.czar))]

    def _play_cards(self, seat: PlayerSeat, raw_ids: Any) -> Outgoing:
        if seat.name == self.czar:
            raise HostError("CZAR_CANNOT_PLAY", "The Card Czar doesn't play this round")
        if seat.name in self.submissions:
            raise HostError("ALREADY_PLAYED", "You already played this round")
        if not isinstance(raw_ids, list) or not raw_ids:
            raise HostError("BAD_SCHEMA", "cards must be a non-empty list")
        try:
            card_ids = [parse_card_id(value) for value in raw_ids]
        except DecodeFailure as exc:
            raise HostError("BAD_SCHEMA", str(exc)) from exc
        needed = self.prompt.pick_count if self.prompt else 1
        if len(card_ids) != needed:
            raise HostError("WRONG_PICK_COUNT", f"Play exactly {needed} card(s)")
        held = {card.id: card for card in seat.hand}
        missing = [card_id for card_id in card_ids if card_id not in held]
        if missing:
            raise HostError("NOT_IN_HAND", f"Cards not in hand: {missing}")

        for card_id in card_ids:
            card = held[card_id]
            seat.hand.remove(card)
            self.discards.append(card)
        self.submissions[seat.name] = card_ids
        LOGGER.info("%s played %s", seat.name, card_ids)
        outgoing: Outgoing = [
            (seat.websocket, event_payload(EventType.CARD_PLAYED, cards=[str(card_id) for card_id in card_ids]))
        ]
        if self._round_complete():
            outgoing.extend(self._resolve_round())
        return outgoing

    # Round bookkeeping ------------------------------------------------------

    def _round_complete(self) -> bool:
        players = [name for name in self.players if name != self.czar]
        return bool(players) and all(name in self.submissions for name in players)

    def _resolve_round(self) -> Outgoing:
        outgoing: Outgoing = []
        contenders = sorted(name for name in self.submissions if name in self.players)
        if contenders:
            winner = self.players[self.rng.choice(contenders)]
            winner.awesome_points += 1
            LOGGER.info("Round %d won by %s", self.round_number, winner.name)
            outgoing.append(
                (winner.websocket, event_payload(EventType.GAME_STATUS_UPDATE, status_type=StatusUpdate.GOT_AWESOME.value))
            )
        self.submissions.clear()
        self.round_number += 1
        self._rotate_czar()
        self._draw_prompt()
        outgoing.extend(
            (seat.websocket, event_payload(EventType.GAME_STATUS_UPDATE, status_type=StatusUpdate.NEXT_ROUND_START.value))
            for seat in self.players.values()
        )
        return outgoing

    def _rotate_czar(self) -> None:
        names = list(self.players)
        if not names:
            self.czar = None
            return
        if self.czar not in names:
            self.czar = names[0]
            return
        self.czar = names[(names.index(self.czar) + 1) % len(names)]

    def _draw_prompt(self) -> None:
        if self.prompt is not None:
            self.used_prompts.append(self.prompt)
        if not self.prompts:
            recycle(self.prompts, self.used_prompts, self.rng)
        self.prompt = self.prompts.pop(0) if self.prompts else None

    # Helpers ----------------------------------------------------------------

    def _require_name(self, message: Dict[str, Any]) -> str:
        raw = message.get("name")
        name = raw.strip() if isinstance(raw, str) else ""
        if not name:
            raise HostError("BAD_SCHEMA", "name required")
        return name

    def _seat_for(self, name: str, websocket: ServerConnection) -> Optional[PlayerSeat]:
        seat = self.players.get(name)
        if seat is None or seat.websocket is not websocket:
            return None
        return seat

    def _joined_seat(self, websocket: ServerConnection, name: Optional[str]) -> PlayerSeat:
        seat = self._seat_for(name, websocket) if name is not None else None
        if seat is None:
            raise HostError("NOT_JOINED", "Join the game first")
        return seat

    async def _locked(self, func, *args) -> Outgoing:
        async with self.lock:
            return func(*args)

    async def _deliver(self, outgoing: Outgoing) -> None:
        for websocket, payload in outgoing:
            await self._send(websocket, payload)

    async def _send(self, websocket: ServerConnection, payload: Dict[str, Any]) -> None:
        try:
            await websocket.send(codec.dumps(payload))
        except websockets.ConnectionClosed:
            pass
        except EncodeFailure:
            LOGGER.exception("Cannot encode %s", payload)


def _process_request(connection: ServerConnection, request: Request) -> Optional[Response]:
    """Answer plain HTTP health checks; let WebSocket upgrades through."""

    if request.headers.get("Upgrade", "").lower() == "websocket":
        return None
    if request.path in {"/", "/health", "/healthz"}:
        return connection.respond(HTTPStatus.OK, "practice host running\n")
    return connection.respond(HTTPStatus.NOT_FOUND, "not found\n")


def main() -> None:
    parser = argparse.ArgumentParser(description="Cards Against Humanity practice host")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=9876)
    parser.add_argument("--hand-size", type=int, default=7)
    parser.add_argument("--seed", type=int, default=None, help="Seed for shuffling and round winners")
    args = parser.parse_args()

    host = PracticeHost(HostConfig(hand_size=args.hand_size, seed=args.seed))
    asyncio.run(host.start(host=args.host, port=args.port))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
