from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .cards import Card, parse_card, parse_card_id
from .errors import DecodeFailure, EncodeFailure
from .models import CardType, Command, EventType, StatusUpdate

LOGGER = logging.getLogger("cah_client")

KEY_COMMAND = "command"
KEY_EVENT = "event"
KEY_NAME = "name"
KEY_CARDS = "cards"
KEY_HAND_SIZE = "hand_size"
KEY_PLAYER = "player"
KEY_OPPONENT = "opponent"
KEY_MESSAGE = "message"
KEY_STATUS_TYPE = "status_type"
KEY_CZAR = "czar"

GENERIC_ERROR_MESSAGE = "The game host sent a message that could not be read."

# Inbound events. Each carries the tag it was decoded from so the client can
# route it without isinstance chains.


@dataclass(frozen=True)
class PlayerJoined:
    tag: ClassVar[EventType] = EventType.PLAYER_JOIN
    player: str
    opponent: str = ""


@dataclass(frozen=True)
class PlayerDropped:
    tag: ClassVar[EventType] = EventType.PLAYER_DROP
    player: str


@dataclass(frozen=True)
class StatusUpdated:
    tag: ClassVar[EventType] = EventType.GAME_STATUS_UPDATE
    status: StatusUpdate


@dataclass(frozen=True)
class CardsPlayed:
    tag: ClassVar[EventType] = EventType.CARD_PLAYED
    card_ids: Tuple[int, ...]


@dataclass(frozen=True)
class GotCards:
    tag: ClassVar[EventType] = EventType.GOT_CARDS
    is_czar: bool
    cards: Tuple[Card, ...]
    prompt: Optional[Card] = None


@dataclass(frozen=True)
class ServerError:
    tag: ClassVar[EventType] = EventType.ERROR
    message: str


@dataclass(frozen=True)
class Malformed:
    tag: ClassVar[Optional[EventType]] = None
    payload: Any = field(default=None)


Event = Union[PlayerJoined, PlayerDropped, StatusUpdated, CardsPlayed, GotCards, ServerError, Malformed]


# Outbound --------------------------------------------------------------


def encode(command: Union[Command, str], **fields: Any) -> Dict[str, Any]:
    """Build a command payload; field values are passed through untouched."""

    try:
        name = Command(command).value
    except ValueError as exc:
        raise EncodeFailure(f"Unknown command: {command!r}") from exc
    payload: Dict[str, Any] = {KEY_COMMAND: name}
    for key, value in fields.items():
        if isinstance(value, (tuple, list)):
            value = list(value)
        payload[key] = value
    return payload


def dumps(payload: Mapping[str, Any]) -> str:
    try:
        return json.dumps(payload)
    except (TypeError, ValueError) as exc:
        raise EncodeFailure(f"Payload is not serializable: {exc}") from exc


def loads(raw: Union[str, bytes]) -> Dict[str, Any]:
    try:
        message = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeFailure(f"Invalid JSON frame: {exc}") from exc
    if not isinstance(message, dict):
        raise DecodeFailure("Frame is not a JSON object")
    return message


# Inbound ---------------------------------------------------------------


def _require(payload: Mapping[str, Any], key: str) -> Any:
    if key not in payload or payload[key] is None:
        raise DecodeFailure(f"Missing field '{key}'")
    return payload[key]


def _require_text(payload: Mapping[str, Any], key: str) -> str:
    value = _require(payload, key)
    if not isinstance(value, str):
        raise DecodeFailure(f"Field '{key}' must be a string")
    return value


def _require_list(payload: Mapping[str, Any], key: str) -> Sequence[Any]:
    value = _require(payload, key)
    if not isinstance(value, (list, tuple)):
        raise DecodeFailure(f"Field '{key}' must be a list")
    return value


def _read_player_join(payload: Mapping[str, Any]) -> PlayerJoined:
    opponent = payload.get(KEY_OPPONENT) or ""
    return PlayerJoined(player=_require_text(payload, KEY_PLAYER), opponent=str(opponent))


def _read_player_drop(payload: Mapping[str, Any]) -> PlayerDropped:
    return PlayerDropped(player=_require_text(payload, KEY_PLAYER))


def _read_status(payload: Mapping[str, Any]) -> StatusUpdated:
    return StatusUpdated(status=StatusUpdate.from_tag(_require_text(payload, KEY_STATUS_TYPE)))


def _read_cards_played(payload: Mapping[str, Any]) -> CardsPlayed:
    return CardsPlayed(card_ids=tuple(parse_card_id(value) for value in _require_list(payload, KEY_CARDS)))


def _read_got_cards(payload: Mapping[str, Any]) -> GotCards:
    responses: List[Card] = []
    prompt: Optional[Card] = None
    for raw in _require_list(payload, KEY_CARDS):
        card = parse_card(raw)
        if card.type is CardType.PROMPT:
            prompt = card
        else:
            responses.append(card)
    return GotCards(is_czar=bool(payload.get(KEY_CZAR, False)), cards=tuple(responses), prompt=prompt)


def _read_error(payload: Mapping[str, Any]) -> ServerError:
    return ServerError(message=_require_text(payload, KEY_MESSAGE))


_READERS: Dict[EventType, Callable[[Mapping[str, Any]], Event]] = {
    EventType.PLAYER_JOIN: _read_player_join,
    EventType.PLAYER_DROP: _read_player_drop,
    EventType.GAME_STATUS_UPDATE: _read_status,
    EventType.CARD_PLAYED: _read_cards_played,
    EventType.GOT_CARDS: _read_got_cards,
    EventType.ERROR: _read_error,
}

# Order of the legacy switch statement; PLAYER_JOIN ended with a break.
_FALLTHROUGH_CHAIN: Tuple[EventType, ...] = (
    EventType.PLAYER_DROP,
    EventType.GAME_STATUS_UPDATE,
    EventType.CARD_PLAYED,
    EventType.GOT_CARDS,
    EventType.ERROR,
)


def classify(payload: Any) -> Optional[EventType]:
    """Return the event tag of a payload, or None when it has no event key."""

    if not isinstance(payload, Mapping) or KEY_EVENT not in payload:
        return None
    return EventType.from_tag(payload[KEY_EVENT])


def decode(payload: Any, *, fallthrough: bool = False) -> List[Event]:
    """Turn an inbound payload into the events it represents.

    By default every message yields exactly one event. With ``fallthrough``
    the legacy chain is replayed: decoding starts at the matched tag and
    continues through each later stage down to ERROR, skipping stages whose
    fields are absent.
    """

    tag = classify(payload)
    if tag is None:
        return [Malformed(payload=payload)]
    if not fallthrough:
        return [_decode_exclusive(tag, payload)]
    return _decode_chain(tag, payload)


def _decode_exclusive(tag: EventType, payload: Mapping[str, Any]) -> Event:
    if tag is EventType.ERROR and KEY_MESSAGE not in payload:
        LOGGER.debug("Unrecognized event %r", payload.get(KEY_EVENT))
        return ServerError(message=GENERIC_ERROR_MESSAGE)
    try:
        return _READERS[tag](payload)
    except DecodeFailure as exc:
        LOGGER.warning("Unable to decode %s message: %s", tag.value, exc)
        return ServerError(message=GENERIC_ERROR_MESSAGE)


def _decode_chain(tag: EventType, payload: Mapping[str, Any]) -> List[Event]:
    if tag is EventType.PLAYER_JOIN:
        return [_decode_exclusive(tag, payload)]
    events: List[Event] = []
    for stage in _FALLTHROUGH_CHAIN[_FALLTHROUGH_CHAIN.index(tag):]:
        if stage is tag:
            # The matched stage is reported like exclusive dispatch, failures included.
            events.append(_decode_exclusive(tag, payload))
            continue
        if stage is EventType.CARD_PLAYED:
            LOGGER.debug("CARD_PLAYED stage reached by fall-through")
            continue
        try:
            events.append(_READERS[stage](payload))
        except DecodeFailure as exc:
            LOGGER.debug("Skipping %s stage: %s", stage.value, exc)
    return events
