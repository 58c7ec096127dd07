from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from .errors import DecodeFailure
from .models import CardType

MISSING_PROMPT_ID = -1


@dataclass(frozen=True)
class Card:
    # Identity is the server-assigned id; everything else is display data.
    id: int
    content: str = field(compare=False)
    type: CardType = field(default=CardType.RESPONSE, compare=False)
    pick_count: int = field(default=1, compare=False)
    draw_count: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if self.pick_count < 1:
            raise ValueError(f"Invalid pick count: {self.pick_count}")
        if self.draw_count < 0:
            raise ValueError(f"Invalid draw count: {self.draw_count}")

    @property
    def is_prompt(self) -> bool:
        return self.type is CardType.PROMPT

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "content": self.content,
            "type": self.type.value,
            "cardId": self.id,
        }
        if self.is_prompt:
            payload["pickCt"] = self.pick_count
            payload["draw"] = self.draw_count
        return payload


def parse_card(raw: Mapping[str, Any]) -> Card:
    """Build a Card from a wire object such as {"content": .., "type": "W", "cardId": 1}."""

    if not isinstance(raw, Mapping):
        raise DecodeFailure(f"Card entry is not an object: {raw!r}")
    content = raw.get("content")
    if not isinstance(content, str):
        raise DecodeFailure("Card content missing")
    try:
        card_type = CardType(str(raw.get("type", "")).strip().upper())
    except ValueError as exc:
        raise DecodeFailure(f"Unknown card type: {raw.get('type')!r}") from exc

    if "cardId" in raw:
        card_id = parse_card_id(raw["cardId"])
    elif card_type is CardType.PROMPT:
        card_id = MISSING_PROMPT_ID
    else:
        raise DecodeFailure("Response card without cardId")

    try:
        return Card(
            id=card_id,
            content=content,
            type=card_type,
            pick_count=int(raw.get("pickCt", 1)),
            draw_count=int(raw.get("draw", 0)),
        )
    except (TypeError, ValueError) as exc:
        raise DecodeFailure(str(exc)) from exc


def parse_card_id(value: Any) -> int:
    # Ids arrive as numbers in got_cards and as strings in card_played.
    if isinstance(value, bool):
        raise DecodeFailure(f"Invalid card id: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise DecodeFailure(f"Invalid card id: {value!r}") from exc
    raise DecodeFailure(f"Invalid card id: {value!r}")
