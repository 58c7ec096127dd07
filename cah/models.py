from __future__ import annotations

from enum import Enum
from typing import Optional


class Command(str, Enum):
    JOIN = "JOIN"
    DROPOUT = "DROPOUT"
    CARD_REQUEST = "CARD_REQUEST"
    PLAY_CARDS = "PLAY_CARDS"


class EventType(str, Enum):
    PLAYER_JOIN = "PLAYER_JOIN"
    PLAYER_DROP = "PLAYER_DROP"
    ERROR = "ERROR"
    GAME_STATUS_UPDATE = "GAME_STATUS_UPDATE"
    CARD_PLAYED = "CARD_PLAYED"
    GOT_CARDS = "GOT_CARDS"

    @classmethod
    def from_tag(cls, tag: object) -> "EventType":
        """Case-insensitive lookup; anything unrecognised is an ERROR."""
        if isinstance(tag, str):
            for member in cls:
                if member.value.casefold() == tag.strip().casefold():
                    return member
        return cls.ERROR


class StatusUpdate(str, Enum):
    END_GAME = "END_GAME"
    NEXT_ROUND_START = "NEXT_ROUND_START"
    GOT_AWESOME = "GOT_AWESOME"
    NONE = "NONE"

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "StatusUpdate":
        if isinstance(tag, str):
            for member in cls:
                if member.value.casefold() == tag.strip().casefold():
                    return member
        return cls.NONE


class CardType(str, Enum):
    PROMPT = "B"
    RESPONSE = "W"


class RoundStatus(str, Enum):
    AWAITING_HAND = "AWAITING_HAND"
    HAND_ACTIVE = "HAND_ACTIVE"
    AWAITING_RESOLUTION = "AWAITING_RESOLUTION"


class MoveCard(str, Enum):
    BACK = "BACK"
    NEXT = "NEXT"
    RESET = "RESET"


class Control(str, Enum):
    GET_CARDS = "GET_CARDS"
    SUBMIT = "SUBMIT"
    BACK = "BACK"
    NEXT = "NEXT"
