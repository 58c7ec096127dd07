"""Player-side protocol client for a cast-hosted Cards Against Humanity game."""

from .cards import Card, parse_card
from .client import Channel, GameHandlers, ProtocolClient
from .codec import GENERIC_ERROR_MESSAGE, decode, encode
from .config import PLACEHOLDER_NAME, ClientConfig
from .errors import ChannelUnavailable, DecodeFailure, EncodeFailure, ProtocolError
from .models import CardType, Command, Control, EventType, MoveCard, RoundStatus, StatusUpdate
from .session import GameSession
from .state import HandSnapshot, HandState

__all__ = [
    "Card",
    "parse_card",
    "Channel",
    "GameHandlers",
    "ProtocolClient",
    "GENERIC_ERROR_MESSAGE",
    "decode",
    "encode",
    "PLACEHOLDER_NAME",
    "ClientConfig",
    "ChannelUnavailable",
    "DecodeFailure",
    "EncodeFailure",
    "ProtocolError",
    "CardType",
    "Command",
    "Control",
    "EventType",
    "MoveCard",
    "RoundStatus",
    "StatusUpdate",
    "GameSession",
    "HandSnapshot",
    "HandState",
]
