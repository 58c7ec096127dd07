"""Practice host that speaks the player protocol, for local end-to-end play."""

from .deck import build_deck, deal
from .server import HostConfig, HostError, PracticeHost

__all__ = ["build_deck", "deal", "HostConfig", "HostError", "PracticeHost"]
