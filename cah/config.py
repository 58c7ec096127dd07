from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

PLACEHOLDER_NAME = "player1"


@dataclass
class ClientConfig:
    url: str = "ws://127.0.0.1:9876/"
    player_name: str = PLACEHOLDER_NAME
    # Replays the legacy switch fall-through (one message, several handlers).
    legacy_fallthrough: bool = False
    # Sent as hand_size with CARD_REQUEST when set.
    hand_size: Optional[int] = None
    log_level: str = "WARNING"

    @property
    def has_placeholder_name(self) -> bool:
        name = self.player_name.strip().casefold()
        return not name or name == PLACEHOLDER_NAME

    @property
    def logging_level(self) -> int:
        level = logging.getLevelName(self.log_level.strip().upper())
        return level if isinstance(level, int) else logging.WARNING
