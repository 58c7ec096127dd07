from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from .cards import Card
from .models import Control, MoveCard, RoundStatus, StatusUpdate

LOGGER = logging.getLogger("cah_client")

# HandState is the player's side of a round: the hand, which card is on
# screen, which cards are marked to play and whether we are the czar.
# Network callbacks and UI actions both land here, so every mutation runs
# under one lock and readers get an immutable HandSnapshot.


@dataclass(frozen=True)
class HandSnapshot:
    cards: Tuple[Card, ...]
    cursor: Optional[int]
    marked: FrozenSet[int]
    prompt: Optional[Card]
    is_czar: bool
    status: RoundStatus
    awesome_points: int

    @property
    def current_card(self) -> Optional[Card]:
        if self.cursor is None:
            return None
        return self.cards[self.cursor]

    def is_marked(self, card: Card) -> bool:
        return card.id in self.marked


class SubmissionRefused(Exception):
    def __init__(self, reason: str, marked: int = 0, needed: int = 0) -> None:
        super().__init__(reason)
        self.reason = reason
        self.marked = marked
        self.needed = needed


class HandState:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._cards: List[Card] = []
        self._cursor = 0
        self._marked: Set[int] = set()
        self.prompt: Optional[Card] = None
        self.is_czar = False
        self.status = RoundStatus.AWAITING_HAND
        self.awesome_points = 0
        # Set when the host opens a round; cleared once cards are dealt.
        self._round_open = True

    # Reads ---------------------------------------------------------------

    @property
    def cursor(self) -> Optional[int]:
        with self._lock:
            return self._cursor if self._cards else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._cards)

    def current_card(self) -> Optional[Card]:
        with self._lock:
            if not self._cards:
                return None
            return self._cards[self._cursor]

    def is_marked(self, card_id: int) -> bool:
        with self._lock:
            return card_id in self._marked

    def snapshot(self) -> HandSnapshot:
        with self._lock:
            return HandSnapshot(
                cards=tuple(self._cards),
                cursor=self._cursor if self._cards else None,
                marked=frozenset(self._marked),
                prompt=self.prompt,
                is_czar=self.is_czar,
                status=self.status,
                awesome_points=self.awesome_points,
            )

    def build_submission(self) -> List[int]:
        """Ids of the marked cards in hand order. Does not touch the hand."""
        with self._lock:
            return [card.id for card in self._cards if card.id in self._marked]

    def controls(self) -> Dict[Control, bool]:
        with self._lock:
            has_cards = bool(self._cards)
            return {
                Control.GET_CARDS: self.status is RoundStatus.AWAITING_HAND or (
                    self._round_open and self.status is not RoundStatus.AWAITING_RESOLUTION
                ),
                Control.SUBMIT: self.status is RoundStatus.HAND_ACTIVE and has_cards and not self.is_czar,
                Control.BACK: has_cards,
                Control.NEXT: has_cards,
            }

    # User actions --------------------------------------------------------

    def toggle_mark(self) -> Optional[bool]:
        """Flip the mark on the displayed card; returns the new mark or None."""
        with self._lock:
            if not self._cards:
                return None
            card_id = self._cards[self._cursor].id
            if card_id in self._marked:
                self._marked.discard(card_id)
                return False
            self._marked.add(card_id)
            return True

    def move_cursor(self, direction: MoveCard) -> Optional[int]:
        with self._lock:
            if not self._cards:
                return None
            if direction is MoveCard.RESET:
                self._cursor = 0
            elif direction is MoveCard.NEXT:
                self._cursor = (self._cursor + 1) % len(self._cards)
            elif direction is MoveCard.BACK:
                self._cursor = (self._cursor - 1) % len(self._cards)
            else:
                raise ValueError(f"Unsupported move: {direction!r}")
            return self._cursor

    def take_submission(self) -> List[int]:
        """Check, collect and send off the marked cards in one step.

        Raises SubmissionRefused (reason "czar", "closed", "empty" or
        "pick_count") and leaves the hand untouched when the play is not
        allowed. On success the marks are cleared and the round waits for
        resolution.
        """
        with self._lock:
            if self.is_czar:
                raise SubmissionRefused("czar")
            if not self.controls()[Control.SUBMIT]:
                raise SubmissionRefused("closed")
            card_ids = self.build_submission()
            if not card_ids:
                raise SubmissionRefused("empty")
            if self.prompt is not None and len(card_ids) != self.prompt.pick_count:
                raise SubmissionRefused("pick_count", marked=len(card_ids), needed=self.prompt.pick_count)
            self.begin_resolution()
            return card_ids

    def begin_resolution(self) -> None:
        """A submission went out: drop the marks and wait for the round."""
        with self._lock:
            self._marked.clear()
            self.status = RoundStatus.AWAITING_RESOLUTION

    # Protocol events -----------------------------------------------------

    def on_got_cards(self, is_czar: bool, cards: Iterable[Card], prompt: Optional[Card]) -> int:
        with self._lock:
            held = {card.id for card in self._cards}
            added = 0
            for card in cards:
                if card.id in held:
                    LOGGER.debug("Card %s already in hand; skipping", card.id)
                    continue
                self._cards.append(card)
                held.add(card.id)
                added += 1
            self.is_czar = is_czar
            if prompt is not None:
                self.prompt = prompt
            self._cursor = 0
            self._round_open = False
            self.status = RoundStatus.HAND_ACTIVE
            return added

    def on_cards_played(self, card_ids: Iterable[int]) -> int:
        with self._lock:
            removed = 0
            for card_id in card_ids:
                for idx, card in enumerate(self._cards):
                    if card.id == card_id:
                        del self._cards[idx]
                        self._marked.discard(card_id)
                        removed += 1
                        break
                else:
                    LOGGER.debug("Played card %s not in hand", card_id)
            self._cursor = 0
            self.status = RoundStatus.AWAITING_HAND
            return removed

    def on_status_update(self, status: StatusUpdate) -> None:
        with self._lock:
            if status is StatusUpdate.NEXT_ROUND_START:
                if self.status is RoundStatus.AWAITING_RESOLUTION:
                    self.status = RoundStatus.HAND_ACTIVE if self._cards else RoundStatus.AWAITING_HAND
                self.is_czar = False
                self._round_open = True
            elif status is StatusUpdate.GOT_AWESOME:
                self.awesome_points += 1
            elif status is StatusUpdate.END_GAME:
                self._cards.clear()
                self._marked.clear()
                self._cursor = 0
                self.prompt = None
                self.is_czar = False
                self._round_open = True
                self.status = RoundStatus.AWAITING_HAND
