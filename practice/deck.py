from __future__ import annotations

import random
from typing import List, Optional, Tuple

from cah.cards import Card
from cah.models import CardType

RESPONSE_TEXTS: Tuple[str, ...] = (
    "Darth Vader.",
    "World of Warcraft.",
    "A disappointing birthday party.",
    "Running out of coffee.",
    "An unexpected plot twist.",
    "Free samples.",
    "A really cool hat.",
    "The Dance of the Sugar Plum Fairy.",
    "Grandma's secret recipe.",
    "A lifetime of sadness.",
    "Puppies!",
    "A falcon with a cap on its head.",
    "Spontaneous interpretive dance.",
    "Forgetting the Alamo.",
    "An endless stream of emails.",
    "The inevitable heat death of the universe.",
    "A sassy robot.",
    "Passive-aggressive sticky notes.",
    "Tasteful sideboob.",
    "Wifi that only works in the bathroom.",
    "Socks with sandals.",
    "The last slice of pizza.",
    "A montage of training scenes.",
    "Vigorous jazz hands.",
    "A dramatic reading of the terms of service.",
    "Unreasonable expectations.",
    "Bees?",
    "Finding a twenty in an old coat.",
    "A mime having a stroke.",
    "Explaining the rules one more time.",
)

PROMPT_TEXTS: Tuple[Tuple[str, int], ...] = (
    ("That's right, I killed ____. How, you ask? ____.", 2),
    ("What's that smell?", 1),
    ("I drink to forget ____.", 1),
    ("What ended my last relationship?", 1),
    ("Step 1: ____. Step 2: ____. Step 3: Profit.", 2),
    ("What's my secret power?", 1),
    ("Instead of coal, Santa now gives the bad children ____.", 1),
    ("____ + ____ = a night to remember.", 2),
    ("What helps the president unwind?", 1),
    ("Why can't I sleep at night?", 1),
)

PROMPT_ID_OFFSET = 1_000


def build_deck(card_type: CardType, seed: Optional[int] = None, rng: Optional[random.Random] = None) -> List[Card]:
    """Return a shuffled deck of response or prompt cards."""

    rng = rng or random.Random(seed)
    if card_type is CardType.PROMPT:
        deck = [
            Card(id=PROMPT_ID_OFFSET + idx, content=text, type=CardType.PROMPT, pick_count=pick)
            for idx, (text, pick) in enumerate(PROMPT_TEXTS, start=1)
        ]
    else:
        deck = [Card(id=idx, content=text) for idx, text in enumerate(RESPONSE_TEXTS, start=1)]
    rng.shuffle(deck)
    return deck


def deal(deck: List[Card], count: int) -> List[Card]:
    if count < 0:
        raise ValueError("Cannot deal a negative number of cards")
    if len(deck) < count:
        raise ValueError("Not enough cards left in deck")
    cards = deck[:count]
    del deck[:count]
    return cards


def recycle(deck: List[Card], discards: List[Card], rng: random.Random) -> None:
    """Shuffle the discard pile back under the remaining deck."""

    refill = list(discards)
    discards.clear()
    rng.shuffle(refill)
    deck.extend(refill)
