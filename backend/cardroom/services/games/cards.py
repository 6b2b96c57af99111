from dataclasses import dataclass
import random
from typing import List, Optional

SUITS = ('♠', '♥', '♦', '♣')
RANKS = ('2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K', 'A')

# Letter aliases accepted by Card.from_string
_SUIT_ALIASES = {'S': '♠', 'H': '♥', 'D': '♦', 'C': '♣'}


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self):
        if self.rank not in RANKS:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit}")

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    @property
    def is_ace(self) -> bool:
        return self.rank == 'A'

    @classmethod
    def from_string(cls, text: str) -> 'Card':
        """Parse a card written like '10♠', 'KH' or 'as'."""
        text = text.strip().upper()
        if len(text) < 2:
            raise ValueError(f"Invalid card string: {text}")
        rank, suit = text[:-1], text[-1]
        if rank == 'T':
            rank = '10'
        return cls(rank, _SUIT_ALIASES.get(suit, suit))

    def to_dict(self):
        return {'rank': self.rank, 'suit': self.suit}


def build_deck(deck_count: int = 1, rng: Optional[random.Random] = None) -> List[Card]:
    """Return ``deck_count`` full 52-card sets shuffled together.

    Uses ``Random.shuffle`` (Fisher-Yates), so every ordering is equally
    likely. Pass a seeded ``rng`` for reproducible decks.
    """
    if deck_count < 1:
        raise ValueError('deck_count must be a positive integer')
    cards = [Card(rank, suit) for _ in range(deck_count) for suit in SUITS for rank in RANKS]
    (rng or random.SystemRandom()).shuffle(cards)
    return cards
