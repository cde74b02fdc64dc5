from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

# Suits and ranks
SUITS = ("C", "S", "H", "D")  # Clubs, Spades, Hearts, Diamonds
RANKS = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")

ACE = 1
KING = 13
ACE_HIGH_VALUE = 14
DECK_SIZE = len(SUITS) * len(RANKS)  # 52

RANK_TO_NUM = {r: i + 1 for i, r in enumerate(RANKS)}  # A=1 .. K=13
SUIT_TO_NUM = {s: i for i, s in enumerate(SUITS)}


@dataclass(frozen=True)
class Card:
    code: int  # suit + 4 * (rank - 1), 0..51

    def __post_init__(self):
        assert 0 <= self.code < DECK_SIZE, f"Invalid card code: {self.code}"

    @classmethod
    def of(cls, rank: int, suit: int) -> "Card":
        assert 1 <= rank <= KING, f"Invalid rank: {rank}"
        assert 0 <= suit < len(SUITS), f"Invalid suit: {suit}"
        return cls(suit + 4 * (rank - 1))

    @property
    def rank(self) -> int:
        return self.code // 4 + 1

    @property
    def suit(self) -> int:
        return self.code % 4

    def id(self) -> str:
        return f"{RANKS[self.rank - 1]}{SUITS[self.suit]}"

    def __str__(self) -> str:
        return self.id()


def value_of(card: Card, aces_high: bool = True) -> int:
    """Ordering value of *card*: 1..13, or 2..14 with the ace on top."""
    rank = card.rank
    if aces_high and rank == ACE:
        return ACE_HIGH_VALUE
    return rank


def sort_key(aces_high: bool = True) -> Callable[[Card], Tuple[int, int]]:
    return lambda c: (value_of(c, aces_high), c.suit)


def compare(a: Card, b: Card, aces_high: bool = True) -> int:
    """Return 1 if a>b, 0 if equal, -1 if a<b (value first, then suit)."""
    ka = (value_of(a, aces_high), a.suit)
    kb = (value_of(b, aces_high), b.suit)
    if ka > kb:
        return 1
    if ka < kb:
        return -1
    return 0


def sort_cards(cards: Sequence[Card], aces_high: bool = True, descending: bool = False) -> List[Card]:
    return sorted(cards, key=sort_key(aces_high), reverse=descending)


def parse(card_id: str) -> Card:
    """Parse an id like AS, 10D, 9H or KC."""
    s = card_id.strip().upper()
    if len(s) < 2:
        raise ValueError(f"Bad card id: {card_id!r}")
    rank, suit = s[:-1], s[-1]
    if rank == "T":
        rank = "10"
    if rank not in RANK_TO_NUM:
        raise ValueError(f"Bad card rank: {rank}")
    if suit not in SUIT_TO_NUM:
        raise ValueError(f"Bad suit: {suit}")
    return Card.of(RANK_TO_NUM[rank], SUIT_TO_NUM[suit])


def parse_hand(text: str) -> Tuple[Card, ...]:
    return tuple(parse(tok) for tok in text.replace(",", " ").split())


def full_deck() -> List[Card]:
    # Canonical order is code order: rank-major, suits C S H D within a rank
    return [Card(code) for code in range(DECK_SIZE)]
