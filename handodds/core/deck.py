from __future__ import annotations

import random
from typing import Iterable, Iterator, List, Optional, Tuple

from .cards import DECK_SIZE, Card, full_deck


class Deck:
    """Fixed 52-card deck; reordered in place, never resized."""

    __slots__ = ("_cards",)

    def __init__(self, cards: Optional[Iterable[Card]] = None):
        self._cards: List[Card] = list(cards) if cards is not None else full_deck()

    @classmethod
    def canonical(cls) -> "Deck":
        return cls()

    def reset(self) -> None:
        self._cards[:] = full_deck()

    def shuffle(self, rng: random.Random) -> None:
        """Fisher-Yates shuffle driven by *rng*."""
        assert len(self._cards) == DECK_SIZE, f"Deck has {len(self._cards)} cards, expected {DECK_SIZE}"
        cards = self._cards
        for i in range(len(cards) - 1, 0, -1):
            j = rng.randrange(i + 1)  # 0..i inclusive, never 0..n
            cards[i], cards[j] = cards[j], cards[i]

    def copy(self) -> "Deck":
        return Deck(self._cards)

    @property
    def cards(self) -> Tuple[Card, ...]:
        return tuple(self._cards)

    def codes(self) -> List[int]:
        return [c.code for c in self._cards]

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    def __getitem__(self, i):
        return self._cards[i]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Deck):
            return NotImplemented
        return self._cards == other._cards

    def __repr__(self) -> str:
        return f"Deck({' '.join(c.id() for c in self._cards)})"
