"""Named hand predicates.

A predicate is a pure test over one hand.  It sees only the hand and the
active ``HandRules`` and must not care about the order of cards within the
hand.  Predicates may also carry a batched form that scores an (n, k) array
of card codes at once; the simulation uses it when present and falls back to
calling the per-hand test on every row otherwise.

Predicates are resolved by name inside worker processes, so ``test`` and
``batch`` must be module-level functions (picklable by reference).
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .cards import DECK_SIZE, Card, value_of
from .errors import ConfigError


@dataclass(frozen=True)
class HandRules:
    aces_high: bool = True
    target_rank: int = 8


HandTest = Callable[[Sequence[Card], HandRules], bool]
BatchTest = Callable[[np.ndarray, HandRules], np.ndarray]


@dataclass(frozen=True)
class Predicate:
    name: str
    test: HandTest
    batch: Optional[BatchTest] = None

    def __call__(self, hand: Sequence[Card], rules: HandRules) -> bool:
        return bool(self.test(hand, rules))

    def evaluate_codes(self, codes: np.ndarray, rules: HandRules) -> np.ndarray:
        """Score every row of an (n, k) code array; returns a bool array (n,)."""
        if self.batch is not None:
            return np.asarray(self.batch(codes, rules), dtype=bool)
        return np.fromiter(
            (self.test(tuple(Card(int(c)) for c in row), rules) for row in codes),
            dtype=bool,
            count=len(codes),
        )


# ── Lookup tables for the batched forms ───────────────────────

@lru_cache(maxsize=2)
def _value_table(aces_high: bool) -> np.ndarray:
    table = np.array([value_of(Card(c), aces_high) for c in range(DECK_SIZE)], dtype=np.int16)
    table.setflags(write=False)
    return table


def _raw_ranks(codes: np.ndarray) -> np.ndarray:
    return codes // 4 + 1


# ── Built-in predicates ───────────────────────────────────────

def is_success(hand: Sequence[Card], rules: HandRules) -> bool:
    """At least one card at or above the target rank (ace counts high when aces are high)."""
    target = rules.target_rank
    return any(value_of(c, rules.aces_high) >= target for c in hand)


def is_success_batch(codes: np.ndarray, rules: HandRules) -> np.ndarray:
    values = _value_table(rules.aces_high)[codes]
    return (values >= rules.target_rank).any(axis=1)


def is_pair(hand: Sequence[Card], rules: HandRules) -> bool:
    """Two different positions share a raw rank. Suit and ace-high play no part."""
    n = len(hand)
    for i in range(n):
        ri = hand[i].rank
        for j in range(i + 1, n):
            if hand[j].rank == ri:
                return True
    return False


def is_pair_batch(codes: np.ndarray, rules: HandRules) -> np.ndarray:
    ranks = np.sort(_raw_ranks(codes), axis=1)
    return (ranks[:, 1:] == ranks[:, :-1]).any(axis=1)


# ── Registry ──────────────────────────────────────────────────

_REGISTRY: Dict[str, Predicate] = {}


def register(predicate: Predicate) -> Predicate:
    if predicate.name in _REGISTRY:
        raise ValueError(f"Predicate already registered: {predicate.name}")
    _REGISTRY[predicate.name] = predicate
    return predicate


def unregister(name: str) -> None:
    _REGISTRY.pop(name, None)


def get(name: str) -> Predicate:
    try:
        return _REGISTRY[name]
    except KeyError:
        raise ConfigError(f"Unknown predicate: {name!r} (available: {', '.join(available())})") from None


def available() -> List[str]:
    return list(_REGISTRY)


def resolve(names: Sequence[str]) -> Tuple[Predicate, ...]:
    return tuple(get(n) for n in names)


SUCCESS = register(Predicate("success", is_success, is_success_batch))
PAIR = register(Predicate("pair", is_pair, is_pair_batch))
