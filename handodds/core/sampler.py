from __future__ import annotations

import random
from typing import Sequence, Tuple

import numpy as np

from .cards import Card
from .errors import ConfigError

Hand = Tuple[Card, ...]


def check_hand_size(k: int, deck_size: int) -> None:
    if not isinstance(k, int) or isinstance(k, bool) or not 1 <= k <= deck_size:
        raise ConfigError(f"hand size must be an integer in [1, {deck_size}], got {k!r}")


def draw(deck: Sequence[Card], k: int, rng: random.Random) -> Hand:
    """Draw *k* distinct cards, every k-subset equally likely.

    *deck* is any sequence of cards (a Deck or a plain list); it is not
    modified.
    """
    check_hand_size(k, len(deck))
    population = deck if isinstance(deck, (list, tuple)) else list(deck)
    return tuple(rng.sample(population, k))


def draw_codes(codes: np.ndarray, k: int, n: int, gen: np.random.Generator) -> np.ndarray:
    """Draw *n* hands of *k* distinct card codes in one go.

    Each row is the first k entries of an independent uniform permutation of
    *codes*, so every k-subset is equally likely per row.  Returns an
    (n, k) array with the dtype of *codes*.
    """
    check_hand_size(k, len(codes))
    rows = np.tile(codes, (n, 1))
    return gen.permuted(rows, axis=1)[:, :k]
