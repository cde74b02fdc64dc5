from __future__ import annotations

from typing import Dict, Iterator, List, Sequence, Tuple

import numpy as np


class ResultTable:
    """Success counts per (hand size, predicate).

    Row k holds the counts for hands of k cards, k = 1..max_hand_size.  Only
    the engine writes to the table (by summing per-chunk counters); once
    ``freeze()`` is called it is read-only.
    """

    def __init__(self, predicates: Sequence[str], max_hand_size: int, trials: int):
        self.predicates: Tuple[str, ...] = tuple(predicates)
        self.max_hand_size = max_hand_size
        self.trials = trials
        self._index = {name: i for i, name in enumerate(self.predicates)}
        self._counts = np.zeros((max_hand_size, len(self.predicates)), dtype=np.int64)
        self._frozen = False

    # ── Accumulation ────────────────────────────────────────

    def add(self, hand_size: int, counts: Sequence[int]) -> None:
        if self._frozen:
            raise RuntimeError("ResultTable is frozen")
        self._check_size(hand_size)
        if len(counts) != len(self.predicates):
            raise ValueError(f"expected {len(self.predicates)} counts, got {len(counts)}")
        row = self._counts[hand_size - 1] + np.asarray(counts, dtype=np.int64)
        if (row < 0).any() or (row > self.trials).any():
            raise ValueError(f"counts for hand size {hand_size} leave [0, {self.trials}]: {row.tolist()}")
        self._counts[hand_size - 1] = row

    def freeze(self) -> "ResultTable":
        self._frozen = True
        self._counts.setflags(write=False)
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ── Queries ─────────────────────────────────────────────

    @property
    def hand_sizes(self) -> range:
        return range(1, self.max_hand_size + 1)

    def successes(self, hand_size: int, name: str) -> int:
        self._check_size(hand_size)
        return int(self._counts[hand_size - 1, self._column(name)])

    def probability(self, hand_size: int, name: str) -> float:
        return self.successes(hand_size, name) / self.trials

    def column(self, name: str) -> List[int]:
        return [int(v) for v in self._counts[:, self._column(name)]]

    def counts(self) -> np.ndarray:
        """Copy of the raw (max_hand_size, n_predicates) count matrix."""
        return self._counts.copy()

    def as_mapping(self) -> Dict[int, Dict[str, Tuple[int, int]]]:
        return {
            k: {name: (int(self._counts[k - 1, j]), self.trials) for j, name in enumerate(self.predicates)}
            for k in self.hand_sizes
        }

    def __iter__(self) -> Iterator[Tuple[int, str, int]]:
        for k in self.hand_sizes:
            for j, name in enumerate(self.predicates):
                yield k, name, int(self._counts[k - 1, j])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResultTable):
            return NotImplemented
        return (
            self.predicates == other.predicates
            and self.trials == other.trials
            and np.array_equal(self._counts, other._counts)
        )

    def __repr__(self) -> str:
        return f"ResultTable(predicates={self.predicates}, max_hand_size={self.max_hand_size}, trials={self.trials})"

    # ── Helpers ─────────────────────────────────────────────

    def _column(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise KeyError(f"No such predicate in table: {name!r}") from None

    def _check_size(self, hand_size: int) -> None:
        if not 1 <= hand_size <= self.max_hand_size:
            raise IndexError(f"hand size {hand_size} outside 1..{self.max_hand_size}")
