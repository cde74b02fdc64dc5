from __future__ import annotations

from typing import Callable, Dict, Sequence

from .cards import Card
from .config import SimConfig
from .errors import ConfigError
from .predicates import resolve
from .results import ResultTable
from .simulate import run


def estimate(
    config: SimConfig | None = None,
    progress: Callable[[float], None] | None = None,
    **overrides,
) -> ResultTable:
    """Public API used by the entry point: run the simulation.

    *overrides* replace fields of *config* (or of the default config).
    """
    config = config or SimConfig()
    if overrides:
        config = config.with_overrides(**overrides)
    return run(config, progress=progress)


def evaluate_hand(hand: Sequence[Card], config: SimConfig | None = None) -> Dict[str, bool]:
    """Evaluate every configured predicate on one given hand.

    This is deterministic and instant (no simulation).
    """
    config = (config or SimConfig()).validate()
    if not hand:
        raise ConfigError("hand must contain at least one card")
    if len(set(hand)) != len(hand):
        raise ConfigError("hand contains duplicate cards")
    rules = config.rules()
    hand = tuple(hand)
    return {p.name: p(hand, rules) for p in resolve(config.predicates)}
