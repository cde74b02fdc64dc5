from __future__ import annotations

from typing import Dict, List, Sequence

from .core.cards import Card
from .core.config import SimConfig
from .core.results import ResultTable

# Pretty strings for output
SUIT_SYMBOLS = ("♣", "♠", "♥", "♦")  # ♣ ♠ ♥ ♦, suit index order
RANK_LABELS = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")

# How each predicate reads in "... chance of <phrase> when drawing ..."
PHRASES = {
    "success": "success",
    "pair": "a pair",
}


def card_label(card: Card) -> str:
    return f"{RANK_LABELS[card.rank - 1]}{SUIT_SYMBOLS[card.suit]}"


def hand_label(cards: Sequence[Card]) -> str:
    return " ".join(card_label(c) for c in cards)


def target_label(target_rank: int) -> str:
    # 14 only makes sense with aces high
    return "A" if target_rank == 14 else RANK_LABELS[target_rank - 1]


def percentages(table: ResultTable) -> Dict[int, Dict[str, float]]:
    return {
        k: {name: 100.0 * s / n for name, (s, n) in row.items()}
        for k, row in table.as_mapping().items()
    }


def format_report(table: ResultTable, config: SimConfig, digits: int = 4) -> List[str]:
    lines = [
        f"Target number is {target_label(config.target_rank)} and aces are "
        f"{'' if config.aces_high else 'not '}high."
    ]
    pct = percentages(table)
    for name in table.predicates:
        phrase = PHRASES.get(name, repr(name))
        for k in table.hand_sizes:
            noun = "card" if k == 1 else "cards"
            lines.append(
                f"You have a {pct[k][name]:.{digits}f} percent chance of {phrase} when drawing {k} {noun}."
            )
    return lines
