from __future__ import annotations

import logging
import pickle
import random
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from concurrent.futures.process import BrokenProcessPool
from typing import Callable, List, Sequence, Tuple

import numpy as np

from .cards import DECK_SIZE
from .config import SimConfig
from .deck import Deck
from .predicates import HandRules, Predicate, resolve
from .results import ResultTable
from .sampler import draw, draw_codes

logger = logging.getLogger(__name__)

# Minimum total trials before we bother spawning subprocesses
_MP_THRESHOLD = 20_000

# Rows per vectorized batch inside a NumPy chunk
_BATCH = 10_000

# (hand_size, trials, seed)
Chunk = Tuple[int, int, int]


# ══════════════════════════════════════════════════════════════
#  Top-level worker functions (must be picklable for spawn)
# ══════════════════════════════════════════════════════════════

def _sim_chunk(
    hand_size: int,
    chunk_size: int,
    seed: int,
    predicates: Sequence[Predicate],
    rules: HandRules,
) -> Tuple[int, List[int]]:
    """Run *chunk_size* trials of *hand_size* cards with NumPy batches.

    Each batch draws B hands at once (one row per trial) and scores every
    predicate over the whole (B, k) block.  Returns (hand_size, counts) with
    one count per predicate.
    """
    gen = np.random.default_rng(seed)
    codes = np.arange(DECK_SIZE, dtype=np.int16)
    counts = np.zeros(len(predicates), dtype=np.int64)

    for batch_start in range(0, chunk_size, _BATCH):
        B = min(_BATCH, chunk_size - batch_start)
        hands = draw_codes(codes, hand_size, B, gen)  # (B, k)
        for j, pred in enumerate(predicates):
            counts[j] += int(np.count_nonzero(pred.evaluate_codes(hands, rules)))

    return hand_size, counts.tolist()


def _sim_chunk_pure(
    hand_size: int,
    chunk_size: int,
    seed: int,
    predicates: Sequence[Predicate],
    rules: HandRules,
) -> Tuple[int, List[int]]:
    """Pure-Python version of _sim_chunk: one hand per trial."""
    rng = random.Random(seed)
    cards = list(Deck.canonical())
    counts = [0] * len(predicates)

    for _ in range(chunk_size):
        hand = draw(cards, hand_size, rng)
        for j, pred in enumerate(predicates):
            if pred(hand, rules):
                counts[j] += 1

    return hand_size, counts


# ══════════════════════════════════════════════════════════════
#  Public API
# ══════════════════════════════════════════════════════════════

def plan_chunks(config: SimConfig) -> List[Chunk]:
    """Split the run into (hand_size, trials, seed) chunks.

    Chunk boundaries and seeds depend only on the config, never on the
    worker count, so a seeded run gives identical counts serially and in
    parallel.
    """
    rng = random.Random(config.seed)
    chunks: List[Chunk] = []
    for k in range(1, config.max_hand_size + 1):
        for start in range(0, config.trials, config.chunk_size):
            cs = min(config.chunk_size, config.trials - start)
            chunks.append((k, cs, rng.randint(0, 2**63)))
    return chunks


def run(
    config: SimConfig,
    progress: Callable[[float], None] | None = None,
) -> ResultTable:
    """Estimate predicate success counts for every hand size 1..max_hand_size.

    Validates *config* first (raising ConfigError before any trial runs),
    then runs ``config.trials`` trials per hand size.  Uses multiprocessing
    when more than one worker is configured and the total trial count is at
    least _MP_THRESHOLD; otherwise runs in-process.

    Returns a frozen ResultTable.
    """
    config.validate()
    predicates = resolve(config.predicates)
    chunks = plan_chunks(config)
    chunk_fn = _sim_chunk if config.use_numpy else _sim_chunk_pure

    total = config.trials * config.max_hand_size
    workers = min(config.worker_count, len(chunks))
    use_mp = workers > 1 and total >= _MP_THRESHOLD
    if use_mp and not _picklable(predicates):
        logger.warning("Predicates cannot be sent to worker processes; running in-process")
        use_mp = False

    logger.info(
        "Starting run: hand sizes 1..%d, %d trials each, predicates=%s, aces_high=%s, "
        "target_rank=%d, %d chunks, %s",
        config.max_hand_size, config.trials, ",".join(config.predicates), config.aces_high,
        config.target_rank, len(chunks),
        f"{workers} workers" if use_mp else "in-process",
    )
    t0 = time.perf_counter()

    table = None
    if use_mp:
        try:
            table = _run_parallel(config, chunks, chunk_fn, predicates, workers, progress)
        except (BrokenPipeError, OSError, BrokenProcessPool) as e:
            logger.warning("Worker pool failed (%s); falling back to in-process run", e)
    if table is None:
        table = _run_serial(config, chunks, chunk_fn, predicates, progress)

    table.freeze()
    if progress:
        progress(1.0)
    logger.info("Run finished in %.2fs", time.perf_counter() - t0)
    return table


def _picklable(predicates: Sequence[Predicate]) -> bool:
    # Lambdas and closures only work in-process
    try:
        pickle.dumps(tuple(predicates))
    except (pickle.PicklingError, AttributeError, TypeError):
        return False
    return True


def _run_serial(
    config: SimConfig,
    chunks: Sequence[Chunk],
    chunk_fn: Callable[..., Tuple[int, List[int]]],
    predicates: Sequence[Predicate],
    progress: Callable[[float], None] | None,
) -> ResultTable:
    table = ResultTable(config.predicates, config.max_hand_size, config.trials)
    rules = config.rules()
    total = sum(cs for _, cs, _ in chunks)
    done = 0
    for k, cs, seed in chunks:
        hand_size, counts = chunk_fn(k, cs, seed, predicates, rules)
        table.add(hand_size, counts)
        done += cs
        logger.debug("Chunk done: k=%d trials=%d counts=%s", hand_size, cs, counts)
        if progress:
            progress(done / total)
    return table


def _run_parallel(
    config: SimConfig,
    chunks: Sequence[Chunk],
    chunk_fn: Callable[..., Tuple[int, List[int]]],
    predicates: Sequence[Predicate],
    workers: int,
    progress: Callable[[float], None] | None,
) -> ResultTable:
    # Each chunk counts privately in its own process; only this loop writes the table
    table = ResultTable(config.predicates, config.max_hand_size, config.trials)
    rules = config.rules()
    total = sum(cs for _, cs, _ in chunks)
    done = 0

    with ProcessPoolExecutor(max_workers=workers) as executor:
        futures = {}
        for k, cs, seed in chunks:
            fut = executor.submit(chunk_fn, k, cs, seed, tuple(predicates), rules)
            futures[fut] = cs

        for fut in as_completed(futures):
            hand_size, counts = fut.result()
            table.add(hand_size, counts)
            cs = futures[fut]
            done += cs
            logger.debug("Chunk done: k=%d trials=%d counts=%s", hand_size, cs, counts)
            if progress:
                progress(done / total)

    return table
