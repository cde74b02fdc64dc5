from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import List, Mapping, Optional, Tuple

from .cards import ACE_HIGH_VALUE, DECK_SIZE
from .errors import ConfigError
from .predicates import HandRules, available

# ── Defaults ──────────────────────────────────────────────────
# Worker processes: min(cpu_count, 8) unless HANDODDS_WORKERS overrides it.
# Set HANDODDS_WORKERS=1 to disable multiprocessing.
DEFAULT_WORKERS = min(os.cpu_count() or 4, 8)
DEFAULT_TRIALS = 10_000_000
DEFAULT_CHUNK = 250_000


def _env_int(env: Mapping[str, str], key: str) -> Optional[int]:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class SimConfig:
    aces_high: bool = True
    max_hand_size: int = 7
    trials: int = DEFAULT_TRIALS
    target_rank: int = 8
    predicates: Tuple[str, ...] = ("success", "pair")
    seed: Optional[int] = None
    workers: Optional[int] = None
    use_numpy: bool = True
    chunk_size: int = DEFAULT_CHUNK

    def __post_init__(self):
        # Accept a single name or any iterable of names, store a tuple
        if isinstance(self.predicates, str):
            object.__setattr__(self, "predicates", (self.predicates,))
        elif not isinstance(self.predicates, tuple):
            object.__setattr__(self, "predicates", tuple(self.predicates))

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **overrides) -> "SimConfig":
        """Build a config from HANDODDS_* environment variables, then *overrides*."""
        env = os.environ if env is None else env
        kwargs = {}
        workers = _env_int(env, "HANDODDS_WORKERS")
        if workers is not None:
            kwargs["workers"] = workers
        trials = _env_int(env, "HANDODDS_TRIALS")
        if trials is not None:
            kwargs["trials"] = trials
        seed = _env_int(env, "HANDODDS_SEED")
        if seed is not None:
            kwargs["seed"] = seed
        no_numpy = _env_int(env, "HANDODDS_NO_NUMPY")
        if no_numpy is not None:
            kwargs["use_numpy"] = not bool(no_numpy)
        kwargs.update(overrides)
        return cls(**kwargs)

    def with_overrides(self, **changes) -> "SimConfig":
        return replace(self, **changes)

    @property
    def worker_count(self) -> int:
        return DEFAULT_WORKERS if self.workers is None else self.workers

    def rules(self) -> HandRules:
        return HandRules(aces_high=self.aces_high, target_rank=self.target_rank)

    def problems(self) -> List[str]:
        errs: List[str] = []

        def _is_int(v) -> bool:
            return isinstance(v, int) and not isinstance(v, bool)

        if not isinstance(self.aces_high, bool):
            errs.append(f"aces_high must be a bool, got {self.aces_high!r}")
        if not _is_int(self.max_hand_size) or not 1 <= self.max_hand_size <= DECK_SIZE:
            errs.append(f"max_hand_size must be in [1, {DECK_SIZE}], got {self.max_hand_size!r}")
        if not _is_int(self.trials) or self.trials < 1:
            errs.append(f"trials must be a positive integer, got {self.trials!r}")
        if not _is_int(self.target_rank) or not 1 <= self.target_rank <= ACE_HIGH_VALUE:
            errs.append(f"target_rank must be in [1, {ACE_HIGH_VALUE}], got {self.target_rank!r}")
        if not self.predicates:
            errs.append("at least one predicate is required")
        else:
            if len(set(self.predicates)) != len(self.predicates):
                errs.append(f"duplicate predicate names: {list(self.predicates)}")
            known = set(available())
            unknown = [p for p in self.predicates if p not in known]
            if unknown:
                errs.append(f"unknown predicates: {unknown} (available: {sorted(known)})")
        if self.workers is not None and (not _is_int(self.workers) or self.workers < 1):
            errs.append(f"workers must be >= 1, got {self.workers!r}")
        if not _is_int(self.chunk_size) or self.chunk_size < 1:
            errs.append(f"chunk_size must be >= 1, got {self.chunk_size!r}")
        return errs

    def validate(self) -> "SimConfig":
        errs = self.problems()
        if errs:
            raise ConfigError(errs)
        return self
