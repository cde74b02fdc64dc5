"""Tests for the Monte Carlo simulation engine.

Exact reference probabilities come from counting subsets of the 52-card deck:

    P(success, k) = 1 - C(low, k) / C(52, k)   where *low* cards sit under the target
    P(pair, k)    = 1 - C(13, k) * 4**k / C(52, k)
"""

from math import comb

import pytest

from handodds.core import predicates, simulate
from handodds.core.config import SimConfig
from handodds.core.errors import ConfigError
from handodds.core.predicates import Predicate
from handodds.core.results import ResultTable
from handodds.core.simulate import plan_chunks, run


def exact_success(k, target_rank=8, aces_high=True):
    low_ranks = [r for r in range(1, 14) if (14 if (aces_high and r == 1) else r) < target_rank]
    low = 4 * len(low_ranks)
    return 1 - comb(low, k) / comb(52, k)


def exact_pair(k):
    return 1 - comb(13, k) * 4**k / comb(52, k)


def _always(hand, rules):
    return True


def _same_suit(hand, rules):
    return len({c.suit for c in hand}) == 1


@pytest.fixture
def extra_predicates():
    added = [
        predicates.register(Predicate("test_always", _always)),
        predicates.register(Predicate("test_same_suit", _same_suit)),
    ]
    yield added
    for p in added:
        predicates.unregister(p.name)


# =============================================================================
# Chunk planning
# =============================================================================


class TestPlanChunks:
    def test_chunks_cover_every_trial(self):
        config = SimConfig(trials=2_500, max_hand_size=3, chunk_size=1_000, seed=1)
        chunks = plan_chunks(config)
        assert [(k, n) for k, n, _ in chunks] == [
            (1, 1_000), (1, 1_000), (1, 500),
            (2, 1_000), (2, 1_000), (2, 500),
            (3, 1_000), (3, 1_000), (3, 500),
        ]

    def test_seeds_depend_only_on_config(self):
        config = SimConfig(trials=2_500, max_hand_size=3, chunk_size=1_000, seed=1)
        assert plan_chunks(config) == plan_chunks(config.with_overrides(workers=4))
        assert plan_chunks(config) != plan_chunks(config.with_overrides(seed=2))


# =============================================================================
# Run: shape and accounting
# =============================================================================


class TestRunShape:
    def test_returns_frozen_table_of_expected_shape(self, small_config):
        table = run(small_config)
        assert isinstance(table, ResultTable)
        assert table.frozen
        assert list(table.as_mapping()) == [1, 2, 3]
        assert table.predicates == ("success", "pair")
        for _, _, count in table:
            assert 0 <= count <= small_config.trials

    def test_single_card_never_pairs(self, small_config):
        table = run(small_config)
        assert table.successes(1, "pair") == 0

    def test_every_trial_observed_once(self, small_config, extra_predicates):
        config = small_config.with_overrides(predicates=("test_always", "test_same_suit"))
        table = run(config)
        assert table.column("test_always") == [config.trials] * config.max_hand_size
        assert table.successes(1, "test_same_suit") == config.trials

    def test_progress_reported(self, small_config):
        seen = []
        run(small_config, progress=seen.append)
        assert seen[-1] == 1.0
        assert seen == sorted(seen)
        assert len(seen) == len(plan_chunks(small_config)) + 1

    def test_seeded_runs_repeat(self, small_config):
        assert run(small_config) == run(small_config)

    def test_different_seeds_differ(self, small_config):
        assert run(small_config) != run(small_config.with_overrides(seed=43))


# =============================================================================
# Run: configuration errors
# =============================================================================


class TestRunRejectsConfig:
    @pytest.mark.parametrize(
        "changes",
        [{"max_hand_size": 0}, {"max_hand_size": 53}, {"trials": 0}, {"predicates": ()}],
    )
    def test_rejected_before_any_work(self, small_config, monkeypatch, changes):
        def fail(*args, **kwargs):
            raise AssertionError("simulation work started")

        monkeypatch.setattr(simulate, "_run_serial", fail)
        monkeypatch.setattr(simulate, "_run_parallel", fail)
        seen = []
        with pytest.raises(ConfigError):
            run(small_config.with_overrides(**changes), progress=seen.append)
        assert seen == []


# =============================================================================
# Statistical properties
# =============================================================================


@pytest.fixture(scope="module")
def full_run():
    """One 100k-trial run shared across the statistical tests."""
    config = SimConfig(trials=100_000, max_hand_size=7, seed=2021, workers=1)
    return config, run(config)


class TestStatistics:
    def test_success_is_monotonic_in_hand_size(self, full_run):
        _, table = full_run
        probs = [table.probability(k, "success") for k in table.hand_sizes]
        assert all(b >= a for a, b in zip(probs, probs[1:]))

    def test_pair_is_monotonic_in_hand_size(self, full_run):
        _, table = full_run
        probs = [table.probability(k, "pair") for k in table.hand_sizes]
        assert all(b >= a for a, b in zip(probs, probs[1:]))

    @pytest.mark.parametrize("k", range(1, 8))
    def test_success_matches_exact(self, full_run, k):
        _, table = full_run
        assert table.probability(k, "success") == pytest.approx(exact_success(k), abs=0.01)

    @pytest.mark.parametrize("k", range(1, 8))
    def test_pair_matches_exact(self, full_run, k):
        _, table = full_run
        assert table.probability(k, "pair") == pytest.approx(exact_pair(k), abs=0.01)

    def test_aces_low_lowers_success(self):
        config = SimConfig(trials=50_000, max_hand_size=3, seed=5, workers=1, aces_high=False)
        table = run(config)
        for k in table.hand_sizes:
            assert table.probability(k, "success") == pytest.approx(
                exact_success(k, aces_high=False), abs=0.01
            )

    def test_pure_python_path_agrees(self):
        config = SimConfig(trials=20_000, max_hand_size=3, seed=8, workers=1, use_numpy=False)
        table = run(config)
        for k in table.hand_sizes:
            assert table.probability(k, "success") == pytest.approx(exact_success(k), abs=0.02)
            assert table.probability(k, "pair") == pytest.approx(exact_pair(k), abs=0.02)


# =============================================================================
# Concurrency equivalence
# =============================================================================


class TestParallel:
    @pytest.mark.parametrize("use_numpy", [True, False])
    def test_parallel_matches_serial_exactly(self, use_numpy):
        config = SimConfig(
            trials=8_000, max_hand_size=4, seed=123, chunk_size=2_000, use_numpy=use_numpy
        )
        serial = run(config.with_overrides(workers=1))
        parallel = run(config.with_overrides(workers=2))
        assert parallel == serial

    def test_pool_failure_falls_back_to_serial(self, monkeypatch, caplog):
        def broken(*args, **kwargs):
            raise OSError("no processes here")

        monkeypatch.setattr(simulate, "_run_parallel", broken)
        config = SimConfig(trials=8_000, max_hand_size=4, seed=123, chunk_size=2_000, workers=2)
        with caplog.at_level("WARNING", logger="handodds.core.simulate"):
            table = run(config)
        assert table == run(config.with_overrides(workers=1))
        assert "falling back" in caplog.text

    def test_unpicklable_predicate_runs_in_process(self, caplog):
        predicates.register(Predicate("test_lambda", lambda hand, rules: len(hand) > 1))
        try:
            config = SimConfig(
                trials=8_000, max_hand_size=4, seed=123, chunk_size=2_000,
                predicates=("pair", "test_lambda"),
            )
            serial = run(config.with_overrides(workers=1))
            with caplog.at_level("WARNING", logger="handodds.core.simulate"):
                parallel = run(config.with_overrides(workers=2))
        finally:
            predicates.unregister("test_lambda")
        assert parallel == serial
        assert parallel.column("test_lambda") == [0, 8_000, 8_000, 8_000]
        assert "in-process" in caplog.text
