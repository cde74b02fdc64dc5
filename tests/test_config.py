"""Tests for simulation configuration."""

import pytest

from handodds.core.config import DEFAULT_WORKERS, SimConfig
from handodds.core.errors import ConfigError
from handodds.core.predicates import HandRules


class TestDefaults:
    def test_defaults(self):
        config = SimConfig()
        assert config.aces_high is True
        assert config.max_hand_size == 7
        assert config.trials == 10_000_000
        assert config.target_rank == 8
        assert config.predicates == ("success", "pair")
        assert config.worker_count == DEFAULT_WORKERS

    def test_defaults_are_valid(self):
        assert SimConfig().validate() == SimConfig()

    def test_rules(self):
        assert SimConfig(aces_high=False, target_rank=10).rules() == HandRules(False, 10)

    def test_predicates_normalised_to_tuple(self):
        assert SimConfig(predicates=["pair"]).predicates == ("pair",)
        assert SimConfig(predicates="pair").predicates == ("pair",)


class TestValidation:
    @pytest.mark.parametrize(
        "changes,fragment",
        [
            ({"aces_high": "no"}, "aces_high"),
            ({"max_hand_size": 0}, "max_hand_size"),
            ({"max_hand_size": 53}, "max_hand_size"),
            ({"trials": 0}, "trials"),
            ({"trials": 2.5}, "trials"),
            ({"target_rank": 0}, "target_rank"),
            ({"target_rank": 15}, "target_rank"),
            ({"predicates": ()}, "at least one predicate"),
            ({"predicates": ("pair", "pair")}, "duplicate"),
            ({"predicates": ("pair", "flush")}, "unknown predicates"),
            ({"workers": 0}, "workers"),
            ({"chunk_size": 0}, "chunk_size"),
        ],
    )
    def test_rejected(self, changes, fragment):
        config = SimConfig(**changes)
        with pytest.raises(ConfigError) as exc:
            config.validate()
        assert fragment in str(exc.value)

    def test_all_problems_reported(self):
        with pytest.raises(ConfigError) as exc:
            SimConfig(trials=0, max_hand_size=0, predicates=()).validate()
        assert len(exc.value.problems) == 3

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)


class TestFromEnv:
    def test_reads_environment(self):
        env = {
            "HANDODDS_WORKERS": "3",
            "HANDODDS_TRIALS": "5000",
            "HANDODDS_SEED": "11",
            "HANDODDS_NO_NUMPY": "1",
        }
        config = SimConfig.from_env(env)
        assert config.workers == 3
        assert config.trials == 5000
        assert config.seed == 11
        assert config.use_numpy is False

    def test_overrides_win(self):
        config = SimConfig.from_env({"HANDODDS_TRIALS": "5000"}, trials=10, aces_high=False)
        assert config.trials == 10
        assert config.aces_high is False

    def test_empty_environment(self):
        assert SimConfig.from_env({}) == SimConfig()

    def test_bad_integer(self):
        with pytest.raises(ConfigError, match="HANDODDS_WORKERS"):
            SimConfig.from_env({"HANDODDS_WORKERS": "many"})

    def test_with_overrides(self):
        config = SimConfig().with_overrides(max_hand_size=5)
        assert config.max_hand_size == 5
        assert config.trials == SimConfig().trials
