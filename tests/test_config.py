"""Tests for the component registry, config persistence and exports."""

import json

import pytest

from qmaze.__main__ import main
from qmaze.app.config import (
    CONFIG_VERSION, TrainingConfig, config_from_dict, config_to_dict, load_config, reseed,
    save_config,
)
from qmaze.app.training import Training
from qmaze.domain.complexity import DefaultComplexityFunction
from qmaze.domain.criteria import EndStateReached, MaxActionsReached, MaxEpisodesReached
from qmaze.domain.errors import ConfigurationError
from qmaze.domain.operators import DeadEndOperator, ResizeOperator
from qmaze.domain.policies import GreedyPolicy, SoftmaxPolicy
from qmaze.utils import registry
from qmaze.utils.export import maze_hash, save_training_summary


@pytest.fixture
def small_config():
    return TrainingConfig(
        training_name="Export Run",
        episode_stopping_criteria=[EndStateReached(), MaxActionsReached(100)],
        level_change_criteria=[MaxEpisodesReached(2)],
        number_of_levels=2,
    )


# =============================================================================
# Registry
# =============================================================================


class TestRegistry:
    """Type tags map to component classes."""

    def test_create(self):
        assert registry.create("GreedyPolicy", {"seed": 3}) == GreedyPolicy(seed=3)
        assert registry.create("DefaultComplexityFunction") == DefaultComplexityFunction()

    def test_create_from_specific_registry(self):
        operator = registry.create("ResizeOperator", {"costs_per_dimension": 2.0, "seed": 1},
                                   registry.OPERATORS)
        assert operator == ResizeOperator(2.0, seed=1)

    def test_tag_from_wrong_registry(self):
        with pytest.raises(ConfigurationError, match="Unknown component type"):
            registry.create("GreedyPolicy", {"seed": 1}, registry.OPERATORS)

    def test_unknown_and_missing_parameters(self):
        with pytest.raises(ConfigurationError, match="unknown \\['temp'\\]"):
            registry.create("SoftmaxPolicy", {"temp": 1.0, "precision": 2, "seed": 1})
        with pytest.raises(ConfigurationError, match="missing \\['seed'\\]"):
            registry.create("GreedyPolicy", {})

    def test_invalid_values_are_reported(self):
        with pytest.raises(ConfigurationError, match="temperature"):
            registry.create("SoftmaxPolicy", {"temperature": -1.0, "precision": 2, "seed": 1})

    def test_spec_round_trip(self):
        operator = DeadEndOperator(1, 5, 1.0, 0.25, seed=9)
        spec = registry.to_spec(operator)
        assert spec == {
            "type": "DeadEndOperator",
            "params": {"min_path_length": 1, "max_path_length": 5, "cost_per_node": 1.0,
                       "preference": 0.25, "seed": 9},
        }
        assert registry.from_spec(spec) == operator

    @pytest.mark.parametrize("spec", [{"params": {}}, "GreedyPolicy", None])
    def test_malformed_spec(self, spec):
        with pytest.raises(ConfigurationError):
            registry.from_spec(spec)


# =============================================================================
# Config
# =============================================================================


class TestTrainingConfig:
    """Validation, dictionaries and JSON files."""

    def test_defaults(self):
        config = TrainingConfig()
        assert config.number_of_levels == 5
        assert len(config.maze_operators) == 4
        assert config.episode_stopping_criteria[0] == EndStateReached()

    @pytest.mark.parametrize("kwargs", [
        {"q_learning_alpha": 0.0},
        {"q_learning_gamma": 1.5},
        {"number_of_levels": 0},
        {"delta": 0.0},
        {"initial_path_length": 1},
        {"episode_stopping_criteria": []},
        {"level_change_criteria": []},
        {"maze_operators": []},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            TrainingConfig(**kwargs)

    def test_single_level_needs_no_operators(self):
        assert TrainingConfig(number_of_levels=1, maze_operators=[]).maze_operators == []

    def test_dict_round_trip(self, small_config):
        data = config_to_dict(small_config)
        assert data["version"] == CONFIG_VERSION
        assert data["level_change_criteria"] == [{"type": "MaxEpisodesReached", "params": {"max_episodes": 2}}]
        assert config_from_dict(data) == small_config

    def test_missing_keys_keep_defaults(self):
        config = config_from_dict({"training_name": "Partial", "number_of_levels": 2})
        assert config.training_name == "Partial"
        assert config.delta == TrainingConfig().delta

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError, match="Unknown configuration keys"):
            config_from_dict({"learning_rate": 0.3})

    def test_component_list_must_be_list(self):
        with pytest.raises(ConfigurationError, match="must be a list"):
            config_from_dict({"maze_operators": {"type": "ResizeOperator"}})

    def test_file_round_trip(self, small_config, tmp_path):
        path = save_config(small_config, tmp_path / "configs" / "run.json")
        assert path.exists()
        assert json.loads(path.read_text())["training_name"] == "Export Run"
        assert load_config(path) == small_config

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nope.json")

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError, match="not valid JSON"):
            load_config(path)

    def test_load_non_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_reseed(self):
        config = reseed(TrainingConfig(exploration_policy=SoftmaxPolicy(1.0, 3, seed=0)), 100)
        assert config.change_maze_seed == 100
        assert config.exploration_policy.seed == 101
        assert [op.seed for op in config.maze_operators] == [102, 103, 104, 105]
        assert config.exploration_policy.temperature == 1.0


# =============================================================================
# Export
# =============================================================================


class TestExport:
    """Level summaries and Q-table CSV files."""

    def test_maze_hash_is_stable(self):
        assert maze_hash(["###", "#S#"]) == maze_hash(["###", "#S#"])
        assert maze_hash(["###", "#S#"]) != maze_hash(["###", "#E#"])

    def test_save_training_summary(self, small_config, tmp_path):
        data = Training(small_config).do_training().training_data
        export_dir = save_training_summary(data, tmp_path, timestamp=False)

        assert export_dir == tmp_path / "Export_Run"
        overview = json.loads((export_dir / "training.json").read_text())
        assert overview["finished"] is True
        assert overview["number_of_levels"] == 2
        assert overview["total_episodes"] == 4

        level = json.loads((export_dir / "level_1.json").read_text())
        assert level["maze"] == data.levels[0].maze.to_rows()
        assert level["maze_hash"] == maze_hash(level["maze"])
        assert level["number_of_episodes"] == 2
        assert level["occurred_level_change_criterion"] == "Max Episodes Reached (2 Episodes)"

        csv = (export_dir / "level_2_qtable.csv").read_text()
        assert csv.splitlines()[0] == "State;Up;Right;Down;Left"
        assert not csv.endswith("\n")


# =============================================================================
# Command line
# =============================================================================


class TestCommandLine:
    """End-to-end runs of the qmaze command."""

    def test_run_with_saved_config(self, small_config, tmp_path, capsys):
        config_path = save_config(small_config, tmp_path / "run.json")
        out_dir = tmp_path / "out"
        assert main(["--config", str(config_path), "--seed", "5", "--output-dir", str(out_dir)]) == 0
        output = capsys.readouterr().out
        assert "Training completed" in output
        assert "Level 2" in output
        assert len(list(out_dir.iterdir())) == 1

    def test_levels_override_and_save_config(self, tmp_path):
        saved = tmp_path / "effective.json"
        assert main(["--levels", "1", "--save-config", str(saved)]) == 0
        assert load_config(saved).number_of_levels == 1

    def test_invalid_config(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "missing.json")]) == 1
        assert "Invalid configuration" in capsys.readouterr().out
