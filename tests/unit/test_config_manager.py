"""Tests for YAML/JSON configuration loading."""

import json
import logging

import numpy as np
import pytest
import yaml

from bayesnlme.config import ConfigManager, load_config
from bayesnlme.exceptions import ConfigurationError
from bayesnlme.mcmc.priors import MixedPrior, StartValues

EXAMPLE_CONFIG = {
    "metadata": {"config_version": "1.0", "description": "crack growth"},
    "model": {"name": "paris", "options": {"initial_length": 9.0}},
    "data": {"file_path": "crack.txt", "skip_header": 1, "y_scale": 1e-6},
    "prior": {
        "m": [0.28, 1.3],
        "v": [0.1, 0.1],
        "prior_omega": {"alpha": [3.0, 3.0], "beta": [0.01, 0.01]},
        "alpha": 3.0,
        "beta": 0.02,
    },
    "start": {"mu": [0.28, 1.3], "gamma2": 0.01},
    "sampler": {"len": 500, "propPar": 0.05, "seed": 4},
    "output": {"directory": "results", "burn_in": 100},
    "logging": {"level": "debug"},
}


@pytest.fixture
def yaml_config(temp_dir):
    path = temp_dir / "config.yaml"
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(EXAMPLE_CONFIG, f)
    return path


class TestLoading:
    """Reading configuration files."""

    def test_yaml(self, yaml_config):
        manager = ConfigManager(yaml_config)
        assert manager.get_config()["model"]["name"] == "paris"

    def test_json(self, temp_dir):
        path = temp_dir / "config.json"
        path.write_text(json.dumps(EXAMPLE_CONFIG), encoding="utf-8")
        assert load_config(path)["sampler"]["seed"] == 4

    def test_override_skips_file(self):
        manager = ConfigManager("does_not_exist.yaml", config_override={"sampler": {}})
        assert manager.get_config() == {"sampler": {}}

    def test_missing_file(self, temp_dir):
        with pytest.raises(ConfigurationError, match="not found") as exc_info:
            ConfigManager(temp_dir / "missing.yaml")
        assert exc_info.value.config_file.endswith("missing.yaml")

    def test_none_path(self):
        with pytest.raises(ConfigurationError, match="cannot be None"):
            ConfigManager(None)

    def test_invalid_yaml(self, temp_dir):
        path = temp_dir / "bad.yaml"
        path.write_text("sampler: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="YAML parsing error"):
            ConfigManager(path)

    def test_invalid_json(self, temp_dir):
        path = temp_dir / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="JSON parsing error"):
            ConfigManager(path)

    def test_non_mapping(self, temp_dir):
        path = temp_dir / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping of sections"):
            ConfigManager(path)

    def test_unknown_section_warned(self, caplog):
        with caplog.at_level(logging.WARNING, logger="bayesnlme"):
            ConfigManager(config_override={"plots": {}})
        assert "Unknown configuration section 'plots'" in caplog.text


class TestSections:
    """Typed access to the individual sections."""

    def test_sampler_config_merges_model(self, yaml_config):
        sampler = ConfigManager(yaml_config).get_sampler_config()
        assert sampler.n_iterations == 500
        assert sampler.proposal_scale == 0.05
        assert sampler.model == "paris"
        assert sampler.model_options == {"initial_length": 9.0}
        assert sampler.is_valid()

    def test_sampler_section_model_wins(self):
        manager = ConfigManager(
            config_override={"model": {"name": "paris"}, "sampler": {"model": "logistic"}}
        )
        assert manager.get_sampler_config().model == "logistic"

    def test_prior_and_start(self, yaml_config):
        manager = ConfigManager(yaml_config)
        prior = manager.get_prior()
        assert isinstance(prior, MixedPrior)
        assert prior.is_diagonal
        start = manager.get_start(n_units=4)
        assert isinstance(start, StartValues)
        assert start.phi.shape == (4, 2)
        np.testing.assert_allclose(start.phi[3], [0.28, 1.3])

    def test_missing_prior_section(self):
        with pytest.raises(ConfigurationError, match="section 'prior'"):
            ConfigManager(config_override={"sampler": {}}).get_prior()

    def test_incomplete_prior(self):
        manager = ConfigManager(config_override={"prior": {"m": [1.0]}})
        with pytest.raises(ConfigurationError, match="Invalid prior section"):
            manager.get_prior()

    def test_start_without_units(self):
        manager = ConfigManager(config_override={"start": {"mu": [1.0]}})
        with pytest.raises(ConfigurationError, match="Invalid start section"):
            manager.get_start()

    def test_section_must_be_mapping(self):
        manager = ConfigManager(config_override={"output": [1, 2]})
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            manager.get_output_settings()

    def test_data_settings(self, yaml_config):
        data = ConfigManager(yaml_config).get_data_settings()
        assert data["file_path"] == "crack.txt"
        assert data["orientation"] == "points_by_units"
        assert data["skip_header"] == 1
        assert data["y_scale"] == pytest.approx(1e-6)
        assert "delimiter" not in data

    def test_output_defaults(self):
        output = ConfigManager(config_override={}).get_output_settings()
        assert output == {
            "directory": "bayesnlme_results",
            "burn_in": 0,
            "save_json_trace": False,
        }

    def test_logging_level_upper_case(self, yaml_config):
        assert ConfigManager(yaml_config).get_logging_level() == "DEBUG"

    def test_update_config_dot_notation(self):
        manager = ConfigManager(config_override={})
        manager.update_config("sampler.seed", 9)
        manager.update_config("output.directory", "out")
        assert manager.get_sampler_config().seed == 9
        assert manager.get_output_settings()["directory"] == "out"
