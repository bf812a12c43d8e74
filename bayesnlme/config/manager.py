"""Configuration Management for bayesnlme
=====================================

YAML/JSON configuration loading for mixed-regression runs. A configuration
file has the sections ``metadata``, ``model``, ``data``, ``prior``,
``start``, ``sampler``, ``output`` and ``logging``; see
:mod:`bayesnlme.config.types` for their schemas.

Unlike a plotting or fitting tool, a sampler cannot run on made-up priors, so
missing files and parse errors raise :class:`ConfigurationError` instead of
falling back to defaults.
"""

import json
from pathlib import Path
from typing import Any

import yaml

from bayesnlme.config.types import (
    BayesNLMEConfig,
    DataConfig,
    ModelConfig,
    OutputConfig,
)
from bayesnlme.exceptions import ConfigurationError, SamplerUsageError
from bayesnlme.mcmc.config import SamplerConfig
from bayesnlme.mcmc.priors import MixedPrior, StartValues
from bayesnlme.utils.logging import get_logger

logger = get_logger(__name__)

KNOWN_SECTIONS = (
    "metadata",
    "model",
    "data",
    "prior",
    "start",
    "sampler",
    "output",
    "logging",
)


class ConfigManager:
    """Configuration manager for mixed-regression runs.

    Usage:
        config_manager = ConfigManager('my_config.yaml')
        sampler_config = config_manager.get_sampler_config()
        prior = config_manager.get_prior()
    """

    def __init__(
        self,
        config_file: str | Path | None = "bayesnlme_config.yaml",
        config_override: dict[str, Any] | None = None,
    ):
        """Initialize configuration manager.

        Parameters
        ----------
        config_file : str or Path
            Path to YAML/JSON configuration file
        config_override : dict, optional
            Configuration data used instead of loading from file
        """
        self.config_file = None if config_file is None else str(config_file)
        self.config: BayesNLMEConfig = {}

        if config_override is not None:
            self.config = dict(config_override)
            logger.info("Configuration loaded from override data")
        else:
            self.load_config()

        self._validate_config()

    def load_config(self) -> None:
        """Load and parse the YAML/JSON configuration file.

        Raises
        ------
        ConfigurationError
            If the file is missing, unparsable or not a mapping.
        """
        if self.config_file is None:
            raise ConfigurationError("Configuration file path cannot be None")

        config_path = Path(self.config_file)
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {self.config_file}",
                config_file=self.config_file,
            )

        file_extension = config_path.suffix.lower()
        try:
            with open(config_path, encoding="utf-8") as f:
                if file_extension == ".json":
                    loaded = json.load(f)
                else:
                    loaded = yaml.safe_load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"JSON parsing error: {e}", config_file=self.config_file
            ) from e
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"YAML parsing error: {e}", config_file=self.config_file
            ) from e

        if not isinstance(loaded, dict):
            raise ConfigurationError(
                "Configuration must be a mapping of sections",
                config_file=self.config_file,
                error_context={"type": type(loaded).__name__},
            )
        self.config = loaded
        logger.info(f"Configuration loaded from: {self.config_file}")

        metadata = self.config.get("metadata") or {}
        version = metadata.get("config_version") if isinstance(metadata, dict) else None
        if version:
            logger.info(f"Configuration version: {version}")

    def _validate_config(self) -> None:
        """Lightweight check of section names; required sections are checked on access."""
        if not self.config:
            logger.warning("Configuration is empty")
            return
        for section in self.config:
            if section not in KNOWN_SECTIONS:
                logger.warning(
                    f"Unknown configuration section '{section}'. "
                    f"Valid sections: {list(KNOWN_SECTIONS)}"
                )
        logger.debug("Configuration validation completed")

    def get_config(self) -> BayesNLMEConfig:
        return self.config

    def update_config(self, key: str, value: Any) -> None:
        """Update a configuration value using dot notation.

        Parameters
        ----------
        key : str
            Configuration key (supports dot notation like 'sampler.seed')
        value : Any
            New value to set
        """
        keys = key.split(".")
        config_ref = self.config

        for k in keys[:-1]:
            if k not in config_ref or config_ref[k] is None:
                config_ref[k] = {}
            config_ref = config_ref[k]

        config_ref[keys[-1]] = value

    def _section(self, name: str, required: bool = False) -> dict[str, Any]:
        section = self.config.get(name)
        if section is None:
            if required:
                raise ConfigurationError(
                    f"Missing required configuration section '{name}'",
                    config_file=self.config_file,
                )
            return {}
        if not isinstance(section, dict):
            raise ConfigurationError(
                f"Configuration section '{name}' must be a mapping",
                config_file=self.config_file,
                error_context={"type": type(section).__name__},
            )
        return section

    def get_model_settings(self) -> ModelConfig:
        model = self._section("model")
        return {
            "name": model.get("name", "gompertz"),
            "options": dict(model.get("options") or {}),
            "variance": model.get("variance", "constant"),
            "variance_options": dict(model.get("variance_options") or {}),
        }

    def get_data_settings(self) -> DataConfig:
        data = self._section("data")
        settings: DataConfig = {
            "orientation": data.get("orientation", "points_by_units"),
            "skip_header": int(data.get("skip_header", 0)),
            "y_scale": float(data.get("y_scale", 1.0)),
            "t_scale": float(data.get("t_scale", 1.0)),
        }
        if data.get("file_path"):
            settings["file_path"] = str(data["file_path"])
        if data.get("delimiter"):
            settings["delimiter"] = str(data["delimiter"])
        return settings

    def get_output_settings(self) -> OutputConfig:
        output = self._section("output")
        return {
            "directory": str(output.get("directory", "bayesnlme_results")),
            "burn_in": int(output.get("burn_in", 0)),
            "save_json_trace": bool(output.get("save_json_trace", False)),
        }

    def get_logging_level(self) -> str:
        return str(self._section("logging").get("level", "INFO")).upper()

    def get_sampler_config(self) -> SamplerConfig:
        """Build the SamplerConfig from the ``sampler`` and ``model`` sections."""
        sampler = dict(self._section("sampler"))
        model = self.get_model_settings()
        sampler.setdefault("model", model["name"])
        sampler.setdefault("model_options", model["options"])
        sampler.setdefault("variance", model["variance"])
        sampler.setdefault("variance_options", model["variance_options"])
        try:
            return SamplerConfig.from_dict(sampler)
        except TypeError as e:
            raise ConfigurationError(
                f"Invalid sampler section: {e}", config_file=self.config_file
            ) from e

    def get_prior(self) -> MixedPrior:
        section = self._section("prior", required=True)
        try:
            return MixedPrior.from_dict(section)
        except (SamplerUsageError, TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid prior section: {e}", config_file=self.config_file
            ) from e

    def get_start(self, n_units: int | None = None) -> StartValues:
        section = self._section("start", required=True)
        try:
            return StartValues.from_dict(section, n_units=n_units)
        except (SamplerUsageError, TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid start section: {e}", config_file=self.config_file
            ) from e


def load_config(config_path: str | Path) -> BayesNLMEConfig:
    """Load a configuration file and return its dictionary."""
    return ConfigManager(config_path).get_config()
