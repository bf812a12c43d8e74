"""Sampler configuration dataclass and validation.

This module provides the SamplerConfig dataclass for parsing and validating
the ``sampler`` section of a configuration file, or for building the options
of :func:`bayesnlme.mcmc.fit_mixed_mcmc` directly in code.

Example config section::

    sampler:
      n_iterations: 2000
      omega_structure: diag
      proposal_scale: 0.02
      ipred: 0
      cut: 5
      seed: 42

The short keys ``len``, ``Omega`` and ``propPar`` are accepted as aliases of
``n_iterations``, ``omega_structure`` and ``proposal_scale``.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from typing import Any

from bayesnlme.core.models import (
    REGRESSION_MODELS,
    VARIANCE_FUNCTIONS,
    RegressionModel,
    VarianceFunction,
    get_regression_model,
    get_variance_function,
)
from bayesnlme.data.trajectories import ORIENTATIONS
from bayesnlme.exceptions import SamplerUsageError
from bayesnlme.utils.logging import get_logger

logger = get_logger(__name__)

OMEGA_STRUCTURES = ("diag", "full")

_ALIASES = {
    "len": "n_iterations",
    "Omega": "omega_structure",
    "propPar": "proposal_scale",
}


def _is_integer(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


@dataclass
class SamplerConfig:
    """Configuration of a single Metropolis-within-Gibbs run.

    Attributes
    ----------
    n_iterations : int
        Number of Gibbs iterations; every trace has exactly this length.
    omega_structure : str
        "diag" (independent inverse-gamma variances) or "full"
        (inverse-Wishart covariance).
    proposal_scale : float
        Random-walk proposal standard deviation relative to ``|start.mu|``.
    ipred : int
        0-based index of the unit that may be truncated.
    cut : int | None
        Number of leading points of unit ``ipred`` used for estimation;
        None uses all points.
    orientation : str
        Layout of a rectangular observation table, "units_by_points" or
        "points_by_units".
    seed : int | None
        Seed for the sampler's random generator.
    model : str
        Regression model name, used when no function is passed explicitly.
    model_options : dict
        Keyword arguments for the regression model constructor.
    variance : str
        Variance-shape name, used when no function is passed explicitly.
    variance_options : dict
        Keyword arguments for the variance-shape constructor.
    """

    n_iterations: int = 1000
    omega_structure: str = "diag"
    proposal_scale: float = 0.02
    ipred: int = 0
    cut: int | None = None
    orientation: str = "units_by_points"
    seed: int | None = None

    # Model selection
    model: str = "gompertz"
    model_options: dict[str, Any] = field(default_factory=dict)
    variance: str = "constant"
    variance_options: dict[str, Any] = field(default_factory=dict)

    _validation_errors: list[str] = field(default_factory=list, repr=False)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any] | None) -> SamplerConfig:
        """Create a SamplerConfig from a configuration mapping.

        Unknown keys are ignored with a warning; problems found by
        :meth:`validate` are logged but not raised here.
        """
        config_dict = dict(config_dict or {})
        for alias, name in _ALIASES.items():
            if alias in config_dict:
                config_dict.setdefault(name, config_dict.pop(alias))

        known = {
            name for name in cls.__dataclass_fields__ if not name.startswith("_")
        }
        unknown = sorted(set(config_dict) - known)
        if unknown:
            logger.warning(f"Ignoring unknown sampler settings: {unknown}")

        config = cls(**{k: v for k, v in config_dict.items() if k in known})

        errors = config.validate()
        for error in errors:
            logger.warning(f"Sampler config validation: {error}")
        return config

    def validate(self) -> list[str]:
        """Validate configuration values.

        Returns
        -------
        list[str]
            List of validation error messages (empty if valid).
        """
        errors: list[str] = []

        if not _is_integer(self.n_iterations) or self.n_iterations <= 0:
            errors.append(
                f"n_iterations must be positive int, got: {self.n_iterations}"
            )

        if self.omega_structure not in OMEGA_STRUCTURES:
            errors.append(
                f"omega_structure must be one of {list(OMEGA_STRUCTURES)}, got: {self.omega_structure}"
            )

        if not isinstance(self.proposal_scale, (int, float)) or not self.proposal_scale > 0:
            errors.append(
                f"proposal_scale must be positive, got: {self.proposal_scale}"
            )

        if not _is_integer(self.ipred) or self.ipred < 0:
            errors.append(f"ipred must be non-negative int, got: {self.ipred}")

        if self.cut is not None and (not _is_integer(self.cut) or self.cut < 1):
            errors.append(f"cut must be None or positive int, got: {self.cut}")

        if self.orientation not in ORIENTATIONS:
            errors.append(
                f"orientation must be one of {list(ORIENTATIONS)}, got: {self.orientation}"
            )

        if self.seed is not None and not _is_integer(self.seed):
            errors.append(f"seed must be None or int, got: {self.seed}")

        if str(self.model).lower() not in REGRESSION_MODELS:
            errors.append(
                f"model must be one of {sorted(REGRESSION_MODELS)}, got: {self.model}"
            )
        if str(self.variance).lower() not in VARIANCE_FUNCTIONS:
            errors.append(
                f"variance must be one of {sorted(VARIANCE_FUNCTIONS)}, got: {self.variance}"
            )

        self._validation_errors = errors
        return errors

    def is_valid(self) -> bool:
        return len(self.validate()) == 0

    def raise_if_invalid(self) -> None:
        """Raise SamplerUsageError listing every validation problem."""
        errors = self.validate()
        if errors:
            raise SamplerUsageError(
                "Invalid sampler configuration: " + "; ".join(errors),
                {"n_errors": len(errors)},
            )

    def build_regression_model(self) -> RegressionModel:
        return get_regression_model(self.model, **self.model_options)

    def build_variance_function(self) -> VarianceFunction:
        return get_variance_function(self.variance, **self.variance_options)

    def to_dict(self) -> dict[str, Any]:
        return {
            "n_iterations": self.n_iterations,
            "omega_structure": self.omega_structure,
            "proposal_scale": self.proposal_scale,
            "ipred": self.ipred,
            "cut": self.cut,
            "orientation": self.orientation,
            "seed": self.seed,
            "model": self.model,
            "model_options": dict(self.model_options),
            "variance": self.variance,
            "variance_options": dict(self.variance_options),
        }
