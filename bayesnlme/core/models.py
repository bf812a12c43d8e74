"""Regression Models for Mixed Nonlinear Regression
===============================================

Deterministic model families used as the regression function f(φ, t) and the
relative-variance shape s²(t) of the observation model

    y_jk = f(φ_j, t_jk) + ε_jk,    ε_jk ~ N(0, γ² · s²(t_jk))

Growth curves (3 or 4 parameters):

    Gompertz:  f(φ, t) = φ₁ · exp(-φ₂ · exp(-φ₃ t))
    logistic:  f(φ, t) = φ₁ / (1 + φ₂ · exp(-φ₃ t))
    Weibull:   f(φ, t) = φ₁ - φ₂ · exp(-φ₃ · t^φ₄)
    Richards:  f(φ, t) = φ₁ · (1 + φ₂ · exp(-φ₃ t))^(-1/φ₄)

Crack growth (Paris law da/dN = C·a^m, φ₁ = C, φ₂ = m), giving the number of
load cycles needed to grow a crack from the initial length a₀ to length t:

    Paris:     f(φ, t) = (t^(1-φ₂) - a₀^(1-φ₂)) / (φ₁ (1-φ₂)),  a₀ fixed
    Paris2:    as Paris with a₀ = φ₃ estimated per unit

Every model is a plain callable, so an instance can be passed directly as
``regression_fn`` to the sampler. Names are resolved once, at configuration
time, through :func:`get_regression_model`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from bayesnlme.exceptions import SamplerUsageError
from bayesnlme.utils.logging import get_logger

logger = get_logger(__name__)


class RegressionModel(ABC):
    """Abstract base class for regression functions f(φ, t).

    Subclasses implement :meth:`evaluate` on a parameter vector that has
    already been checked for the right dimension.
    """

    name: str = "regression"
    parameter_names: tuple[str, ...] = ()
    time_range: tuple[float, float] = (0.0, 10.0)

    @property
    def n_params(self) -> int:
        return len(self.parameter_names)

    def __call__(self, phi, t) -> np.ndarray:
        phi = np.asarray(phi, dtype=float)
        if phi.shape != (self.n_params,):
            raise ValueError(
                f"{self.name} expects {self.n_params} parameters, got shape {phi.shape}"
            )
        return self.evaluate(phi, np.asarray(t, dtype=float))

    @abstractmethod
    def evaluate(self, phi: np.ndarray, t: np.ndarray) -> np.ndarray:
        """Evaluate the model at points ``t``."""

    @abstractmethod
    def default_parameters(self) -> np.ndarray:
        """Typical population mean used for simulations and examples."""

    def default_time_grid(self, n_points: int = 20) -> np.ndarray:
        """Evenly spaced points over the model's natural range."""
        return np.linspace(self.time_range[0], self.time_range[1], n_points)

    def get_parameter_dict(self, phi) -> dict[str, float]:
        """Convert a parameter vector to a named dictionary."""
        phi = np.atleast_1d(np.asarray(phi, dtype=float))
        if phi.size != self.n_params:
            raise ValueError(f"Expected {self.n_params} parameters, got {phi.size}")
        return {name: float(val) for name, val in zip(self.parameter_names, phi)}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', n_params={self.n_params})"


class GompertzModel(RegressionModel):
    name = "gompertz"
    parameter_names = ("asymptote", "displacement", "rate")

    def evaluate(self, phi, t):
        return phi[0] * np.exp(-phi[1] * np.exp(-phi[2] * t))

    def default_parameters(self):
        return np.array([10.0, 4.0, 0.5])


class LogisticModel(RegressionModel):
    name = "logistic"
    parameter_names = ("asymptote", "displacement", "rate")

    def evaluate(self, phi, t):
        return phi[0] / (1.0 + phi[1] * np.exp(-phi[2] * t))

    def default_parameters(self):
        return np.array([10.0, 20.0, 0.8])


class WeibullModel(RegressionModel):
    name = "weibull"
    parameter_names = ("asymptote", "range", "rate", "shape")

    def evaluate(self, phi, t):
        return phi[0] - phi[1] * np.exp(-phi[2] * t ** phi[3])

    def default_parameters(self):
        return np.array([10.0, 8.0, 0.1, 1.5])


class RichardsModel(RegressionModel):
    """Generalised logistic curve; φ₄ = 1 recovers the logistic model."""

    name = "richards"
    parameter_names = ("asymptote", "displacement", "rate", "shape")

    def evaluate(self, phi, t):
        return phi[0] * (1.0 + phi[1] * np.exp(-phi[2] * t)) ** (-1.0 / phi[3])

    def default_parameters(self):
        return np.array([10.0, 20.0, 0.8, 1.5])


class ParisModel(RegressionModel):
    """Cycles to grow a crack from ``initial_length`` to length t.

    Parameters
    ----------
    initial_length : float
        Crack length a₀ at which cycle counting starts (same units as t).
    """

    name = "paris"
    parameter_names = ("C", "m")
    time_range = (9.0, 49.8)

    def __init__(self, initial_length: float = 9.0):
        if initial_length <= 0:
            raise ValueError(f"initial_length must be positive, got {initial_length}")
        self.initial_length = float(initial_length)

    def evaluate(self, phi, t):
        return _paris_cycles(phi[0], phi[1], self.initial_length, t)

    def default_parameters(self):
        return np.array([0.28, 1.3])

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name='{self.name}', "
            f"initial_length={self.initial_length})"
        )


class Paris2Model(RegressionModel):
    """Paris law with a unit-specific initial crack length φ₃."""

    name = "paris2"
    parameter_names = ("C", "m", "initial_length")
    time_range = (9.0, 49.8)

    def evaluate(self, phi, t):
        return _paris_cycles(phi[0], phi[1], phi[2], t)

    def default_parameters(self):
        return np.array([0.28, 1.3, 9.0])


def _paris_cycles(c, m, a0, t):
    exponent = 1.0 - m
    return (t**exponent - a0**exponent) / (c * exponent)


class VarianceFunction(ABC):
    """Relative-variance shape s²(t); values must be strictly positive."""

    name: str = "variance"

    def __call__(self, t) -> np.ndarray:
        return self.evaluate(np.asarray(t, dtype=float))

    @abstractmethod
    def evaluate(self, t: np.ndarray) -> np.ndarray:
        """Evaluate s²(t)."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class ConstantVariance(VarianceFunction):
    """Homoskedastic errors, s²(t) = 1."""

    name = "constant"

    def evaluate(self, t):
        return np.ones_like(t, dtype=float)


class PowerVariance(VarianceFunction):
    """s²(t) = |t|^exponent. Points at t = 0 need exponent = 0."""

    name = "power"

    def __init__(self, exponent: float = 1.0):
        self.exponent = float(exponent)

    def evaluate(self, t):
        return np.abs(t) ** self.exponent

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(exponent={self.exponent})"


REGRESSION_MODELS: dict[str, type[RegressionModel]] = {
    "gompertz": GompertzModel,
    "logistic": LogisticModel,
    "weibull": WeibullModel,
    "richards": RichardsModel,
    "paris": ParisModel,
    "paris2": Paris2Model,
}

VARIANCE_FUNCTIONS: dict[str, type[VarianceFunction]] = {
    "constant": ConstantVariance,
    "power": PowerVariance,
}


def get_regression_model(name: str, **kwargs) -> RegressionModel:
    """Instantiate a regression model by name (case-insensitive).

    Parameters
    ----------
    name : str
        One of ``gompertz``, ``logistic``, ``weibull``, ``richards``,
        ``paris``, ``paris2``.
    **kwargs
        Forwarded to the model constructor (e.g. ``initial_length`` for Paris).

    Raises
    ------
    SamplerUsageError
        If the name is unknown or the keyword arguments do not fit the model.
    """
    key = str(name).strip().lower()
    if key not in REGRESSION_MODELS:
        raise SamplerUsageError(
            f"Unknown regression model '{name}'",
            {"available": sorted(REGRESSION_MODELS)},
        )
    try:
        model = REGRESSION_MODELS[key](**kwargs)
    except TypeError as e:
        raise SamplerUsageError(f"Invalid options for model '{key}': {e}") from e
    logger.debug(f"Resolved regression model: {model!r}")
    return model


def get_variance_function(name: str = "constant", **kwargs) -> VarianceFunction:
    """Instantiate a variance-shape function by name (case-insensitive)."""
    key = str(name).strip().lower()
    if key not in VARIANCE_FUNCTIONS:
        raise SamplerUsageError(
            f"Unknown variance function '{name}'",
            {"available": sorted(VARIANCE_FUNCTIONS)},
        )
    try:
        return VARIANCE_FUNCTIONS[key](**kwargs)
    except TypeError as e:
        raise SamplerUsageError(f"Invalid options for variance '{key}': {e}") from e
