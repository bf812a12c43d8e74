"""Synthetic data and default hyperparameters for mixed regression models.

These helpers build a complete simulation study around a population mean
``mu``::

    params = default_simulation_parameters(mu, n=10, model=model)
    data = draw_data(model, params, rng=np.random.default_rng(1))
    prior = default_prior(mu, params.gamma2)
    start = default_start(mu, n=10)
    trace = fit_mixed_mcmc(data.t, data.y, prior, start, model)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from bayesnlme.exceptions import SamplerUsageError
from bayesnlme.mcmc.priors import DiagonalOmegaPrior, MixedPrior, StartValues
from bayesnlme.utils.logging import get_logger

logger = get_logger(__name__)

# Relative spread of the random effects around mu in the default setting
DEFAULT_RELATIVE_SD = 0.1
DEFAULT_GAMMA2 = 0.01
DEFAULT_N_POINTS = 20


@dataclass
class SimulationParameters:
    """True values of a simulation study.

    Attributes
    ----------
    mu : np.ndarray
        Population mean, shape (d,).
    omega : np.ndarray
        Variances, shape (d,), or covariance matrix, shape (d, d).
    gamma2 : float
        Residual variance scale.
    t : np.ndarray
        Shared observation points.
    n : int
        Number of units.
    """

    mu: np.ndarray
    omega: np.ndarray
    gamma2: float
    t: np.ndarray
    n: int

    def __post_init__(self):
        self.mu = np.atleast_1d(np.asarray(self.mu, dtype=float))
        self.omega = np.asarray(self.omega, dtype=float)
        self.t = np.atleast_1d(np.asarray(self.t, dtype=float))
        self.gamma2 = float(self.gamma2)
        if self.n < 1:
            raise SamplerUsageError(f"n must be at least 1, got {self.n}")
        if self.gamma2 <= 0:
            raise SamplerUsageError(f"gamma2 must be positive, got {self.gamma2}")


@dataclass
class SimulatedData:
    """Simulated observations: shared ``t``, table ``y`` (n × len t), true ``phi``."""

    t: np.ndarray
    y: np.ndarray
    phi: np.ndarray


def default_simulation_parameters(
    mu,
    n: int,
    t=None,
    model=None,
    gamma2: float = DEFAULT_GAMMA2,
    omega=None,
) -> SimulationParameters:
    """Default study around ``mu``: Ω = diag((0.1 |μ|)²) and γ² = 0.01.

    ``t`` defaults to the model's time grid (20 points), or to 0..10 when no
    model is given.
    """
    mu = np.atleast_1d(np.asarray(mu, dtype=float))
    if omega is None:
        omega = (DEFAULT_RELATIVE_SD * np.abs(mu)) ** 2
    if t is None:
        if model is not None and hasattr(model, "default_time_grid"):
            t = model.default_time_grid(DEFAULT_N_POINTS)
        else:
            t = np.linspace(0.0, 10.0, DEFAULT_N_POINTS)
    return SimulationParameters(mu=mu, omega=omega, gamma2=gamma2, t=t, n=n)


def draw_data(
    regression_fn: Callable,
    parameters: SimulationParameters,
    variance_fn: Callable | None = None,
    rng: np.random.Generator | None = None,
) -> SimulatedData:
    """Draw random effects and noisy observations from the model.

    φ_j ~ N(μ, Ω) and y_jk = f(φ_j, t_k) + N(0, γ² s²(t_k)).
    """
    rng = rng if rng is not None else np.random.default_rng()
    mu = parameters.mu
    omega = parameters.omega
    cov = np.diag(omega) if omega.ndim == 1 else omega
    if cov.shape != (mu.size, mu.size):
        raise SamplerUsageError(
            "omega does not match the dimension of mu",
            {"mu_size": mu.size, "omega_shape": omega.shape},
        )

    t = parameters.t
    s2 = np.ones_like(t) if variance_fn is None else np.asarray(variance_fn(t), dtype=float)
    phi = rng.multivariate_normal(mu, cov, size=parameters.n)
    y = np.empty((parameters.n, t.size))
    for j in range(parameters.n):
        noise = rng.normal(0.0, np.sqrt(parameters.gamma2 * s2))
        y[j] = regression_fn(phi[j], t) + noise

    logger.debug(f"Simulated {parameters.n} trajectories with {t.size} points each")
    return SimulatedData(t=t.copy(), y=y, phi=phi)


def default_prior(
    mu, gamma2: float, omega_structure: str = "diag"
) -> MixedPrior:
    """Weakly informative prior centred on the simulation truth.

    μ ~ N(mu, diag(mu²)); the Ω prior has mean diag((0.1 |mu|)²); γ² has
    prior mean ``gamma2``.
    """
    mu = np.atleast_1d(np.asarray(mu, dtype=float))
    d = mu.size
    v = np.where(mu == 0, 1.0, mu**2)
    omega_mean = (DEFAULT_RELATIVE_SD * np.where(mu == 0, 1.0, np.abs(mu))) ** 2

    if omega_structure == "diag":
        # IG(3, 2 m) has mean m
        prior_omega = DiagonalOmegaPrior(alpha=np.full(d, 3.0), beta=2.0 * omega_mean)
        omega_df = None
    elif omega_structure == "full":
        # IW(nu, R) has mean R / (nu - d - 1)
        omega_df = d + 3.0
        prior_omega = 2.0 * np.diag(omega_mean)
    else:
        raise SamplerUsageError(f"Unknown omega_structure '{omega_structure}'")

    return MixedPrior(
        m=mu.copy(),
        v=v,
        prior_omega=prior_omega,
        alpha=3.0,
        beta=2.0 * float(gamma2),
        omega_df=omega_df,
    )


def default_start(mu, n: int, gamma2: float = 1.0) -> StartValues:
    """Every unit starts at ``mu``."""
    mu = np.atleast_1d(np.asarray(mu, dtype=float))
    return StartValues(phi=np.tile(mu, (n, 1)), mu=mu.copy(), gamma2=gamma2)
