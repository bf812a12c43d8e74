"""Posterior prediction of a single unit's trajectory.

Typical use: estimate with unit ``ipred`` truncated to its first ``cut``
points, then predict its remaining curve from the random-effect draws.
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np

from bayesnlme.exceptions import SamplerUsageError
from bayesnlme.mcmc.result import MixedRegressionTrace


def predict_trajectory(
    trace: MixedRegressionTrace,
    regression_fn: Callable,
    t,
    unit: int,
    burn_in: int = 0,
    variance_fn: Callable | None = None,
    include_noise: bool = False,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """Posterior draws of f(φ_unit, t), optionally with observation noise.

    Parameters
    ----------
    trace : MixedRegressionTrace
        Sampler output.
    regression_fn : callable
        f(phi, t), the function used for estimation.
    t : array_like
        Points at which to predict.
    unit : int
        0-based unit index.
    burn_in : int
        Number of leading iterations to drop.
    variance_fn : callable, optional
        s²(t); only used with ``include_noise`` (defaults to s² = 1).
    include_noise : bool
        Add N(0, γ² s²(t)) noise to obtain posterior predictive draws.
    rng : np.random.Generator, optional

    Returns
    -------
    np.ndarray
        Shape (n_iterations - burn_in, len(t)).
    """
    t = np.atleast_1d(np.asarray(t, dtype=float))
    if not 0 <= unit < trace.n_units:
        raise SamplerUsageError(
            "unit out of range", {"unit": unit, "n_units": trace.n_units}
        )
    if not 0 <= burn_in < trace.n_iterations:
        raise SamplerUsageError(
            "burn_in must be non-negative and smaller than n_iterations",
            {"burn_in": burn_in, "n_iterations": trace.n_iterations},
        )

    phi_draws = trace.phi[burn_in:, unit, :]
    with np.errstate(all="ignore"):
        curves = np.array([regression_fn(phi, t) for phi in phi_draws], dtype=float)

    if include_noise:
        rng = rng if rng is not None else np.random.default_rng()
        s2 = np.ones_like(t) if variance_fn is None else np.asarray(variance_fn(t), dtype=float)
        sd = np.sqrt(trace.gamma2[burn_in:, None] * s2[None, :])
        curves = curves + rng.normal(0.0, 1.0, size=curves.shape) * sd
    return curves


def prediction_interval(
    draws: np.ndarray, level: float = 0.95
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Pointwise median and equal-tailed interval of prediction draws."""
    if not 0 < level < 1:
        raise SamplerUsageError(f"level must lie in (0, 1), got {level}")
    tail = 100.0 * (1.0 - level) / 2.0
    lower, median, upper = np.nanpercentile(draws, [tail, 50.0, 100.0 - tail], axis=0)
    return median, lower, upper
