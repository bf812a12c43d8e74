"""Gibbs and Metropolis updates of the mixed-regression sampler.

Every function here is pure apart from consuming draws from the generator it
is given: it takes the current values and returns new ones, leaving all
inputs untouched. The driver in :mod:`bayesnlme.mcmc.core` owns the chain
state and calls the updates in the order

    random effects → population mean → covariance → residual variance

Updates
-------
Random effects (block Metropolis, one unit at a time)::

    φ' ~ N(φ, diag(prop_sd²))
    log r = log N(φ'; μ, Ω) − log N(φ; μ, Ω)
            + Σ_k [log N(y_k; f(φ', t_k), γ² s²_k) − log N(y_k; f(φ, t_k), γ² s²_k)]

Population mean (conjugate normal)::

    P = V⁻¹ + n Ω⁻¹,   μ ~ N(P⁻¹ (V⁻¹ m + Ω⁻¹ Σ_j φ_j), P⁻¹)

Covariance::

    diag:  Ω_k ~ IG(α_k + n/2, β_k + ½ Σ_j (φ_jk − μ_k)²)
    full:  Ω   ~ IW(ν₀ + n, R + Σ_j (φ_j − μ)(φ_j − μ)ᵀ)

Residual variance::

    γ² ~ IG(α + N/2, β + ½ Σ_j Σ_k (y_jk − f(φ_j, t_jk))² / s²_jk)
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import numpy as np
from scipy import stats

from bayesnlme.utils.logging import get_logger

logger = get_logger(__name__)

RegressionFn = Callable[[np.ndarray, np.ndarray], np.ndarray]


def omega_matrix(omega: np.ndarray) -> np.ndarray:
    """Return Ω as a matrix whether it is stored as variances or a covariance."""
    omega = np.asarray(omega, dtype=float)
    if omega.ndim == 1:
        return np.diag(omega)
    return omega


def log_acceptance_ratio(
    candidate: np.ndarray,
    phi_j: np.ndarray,
    t_j: np.ndarray,
    y_j: np.ndarray,
    s2_j: np.ndarray,
    mu: np.ndarray,
    omega: np.ndarray,
    gamma2: float,
    regression_fn: RegressionFn,
) -> float:
    """Log Metropolis ratio of ``candidate`` against ``phi_j``.

    The ratio is accumulated term by term as log differences, so it may be
    NaN (or ±inf) when the regression function is undefined at either point.
    """
    cov = omega_matrix(omega)
    with np.errstate(all="ignore"):
        log_prior = stats.multivariate_normal.logpdf(
            candidate, mean=mu, cov=cov, allow_singular=True
        ) - stats.multivariate_normal.logpdf(
            phi_j, mean=mu, cov=cov, allow_singular=True
        )

        sd = np.sqrt(gamma2 * s2_j)
        log_lik = stats.norm.logpdf(
            y_j, loc=regression_fn(candidate, t_j), scale=sd
        ) - stats.norm.logpdf(y_j, loc=regression_fn(phi_j, t_j), scale=sd)

        return float(log_prior + np.sum(log_lik))


def draw_random_effect(
    phi_j: np.ndarray,
    t_j: np.ndarray,
    y_j: np.ndarray,
    s2_j: np.ndarray,
    mu: np.ndarray,
    omega: np.ndarray,
    gamma2: float,
    prop_sd: np.ndarray,
    regression_fn: RegressionFn,
    rng: np.random.Generator,
) -> tuple[np.ndarray, bool]:
    """One block Metropolis step for the random effect of a single unit.

    Parameters
    ----------
    phi_j : np.ndarray
        Current random effect of the unit, shape (d,).
    t_j, y_j : np.ndarray
        Observation points and values of the unit.
    s2_j : np.ndarray
        Relative variances s²(t_j).
    mu, omega, gamma2
        Current population mean, covariance and residual variance.
    prop_sd : np.ndarray
        Standard deviations of the random-walk proposal, shape (d,).
    regression_fn : callable
        f(phi, t).
    rng : np.random.Generator

    Returns
    -------
    tuple[np.ndarray, bool]
        The new random effect and whether the candidate was accepted.
        An undefined (NaN) ratio counts as zero, so the candidate is rejected.
    """
    candidate = rng.normal(phi_j, prop_sd)
    log_ratio = log_acceptance_ratio(
        candidate, phi_j, t_j, y_j, s2_j, mu, omega, gamma2, regression_fn
    )
    with np.errstate(over="ignore"):
        ratio = 0.0 if np.isnan(log_ratio) else float(np.exp(log_ratio))

    if rng.uniform() < ratio:
        return candidate, True
    if np.isnan(log_ratio):
        logger.debug("Proposal rejected: undefined acceptance ratio")
    return phi_j.copy(), False


def draw_population_mean(
    phi: np.ndarray,
    omega: np.ndarray,
    prior_mean: np.ndarray,
    prior_precision: np.ndarray,
    rng: np.random.Generator,
) -> np.ndarray:
    """Conjugate normal draw of μ given the random effects and Ω.

    ``prior_precision`` is V⁻¹; rows and columns of zeros give a flat prior
    on the matching components.
    """
    n = phi.shape[0]
    omega_inv = np.linalg.inv(omega_matrix(omega))
    precision = prior_precision + n * omega_inv
    cov = np.linalg.inv(precision)
    cov = 0.5 * (cov + cov.T)

    mean = cov @ (prior_precision @ prior_mean + omega_inv @ phi.sum(axis=0))
    return rng.multivariate_normal(mean, cov)


def draw_omega_diagonal(
    phi: np.ndarray,
    mu: np.ndarray,
    alpha: np.ndarray,
    beta: np.ndarray,
    rng: np.random.Generator,
) -> np.ndarray:
    """Independent inverse-gamma draws of the variances Ω_k."""
    n = phi.shape[0]
    shape = alpha + n / 2.0
    scale = beta + 0.5 * np.sum((phi - mu) ** 2, axis=0)
    return np.atleast_1d(
        stats.invgamma.rvs(shape, scale=scale, random_state=rng)
    ).astype(float)


def draw_omega_full(
    phi: np.ndarray,
    mu: np.ndarray,
    prior_scale: np.ndarray,
    prior_df: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Inverse-Wishart draw of the full covariance Ω (symmetrised)."""
    n, d = phi.shape
    residuals = phi - mu
    scatter = residuals.T @ residuals
    draw = stats.invwishart.rvs(
        df=prior_df + n, scale=prior_scale + scatter, random_state=rng
    )
    draw = np.asarray(draw, dtype=float).reshape(d, d)
    return 0.5 * (draw + draw.T)


def residual_sum_of_squares(
    phi: np.ndarray,
    times: Sequence[np.ndarray],
    observations: Sequence[np.ndarray],
    relative_variances: Sequence[np.ndarray],
    regression_fn: RegressionFn,
) -> float:
    """Σ_j Σ_k (y_jk − f(φ_j, t_jk))² / s²_jk over all units."""
    total = 0.0
    for phi_j, t_j, y_j, s2_j in zip(phi, times, observations, relative_variances):
        total += float(np.sum((y_j - regression_fn(phi_j, t_j)) ** 2 / s2_j))
    return total


def draw_residual_variance(
    phi: np.ndarray,
    times: Sequence[np.ndarray],
    observations: Sequence[np.ndarray],
    relative_variances: Sequence[np.ndarray],
    regression_fn: RegressionFn,
    alpha: float,
    beta: float,
    n_observations: int,
    rng: np.random.Generator,
) -> float:
    """Inverse-gamma draw of γ² given the current random effects."""
    rss = residual_sum_of_squares(
        phi, times, observations, relative_variances, regression_fn
    )
    shape = alpha + n_observations / 2.0
    return float(stats.invgamma.rvs(shape, scale=beta + 0.5 * rss, random_state=rng))
