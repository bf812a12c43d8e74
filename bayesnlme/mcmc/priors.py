"""Prior hyperparameters and starting values for the Gibbs sampler.

Priors of the hierarchical model:

    μ      ~ N(m, V)              V = diag(v), or a full covariance matrix
    Ω_k    ~ IG(alpha_k, beta_k)  diagonal covariance structure
    Ω      ~ IW(ν₀, R)            full covariance structure
    γ²     ~ IG(alpha, beta)

An infinite entry of ``v`` gives a flat prior on that component of μ.

Both records accept plain mappings through ``from_dict`` so that priors and
starting values can come straight from a YAML/JSON configuration file. The
camel-case key ``priorOmega`` is accepted next to ``prior_omega``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np

from bayesnlme.exceptions import SamplerUsageError
from bayesnlme.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class DiagonalOmegaPrior:
    """Independent inverse-gamma priors on the diagonal entries of Ω."""

    alpha: np.ndarray
    beta: np.ndarray

    def __post_init__(self):
        self.alpha = np.atleast_1d(np.asarray(self.alpha, dtype=float))
        self.beta = np.atleast_1d(np.asarray(self.beta, dtype=float))


@dataclass
class MixedPrior:
    """Prior hyperparameters ``{m, v, prior_omega, alpha, beta}``.

    Attributes
    ----------
    m : np.ndarray
        Prior mean of μ, shape (d,).
    v : np.ndarray
        Prior variances of μ, shape (d,), or a (d, d) covariance matrix.
    prior_omega : DiagonalOmegaPrior | np.ndarray
        alpha/beta vectors (diagonal Ω) or the inverse-Wishart scale R (full Ω).
    alpha, beta : float
        Inverse-gamma shape and scale of the prior on γ².
    omega_df : float, optional
        Inverse-Wishart prior degrees of freedom ν₀; defaults to d + 1.
    """

    m: np.ndarray
    v: np.ndarray
    prior_omega: DiagonalOmegaPrior | np.ndarray
    alpha: float
    beta: float
    omega_df: float | None = None

    def __post_init__(self):
        self.m = np.atleast_1d(np.asarray(self.m, dtype=float))
        v = np.asarray(self.v, dtype=float)
        self.v = np.full(self.m.shape, float(v)) if v.ndim == 0 else v
        if isinstance(self.prior_omega, Mapping):
            self.prior_omega = DiagonalOmegaPrior(**_omega_mapping(self.prior_omega))
        elif not isinstance(self.prior_omega, DiagonalOmegaPrior):
            self.prior_omega = np.atleast_2d(np.asarray(self.prior_omega, dtype=float))
        self.alpha = float(self.alpha)
        self.beta = float(self.beta)
        if self.omega_df is not None:
            self.omega_df = float(self.omega_df)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MixedPrior:
        """Build a prior from a mapping such as a configuration section."""
        missing = [k for k in ("m", "v", "alpha", "beta") if k not in data]
        omega = data.get("prior_omega", data.get("priorOmega"))
        if omega is None:
            missing.append("prior_omega")
        if missing:
            raise SamplerUsageError(
                "Prior specification is incomplete", {"missing": missing}
            )
        return cls(
            m=data["m"],
            v=data["v"],
            prior_omega=omega,
            alpha=data["alpha"],
            beta=data["beta"],
            omega_df=data.get("omega_df"),
        )

    @property
    def is_diagonal(self) -> bool:
        return isinstance(self.prior_omega, DiagonalOmegaPrior)

    @property
    def n_params(self) -> int:
        return int(self.m.size)

    def omega_degrees_of_freedom(self) -> float:
        if self.omega_df is not None:
            return self.omega_df
        return float(self.n_params + 1)

    def mean_precision(self) -> np.ndarray:
        """Precision matrix V⁻¹ of the prior on μ (zero rows for flat components)."""
        if self.v.ndim == 1:
            return np.diag(1.0 / self.v)
        return np.linalg.inv(self.v)

    def validate(self, n_params: int, omega_structure: str) -> list[str]:
        """Check the prior against the model dimension and Ω structure.

        Returns
        -------
        list[str]
            Problems found (empty if the prior is usable).
        """
        errors: list[str] = []
        d = n_params

        if self.m.shape != (d,):
            errors.append(f"m must have length {d}, got shape {self.m.shape}")
        elif not np.all(np.isfinite(self.m)):
            errors.append("m must be finite")
        if self.v.shape not in ((d,), (d, d)):
            errors.append(f"v must have shape ({d},) or ({d}, {d}), got {self.v.shape}")
        elif self.v.ndim == 1 and not np.all(self.v > 0):
            errors.append("v must be strictly positive (use inf for a flat prior)")
        elif self.v.ndim == 2 and not _is_positive_definite(self.v):
            errors.append("v must be a symmetric positive definite matrix")

        if omega_structure == "diag":
            if not self.is_diagonal:
                errors.append(
                    "omega_structure 'diag' needs prior_omega given as alpha and beta vectors"
                )
            else:
                for name in ("alpha", "beta"):
                    values = getattr(self.prior_omega, name)
                    if values.shape != (d,):
                        errors.append(
                            f"prior_omega.{name} must have length {d}, got shape {values.shape}"
                        )
                    elif not np.all(values > 0):
                        errors.append(f"prior_omega.{name} must be strictly positive")
        elif omega_structure == "full":
            if self.is_diagonal:
                errors.append(
                    "omega_structure 'full' needs prior_omega given as a scale matrix R"
                )
            elif self.prior_omega.shape != (d, d):
                errors.append(
                    f"prior_omega must be a ({d}, {d}) matrix, got {self.prior_omega.shape}"
                )
            elif not _is_positive_definite(self.prior_omega):
                errors.append("prior_omega must be symmetric positive definite")
            if self.omega_degrees_of_freedom() <= d - 1:
                errors.append(
                    f"omega_df must exceed {d - 1}, got {self.omega_degrees_of_freedom()}"
                )
        else:
            errors.append(f"Unknown omega_structure '{omega_structure}'")

        if not (self.alpha > 0 and self.beta > 0):
            errors.append(
                f"alpha and beta of the gamma2 prior must be positive, got {self.alpha}, {self.beta}"
            )
        return errors


@dataclass
class StartValues:
    """Initial state ``{phi, mu, gamma2}``.

    ``phi`` has one row per unit; Ω is not given because the sampler draws its
    initial value from the covariance update at the starting φ and μ.
    """

    phi: np.ndarray
    mu: np.ndarray
    gamma2: float

    def __post_init__(self):
        self.mu = np.atleast_1d(np.asarray(self.mu, dtype=float))
        self.phi = np.atleast_2d(np.asarray(self.phi, dtype=float))
        self.gamma2 = float(self.gamma2)

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], n_units: int | None = None
    ) -> StartValues:
        """Build starting values from a mapping.

        If ``phi`` is missing, every unit starts at ``mu`` (needs ``n_units``).
        """
        if "mu" not in data:
            raise SamplerUsageError("Starting values need 'mu'")
        mu = np.atleast_1d(np.asarray(data["mu"], dtype=float))
        phi = data.get("phi")
        if phi is None:
            if n_units is None:
                raise SamplerUsageError(
                    "Starting values need 'phi' or the number of units"
                )
            phi = np.tile(mu, (n_units, 1))
        return cls(phi=phi, mu=mu, gamma2=data.get("gamma2", 1.0))

    @property
    def proposal_reference(self) -> np.ndarray:
        return np.abs(self.mu)

    def validate(self, n_units: int) -> list[str]:
        errors: list[str] = []
        d = self.mu.size
        if self.phi.shape != (n_units, d):
            errors.append(
                f"phi must have shape ({n_units}, {d}) (units x parameters), got {self.phi.shape}"
            )
        if not (np.all(np.isfinite(self.phi)) and np.all(np.isfinite(self.mu))):
            errors.append("phi and mu must be finite")
        if not (np.isfinite(self.gamma2) and self.gamma2 > 0):
            errors.append(f"gamma2 must be strictly positive, got {self.gamma2}")
        return errors


def _omega_mapping(data: Mapping[str, Any]) -> dict[str, Any]:
    if "alpha" not in data or "beta" not in data:
        raise SamplerUsageError(
            "Diagonal prior_omega needs both 'alpha' and 'beta'",
            {"keys": sorted(data)},
        )
    return {"alpha": data["alpha"], "beta": data["beta"]}


def _is_positive_definite(matrix: np.ndarray) -> bool:
    if not np.allclose(matrix, matrix.T):
        return False
    try:
        np.linalg.cholesky(matrix)
    except np.linalg.LinAlgError:
        return False
    return True


def coerce_prior(prior: MixedPrior | Mapping[str, Any]) -> MixedPrior:
    if isinstance(prior, MixedPrior):
        return prior
    if isinstance(prior, Mapping):
        return MixedPrior.from_dict(prior)
    raise SamplerUsageError(
        f"prior must be a MixedPrior or a mapping, got {type(prior).__name__}"
    )


def coerce_start(
    start: StartValues | Mapping[str, Any], n_units: int | None = None
) -> StartValues:
    if isinstance(start, StartValues):
        return start
    if isinstance(start, Mapping):
        return StartValues.from_dict(start, n_units=n_units)
    raise SamplerUsageError(
        f"start must be StartValues or a mapping, got {type(start).__name__}"
    )
