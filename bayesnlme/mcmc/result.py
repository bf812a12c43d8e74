"""Chain state and trace containers for the Gibbs sampler.

:class:`ChainState` is the single mutable state owned by the sampler driver;
:class:`MixedRegressionTrace` holds the full history of every updated
quantity, indexed by iteration, together with posterior summaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from bayesnlme.exceptions import SamplerUsageError, TraceDeserializationError
from bayesnlme.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ChainState:
    """Current values of all sampled quantities.

    Attributes
    ----------
    phi : np.ndarray
        Random effects, shape (n_units, n_params).
    mu : np.ndarray
        Population mean, shape (n_params,).
    omega : np.ndarray
        Population variances, shape (n_params,) (diagonal) or covariance
        matrix, shape (n_params, n_params) (full).
    gamma2 : float
        Residual variance scale.
    """

    phi: np.ndarray
    mu: np.ndarray
    omega: np.ndarray
    gamma2: float


@dataclass
class MixedRegressionTrace:
    """Full MCMC output of a mixed-regression run.

    Attributes
    ----------
    phi : np.ndarray
        Random-effect draws, shape (n_iterations, n_units, n_params).
    mu : np.ndarray
        Population-mean draws, shape (n_iterations, n_params).
    omega : np.ndarray
        Covariance draws, shape (n_iterations, n_params) for the diagonal
        structure or (n_iterations, n_params, n_params) for the full one.
    gamma2 : np.ndarray
        Residual-variance draws, shape (n_iterations,).
    acceptance_counts : np.ndarray
        Accepted Metropolis proposals per unit, shape (n_units,).
    omega_structure : str
        "diag" or "full".
    parameter_names : list[str]
        Names of the random-effect components.
    metadata : dict
        Run information (model, seed, ipred, cut, duration, ...).
    """

    phi: np.ndarray
    mu: np.ndarray
    omega: np.ndarray
    gamma2: np.ndarray
    acceptance_counts: np.ndarray
    omega_structure: str = "diag"
    parameter_names: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.parameter_names:
            self.parameter_names = [f"phi{k + 1}" for k in range(self.n_params)]

    @property
    def n_iterations(self) -> int:
        return int(self.gamma2.shape[0])

    @property
    def n_units(self) -> int:
        return int(self.phi.shape[1])

    @property
    def n_params(self) -> int:
        return int(self.mu.shape[1])

    @property
    def acceptance_rate(self) -> np.ndarray:
        """Fraction of accepted proposals per unit."""
        if self.n_iterations == 0:
            return np.zeros(self.n_units)
        return self.acceptance_counts / float(self.n_iterations)

    def phi_ij(self, unit: int, component: int) -> np.ndarray:
        """Trace of component ``component`` of unit ``unit`` (0-based)."""
        if not 0 <= unit < self.n_units:
            raise SamplerUsageError(
                "unit out of range", {"unit": unit, "n_units": self.n_units}
            )
        if not 0 <= component < self.n_params:
            raise SamplerUsageError(
                "component out of range",
                {"component": component, "n_params": self.n_params},
            )
        return self.phi[:, unit, component]

    def omega_diagonal(self) -> np.ndarray:
        """Variance draws, shape (n_iterations, n_params), for both structures."""
        if self.omega.ndim == 3:
            return np.diagonal(self.omega, axis1=1, axis2=2).copy()
        return self.omega

    def _check_burn_in(self, burn_in: int) -> None:
        if not 0 <= burn_in < self.n_iterations:
            raise SamplerUsageError(
                "burn_in must be non-negative and smaller than n_iterations",
                {"burn_in": burn_in, "n_iterations": self.n_iterations},
            )

    def discard_burn_in(self, burn_in: int) -> MixedRegressionTrace:
        """Return a new trace without the first ``burn_in`` iterations.

        Acceptance counts cover the whole run and are kept unchanged.
        """
        self._check_burn_in(burn_in)
        return MixedRegressionTrace(
            phi=self.phi[burn_in:].copy(),
            mu=self.mu[burn_in:].copy(),
            omega=self.omega[burn_in:].copy(),
            gamma2=self.gamma2[burn_in:].copy(),
            acceptance_counts=self.acceptance_counts.copy(),
            omega_structure=self.omega_structure,
            parameter_names=list(self.parameter_names),
            metadata={**self.metadata, "burn_in_discarded": burn_in},
        )

    def posterior_mean(self, burn_in: int = 0) -> dict[str, np.ndarray | float]:
        """Posterior means of phi, mu, omega and gamma2 after ``burn_in``."""
        self._check_burn_in(burn_in)
        return {
            "phi": self.phi[burn_in:].mean(axis=0),
            "mu": self.mu[burn_in:].mean(axis=0),
            "omega": self.omega[burn_in:].mean(axis=0),
            "gamma2": float(self.gamma2[burn_in:].mean()),
        }

    def summary(self, burn_in: int = 0):
        """Posterior summary table for mu, omega and gamma2.

        Returns
        -------
        pandas.DataFrame
            One row per scalar quantity with columns ``mean``, ``std``,
            ``q2.5`` and ``q97.5``.
        """
        import pandas as pd

        self._check_burn_in(burn_in)
        columns: dict[str, np.ndarray] = {}
        for k, name in enumerate(self.parameter_names):
            columns[f"mu[{name}]"] = self.mu[burn_in:, k]
        if self.omega.ndim == 3:
            for k in range(self.n_params):
                for j in range(k, self.n_params):
                    label = f"omega[{self.parameter_names[k]},{self.parameter_names[j]}]"
                    columns[label] = self.omega[burn_in:, k, j]
        else:
            for k, name in enumerate(self.parameter_names):
                columns[f"omega[{name}]"] = self.omega[burn_in:, k]
        columns["gamma2"] = self.gamma2[burn_in:]

        rows = {
            label: {
                "mean": float(np.mean(draws)),
                "std": float(np.std(draws)),
                "q2.5": float(np.percentile(draws, 2.5)),
                "q97.5": float(np.percentile(draws, 97.5)),
            }
            for label, draws in columns.items()
        }
        return pd.DataFrame.from_dict(rows, orient="index")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary of plain lists (JSON-compatible)."""
        return {
            "phi": self.phi.tolist(),
            "mu": self.mu.tolist(),
            "omega": self.omega.tolist(),
            "gamma2": self.gamma2.tolist(),
            "acceptance_counts": self.acceptance_counts.tolist(),
            "omega_structure": self.omega_structure,
            "parameter_names": list(self.parameter_names),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MixedRegressionTrace:
        """Rebuild a trace from :meth:`to_dict` output, validating shapes.

        Raises
        ------
        TraceDeserializationError
            If keys are missing or the arrays have inconsistent shapes.
        """
        required = ("phi", "mu", "omega", "gamma2", "acceptance_counts")
        missing = [key for key in required if key not in data]
        if missing:
            raise TraceDeserializationError(
                "Serialized trace is missing fields", {"missing": missing}
            )

        try:
            phi = np.asarray(data["phi"], dtype=float)
            mu = np.asarray(data["mu"], dtype=float)
            omega = np.asarray(data["omega"], dtype=float)
            gamma2 = np.asarray(data["gamma2"], dtype=float)
            counts = np.asarray(data["acceptance_counts"], dtype=np.int64)
        except (TypeError, ValueError) as e:
            raise TraceDeserializationError(f"Non-numeric trace data: {e}") from e

        structure = data.get("omega_structure", "diag")
        if structure not in ("diag", "full"):
            raise TraceDeserializationError(
                f"Unknown omega_structure '{structure}'"
            )
        if phi.ndim != 3 or mu.ndim != 2 or gamma2.ndim != 1:
            raise TraceDeserializationError(
                "Trace arrays have the wrong number of dimensions",
                {"phi": phi.shape, "mu": mu.shape, "gamma2": gamma2.shape},
            )

        n_iter, n_units, d = phi.shape
        expected_omega = (n_iter, d) if structure == "diag" else (n_iter, d, d)
        if (
            mu.shape != (n_iter, d)
            or gamma2.shape != (n_iter,)
            or omega.shape != expected_omega
            or counts.shape != (n_units,)
        ):
            raise TraceDeserializationError(
                "Trace arrays have inconsistent shapes",
                {
                    "phi": phi.shape,
                    "mu": mu.shape,
                    "omega": omega.shape,
                    "gamma2": gamma2.shape,
                    "acceptance_counts": counts.shape,
                },
            )

        names = list(data.get("parameter_names") or [])
        if names and len(names) != d:
            raise TraceDeserializationError(
                "parameter_names does not match the number of parameters",
                {"n_names": len(names), "n_params": d},
            )

        return cls(
            phi=phi,
            mu=mu,
            omega=omega,
            gamma2=gamma2,
            acceptance_counts=counts,
            omega_structure=structure,
            parameter_names=names,
            metadata=dict(data.get("metadata") or {}),
        )
