"""MCMC result saving functions for bayesnlme.

This module provides functions for creating dictionaries and files that hold
the output of a mixed-regression run:

- ``parameters.json``: posterior mean ± std and 95 % interval per quantity
- ``trace.npz``: the full trace (phi, mu, omega, gamma2, acceptance counts)
- ``trace.json``: the full trace as plain JSON lists
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import numpy as np

from bayesnlme.exceptions import TraceDeserializationError
from bayesnlme.io.json_utils import json_safe
from bayesnlme.mcmc.result import MixedRegressionTrace
from bayesnlme.utils.logging import get_logger

logger = get_logger(__name__)

_TRACE_ARRAYS = ("phi", "mu", "omega", "gamma2", "acceptance_counts")


def _posterior_stats(draws: np.ndarray) -> dict[str, float]:
    return {
        "mean": float(np.mean(draws)),
        "std": float(np.std(draws)),
        "q2.5": float(np.percentile(draws, 2.5)),
        "q97.5": float(np.percentile(draws, 97.5)),
    }


def create_parameters_dict(trace: MixedRegressionTrace, burn_in: int = 0) -> dict:
    """Create parameters dictionary with posterior statistics.

    Parameters
    ----------
    trace : MixedRegressionTrace
        Sampler output.
    burn_in : int
        Number of leading iterations excluded from the statistics.

    Returns
    -------
    dict
        Structured dictionary with a sampling summary and, per quantity
        (mu, omega diagonal, gamma2, per-unit phi), its posterior mean, std
        and 95 % interval.
    """
    kept = trace.discard_burn_in(burn_in) if burn_in else trace
    names = kept.parameter_names

    param_dict: dict[str, Any] = {
        "timestamp": datetime.now().isoformat(),
        "method": "metropolis_within_gibbs",
        "model": trace.metadata.get("model", "unknown"),
        "sampling_summary": {
            "n_iterations": trace.n_iterations,
            "burn_in": burn_in,
            "n_kept": kept.n_iterations,
            "n_units": trace.n_units,
            "n_params": trace.n_params,
            "omega_structure": trace.omega_structure,
            "computation_time": trace.metadata.get("duration_seconds", 0.0),
        },
        "acceptance_rate": {
            "per_unit": trace.acceptance_rate.tolist(),
            "mean": float(np.mean(trace.acceptance_rate)),
        },
        "parameters": {
            "mu": {
                name: _posterior_stats(kept.mu[:, k]) for k, name in enumerate(names)
            },
            "omega": {
                name: _posterior_stats(kept.omega_diagonal()[:, k])
                for k, name in enumerate(names)
            },
            "gamma2": _posterior_stats(kept.gamma2),
        },
        "random_effects": [
            {name: float(np.mean(kept.phi[:, j, k])) for k, name in enumerate(names)}
            for j in range(kept.n_units)
        ],
    }
    return param_dict


def save_trace_npz(trace: MixedRegressionTrace, path: str | Path) -> Path:
    """Save the full trace to a compressed ``.npz`` archive."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(
        path,
        phi=trace.phi,
        mu=trace.mu,
        omega=trace.omega,
        gamma2=trace.gamma2,
        acceptance_counts=trace.acceptance_counts,
        omega_structure=np.array(trace.omega_structure),
        parameter_names=np.array(trace.parameter_names),
        metadata=np.array(json.dumps(json_safe(trace.metadata))),
    )
    logger.debug(f"Saved trace to {path}")
    return path


def load_trace_npz(path: str | Path) -> MixedRegressionTrace:
    """Load a trace written by :func:`save_trace_npz`.

    Raises
    ------
    TraceDeserializationError
        If the archive lacks trace arrays or they are inconsistent.
    """
    path = Path(path)
    with np.load(path, allow_pickle=False) as archive:
        missing = [key for key in _TRACE_ARRAYS if key not in archive.files]
        if missing:
            raise TraceDeserializationError(
                f"Trace archive {path} is missing arrays", {"missing": missing}
            )
        data: dict[str, Any] = {key: archive[key] for key in _TRACE_ARRAYS}
        if "omega_structure" in archive.files:
            data["omega_structure"] = str(archive["omega_structure"])
        if "parameter_names" in archive.files:
            data["parameter_names"] = [str(n) for n in archive["parameter_names"]]
        if "metadata" in archive.files:
            try:
                data["metadata"] = json.loads(str(archive["metadata"]))
            except json.JSONDecodeError as e:
                raise TraceDeserializationError(
                    f"Invalid metadata in trace archive {path}: {e}"
                ) from e
    return MixedRegressionTrace.from_dict(data)


def save_trace_json(
    trace: MixedRegressionTrace, path: str | Path, burn_in: int = 0
) -> Path:
    """Save the trace (after ``burn_in``) as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    kept = trace.discard_burn_in(burn_in) if burn_in else trace
    payload = json_safe(kept.to_dict())
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    logger.debug(f"Saved JSON trace to {path}")
    return path


def save_parameters_json(
    trace: MixedRegressionTrace, path: str | Path, burn_in: int = 0
) -> Path:
    """Write :func:`create_parameters_dict` output to ``path``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json_safe(create_parameters_dict(trace, burn_in))
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    logger.debug(f"Saved parameters to {path}")
    return path
