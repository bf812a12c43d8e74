"""Loading of trajectory tables from delimited text files.

Expected layout (the usual crack-growth table): the first column holds the
shared points ``t``, every further column the observations of one unit::

    t      unit1   unit2   ...
    0.00   9.00    9.00
    0.01   9.10    9.05

Missing values (empty fields or ``nan``) end a unit's trajectory early, so
units of different lengths can share one file.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from bayesnlme.data.trajectories import ORIENTATIONS
from bayesnlme.exceptions import ConfigurationError, SamplerUsageError
from bayesnlme.utils.logging import get_logger

logger = get_logger(__name__)


def load_trajectory_table(
    path: str | Path,
    orientation: str = "points_by_units",
    delimiter: str | None = None,
    skip_header: int = 0,
    y_scale: float = 1.0,
    t_scale: float = 1.0,
) -> tuple[np.ndarray, np.ndarray | list[np.ndarray]]:
    """Read ``t`` and ``y`` from a text table.

    Parameters
    ----------
    path : str or Path
        Table file (whitespace- or ``delimiter``-separated).
    orientation : str
        "points_by_units": first column is ``t``, one column per unit.
        "units_by_points": first row is ``t``, one row per unit.
    delimiter : str, optional
        Field separator; None splits on whitespace.
    skip_header : int
        Number of header lines to skip.
    y_scale, t_scale : float
        Factors applied to observations and points (unit conversion).

    Returns
    -------
    tuple
        ``(t, y)`` where ``y`` is a (units × points) table when complete, or
        a list of per-unit arrays when some units stop early. In the ragged
        case ``t`` is a list of per-unit arrays as well.
    """
    if orientation not in ORIENTATIONS:
        raise SamplerUsageError(
            f"Unknown orientation '{orientation}'", {"valid": ORIENTATIONS}
        )
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Data file not found: {path}", config_file=str(path))

    try:
        table = np.genfromtxt(
            path,
            delimiter=delimiter,
            skip_header=skip_header,
            dtype=float,
            filling_values=np.nan,
            ndmin=2,
        )
    except ValueError as e:
        raise ConfigurationError(
            f"Cannot parse data file: {e}", config_file=str(path)
        ) from e

    if orientation == "units_by_points":
        table = table.T
    if table.shape[1] < 2:
        raise ConfigurationError(
            "Data table needs a t column and at least one unit",
            config_file=str(path),
            error_context={"shape": table.shape},
        )

    t = table[:, 0] * t_scale
    units = table[:, 1:].T * y_scale
    if np.any(np.isnan(t)):
        raise ConfigurationError(
            "Missing values in the t column", config_file=str(path)
        )

    logger.info(
        f"Loaded {units.shape[0]} units with up to {t.size} points from {path}"
    )
    if not np.any(np.isnan(units)):
        return t, units

    times, observations = [], []
    for j, row in enumerate(units):
        valid = ~np.isnan(row)
        n_valid = int(np.argmin(valid)) if not valid.all() else row.size
        if n_valid == 0:
            raise ConfigurationError(
                f"Unit {j} has no observations", config_file=str(path)
            )
        times.append(t[:n_valid].copy())
        observations.append(row[:n_valid].copy())
    logger.debug("Table has missing values; returning ragged trajectories")
    return times, observations

