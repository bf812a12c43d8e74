"""Trajectory normalization for repeated-measurement data.

The sampler always works on the ragged representation, a list of
:class:`Trajectory` objects, one per unit. This module converts the two
accepted input layouts into that representation:

- a rectangular table ``y`` (2-D array) with a single shared vector ``t``;
  the table orientation is given explicitly, never guessed
- a ragged collection: a sequence of 1-D observation arrays together with
  either one shared ``t`` or one ``t`` array per unit

and applies the held-out truncation of a single unit.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from bayesnlme.exceptions import SamplerUsageError
from bayesnlme.utils.logging import get_logger

logger = get_logger(__name__)

ORIENTATIONS = ("units_by_points", "points_by_units")


@dataclass(frozen=True)
class Trajectory:
    """One observed unit: points ``t`` and observations ``y`` of equal length."""

    t: np.ndarray
    y: np.ndarray

    def __post_init__(self):
        t = np.asarray(self.t, dtype=float)
        y = np.asarray(self.y, dtype=float)
        if t.ndim != 1 or y.ndim != 1:
            raise SamplerUsageError(
                "Trajectory t and y must be one-dimensional",
                {"t_shape": t.shape, "y_shape": y.shape},
            )
        if t.shape != y.shape:
            raise SamplerUsageError(
                "Trajectory t and y must have equal length",
                {"len_t": t.size, "len_y": y.size},
            )
        object.__setattr__(self, "t", t)
        object.__setattr__(self, "y", y)

    @property
    def n_points(self) -> int:
        return int(self.t.size)

    def head(self, cut: int) -> Trajectory:
        """Return the trajectory restricted to its first ``cut`` points."""
        return Trajectory(self.t[:cut].copy(), self.y[:cut].copy())


def _as_table(values) -> np.ndarray | None:
    """Return ``values`` as a float array, or None when its rows differ in length."""
    if isinstance(values, np.ndarray) and values.dtype == object:
        return None
    try:
        return np.asarray(values, dtype=float)
    except ValueError:
        return None


def _per_unit_times(t) -> bool:
    if isinstance(t, np.ndarray):
        return t.dtype == object or t.ndim == 2
    return isinstance(t, Sequence) and len(t) > 0 and np.ndim(t[0]) == 1


def _pair_units(t, y_units: list[np.ndarray]) -> list[Trajectory]:
    if _per_unit_times(t):
        t_units = [np.asarray(t_j, dtype=float) for t_j in t]
        if len(t_units) != len(y_units):
            raise SamplerUsageError(
                "Number of time vectors does not match number of units",
                {"n_t": len(t_units), "n_y": len(y_units)},
            )
    else:
        shared = np.asarray(t, dtype=float)
        t_units = [shared] * len(y_units)
    trajectories = []
    for j, (t_j, y_j) in enumerate(zip(t_units, y_units)):
        if t_j.shape != y_j.shape:
            raise SamplerUsageError(
                f"Length of t does not match observations of unit {j}",
                {"unit": j, "len_t": t_j.size, "len_y": y_j.size},
            )
        trajectories.append(Trajectory(t_j, y_j))
    return trajectories


def normalize_trajectories(
    t,
    y,
    orientation: str = "units_by_points",
) -> list[Trajectory]:
    """Convert observation input into a list of trajectories.

    Any ``y`` that forms a rectangular table, whether an array or nested
    sequences of equal length, is read with ``orientation``. Only units of
    different lengths take the ragged path.

    Parameters
    ----------
    t : array_like or sequence of array_like
        Shared observation points (1-D) or one array per unit. A per-unit
        table of times follows the same ``orientation`` as ``y``.
    y : array_like or sequence of array_like
        Rectangular table (2-D) or one observation array per unit.
    orientation : str
        Layout of a rectangular ``y``: ``"units_by_points"`` (one row per
        unit, the canonical layout) or ``"points_by_units"`` (one column per
        unit, as in a table whose first column holds ``t``).

    Returns
    -------
    list[Trajectory]

    Raises
    ------
    SamplerUsageError
        If the layout is unknown or the dimensions of ``t`` and ``y`` disagree.
    """
    if orientation not in ORIENTATIONS:
        raise SamplerUsageError(
            f"Unknown orientation '{orientation}'", {"valid": ORIENTATIONS}
        )

    table = _as_table(y)
    if table is None:
        return _pair_units(t, [np.asarray(y_j, dtype=float) for y_j in y])

    if table.ndim != 2:
        raise SamplerUsageError(
            "Rectangular observations must be a 2-D table",
            {"y_shape": table.shape},
        )
    if orientation == "points_by_units":
        table = table.T

    if _per_unit_times(t):
        t_table = _as_table(t)
        if t_table is not None and t_table.ndim == 2:
            if orientation == "points_by_units":
                t_table = t_table.T
            return _pair_units(list(t_table), list(table))
        return _pair_units(t, list(table))

    shared = np.asarray(t, dtype=float)
    if shared.ndim != 1:
        raise SamplerUsageError("t must be one-dimensional", {"t_shape": shared.shape})
    if table.shape[1] != shared.size:
        raise SamplerUsageError(
            "Length of t has to match the number of points per unit in y",
            {
                "len_t": shared.size,
                "y_shape": np.shape(y),
                "orientation": orientation,
            },
        )
    return [Trajectory(shared, row) for row in table]


def truncate_trajectory(
    trajectories: list[Trajectory],
    ipred: int,
    cut: int | None,
) -> list[Trajectory]:
    """Keep only the first ``cut`` points of unit ``ipred``.

    The other units are returned unchanged. ``cut=None`` keeps all points.
    """
    n_units = len(trajectories)
    if not 0 <= ipred < n_units:
        raise SamplerUsageError(
            "ipred must index one of the units",
            {"ipred": ipred, "n_units": n_units},
        )
    if cut is None:
        return list(trajectories)
    n_points = trajectories[ipred].n_points
    if not 1 <= cut <= n_points:
        raise SamplerUsageError(
            "cut must lie between 1 and the number of points of unit ipred",
            {"cut": cut, "n_points": n_points, "ipred": ipred},
        )
    truncated = list(trajectories)
    truncated[ipred] = trajectories[ipred].head(cut)
    if cut < n_points:
        logger.debug(
            f"Unit {ipred} truncated to {cut} of {n_points} points for estimation"
        )
    return truncated


def prepare_trajectories(
    t,
    y,
    ipred: int = 0,
    cut: int | None = None,
    orientation: str = "units_by_points",
) -> list[Trajectory]:
    """Normalize input and apply the held-out truncation in one step."""
    trajectories = normalize_trajectories(t, y, orientation=orientation)
    if not trajectories:
        raise SamplerUsageError("At least one trajectory is required")
    return truncate_trajectory(trajectories, ipred, cut)


def count_observations(trajectories: list[Trajectory]) -> int:
    """Total number of observations pooled across trajectories."""
    return int(sum(traj.n_points for traj in trajectories))
