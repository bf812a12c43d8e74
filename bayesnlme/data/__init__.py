"""
Data handling for bayesnlme
===========================

Trajectory normalization, table loading and synthetic data generation.

Example Usage:
    >>> from bayesnlme.data import load_trajectory_table, prepare_trajectories
    >>>
    >>> t, y = load_trajectory_table("crack_growth.txt")
    >>> trajectories = prepare_trajectories(t, y, ipred=0, cut=5)
"""

from bayesnlme.data.loader import load_trajectory_table
from bayesnlme.data.simulation import (
    SimulatedData,
    SimulationParameters,
    default_prior,
    default_simulation_parameters,
    default_start,
    draw_data,
)
from bayesnlme.data.trajectories import (
    ORIENTATIONS,
    Trajectory,
    count_observations,
    normalize_trajectories,
    prepare_trajectories,
    truncate_trajectory,
)

__all__ = [
    "ORIENTATIONS",
    "Trajectory",
    "normalize_trajectories",
    "truncate_trajectory",
    "prepare_trajectories",
    "count_observations",
    "load_trajectory_table",
    "SimulationParameters",
    "SimulatedData",
    "default_simulation_parameters",
    "draw_data",
    "default_prior",
    "default_start",
]
