"""
Pytest Configuration and Fixtures for bayesnlme
===============================================

Shared fixtures, configuration, and test utilities for the entire test suite.
"""

import tempfile
from pathlib import Path

import numpy as np
import pytest

from bayesnlme.core.models import GompertzModel
from bayesnlme.data.simulation import (
    default_prior,
    default_simulation_parameters,
    default_start,
    draw_data,
)
from bayesnlme.mcmc.priors import DiagonalOmegaPrior, MixedPrior, StartValues

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for workflows")
    config.addinivalue_line("markers", "mcmc: MCMC statistical tests")
    config.addinivalue_line("markers", "slow: Slow tests (> 5 seconds)")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
        elif "mcmc" in path:
            item.add_marker(pytest.mark.mcmc)
            item.add_marker(pytest.mark.slow)


# ============================================================================
# Core Fixtures
# ============================================================================


def linear_function(phi, t):
    """Straight line f(φ, t) = φ₁ + φ₂ t."""
    return phi[0] + phi[1] * np.asarray(t, dtype=float)


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(12345)


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def linear_model():
    return linear_function


@pytest.fixture
def linear_data():
    """Four noisy lines on a shared grid with known random effects."""
    generator = np.random.default_rng(2024)
    t = np.linspace(0.0, 1.0, 6)
    phi = np.array([[1.0, 2.0], [1.2, 1.8], [0.9, 2.1], [1.1, 2.2]])
    y = np.array([linear_function(p, t) for p in phi])
    y = y + generator.normal(0.0, 0.1, size=y.shape)
    return {"t": t, "y": y, "phi": phi, "mu": np.array([1.0, 2.0]), "gamma2": 0.01}


@pytest.fixture
def linear_prior():
    return MixedPrior(
        m=[1.0, 2.0],
        v=[10.0, 10.0],
        prior_omega=DiagonalOmegaPrior(alpha=[3.0, 3.0], beta=[0.02, 0.02]),
        alpha=3.0,
        beta=0.02,
    )


@pytest.fixture
def linear_full_prior():
    return MixedPrior(
        m=[1.0, 2.0],
        v=[10.0, 10.0],
        prior_omega=np.diag([0.02, 0.02]),
        alpha=3.0,
        beta=0.02,
    )


@pytest.fixture
def linear_start(linear_data):
    n = linear_data["y"].shape[0]
    return StartValues(
        phi=np.tile(linear_data["mu"], (n, 1)), mu=linear_data["mu"], gamma2=0.05
    )


@pytest.fixture
def gompertz_model():
    return GompertzModel()


@pytest.fixture
def gompertz_data(gompertz_model):
    """Five simulated Gompertz trajectories (20 points each) and their truth."""
    mu = gompertz_model.default_parameters()
    params = default_simulation_parameters(mu, n=5, model=gompertz_model)
    data = draw_data(gompertz_model, params, rng=np.random.default_rng(7))
    return {
        "t": data.t,
        "y": data.y,
        "phi": data.phi,
        "params": params,
        "prior": default_prior(mu, params.gamma2),
        "start": default_start(mu, 5, gamma2=params.gamma2),
    }
