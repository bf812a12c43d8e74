"""Tests for the sampler driver and fit_mixed_mcmc."""

import logging

import numpy as np
import pytest

from bayesnlme.core.models import GompertzModel, PowerVariance
from bayesnlme.exceptions import SamplerUsageError
from bayesnlme.mcmc import (
    MixedRegressionSampler,
    MixedRegressionTrace,
    SamplerConfig,
    fit_mixed_mcmc,
)
from bayesnlme.mcmc.priors import StartValues


def _fit(data, prior, start, model, **config):
    config.setdefault("n_iterations", 30)
    config.setdefault("seed", 11)
    return fit_mixed_mcmc(
        data["t"], data["y"], prior, start, model, config=SamplerConfig(**config)
    )


class TestTraceShapes:
    """Every trace has one entry per iteration."""

    @pytest.mark.parametrize("n_iterations", [1, 7, 40])
    def test_lengths_diagonal(
        self, linear_data, linear_prior, linear_start, linear_model, n_iterations
    ):
        trace = _fit(
            linear_data, linear_prior, linear_start, linear_model,
            n_iterations=n_iterations,
        )
        assert isinstance(trace, MixedRegressionTrace)
        assert trace.n_iterations == n_iterations
        assert trace.phi.shape == (n_iterations, 4, 2)
        assert trace.mu.shape == (n_iterations, 2)
        assert trace.omega.shape == (n_iterations, 2)
        assert trace.gamma2.shape == (n_iterations,)
        assert trace.acceptance_counts.shape == (4,)
        assert np.all(trace.acceptance_counts <= n_iterations)

    def test_lengths_full(
        self, linear_data, linear_full_prior, linear_start, linear_model
    ):
        trace = _fit(
            linear_data, linear_full_prior, linear_start, linear_model,
            omega_structure="full", n_iterations=25,
        )
        assert trace.omega_structure == "full"
        assert trace.omega.shape == (25, 2, 2)

    def test_default_parameter_names(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        trace = _fit(linear_data, linear_prior, linear_start, linear_model)
        assert trace.parameter_names == ["phi1", "phi2"]


class TestChainInvariants:
    """Positivity of the variance draws at every iteration."""

    def test_gamma2_positive(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        trace = _fit(
            linear_data, linear_prior, linear_start, linear_model, n_iterations=200
        )
        assert np.all(trace.gamma2 > 0)
        assert np.all(np.isfinite(trace.gamma2))

    def test_diagonal_omega_positive(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        trace = _fit(
            linear_data, linear_prior, linear_start, linear_model, n_iterations=200
        )
        assert np.all(trace.omega > 0)

    def test_full_omega_symmetric_positive_definite(
        self, linear_data, linear_full_prior, linear_start, linear_model
    ):
        trace = _fit(
            linear_data, linear_full_prior, linear_start, linear_model,
            omega_structure="full", n_iterations=200,
        )
        np.testing.assert_array_equal(trace.omega, np.transpose(trace.omega, (0, 2, 1)))
        eigenvalues = np.linalg.eigvalsh(trace.omega)
        assert np.all(eigenvalues > 0)


class TestTruncation:
    """Held-out points of unit ipred never influence the chain."""

    def test_corrupted_tail_does_not_change_trace(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        settings = {"ipred": 2, "cut": 3, "n_iterations": 50, "seed": 5}
        clean = _fit(linear_data, linear_prior, linear_start, linear_model, **settings)

        corrupted_y = linear_data["y"].copy()
        corrupted_y[2, 3:] = [np.nan, 1e12, -np.inf]
        corrupted = _fit(
            {**linear_data, "y": corrupted_y},
            linear_prior, linear_start, linear_model, **settings,
        )

        np.testing.assert_array_equal(clean.phi, corrupted.phi)
        np.testing.assert_array_equal(clean.mu, corrupted.mu)
        np.testing.assert_array_equal(clean.gamma2, corrupted.gamma2)

    def test_other_units_are_not_truncated(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        sampler = MixedRegressionSampler(
            linear_data["t"], linear_data["y"], linear_prior, linear_start,
            linear_model, config=SamplerConfig(ipred=1, cut=2),
        )
        assert [len(y) for y in sampler.observations] == [6, 2, 6, 6]
        assert sampler.n_observations == 20

    def test_cut_changes_the_chain(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        full = _fit(linear_data, linear_prior, linear_start, linear_model, seed=5)
        cut = _fit(linear_data, linear_prior, linear_start, linear_model, seed=5, cut=2)
        assert not np.array_equal(full.gamma2, cut.gamma2)


class TestReproducibility:
    def test_same_seed_same_trace(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        first = _fit(linear_data, linear_prior, linear_start, linear_model, seed=3)
        second = _fit(linear_data, linear_prior, linear_start, linear_model, seed=3)
        np.testing.assert_array_equal(first.phi, second.phi)
        np.testing.assert_array_equal(first.omega, second.omega)

    def test_different_seed_different_trace(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        first = _fit(linear_data, linear_prior, linear_start, linear_model, seed=3)
        second = _fit(linear_data, linear_prior, linear_start, linear_model, seed=4)
        assert not np.array_equal(first.gamma2, second.gamma2)

    def test_inputs_not_modified(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        phi_before = linear_start.phi.copy()
        y_before = linear_data["y"].copy()
        _fit(linear_data, linear_prior, linear_start, linear_model, n_iterations=20)
        np.testing.assert_array_equal(linear_start.phi, phi_before)
        np.testing.assert_array_equal(linear_data["y"], y_before)


class TestInputForms:
    """Mappings, orientations and ragged input."""

    def test_mapping_prior_start_and_config(self, linear_data, linear_model):
        prior = {
            "m": [1.0, 2.0],
            "v": [10.0, 10.0],
            "priorOmega": {"alpha": [3.0, 3.0], "beta": [0.02, 0.02]},
            "alpha": 3.0,
            "beta": 0.02,
        }
        start = {"mu": [1.0, 2.0], "gamma2": 0.05}
        trace = fit_mixed_mcmc(
            linear_data["t"], linear_data["y"], prior, start, linear_model,
            config={"len": 12, "seed": 1},
        )
        assert trace.n_iterations == 12
        assert trace.n_units == 4

    def test_points_by_units_orientation(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        canonical = _fit(linear_data, linear_prior, linear_start, linear_model)
        transposed = _fit(
            {**linear_data, "y": linear_data["y"].T},
            linear_prior, linear_start, linear_model,
            orientation="points_by_units",
        )
        np.testing.assert_array_equal(canonical.phi, transposed.phi)

    def test_ragged_units(self, linear_prior, linear_model):
        t = [np.linspace(0, 1, 5), np.linspace(0, 1, 3), np.linspace(0, 2, 7)]
        y = [linear_model([1.0, 2.0], t_j) for t_j in t]
        start = StartValues(phi=np.tile([1.0, 2.0], (3, 1)), mu=[1.0, 2.0], gamma2=0.1)
        trace = fit_mixed_mcmc(
            t, y, linear_prior, start, linear_model,
            config=SamplerConfig(n_iterations=10, seed=2),
        )
        assert trace.phi.shape == (10, 3, 2)
        assert trace.metadata["n_observations"] == 15

    def test_default_model_from_config(self, gompertz_data):
        trace = fit_mixed_mcmc(
            gompertz_data["t"], gompertz_data["y"],
            gompertz_data["prior"], gompertz_data["start"],
            config=SamplerConfig(n_iterations=10, seed=1),
        )
        assert trace.metadata["model"] == "gompertz"
        assert trace.parameter_names == ["asymptote", "displacement", "rate"]

    def test_variance_function_used(self, gompertz_data):
        model = GompertzModel()
        sampler = MixedRegressionSampler(
            gompertz_data["t"][1:], gompertz_data["y"][:, 1:],
            gompertz_data["prior"], gompertz_data["start"],
            model, PowerVariance(exponent=1.0),
        )
        np.testing.assert_allclose(
            sampler.relative_variances[0], gompertz_data["t"][1:]
        )


class TestUsageErrors:
    """Inconsistent inputs are rejected before any iteration."""

    def test_time_length_mismatch(self, linear_data, linear_prior, linear_start, linear_model):
        with pytest.raises(SamplerUsageError, match="Length of t"):
            MixedRegressionSampler(
                linear_data["t"][:-1], linear_data["y"], linear_prior,
                linear_start, linear_model,
            )

    def test_full_structure_with_diagonal_prior(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        with pytest.raises(SamplerUsageError, match="omega_structure 'full'"):
            MixedRegressionSampler(
                linear_data["t"], linear_data["y"], linear_prior, linear_start,
                linear_model, config=SamplerConfig(omega_structure="full"),
            )

    def test_diag_structure_with_matrix_prior(
        self, linear_data, linear_full_prior, linear_start, linear_model
    ):
        with pytest.raises(SamplerUsageError, match="omega_structure 'diag'"):
            MixedRegressionSampler(
                linear_data["t"], linear_data["y"], linear_full_prior,
                linear_start, linear_model,
            )

    def test_start_phi_wrong_shape(self, linear_data, linear_prior, linear_model):
        start = StartValues(phi=np.ones((3, 2)), mu=[1.0, 2.0], gamma2=1.0)
        with pytest.raises(SamplerUsageError, match="Invalid sampler inputs"):
            MixedRegressionSampler(
                linear_data["t"], linear_data["y"], linear_prior, start, linear_model
            )

    def test_model_dimension_mismatch(self, linear_data, linear_prior, linear_start):
        with pytest.raises(SamplerUsageError, match="has 3 parameters"):
            MixedRegressionSampler(
                linear_data["t"], linear_data["y"], linear_prior, linear_start,
                GompertzModel(),
            )

    def test_invalid_config(self, linear_data, linear_prior, linear_start, linear_model):
        with pytest.raises(SamplerUsageError, match="Invalid sampler configuration"):
            MixedRegressionSampler(
                linear_data["t"], linear_data["y"], linear_prior, linear_start,
                linear_model, config={"n_iterations": 0},
            )

    def test_cut_beyond_data(self, linear_data, linear_prior, linear_start, linear_model):
        with pytest.raises(SamplerUsageError, match="cut must lie"):
            MixedRegressionSampler(
                linear_data["t"], linear_data["y"], linear_prior, linear_start,
                linear_model, config=SamplerConfig(cut=7),
            )

    def test_non_positive_variance_function(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        with pytest.raises(SamplerUsageError, match="variance_fn"):
            MixedRegressionSampler(
                linear_data["t"], linear_data["y"], linear_prior, linear_start,
                linear_model, lambda t: np.zeros_like(t),
            )

    def test_non_finite_start_prediction(self, linear_data, linear_prior, linear_start):
        with pytest.raises(SamplerUsageError, match="non-finite"):
            MixedRegressionSampler(
                linear_data["t"], linear_data["y"], linear_prior, linear_start,
                lambda phi, t: np.full_like(t, np.nan),
            )

    def test_failing_regression_function(
        self, linear_data, linear_prior, linear_start
    ):
        def broken(phi, t):
            raise ValueError("bad parameters")

        with pytest.raises(SamplerUsageError, match="bad parameters"):
            MixedRegressionSampler(
                linear_data["t"], linear_data["y"], linear_prior, linear_start, broken
            )


class TestRunReporting:
    def test_metadata(self, linear_data, linear_prior, linear_start, linear_model):
        trace = _fit(
            linear_data, linear_prior, linear_start, linear_model, cut=4, ipred=1
        )
        assert trace.metadata["model"] == "linear_function"
        assert trace.metadata["n_observations"] == 22
        assert trace.metadata["cut"] == 4
        assert trace.metadata["seed"] == 11
        np.testing.assert_allclose(trace.metadata["proposal_sd"], [0.02, 0.04])

    def test_run_logged_as_one_operation(
        self, linear_data, linear_prior, linear_start, linear_model, caplog
    ):
        with caplog.at_level(logging.INFO, logger="bayesnlme"):
            _fit(linear_data, linear_prior, linear_start, linear_model)
        assert "Starting operation: mixed regression MCMC" in caplog.text
        assert "Completed operation: mixed regression MCMC" in caplog.text

    def test_numpy_integer_settings(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        n_points = np.int64(linear_data["t"].size)
        trace = _fit(
            linear_data, linear_prior, linear_start, linear_model,
            n_iterations=np.int64(5), ipred=np.int64(1), cut=n_points - 2,
            seed=np.int64(3),
        )
        assert trace.n_iterations == 5
        assert trace.metadata["n_observations"] == 22

    def test_zero_start_mean_warns(self, linear_data, linear_prior, linear_model, caplog):
        start = StartValues(
            phi=np.tile([1.0, 2.0], (4, 1)), mu=[0.0, 2.0], gamma2=0.05
        )
        with caplog.at_level(logging.WARNING, logger="bayesnlme"):
            trace = _fit(linear_data, linear_prior, start, linear_model)
        assert "Zero proposal standard deviation" in caplog.text
        assert np.all(trace.phi[:, :, 0] == 1.0)

    def test_step_returns_acceptance_flags(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        sampler = MixedRegressionSampler(
            linear_data["t"], linear_data["y"], linear_prior, linear_start,
            linear_model, config=SamplerConfig(seed=0),
        )
        state = sampler.initial_state()
        new_state, accepted = sampler.step(state)
        assert accepted.dtype == bool
        assert accepted.shape == (4,)
        assert new_state.phi.shape == state.phi.shape
        assert new_state.gamma2 > 0

    def test_step_leaves_input_state_unchanged(
        self, linear_data, linear_prior, linear_start, linear_model
    ):
        sampler = MixedRegressionSampler(
            linear_data["t"], linear_data["y"], linear_prior, linear_start,
            linear_model, config=SamplerConfig(seed=4),
        )
        state = sampler.initial_state()
        phi, mu, omega = state.phi.copy(), state.mu.copy(), state.omega.copy()
        sampler.step(state)
        np.testing.assert_array_equal(state.phi, phi)
        np.testing.assert_array_equal(state.mu, mu)
        np.testing.assert_array_equal(state.omega, omega)
