"""Metropolis acceptance of the random-effect update on a linear model.

With f(φ, t) = φ₁ + φ₂ t every term of the acceptance ratio is available in
closed form, so the empirical acceptance behaviour can be compared with
min(1, ratio).
"""

import numpy as np
import pytest

from bayesnlme.mcmc.updates import draw_random_effect, log_acceptance_ratio


def line(phi, t):
    return phi[0] + phi[1] * t


@pytest.fixture
def toy():
    generator = np.random.default_rng(21)
    t = np.linspace(0.0, 1.0, 8)
    y = line(np.array([1.0, 2.0]), t) + generator.normal(0.0, 0.1, size=t.size)
    return {
        "phi": np.array([1.05, 1.9]),
        "t": t,
        "y": y,
        "s2": np.ones_like(t),
        "mu": np.array([1.0, 2.0]),
        "omega": np.array([0.04, 0.09]),
        "gamma2": 0.01,
        "prop_sd": np.array([0.04, 0.08]),
    }


def analytic_log_ratio(candidate, toy):
    """Closed-form log ratio for the linear model with diagonal Ω."""
    phi, mu, omega = toy["phi"], toy["mu"], toy["omega"]
    log_prior = -0.5 * np.sum((candidate - mu) ** 2 / omega) + 0.5 * np.sum(
        (phi - mu) ** 2 / omega
    )
    rss_candidate = np.sum((toy["y"] - line(candidate, toy["t"])) ** 2)
    rss_current = np.sum((toy["y"] - line(phi, toy["t"])) ** 2)
    return log_prior - 0.5 * (rss_candidate - rss_current) / toy["gamma2"]


def step(toy, rng):
    return draw_random_effect(
        toy["phi"], toy["t"], toy["y"], toy["s2"], toy["mu"], toy["omega"],
        toy["gamma2"], toy["prop_sd"], line, rng,
    )


class TestAcceptanceRatio:
    def test_matches_closed_form(self, toy):
        generator = np.random.default_rng(0)
        for _ in range(50):
            candidate = generator.normal(toy["phi"], toy["prop_sd"])
            computed = log_acceptance_ratio(
                candidate, toy["phi"], toy["t"], toy["y"], toy["s2"],
                toy["mu"], toy["omega"], toy["gamma2"], line,
            )
            assert computed == pytest.approx(analytic_log_ratio(candidate, toy), abs=1e-8)


class TestAcceptanceDecision:
    """Each decision is u < min(1, ratio) for the generator's own draws."""

    def test_decisions_replayed(self, toy):
        rng = np.random.default_rng(99)
        replay = np.random.default_rng(99)
        always_accepted = 0
        for _ in range(500):
            new_phi, accepted = step(toy, rng)
            candidate = replay.normal(toy["phi"], toy["prop_sd"])
            u = replay.uniform()
            ratio = np.exp(analytic_log_ratio(candidate, toy))
            assert accepted == (u < min(1.0, ratio))
            if ratio >= 1.0:
                assert accepted
                always_accepted += 1
            expected = candidate if accepted else toy["phi"]
            np.testing.assert_array_equal(new_phi, expected)
        assert always_accepted > 0

    def test_empirical_frequency(self, toy):
        n_trials = 4000
        rng = np.random.default_rng(5)
        accepted = sum(step(toy, rng)[1] for _ in range(n_trials))

        reference = np.random.default_rng(6)
        candidates = reference.normal(toy["phi"], toy["prop_sd"], size=(20000, 2))
        expected = np.mean(
            [min(1.0, np.exp(analytic_log_ratio(c, toy))) for c in candidates]
        )
        assert 0.05 < expected < 0.95
        assert accepted / n_trials == pytest.approx(expected, abs=0.03)
