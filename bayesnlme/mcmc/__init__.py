"""Metropolis-within-Gibbs estimation for mixed nonlinear regression.

Main entry point::

    from bayesnlme.mcmc import fit_mixed_mcmc, SamplerConfig

    trace = fit_mixed_mcmc(t, y, prior, start, regression_fn,
                           config=SamplerConfig(n_iterations=5000, seed=1))
"""

from bayesnlme.mcmc.config import SamplerConfig
from bayesnlme.mcmc.core import MixedRegressionSampler, fit_mixed_mcmc
from bayesnlme.mcmc.prediction import predict_trajectory, prediction_interval
from bayesnlme.mcmc.priors import DiagonalOmegaPrior, MixedPrior, StartValues
from bayesnlme.mcmc.result import ChainState, MixedRegressionTrace

__all__ = [
    "fit_mixed_mcmc",
    "MixedRegressionSampler",
    "SamplerConfig",
    "MixedPrior",
    "DiagonalOmegaPrior",
    "StartValues",
    "ChainState",
    "MixedRegressionTrace",
    "predict_trajectory",
    "prediction_interval",
]
