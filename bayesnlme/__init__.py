"""bayesnlme: Bayesian Estimation in Mixed Nonlinear Regression Models
=====================================================================

A Metropolis-within-Gibbs sampler for repeated-trajectory data (growth
curves, fatigue crack growth, ...) under the model

    y_jk = f(φ_j, t_jk) + ε_jk,   ε_jk ~ N(0, γ² s²(t_jk)),   φ_j ~ N(μ, Ω)

jointly inferring the per-unit random effects φ_j, their population mean μ
and covariance Ω, and the residual variance scale γ².

Quick Start:
    >>> import numpy as np
    >>> from bayesnlme import (fit_mixed_mcmc, get_regression_model, SamplerConfig,
    ...                        default_simulation_parameters, draw_data,
    ...                        default_prior, default_start)
    >>>
    >>> model = get_regression_model("gompertz")
    >>> mu = model.default_parameters()
    >>> params = default_simulation_parameters(mu, n=10, model=model)
    >>> data = draw_data(model, params, rng=np.random.default_rng(1))
    >>>
    >>> trace = fit_mixed_mcmc(data.t, data.y, default_prior(mu, params.gamma2),
    ...                        default_start(mu, 10), model,
    ...                        config=SamplerConfig(n_iterations=2000, seed=1))
    >>> trace.summary(burn_in=500)
"""

__version__ = "1.0.0"

from bayesnlme.core.models import get_regression_model, get_variance_function
from bayesnlme.data.simulation import (
    default_prior,
    default_simulation_parameters,
    default_start,
    draw_data,
)
from bayesnlme.exceptions import (
    ConfigurationError,
    MixedRegressionError,
    SamplerUsageError,
    TraceDeserializationError,
)
from bayesnlme.mcmc import (
    ChainState,
    DiagonalOmegaPrior,
    MixedPrior,
    MixedRegressionSampler,
    MixedRegressionTrace,
    SamplerConfig,
    StartValues,
    fit_mixed_mcmc,
    predict_trajectory,
)

__all__ = [
    "__version__",
    "fit_mixed_mcmc",
    "MixedRegressionSampler",
    "SamplerConfig",
    "MixedPrior",
    "DiagonalOmegaPrior",
    "StartValues",
    "ChainState",
    "MixedRegressionTrace",
    "predict_trajectory",
    "get_regression_model",
    "get_variance_function",
    "default_simulation_parameters",
    "draw_data",
    "default_prior",
    "default_start",
    "MixedRegressionError",
    "SamplerUsageError",
    "ConfigurationError",
    "TraceDeserializationError",
]
