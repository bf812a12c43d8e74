"""Regression model family and variance shapes."""

from bayesnlme.core.models import (
    REGRESSION_MODELS,
    VARIANCE_FUNCTIONS,
    ConstantVariance,
    GompertzModel,
    LogisticModel,
    Paris2Model,
    ParisModel,
    PowerVariance,
    RegressionModel,
    RichardsModel,
    VarianceFunction,
    WeibullModel,
    get_regression_model,
    get_variance_function,
)

__all__ = [
    "RegressionModel",
    "GompertzModel",
    "LogisticModel",
    "WeibullModel",
    "RichardsModel",
    "ParisModel",
    "Paris2Model",
    "VarianceFunction",
    "ConstantVariance",
    "PowerVariance",
    "REGRESSION_MODELS",
    "VARIANCE_FUNCTIONS",
    "get_regression_model",
    "get_variance_function",
]
