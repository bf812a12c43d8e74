"""Custom exceptions for bayesnlme.

Exception Hierarchy:
    MixedRegressionError (base)
    ├── SamplerUsageError (invalid inputs detected before sampling starts)
    ├── ConfigurationError (unreadable or incomplete configuration files)
    └── TraceDeserializationError (malformed serialized traces)

Usage errors are always raised before the first MCMC iteration, so a failed
call never produces a partial trace. Numerical degeneracy inside the
Metropolis step is not an error: an undefined acceptance ratio simply rejects
the candidate.

Examples
--------
>>> try:
...     trace = fit_mixed_mcmc(t, y, prior, start, f, s2, config)
... except SamplerUsageError as e:
...     logger.error(f"Cannot start sampler: {e}")
...     print(e.error_context)
"""

from __future__ import annotations


class MixedRegressionError(Exception):
    """Base exception for all bayesnlme errors.

    Attributes
    ----------
    error_context : dict
        Additional context about the error (shapes, offending values, ...)
    """

    def __init__(self, message: str, error_context: dict | None = None):
        super().__init__(message)
        self.error_context = error_context or {}

    def __str__(self) -> str:
        """Return formatted error message with context."""
        base_msg = super().__str__()
        if self.error_context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.error_context.items())
            return f"{base_msg} (context: {context_str})"
        return base_msg


class SamplerUsageError(MixedRegressionError, ValueError):
    """Raised when the sampler inputs are inconsistent.

    Common Causes
    -------------
    - Length of ``t`` does not match the observation table
    - ``omega_structure="diag"`` with a matrix prior (or "full" with alpha/beta)
    - Prior or starting values with the wrong dimension
    - ``ipred``/``cut`` outside the data
    """


class ConfigurationError(MixedRegressionError, ValueError):
    """Raised when a configuration file is missing, unparsable or incomplete."""

    def __init__(
        self,
        message: str,
        config_file: str | None = None,
        error_context: dict | None = None,
    ):
        context = dict(error_context or {})
        if config_file is not None:
            context.setdefault("config_file", config_file)
        super().__init__(message, context)
        self.config_file = config_file


class TraceDeserializationError(MixedRegressionError, ValueError):
    """Raised when a serialized trace fails validation."""
