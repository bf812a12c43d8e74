"""Type Definitions for the bayesnlme Configuration System
=====================================================

TypedDict definitions for the sections of a configuration file. Provides
type safety and IDE autocomplete for configuration dictionaries.
"""

from typing import Any, Literal, TypedDict

OrientationLiteral = Literal["units_by_points", "points_by_units"]
OmegaStructureLiteral = Literal["diag", "full"]


class MetadataConfig(TypedDict, total=False):
    config_version: str
    description: str


class ModelConfig(TypedDict, total=False):
    """Model section of configuration.

    Attributes
    ----------
    name : str
        Regression model ("gompertz", "logistic", "weibull", "richards",
        "paris", "paris2")
    options : dict
        Constructor options, e.g. ``{"initial_length": 9.0}`` for Paris
    variance : str
        Variance shape ("constant" or "power")
    variance_options : dict
        Constructor options of the variance shape, e.g. ``{"exponent": 1.0}``
    """

    name: str
    options: dict[str, Any]
    variance: str
    variance_options: dict[str, Any]


class DataConfig(TypedDict, total=False):
    """Data section of configuration.

    Attributes
    ----------
    file_path : str
        Delimited text table, first column ``t``
    orientation : str
        Layout of the file ("points_by_units" or "units_by_points")
    delimiter : str, optional
        Field separator (whitespace if missing)
    skip_header : int
        Header lines to skip
    y_scale, t_scale : float
        Unit conversion factors
    """

    file_path: str
    orientation: OrientationLiteral
    delimiter: str
    skip_header: int
    y_scale: float
    t_scale: float


class DiagonalOmegaPriorConfig(TypedDict):
    alpha: list[float]
    beta: list[float]


class PriorConfig(TypedDict, total=False):
    """Prior section; ``prior_omega`` is alpha/beta vectors or a scale matrix."""

    m: list[float]
    v: float | list[float] | list[list[float]]
    prior_omega: DiagonalOmegaPriorConfig | list[list[float]]
    alpha: float
    beta: float
    omega_df: float


class StartConfig(TypedDict, total=False):
    mu: list[float]
    phi: list[list[float]]
    gamma2: float


class SamplerSectionConfig(TypedDict, total=False):
    n_iterations: int
    omega_structure: OmegaStructureLiteral
    proposal_scale: float
    ipred: int
    cut: int | None
    orientation: OrientationLiteral
    seed: int | None


class OutputConfig(TypedDict, total=False):
    """Output section of configuration.

    Attributes
    ----------
    directory : str
        Result directory
    burn_in : int
        Iterations excluded from posterior summaries
    save_json_trace : bool
        Also write the trace as ``trace.json``
    """

    directory: str
    burn_in: int
    save_json_trace: bool


class LoggingConfig(TypedDict, total=False):
    level: str


class BayesNLMEConfig(TypedDict, total=False):
    """Complete configuration file."""

    metadata: MetadataConfig
    model: ModelConfig
    data: DataConfig
    prior: PriorConfig
    start: StartConfig
    sampler: SamplerSectionConfig
    output: OutputConfig
    logging: LoggingConfig
