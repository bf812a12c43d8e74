"""Command Handlers for the bayesnlme CLI
=====================================

Loads the configuration and data, runs the sampler and saves its results.
"""

from pathlib import Path
from typing import Any

from bayesnlme.cli.args_parser import validate_args
from bayesnlme.config.manager import ConfigManager
from bayesnlme.data.loader import load_trajectory_table
from bayesnlme.exceptions import ConfigurationError, MixedRegressionError
from bayesnlme.io.mcmc_writers import (
    save_parameters_json,
    save_trace_json,
    save_trace_npz,
)
from bayesnlme.mcmc.core import fit_mixed_mcmc
from bayesnlme.mcmc.result import MixedRegressionTrace
from bayesnlme.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def dispatch_command(args) -> dict[str, Any]:
    """Run one sampler job from parsed CLI arguments.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments

    Returns
    -------
    dict
        ``{"success": bool, ...}`` with the trace and output directory on
        success or the error message on failure.
    """
    if not validate_args(args):
        return {"success": False, "error": "Invalid command-line arguments"}

    try:
        config = _load_configuration(args)
        _configure_logging(args, config)

        t, y = _load_data(args, config)
        trace = _run_sampler(config, t, y)

        output = config.get_output_settings()
        output_dir = Path(output["directory"])
        saved = _save_results(trace, output_dir, output["burn_in"], output["save_json_trace"])

        logger.info("Analysis completed successfully")
        return {
            "success": True,
            "result": trace,
            "output_dir": str(output_dir),
            "files": [str(p) for p in saved],
        }

    except MixedRegressionError as e:
        logger.error(f"Command execution failed: {e}")
        logger.debug("Full traceback:", exc_info=True)
        return {"success": False, "error": str(e)}


def _load_configuration(args) -> ConfigManager:
    """Load the configuration file and apply CLI overrides."""
    logger.info(f"Loading configuration from: {args.config}")
    config = ConfigManager(str(args.config))
    _apply_cli_overrides(config, args)
    _check_burn_in(config)
    return config


def _check_burn_in(config: ConfigManager) -> None:
    """Reject a burn-in that leaves no kept iterations before sampling starts."""
    burn_in = config.get_output_settings()["burn_in"]
    sampler_config = config.get_sampler_config()
    sampler_config.raise_if_invalid()
    n_iterations = sampler_config.n_iterations
    if not 0 <= burn_in < n_iterations:
        raise ConfigurationError(
            "output.burn_in must be non-negative and smaller than sampler.n_iterations",
            config_file=config.config_file,
            error_context={"burn_in": burn_in, "n_iterations": n_iterations},
        )


def _apply_cli_overrides(config: ConfigManager, args) -> None:
    if args.data_file is not None:
        config.update_config("data.file_path", str(args.data_file))
        logger.debug(f"CLI override: data.file_path = {args.data_file}")
    if args.output_dir is not None:
        config.update_config("output.directory", str(args.output_dir))
        logger.debug(f"CLI override: output.directory = {args.output_dir}")
    if args.iterations is not None:
        config.update_config("sampler.n_iterations", args.iterations)
        logger.debug(f"CLI override: sampler.n_iterations = {args.iterations}")
    if args.seed is not None:
        config.update_config("sampler.seed", args.seed)
        logger.debug(f"CLI override: sampler.seed = {args.seed}")
    if args.burn_in is not None:
        config.update_config("output.burn_in", args.burn_in)
        logger.debug(f"CLI override: output.burn_in = {args.burn_in}")


def _configure_logging(args, config: ConfigManager) -> None:
    if args.verbose:
        level = "DEBUG"
    elif args.quiet:
        level = "WARNING"
    else:
        level = config.get_logging_level()
    configure_logging(level)


def _load_data(args, config: ConfigManager):
    settings = config.get_data_settings()
    if "file_path" not in settings:
        raise ConfigurationError(
            "No data file given (set data.file_path or pass --data-file)",
            config_file=config.config_file,
        )
    return load_trajectory_table(
        settings["file_path"],
        orientation=settings["orientation"],
        delimiter=settings.get("delimiter"),
        skip_header=settings["skip_header"],
        y_scale=settings["y_scale"],
        t_scale=settings["t_scale"],
    )


def _run_sampler(config: ConfigManager, t, y) -> MixedRegressionTrace:
    sampler_config = config.get_sampler_config()
    # Loaded tables are always one row per unit
    sampler_config.orientation = "units_by_points"
    n_units = len(y)
    return fit_mixed_mcmc(
        t,
        y,
        config.get_prior(),
        config.get_start(n_units=n_units),
        config=sampler_config,
    )


def _save_results(
    trace: MixedRegressionTrace,
    output_dir: Path,
    burn_in: int,
    save_json_trace: bool,
) -> list[Path]:
    """Save trace.npz, parameters.json and optionally trace.json."""
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Saving results to: {output_dir}")

    saved = [
        save_trace_npz(trace, output_dir / "trace.npz"),
        save_parameters_json(trace, output_dir / "parameters.json", burn_in=burn_in),
    ]
    if save_json_trace:
        saved.append(save_trace_json(trace, output_dir / "trace.json", burn_in=burn_in))

    mu_mean = trace.posterior_mean(burn_in)["mu"]
    for name, value in zip(trace.parameter_names, mu_mean):
        logger.info(f"  mu[{name}] = {value:.6g}")
    return saved
