"""Argument Parser for the bayesnlme CLI
====================================

Command-line options for a single sampler run configured by a YAML/JSON file.
"""

import argparse
from pathlib import Path

from bayesnlme import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser for the bayesnlme CLI.

    Returns:
        Configured ArgumentParser
    """
    epilog_text = f"""
Examples:
  %(prog)s --config run.yaml                       # Run as configured
  %(prog)s --config run.yaml --data-file crack.txt # Override the data file
  %(prog)s --config run.yaml --iterations 5000 --seed 7
  %(prog)s --config run.yaml --burn-in 1000        # Summaries without burn-in

Model:
  y_jk = f(phi_j, t_jk) + eps_jk,  eps_jk ~ N(0, gamma2 * s2(t_jk))
  phi_j ~ N(mu, Omega)

Outputs (in --output-dir):
  trace.npz        full MCMC trace (phi, mu, omega, gamma2, acceptance)
  parameters.json  posterior mean, std and 95%% interval

bayesnlme v{__version__}
        """

    parser = argparse.ArgumentParser(
        prog="bayesnlme",
        description="Bayesian estimation in mixed nonlinear regression models",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog_text,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"bayesnlme v{__version__}",
    )

    # Configuration and I/O
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("./bayesnlme_config.yaml"),
        help="Path to configuration file (YAML or JSON) (default: %(default)s)",
    )

    parser.add_argument(
        "--data-file",
        type=Path,
        help="Path to the trajectory table (overrides config)",
    )

    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory for results (default: from config or ./bayesnlme_results)",
    )

    # Sampler options
    sampler_group = parser.add_argument_group("Sampler Options")
    sampler_group.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="Number of MCMC iterations (default: from config or 1000)",
    )

    sampler_group.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (default: from config, else unseeded)",
    )

    sampler_group.add_argument(
        "--burn-in",
        type=int,
        default=None,
        help="Iterations excluded from posterior summaries (default: from config or 0)",
    )

    # Logging options
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Show warnings and errors only",
    )

    return parser


def validate_args(args) -> bool:
    """Validate parsed command-line arguments.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments

    Returns
    -------
    bool
        True if arguments are valid, False otherwise
    """
    if args.verbose and args.quiet:
        print("Error: Cannot specify both --verbose and --quiet")
        return False

    if args.iterations is not None and args.iterations <= 0:
        print("Error: Number of iterations must be positive")
        return False

    if args.burn_in is not None and args.burn_in < 0:
        print("Error: Burn-in must be non-negative")
        return False

    if args.data_file is not None and not args.data_file.exists():
        print(f"Error: Data file not found: {args.data_file}")
        return False

    return True
