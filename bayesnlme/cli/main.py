"""CLI Entry Point for bayesnlme
============================

Entry point for console script: bayesnlme [args]
"""

import sys

from bayesnlme.cli.args_parser import create_parser
from bayesnlme.cli.commands import dispatch_command
from bayesnlme.utils.logging import get_logger

logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point.

    Parses command-line arguments, runs the sampler and exits with status 0
    on success and 1 on usage or configuration errors.
    """
    try:
        parser = create_parser()
        args = parser.parse_args(argv)

        logger.info("Starting bayesnlme analysis...")
        logger.debug(f"Arguments: {vars(args)}")

        result = dispatch_command(args)

        if result and result.get("success", False):
            sys.exit(0)
        else:
            error_msg = (
                result.get("error", "Unknown error") if result else "Command failed"
            )
            logger.error(f"Analysis failed: {error_msg}")
            sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
