"""quickstart-images CLI entry point.

Usage:
    quickstart-images                     Import any missing quickstart images
    quickstart-images --relay-url URL     Use an alternate relay
    quickstart-images --verbose           Show debug logging
    quickstart-images --version           Show version
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from quickstart_images.config import DEFAULT_CONFIG_PATH, load_settings
from quickstart_images.constants import SUPPORTED_RUNTIMES, __version__
from quickstart_images.context import ExecutionContext
from quickstart_images.core.models import ResultStatus
from quickstart_images.core.orchestrator import ImportOrchestrator
from quickstart_images.utils.console import console_progress, print_error, print_success

logger = logging.getLogger(__name__)

# Exit codes per status
_STATUS_EXIT_CODES: dict[ResultStatus, int] = {
    ResultStatus.SUCCESS: 0,
    ResultStatus.SKIPPED: 0,
    ResultStatus.FAILURE: 1,
}

EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quickstart-images",
        description="Download and import the container images required by the quorum dev quickstart.",
    )
    parser.add_argument("--relay-url", help="Relay service base URL")
    parser.add_argument("--max-workers", type=int, help="Number of concurrent downloads")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"YAML config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--token-command", help="Command that prints a bearer token on stdout")
    parser.add_argument("--runtime", choices=SUPPORTED_RUNTIMES, help="Container runtime to use")
    parser.add_argument("--work-dir", type=Path, help="Parent directory for temporary downloads")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("-V", "--version", action="version", version=f"quickstart-images {__version__}")
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    """Run an import and return the process exit code."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        settings = load_settings(
            config_file=args.config,
            relay_url=args.relay_url,
            max_workers=args.max_workers,
            token_command=args.token_command,
            runtime=args.runtime,
            work_dir=args.work_dir,
        )
    except ValidationError as e:
        print_error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR

    ctx = ExecutionContext(settings=settings, on_progress=console_progress)
    orchestrator = ImportOrchestrator.from_context(ctx)

    try:
        result = orchestrator.run()
    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        return EXIT_INTERRUPTED

    if result.ok:
        print_success(result.summary)
    else:
        print_error(result.summary)

    return _STATUS_EXIT_CODES.get(result.status, 1)


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
