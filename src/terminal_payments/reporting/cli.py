#!/usr/bin/env python3
"""Command-line interface for terminal reporting.

Usage:
    terminal-payments report --start 2024-01-01 --end 2024-01-31 --terminal-label Register-1
    terminal-payments report --start 2024-01-01T08:00:00Z --end 2024-01-01T18:00:00Z --operator-name Anna --format text
    terminal-payments serve --port 4242
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from dotenv import load_dotenv

from ..config import Settings
from ..errors import TerminalPaymentsError, ValidationError
from ..ledger import get_ledger_client
from .models import IdentitySelector, ReportingWindow
from .service import ReportingService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_FAILED = 2
EXIT_TRUNCATED = 3


def _configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _expand_date_only_end(end: str) -> str:
    # A bare date as end bound means the whole day
    if len(end) == 10 and "T" not in end and end.count("-") == 2:
        return f"{end}T23:59:59"
    return end


async def run_report_async(
    settings: Settings,
    window: ReportingWindow,
    provider: Optional[str] = None,
    output_file: Optional[str] = None,
    output_format: str = "json",
) -> int:
    """Run a report and write it out.

    Args:
        settings: Runtime settings.
        window: Window and selector to report on.
        provider: Ledger provider override.
        output_file: Optional output file path.
        output_format: Output format ('json', 'csv', 'text').

    Returns:
        Exit code.
    """
    try:
        ledger = get_ledger_client(provider, settings)
        service = ReportingService(ledger, settings)
        summary = await service.report(window)
    except ValidationError as e:
        logger.error(str(e))
        return EXIT_INVALID
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_INVALID
    except TerminalPaymentsError as e:
        logger.error(f"Report failed: {e}")
        return EXIT_FAILED

    output = service.generate_report(summary, format=output_format)
    if output_file:
        with open(output_file, "w") as f:
            f.write(output)
        logger.info(f"Report written to {output_file}")
    else:
        print(output)

    if summary.truncated:
        logger.warning("Report is truncated; raise LEDGER_MAX_PAGES or narrow the window")
        return EXIT_TRUNCATED
    return EXIT_OK


def run_server(settings: Settings, host: str, port: int) -> int:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from ..api import create_app

    uvicorn.run(create_app(settings), host=host, port=port, log_level="info")
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="terminal-payments",
        description="Card-present terminal backend and transaction reporting.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    report_parser = subparsers.add_parser(
        "report",
        help="Total succeeded transactions for a terminal or operator",
    )
    report_parser.add_argument(
        "--start", "-s",
        required=True,
        help="Start (ISO-8601, e.g. YYYY-MM-DD or YYYY-MM-DDTHH:MM:SSZ)",
    )
    report_parser.add_argument(
        "--end", "-e",
        required=True,
        help="End (ISO-8601); a bare date covers the whole day",
    )
    identity = report_parser.add_mutually_exclusive_group()
    identity.add_argument("--terminal-label", help="Terminal label to report on")
    identity.add_argument("--operator-name", help="Operator name to report on")
    identity.add_argument("--reader-id", help="Physical reader id (legacy)")
    report_parser.add_argument(
        "--provider", "-p",
        choices=["stripe", "simulator"],
        help="Ledger provider (default: LEDGER_PROVIDER or stripe)",
    )
    report_parser.add_argument(
        "--output", "-o",
        help="Output file path (default: stdout)",
    )
    report_parser.add_argument(
        "--format", "-f",
        choices=["json", "csv", "text"],
        default="json",
        help="Output format (default: json)",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, help="Port (default: PORT or 4242)")

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Optional list of command-line arguments (for testing).

    Returns:
        Exit code.
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return EXIT_INVALID

    _configure_logging(parsed_args.verbose)
    load_dotenv()
    try:
        settings = Settings.from_env()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_INVALID

    if parsed_args.command == "serve":
        return run_server(settings, parsed_args.host, parsed_args.port or settings.port)

    window = ReportingWindow(
        start=parsed_args.start,
        end=_expand_date_only_end(parsed_args.end),
        selector=IdentitySelector(
            terminal_label=parsed_args.terminal_label,
            operator_name=parsed_args.operator_name,
            reader_id=parsed_args.reader_id,
        ),
    )
    return asyncio.run(run_report_async(
        settings=settings,
        window=window,
        provider=parsed_args.provider,
        output_file=parsed_args.output,
        output_format=parsed_args.format,
    ))


if __name__ == "__main__":
    sys.exit(main())
