"""
CLI main entry point for hydradiff.

Thin wrapper around the engine - no business logic here.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from hydradiff import ComparisonRunner, config
from hydradiff.job_runner import ACCESSIBILITY, ALL_ANALYSES, HIDDEN, STRUCTURE

from .output import print_results_summary

COMMANDS = {
    "structure": (STRUCTURE,),
    "a11y": (ACCESSIBILITY,),
    "hidden": (HIDDEN,),
    "all": ALL_ANALYSES,
}


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="hydradiff",
        description=(
            "Compare page structure and accessibility semantics before and after "
            "JavaScript hydration."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s structure https://example.com
  %(prog)s a11y https://example.com --json
  %(prog)s all -i urls.txt --concurrency 5
        """,
    )

    parser.add_argument(
        "command",
        choices=sorted(COMMANDS),
        help="Which comparison to run",
    )

    parser.add_argument(
        "urls",
        nargs="*",
        help="URLs to analyze",
    )

    parser.add_argument(
        "-i",
        "--input-file",
        type=str,
        default=None,
        help="Text file containing one URL per line",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )

    parser.add_argument(
        "-c",
        "--concurrency",
        type=int,
        default=config.HYDRADIFF_MAX_CONCURRENCY,
        help=f"Maximum number of URLs to process concurrently (default: {config.HYDRADIFF_MAX_CONCURRENCY})",
    )

    parser.add_argument(
        "-t",
        "--timeout",
        type=int,
        default=config.HYDRADIFF_FETCH_TIMEOUT_MS // 1000,
        help="Timeout in seconds for each fetch/render (default: %(default)s)",
    )

    parser.add_argument(
        "-w",
        "--wait-strategy",
        type=str,
        choices=["network_idle", "load", "timeout"],
        default=config.HYDRADIFF_WAIT_STRATEGY,
        help="Wait strategy for rendering (default: %(default)s)",
    )

    parser.add_argument(
        "--user-agent",
        type=str,
        default=config.HYDRADIFF_USER_AGENT,
        help="Custom User-Agent header (optional)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.HYDRADIFF_LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def read_urls_from_file(input_file: str) -> list[str]:
    """
    Read URLs from input file.

    Raises:
        SystemExit: If file cannot be read
    """
    file_path = Path(input_file)

    if not file_path.exists():
        print(f"Error: File not found: {input_file}", file=sys.stderr)
        sys.exit(1)

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return [line.strip() for line in f if line.strip() and not line.startswith("#")]
    except OSError as e:
        print(f"Error reading file {input_file}: {e}", file=sys.stderr)
        sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    """
    Main CLI entry point.

    Orchestrates the CLI workflow:
    1. Parse arguments
    2. Collect URLs
    3. Run comparison job
    4. Display results
    """
    args = parse_arguments(argv)
    configure_logging(args.verbose)

    urls = list(args.urls)
    if args.input_file:
        urls.extend(read_urls_from_file(args.input_file))

    if not urls:
        print("Error: No URLs given", file=sys.stderr)
        sys.exit(2)

    runner = ComparisonRunner(
        max_concurrency=args.concurrency,
        fetch_timeout=args.timeout * 1000,
        render_timeout=args.timeout * 1000,
        user_agent=args.user_agent,
        wait_strategy=args.wait_strategy,
        analyses=COMMANDS[args.command],
        snapshot_indent=config.HYDRADIFF_SNAPSHOT_INDENT,
        high_threshold=config.HYDRADIFF_HIDDEN_HIGH_THRESHOLD,
    )

    result = runner.run_job(urls)

    if args.json:
        payload = {
            "urls_processed": result.urls_processed,
            "urls_succeeded": result.urls_succeeded,
            "urls_failed": result.urls_failed,
            "results": [analysis.to_dict() for analysis in result.results],
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print_results_summary(result)

    # Exit with error code if any URLs failed
    if result.urls_failed > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
