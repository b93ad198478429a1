"""Command line interface for bulk keyword research."""

import argparse
import json
import sys
from typing import List, Optional

from dotenv import load_dotenv

from ..core.batch import submit_batch
from ..core.batch_config import MAX_BULK_KEYWORDS, MAX_CONCURRENT_REQUESTS, RESEARCH_TIMEOUT_SECONDS
from ..core.batch_params import DEFAULT_COUNTRY, SharedParams
from ..core.batch_run import BatchRun
from ..core.retrying_reader import RetryingReader
from ..core.status import BatchSnapshot
from ..exceptions import SeoBatchError
from ..remote.http_client import HttpResearchClient
from ..utils import SeoBatchJSONEncoder, dedupe_keywords, parse_keywords, read_keyword_file, set_log_level


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130


def build_client() -> HttpResearchClient:
    """Create the HTTP client from ``SEOBATCH_*`` environment variables."""
    return HttpResearchClient.from_env()


def print_progress(snapshot: BatchSnapshot, elapsed: float) -> None:
    """Progress callback printing one line to stderr."""
    done = snapshot.completed + snapshot.error
    print(
        f"[{elapsed:6.1f}s] {done}/{snapshot.total} done "
        f"(completed: {snapshot.completed}, failed: {snapshot.error}, "
        f"processing: {snapshot.processing}, pending: {snapshot.pending})",
        file=sys.stderr,
    )


def collect_keywords(args: argparse.Namespace) -> List[str]:
    """Keywords from ``--keywords`` and ``--file``, in that order, de-duplicated."""
    keywords: List[str] = []
    if args.keywords:
        keywords.extend(parse_keywords(args.keywords))
    if args.file:
        keywords.extend(read_keyword_file(args.file))
    return dedupe_keywords(keywords)


def wait_for_run(run: BatchRun, poll_interval: float = 0.5) -> bool:
    """Block until the run finishes. Ctrl+C cancels the run and keeps waiting
    for in-flight jobs.

    Returns:
        True if the run was interrupted
    """
    interrupted = False
    while True:
        try:
            if run.wait(timeout=poll_interval):
                return interrupted
        except KeyboardInterrupt:
            if interrupted:
                raise
            interrupted = True
            run.cancel()
            print(
                "\nCancelling: no new jobs will start, waiting for running jobs "
                "(press Ctrl+C again to quit immediately)",
                file=sys.stderr,
            )


def print_run_table(run: BatchRun) -> None:
    snapshot = run.snapshot()

    print(f"{'Keyword':<40} {'Status':<12} {'Record':<10} {'Result'}")
    print("-" * 90)
    for view in snapshot.jobs:
        keyword = view.keyword[:39]
        record = str(view.tracking_record_id) if view.tracking_record_id is not None else "-"
        if view.error_message:
            outcome = view.error_message
        elif view.result_count is not None:
            outcome = f"{view.result_count} keywords"
        else:
            outcome = ""
        print(f"{keyword:<40} {view.state.value:<12} {record:<10} {outcome}")

    print()
    print(f"Completed: {snapshot.completed}/{snapshot.total}")
    print(f"Failed: {snapshot.error}")
    if snapshot.cancelled:
        print(f"Not started (cancelled): {snapshot.pending}")
    print(f"Keywords found: {snapshot.total_result_count}")


def print_run_json(run: BatchRun) -> None:
    output = run.status()
    output["jobs"] = run.snapshot().jobs
    output["results"] = list(run.results().values())
    print(json.dumps(output, cls=SeoBatchJSONEncoder, indent=2))


def run_command(args: argparse.Namespace) -> int:
    """Run a batch and print its outcome."""
    keywords = collect_keywords(args)
    params = SharedParams(client_id=args.client_id, country=args.country, language=args.language)

    with build_client() as client:
        run = submit_batch(
            keywords,
            params,
            client,
            max_concurrent=args.concurrency,
            max_jobs=args.max_keywords,
            research_timeout=args.timeout,
            progress_callback=None if args.quiet else print_progress,
        )
        interrupted = wait_for_run(run)

    if args.format == "json":
        print_run_json(run)
    else:
        print_run_table(run)

    if interrupted:
        return EXIT_INTERRUPTED
    return EXIT_FAILED if run.get_failed_jobs() else EXIT_OK


def keywords_command(args: argparse.Namespace) -> int:
    """Read the stored keyword list of a tracking record."""
    with build_client() as client:
        reader = RetryingReader(client)
        outcome = reader.read_raw(args.record_id) if args.raw else reader.read_primary(args.record_id)

    items = outcome.result.items if outcome.result is not None else []
    if not outcome.ready:
        print(
            f"No keywords available for record {args.record_id} after {outcome.attempts} "
            "attempt(s); research may still be running",
            file=sys.stderr,
        )

    if args.format == "json":
        print(json.dumps(items, cls=SeoBatchJSONEncoder, indent=2))
        return EXIT_OK

    if not items:
        print("No keywords found")
        return EXIT_OK

    print(f"{'Keyword':<40} {'Volume':>10} {'Competition':<12} {'CPC':>8}")
    print("-" * 74)
    for item in items:
        volume = item.search_volume if item.search_volume is not None else "-"
        competition = item.competition or "-"
        cpc = f"{item.cpc:.2f}" if item.cpc is not None else "-"
        print(f"{item.keyword[:39]:<40} {volume:>10} {competition:<12} {cpc:>8}")
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the seobatch CLI."""
    parser = argparse.ArgumentParser(
        prog="seobatch",
        description="Bulk keyword research with bounded concurrency",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Research three keywords for client 7 in Turkey
  seobatch run --client-id 7 --keywords "ayakkabı, spor ayakkabı, koşu ayakkabısı"

  # Research a CSV list in the US with 2 parallel jobs, JSON output
  seobatch run --client-id 7 --country US --file keywords.csv --concurrency 2 --format json

  # Read the unfiltered keywords of a tracking record
  seobatch keywords 42 --raw

Environment (also read from .env):
  SEOBATCH_API_URL, SEOBATCH_WORKFLOW_URL, SEOBATCH_API_KEY, SEOBATCH_TIMEOUT
        """
    )

    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for seobatch loggers (default: WARNING)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Research a list of keywords")
    run_parser.add_argument("--client-id", type=int, required=True, help="Client the records belong to")
    run_parser.add_argument("--country", default=DEFAULT_COUNTRY, help=f"Target country (default: {DEFAULT_COUNTRY})")
    run_parser.add_argument("--language", help="Target language (default: derived from country)")
    run_parser.add_argument("--keywords", help="Comma or newline separated keywords")
    run_parser.add_argument("--file", help="CSV file with keywords in the first column")
    run_parser.add_argument(
        "--concurrency", type=int, default=MAX_CONCURRENT_REQUESTS,
        help=f"Jobs processed at the same time (default: {MAX_CONCURRENT_REQUESTS})"
    )
    run_parser.add_argument(
        "--max-keywords", type=int, default=MAX_BULK_KEYWORDS,
        help=f"Maximum keywords per batch (default: {MAX_BULK_KEYWORDS})"
    )
    run_parser.add_argument(
        "--timeout", type=float, default=RESEARCH_TIMEOUT_SECONDS,
        help=f"Research action timeout in seconds (default: {RESEARCH_TIMEOUT_SECONDS:g})"
    )
    run_parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")
    run_parser.add_argument("--quiet", action="store_true", help="Do not print progress")

    # Keywords command
    keywords_parser = subparsers.add_parser("keywords", help="Show the keywords of a tracking record")
    keywords_parser.add_argument("record_id", help="Tracking record ID")
    keywords_parser.add_argument("--raw", action="store_true", help="Read unfiltered keywords")
    keywords_parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the seobatch CLI."""
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    try:
        set_log_level(args.log_level)

        if args.command == "run":
            if not args.keywords and not args.file:
                parser.error("run needs --keywords or --file")
            exit_code = run_command(args)
        else:
            exit_code = keywords_command(args)

    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)
    except (SeoBatchError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILED)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
