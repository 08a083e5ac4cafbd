# main.py

"""Entry point for feedrank (headless search or HTTP server)."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings
from src.models.product import GENDERS
from src.models.query_context import SORT_MODES

logger = logging.getLogger("feedrank.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(s["id"] for s in Settings.AVAILABLE_SOURCES)

    parser = argparse.ArgumentParser(
        prog="feedrank",
        description="Aggregated, ranked product search across commerce feeds.",
        epilog=f"Available sources: {valid_ids}",
    )
    parser.add_argument(
        "query",
        nargs="?",
        default="",
        help="Free-text query (default: empty, matches everything).",
    )
    parser.add_argument(
        "-s",
        "--sources",
        default=None,
        help="Comma-separated source IDs (default: all).",
    )
    parser.add_argument("--page", type=int, default=1, help="Result page.")
    parser.add_argument(
        "--sort",
        choices=SORT_MODES,
        default=None,
        help="Sort mode (default: relevance).",
    )
    parser.add_argument("--min-price", type=float, default=None)
    parser.add_argument("--max-price", type=float, default=None)
    parser.add_argument("--gender", choices=GENDERS, default=None)
    parser.add_argument("--palette", default=None, help="Palette id.")
    parser.add_argument("--body", default=None, help="Body type id.")
    parser.add_argument(
        "-m",
        "--material",
        action="append",
        default=None,
        dest="materials",
        help="Required material (repeatable, all must match).",
    )
    parser.add_argument(
        "-u",
        "--user",
        default=None,
        help="Load and save filter preferences for this user id.",
    )
    parser.add_argument(
        "--favorite",
        default=None,
        metavar="KEY",
        help="Toggle a product id (or url) in --user's favorites and exit.",
    )
    parser.add_argument(
        "--favorites",
        action="store_true",
        default=False,
        help="List --user's favorites and exit.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        default=False,
        help="Run the HTTP API instead of a one-off search.",
    )
    parser.add_argument("--host", default=Settings.API_HOST)
    parser.add_argument("--port", type=int, default=Settings.API_PORT)
    return parser


def _run_cli(args: argparse.Namespace) -> None:
    """Run a headless ranked search and exit."""
    from src.cli.runner import build_context, cli_search

    overrides = {
        "sort": args.sort,
        "min_price": args.min_price,
        "max_price": args.max_price,
        "gender": args.gender,
        "palette": args.palette,
        "body": args.body,
        "materials": tuple(args.materials) if args.materials else None,
    }
    try:
        context = build_context(
            args.query, args.user, overrides, save=args.user is not None
        )
    except ValueError as exc:
        logger.error("Invalid query context: %s", exc)
        sys.stderr.write(f"feedrank: {exc}\n")
        sys.exit(2)

    exit_code = asyncio.run(
        cli_search(
            context=context,
            source_csv=args.sources,
            output_format=args.output_format,
            page=args.page,
        )
    )
    sys.exit(exit_code)


def _run_favorites(
    args: argparse.Namespace, parser: argparse.ArgumentParser
) -> None:
    """List or toggle favorites for --user."""
    from src.cli.runner import cli_favorites

    if not args.user:
        parser.error("--favorite/--favorites require --user")
    sys.exit(cli_favorites(args.user, args.favorite))


def _run_server(args: argparse.Namespace) -> None:
    """Serve the HTTP API."""
    from src.cli.runner import run_server

    sys.exit(run_server(args.host, args.port))


def main() -> None:
    """Route to the HTTP server (--serve) or a headless search."""
    log_file = setup_logging()
    logger.info("feedrank starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.serve:
        _run_server(args)
    elif args.favorite or args.favorites:
        _run_favorites(args, parser)
    else:
        _run_cli(args)


if __name__ == "__main__":
    main()
