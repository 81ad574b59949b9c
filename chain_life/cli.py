"""Command line entry point: ``chain-life auth`` and ``chain-life fetch``."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import requests
import structlog

from .activity import MAX_PAGE_SIZE, StravaActivityFetcher
from .aggregate import aggregate
from .client import ApiError, AuthError
from .dates import DateParseError, date_to_epoch, parse_date
from .filters import resolve_filter_set
from .oauth import (
    MissingCode,
    OAuthFlowError,
    begin_authorization,
    complete_authorization,
)
from .tokens import load_token_file, write_token_file

logger = structlog.get_logger(__name__)

BANNER = "=" * 80


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog to render to stderr, DEBUG when verbose."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def _page_size(value: str) -> int:
    try:
        size = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid page size: {value!r}") from exc
    if size < 1 or size > MAX_PAGE_SIZE:
        raise argparse.ArgumentTypeError(
            f"page size must be between 1 and {MAX_PAGE_SIZE}"
        )
    return size


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chain-life",
        description="A CLI tool to fetch kilometers from Strava since a given date.",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="<COMMAND>")
    subparsers.required = True

    auth_parser = subparsers.add_parser(
        "auth",
        help="Authenticate with Strava using OAuth",
        description="Authenticate with Strava using OAuth and print the tokens.",
    )
    auth_parser.add_argument(
        "--client-id",
        default=os.environ.get("STRAVA_CLIENT_ID"),
        help="Strava application client ID (env: STRAVA_CLIENT_ID).",
    )
    auth_parser.add_argument(
        "--client-secret",
        default=os.environ.get("STRAVA_CLIENT_SECRET"),
        help="Strava application client secret (env: STRAVA_CLIENT_SECRET).",
    )
    auth_parser.add_argument(
        "--token-file",
        default=None,
        help="Optionally write the received tokens to this JSON file.",
    )
    auth_parser.add_argument("--verbose", "-v", action="store_true")
    auth_parser.set_defaults(handler=run_auth)

    fetch_parser = subparsers.add_parser(
        "fetch",
        help="Fetch kilometers data from Strava",
        description="Fetch kilometers data from Strava since a given date.",
    )
    fetch_parser.add_argument(
        "--date",
        "-d",
        required=True,
        help="Start date in YYYY-MM-DD format.",
    )
    fetch_parser.add_argument(
        "--token",
        "-t",
        default=os.environ.get("STRAVA_ACCESS_TOKEN"),
        help="Strava access token (env: STRAVA_ACCESS_TOKEN).",
    )
    fetch_parser.add_argument(
        "--token-file",
        default=os.environ.get("STRAVA_TOKENS_FILE"),
        help="Read the access token from a file written by 'auth --token-file'.",
    )
    fetch_parser.add_argument(
        "--activity-types",
        "-a",
        default="cycling",
        help=(
            "'cycling', 'running', 'all' or a comma separated list of Strava "
            "types such as 'Ride,Run' (default: %(default)s)."
        ),
    )
    fetch_parser.add_argument(
        "--page-size",
        type=_page_size,
        default=MAX_PAGE_SIZE,
        help="Activities requested per page (default: %(default)s).",
    )
    fetch_parser.add_argument("--verbose", "-v", action="store_true")
    fetch_parser.set_defaults(handler=run_fetch)

    parser.set_defaults(auth_parser=auth_parser, fetch_parser=fetch_parser)
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "auth":
        missing = [
            flag
            for flag, value in (
                ("--client-id", args.client_id),
                ("--client-secret", args.client_secret),
            )
            if not value
        ]
        if missing:
            args.auth_parser.error(
                "the following arguments are required: " + ", ".join(missing)
            )
    elif args.command == "fetch" and not (args.token or args.token_file):
        args.fetch_parser.error(
            "the following arguments are required: --token "
            "(or --token-file / STRAVA_ACCESS_TOKEN)"
        )
    return args


def run_auth(args: argparse.Namespace) -> None:
    """Run the interactive authorization flow."""
    logger.info(
        "Starting Strava OAuth2 flow",
        client_id=args.client_id[:4] + "...",
    )
    authorization_url, expected_state = begin_authorization(
        args.client_id, args.client_secret
    )

    print("\n" + BANNER)
    print("STEP 1: Visit the following URL to authorize the application:")
    print(BANNER)
    print(f"\n{authorization_url}\n")
    print(BANNER)
    print(
        "\nSTEP 2: After authorizing, your browser is redirected to localhost and "
        "will most likely show an error page."
    )
    print("Copy the entire URL from the address bar and paste it here.")
    try:
        redirect_url = input("\nPaste the redirect URL here: ").strip()
    except EOFError:
        redirect_url = ""
    if not redirect_url:
        raise MissingCode("No redirect URL provided")

    token = complete_authorization(
        redirect_url, expected_state, args.client_id, args.client_secret
    )

    print("\n" + BANNER)
    print("SUCCESS! Access token received:")
    print(BANNER)
    if token.athlete_name:
        print(f"\nAthlete: {token.athlete_name}")
    print(f"Access Token: {token.access_token}")
    if token.refresh_token:
        print(f"Refresh Token: {token.refresh_token}")
    if token.expires_at is not None:
        print(f"Expires At: {token.expires_at}")
    print("\n" + BANNER)
    print(f"\nNext: chain-life fetch --date YYYY-MM-DD --token {token.access_token}")

    if args.token_file:
        try:
            path = write_token_file(token, args.token_file)
        except OSError as exc:
            logger.error(
                "Failed to write token file",
                path=str(args.token_file),
                error=str(exc),
            )
            sys.exit(1)
        logger.info("Saved token response to disk", path=str(path))


def _resolve_access_token(args: argparse.Namespace) -> str:
    if args.token:
        return args.token
    try:
        token = load_token_file(args.token_file)
    except (OSError, KeyError, ValueError) as exc:
        logger.error(
            "Failed to read token file",
            path=str(args.token_file),
            error=str(exc),
        )
        sys.exit(1)
    if token.is_expired():
        logger.warning(
            "Stored access token has expired",
            path=str(Path(args.token_file).expanduser()),
            expires_at=token.expires_at,
        )
    return token.access_token


def run_fetch(args: argparse.Namespace) -> None:
    """Fetch activities since ``args.date`` and print the filtered distance."""
    logger.debug("Starting Strava data fetch")
    start_date = parse_date(args.date)
    since_epoch = date_to_epoch(start_date)
    filter_set = resolve_filter_set(args.activity_types)
    logger.debug(
        "Using configuration",
        start_date=start_date.isoformat(),
        since_epoch=since_epoch,
        activity_types=filter_set.describe(),
        page_size=args.page_size,
    )

    access_token = _resolve_access_token(args)
    fetcher = StravaActivityFetcher(access_token, page_size=args.page_size)
    activities = fetcher.fetch_activities_since(since_epoch)
    summary = aggregate(activities, filter_set)

    print(f"Total kilometers since {args.date}: {summary.total_km:.2f} km")
    if args.verbose:
        print(
            f"Included {summary.included} of {len(activities)} activities "
            f"({filter_set.describe()}); excluded {summary.excluded}; "
            f"{fetcher.last_request_count} requests."
        )


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        args.handler(args)
    except DateParseError as exc:
        logger.error("Failed to parse the provided date", error=str(exc))
        sys.exit(1)
    except OAuthFlowError as exc:
        logger.error("Authorization failed", error=str(exc))
        sys.exit(1)
    except AuthError as exc:
        logger.error(
            "Strava rejected the access token",
            status=exc.status,
            body=exc.body,
            help="Run 'chain-life auth' to obtain a new token",
        )
        sys.exit(1)
    except ApiError as exc:
        logger.error("Strava API error", status=exc.status, body=exc.body)
        sys.exit(1)
    except requests.RequestException as exc:
        logger.error("Strava request failed", error=str(exc))
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
