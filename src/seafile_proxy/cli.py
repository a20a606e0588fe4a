"""Command line entry point: obtain a token or run the proxy."""

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

import httpx
import uvicorn

from seafile_proxy.core.config import settings
from seafile_proxy.core.logging import setup_logging
from seafile_proxy.seafile.client import login
from seafile_proxy.seafile.exceptions import SeafileError, StartupError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seafile-proxy",
        description="Upload/download proxy in front of a Seafile server.",
    )
    subparsers = parser.add_subparsers(dest="command")

    login_parser = subparsers.add_parser("login", help="Print an API token for SEAFILE_TOKEN")
    login_parser.add_argument("username")
    login_parser.add_argument("password")

    subparsers.add_parser("serve", help="Run the proxy (default)")
    return parser


def run_login(username: str, password: str) -> int:
    if not settings.SEAFILE_URL:
        print("SEAFILE_URL is blank. Set it to your seafile host, e.g. https://yourhost.com", file=sys.stderr)
        return 1

    try:
        token = asyncio.run(
            login(settings.seafile_base_url, username, password, timeout=settings.REQUEST_TIMEOUT)
        )
    except (SeafileError, httpx.HTTPError) as e:
        print(f"Login failed: {e}", file=sys.stderr)
        return 1

    print("Your token:", token)
    return 0


def run_server() -> int:
    from seafile_proxy.main import check_credentials

    try:
        check_credentials()
        host, port = settings.listen_host, settings.listen_port
    except (StartupError, ValueError) as e:
        print(e, file=sys.stderr)
        return 1

    logger.info("Starting", extra={"host": host, "port": port})
    # log_config=None keeps the handlers installed by setup_logging
    uvicorn.run("seafile_proxy.main:app", host=host, port=port, log_config=None)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "login":
        return run_login(args.username, args.password)

    setup_logging()
    return run_server()


if __name__ == "__main__":
    sys.exit(main())
