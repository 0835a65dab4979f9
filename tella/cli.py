import argparse
from typing import List, Optional

from . import __version__
from .config import get_config
from .handlers import handle_ask, handle_settings, handle_upgrade
from .logger import setup_logging
from .ui import console, display_home_page
from .updater import UpdateChecker


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="tella",
        description="Ask about commands - get the best command for your task.",
    )
    parser.add_argument("--settings", action="store_true", help="Run the interactive setup.")
    parser.add_argument("--upgrade", action="store_true", help="Upgrade tella to the latest release.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "question",
        nargs=argparse.REMAINDER,
        help="What you want to do, in plain language.",
    )
    return parser


def run_cli(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, dispatch to a handler and return the exit code."""
    args = create_parser().parse_args(argv)
    config = get_config()
    setup_logging(config, verbose=args.verbose)

    if args.upgrade:
        return handle_upgrade(console)

    if args.settings:
        return handle_settings(console, config)

    if not args.question:
        display_home_page(console)
        return 0

    checker = UpdateChecker().start()
    exit_code = handle_ask(" ".join(args.question), config, console)
    checker.notify(console)
    return exit_code
