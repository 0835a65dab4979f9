import logging
import sys

from .cli import run_cli
from .ui import console, display_error

logger = logging.getLogger(__name__)

# 128 + SIGINT
EXIT_INTERRUPTED = 130


def main():
    """Console entry point: run tella and exit with its status."""
    try:
        exit_code = run_cli()
    except KeyboardInterrupt:
        logger.info("Cancelled with Ctrl-C")
        console.print()
        console.print("Cancelled.", style="yellow")
        exit_code = EXIT_INTERRUPTED
    except Exception as e:
        logger.exception(f"Unhandled {type(e).__name__}")
        display_error(console, str(e) or type(e).__name__)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
