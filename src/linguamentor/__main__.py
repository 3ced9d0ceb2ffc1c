"""Main entry point for the vocabulary backend."""
import argparse
import asyncio
import logging
from typing import List, Optional

from linguamentor import __version__
from linguamentor.app import LinguaMentorApp
from linguamentor.config import ensure_directories, load_settings
from linguamentor.logging_config import setup_logging

logger = logging.getLogger("linguamentor")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="linguamentor", description="Vocabulary tutor backend")
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=["run", "seed"],
        help="run the Telegram bot (default) or seed owner profiles",
    )
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Run the selected command."""
    args = parse_args(argv)
    settings = load_settings()
    ensure_directories(settings)
    setup_logging(settings.logging, f"Starting LinguaMentor v{__version__} ({args.command}) ...", args.log_level)

    app = LinguaMentorApp(settings)
    try:
        if args.command == "seed":
            asyncio.run(app.seed())
        else:
            asyncio.run(app.run_until_stopped())
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")


if __name__ == "__main__":
    main()
