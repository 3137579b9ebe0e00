#!/usr/bin/env python3
"""Main entry point for the mini-app launcher bot."""

import logging
import sys

from dotenv import load_dotenv

from miniapp_bot.config import Config
from miniapp_bot.launcher import MiniAppBot

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Initialize and run the launcher bot."""
    # Load variables from a .env file when present so that local development
    # environments receive the expected configuration without extra setup.
    load_dotenv()

    cfg = Config()
    try:
        bot = MiniAppBot(cfg)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)

    try:
        bot.run()
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")


if __name__ == '__main__':
    main()
