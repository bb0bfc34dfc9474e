#!/usr/bin/env python3
"""Entry point for the GrowmiesNJ music bot.

Settings come from the environment (see ``config.settings``); the flags
here only override logging or validate configuration without connecting.
"""

from __future__ import annotations

import argparse
import json
import logging
import logging.config
import sys
from collections.abc import Sequence
from pathlib import Path

from growmies_music.domain.shared.messages import ErrorMessages, LogTemplates

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"
_FALLBACK_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(log_level: str = "INFO", config_path: Path = _LOGGING_CONFIG_PATH) -> None:
    """Apply ``config_path`` with dictConfig, or a plain console config if it is unusable.

    ``log_level`` always wins over the root level in the file.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        config = json.loads(Path(config_path).read_text())
        logging.config.dictConfig(config)
    except (OSError, json.JSONDecodeError, ValueError):
        logging.basicConfig(level=level, format=_FALLBACK_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        logging.warning(LogTemplates.LOGGING_CONFIG_FALLBACK, config_path)

    logging.getLogger().setLevel(level)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="growmies-music", description=__doc__.splitlines()[0])
    parser.add_argument("--log-level", help="override LOG_LEVEL for this run")
    parser.add_argument(
        "--log-config",
        type=Path,
        default=_LOGGING_CONFIG_PATH,
        help="logging dictConfig JSON (default: %(default)s)",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="validate settings and exit without connecting to Discord",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    from pydantic import ValidationError

    from growmies_music.config.settings import get_settings

    args = _parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as exc:
        setup_logging(args.log_level or "INFO", args.log_config)
        logging.getLogger(__name__).error(LogTemplates.SETTINGS_INVALID, exc)
        return 2

    setup_logging(args.log_level or settings.log_level, args.log_config)
    logger = logging.getLogger(__name__)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1
    if args.check_config:
        logger.info(LogTemplates.SETTINGS_OK, settings.environment, settings.database.url)
        return 0

    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))

    from growmies_music.config.container import create_container
    from growmies_music.infrastructure.discord.bot import create_bot

    bot = create_bot(create_container(settings), settings)
    try:
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1
    logger.info(LogTemplates.BOT_STOPPED)
    return 0


def cli() -> None:
    """Console script entry point (``growmies-music``)."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
