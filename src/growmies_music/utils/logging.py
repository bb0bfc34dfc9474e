"""Colored logging formatter for console output."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

from growmies_music.domain.shared.constants import ConfigKeys


class ColoredFormatter(logging.Formatter):
    """Colors the levelname field of console records.

    Plain output when ``NO_COLOR`` is set or the stream is not a TTY.
    """

    COLORS: dict[int, str] = {
        logging.DEBUG: "\033[2;37m",   # dim
        logging.INFO: "\033[32m",      # green
        logging.WARNING: "\033[33m",   # yellow
        logging.ERROR: "\033[31m",     # red
        logging.CRITICAL: "\033[1;41m",  # bold on red
    }
    RESET = "\033[0m"

    def __init__(self, *args: object, stream: TextIO | None = None, **kwargs: object) -> None:
        super().__init__(*args, **kwargs)  # type: ignore[arg-type]
        self._stream = stream

    def _use_color(self) -> bool:
        if os.environ.get(ConfigKeys.NO_COLOR) is not None:
            return False
        stream = self._stream or sys.stderr
        return hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not self._use_color():
            return super().format(record)
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{self.COLORS.get(record.levelno, '')}{record.levelname}{self.RESET}"
        return super().format(colored)
