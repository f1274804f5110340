"""Timestamped console logging tagged with a module name."""

from __future__ import annotations

import sys
from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional, Union

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class Level(str, Enum):
    """Severity of a log line; the value is the tag printed in the line."""

    INFO = "INF"
    ERROR = "ERR"


def format_line(module: str, level: Union[Level, str], message: str, when: datetime) -> str:
    """Build one log line: ``[timestamp] [level] [module] message``."""
    level = Level(level)
    return f"[{when.strftime(TIMESTAMP_FORMAT)}] [{level.value}] [{module}] {message}"


def log_message(module: str, level: Union[Level, str], message: str) -> None:
    """Write a log line stamped with the local time.

    Errors go to standard error, everything else to standard output.
    """
    level = Level(level)
    stream = sys.stderr if level is Level.ERROR else sys.stdout
    print(format_line(module, level, message, datetime.now()), file=stream, flush=True)


class Loggable:
    """Mixin giving a class ``log_info`` and ``log_error`` tagged with its module name.

    Subclasses set ``module_name``; without it the class name is used.
    """

    module_name: ClassVar[Optional[str]] = None

    @property
    def _log_tag(self) -> str:
        return self.module_name or type(self).__name__

    def log_info(self, message: str) -> None:
        """Log an informational message."""
        log_message(self._log_tag, Level.INFO, message)

    def log_error(self, message: str) -> None:
        """Log an error message."""
        log_message(self._log_tag, Level.ERROR, message)