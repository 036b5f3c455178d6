"""
Logging configuration — console and optional file logging for a CLI run.

The CLI builds a LoggingSettings from its flags and the environment and
calls ``configure_logging`` once. Modules log through
``logging.getLogger(__name__)``; engines pass their logger on to the
actions they register.

Console level precedence:
    --debug / --verbose / --quiet  >  SBX_LOG_LEVEL  >  WARNING

SBX_LOG_FILE adds a file handler, at SBX_LOG_FILE_LEVEL if set.
Only handlers installed here are replaced on reconfiguration.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass

ENV_LOG_LEVEL = "SBX_LOG_LEVEL"
ENV_LOG_FILE = "SBX_LOG_FILE"
ENV_LOG_FILE_LEVEL = "SBX_LOG_FILE_LEVEL"

# Console format per threshold, most verbose first: (max level, fmt, datefmt)
_CONSOLE_FORMATS = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d | %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s %(message)s", "%H:%M:%S"),
)
_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s | %(message)s"

# Subprocess transport chatter, only wanted when debugging
_NOISY_LOGGERS = ("asyncio",)

_HANDLER_TAG = "_sandboxctl_handler"


@dataclass(frozen=True)
class LoggingSettings:
    level: int = logging.WARNING
    log_file: str | None = None
    file_level: int | None = None

    @classmethod
    def from_cli(
        cls,
        debug: bool = False,
        verbose: bool = False,
        quiet: bool = False,
        environ: Mapping[str, str] | None = None,
    ) -> LoggingSettings:
        env = os.environ if environ is None else environ
        if debug:
            level = logging.DEBUG
        elif verbose:
            level = logging.INFO
        elif quiet:
            level = logging.ERROR
        else:
            level = parse_level(env.get(ENV_LOG_LEVEL))

        file_level = env.get(ENV_LOG_FILE_LEVEL)
        return cls(
            level=level,
            log_file=env.get(ENV_LOG_FILE) or None,
            file_level=parse_level(file_level) if file_level else None,
        )


def configure_logging(settings: LoggingSettings) -> None:
    """Install the console (and file) handlers on the root logger."""
    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_TAG, False)]:
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(settings.level)
    console.setFormatter(_console_formatter(settings.level))
    _install(root, console)

    lowest = settings.level
    if settings.log_file:
        file_level = settings.file_level if settings.file_level is not None else settings.level
        file_handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        _install(root, file_handler)
        lowest = min(lowest, file_level)

    root.setLevel(lowest)

    noisy_level = logging.NOTSET if settings.level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def parse_level(name: str | None) -> int:
    """Level name → numeric level. Unknown or empty names mean WARNING."""
    numeric = logging.getLevelName(name.upper()) if name else None
    return numeric if isinstance(numeric, int) else logging.WARNING


def _console_formatter(level: int) -> logging.Formatter:
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter("%(message)s")


def _install(root: logging.Logger, handler: logging.Handler) -> None:
    setattr(handler, _HANDLER_TAG, True)
    root.addHandler(handler)
