"""
Progress sink — the narrow interface the engine reports progress through.

The core never renders anything. It calls a sink; terminal output lives
in ``sandboxctl.adapters.terminal``.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable


@runtime_checkable
class ProgressSink(Protocol):
    def on_start(self, title: str) -> None: ...

    def on_progress(self, message: str) -> None: ...

    def on_complete(self, message: str) -> None: ...

    def on_error(self, message: str) -> None: ...


class NullProgressSink:
    """Discards everything."""

    def on_start(self, title: str) -> None:
        pass

    def on_progress(self, message: str) -> None:
        pass

    def on_complete(self, message: str) -> None:
        pass

    def on_error(self, message: str) -> None:
        pass


class LoggingProgressSink:
    """Forwards progress to a logger. Errors log at WARNING."""

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger(__name__)

    def on_start(self, title: str) -> None:
        self._logger.info("▶ %s", title)

    def on_progress(self, message: str) -> None:
        self._logger.debug("  %s", message)

    def on_complete(self, message: str) -> None:
        self._logger.info("✓ %s", message)

    def on_error(self, message: str) -> None:
        self._logger.warning("✗ %s", message)


class RecordingProgressSink:
    """Keeps every event in order, as ``(event, text)`` tuples."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def on_start(self, title: str) -> None:
        self.events.append(("start", title))

    def on_progress(self, message: str) -> None:
        self.events.append(("progress", message))

    def on_complete(self, message: str) -> None:
        self.events.append(("complete", message))

    def on_error(self, message: str) -> None:
        self.events.append(("error", message))

    def of(self, event: str) -> list[str]:
        return [text for kind, text in self.events if kind == event]
