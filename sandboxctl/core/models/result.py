"""
Result model — hierarchical outcome records.

Every Action, Engine and Recipe boundary produces a Result. Children are
attached as sub-operations complete and their statuses are folded into
the parent according to the parent's bubbling policy:

    child ERROR     bubble_error   → parent finalized ERROR, ResultBubbled raised
                    otherwise      → parent downgraded to FAILURE
    child FAILURE   bubble_failure → parent FAILURE (ERROR if failure_is_error)
                    otherwise      → parent WARNING
    child WARNING                  → parent at least WARNING

A Result is finalized exactly once. After that it is read-only.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sandboxctl.core.errors import ResultAlreadyFinalized, ResultBubbled


class ResultKind(str, Enum):
    """Which boundary produced a Result."""

    ACTION = "ACTION"
    ENGINE = "ENGINE"
    RECIPE = "RECIPE"
    EXECUTOR = "EXECUTOR"
    FUNCTION = "FUNCTION"
    UNKNOWN = "UNKNOWN"


class ResultStatus(str, Enum):
    INITIALIZED = "INITIALIZED"
    WAITING = "WAITING"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    FAILURE = "FAILURE"
    ERROR = "ERROR"
    UNKNOWN = "UNKNOWN"


# Higher wins when aggregating children
_PRIORITY = {
    ResultStatus.INITIALIZED: 0,
    ResultStatus.WAITING: 0,
    ResultStatus.UNKNOWN: 1,
    ResultStatus.SUCCESS: 2,
    ResultStatus.WARNING: 3,
    ResultStatus.FAILURE: 4,
    ResultStatus.ERROR: 5,
}

_PENDING = (ResultStatus.INITIALIZED, ResultStatus.WAITING)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def worst_status(*statuses: ResultStatus) -> ResultStatus:
    """Pick the most severe of the given statuses."""
    return max(statuses, key=lambda s: _PRIORITY[s])


class Result:
    """An outcome record that aggregates child outcomes.

    Args:
        name: Identifies the operation, e.g. ``create-scratch-org:execute``.
        kind: Which boundary produced this result.
        bubble_error: Attaching an ERROR child finalizes this result as
            ERROR and raises ``ResultBubbled``.
        bubble_failure: Attaching a FAILURE child marks this result as
            FAILURE. When False the failure is absorbed as a WARNING.
        failure_is_error: Treat FAILURE children as ERROR children.
        start_now: Record the start time immediately.
    """

    def __init__(
        self,
        name: str,
        kind: ResultKind = ResultKind.UNKNOWN,
        *,
        bubble_error: bool = True,
        bubble_failure: bool = True,
        failure_is_error: bool = False,
        start_now: bool = True,
    ):
        self.name = name
        self.kind = kind
        self.bubble_error = bubble_error
        self.bubble_failure = bubble_failure
        self.failure_is_error = failure_is_error

        self.status = ResultStatus.INITIALIZED
        self.children: list[Result] = []
        self.detail: dict[str, Any] = {}
        self.error_obj: BaseException | None = None

        self.started_at: str | None = None
        self.ended_at: str | None = None
        self._start_mono: float | None = None
        self._end_mono: float | None = None
        self._finalized = False

        if start_now:
            self.start()

    # ── State ───────────────────────────────────────────────────

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def ok(self) -> bool:
        """True for SUCCESS and WARNING."""
        return self.status in (ResultStatus.SUCCESS, ResultStatus.WARNING)

    @property
    def last_child(self) -> Result | None:
        return self.children[-1] if self.children else None

    @property
    def duration_seconds(self) -> float:
        if self._start_mono is None:
            return 0.0
        end = self._end_mono if self._end_mono is not None else time.monotonic()
        return end - self._start_mono

    @property
    def duration_string(self) -> str:
        return f"{self.duration_seconds:.2f}s"

    @property
    def error_message(self) -> str:
        """Best human-readable description of what went wrong."""
        if self.error_obj is not None:
            return str(self.error_obj)
        message = self.detail.get("error_message")
        if message:
            return str(message)
        for child in reversed(self.children):
            if child.status in (ResultStatus.ERROR, ResultStatus.FAILURE):
                return child.error_message
        return ""

    def start(self) -> Result:
        self._check_open()
        self.started_at = _now_iso()
        self._start_mono = time.monotonic()
        self.status = ResultStatus.WAITING
        return self

    def set_detail(self, detail: Any) -> Result:
        """Merge ``detail`` into this result's payload.

        Non-dict payloads are stored under ``raw_result``.
        """
        self._check_open()
        if isinstance(detail, dict):
            self.detail.update(detail)
        elif detail is not None:
            self.detail["raw_result"] = detail
        return self

    # ── Tree building ───────────────────────────────────────────

    def add_child(self, child: Result) -> Result:
        """Attach a finished sub-operation and fold in its status.

        Raises:
            ResultBubbled: When an ERROR child bubbles through this result.
            ResultAlreadyFinalized: When this result is already finalized.
        """
        self._check_open()
        self.children.append(child)

        child_status = child.status
        if child_status == ResultStatus.FAILURE and self.failure_is_error:
            child_status = ResultStatus.ERROR

        if child_status == ResultStatus.ERROR:
            if self.bubble_error:
                self.error(child.error_obj or child.error_message or None)
                raise ResultBubbled(self)
            self._escalate(ResultStatus.FAILURE)
        elif child_status == ResultStatus.FAILURE:
            self._escalate(
                ResultStatus.FAILURE if self.bubble_failure else ResultStatus.WARNING
            )
        elif child_status == ResultStatus.WARNING:
            self._escalate(ResultStatus.WARNING)
        return self

    def _escalate(self, status: ResultStatus) -> None:
        self.status = worst_status(self.status, status)

    # ── Finalizers ──────────────────────────────────────────────

    def finish(self, detail: Any = None) -> Result:
        """Finalize with the status aggregated from the children so far."""
        status = self.status if self.status not in _PENDING else ResultStatus.SUCCESS
        return self._finalize(status, detail)

    def success(self, detail: Any = None) -> Result:
        return self._finalize(ResultStatus.SUCCESS, detail)

    def warning(self, detail: Any = None) -> Result:
        return self._finalize(ResultStatus.WARNING, detail)

    def failure(self, error: Any = None, detail: Any = None) -> Result:
        self._capture_error(error)
        return self._finalize(ResultStatus.FAILURE, detail)

    def error(self, error: Any = None, detail: Any = None) -> Result:
        self._capture_error(error)
        return self._finalize(ResultStatus.ERROR, detail)

    def throw(self, error: Any = None) -> None:
        """Finalize as ERROR and raise ``ResultBubbled``."""
        self.error(error)
        raise ResultBubbled(self)

    def _capture_error(self, error: Any) -> None:
        if isinstance(error, BaseException):
            self.error_obj = error
        elif error:
            self.detail["error_message"] = str(error)

    def _finalize(self, status: ResultStatus, detail: Any) -> Result:
        self._check_open()
        if detail is not None:
            self.set_detail(detail)
        if self._start_mono is None:
            self.start()
        self.status = status
        self.ended_at = _now_iso()
        self._end_mono = time.monotonic()
        self._finalized = True
        return self

    def _check_open(self) -> None:
        if self._finalized:
            raise ResultAlreadyFinalized(
                f"Result '{self.name}' was already finalized as {self.status.value}"
            )

    # ── Wrapping ────────────────────────────────────────────────

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        name: str,
        kind: ResultKind = ResultKind.UNKNOWN,
    ) -> Result:
        """Wrap a raised exception as a finalized ERROR result.

        ``ResultBubbled`` already carries a result; that result is
        returned as-is.
        """
        if isinstance(exc, ResultBubbled):
            return exc.result
        result = cls(name, kind)
        result.error(exc, detail={"error_type": type(exc).__name__})
        return result

    # ── Serialization ───────────────────────────────────────────

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "name": self.name,
            "kind": self.kind.value,
            "status": self.status.value,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "duration": self.duration_string,
        }
        message = self.error_message
        if message:
            data["error"] = message
        if self.detail:
            data["detail"] = {k: _jsonable(v) for k, v in self.detail.items()}
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        return data

    def walk(self):
        """Yield (depth, result) pairs depth-first."""
        stack: list[tuple[int, Result]] = [(0, self)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            for child in reversed(node.children):
                stack.append((depth + 1, child))

    def __repr__(self) -> str:
        return f"<Result {self.name!r} {self.kind.value} {self.status.value}>"


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    return str(value)
