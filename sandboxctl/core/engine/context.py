"""
Engine context — compile options and the state an engine builds from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel

from sandboxctl.core.errors import InvalidEngineContext
from sandboxctl.core.models.project import ProjectContext
from sandboxctl.core.models.recipe import TargetOrg


class LogLevel(str, Enum):
    """Log levels understood by the platform CLI's ``--loglevel`` flag."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


DEFAULT_LOG_LEVEL = LogLevel.ERROR


class CompileOptions(BaseModel):
    """Caller-supplied overrides for compiling a recipe.

    ``None`` means "not supplied": the engine falls back to the recipe,
    the project configuration, or an interactive prompt.
    """

    target_org_alias: str | None = None
    dev_hub_alias: str | None = None
    halt_on_error: bool | None = None
    skip_groups: list[str] | None = None
    skip_actions: list[str] | None = None
    skip_org_refresh: bool = False
    log_level: LogLevel | None = None
    custom_install: bool = False
    assume_yes: bool = False


@dataclass
class EngineContext:
    """Mutable compile state owned by exactly one engine.

    Once ``initialized`` is set the context is frozen: any further
    assignment raises InvalidEngineContext.
    """

    project: ProjectContext
    compile_options: CompileOptions = field(default_factory=CompileOptions)
    is_executing: bool = False
    halt_on_error: bool = True
    dev_hub_alias: str | None = None
    target_org: TargetOrg | None = None
    skip_groups: list[str] | None = None
    skip_actions: list[str] | None = None
    log_level: LogLevel = DEFAULT_LOG_LEVEL
    initialized: bool = False

    def __setattr__(self, name: str, value: Any) -> None:
        # is_executing is the only runtime flag allowed to flip after freeze
        if getattr(self, "initialized", False) and name != "is_executing":
            raise InvalidEngineContext(
                f"Engine context is initialized and read-only (tried to set '{name}')"
            )
        super().__setattr__(name, value)

    def to_dict(self) -> dict:
        return {
            "project_path": str(self.project.project_path),
            "halt_on_error": self.halt_on_error,
            "dev_hub_alias": self.dev_hub_alias,
            "target_org": self.target_org.alias if self.target_org else None,
            "skip_groups": list(self.skip_groups or []),
            "skip_actions": list(self.skip_actions or []),
            "log_level": self.log_level.value,
            "initialized": self.initialized,
        }
