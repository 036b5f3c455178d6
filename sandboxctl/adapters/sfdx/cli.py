"""
Platform CLI executor — runs ``sfdx`` commands asynchronously.

Commands are compiled from a CommandDefinition into a single shell
string and run with ``asyncio.create_subprocess_shell``. Every argument
is shell-quoted. The JSON the CLI prints with ``--json`` is merged into
the Result detail.

A failed command reports the action's own error message; the raw CLI
output stays in the detail under ``cause`` and ``stderr``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import shlex
import shutil
from typing import Any

from sandboxctl.adapters.base import CommandDefinition, CommandExecutor
from sandboxctl.core.models.result import Result, ResultKind
from sandboxctl.core.progress import ProgressSink

SFDX_BINARY = "sfdx"
FLAG_PREFIX = "FLAG_"


def parse_sfdx_command(command: CommandDefinition, binary: str = SFDX_BINARY) -> str:
    """Compile a command definition into a shell command string.

    Only keys starting with ``FLAG_`` become flags. Boolean flags are
    emitted bare when true and dropped when false; ``None`` values are
    dropped. The binary, positional args and flag values all pass
    through ``shlex.quote``.
    """
    parts = [shlex.quote(binary), command.command, *(shlex.quote(a) for a in command.args)]

    for key, value in command.flags.items():
        if not key.upper().startswith(FLAG_PREFIX) or value is None:
            continue
        flag = key[len(FLAG_PREFIX):].lower()
        hyphen = "-" if len(flag) == 1 else "--"
        resolved = f"{hyphen}{flag}"

        if isinstance(value, bool):
            if value:
                parts.append(resolved)
            continue

        parts.append(f"{resolved} {shlex.quote(str(value))}")

    return " ".join(parts)


def safe_parse_json(text: str) -> dict[str, Any]:
    """Parse CLI JSON output. Anything unparseable lands under ``unparsed``."""
    text = text.strip()
    if not text:
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return {"unparsed": text}
    if isinstance(data, dict):
        return data
    return {"result": data}


class SfdxCliExecutor(CommandExecutor):
    """Execute platform CLI commands and capture their output.

    Args:
        binary: CLI executable name or path.
        timeout: Optional per-command timeout in seconds.
        cwd: Working directory for the child process.
        logger: Logger to use instead of the module logger.
    """

    def __init__(
        self,
        binary: str = SFDX_BINARY,
        timeout: float | None = None,
        cwd: str | None = None,
        logger: logging.Logger | None = None,
    ):
        self._binary = binary
        self._timeout = timeout
        self._cwd = cwd
        self._logger = logger or logging.getLogger(__name__)

    @property
    def name(self) -> str:
        return "sfdx"

    def is_available(self) -> bool:
        return shutil.which(self._binary) is not None

    async def run(self, command: CommandDefinition, sink: ProgressSink) -> Result:
        command_string = parse_sfdx_command(command, self._binary)
        result = Result(f"executeSfdxCommand:{command.command}", ResultKind.EXECUTOR)
        result.set_detail({"cmd_raw": command_string, **command.messages()})

        self._logger.debug("Executing: %s", command_string)
        sink.on_progress(f"[0.00s] Executing {command.command}")
        if command.progress_msg:
            sink.on_progress(command.progress_msg)

        process = await asyncio.create_subprocess_shell(
            command_string,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=self._cwd,
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            cause = f"Command timed out after {self._timeout}s"
            self._logger.warning("%s: %s", command.command, cause)
            sink.on_progress(f"[{result.duration_string}] FAILURE: {command.error_msg or cause}")
            return result.failure(
                command.error_msg or cause,
                detail={"timeout": self._timeout, "cause": cause},
            )

        stdout_text = stdout.decode("utf-8", errors="replace")
        stderr_text = stderr.decode("utf-8", errors="replace").strip()
        parsed = safe_parse_json(stdout_text)

        cli_status = parsed.get("status", 0)
        failed = bool(stderr_text) or process.returncode != 0 or cli_status not in (0, None)

        if failed:
            cause = (
                stderr_text
                or parsed.get("message")
                or f"Command exited with code {process.returncode}"
            )
            self._logger.debug("%s failed: %s", command.command, cause)
            sink.on_progress(f"[{result.duration_string}] FAILURE: {command.error_msg or cause}")
            return result.failure(
                command.error_msg or cause,
                detail={
                    "cause": cause,
                    "return_code": process.returncode,
                    "stderr": stderr_text,
                    "error_name": parsed.get("name", ""),
                    "cli_output": parsed,
                },
            )

        sink.on_progress(f"[{result.duration_string}] SUCCESS: {command.success_msg}")
        return result.success({"return_code": process.returncode, **parsed})
