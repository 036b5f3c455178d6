"""
Tests for the platform CLI executor — command compilation and subprocess handling.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from sandboxctl.adapters.base import CommandDefinition
from sandboxctl.adapters.sfdx.cli import SfdxCliExecutor, parse_sfdx_command, safe_parse_json
from sandboxctl.core.models.result import ResultKind, ResultStatus
from sandboxctl.core.progress import RecordingProgressSink


def _process(stdout: str = "", stderr: str = "", returncode: int = 0) -> MagicMock:
    process = MagicMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout.encode(), stderr.encode()))
    process.wait = AsyncMock(return_value=returncode)
    return process


def _command(**flags) -> CommandDefinition:
    return CommandDefinition(
        command="force:org:display",
        flags=flags,
        progress_msg="Displaying org",
        error_msg="Display failed",
        success_msg="Displayed org",
    )


# ── Command Compilation Tests ────────────────────────────────────────


class TestParseSfdxCommand:
    def test_plain_command(self):
        assert parse_sfdx_command(_command()) == "sfdx force:org:display"

    def test_value_flags(self):
        cmd = parse_sfdx_command(_command(FLAG_TARGETUSERNAME="demo1", FLAG_WAIT=10))
        assert cmd == "sfdx force:org:display --targetusername demo1 --wait 10"

    def test_single_letter_flag(self):
        assert parse_sfdx_command(_command(FLAG_U="demo1")) == "sfdx force:org:display -u demo1"

    def test_boolean_flags(self):
        cmd = parse_sfdx_command(_command(FLAG_JSON=True, FLAG_NOPROMPT=False))
        assert cmd == "sfdx force:org:display --json"

    def test_none_dropped(self):
        cmd = parse_sfdx_command(_command(FLAG_TARGETDEVHUBUSERNAME=None, FLAG_JSON=True))
        assert cmd == "sfdx force:org:display --json"

    def test_whitespace_quoted(self):
        cmd = parse_sfdx_command(_command(FLAG_DEFINITIONFILE="/path/with space/def.json"))
        assert cmd == "sfdx force:org:display --definitionfile '/path/with space/def.json'"

    def test_single_quote_in_value(self):
        cmd = parse_sfdx_command(_command(FLAG_SETALIAS="o'brien"))
        assert cmd == "sfdx force:org:display --setalias 'o'\"'\"'brien'"

    def test_shell_expansion_is_inert(self):
        cmd = parse_sfdx_command(_command(FLAG_SETALIAS="my $(echo PWNED) org"))
        assert cmd == "sfdx force:org:display --setalias 'my $(echo PWNED) org'"

    def test_args_are_quoted(self):
        command = CommandDefinition(command="force:user:create", args=["LastName=Rep; rm -rf ~"])
        assert parse_sfdx_command(command) == "sfdx force:user:create 'LastName=Rep; rm -rf ~'"

    def test_non_flag_keys_ignored(self):
        assert parse_sfdx_command(_command(targetusername="x")) == "sfdx force:org:display"

    def test_args_follow_command(self):
        command = CommandDefinition(
            command="force:user:create",
            args=["username=rep@demo.org"],
            flags={"FLAG_SETALIAS": "rep"},
        )
        assert parse_sfdx_command(command) == "sfdx force:user:create username=rep@demo.org --setalias rep"

    def test_custom_binary(self):
        assert parse_sfdx_command(_command(), binary="/opt/sfdx/bin/sfdx").startswith("/opt/sfdx/bin/sfdx ")


class TestSafeParseJson:
    def test_object(self):
        assert safe_parse_json('{"status": 0}') == {"status": 0}

    def test_empty(self):
        assert safe_parse_json("   ") == {}

    def test_not_json(self):
        assert safe_parse_json("Warning: update available") == {"unparsed": "Warning: update available"}

    def test_non_object(self):
        assert safe_parse_json("[1, 2]") == {"result": [1, 2]}


# ── Executor Tests ───────────────────────────────────────────────────


class TestSfdxCliExecutor:
    @pytest.mark.asyncio
    async def test_success(self):
        output = json.dumps({"status": 0, "result": {"orgId": "00D000000000001"}})
        shell = AsyncMock(return_value=_process(stdout=output))
        sink = RecordingProgressSink()

        with patch("asyncio.create_subprocess_shell", shell):
            result = await SfdxCliExecutor(cwd="/work").run(_command(FLAG_JSON=True), sink)

        assert result.status == ResultStatus.SUCCESS
        assert result.kind == ResultKind.EXECUTOR
        assert result.detail["result"] == {"orgId": "00D000000000001"}
        assert result.detail["cmd_raw"] == "sfdx force:org:display --json"
        assert shell.await_args.args[0] == "sfdx force:org:display --json"
        assert shell.await_args.kwargs["cwd"] == "/work"

        progress = sink.of("progress")
        assert progress[0] == "[0.00s] Executing force:org:display"
        assert progress[1] == "Displaying org"
        assert progress[-1].endswith("SUCCESS: Displayed org")

    @pytest.mark.asyncio
    async def test_stderr_is_failure(self):
        shell = AsyncMock(return_value=_process(stdout="{}", stderr="ERROR running force:org:display"))
        with patch("asyncio.create_subprocess_shell", shell):
            result = await SfdxCliExecutor().run(_command(), RecordingProgressSink())

        assert result.status == ResultStatus.FAILURE
        assert result.error_message == "Display failed"
        assert result.detail["cause"] == "ERROR running force:org:display"
        assert result.detail["stderr"] == "ERROR running force:org:display"

    @pytest.mark.asyncio
    async def test_nonzero_exit_is_failure(self):
        shell = AsyncMock(return_value=_process(returncode=1))
        with patch("asyncio.create_subprocess_shell", shell):
            result = await SfdxCliExecutor().run(_command(), RecordingProgressSink())

        assert result.status == ResultStatus.FAILURE
        assert result.detail["return_code"] == 1
        assert "exited with code 1" in result.detail["cause"]

    @pytest.mark.asyncio
    async def test_json_status_is_failure(self):
        output = json.dumps({"status": 1, "name": "NamedOrgNotFound", "message": "No org named demo1"})
        shell = AsyncMock(return_value=_process(stdout=output))
        sink = RecordingProgressSink()
        with patch("asyncio.create_subprocess_shell", shell):
            result = await SfdxCliExecutor().run(_command(), sink)

        assert result.status == ResultStatus.FAILURE
        assert result.error_message == "Display failed"
        assert result.detail["cause"] == "No org named demo1"
        assert result.detail["error_name"] == "NamedOrgNotFound"
        assert sink.of("progress")[-1].endswith("FAILURE: Display failed")

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self):
        process = _process()

        async def hang():
            await asyncio.sleep(10)

        process.communicate = hang
        shell = AsyncMock(return_value=process)

        with patch("asyncio.create_subprocess_shell", shell):
            result = await SfdxCliExecutor(timeout=0.01).run(_command(), RecordingProgressSink())

        assert result.status == ResultStatus.FAILURE
        assert result.error_message == "Display failed"
        assert "timed out" in result.detail["cause"]
        process.kill.assert_called_once()
        process.wait.assert_awaited_once()

    def test_is_available(self):
        with patch("shutil.which", return_value=None):
            assert not SfdxCliExecutor().is_available()
        with patch("shutil.which", return_value="/usr/bin/sfdx"):
            assert SfdxCliExecutor().is_available()
