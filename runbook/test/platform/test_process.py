"""Tests for runbook.platform.process module."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from runbook.core.result import Err, Ok
from runbook.platform.process import ProcessError, run


class TestProcessError:
    """Test ProcessError dataclass."""

    def test_str_short_command(self) -> None:
        error = ProcessError(
            command=("git", "status"),
            returncode=128,
            stdout="",
            stderr="fatal: not a git repository",
        )
        assert str(error) == "git status failed (exit 128)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("git", "merge", "--no-edit", "-X", "theirs", "develop"),
            returncode=1,
            stdout="",
            stderr="",
        )
        assert str(error) == "git merge --no-edit ... failed (exit 1)"

    def test_detail_prefers_stderr_then_stdout(self) -> None:
        assert ProcessError(("git",), 1, "out", " err \n").detail == "err"
        assert ProcessError(("git",), 1, "CONFLICT\n", "").detail == "CONFLICT"
        assert ProcessError(("git",), 1, "", "").detail == "git failed (exit 1)"


def _completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    proc = MagicMock()
    proc.returncode = returncode
    proc.stdout = stdout
    proc.stderr = stderr
    return proc


class TestRun:
    """Test run function with subprocess mocked out."""

    @patch("subprocess.run")
    def test_success_returns_stdout(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = _completed(stdout="develop\n")

        result = run(["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd=tmp_path, timeout=5.0)

        assert result == Ok("develop\n")
        _, kwargs = mock_run.call_args
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["timeout"] == 5.0
        assert kwargs["capture_output"] is True

    @patch("subprocess.run")
    def test_non_zero_exit_is_err(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = _completed(returncode=1, stderr="error: pathspec")

        result = run(["git", "checkout", "nope"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == 1
        assert result.error.stderr == "error: pathspec"
        assert result.error.command == ("git", "checkout", "nope")

    @patch("subprocess.run")
    def test_timeout(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.side_effect = subprocess.TimeoutExpired(cmd=["git", "push"], timeout=3.0)

        result = run(["git", "push"], cwd=tmp_path, timeout=3.0)

        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert "timed out" in result.error.stderr

    @patch("subprocess.run")
    def test_missing_executable(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.side_effect = FileNotFoundError("git")

        result = run(["git", "status"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]
