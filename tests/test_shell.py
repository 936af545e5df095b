"""Tests for changegate.shell."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from changegate.errors import GitError
from changegate.shell import git, info, step, warn


@patch("changegate.shell.subprocess.run")
def test_git_returns_stripped_stdout(mock_run: MagicMock) -> None:
    mock_run.return_value = subprocess.CompletedProcess(
        args=[], returncode=0, stdout="a.txt\nb.txt\n", stderr=""
    )

    assert git("diff", "--name-only") == "a.txt\nb.txt"
    mock_run.assert_called_once_with(
        ["git", "diff", "--name-only"], capture_output=True, text=True
    )


@patch("changegate.shell.subprocess.run")
def test_git_failure_raises(mock_run: MagicMock) -> None:
    mock_run.return_value = subprocess.CompletedProcess(
        args=[], returncode=128, stdout="", stderr="fatal: bad revision 'nope'\n"
    )

    with pytest.raises(GitError, match="bad revision"):
        git("diff", "nope")


@patch("changegate.shell.subprocess.run", side_effect=FileNotFoundError)
def test_git_missing_raises(mock_run: MagicMock) -> None:
    with pytest.raises(GitError, match="not found"):
        git("status")


def test_output_goes_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    step("Detecting changes")
    info("apps/server/index.js")
    warn("no base ref")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Detecting changes" in captured.err
    assert "  apps/server/index.js" in captured.err
    assert "WARNING: no base ref" in captured.err
