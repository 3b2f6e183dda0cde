"""Unit tests for CLI rendering helpers."""

from __future__ import annotations

import pytest
import typer

from leveltext.cli_rendering import (
    echo_chunk_preview,
    echo_progress_line,
    echo_status,
    exit_with_command_error,
)
from leveltext.errors import ConfigurationError
from leveltext.models.datatypes import JobErrorView, JobProgress, JobStatusView


def _view(**overrides: object) -> JobStatusView:
    values: dict[str, object] = {
        "job_id": "abc",
        "status": "translating",
        "status_label": "Translating...",
        "progress": JobProgress(current=4, total=10, percent=40),
        "title": "Cycling plan approved",
        "error": None,
        "retry_count": 0,
    }
    values.update(overrides)
    return JobStatusView(**values)  # type: ignore[arg-type]


def test_echo_progress_line_is_deterministic(capsys: pytest.CaptureFixture[str]) -> None:
    """Progress lines should render status, chunk counters, and percent."""

    echo_progress_line("translate-url", _view())
    echo_progress_line("translate-url", _view(status="fetching", progress=None))

    assert capsys.readouterr().out.splitlines() == [
        "[progress] command=translate-url status=translating chunks=4/10 percent=40",
        "[progress] command=translate-url status=fetching",
    ]


def test_echo_status_renders_failure_details(capsys: pytest.CaptureFixture[str]) -> None:
    """Failed jobs should show error code, retryability, and message."""

    echo_status(
        _view(
            status="failed",
            status_label="Failed",
            retry_count=2,
            error=JobErrorView(message="The site blocked us.", code="FETCH_FAILED", retryable=True),
        )
    )

    output = capsys.readouterr().out
    assert "Status: failed (Failed)" in output
    assert "Progress: 4/10 (40%)" in output
    assert "Retries: 2" in output
    assert "Error [FETCH_FAILED, retryable]: The site blocked us." in output


def test_echo_chunk_preview_lists_word_counts(capsys: pytest.CaptureFixture[str]) -> None:
    """Chunk previews should list index and word count."""

    echo_chunk_preview(["one two three", "four five"])

    assert capsys.readouterr().out.splitlines() == [
        "Chunks: 2",
        "0. words=3 one two three",
        "1. words=2 four five",
    ]


def test_exit_with_command_error_prints_code_and_hint(capsys: pytest.CaptureFixture[str]) -> None:
    """Coded errors should include the code and hint before exiting with 1."""

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error(
            "status", ConfigurationError("Config file not found.", hint="Pass --config.")
        )

    assert exc_info.value.exit_code == 1
    err = capsys.readouterr().err
    assert "status failed [CONFIG_INVALID]: Config file not found." in err
    assert "Hint: Pass --config." in err
