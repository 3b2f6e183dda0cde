"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
job status views, and segmentation previews.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import JobError
from .models.datatypes import JobStatusView, SubmitResponse
from .text.words import count_words


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, JobError):
        typer.secho(
            f"{command_name} failed [{exc.code}]: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_submission(response: SubmitResponse) -> None:
    """Print the submission acknowledgement."""

    typer.echo(f"Job: {response.job_id}")
    typer.echo(f"Status: {response.status}")


def echo_progress_line(command_name: str, view: JobStatusView) -> None:
    """Print one deterministic progress line for a polled job."""

    if view.progress is None:
        typer.echo(f"[progress] command={command_name} status={view.status}")
        return
    typer.echo(
        f"[progress] command={command_name} status={view.status} "
        f"chunks={view.progress.current}/{view.progress.total} "
        f"percent={view.progress.percent}"
    )


def echo_status(view: JobStatusView) -> None:
    """Print the full polling view of a job."""

    typer.echo(f"Job: {view.job_id}")
    typer.echo(f"Status: {view.status} ({view.status_label})")
    typer.echo(f"Title: {view.title or '(unknown)'}")
    if view.progress is not None:
        typer.echo(
            f"Progress: {view.progress.current}/{view.progress.total} "
            f"({view.progress.percent}%)"
        )
    typer.echo(f"Retries: {view.retry_count}")
    if view.error is not None:
        retry_hint = "retryable" if view.error.retryable else "not retryable"
        typer.secho(
            f"Error [{view.error.code}, {retry_hint}]: {view.error.message}",
            fg=typer.colors.RED,
        )


def echo_chunk_preview(chunks: list[str]) -> None:
    """Print chunk index, word count, and first words of each chunk."""

    typer.echo(f"Chunks: {len(chunks)}")
    for index, chunk in enumerate(chunks):
        preview = " ".join(chunk.split()[:12])
        typer.echo(f"{index}. words={count_words(chunk)} {preview}")
