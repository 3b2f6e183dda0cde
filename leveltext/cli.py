"""Command-line interface for Leveltext.

Responsibilities:
- Expose user-facing commands for submitting, polling, and resuming jobs.
- Convert CLI arguments into `LeveltextConfig` and runtime secret sources.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from dataclasses import replace
import os
from pathlib import Path
from typing import Annotated, Callable

import typer

from .cli_rendering import (
    echo_chunk_preview,
    echo_progress_line,
    echo_status,
    echo_submission,
    exit_with_command_error,
)
from .config import ConfigLoader, LeveltextConfig, RuntimeConfigSources
from .credentials import (
    API_KEY_ACCOUNT,
    RENDER_PROXY_KEY_ACCOUNT,
    create_credential_store,
    load_secure_sources,
)
from .errors import ConfigurationError
from .factory import ComponentFactory
from .models.datatypes import (
    SOURCE_KINDS,
    SOURCE_PDF,
    SOURCE_TEXT,
    SOURCE_URL,
    JobStatusView,
    SubmitRequest,
    SubmitResponse,
)
from .parsing import normalize_optional_string
from .service import JobService, status_view
from .store.job_store import JobStore
from .telemetry.logger import configure_logging
from .text.segmenter import Segmenter

app = typer.Typer(
    name="leveltext",
    no_args_is_help=True,
    help="Leveltext CLI: leveled translations of articles, pasted text, and PDFs.",
)

_POLL_INTERVAL_SECONDS = 0.5

ConfigOption = Annotated[
    Path | None, typer.Option("--config", help="Path to a YAML config file.")
]
DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", help="Job and blob storage directory (overrides config)."),
]
TargetOption = Annotated[
    str | None, typer.Option("--target", help="Target language, for example German.")
]
LevelOption = Annotated[str | None, typer.Option("--level", help="CEFR level A1..C2.")]
ApiKeyOption = Annotated[
    str | None,
    typer.Option("--api-key", help="LLM API key for this run (not persisted)."),
]


def _load_base_config(config_file: Path | None) -> LeveltextConfig:
    """Load YAML config when requested, otherwise environment config."""

    try:
        if config_file is None:
            return ConfigLoader.from_env()
        return ConfigLoader.from_yaml(config_file)
    except FileNotFoundError as exc:
        raise ConfigurationError(
            f"Config file not found: `{config_file}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid configuration: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc


def _resolve_config(
    config_file: Path | None,
    data_dir: Path | None,
    api_key: str | None,
) -> LeveltextConfig:
    """Resolve the effective config with CLI, keyring, and environment secrets."""

    base_config = _load_base_config(config_file)
    runtime_cli_values: dict[str, str] = {}
    normalized_api_key = normalize_optional_string(api_key)
    if normalized_api_key is not None:
        runtime_cli_values["api_key"] = normalized_api_key

    return replace(
        base_config,
        data_dir=data_dir if data_dir is not None else base_config.data_dir,
        runtime_sources=RuntimeConfigSources(
            cli=runtime_cli_values,
            secure=load_secure_sources(create_credential_store()),
            env=os.environ,
        ),
    )


def _run_job(
    command_name: str,
    config: LeveltextConfig,
    submit: Callable[[JobService], SubmitResponse],
) -> None:
    """Submit or re-queue a job, follow it to completion, and render the outcome."""

    configure_logging()
    service: JobService | None = None
    try:
        service = ComponentFactory.create_service(config)
        response = submit(service)
        echo_submission(response)
        view = _follow_job(command_name, service, response.job_id)
    except Exception as exc:
        exit_with_command_error(command_name, exc)
    finally:
        if service is not None:
            service.shutdown()

    echo_status(view)
    if view.error is not None:
        raise typer.Exit(code=1)


def _follow_job(command_name: str, service: JobService, job_id: str) -> JobStatusView:
    """Print progress lines until the job run finishes; return the final view."""

    last_line: tuple[str, int] | None = None
    while True:
        active = service.queue.is_active(job_id)
        view = service.poll(job_id)
        marker = (view.status, view.progress.current if view.progress else -1)
        if marker != last_line:
            echo_progress_line(command_name, view)
            last_line = marker
        if not active:
            service.queue.wait(job_id)
            return view
        try:
            service.queue.wait(job_id, timeout=_POLL_INTERVAL_SECONDS)
        except TimeoutError:
            continue


def _request(
    config: LeveltextConfig,
    source_kind: str,
    source_ref: str,
    target: str | None,
    level: str | None,
) -> SubmitRequest:
    """Build a submission that falls back to config defaults for target and level."""

    return SubmitRequest(
        source_kind=source_kind,
        source_ref=source_ref,
        target_language=target or config.target_language,
        level=level or config.level,
    )


@app.command("translate-url")
def translate_url_command(
    url: Annotated[str, typer.Argument(help="Article URL to fetch and translate.")],
    config_file: ConfigOption = None,
    data_dir: DataDirOption = None,
    target: TargetOption = None,
    level: LevelOption = None,
    api_key: ApiKeyOption = None,
) -> None:
    """Fetch an article and produce a leveled translation."""

    try:
        config = _resolve_config(config_file, data_dir, api_key)
    except Exception as exc:
        exit_with_command_error("translate-url", exc)
    request = _request(config, SOURCE_URL, url, target, level)
    _run_job("translate-url", config, lambda service: service.submit(request))


@app.command("translate-text")
def translate_text_command(
    source: Annotated[
        str, typer.Argument(help="Text file to translate, or `-` to read standard input.")
    ],
    config_file: ConfigOption = None,
    data_dir: DataDirOption = None,
    target: TargetOption = None,
    level: LevelOption = None,
    api_key: ApiKeyOption = None,
) -> None:
    """Translate pasted text read from a file or standard input."""

    try:
        config = _resolve_config(config_file, data_dir, api_key)
        text = _read_text_source(source)
    except Exception as exc:
        exit_with_command_error("translate-text", exc)
    request = _request(config, SOURCE_TEXT, text, target, level)
    _run_job("translate-text", config, lambda service: service.submit(request))


@app.command("translate-pdf")
def translate_pdf_command(
    pdf_file: Annotated[Path, typer.Argument(help="Text-based PDF file (max 10 MB).")],
    config_file: ConfigOption = None,
    data_dir: DataDirOption = None,
    target: TargetOption = None,
    level: LevelOption = None,
    api_key: ApiKeyOption = None,
) -> None:
    """Upload a PDF and produce a leveled translation of its text."""

    try:
        config = _resolve_config(config_file, data_dir, api_key)
    except Exception as exc:
        exit_with_command_error("translate-pdf", exc)
    request = _request(config, SOURCE_PDF, str(pdf_file), target, level)
    _run_job("translate-pdf", config, lambda service: service.submit(request))


@app.command("status")
def status_command(
    job_id: Annotated[str, typer.Argument(help="Job id printed at submission.")],
    config_file: ConfigOption = None,
    data_dir: DataDirOption = None,
) -> None:
    """Print the status view of a job."""

    try:
        config = _load_base_config(config_file)
        store = JobStore(data_dir if data_dir is not None else config.data_dir)
        view = status_view(store.load(job_id))
    except Exception as exc:
        exit_with_command_error("status", exc)
    echo_status(view)


@app.command("resume")
def resume_command(
    job_id: Annotated[str, typer.Argument(help="Id of a failed or interrupted job.")],
    config_file: ConfigOption = None,
    data_dir: DataDirOption = None,
    api_key: ApiKeyOption = None,
) -> None:
    """Resume a failed or interrupted job from its last checkpoint."""

    try:
        config = _resolve_config(config_file, data_dir, api_key)
    except Exception as exc:
        exit_with_command_error("resume", exc)
    _run_job("resume", config, lambda service: service.resume(job_id))


@app.command("chunk")
def chunk_command(
    source: Annotated[
        str, typer.Argument(help="Text file to segment, or `-` to read standard input.")
    ],
    kind: Annotated[
        str,
        typer.Option("--kind", help=f"Source kind whose band to use: {', '.join(SOURCE_KINDS)}."),
    ] = SOURCE_TEXT,
    config_file: ConfigOption = None,
) -> None:
    """Preview how a text would be segmented into translation chunks."""

    try:
        if kind not in SOURCE_KINDS:
            raise ConfigurationError(
                f"Unsupported source kind `{kind}`.",
                hint=f"Use one of: {', '.join(SOURCE_KINDS)}.",
            )
        config = _load_base_config(config_file)
        chunks = Segmenter(config.chunk_band(kind)).to_chunks(_read_text_source(source))
    except Exception as exc:
        exit_with_command_error("chunk", exc)
    echo_chunk_preview(chunks)


@app.command("credentials")
def credentials_command(
    set_api_key: Annotated[
        bool,
        typer.Option("--set-api-key", help="Prompt for the LLM API key and store it securely."),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option("--clear-api-key", help="Clear the stored LLM API key."),
    ] = False,
    set_render_proxy_key: Annotated[
        bool,
        typer.Option(
            "--set-render-proxy-key",
            help="Prompt for the rendering-proxy key and store it securely.",
        ),
    ] = False,
    clear_render_proxy_key: Annotated[
        bool,
        typer.Option("--clear-render-proxy-key", help="Clear the stored rendering-proxy key."),
    ] = False,
) -> None:
    """Manage securely stored credentials."""

    actions = [set_api_key, clear_api_key, set_render_proxy_key, clear_render_proxy_key]
    if sum(actions) > 1:
        exit_with_command_error(
            "credentials",
            ConfigurationError(
                "Only one credentials action can be used per invocation.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key or set_render_proxy_key:
        account = API_KEY_ACCOUNT if set_api_key else RENDER_PROXY_KEY_ACCOUNT
        label = "LLM API key" if set_api_key else "Rendering-proxy key"
        secret = normalize_optional_string(
            typer.prompt(f"{label} (hidden input)", default="", hide_input=True, show_default=False)
        )
        if secret is None:
            exit_with_command_error(
                "credentials",
                ConfigurationError(
                    f"No {label} entered.",
                    hint="Provide a non-empty value.",
                ),
            )
        try:
            credential_store.set(account, secret)
        except Exception as exc:
            exit_with_command_error(
                "credentials",
                ConfigurationError(
                    f"Failed to store {label} securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo(f"{label} stored in secure credential storage.")
        return

    if clear_api_key or clear_render_proxy_key:
        account = API_KEY_ACCOUNT if clear_api_key else RENDER_PROXY_KEY_ACCOUNT
        label = "LLM API key" if clear_api_key else "Rendering-proxy key"
        if credential_store.clear(account):
            typer.echo(f"Stored {label} cleared from secure credential storage.")
        else:
            typer.echo(f"No stored {label} found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    typer.echo(f"Secure credential storage: {availability}")
    for label, account in (
        ("LLM API key", API_KEY_ACCOUNT),
        ("Rendering-proxy key", RENDER_PROXY_KEY_ACCOUNT),
    ):
        status = "present" if credential_store.get(account) is not None else "not set"
        typer.echo(f"Stored {label}: {status}")


def _read_text_source(source: str) -> str:
    """Read text from a file path or from standard input when `source` is `-`."""

    if source == "-":
        return typer.get_text_stream("stdin").read()
    return Path(source).read_text(encoding="utf-8")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
