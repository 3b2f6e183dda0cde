"""Configuration model and loaders for Leveltext.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Provide deterministic precedence resolution for provider secrets.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `LeveltextConfig`: normalized runtime settings for the service and pipeline.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `LeveltextConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .io.domain_policy import DomainPolicy, parse_domain_rule
from .models.datatypes import (
    CEFR_LEVELS,
    SOURCE_KINDS,
    SOURCE_PDF,
    SOURCE_TEXT,
    SOURCE_URL,
    ChunkBand,
)
from .parsing import (
    normalize_optional_string,
    parse_positive_float,
    parse_positive_int,
)


_DEFAULT_TRANSLATION_MODEL = "gpt-4.1-mini"
_DEFAULT_DETECTION_MODEL = "gpt-4.1-mini"
_DEFAULT_API_BASE_URL = "https://api.openai.com/v1"
_DEFAULT_RENDER_PROXY_URL = "https://r.jina.ai/"


def _default_chunk_bands() -> dict[str, ChunkBand]:
    """Return default word bands keyed by source kind."""

    return {
        SOURCE_URL: ChunkBand(min_words=250, target_words=1500, max_words=2500),
        SOURCE_TEXT: ChunkBand(min_words=50, target_words=250, max_words=500),
        SOURCE_PDF: ChunkBand(min_words=50, target_words=250, max_words=500),
    }


def _default_min_content_chars() -> dict[str, int]:
    """Return default minimum extracted-text lengths keyed by source kind."""

    return {SOURCE_URL: 100, SOURCE_TEXT: 100, SOURCE_PDF: 50}


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic secret precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class LeveltextConfig:
    """Runtime configuration for the job service and translation pipeline.

    Attributes:
        data_dir: Root directory for job records and stored blobs.
        target_language: Default target language for submissions.
        level: Default CEFR level for submissions.
        model_translate: Chat model used for chunk translation.
        model_detect: Chat model used for language detection.
        api_key: Optional LLM provider API key.
        api_base_url: Base URL of the OpenAI-compatible chat API.
        render_proxy_url: Prefix of the JavaScript-rendering fetch proxy.
        render_proxy_api_key: Optional bearer token for the rendering proxy.
        wave_size: Maximum translation calls in flight per wave.
        job_workers: Maximum jobs processed concurrently by the queue.
        fetch_timeout_seconds: Timeout of the direct fetch.
        render_proxy_timeout_seconds: Timeout of the rendering-proxy fetch.
        translate_timeout_seconds: Timeout of one translation call.
        detect_timeout_seconds: Timeout of one detection call.
        stale_job_seconds: Age after which an unfinished job without a local run is requeued.
        provider_max_retries: Retry budget for transient provider failures.
        rate_limit_interval_seconds: Minimum spacing of provider requests per model.
        min_direct_body_chars: Direct fetch bodies below this are treated as failures.
        chunk_bands: Word bands keyed by source kind.
        min_content_chars: Minimum extracted text length keyed by source kind.
        domain_overrides: Hostname substring to `{skip_extraction, single_chunk}`.
        runtime_sources: Optional secret source overrides injected by the CLI.
    """

    data_dir: Path = Path("data")
    target_language: str = "German"
    level: str = "B1"
    model_translate: str = _DEFAULT_TRANSLATION_MODEL
    model_detect: str = _DEFAULT_DETECTION_MODEL
    api_key: str | None = None
    api_base_url: str = _DEFAULT_API_BASE_URL
    render_proxy_url: str = _DEFAULT_RENDER_PROXY_URL
    render_proxy_api_key: str | None = None
    wave_size: int = 15
    job_workers: int = 4
    fetch_timeout_seconds: float = 30.0
    render_proxy_timeout_seconds: float = 45.0
    translate_timeout_seconds: float = 60.0
    detect_timeout_seconds: float = 30.0
    stale_job_seconds: float = 900.0
    provider_max_retries: int = 2
    rate_limit_interval_seconds: float = 0.05
    min_direct_body_chars: int = 500
    chunk_bands: dict[str, ChunkBand] = field(default_factory=_default_chunk_bands)
    min_content_chars: dict[str, int] = field(default_factory=_default_min_content_chars)
    domain_overrides: dict[str, dict[str, bool]] = field(default_factory=dict)
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)

    def validate(self) -> None:
        """Validate configuration values before building pipeline components."""

        self._require_non_empty(self.target_language, "target_language")
        self._require_non_empty(self.model_translate, "model_translate")
        self._require_non_empty(self.model_detect, "model_detect")
        self._require_non_empty(self.api_base_url, "api_base_url")
        self._require_non_empty(self.render_proxy_url, "render_proxy_url")
        if self.level.upper() not in CEFR_LEVELS:
            raise ValueError(
                f"Unsupported `level` value `{self.level}`; supported: {', '.join(CEFR_LEVELS)}."
            )
        for name in ("wave_size", "job_workers", "min_direct_body_chars"):
            if getattr(self, name) <= 0:
                raise ValueError(f"`{name}` must be a positive integer.")
        if self.provider_max_retries < 0:
            raise ValueError("`provider_max_retries` must be zero or a positive integer.")
        for name in (
            "fetch_timeout_seconds",
            "render_proxy_timeout_seconds",
            "translate_timeout_seconds",
            "detect_timeout_seconds",
            "stale_job_seconds",
        ):
            if getattr(self, name) <= 0.0:
                raise ValueError(f"`{name}` must be a positive number.")
        if self.rate_limit_interval_seconds < 0.0:
            raise ValueError("`rate_limit_interval_seconds` must not be negative.")
        for kind in SOURCE_KINDS:
            if kind not in self.chunk_bands:
                raise ValueError(f"`chunk_bands` is missing source kind `{kind}`.")
            self.chunk_bands[kind].validate(f"chunk_bands.{kind}")
            if self.min_content_chars.get(kind, 0) <= 0:
                raise ValueError(f"`min_content_chars.{kind}` must be a positive integer.")
        self.domain_policy()

    def chunk_band(self, source_kind: str) -> ChunkBand:
        """Return the segmentation band for a source kind."""

        return self.chunk_bands[source_kind]

    def min_chars(self, source_kind: str) -> int:
        """Return the minimum extracted text length for a source kind."""

        return self.min_content_chars[source_kind]

    def domain_policy(self) -> DomainPolicy:
        """Return the default domain policy merged with configured overrides."""

        return DomainPolicy().with_overrides(self.domain_overrides)

    def resolved_api_key(self) -> str | None:
        """Resolve the LLM API key with `cli` > `secure` > `env` > config precedence."""

        return self._resolve_secret("api_key", "OPENAI_API_KEY", self.api_key)

    def resolved_render_proxy_api_key(self) -> str | None:
        """Resolve the rendering-proxy key with the same precedence as the API key."""

        return self._resolve_secret(
            "render_proxy_api_key", "LEVELTEXT_RENDER_PROXY_API_KEY", self.render_proxy_api_key
        )

    def _resolve_secret(self, key: str, env_key: str, default_value: str | None) -> str | None:
        """Resolve an optional secret from sources in deterministic order."""

        sources = self.runtime_sources
        for mapping, lookup_key in ((sources.cli, key), (sources.secure, key), (sources.env, env_key)):
            if lookup_key in mapping:
                value = normalize_optional_string(mapping.get(lookup_key))
                if value is not None:
                    return value
        return normalize_optional_string(default_value)

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        """Validate that string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


class ConfigLoader:
    """Factory methods for creating `LeveltextConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "data_dir",
            "target_language",
            "level",
            "model_translate",
            "model_detect",
            "api_key",
            "api_base_url",
            "render_proxy_url",
            "render_proxy_api_key",
            "wave_size",
            "job_workers",
            "fetch_timeout_seconds",
            "render_proxy_timeout_seconds",
            "translate_timeout_seconds",
            "detect_timeout_seconds",
            "stale_job_seconds",
            "provider_max_retries",
            "rate_limit_interval_seconds",
            "min_direct_body_chars",
            "chunk_bands",
            "min_content_chars",
            "domain_overrides",
        }
    )
    _STRING_KEYS = (
        "target_language",
        "level",
        "model_translate",
        "model_detect",
        "api_key",
        "api_base_url",
        "render_proxy_url",
        "render_proxy_api_key",
    )
    _POSITIVE_INT_KEYS = ("wave_size", "job_workers", "min_direct_body_chars")
    _POSITIVE_FLOAT_KEYS = (
        "fetch_timeout_seconds",
        "render_proxy_timeout_seconds",
        "translate_timeout_seconds",
        "detect_timeout_seconds",
        "stale_job_seconds",
    )
    _ENV_KEYS = {
        "LEVELTEXT_DATA_DIR": "data_dir",
        "LEVELTEXT_TARGET_LANGUAGE": "target_language",
        "LEVELTEXT_LEVEL": "level",
        "LEVELTEXT_MODEL_TRANSLATE": "model_translate",
        "LEVELTEXT_MODEL_DETECT": "model_detect",
        "LEVELTEXT_API_BASE_URL": "api_base_url",
        "LEVELTEXT_RENDER_PROXY_URL": "render_proxy_url",
        "LEVELTEXT_WAVE_SIZE": "wave_size",
        "LEVELTEXT_JOB_WORKERS": "job_workers",
        "LEVELTEXT_PROVIDER_MAX_RETRIES": "provider_max_retries",
        "LEVELTEXT_RATE_LIMIT_INTERVAL_SECONDS": "rate_limit_interval_seconds",
        "LEVELTEXT_STALE_JOB_SECONDS": "stale_job_seconds",
    }
    _SECRET_ENV_KEYS = frozenset({"OPENAI_API_KEY", "LEVELTEXT_RENDER_PROXY_API_KEY"})

    @staticmethod
    def from_yaml(path: Path, env: Mapping[str, str] | None = None) -> LeveltextConfig:
        """Create a validated config from a YAML file."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return ConfigLoader.from_mapping(payload, source_label=f"YAML `{path}`", env=env)

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> LeveltextConfig:
        """Create a validated config from `LEVELTEXT_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for env_key, config_key in ConfigLoader._ENV_KEYS.items():
            value = normalize_optional_string(env_map.get(env_key))
            if value is not None:
                payload[config_key] = value
        return ConfigLoader.from_mapping(payload, source_label="environment", env=env_map)

    @staticmethod
    def from_mapping(
        payload: Mapping[str, Any],
        source_label: str,
        env: Mapping[str, str] | None = None,
    ) -> LeveltextConfig:
        """Build a validated config from a normalized mapping payload."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            raise ValueError(f"{source_label} includes unsupported key(s): {', '.join(unknown)}.")

        values: dict[str, Any] = {}
        data_dir = normalize_optional_string(payload.get("data_dir"))
        if data_dir is not None:
            values["data_dir"] = Path(data_dir)
        for key in ConfigLoader._STRING_KEYS:
            value = normalize_optional_string(payload.get(key))
            if value is not None:
                values[key] = value.upper() if key == "level" else value
        for key in ConfigLoader._POSITIVE_INT_KEYS:
            if payload.get(key) is not None:
                values[key] = ConfigLoader._wrap(source_label, parse_positive_int, payload[key], key)
        for key in ConfigLoader._POSITIVE_FLOAT_KEYS:
            if payload.get(key) is not None:
                values[key] = ConfigLoader._wrap(source_label, parse_positive_float, payload[key], key)
        if payload.get("provider_max_retries") is not None:
            values["provider_max_retries"] = ConfigLoader._non_negative_int(
                payload["provider_max_retries"], "provider_max_retries", source_label
            )
        if payload.get("rate_limit_interval_seconds") is not None:
            values["rate_limit_interval_seconds"] = ConfigLoader._non_negative_float(
                payload["rate_limit_interval_seconds"], "rate_limit_interval_seconds", source_label
            )
        if payload.get("chunk_bands") is not None:
            values["chunk_bands"] = ConfigLoader._chunk_bands(payload["chunk_bands"], source_label)
        if payload.get("min_content_chars") is not None:
            values["min_content_chars"] = ConfigLoader._min_content_chars(
                payload["min_content_chars"], source_label
            )
        if payload.get("domain_overrides") is not None:
            values["domain_overrides"] = ConfigLoader._domain_overrides(
                payload["domain_overrides"], source_label
            )

        env_map: Mapping[str, str] = os.environ if env is None else env
        secret_env = {
            key: value
            for key, value in env_map.items()
            if key in ConfigLoader._SECRET_ENV_KEYS and normalize_optional_string(value) is not None
        }
        config = LeveltextConfig(**values, runtime_sources=RuntimeConfigSources(env=secret_env))
        try:
            config.validate()
        except ValueError as exc:
            raise ValueError(f"{source_label}: {exc}") from exc
        return config

    @staticmethod
    def _wrap(source_label: str, parser: Any, value: object, key: str) -> Any:
        """Run a field parser and prefix failures with the config source label."""

        try:
            return parser(value, key)
        except ValueError as exc:
            raise ValueError(f"{source_label} field {exc}") from exc

    @staticmethod
    def _non_negative_int(value: object, key: str, source_label: str) -> int:
        """Parse an integer that may be zero."""

        if isinstance(value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a non-negative integer.")
        try:
            parsed = int(str(value).strip())
        except ValueError as exc:
            raise ValueError(f"{source_label} field `{key}` must be a non-negative integer.") from exc
        if parsed < 0:
            raise ValueError(f"{source_label} field `{key}` must be a non-negative integer.")
        return parsed

    @staticmethod
    def _non_negative_float(value: object, key: str, source_label: str) -> float:
        """Parse a float that may be zero."""

        if isinstance(value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a non-negative number.")
        try:
            parsed = float(str(value).strip())
        except ValueError as exc:
            raise ValueError(f"{source_label} field `{key}` must be a non-negative number.") from exc
        if parsed < 0.0:
            raise ValueError(f"{source_label} field `{key}` must be a non-negative number.")
        return parsed

    @staticmethod
    def _kind_mapping(raw: object, key: str, source_label: str) -> Mapping[str, Any]:
        """Validate a mapping keyed by supported source kinds."""

        if not isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `{key}` must be a mapping/object.")
        unknown = sorted(set(raw).difference(SOURCE_KINDS))
        if unknown:
            raise ValueError(
                f"{source_label} field `{key}` includes unsupported source kind(s): "
                f"{', '.join(str(item) for item in unknown)}."
            )
        return raw

    @staticmethod
    def _chunk_bands(raw: object, source_label: str) -> dict[str, ChunkBand]:
        """Merge configured chunk bands over the defaults."""

        bands = _default_chunk_bands()
        for kind, band_payload in ConfigLoader._kind_mapping(raw, "chunk_bands", source_label).items():
            if not isinstance(band_payload, Mapping):
                raise ValueError(f"{source_label} field `chunk_bands.{kind}` must be a mapping/object.")
            current = bands[kind]
            bands[kind] = ChunkBand(
                min_words=ConfigLoader._wrap(
                    source_label,
                    parse_positive_int,
                    band_payload.get("min_words", current.min_words),
                    f"chunk_bands.{kind}.min_words",
                ),
                target_words=ConfigLoader._wrap(
                    source_label,
                    parse_positive_int,
                    band_payload.get("target_words", current.target_words),
                    f"chunk_bands.{kind}.target_words",
                ),
                max_words=ConfigLoader._wrap(
                    source_label,
                    parse_positive_int,
                    band_payload.get("max_words", current.max_words),
                    f"chunk_bands.{kind}.max_words",
                ),
            )
        return bands

    @staticmethod
    def _min_content_chars(raw: object, source_label: str) -> dict[str, int]:
        """Merge configured minimum content lengths over the defaults."""

        values = _default_min_content_chars()
        for kind, value in ConfigLoader._kind_mapping(raw, "min_content_chars", source_label).items():
            values[kind] = ConfigLoader._wrap(
                source_label, parse_positive_int, value, f"min_content_chars.{kind}"
            )
        return values

    @staticmethod
    def _domain_overrides(raw: object, source_label: str) -> dict[str, dict[str, bool]]:
        """Validate domain override entries."""

        if not isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `domain_overrides` must be a mapping/object.")
        overrides: dict[str, dict[str, bool]] = {}
        for host, values in raw.items():
            try:
                rule = parse_domain_rule(host, values)
            except ValueError as exc:
                raise ValueError(f"{source_label}: {exc}") from exc
            overrides[rule.host_fragment] = {
                "skip_extraction": rule.skip_extraction,
                "single_chunk": rule.single_chunk,
            }
        return overrides
