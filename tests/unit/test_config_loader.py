"""Unit tests for YAML/environment configuration loading and secret precedence."""

from __future__ import annotations

from pathlib import Path

import pytest

from leveltext.config import ConfigLoader, LeveltextConfig, RuntimeConfigSources
from leveltext.models.datatypes import ChunkBand


def test_config_loader_from_yaml_normalizes_values(tmp_path: Path) -> None:
    """YAML loader should parse typed values and merge partial nested sections."""

    config_path = tmp_path / "leveltext.yml"
    config_path.write_text(
        """
data_dir: " jobs-data "
target_language: " French "
level: " b2 "
model_translate: " gpt-translate "
wave_size: "8"
translate_timeout_seconds: 12.5
stale_job_seconds: 120
provider_max_retries: 0
rate_limit_interval_seconds: 0
chunk_bands:
  url:
    target_words: 1200
min_content_chars:
  pdf: 80
domain_overrides:
  medium.com:
    skip_extraction: "yes"
""".strip(),
        encoding="utf-8",
    )

    config = ConfigLoader.from_yaml(config_path, env={})

    assert config.data_dir == Path("jobs-data")
    assert config.target_language == "French"
    assert config.level == "B2"
    assert config.model_translate == "gpt-translate"
    assert config.wave_size == 8
    assert config.translate_timeout_seconds == 12.5
    assert config.stale_job_seconds == 120.0
    assert config.provider_max_retries == 0
    assert config.rate_limit_interval_seconds == 0.0
    assert config.chunk_band("url") == ChunkBand(min_words=250, target_words=1200, max_words=2500)
    assert config.chunk_band("text") == ChunkBand(min_words=50, target_words=250, max_words=500)
    assert config.min_chars("pdf") == 80
    assert config.min_chars("url") == 100
    rule = config.domain_policy().rule_for("https://blog.medium.com/post")
    assert rule.skip_extraction is True
    assert rule.single_chunk is False


def test_config_loader_from_yaml_accepts_empty_file(tmp_path: Path) -> None:
    """An empty YAML file should produce the defaults."""

    config_path = tmp_path / "empty.yml"
    config_path.write_text("", encoding="utf-8")

    config = ConfigLoader.from_yaml(config_path, env={})

    assert config.target_language == "German"
    assert config.wave_size == 15


@pytest.mark.parametrize(
    ("yaml_text", "message"),
    [
        ("- not\n- a mapping\n", "top-level mapping"),
        ("unknown_key: 1\n", "unsupported key"),
        ("wave_size: 0\n", "`wave_size` must be a positive integer"),
        ("level: Z9\n", "Unsupported `level`"),
        ("chunk_bands:\n  url:\n    min_words: 5000\n", "min_words <= target_words"),
        ("chunk_bands:\n  audio: {}\n", "unsupported source kind"),
        ("domain_overrides:\n  example.com:\n    single_chunk: maybe\n", "boolean"),
    ],
)
def test_config_loader_rejects_invalid_yaml(
    tmp_path: Path, yaml_text: str, message: str
) -> None:
    """Invalid payloads should raise `ValueError` naming the source."""

    config_path = tmp_path / "bad.yml"
    config_path.write_text(yaml_text, encoding="utf-8")

    with pytest.raises(ValueError, match=message) as exc_info:
        ConfigLoader.from_yaml(config_path, env={})

    assert "bad.yml" in str(exc_info.value)


def test_config_loader_from_env_reads_prefixed_keys() -> None:
    """Environment loader should read `LEVELTEXT_*` keys and secret env values."""

    config = ConfigLoader.from_env(
        {
            "LEVELTEXT_TARGET_LANGUAGE": "Spanish",
            "LEVELTEXT_LEVEL": "c1",
            "LEVELTEXT_WAVE_SIZE": "4",
            "LEVELTEXT_PROVIDER_MAX_RETRIES": "3",
            "OPENAI_API_KEY": " env-key ",
            "UNRELATED": "ignored",
        }
    )

    assert config.target_language == "Spanish"
    assert config.level == "C1"
    assert config.wave_size == 4
    assert config.provider_max_retries == 3
    assert config.resolved_api_key() == "env-key"


def test_resolved_api_key_precedence_cli_secure_env_config() -> None:
    """API key resolution should follow cli > secure > env > config."""

    config = LeveltextConfig(
        api_key="config-key",
        runtime_sources=RuntimeConfigSources(
            cli={"api_key": "cli-key"},
            secure={"api_key": "secure-key"},
            env={"OPENAI_API_KEY": "env-key"},
        ),
    )
    assert config.resolved_api_key() == "cli-key"

    config.runtime_sources = RuntimeConfigSources(
        cli={"api_key": "  "},
        secure={"api_key": "secure-key"},
        env={"OPENAI_API_KEY": "env-key"},
    )
    assert config.resolved_api_key() == "secure-key"

    config.runtime_sources = RuntimeConfigSources(env={"OPENAI_API_KEY": "env-key"})
    assert config.resolved_api_key() == "env-key"

    config.runtime_sources = RuntimeConfigSources()
    assert config.resolved_api_key() == "config-key"


def test_resolved_render_proxy_key_reads_its_own_env_variable() -> None:
    """The rendering-proxy key should resolve independently from the LLM key."""

    config = LeveltextConfig(
        runtime_sources=RuntimeConfigSources(
            env={"OPENAI_API_KEY": "llm", "LEVELTEXT_RENDER_PROXY_API_KEY": "proxy"}
        )
    )

    assert config.resolved_render_proxy_api_key() == "proxy"
