"""Integration-test fixtures for deterministic provider and credential behavior."""

from __future__ import annotations

import json

import pytest

from leveltext.credentials import CredentialStore
from leveltext.llm.openai_client import OpenAIChatClient


class InMemoryCredentialStore(CredentialStore):
    """Credential store kept in a dictionary for CLI tests."""

    def __init__(self) -> None:
        """Initialize empty storage."""

        self.secrets: dict[str, str] = {}

    def is_available(self) -> bool:
        return True

    def get(self, account: str) -> str | None:
        return self.secrets.get(account)

    def set(self, account: str, secret: str) -> None:
        self.secrets[account] = secret.strip()

    def clear(self, account: str) -> bool:
        return self.secrets.pop(account, None) is not None


@pytest.fixture(autouse=True)
def _mock_openai_llm_calls(monkeypatch: pytest.MonkeyPatch) -> None:
    """Mock LLM calls to avoid network access while keeping prompts realistic."""

    def _mock_chat_completion(self, **kwargs: object) -> str:
        """Answer detection with `English` and translation with a tagged JSON payload."""

        _ = self
        if not kwargs.get("json_response"):
            return "English"
        prompt = str(kwargs["user_prompt"])
        source_text = prompt.split("Text to translate:\n", 1)[1]
        return json.dumps({"translated": f"DE {source_text}", "bridge": source_text})

    monkeypatch.setattr(OpenAIChatClient, "chat_completion_text", _mock_chat_completion)
    monkeypatch.setenv("OPENAI_API_KEY", "integration-test-key")


@pytest.fixture(autouse=True)
def credential_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryCredentialStore:
    """Replace OS keyring access in CLI commands with an in-memory store."""

    store = InMemoryCredentialStore()
    monkeypatch.setattr("leveltext.cli.create_credential_store", lambda: store)
    return store
