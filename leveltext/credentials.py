"""Secure credential storage helpers for the Leveltext CLI.

Responsibilities:
- Persist provider API keys in an OS-backed secure credential store.
- Provide deterministic read/write/delete operations per credential account.
- Avoid logging or exposing secret values in diagnostics.

Key types:
- `CredentialStore`: interface for credential persistence.
- `KeyringCredentialStore`: keyring-backed secure credential storage.
"""

from __future__ import annotations

from dataclasses import dataclass

import keyring
from keyring.backends.fail import Keyring as FailKeyring
from keyring.errors import PasswordDeleteError

from .parsing import normalize_optional_string


SERVICE_NAME = "leveltext"
API_KEY_ACCOUNT = "openai_api_key"
RENDER_PROXY_KEY_ACCOUNT = "render_proxy_api_key"
CREDENTIAL_ACCOUNTS = {
    "api_key": API_KEY_ACCOUNT,
    "render_proxy_api_key": RENDER_PROXY_KEY_ACCOUNT,
}


class CredentialStore:
    """Interface for secure credential operations."""

    def is_available(self) -> bool:
        """Return whether secure credential operations are available."""

        raise NotImplementedError

    def get(self, account: str) -> str | None:
        """Load a stored secret, when available."""

        raise NotImplementedError

    def set(self, account: str, secret: str) -> None:
        """Persist a secret."""

        raise NotImplementedError

    def clear(self, account: str) -> bool:
        """Delete a stored secret and return whether one existed."""

        raise NotImplementedError


@dataclass(slots=True)
class KeyringCredentialStore(CredentialStore):
    """Secure credential store backed by the `keyring` package."""

    service_name: str = SERVICE_NAME

    def is_available(self) -> bool:
        """Return `False` when keyring resolved to its no-op failure backend."""

        return not isinstance(keyring.get_keyring(), FailKeyring)

    def get(self, account: str) -> str | None:
        """Get a normalized secret, returning `None` when missing or unavailable."""

        if not self.is_available():
            return None
        return normalize_optional_string(keyring.get_password(self.service_name, account))

    def set(self, account: str, secret: str) -> None:
        """Persist a normalized secret or raise when storage is unavailable."""

        if not self.is_available():
            raise RuntimeError(
                "Secure credential storage is unavailable: no keyring backend is configured."
            )
        normalized = normalize_optional_string(secret)
        if normalized is None:
            raise ValueError("Credential value must be a non-empty string.")
        keyring.set_password(self.service_name, account, normalized)

    def clear(self, account: str) -> bool:
        """Remove a stored secret and report whether one was present."""

        if self.get(account) is None:
            return False
        try:
            keyring.delete_password(self.service_name, account)
        except PasswordDeleteError:
            return False
        return True


def load_secure_sources(store: CredentialStore) -> dict[str, str]:
    """Return stored secrets keyed by config field name."""

    values: dict[str, str] = {}
    for field_name, account in CREDENTIAL_ACCOUNTS.items():
        secret = store.get(account)
        if secret is not None:
            values[field_name] = secret
    return values


def create_credential_store() -> CredentialStore:
    """Create the default secure credential store implementation."""

    return KeyringCredentialStore()
