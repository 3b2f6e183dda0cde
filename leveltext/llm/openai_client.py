"""OpenAI-compatible HTTP chat client used by detection and translation.

Responsibilities:
- Send chat-completions requests to an OpenAI-compatible REST API.
- Pace requests through a shared rate limiter and retry transient failures.
- Raise actionable provider exceptions that map onto job error codes.
"""

from __future__ import annotations

import json
import re
import socket
import time
from typing import Any

import requests

from ..errors import JobError, OperationTimeoutError, RateLimitError, TranslationError
from .rate_limiter import RateLimiter


_RETRYABLE_FAILURE_KINDS = frozenset({"timeout", "transport", "rate_limited", "server_error"})


class ProviderError(RuntimeError):
    """Raised when a provider request fails or returns malformed output."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "unknown",
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        """Initialize provider error metadata for phase-aware diagnostics."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code
        self.provider_code = provider_code

    @property
    def is_retryable(self) -> bool:
        """Return whether another attempt of the same request may succeed."""

        return self.failure_kind in _RETRYABLE_FAILURE_KINDS

    def as_job_error(self, *, timeout_seconds: float | None = None) -> JobError:
        """Map this provider failure onto the matching job error."""

        if self.failure_kind in {"rate_limited", "insufficient_quota"}:
            return RateLimitError("LLM provider")
        if self.failure_kind == "timeout" and timeout_seconds is not None:
            return OperationTimeoutError("LLM request", timeout_seconds)
        return TranslationError(str(self))


class OpenAIChatClient:
    """Minimal requests-based chat-completions client with bounded retries."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 60.0,
        max_retries: int = 2,
        retry_backoff_base_seconds: float = 0.5,
        retry_backoff_max_seconds: float = 8.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize HTTP settings, retry budget, and request pacing."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(0, max_retries)
        self.retry_backoff_base_seconds = retry_backoff_base_seconds
        self.retry_backoff_max_seconds = retry_backoff_max_seconds
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()

    def chat_completion_text(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.0,
        json_response: bool = False,
        timeout_seconds: float | None = None,
    ) -> str:
        """Return the first assistant text response of a chat-completions request.

        Args:
            model: Chat model identifier.
            system_prompt: System message content.
            user_prompt: User message content.
            temperature: Sampling temperature.
            json_response: Request a JSON object response format.
            timeout_seconds: Per-call timeout overriding the client default.

        Raises:
            ProviderError: When the request fails after the retry budget.
        """

        self._require_api_key()
        payload: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
        }
        if json_response:
            payload["response_format"] = {"type": "json_object"}

        attempt = 0
        while True:
            self.rate_limiter.acquire(f"openai:chat:{model}")
            try:
                raw_payload = self._post_json_bytes(
                    endpoint_path="/chat/completions",
                    payload=payload,
                    timeout_seconds=timeout_seconds or self.timeout_seconds,
                ).decode("utf-8", errors="replace")
                return self._extract_message_text(raw_payload)
            except ProviderError as exc:
                if not exc.is_retryable or attempt >= self.max_retries:
                    raise
                delay = min(
                    self.retry_backoff_base_seconds * (2**attempt),
                    self.retry_backoff_max_seconds,
                )
                attempt += 1
                time.sleep(delay)

    def _require_api_key(self) -> None:
        """Require API key presence before issuing provider requests."""

        if not self.api_key:
            raise ProviderError(
                "Missing LLM API key. Set `OPENAI_API_KEY`, use `--api-key`, or store "
                "one with `leveltext credentials`.",
                failure_kind="invalid_api_key",
            )

    def _post_json_bytes(
        self,
        *,
        endpoint_path: str,
        payload: dict[str, Any],
        timeout_seconds: float,
    ) -> bytes:
        """POST a JSON payload and map failures onto `ProviderError`."""

        endpoint = f"{self.base_url}{endpoint_path}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(
                endpoint,
                headers=headers,
                json=payload,
                timeout=timeout_seconds,
            )
            response.raise_for_status()
            return bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_provider_error(exc) from exc
        except requests.RequestException as exc:
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = "LLM request timed out."
            else:
                detail = f"LLM request transport error: {self._short_message(str(exc))}"
            raise ProviderError(detail, failure_kind=failure_kind) from exc
        except TimeoutError as exc:
            raise ProviderError("LLM request timed out.", failure_kind="timeout") from exc

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        return bytes(response.content or b"").decode("utf-8", errors="replace").strip()

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", text)
        return re.sub(
            r"(?i)bearer\s+[A-Za-z0-9._-]{12,}",
            "Bearer [redacted-token]",
            redacted,
        )

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap provider message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> tuple[str, str | None]:
        """Extract a concise provider message and optional provider error code."""

        if not body:
            return "", None
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(cls._redact_sensitive_tokens(body)), None

        provider_code: str | None = None
        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                code_value = error_payload.get("code")
                if isinstance(code_value, str) and code_value.strip():
                    provider_code = code_value.strip()
                message_value = error_payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()
        if message is None:
            message = body
        return cls._short_message(cls._redact_sensitive_tokens(message)), provider_code

    @staticmethod
    def _classify_http_failure(
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Classify HTTP errors into deterministic diagnostic kinds."""

        message_lower = provider_message.lower()
        normalized_code = provider_code.lower() if provider_code is not None else ""

        if status_code == 401 or "api key" in message_lower:
            return "invalid_api_key"
        if normalized_code == "insufficient_quota" or (
            status_code == 429 and "quota" in message_lower
        ):
            return "insufficient_quota"
        if status_code == 429:
            return "rate_limited"
        if status_code in {408, 504} or "timeout" in message_lower or "timed out" in message_lower:
            return "timeout"
        if status_code >= 500:
            return "server_error"
        return "http_error"

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic diagnostic kinds."""

        if isinstance(reason, TimeoutError | socket.timeout | requests.Timeout):
            return "timeout"
        return "transport"

    @classmethod
    def _http_error_to_provider_error(cls, exc: requests.HTTPError) -> ProviderError:
        """Convert HTTP errors into normalized provider exceptions with metadata."""

        status_code = exc.response.status_code if exc.response is not None else 0
        body = cls._decode_error_body(exc)
        provider_message, provider_code = cls._extract_provider_message(body)
        failure_kind = cls._classify_http_failure(status_code, provider_message, provider_code)

        headline = {
            "invalid_api_key": "LLM authentication failed",
            "insufficient_quota": "LLM quota is insufficient for this request",
            "rate_limited": "LLM provider rate limited the request",
            "timeout": "LLM request timed out",
            "server_error": "LLM provider is unavailable",
        }.get(failure_kind, "LLM request failed")

        if provider_message:
            detail = f"{headline} (HTTP {status_code}): {provider_message}"
        else:
            detail = f"{headline} (HTTP {status_code})."
        return ProviderError(
            detail,
            failure_kind=failure_kind,
            status_code=status_code,
            provider_code=provider_code,
        )

    @staticmethod
    def _extract_message_text(raw_payload: str) -> str:
        """Extract the first assistant message text from a chat-completions payload."""

        try:
            payload = json.loads(raw_payload)
        except json.JSONDecodeError as exc:
            raise ProviderError(
                "LLM provider returned an invalid JSON payload.", failure_kind="malformed"
            ) from exc

        choices = payload.get("choices") if isinstance(payload, dict) else None
        if not isinstance(choices, list) or not choices:
            raise ProviderError(
                "LLM response is missing a non-empty `choices` list.", failure_kind="malformed"
            )
        first_choice = choices[0]
        message = first_choice.get("message") if isinstance(first_choice, dict) else None
        if not isinstance(message, dict):
            raise ProviderError(
                "LLM response is missing `choices[0].message`.", failure_kind="malformed"
            )

        text = OpenAIChatClient._message_content_to_text(message.get("content")).strip()
        if not text:
            raise ProviderError("LLM response message content is empty.", failure_kind="malformed")
        return text

    @staticmethod
    def _message_content_to_text(content: Any) -> str:
        """Convert message content variants into a plain text string."""

        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return "".join(
                item["text"]
                for item in content
                if isinstance(item, dict)
                and item.get("type") == "text"
                and isinstance(item.get("text"), str)
            )
        return ""
