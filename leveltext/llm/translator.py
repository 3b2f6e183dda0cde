"""Leveled chunk translation.

Responsibilities:
- Define a protocol for chunk translation implementations.
- Provide an OpenAI-backed translator that returns normalized chunk records.
- Degrade malformed model output to a passthrough instead of failing the job.
"""

from __future__ import annotations

import json
import re
from typing import Protocol

from ..models.datatypes import TranslatedChunk
from .openai_client import OpenAIChatClient, ProviderError
from .prompts import PromptLibrary


_CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class ChunkTranslator(Protocol):
    """Protocol for chunk translators."""

    def translate(self, text: str, *, target_language: str, level: str) -> TranslatedChunk:
        """Translate one chunk into the target language at the given level."""


class OpenAIChunkTranslator:
    """OpenAI-backed translator for leveled chunk translation."""

    def __init__(
        self,
        client: OpenAIChatClient,
        model: str = "gpt-4.1-mini",
        timeout_seconds: float = 60.0,
        prompts: PromptLibrary | None = None,
    ) -> None:
        """Initialize translator settings and client dependencies."""

        self.client = client
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.prompts = prompts if prompts is not None else PromptLibrary()

    def translate(self, text: str, *, target_language: str, level: str) -> TranslatedChunk:
        """Translate one chunk.

        Returns a passthrough record when the model answers with malformed or empty
        content. Transport and HTTP failures propagate as `ProviderError`.
        """

        try:
            response_text = self.client.chat_completion_text(
                model=self.model,
                system_prompt=self.prompts.translation_system_prompt(),
                user_prompt=self.prompts.translate_prompt(
                    source_text=text,
                    target_language=target_language,
                    level=level,
                ),
                temperature=0.0,
                json_response=True,
                timeout_seconds=self.timeout_seconds,
            )
        except ProviderError as exc:
            if exc.failure_kind == "malformed":
                return TranslatedChunk.passthrough(text)
            raise
        return parse_translation_response(text, response_text)


def parse_translation_response(original: str, response_text: str) -> TranslatedChunk:
    """Normalize a `{translated, bridge}` JSON answer into a chunk record."""

    cleaned = _CODE_FENCE_PATTERN.sub("", response_text.strip())
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError:
        return TranslatedChunk.passthrough(original)
    if not isinstance(payload, dict):
        return TranslatedChunk.passthrough(original)

    translated = payload.get("translated")
    if not isinstance(translated, str) or not translated.strip():
        return TranslatedChunk.passthrough(original)
    bridge = payload.get("bridge")
    if not isinstance(bridge, str) or not bridge.strip():
        bridge = None
    return TranslatedChunk(original=original, translated=translated.strip(), bridge=bridge)
