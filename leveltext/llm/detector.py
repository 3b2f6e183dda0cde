"""Source language detection."""

from __future__ import annotations

import re
from typing import Protocol

from ..models.datatypes import UNKNOWN_LANGUAGE
from .openai_client import OpenAIChatClient, ProviderError
from .prompts import PromptLibrary


_LETTER_RUN_PATTERN = re.compile(r"[^\W\d_]+")


class LanguageDetector(Protocol):
    """Protocol for language detectors."""

    def detect(self, text: str) -> str:
        """Return the English name of the language of `text`."""


class OpenAILanguageDetector:
    """OpenAI-backed detector that never fails the pipeline."""

    def __init__(
        self,
        client: OpenAIChatClient,
        model: str = "gpt-4.1-mini",
        timeout_seconds: float = 30.0,
        prompts: PromptLibrary | None = None,
    ) -> None:
        """Initialize detector settings and client dependencies."""

        self.client = client
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.prompts = prompts if prompts is not None else PromptLibrary()

    def detect(self, text: str) -> str:
        """Detect the language of a text sample, returning `Unknown` on any failure."""

        if not text.strip():
            return UNKNOWN_LANGUAGE
        try:
            answer = self.client.chat_completion_text(
                model=self.model,
                system_prompt=self.prompts.detection_system_prompt(),
                user_prompt=self.prompts.detection_prompt(text),
                temperature=0.0,
                timeout_seconds=self.timeout_seconds,
            )
        except ProviderError:
            return UNKNOWN_LANGUAGE
        return normalize_language_name(answer)


def normalize_language_name(answer: str) -> str:
    """Keep the letter runs of a model language answer and title-case each word."""

    words = _LETTER_RUN_PATTERN.findall(answer)
    if not words:
        return UNKNOWN_LANGUAGE
    return " ".join(word.capitalize() for word in words)
