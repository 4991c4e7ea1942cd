"""Translation types, prompts and the pass-through translator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class TranslationError(RuntimeError):
    """Raised when translation or provider selection fails."""


class TranslationDirection(Enum):
    KOREAN_TO_ENGLISH = "ko-en"
    ENGLISH_TO_KOREAN = "en-ko"


class TranslationProviderKind(Enum):
    NOOP = "noop"
    OLLAMA = "ollama"
    LOCAL_OPENAI_COMPATIBLE = "local-openai-compatible"
    OPENAI = "openai"

    @classmethod
    def parse(cls, value: str) -> TranslationProviderKind:
        """Parse a provider name or one of its aliases, ignoring ASCII case."""
        name = "".join(c.lower() if c.isascii() else c for c in value.strip())
        try:
            return _PROVIDER_ALIASES[name]
        except KeyError:
            raise TranslationError(f"unknown translation provider: {name}") from None

    def is_remote(self) -> bool:
        return self is TranslationProviderKind.OPENAI


_PROVIDER_ALIASES = {
    "noop": TranslationProviderKind.NOOP,
    "off": TranslationProviderKind.NOOP,
    "none": TranslationProviderKind.NOOP,
    "ollama": TranslationProviderKind.OLLAMA,
    "local-openai-compatible": TranslationProviderKind.LOCAL_OPENAI_COMPATIBLE,
    "local_openai_compatible": TranslationProviderKind.LOCAL_OPENAI_COMPATIBLE,
    "local": TranslationProviderKind.LOCAL_OPENAI_COMPATIBLE,
    "openai": TranslationProviderKind.OPENAI,
    "remote-openai-compatible": TranslationProviderKind.OPENAI,
    "remote_openai_compatible": TranslationProviderKind.OPENAI,
}


@dataclass(frozen=True)
class TranslatorConfig:
    """Connection settings for a translation provider; ``timeout`` is in seconds."""

    provider: TranslationProviderKind
    model: str | None = None
    base_url: str | None = None
    api_key: str | None = None
    timeout: float = 30.0


@dataclass(frozen=True)
class TranslationRequest:
    direction: TranslationDirection
    text: str


@dataclass(frozen=True)
class TranslationTokenUsage:
    input_tokens: int = 0
    cached_input_tokens: int = 0
    output_tokens: int = 0


@dataclass(frozen=True)
class TranslationResponse:
    text: str
    provider: TranslationProviderKind
    usage: TranslationTokenUsage | None = None


@dataclass(frozen=True)
class ProviderHealth:
    provider: TranslationProviderKind
    message: str


class Translator(ABC):
    """A translation provider."""

    @abstractmethod
    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        """Translate ``request.text`` in the requested direction."""

    @abstractmethod
    async def health_check(self) -> ProviderHealth:
        """Check that the provider can be reached."""


class NoopTranslator(Translator):
    """Returns the input unchanged."""

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        return TranslationResponse(
            text=request.text, provider=TranslationProviderKind.NOOP, usage=None
        )

    async def health_check(self) -> ProviderHealth:
        return ProviderHealth(
            provider=TranslationProviderKind.NOOP, message="translation disabled"
        )


INPUT_TRANSLATION_SYSTEM_PROMPT = (
    "You convert Korean developer instructions into compact English instructions "
    "for a coding agent. Preserve protected placeholders, file paths, code "
    "identifiers, commands, flags, JSON, diffs, logs, and error messages exactly. "
    "Return only the requested structured result."
)

OUTPUT_TRANSLATION_SYSTEM_PROMPT = (
    "You translate a coding agent's final English answer into natural Korean for a "
    "developer. Preserve protected placeholders, file paths, code identifiers, "
    "commands, flags, JSON, diffs, logs, and error messages exactly. Return only "
    "the requested structured result."
)

_TASKS = {
    TranslationDirection.KOREAN_TO_ENGLISH: (
        "Translate the following user instruction into compact English optimized "
        "for an LLM coding agent."
    ),
    TranslationDirection.ENGLISH_TO_KOREAN: (
        "Translate the following coding-agent final answer into Korean."
    ),
}


def system_prompt(direction: TranslationDirection) -> str:
    if direction is TranslationDirection.KOREAN_TO_ENGLISH:
        return INPUT_TRANSLATION_SYSTEM_PROMPT
    return OUTPUT_TRANSLATION_SYSTEM_PROMPT


def user_prompt(direction: TranslationDirection, text: str) -> str:
    return f"{_TASKS[direction]}\n\nInput:\n{text}"


def validate_non_empty_translation(text: str) -> None:
    """Raise if ``text`` is empty or only whitespace."""
    if not text.strip():
        raise TranslationError("translation provider returned empty text")