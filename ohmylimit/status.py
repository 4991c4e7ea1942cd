"""Text shown in the dashboard and footer: limits, models and token counts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from ohmylimit.config import TranslationConfig


class Color(StrEnum):
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    DARK_GRAY = "dark_gray"


@dataclass(frozen=True)
class TokenUsage:
    """Token counts for one request."""

    input: int = 0
    cached: int = 0
    output: int = 0


def format_token_count(value: int) -> str:
    """Format a count with commas between groups of three digits."""
    return f"{value:,}"


def limit_color(percent: int) -> Color:
    """Colour for a limit that is ``percent`` used."""
    if 90 <= percent <= 100:
        return Color.RED
    if 70 <= percent <= 89:
        return Color.YELLOW
    return Color.GREEN


def model_summary(model: str | None, reasoning_effort: str | None) -> str:
    if model is not None and reasoning_effort is not None:
        return f"{model} {reasoning_effort}"
    if model is not None:
        return model
    if reasoning_effort is not None:
        return f"model pending {reasoning_effort}"
    return "model pending"


def translator_source_label(translation: TranslationConfig) -> str:
    """Where translation runs and with which model."""
    if not translation.enabled:
        return "translator off"
    provider = translation.provider
    if provider == "openai":
        location = "remote"
    elif provider in ("ollama", "local-openai-compatible"):
        location = "local"
    else:
        location = provider
    model = translation.model if translation.model is not None else "default"
    return f"translator {location}-{model}"


def codex_source_label(model: str | None, reasoning_effort: str | None) -> str:
    return f"codex {model_summary(model, reasoning_effort)}"


def _clamped(percent: int | None) -> int | None:
    return None if percent is None else min(percent, 100)


def limit_gauge_title(title: str, percent: int | None) -> str:
    """Gauge title showing the remaining share, or ``pending`` if unknown."""
    used = _clamped(percent)
    if used is None:
        return f"{title} pending"
    return f"{title} {100 - used}%"


def limit_fill_width(width: int, percent: int | None) -> int:
    """Number of cells to fill for the remaining share of a limit."""
    used = _clamped(percent)
    remaining = 0 if used is None else 100 - used
    return width * remaining // 100


def _usage_total(usage: TokenUsage | None) -> str:
    if usage is None:
        return "0"
    return format_token_count(usage.input + usage.output)


def footer_status_line(
    model: str | None,
    reasoning_effort: str | None,
    translation: TranslationConfig,
    translator_usage: TokenUsage | None,
    codex_usage: TokenUsage | None,
) -> str:
    """The footer line summarising models and token use."""
    codex = codex_source_label(model, reasoning_effort)
    translator = translator_source_label(translation)
    return (
        f"{codex} | {translator} | tx {_usage_total(translator_usage)}"
        f" | codex {_usage_total(codex_usage)}"
    )