"""Application configuration stored as TOML under the user's home directory."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import tomli_w

DEFAULT_MODEL = "gpt-5.4"
DEFAULT_RUNNER = "app-server"

CONFIG_DIR_NAME = ".oh-my-limit"
CONFIG_FILE_NAME = "config.toml"
ENV_FILE_NAME = ".env"

_BOOL = "bool"
_STR = "str"
_OPTIONAL_STR = "optional_str"
_UINT = "uint"
_KIND = "kind"


def _field(default: Any, kind: str) -> Any:
    """Declare a config field with its default and the kind of value it holds."""
    return field(default=default, metadata={_KIND: kind})


def _check(section: str, name: str, value: Any, kind: str) -> Any:
    """Validate one TOML value against the kind its field expects."""
    if kind == _BOOL:
        valid = isinstance(value, bool)
    elif kind in (_STR, _OPTIONAL_STR):
        valid = isinstance(value, str)
    elif kind == _UINT:
        valid = isinstance(value, int) and not isinstance(value, bool) and value >= 0
    else:
        valid = False
    if not valid:
        raise ValueError(f"invalid value for {section}.{name}: {value!r}")
    return value


class _Section:
    """Shared mapping conversion for the config tables."""

    _name = ""

    @classmethod
    def from_dict(cls, data: Any):
        if not isinstance(data, dict):
            raise ValueError(f"section {cls._name} must be a table")
        values = {
            f.name: _check(cls._name, f.name, data[f.name], f.metadata[_KIND])
            for f in fields(cls)  # type: ignore[arg-type]
            if f.name in data
        }
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)  # type: ignore[arg-type]
            if getattr(self, f.name) is not None
        }


@dataclass
class TranslationConfig(_Section):
    """Settings for prompt translation."""

    _name = "translation"

    enabled: bool = _field(True, _BOOL)
    provider: str = _field("noop", _STR)
    model: str | None = _field(None, _OPTIONAL_STR)
    base_url: str | None = _field(None, _OPTIONAL_STR)
    api_key_env: str | None = _field(None, _OPTIONAL_STR)
    input_language: str = _field("ko", _STR)
    output_language: str = _field("ko", _STR)
    fail_closed: bool = _field(True, _BOOL)
    timeout_ms: int = _field(30_000, _UINT)


@dataclass
class PrivacyConfig(_Section):
    """Settings controlling what is stored or sent elsewhere."""

    _name = "privacy"

    save_prompts: bool = _field(False, _BOOL)
    redact_secrets: bool = _field(True, _BOOL)
    remote_translation_allowed: bool = _field(False, _BOOL)


@dataclass
class AppConfig:
    """Top-level configuration."""

    translation: TranslationConfig = field(default_factory=TranslationConfig)
    privacy: PrivacyConfig = field(default_factory=PrivacyConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        config = cls()
        if "translation" in data:
            config.translation = TranslationConfig.from_dict(data["translation"])
        if "privacy" in data:
            config.privacy = PrivacyConfig.from_dict(data["privacy"])
        return config

    def to_dict(self) -> dict[str, Any]:
        return {
            "translation": self.translation.to_dict(),
            "privacy": self.privacy.to_dict(),
        }

    @classmethod
    def load_or_default(cls, path: str | os.PathLike[str]) -> AppConfig:
        """Load the config at ``path``, or return defaults if it does not exist."""
        path = Path(path)
        if not path.exists():
            return cls()
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise OSError(f"failed to read config {path}") from exc
        try:
            return cls.from_dict(tomllib.loads(text))
        except (tomllib.TOMLDecodeError, ValueError) as exc:
            raise ValueError(f"failed to parse config {path}: {exc}") from exc

    def save(self, path: str | os.PathLike[str]) -> None:
        """Write the config to ``path`` as TOML, creating parent directories."""
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OSError(f"failed to create config dir {path.parent}") from exc
        text = tomli_w.dumps(self.to_dict())
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise OSError(f"failed to write config {path}") from exc


def config_dir() -> Path:
    """Directory holding the configuration, under ``$HOME`` or the current directory."""
    home = os.environ.get("HOME")
    base = Path(home) if home is not None else Path(".")
    return base / CONFIG_DIR_NAME


def config_file() -> Path:
    return config_dir() / CONFIG_FILE_NAME


def env_file() -> Path:
    return config_dir() / ENV_FILE_NAME