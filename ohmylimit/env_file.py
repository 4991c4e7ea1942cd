"""Reading and writing simple KEY=VALUE env files."""

from __future__ import annotations

import os
import string
from pathlib import Path

_BARE_CHARS = frozenset(string.ascii_letters + string.digits + "_-.")


def load_env_file(path: str | os.PathLike[str]) -> dict[str, str]:
    """Load the env file at ``path``; a missing file yields an empty mapping."""
    path = Path(path)
    if not path.exists():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise OSError(f"failed to read env file {path}") from exc
    return parse_env_file(text)


def save_env_value(path: str | os.PathLike[str], key: str, value: str) -> None:
    """Set ``key`` to ``value`` in the env file, rewriting it sorted by key."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OSError(f"failed to create env dir {path.parent}") from exc

    values = load_env_file(path)
    values[key] = value
    text = "\n".join(
        f"{name}={quote_env_value(entry)}" for name, entry in sorted(values.items())
    )
    try:
        path.write_text(f"{text}\n", encoding="utf-8")
    except OSError as exc:
        raise OSError(f"failed to write env file {path}") from exc


def parse_env_file(text: str) -> dict[str, str]:
    """Parse env file text; later duplicates override earlier ones."""
    return dict(
        entry for entry in map(_parse_env_line, text.split("\n")) if entry is not None
    )


def _parse_env_line(line: str) -> tuple[str, str] | None:
    line = line.strip()
    if not line or line.startswith("#"):
        return None
    key, sep, value = line.partition("=")
    if not sep:
        return None
    key = key.strip()
    if not key:
        return None
    return key, _unquote_env_value(value.strip())


def _unquote_env_value(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def quote_env_value(value: str) -> str:
    """Quote ``value`` unless it consists only of ASCII letters, digits, ``_-.``."""
    if all(character in _BARE_CHARS for character in value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'