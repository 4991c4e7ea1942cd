"""Prompt translation, Codex app-server client and terminal front-end helpers."""

__version__ = "0.1.0"