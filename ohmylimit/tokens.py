"""Rough token counting."""


def count_whitespace_tokens(text: str) -> int:
    """Count the whitespace-separated words in ``text``."""
    return len(text.split())