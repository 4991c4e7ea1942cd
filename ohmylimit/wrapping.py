"""Word wrapping of styled lines by terminal display width."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from wcwidth import wcwidth

_URL_PREFIXES = ("http://", "https://", "file://")


@dataclass(frozen=True)
class Span:
    """A run of text with an optional style."""

    content: str
    style: Any = None


@dataclass(frozen=True)
class Line:
    """A sequence of spans shown on one row."""

    spans: tuple[Span, ...] = ()

    @classmethod
    def raw(cls, text: str) -> Line:
        """A line holding ``text`` as a single unstyled span."""
        return cls((Span(text),))

    def text(self) -> str:
        """The line's text without styles."""
        return "".join(span.content for span in self.spans)


def _as_line(value: Line | str) -> Line:
    if isinstance(value, Line):
        return value
    return Line.raw(value) if value else Line()


@dataclass(frozen=True)
class WrapOptions:
    """How a line is wrapped; indents are added on top of ``width``."""

    width: int
    initial_indent: Line = field(default_factory=Line)
    subsequent_indent: Line = field(default_factory=Line)
    break_words: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "initial_indent", _as_line(self.initial_indent))
        object.__setattr__(self, "subsequent_indent", _as_line(self.subsequent_indent))

    def with_initial_indent(self, indent: Line | str) -> WrapOptions:
        return replace(self, initial_indent=_as_line(indent))

    def with_subsequent_indent(self, indent: Line | str) -> WrapOptions:
        return replace(self, subsequent_indent=_as_line(indent))

    def with_break_words(self, break_words: bool) -> WrapOptions:
        return replace(self, break_words=break_words)


def _char_width(character: str) -> int:
    return max(wcwidth(character), 0)


def _display_width(text: str) -> int:
    return sum(_char_width(character) for character in text)


def _find_words(line: str) -> list[tuple[str, str]]:
    """Split a line into (word, trailing spaces) pairs."""
    pieces: list[str] = []
    start = 0
    in_whitespace = False
    for index, character in enumerate(line):
        if in_whitespace and character != " ":
            pieces.append(line[start:index])
            start = index
        in_whitespace = character == " "
    if start < len(line):
        pieces.append(line[start:])

    words = []
    for piece in pieces:
        word = piece.rstrip(" ")
        words.append((word, piece[len(word):]))
    return words


def _split_hyphens(word: str, whitespace: str) -> list[tuple[str, str]]:
    """Split a word after hyphens that sit between alphanumeric characters."""
    points = [
        index + 1
        for index, character in enumerate(word)
        if character == "-"
        and 0 < index < len(word) - 1
        and word[index - 1].isalnum()
        and word[index + 1].isalnum()
    ]
    if not points:
        return [(word, whitespace)]
    bounds = [0, *points, len(word)]
    fragments = [(word[a:b], "") for a, b in zip(bounds, bounds[1:])]
    last_word, _ = fragments[-1]
    fragments[-1] = (last_word, whitespace)
    return fragments


def _break_apart(word: str, whitespace: str, width: int) -> list[tuple[str, str]]:
    """Cut a word into pieces no wider than ``width`` where possible."""
    pieces: list[tuple[str, str]] = []
    start = 0
    current = 0
    for index, character in enumerate(word):
        char_width = _char_width(character)
        if current + char_width > width and index > start:
            pieces.append((word[start:index], ""))
            start = index
            current = 0
        current += char_width
    pieces.append((word[start:], whitespace))
    return pieces


def _wrap_single_line(line: str, width: int, break_words: bool) -> list[str]:
    fragments: list[tuple[str, str]] = []
    for word, whitespace in _find_words(line):
        parts = _split_hyphens(word, whitespace) if break_words else [(word, whitespace)]
        for part, trailing in parts:
            if break_words and _display_width(part) > width:
                fragments.extend(_break_apart(part, trailing, width))
            else:
                fragments.append((part, trailing))

    groups: list[list[tuple[str, str]]] = []
    current: list[tuple[str, str]] = []
    used = 0
    for fragment in fragments:
        word, whitespace = fragment
        word_width = _display_width(word)
        if current and used + word_width > width:
            groups.append(current)
            current = []
            used = 0
        current.append(fragment)
        used += word_width + len(whitespace)
    groups.append(current)

    lines = []
    for group in groups:
        if not group:
            lines.append("")
            continue
        head = "".join(word + whitespace for word, whitespace in group[:-1])
        lines.append(head + group[-1][0])
    return lines


def _wrap_text(text: str, width: int, break_words: bool) -> list[str]:
    wrapped: list[str] = []
    for line in text.split("\n"):
        wrapped.extend(_wrap_single_line(line.removesuffix("\r"), width, break_words))
    return wrapped


def _line_with_indent(indent: Line, text: str) -> Line:
    return Line((*indent.spans, Span(text)))


def word_wrap_line(line: Line, options: WrapOptions | int) -> list[Line]:
    """Wrap ``line`` first-fit at ``options.width`` and add the indents."""
    if isinstance(options, int):
        options = WrapOptions(options)
    wrapped = _wrap_text(line.text(), options.width, options.break_words)
    if not wrapped:
        return [_line_with_indent(options.initial_indent, "")]
    return [
        _line_with_indent(
            options.initial_indent if index == 0 else options.subsequent_indent, text
        )
        for index, text in enumerate(wrapped)
    ]


def is_url_like_token(token: str) -> bool:
    """Whether ``token`` looks like a URL or a long path."""
    return token.startswith(_URL_PREFIXES) or (
        "." in token and "/" in token and _display_width(token) > 12
    )


def _line_contains_url_like(line: Line) -> bool:
    return any(
        is_url_like_token(token) for span in line.spans for token in span.content.split()
    )


def adaptive_wrap_line(line: Line, options: WrapOptions | int) -> list[Line]:
    """Wrap ``line``, never breaking words when it holds something URL-like."""
    if isinstance(options, int):
        options = WrapOptions(options)
    if _line_contains_url_like(line):
        options = options.with_break_words(False)
    return word_wrap_line(line, options)


def adaptive_wrap_lines(lines: Iterable[Line], options: WrapOptions | int) -> list[Line]:
    """Wrap several lines; every line after the first uses the subsequent indent."""
    if isinstance(options, int):
        options = WrapOptions(options)
    out: list[Line] = []
    for index, line in enumerate(lines):
        line_options = (
            options if index == 0 else options.with_initial_indent(options.subsequent_indent)
        )
        out.extend(adaptive_wrap_line(line, line_options))
    return out


def usable_content_width(total_width: int, reserved_cols: int) -> int | None:
    """Columns left after reserving some, or ``None`` if none are left."""
    remaining = total_width - reserved_cols
    return remaining if remaining > 0 else None