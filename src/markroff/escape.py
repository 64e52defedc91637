"""Targeted escaping for metadata strings placed in document prologues.

This is not a general encoder for either format. It guards only what is
unsafe in a title or author line; body content is escaped by the renderers.
"""

from __future__ import annotations

from enum import Enum

from .options import OutputFormat

__all__ = ["EscapeContext", "escape"]


class EscapeContext(Enum):
    """Where the escaped text lands.

    ``BLOCK`` text occupies a roff line of its own; ``INLINE`` text sits inside
    a quoted request argument.
    """

    BLOCK = "block"
    INLINE = "inline"


_HTML_ENTITIES = {"<": "&lt;", ">": "&gt;"}
# Only ASCII whitespace; other Unicode spaces are kept as written.
_WHITESPACE = " \t\n\v\f\r"


def escape(text: str, fmt: OutputFormat, context: EscapeContext) -> str:
    """Return ``text`` made safe for ``fmt`` in ``context``."""

    text = text.lstrip(_WHITESPACE)
    if fmt is OutputFormat.HTML:
        return _escape_html(text)
    if fmt is OutputFormat.ROFF_DOC or fmt is OutputFormat.ROFF_MAN:
        return _escape_roff(text, block=context is EscapeContext.BLOCK)
    raise ValueError(f"Unhandled output format: {fmt!r}")


def _escape_html(text: str) -> str:
    parts: list[str] = []
    for char in text:
        if char in _HTML_ENTITIES:
            parts.append(_HTML_ENTITIES[char])
        elif char in _WHITESPACE:
            parts.append(" ")
        else:
            parts.append(char)
    return "".join(parts)


def _escape_roff(text: str, *, block: bool) -> str:
    parts: list[str] = []
    if block and text.startswith("."):
        # A leading period would start a control line.
        parts.append("\\&")
    for char in text:
        if char == "\\":
            parts.append("\\e")
        elif not block and char == '"':
            parts.append("\\(dq")
        elif char in _WHITESPACE:
            parts.append(" ")
        else:
            parts.append(char)
    if block:
        parts.append("\n")
    return "".join(parts)
