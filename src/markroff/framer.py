"""Standalone document framing: prologues and epilogues per output format."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from jinja2 import Environment, Template

from . import dates
from .escape import EscapeContext, escape
from .options import (
    ConversionOptions,
    MetadataEntry,
    OutputFormat,
    resolve_options,
)

__all__ = [
    "DEFAULT_TITLE",
    "FrameFields",
    "resolve_frame",
    "standalone_open",
    "standalone_close",
    "wrap_standalone",
]

DEFAULT_TITLE = "Untitled article"

_HTML_OPEN = """\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width,initial-scale=1">
<title>{{ title }}</title>
</head>
<body>
"""

# Escaped roff title/author values already end with a newline.
_MS_OPEN = """\
.DA {{ date }}
.TL
{{ title }}{% if author is not none %}.AU
{{ author }}{% endif %}"""

_MAN_OPEN = """\
.TH "{{ title }}" 7 {{ date }}
"""

_HTML_CLOSE = "</body>\n</html>\n"

_ENV = Environment(autoescape=False, keep_trailing_newline=True)
_TEMPLATES: dict[OutputFormat, Template] = {
    OutputFormat.HTML: _ENV.from_string(_HTML_OPEN),
    OutputFormat.ROFF_DOC: _ENV.from_string(_MS_OPEN),
    OutputFormat.ROFF_MAN: _ENV.from_string(_MAN_OPEN),
}


@dataclass(frozen=True)
class FrameFields:
    """Metadata values resolved for a document prologue."""

    title: str
    author: Optional[str]
    date: str


def resolve_frame(
    metadata: Sequence[MetadataEntry] = (),
    *,
    today: Callable[[], datetime] | None = None,
    logger: Optional[logging.Logger] = None,
) -> FrameFields:
    """Pick title, author and date from ``metadata``.

    Entries are scanned once in order and each recognised key overwrites the
    previous value, so the last occurrence wins. ``date`` and ``rcsdate``
    share one slot: whichever comes later decides, and a malformed later
    value clears an earlier good one.
    """

    title: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None

    for entry in metadata:
        if entry.key == "title":
            title = entry.value
        elif entry.key == "author":
            author = entry.value
        elif entry.key == "rcsdate":
            date = dates.normalize_rcs_date(entry.value, logger=logger)
        elif entry.key == "date":
            date = dates.normalize_iso_date(entry.value, logger=logger)

    if date is None:
        date = dates.today(today)
    if title is None:
        title = DEFAULT_TITLE
    return FrameFields(title=title, author=author, date=date)


def standalone_open(
    options: Optional[ConversionOptions],
    metadata: Sequence[MetadataEntry] = (),
    *,
    today: Callable[[], datetime] | None = None,
    logger: Optional[logging.Logger] = None,
) -> bytes:
    """Return the document prologue for the configured output format."""

    fmt = resolve_options(options).format
    fields = resolve_frame(metadata, today=today, logger=logger)

    if fmt is OutputFormat.HTML:
        context = {
            "title": escape(fields.title, fmt, EscapeContext.INLINE),
        }
    elif fmt is OutputFormat.ROFF_DOC:
        context = {
            "date": fields.date,
            "title": escape(fields.title, fmt, EscapeContext.BLOCK),
            "author": (
                None
                if fields.author is None
                else escape(fields.author, fmt, EscapeContext.BLOCK)
            ),
        }
    elif fmt is OutputFormat.ROFF_MAN:
        context = {
            "date": fields.date,
            "title": escape(fields.title, fmt, EscapeContext.INLINE),
        }
    else:
        raise ValueError(f"Unhandled output format: {fmt!r}")

    return _TEMPLATES[fmt].render(**context).encode("utf-8")


def standalone_close(options: Optional[ConversionOptions]) -> bytes:
    """Return the document epilogue; roff formats need none."""

    fmt = resolve_options(options).format
    if fmt is OutputFormat.HTML:
        return _HTML_CLOSE.encode("utf-8")
    if fmt.is_roff:
        return b""
    raise ValueError(f"Unhandled output format: {fmt!r}")


def wrap_standalone(
    body: bytes,
    metadata: Sequence[MetadataEntry],
    options: Optional[ConversionOptions],
    *,
    today: Callable[[], datetime] | None = None,
    logger: Optional[logging.Logger] = None,
) -> bytes:
    """Surround a rendered ``body`` with its prologue and epilogue."""

    return b"".join(
        (
            standalone_open(options, metadata, today=today, logger=logger),
            body,
            standalone_close(options),
        )
    )
