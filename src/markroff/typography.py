"""Typography post-pass: straight punctuation to typographic glyphs.

The pass runs over already rendered output, so each variant has to step
around markup: HTML tags and verbatim elements, or roff control lines,
escape sequences and no-fill (code) regions.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping

from .options import OutputFormat

__all__ = ["smarten", "smarten_html", "smarten_roff"]

_HTML_GLYPHS = MappingProxyType(
    {
        "---": "&mdash;",
        "--": "&ndash;",
        "...": "&hellip;",
        "(c)": "&copy;",
        "(r)": "&reg;",
        "(tm)": "&trade;",
        "1/2": "&frac12;",
        "1/4": "&frac14;",
        "3/4": "&frac34;",
        "ldquo": "&ldquo;",
        "rdquo": "&rdquo;",
        "lsquo": "&lsquo;",
        "rsquo": "&rsquo;",
    }
)

_ROFF_GLYPHS = MappingProxyType(
    {
        "---": "\\(em",
        "--": "\\(en",
        "...": ".\\|.\\|.",
        "(c)": "\\(co",
        "(r)": "\\(rg",
        "(tm)": "\\(tm",
        "1/2": "\\(12",
        "1/4": "\\(14",
        "3/4": "\\(34",
        "ldquo": "\\(lq",
        "rdquo": "\\(rq",
        "lsquo": "\\(oq",
        "rsquo": "\\(cq",
    }
)

_COMMON = (
    r"---|--|\.\.\.|\((?:c|r|tm)\)"
    r"|(?<![\w/])(?:1/2|1/4|3/4)(?![\w/])"
    r"|[\"']"
)
_HTML_TOKENS = re.compile(r"&quot;|" + _COMMON, re.IGNORECASE)
# Escape sequences come first so their contents are never rewritten.
_ROFF_TOKENS = re.compile(
    r"\\(?:[lLhvwDoZbNX]'[^']*'|[fk*nF](?:\(..|\[[^\]]*\]|.)"
    r"|\(..|\[[^\]]*\]|.)|" + _COMMON,
    re.IGNORECASE,
)

_HTML_SPLIT = re.compile(r"(<[^>]*>)")
_HTML_TAG_NAME = re.compile(r"<(/?)([A-Za-z][A-Za-z0-9]*)")
_HTML_VERBATIM = frozenset({"pre", "code", "kbd", "script", "style"})

_OPENERS = "([{<-\u2013\u2014\"'"
_TRANSPARENT_ESCAPES = ("\\f", "\\k", "\\&", "\\*", "\\n", "\\F")


def smarten(text: str, fmt: OutputFormat) -> str:
    """Dispatch to the post-pass for ``fmt``."""

    if fmt is OutputFormat.HTML:
        return smarten_html(text)
    if fmt is OutputFormat.ROFF_DOC or fmt is OutputFormat.ROFF_MAN:
        return smarten_roff(text)
    raise ValueError(f"Unhandled output format: {fmt!r}")


def smarten_html(text: str) -> str:
    parts = _HTML_SPLIT.split(text)
    verbatim_depth = 0
    previous = ""
    for index, part in enumerate(parts):
        if index % 2:
            verbatim_depth += _verbatim_delta(part)
            continue
        if not part or verbatim_depth > 0:
            continue
        parts[index], previous = _rewrite(
            part, _HTML_TOKENS, _HTML_GLYPHS, previous
        )
    return "".join(parts)


def smarten_roff(text: str) -> str:
    lines = text.split("\n")
    no_fill = False
    for index, line in enumerate(lines):
        if line.startswith((".", "'")):
            request = line[1:].strip().split(" ", 1)[0]
            if request in ("nf", "EX", "TS"):
                no_fill = True
            elif request in ("fi", "EE", "TE"):
                no_fill = False
            continue
        if no_fill or not line:
            continue
        lines[index], _ = _rewrite(line, _ROFF_TOKENS, _ROFF_GLYPHS, "")
    return "\n".join(lines)


def _verbatim_delta(tag: str) -> int:
    match = _HTML_TAG_NAME.match(tag)
    if match is None or tag.endswith("/>"):
        return 0
    if match.group(2).lower() not in _HTML_VERBATIM:
        return 0
    return -1 if match.group(1) else 1


def _rewrite(
    text: str,
    pattern: re.Pattern[str],
    glyphs: Mapping[str, str],
    previous: str,
) -> tuple[str, str]:
    out: list[str] = []
    position = 0
    for match in pattern.finditer(text):
        if match.start() > position:
            out.append(text[position:match.start()])
            previous = text[match.start() - 1]
        token = match.group(0)
        position = match.end()

        if token.startswith("\\"):
            out.append(token)
            if not token.startswith(_TRANSPARENT_ESCAPES):
                previous = token[-1]
            continue

        key = token.lower()
        if key in ('"', "&quot;"):
            key = "ldquo" if _opens(previous) else "rdquo"
            previous = '"'
        elif key == "'":
            key = "lsquo" if _opens(previous) else "rsquo"
            previous = "'"
        else:
            previous = token[-1]
        out.append(glyphs[key])

    if position < len(text):
        out.append(text[position:])
        previous = text[-1]
    return "".join(out), previous


def _opens(previous: str) -> bool:
    return not previous or previous.isspace() or previous in _OPENERS
