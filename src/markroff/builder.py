"""Parse Markdown with markdown-it and render it through a content renderer.

The builder also owns the two source-level checks the error catalog
describes: metadata keys with invalid characters, and link syntax split by
whitespace (``[label] (target)``), which CommonMark renders as plain text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence, Union

from markdown_it import MarkdownIt
from markdown_it.token import Token

from .errors import ErrorCode, StructuralViolation
from .options import (
    DEFAULT_MAX_NESTING,
    ConversionOptions,
    Feature,
    MetadataEntry,
    resolve_options,
)
from .render import Renderer

__all__ = [
    "BuildResult",
    "DocumentBuilder",
    "build_markdown_it",
    "split_metadata",
]

_LOGGER = logging.getLogger(__name__)

_SPACED_LINK = re.compile(r"\[[^\[\]\n]+\][ \t]+\(")
_YAML_FENCE = "---"
_YAML_CLOSERS = ("---", "...")


@dataclass(frozen=True)
class BuildResult:
    """Rendered body plus what the builder learned about the source."""

    body: str
    metadata: tuple[MetadataEntry, ...] = ()
    violations: tuple[StructuralViolation, ...] = ()


def build_markdown_it(
    features: Iterable[Feature] = (),
    *,
    max_nesting: int = DEFAULT_MAX_NESTING,
    typesetting: bool = False,
) -> MarkdownIt:
    """Return a CommonMark parser configured for ``features``."""

    enabled = frozenset(features)
    md = MarkdownIt(
        "commonmark",
        options_update={
            "maxNesting": max_nesting,
            # Raw HTML has no meaning in roff output; keep it as text.
            "html": not typesetting,
        },
    )
    if Feature.TABLES in enabled:
        md.enable("table")
    if Feature.STRIKETHROUGH in enabled:
        md.enable("strikethrough")
    if Feature.FENCED not in enabled:
        md.disable("fence")
    if Feature.NO_INDENTED_CODE in enabled:
        md.disable("code")
    return md


class DocumentBuilder:
    """Drive parsing and rendering for one or more documents.

    Use as a context manager so the parser is dropped on every exit path.
    """

    def __init__(
        self,
        renderer: Renderer,
        options: Optional[ConversionOptions] = None,
        features: Optional[Iterable[Feature]] = None,
        max_nesting: Optional[int] = None,
        typesetting: bool = False,
    ) -> None:
        resolved = resolve_options(options)
        self.renderer = renderer
        self.features = frozenset(
            resolved.features if features is None else features
        )
        self.max_nesting = (
            resolved.max_nesting if max_nesting is None else max_nesting
        )
        self.typesetting = typesetting
        self._md: Optional[MarkdownIt] = build_markdown_it(
            self.features,
            max_nesting=self.max_nesting,
            typesetting=typesetting,
        )

    def __enter__(self) -> "DocumentBuilder":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._md is None

    def close(self) -> None:
        self._md = None

    def build_and_render(self, data: Union[bytes, str]) -> BuildResult:
        """Parse ``data`` and return the rendered body with its metadata."""

        if self._md is None:
            raise RuntimeError("DocumentBuilder used after close().")

        text = _decode(data)
        violations: list[StructuralViolation] = []
        metadata: list[MetadataEntry] = []
        line_offset = 0
        if Feature.METADATA in self.features:
            metadata, text, line_offset = split_metadata(text, violations)

        env: dict = {}
        tokens = self._md.parse(text, env)
        violations.extend(_spaced_links(tokens, line_offset))
        body = self.renderer.render(tokens, self._md.options, env)

        _LOGGER.debug(
            "Rendered document",
            extra={
                "metadata_count": len(metadata),
                "violation_count": len(violations),
                "typesetting": self.typesetting,
            },
        )
        return BuildResult(
            body=body,
            metadata=tuple(metadata),
            violations=tuple(violations),
        )


def split_metadata(
    text: str, violations: Optional[list[StructuralViolation]] = None
) -> tuple[list[MetadataEntry], str, int]:
    """Strip a leading metadata block from ``text``.

    Two layouts are recognised: MultiMarkdown ``key: value`` lines ended by a
    blank line, and the same lines fenced by ``---`` (closed by ``---`` or
    ``...``). Indented lines and lines without a colon continue the previous
    value. Returns the entries, the remaining text and the number of source
    lines consumed.
    """

    sink = violations if violations is not None else []
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")

    if lines[0].rstrip() == _YAML_FENCE:
        for end in range(1, len(lines)):
            if lines[end].rstrip() in _YAML_CLOSERS:
                entries = _parse_entries(lines[1:end], 1, sink)
                return entries, "\n".join(lines[end + 1:]), end + 1
        return [], text, 0

    first = lines[0]
    if not first or first[0].isspace() or ":" not in first:
        return [], text, 0

    end = len(lines)
    for index, line in enumerate(lines):
        if not line.strip():
            end = index
            break
    entries = _parse_entries(lines[:end], 0, sink)
    consumed = min(end + 1, len(lines))
    return entries, "\n".join(lines[consumed:]), consumed


def _parse_entries(
    lines: Sequence[str], first_line: int, sink: list[StructuralViolation]
) -> list[MetadataEntry]:
    entries: list[MetadataEntry] = []
    key: Optional[str] = None
    values: list[str] = []

    for offset, line in enumerate(lines):
        if line[:1].isspace() or ":" not in line:
            if key is not None and line.strip():
                values.append(line.strip())
            continue
        if key is not None:
            entries.append(MetadataEntry(key, "\n".join(values)))
        raw_key, _, value = line.partition(":")
        key = _normalize_key(raw_key, first_line + offset + 1, sink)
        values = [value.strip()]

    if key is not None:
        entries.append(MetadataEntry(key, "\n".join(values)))
    return entries


def _normalize_key(
    raw: str, line: int, sink: list[StructuralViolation]
) -> str:
    chars: list[str] = []
    bad = False
    for char in raw:
        if (char.isascii() and char.isalnum()) or char in "-_":
            chars.append(char.lower())
        elif not char.isspace():
            bad = True
    if bad:
        sink.append(StructuralViolation(ErrorCode.METADATA_BAD_CHAR, line))
    return "".join(chars)


def _spaced_links(
    tokens: Sequence[Token], line_offset: int
) -> Iterator[StructuralViolation]:
    for token in tokens:
        if token.type != "inline" or not token.children:
            continue
        first_line = token.map[0] if token.map else None
        for breaks, run in _text_runs(token.children):
            if _SPACED_LINK.search(run) is None:
                continue
            line = None
            if first_line is not None:
                line = first_line + breaks + line_offset + 1
            yield StructuralViolation(ErrorCode.SPACE_BEFORE_LINK, line)


def _text_runs(children: Sequence[Token]) -> Iterator[tuple[int, str]]:
    """Yield (line breaks seen so far, text) for adjacent text tokens."""

    breaks = 0
    run: list[str] = []
    for child in children:
        if child.type == "text":
            run.append(child.content)
            continue
        if run:
            yield breaks, "".join(run)
            run = []
        if child.type in ("softbreak", "hardbreak"):
            breaks += 1
    if run:
        yield breaks, "".join(run)


def _decode(data: Union[bytes, bytearray, str]) -> str:
    if isinstance(data, str):
        # Lone surrogates cannot be encoded; send them through the same
        # replacement as invalid bytes.
        data = data.encode("utf-8", errors="surrogatepass")
    return bytes(data).decode("utf-8", errors="replace")
