"""Render markdown-it token streams as roff using the ms or man macros."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence

from markdown_it.token import Token

from ..options import OutputFlag

__all__ = ["RoffRenderer"]

_ALIGNMENTS = {"left": "l", "center": "c", "right": "r"}


@dataclass
class _ListState:
    ordered: bool
    counter: int = 1


@dataclass
class _TableState:
    rows: list[list[str]] = field(default_factory=list)
    alignments: list[str] = field(default_factory=list)
    header_rows: int = 0
    row: Optional[list[str]] = None
    in_header: bool = False


class RoffRenderer:
    """Render tokens to an ms (``man=False``) or man (``man=True``) body.

    A renderer keeps per-document state while rendering and resets it after
    every call, so one instance can serve several documents until
    :meth:`close` is called.
    """

    __output__ = "roff"

    def __init__(
        self, flags: Iterable[OutputFlag] = (), man: bool = False
    ) -> None:
        self.flags = frozenset(flags)
        self.man = man
        self.closed = False
        self._rules: dict[str, Callable[[Sequence[Token], int], None]] = {
            "paragraph_open": self._paragraph_open,
            "paragraph_close": self._end_line,
            "heading_open": self._heading_open,
            "heading_close": self._heading_close,
            "inline": self._inline,
            "blockquote_open": self._blockquote_open,
            "blockquote_close": self._blockquote_close,
            "bullet_list_open": self._list_open,
            "ordered_list_open": self._list_open,
            "bullet_list_close": self._list_close,
            "ordered_list_close": self._list_close,
            "list_item_open": self._list_item_open,
            "list_item_close": self._list_item_close,
            "code_block": self._code,
            "fence": self._code,
            "hr": self._hr,
            "table_open": self._table_open,
            "table_close": self._table_close,
            "thead_open": self._thead_open,
            "thead_close": self._thead_close,
            "tr_open": self._tr_open,
            "tr_close": self._tr_close,
            "th_open": self._cell_open,
            "td_open": self._cell_open,
        }
        self._reset()

    @property
    def paragraph_macro(self) -> str:
        return ".PP" if self.man else ".LP"

    def render(
        self, tokens: Sequence[Token], options: Any, env: Any
    ) -> str:
        if self.closed:
            raise RuntimeError("Renderer used after close().")
        try:
            for idx, token in enumerate(tokens):
                rule = self._rules.get(token.type)
                if rule is not None:
                    rule(tokens, idx)
            self._end_line(tokens, len(tokens))
            return "".join(self._out)
        finally:
            self._reset()

    def close(self) -> None:
        self._reset()
        self.closed = True

    def _reset(self) -> None:
        self._out: list[str] = []
        self._fonts: list[str] = ["R"]
        self._lists: list[_ListState] = []
        self._item_fresh = False
        self._table: Optional[_TableState] = None

    # -- output helpers -------------------------------------------------

    def _end_line(self, tokens: Sequence[Token], idx: int) -> None:
        if self._out and not self._out[-1].endswith("\n"):
            self._out.append("\n")

    def _macro(self, line: str) -> None:
        self._end_line((), 0)
        self._out.append(line + "\n")

    def _begin_block(self) -> None:
        """Open a paragraph-level block, honouring list item context."""

        if self._item_fresh:
            # The item's .IP line already started the paragraph.
            self._item_fresh = False
        elif self._lists:
            self._macro(".IP")
        else:
            self._macro(self.paragraph_macro)

    # -- block rules ----------------------------------------------------

    def _paragraph_open(self, tokens: Sequence[Token], idx: int) -> None:
        if self._table is None:
            self._begin_block()

    def _heading_open(self, tokens: Sequence[Token], idx: int) -> None:
        self._item_fresh = False
        level = int(tokens[idx].tag[1:])
        if not self.man:
            self._macro(".SH" if level == 1 else f".SH {level}")
        elif level == 1:
            self._macro(".SH")
        elif level == 2:
            self._macro(".SS")
        else:
            self._macro(self.paragraph_macro)
            self._out.append(self._push_font("B"))

    def _heading_close(self, tokens: Sequence[Token], idx: int) -> None:
        level = int(tokens[idx].tag[1:])
        if self.man and level > 2:
            self._out.append(self._pop_font())
        self._end_line(tokens, idx)

    def _blockquote_open(self, tokens: Sequence[Token], idx: int) -> None:
        self._item_fresh = False
        self._macro(".RS" if self.man else ".QS")

    def _blockquote_close(self, tokens: Sequence[Token], idx: int) -> None:
        self._macro(".RE" if self.man else ".QE")

    def _list_open(self, tokens: Sequence[Token], idx: int) -> None:
        token = tokens[idx]
        if self._lists:
            self._item_fresh = False
            self._macro(".RS")
        start = token.attrGet("start")
        self._lists.append(
            _ListState(
                ordered=token.type == "ordered_list_open",
                counter=int(start) if start is not None else 1,
            )
        )

    def _list_close(self, tokens: Sequence[Token], idx: int) -> None:
        self._lists.pop()
        if self._lists:
            self._macro(".RE")

    def _list_item_open(self, tokens: Sequence[Token], idx: int) -> None:
        state = self._lists[-1]
        if state.ordered:
            number = tokens[idx].info or str(state.counter)
            self._macro(f".IP {number}. 4")
            state.counter = int(number) + 1 if number.isdigit() else state.counter + 1
        else:
            self._macro(".IP \\(bu 2")
        self._item_fresh = True

    def _list_item_close(self, tokens: Sequence[Token], idx: int) -> None:
        self._item_fresh = False

    def _code(self, tokens: Sequence[Token], idx: int) -> None:
        self._begin_block()
        self._macro(".nf")
        self._macro(".ft CR")
        content = tokens[idx].content
        if content.endswith("\n"):
            content = content[:-1]
        for line in content.split("\n"):
            self._out.append(_guard_line(_escape_text(line)) + "\n")
        self._macro(".ft")
        self._macro(".fi")

    def _hr(self, tokens: Sequence[Token], idx: int) -> None:
        self._begin_block()
        self._out.append("\\l'\\n(.lu'\n")

    # -- tables (tbl preprocessor) --------------------------------------

    def _table_open(self, tokens: Sequence[Token], idx: int) -> None:
        self._begin_block()
        self._table = _TableState()

    def _thead_open(self, tokens: Sequence[Token], idx: int) -> None:
        if self._table is not None:
            self._table.in_header = True

    def _thead_close(self, tokens: Sequence[Token], idx: int) -> None:
        if self._table is not None:
            self._table.in_header = False

    def _tr_open(self, tokens: Sequence[Token], idx: int) -> None:
        if self._table is not None:
            self._table.row = []

    def _tr_close(self, tokens: Sequence[Token], idx: int) -> None:
        table = self._table
        if table is None or table.row is None:
            return
        table.rows.append(table.row)
        if table.in_header:
            table.header_rows += 1
        table.row = None

    def _cell_open(self, tokens: Sequence[Token], idx: int) -> None:
        table = self._table
        if table is None or table.row is None:
            return
        column = len(table.row)
        if column >= len(table.alignments):
            table.alignments.append(_alignment(tokens[idx]))
        table.row.append("")

    def _table_close(self, tokens: Sequence[Token], idx: int) -> None:
        table = self._table
        self._table = None
        if table is None or not table.rows:
            return
        width = max(len(row) for row in table.rows)
        alignments = table.alignments + ["l"] * (width - len(table.alignments))
        self._macro(".TS")
        self._out.append("tab(|);\n")
        if table.header_rows:
            self._out.append(" ".join(f"{a}b" for a in alignments) + "\n")
        self._out.append(" ".join(alignments) + ".\n")
        for number, row in enumerate(table.rows):
            cells = row + [""] * (width - len(row))
            self._out.append(_guard_line("|".join(cells)) + "\n")
            if number + 1 == table.header_rows:
                self._out.append("_\n")
        self._macro(".TE")

    # -- inline content -------------------------------------------------

    def _inline(self, tokens: Sequence[Token], idx: int) -> None:
        children = tokens[idx].children or []
        table = self._table
        if table is not None and table.row:
            table.row[-1] += self._render_inline(children, in_cell=True)
            return
        self._out.append(self._render_inline(children))

    def _render_inline(
        self, children: Sequence[Token], *, in_cell: bool = False
    ) -> str:
        parts: list[str] = []
        links: list[tuple[int, str]] = []
        hard_wrap = OutputFlag.HARD_WRAP in self.flags
        for child in children:
            kind = child.type
            if kind == "text":
                _append_literal(
                    parts, _escape_text(child.content, in_cell=in_cell)
                )
            elif kind == "softbreak":
                parts.append("\n.br\n" if hard_wrap and not in_cell else "\n")
            elif kind == "hardbreak":
                parts.append(" " if in_cell else "\n.br\n")
            elif kind == "em_open":
                parts.append(self._push_font("I"))
            elif kind == "strong_open":
                parts.append(self._push_font("B"))
            elif kind in ("em_close", "strong_close"):
                parts.append(self._pop_font())
            elif kind == "code_inline":
                parts.append(self._push_font("CR"))
                parts.append(_escape_text(child.content, in_cell=in_cell))
                parts.append(self._pop_font())
            elif kind == "link_open":
                links.append((len(parts), str(child.attrGet("href") or "")))
            elif kind == "link_close" and links:
                start, href = links.pop()
                label = "".join(parts[start:])
                if href and href not in (label, f"mailto:{label}"):
                    parts.append(f" <{_escape_text(href, in_cell=in_cell)}>")
            elif kind == "image":
                _append_literal(
                    parts, _escape_text(child.content, in_cell=in_cell)
                )
        return "".join(parts)

    def _push_font(self, kind: str) -> str:
        current = self._fonts[-1]
        if kind == "I" and current in ("B", "BI"):
            kind = "BI"
        elif kind == "B" and current in ("I", "BI"):
            kind = "BI"
        self._fonts.append(kind)
        return _font_escape(kind)

    def _pop_font(self) -> str:
        if len(self._fonts) > 1:
            self._fonts.pop()
        return _font_escape(self._fonts[-1])


def _font_escape(font: str) -> str:
    if len(font) == 1:
        return f"\\f{font}"
    return f"\\f({font}"


def _escape_text(text: str, *, in_cell: bool = False) -> str:
    text = text.replace("\\", "\\e")
    if in_cell:
        text = text.replace("|", "\\(ba")
    return text


def _append_literal(parts: list[str], text: str) -> None:
    """Append source text, guarding it when it begins an output line."""

    if not parts or parts[-1].endswith("\n"):
        text = _guard_line(text)
    parts.append(text)


def _guard_line(text: str) -> str:
    # Lines starting with a period or apostrophe are control lines.
    if text.startswith((".", "'")):
        return "\\&" + text
    return text


def _alignment(token: Token) -> str:
    style = str(token.attrGet("style") or "")
    _, _, value = style.partition("text-align:")
    return _ALIGNMENTS.get(value.strip(), "l")
