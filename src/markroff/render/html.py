"""HTML body renderer built on markdown-it's reference renderer."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from markdown_it.common.utils import escapeHtml
from markdown_it.renderer import RendererHTML
from markdown_it.token import Token
from markdown_it.utils import EnvType, OptionsDict

from ..options import OutputFlag

__all__ = ["HtmlRenderer"]


class HtmlRenderer(RendererHTML):
    """Render markdown-it tokens to an HTML fragment.

    ``flags`` select how raw HTML and soft breaks are emitted.
    """

    __output__ = "html"

    def __init__(self, flags: Iterable[OutputFlag] = ()) -> None:
        super().__init__()
        self.flags = frozenset(flags)
        self.closed = False

    def render(
        self, tokens: Sequence[Token], options: OptionsDict, env: EnvType
    ) -> str:
        if self.closed:
            raise RuntimeError("Renderer used after close().")
        return super().render(tokens, options, env)

    def close(self) -> None:
        self.closed = True

    def html_block(
        self, tokens: Sequence[Token], idx: int, *args: Any
    ) -> str:
        return self._raw_html(tokens[idx].content)

    def html_inline(
        self, tokens: Sequence[Token], idx: int, *args: Any
    ) -> str:
        return self._raw_html(tokens[idx].content)

    def softbreak(
        self,
        tokens: Sequence[Token],
        idx: int,
        options: OptionsDict,
        *args: Any,
    ) -> str:
        if OutputFlag.HARD_WRAP in self.flags:
            return self.hardbreak(tokens, idx, options, *args)
        return super().softbreak(tokens, idx, options, *args)

    def _raw_html(self, content: str) -> str:
        if OutputFlag.SKIP_HTML in self.flags:
            return ""
        if OutputFlag.ESCAPE_HTML in self.flags:
            return escapeHtml(content)
        return content
