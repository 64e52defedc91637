"""Content renderers, one per output format family."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator, Union

from ..options import OutputFlag, OutputFormat
from .html import HtmlRenderer
from .roff import RoffRenderer

Renderer = Union[HtmlRenderer, RoffRenderer]

__all__ = [
    "HtmlRenderer",
    "Renderer",
    "RoffRenderer",
    "create_renderer",
    "open_renderer",
]


def create_renderer(
    fmt: OutputFormat, flags: Iterable[OutputFlag] = ()
) -> Renderer:
    """Build the renderer for ``fmt``; the caller must ``close()`` it."""

    if fmt is OutputFormat.HTML:
        return HtmlRenderer(flags)
    if fmt is OutputFormat.ROFF_DOC:
        return RoffRenderer(flags, man=False)
    if fmt is OutputFormat.ROFF_MAN:
        return RoffRenderer(flags, man=True)
    raise ValueError(f"Unhandled output format: {fmt!r}")


@contextmanager
def open_renderer(
    fmt: OutputFormat, flags: Iterable[OutputFlag] = ()
) -> Iterator[Renderer]:
    """Yield a renderer for ``fmt`` and release it on exit."""

    renderer = create_renderer(fmt, flags)
    try:
        yield renderer
    finally:
        renderer.close()
