"""Conversion pipeline: Markdown in, rendered bytes plus metadata out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Callable, Optional, TextIO, Union

from .builder import DocumentBuilder
from .errors import IoReadError, StructuralViolation
from .framer import wrap_standalone
from .options import (
    ConversionOptions,
    MetadataEntry,
    OutputFlag,
    OutputFormat,
    resolve_options,
)
from .render import open_renderer
from .typography import smarten

__all__ = [
    "ConversionResult",
    "convert",
    "convert_stream",
    "convert_file",
    "convert_standalone",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionResult:
    """Output of a conversion; owned by the caller."""

    output: bytes
    metadata: tuple[MetadataEntry, ...] = ()
    violations: tuple[StructuralViolation, ...] = ()


def convert(
    data: Union[bytes, str],
    options: Optional[ConversionOptions] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> ConversionResult:
    """Render ``data`` in the format selected by ``options``.

    Undecodable bytes are replaced rather than rejected, so any input
    produces output. Structural violations are logged and returned on the
    result; they never stop the conversion.
    """

    log = logger or _LOGGER
    opts = resolve_options(options)

    with open_renderer(opts.format, opts.output_flags) as renderer:
        with DocumentBuilder(
            renderer,
            opts,
            features=opts.features,
            max_nesting=opts.max_nesting,
            typesetting=opts.format is not OutputFormat.HTML,
        ) as builder:
            built = builder.build_and_render(data)

    body = built.body
    if OutputFlag.TYPOGRAPHY in opts.output_flags:
        body = smarten(body, opts.format)

    for violation in built.violations:
        log.warning(
            "Structural violation in source document",
            extra={
                "code": violation.code.value,
                "line": violation.line,
                "description": violation.description,
            },
        )

    log.debug(
        "Converted document",
        extra={
            "format": opts.format.value,
            "input_size": len(data),
            "output_size": len(body),
            "metadata_keys": [entry.key for entry in built.metadata],
        },
    )

    return ConversionResult(
        output=body.encode("utf-8"),
        metadata=built.metadata,
        violations=built.violations,
    )


def convert_stream(
    stream: Union[BinaryIO, TextIO],
    options: Optional[ConversionOptions] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> ConversionResult:
    """Read ``stream`` to the end and convert its contents."""

    try:
        data = stream.read()
    except OSError as exc:
        raise IoReadError(f"Failed to read input stream: {exc}") from exc
    if not isinstance(data, (bytes, bytearray, str)):
        raise IoReadError(
            f"Input stream returned {type(data).__name__}, expected bytes."
        )
    return convert(
        bytes(data) if isinstance(data, bytearray) else data,
        options,
        logger=logger,
    )


def convert_file(
    path: Path,
    options: Optional[ConversionOptions] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> ConversionResult:
    """Convert the Markdown file at ``path``."""

    source = Path(path).expanduser()
    try:
        handle = source.open("rb")
    except OSError as exc:
        raise IoReadError(f"Failed to open input file {source}: {exc}") from exc
    with handle:
        return convert_stream(handle, options, logger=logger)


def convert_standalone(
    data: Union[bytes, str],
    options: Optional[ConversionOptions] = None,
    *,
    today: Callable[[], datetime] | None = None,
    logger: Optional[logging.Logger] = None,
) -> ConversionResult:
    """Convert ``data`` and frame it as a complete document."""

    result = convert(data, options, logger=logger)
    framed = wrap_standalone(
        result.output,
        result.metadata,
        options,
        today=today,
        logger=logger,
    )
    return ConversionResult(
        output=framed,
        metadata=result.metadata,
        violations=result.violations,
    )
