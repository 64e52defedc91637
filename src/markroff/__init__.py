"""Markdown to HTML and roff (ms, man) conversion driver."""

from __future__ import annotations

from .errors import (
    ErrorCode,
    IoReadError,
    MalformedDateError,
    MarkroffConfigError,
    MarkroffError,
    StructuralViolation,
    describe,
)
from .escape import EscapeContext, escape
from .framer import (
    standalone_close,
    standalone_open,
    wrap_standalone,
)
from .options import (
    ConversionOptions,
    Feature,
    MetadataEntry,
    OutputFlag,
    OutputFormat,
)
from .pipeline import (
    ConversionResult,
    convert,
    convert_file,
    convert_standalone,
    convert_stream,
)

__all__ = [
    "ConversionOptions",
    "ConversionResult",
    "ErrorCode",
    "EscapeContext",
    "Feature",
    "IoReadError",
    "MalformedDateError",
    "MarkroffConfigError",
    "MarkroffError",
    "MetadataEntry",
    "OutputFlag",
    "OutputFormat",
    "StructuralViolation",
    "convert",
    "convert_file",
    "convert_standalone",
    "convert_stream",
    "describe",
    "escape",
    "standalone_close",
    "standalone_open",
    "wrap_standalone",
]
