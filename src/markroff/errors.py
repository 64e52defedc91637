"""Error catalog and exception types for markroff."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Optional

__all__ = [
    "ErrorCode",
    "StructuralViolation",
    "describe",
    "MarkroffError",
    "MalformedDateError",
    "IoReadError",
    "MarkroffConfigError",
]


class MarkroffError(RuntimeError):
    """Base class for errors raised by markroff."""


class MalformedDateError(MarkroffError, ValueError):
    """Raised when a date value does not match an accepted encoding."""


class IoReadError(MarkroffError, OSError):
    """Raised when conversion input cannot be read."""


class MarkroffConfigError(MarkroffError):
    """Raised when configuration parsing or validation fails."""


class ErrorCode(Enum):
    """Structural problems the document builder reports while parsing."""

    SPACE_BEFORE_LINK = "space-before-link"
    METADATA_BAD_CHAR = "metadata-bad-char"


_DESCRIPTIONS = MappingProxyType(
    {
        ErrorCode.SPACE_BEFORE_LINK: (
            "space before link (CommonMark violation)"
        ),
        ErrorCode.METADATA_BAD_CHAR: (
            "bad character in metadata key (MultiMarkdown violation)"
        ),
    }
)

_missing = set(ErrorCode) - set(_DESCRIPTIONS)
if _missing:  # pragma: no cover - guards edits to ErrorCode
    raise RuntimeError(f"Undescribed error codes: {sorted(c.name for c in _missing)}")
del _missing


def describe(code: ErrorCode) -> str:
    """Return the fixed human-readable description for ``code``."""

    if not isinstance(code, ErrorCode):
        raise TypeError(f"Expected ErrorCode, got {type(code).__name__}.")
    return _DESCRIPTIONS[code]


@dataclass(frozen=True)
class StructuralViolation:
    """A structural problem found in the source document."""

    code: ErrorCode
    line: Optional[int] = None

    @property
    def description(self) -> str:
        return describe(self.code)

    def __str__(self) -> str:
        if self.line is None:
            return self.description
        return f"line {self.line}: {self.description}"
