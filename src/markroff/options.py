"""Conversion options and the shared data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from .errors import MarkroffConfigError

__all__ = [
    "DEFAULT_MAX_NESTING",
    "OutputFormat",
    "Feature",
    "OutputFlag",
    "ConversionOptions",
    "MetadataEntry",
    "resolve_options",
]

DEFAULT_MAX_NESTING = 16

_FORMAT_ALIASES = {"nroff": "ms", "roff": "ms", "hypertext": "html"}


class OutputFormat(Enum):
    """Target formats; each selects a renderer plus framing rules."""

    HTML = "html"
    ROFF_DOC = "ms"
    ROFF_MAN = "man"

    @property
    def is_roff(self) -> bool:
        return self is not OutputFormat.HTML

    @classmethod
    def from_value(cls, value: str) -> "OutputFormat":
        normalized = value.strip().lower()
        normalized = _FORMAT_ALIASES.get(normalized, normalized)
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise MarkroffConfigError(
            f"Unknown output format '{value}'. Expected one of: {expected}."
        )


class Feature(Enum):
    """Parser extensions that can be switched on per conversion."""

    TABLES = "tables"
    FENCED = "fenced"
    STRIKETHROUGH = "strikethrough"
    METADATA = "metadata"
    NO_INDENTED_CODE = "no_indented_code"

    @classmethod
    def from_value(cls, value: str) -> "Feature":
        normalized = value.strip().lower().replace("-", "_")
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise MarkroffConfigError(
            f"Unknown parser feature '{value}'. Expected one of: {expected}."
        )


class OutputFlag(Enum):
    """Renderer and post-processing switches."""

    TYPOGRAPHY = "typography"
    SKIP_HTML = "skip_html"
    ESCAPE_HTML = "escape_html"
    HARD_WRAP = "hard_wrap"


@dataclass(frozen=True)
class ConversionOptions:
    """Settings for a single conversion; treated as read-only."""

    format: OutputFormat = OutputFormat.HTML
    features: frozenset[Feature] = field(default_factory=frozenset)
    output_flags: frozenset[OutputFlag] = field(default_factory=frozenset)
    max_nesting: int = DEFAULT_MAX_NESTING

    def __post_init__(self) -> None:
        # Accept any iterable of members but store frozensets.
        object.__setattr__(self, "features", _frozen(self.features, Feature))
        object.__setattr__(
            self, "output_flags", _frozen(self.output_flags, OutputFlag)
        )
        if self.max_nesting < 1:
            raise MarkroffConfigError("max_nesting must be a positive integer.")

    def has_feature(self, feature: Feature) -> bool:
        return feature in self.features

    def has_flag(self, flag: OutputFlag) -> bool:
        return flag in self.output_flags


@dataclass(frozen=True)
class MetadataEntry:
    """A ``key: value`` pair taken from the document's metadata block."""

    key: str
    value: str


def resolve_options(options: Optional[ConversionOptions]) -> ConversionOptions:
    """Return ``options`` or the defaults when none were supplied."""

    if options is None:
        return ConversionOptions()
    return options


def _frozen(values: Iterable[Enum], kind: type[Enum]) -> frozenset:
    result = frozenset(values)
    for value in result:
        if not isinstance(value, kind):
            raise MarkroffConfigError(
                f"Expected {kind.__name__} members, got {value!r}."
            )
    return result
