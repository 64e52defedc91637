"""Normalize metadata dates into ``YYYY-MM-DD`` strings.

Two encodings are accepted:

* ISO-style ``Y/M/D`` or ``Y-M-D`` (fields of any width), as written in a
  ``date`` metadata entry;
* RCS keyword timestamps such as ``$Date: 2017/03/05 12:01:44 $``, as
  written in an ``rcsdate`` entry. The first seven characters are the keyword
  prefix and are skipped without inspection.

Both match a prefix of the value, so trailing text (a time of day, a closing
``$``) is ignored. The ``normalize_*`` entry points never raise for bad input:
they log a warning and return ``None`` so callers can fall back to another
date.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Callable, Optional

from .errors import MalformedDateError

__all__ = [
    "RCS_PREFIX_LENGTH",
    "parse_iso_date",
    "parse_rcs_date",
    "normalize_iso_date",
    "normalize_rcs_date",
    "today",
]

_LOGGER = logging.getLogger(__name__)

RCS_PREFIX_LENGTH = 7

_ISO_PATTERNS = (
    re.compile(r"\s*(\d+)/\s*(\d+)/\s*(\d+)"),
    re.compile(r"\s*(\d+)-\s*(\d+)-\s*(\d+)"),
)
_RCS_PATTERN = re.compile(
    r"\s*(\d+)/\s*(\d+)/\s*(\d+)\s+(\d+):\s*(\d+):\s*(\d+)"
)


def parse_iso_date(value: str) -> str:
    """Return ``value`` (``Y/M/D`` or ``Y-M-D``) as ``YYYY-MM-DD``."""

    for pattern in _ISO_PATTERNS:
        match = pattern.match(value)
        if match is not None:
            return _format(*match.groups())
    raise MalformedDateError(f"malformed ISO-8601 date: {value!r}")


def parse_rcs_date(value: str) -> str:
    """Return the date part of an RCS ``$Date: ...`` value as ``YYYY-MM-DD``."""

    if len(value) < RCS_PREFIX_LENGTH:
        raise MalformedDateError(f"malformed RCS date: {value!r}")
    match = _RCS_PATTERN.match(value, RCS_PREFIX_LENGTH)
    if match is None:
        raise MalformedDateError(f"malformed RCS date: {value!r}")
    year, month, day = match.groups()[:3]
    return _format(year, month, day)


def normalize_iso_date(
    value: Optional[str], *, logger: Optional[logging.Logger] = None
) -> Optional[str]:
    if value is None:
        return None
    try:
        return parse_iso_date(value)
    except MalformedDateError:
        (logger or _LOGGER).warning(
            "malformed ISO-8601 date", extra={"value": value}
        )
        return None


def normalize_rcs_date(
    value: Optional[str], *, logger: Optional[logging.Logger] = None
) -> Optional[str]:
    if value is None:
        return None
    try:
        return parse_rcs_date(value)
    except MalformedDateError:
        (logger or _LOGGER).warning(
            "malformed RCS date", extra={"value": value}
        )
        return None


def today(now: Callable[[], datetime] | None = None) -> str:
    """Return the current local calendar date as ``YYYY-MM-DD``."""

    current = now() if now is not None else datetime.now()
    return _format(current.year, current.month, current.day)


def _format(year: int | str, month: int | str, day: int | str) -> str:
    return f"{int(year)}-{int(month):02d}-{int(day):02d}"
