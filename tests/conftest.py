from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Callable

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent

# Make src/ importable when the package is not installed.
SRC = str(ROOT / "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from markroff.options import ConversionOptions, OutputFormat  # noqa: E402


@pytest.fixture
def fixed_now() -> Callable[[], datetime]:
    """Clock pinned to 2024-03-09 08:30 local time."""

    return lambda: datetime(2024, 3, 9, 8, 30)


@pytest.fixture
def html_options() -> ConversionOptions:
    return ConversionOptions(format=OutputFormat.HTML)


@pytest.fixture
def ms_options() -> ConversionOptions:
    return ConversionOptions(format=OutputFormat.ROFF_DOC)


@pytest.fixture
def man_options() -> ConversionOptions:
    return ConversionOptions(format=OutputFormat.ROFF_MAN)
