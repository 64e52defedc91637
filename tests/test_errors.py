from __future__ import annotations

import pytest

from markroff import errors


def test_describe_space_before_link():
    assert (
        errors.describe(errors.ErrorCode.SPACE_BEFORE_LINK)
        == "space before link (CommonMark violation)"
    )


def test_describe_metadata_bad_char():
    assert (
        errors.describe(errors.ErrorCode.METADATA_BAD_CHAR)
        == "bad character in metadata key (MultiMarkdown violation)"
    )


def test_every_code_has_a_distinct_description():
    descriptions = [errors.describe(code) for code in errors.ErrorCode]
    assert all(descriptions)
    assert len(set(descriptions)) == len(descriptions)


@pytest.mark.parametrize("bogus", [0, "space-before-link", None])
def test_describe_rejects_non_codes(bogus):
    with pytest.raises(TypeError):
        errors.describe(bogus)  # type: ignore[arg-type]


def test_structural_violation_str_includes_line():
    violation = errors.StructuralViolation(
        errors.ErrorCode.SPACE_BEFORE_LINK, line=4
    )
    assert str(violation) == "line 4: space before link (CommonMark violation)"
    assert violation.description.startswith("space before link")


def test_structural_violation_without_line():
    violation = errors.StructuralViolation(errors.ErrorCode.METADATA_BAD_CHAR)
    assert str(violation) == errors.describe(
        errors.ErrorCode.METADATA_BAD_CHAR
    )


def test_exception_hierarchy():
    assert issubclass(errors.MalformedDateError, errors.MarkroffError)
    assert issubclass(errors.MalformedDateError, ValueError)
    assert issubclass(errors.IoReadError, OSError)
    assert issubclass(errors.MarkroffConfigError, errors.MarkroffError)
