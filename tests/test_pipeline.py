from __future__ import annotations

import io
import logging

import pytest

from markroff import pipeline
from markroff.builder import DocumentBuilder
from markroff.errors import ErrorCode, IoReadError
from markroff.options import (
    ConversionOptions,
    Feature,
    MetadataEntry,
    OutputFlag,
    OutputFormat,
)
from markroff.render import HtmlRenderer


def test_convert_defaults_to_html():
    result = pipeline.convert(b"# Hi\n")
    assert result.output == b"<h1>Hi</h1>\n"
    assert result.metadata == ()
    assert result.violations == ()


@pytest.mark.parametrize(
    "data",
    [b"", b"\x00", b"\xff\xfe\xfd", b"[[[", b"> > > - * 1.", "été"],
)
def test_convert_accepts_any_input(data):
    assert isinstance(pipeline.convert(data).output, bytes)


def test_convert_ms(ms_options):
    assert pipeline.convert(b"Hello\n", ms_options).output == b".LP\nHello\n"


def test_convert_man(man_options):
    assert pipeline.convert(b"# NAME\n", man_options).output == (
        b".SH\nNAME\n"
    )


def test_convert_output_is_utf8():
    result = pipeline.convert("café\n")
    assert result.output == "<p>café</p>\n".encode("utf-8")


def test_typography_html():
    options = ConversionOptions(output_flags={OutputFlag.TYPOGRAPHY})
    result = pipeline.convert(b'"Hi" -- there\n', options)
    assert result.output == b"<p>&ldquo;Hi&rdquo; &ndash; there</p>\n"


def test_typography_man():
    options = ConversionOptions(
        format=OutputFormat.ROFF_MAN, output_flags={OutputFlag.TYPOGRAPHY}
    )
    result = pipeline.convert(b'"Hi"\n', options)
    assert result.output == b".PP\n\\(lqHi\\(rq\n"


def test_typography_is_off_by_default():
    assert pipeline.convert(b'"Hi"\n').output == b"<p>&quot;Hi&quot;</p>\n"


def test_metadata_is_returned():
    options = ConversionOptions(features={Feature.METADATA})
    result = pipeline.convert(b"title: T\n\nbody\n", options)
    assert result.metadata == (MetadataEntry("title", "T"),)
    assert result.output == b"<p>body</p>\n"


def test_violations_are_logged(caplog):
    logger = logging.getLogger("tests.markroff.pipeline")
    with caplog.at_level(logging.WARNING, logger="tests.markroff.pipeline"):
        result = pipeline.convert(b"see [a] (b)\n", logger=logger)
    assert [v.code for v in result.violations] == [
        ErrorCode.SPACE_BEFORE_LINK
    ]
    record = caplog.records[0]
    assert record.getMessage() == "Structural violation in source document"
    assert record.code == "space-before-link"
    assert record.line == 1


def test_renderer_and_builder_are_closed_on_failure(monkeypatch):
    closed: list[str] = []

    def boom(self, data):  # noqa: ANN001
        raise ValueError("render failed")

    original_renderer_close = HtmlRenderer.close
    original_builder_close = DocumentBuilder.close

    def renderer_close(self):  # noqa: ANN001
        closed.append("renderer")
        original_renderer_close(self)

    def builder_close(self):  # noqa: ANN001
        closed.append("builder")
        original_builder_close(self)

    monkeypatch.setattr(DocumentBuilder, "build_and_render", boom)
    monkeypatch.setattr(DocumentBuilder, "close", builder_close)
    monkeypatch.setattr(HtmlRenderer, "close", renderer_close)

    with pytest.raises(ValueError, match="render failed"):
        pipeline.convert(b"x")

    assert closed == ["builder", "renderer"]


def test_convert_stream_bytes_and_text():
    assert pipeline.convert_stream(io.BytesIO(b"*x*\n")).output == (
        b"<p><em>x</em></p>\n"
    )
    assert pipeline.convert_stream(io.StringIO("*x*\n")).output == (
        b"<p><em>x</em></p>\n"
    )


def test_convert_stream_read_failure():
    class _Broken(io.RawIOBase):
        def readable(self):  # noqa: D401
            return True

        def read(self, size=-1):  # noqa: ANN001
            raise OSError("device gone")

    with pytest.raises(IoReadError, match="device gone") as excinfo:
        pipeline.convert_stream(_Broken())
    assert isinstance(excinfo.value.__cause__, OSError)


def test_convert_stream_rejects_non_data():
    class _Nothing:
        def read(self):
            return None

    with pytest.raises(IoReadError, match="NoneType"):
        pipeline.convert_stream(_Nothing())  # type: ignore[arg-type]


def test_convert_file(tmp_path, man_options):
    source = tmp_path / "page.md"
    source.write_bytes(b"## OPTIONS\n")
    assert pipeline.convert_file(source, man_options).output == (
        b".SS\nOPTIONS\n"
    )


def test_convert_file_missing(tmp_path):
    with pytest.raises(IoReadError):
        pipeline.convert_file(tmp_path / "missing.md")


def test_convert_standalone_html(fixed_now):
    options = ConversionOptions(features={Feature.METADATA})
    result = pipeline.convert_standalone(
        b"title: Doc\n\nHello\n", options, today=fixed_now
    )
    assert result.output.startswith(b"<!DOCTYPE html>\n")
    assert b"<title>Doc</title>\n" in result.output
    assert result.output.endswith(b"<p>Hello</p>\n</body>\n</html>\n")
    assert result.metadata == (MetadataEntry("title", "Doc"),)


def test_convert_standalone_man(fixed_now):
    options = ConversionOptions(
        format=OutputFormat.ROFF_MAN, features={Feature.METADATA}
    )
    result = pipeline.convert_standalone(
        b"title: ls\ndate: 2021/2/3\n\n# NAME\n", options, today=fixed_now
    )
    assert result.output == b'.TH "ls" 7 2021-02-03\n.SH\nNAME\n'


def test_convert_standalone_ms_without_metadata(ms_options, fixed_now):
    result = pipeline.convert_standalone(b"Body\n", ms_options, today=fixed_now)
    assert result.output == (
        b".DA 2024-03-09\n.TL\nUntitled article\n.LP\nBody\n"
    )


def test_convert_text_with_lone_surrogate():
    result = pipeline.convert("a\ud800b\n")
    text = result.output.decode("utf-8")
    assert text.startswith("<p>a\ufffd")
    assert text.endswith("b</p>\n")


def test_convert_standalone_text_with_lone_surrogate(fixed_now):
    options = ConversionOptions(
        format=OutputFormat.ROFF_MAN, features={Feature.METADATA}
    )
    result = pipeline.convert_standalone(
        "title: x\udc80y\n\nbody\n", options, today=fixed_now
    )
    text = result.output.decode("utf-8")
    assert text.startswith('.TH "x\ufffd')
    assert 'y" 7 2024-03-09\n' in text
