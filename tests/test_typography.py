from __future__ import annotations

import pytest

from markroff import typography
from markroff.options import OutputFormat


def test_html_quotes_dashes_and_ellipsis():
    source = "<p>\"Hello\" -- it's...</p>\n"
    assert typography.smarten_html(source) == (
        "<p>&ldquo;Hello&rdquo; &ndash; it&rsquo;s&hellip;</p>\n"
    )


def test_html_escaped_quotes_are_curled():
    source = "<p>&quot;Hi&quot; she said</p>"
    assert typography.smarten_html(source) == (
        "<p>&ldquo;Hi&rdquo; she said</p>"
    )


def test_html_em_dash_and_symbols():
    source = "<p>wait---what (c) (R) (tm)</p>"
    assert typography.smarten_html(source) == (
        "<p>wait&mdash;what &copy; &reg; &trade;</p>"
    )


def test_html_fractions_only_standalone():
    source = "<p>1/2 cup on 2017/1/2 or 11/2</p>"
    assert typography.smarten_html(source) == (
        "<p>&frac12; cup on 2017/1/2 or 11/2</p>"
    )


def test_html_skips_tags_and_code():
    source = (
        '<p><a href="it\'s--here">x</a> a -- b '
        '<code>x -- "y"</code> "q"</p>'
    )
    assert typography.smarten_html(source) == (
        '<p><a href="it\'s--here">x</a> a &ndash; b '
        '<code>x -- "y"</code> &ldquo;q&rdquo;</p>'
    )


def test_html_skips_pre_blocks():
    source = '<pre><code>"raw" -- text\n</code></pre>\n<p>"done"</p>\n'
    assert typography.smarten_html(source) == (
        '<pre><code>"raw" -- text\n</code></pre>\n'
        "<p>&ldquo;done&rdquo;</p>\n"
    )


def test_html_quote_context_crosses_inline_tags():
    source = '<p>say <em>"this"</em></p>'
    assert typography.smarten_html(source) == (
        "<p>say <em>&ldquo;this&rdquo;</em></p>"
    )


def test_roff_text_lines_are_rewritten():
    source = ".LP\n\"Quoted\" text -- here...\n"
    assert typography.smarten_roff(source) == (
        ".LP\n\\(lqQuoted\\(rq text \\(en here.\\|.\\|.\n"
    )


def test_roff_control_lines_are_untouched():
    source = '.TH "a -- b" 7\n.SH "x"\n'
    assert typography.smarten_roff(source) == source


def test_roff_no_fill_regions_are_untouched():
    source = (
        ".nf\n.ft CR\n\"raw\" -- code\n.ft\n.fi\n"
        "'twas -- fine\n"
        "it's -- fine\n"
    )
    assert typography.smarten_roff(source) == (
        ".nf\n.ft CR\n\"raw\" -- code\n.ft\n.fi\n"
        "'twas -- fine\n"
        "it\\(cqs \\(en fine\n"
    )


def test_roff_font_escapes_do_not_affect_quote_direction():
    source = '\\fI"word"\\fP and \\(dq kept'
    assert typography.smarten_roff(source) == (
        "\\fI\\(lqword\\(rq\\fP and \\(dq kept"
    )


def test_roff_horizontal_rule_escape_survives():
    source = ".LP\n\\l'\\n(.lu'\n"
    assert typography.smarten_roff(source) == source


def test_roff_symbols_and_em_dash():
    assert typography.smarten_roff("a---b (c) 3/4") == (
        "a\\(emb \\(co \\(34"
    )


def test_smarten_dispatches_by_format():
    assert typography.smarten("<p>--</p>", OutputFormat.HTML) == (
        "<p>&ndash;</p>"
    )
    for fmt in (OutputFormat.ROFF_DOC, OutputFormat.ROFF_MAN):
        assert typography.smarten("--", fmt) == "\\(en"


@pytest.mark.parametrize(
    "source", ["", "<p></p>", "plain text without punctuation"]
)
def test_html_without_targets_is_identity(source):
    assert typography.smarten_html(source) == source
