"""
test_message_render.py
----------------------
Tests for the assistant message renderer, covering:
- Escaping of raw markup-significant characters
- Fenced and inline code isolation
- Emphasis precedence and triple-emphasis resolution
- Headings, blockquotes and list grouping
- Link target validation
- Paragraph assembly and the input length limit
"""

import re
import time

import pytest

from utils.message_render import (
    ALLOWED_TAGS,
    RenderInputTooLarge,
    escape_html,
    render,
    render_markdown_to_html,
    render_preview,
)

TAG_RE = re.compile(r"</?([a-zA-Z][a-zA-Z0-9]*)")


# -------------------------------------------------------------
# Escaping
# -------------------------------------------------------------

def test_escape_html_orders_ampersand_first():
    assert escape_html("<a & b>") == "&lt;a &amp; b&gt;"
    assert escape_html("") == ""


def test_empty_input_renders_empty_string():
    assert render("") == ""
    assert render(None) == ""
    assert render("\n\n   \n") == ""


def test_raw_html_is_escaped_inside_paragraph():
    assert render("<b>hi</b>") == "<p>&lt;b&gt;hi&lt;/b&gt;</p>"


def test_script_injection_never_survives():
    out = render('<script>alert("x")</script> & <img src=x onerror=alert(1)>')
    assert "<script" not in out
    assert "<img" not in out
    assert "&lt;script&gt;" in out
    assert "&amp;" in out


def test_existing_entities_are_not_decoded():
    assert render("&lt;b&gt;") == "<p>&amp;lt;b&amp;gt;</p>"


def test_only_allowed_tags_are_emitted():
    doc = "\n".join([
        "# Title",
        "Some **bold**, *em*, `code` and [a link](https://example.com).",
        "",
        "> quoted <iframe>",
        "",
        "- one",
        "- two",
        "",
        "1. first",
        "",
        "```python",
        "print('<hi>')",
        "```",
        "<div onclick=evil()>x</div>",
    ])
    tags = {t.lower() for t in TAG_RE.findall(render(doc))}
    assert tags
    assert tags <= ALLOWED_TAGS


# -------------------------------------------------------------
# Fenced code
# -------------------------------------------------------------

def test_fenced_code_is_not_transformed():
    out = render("```js\n**x**\n```")
    assert out == '<pre><code class="lang-js">**x**</code></pre>'
    assert "<strong>" not in out


def test_fenced_code_body_is_escaped_and_trimmed():
    assert render("```\n\n  <div>&</div>  \n\n```") == (
        "<pre><code>&lt;div&gt;&amp;&lt;/div&gt;</code></pre>"
    )


def test_unterminated_fence_is_plain_text():
    out = render("```js\nhello")
    assert out == "<p>```js<br>hello</p>"
    assert "<pre>" not in out


def test_fences_close_at_nearest_marker():
    out = render("```\na\n```\ntext\n```\nb\n```")
    assert out == "<pre><code>a</code></pre>\n<p>text</p>\n<pre><code>b</code></pre>"


def test_inline_fence_splits_surrounding_text():
    assert render("Run ```ls -la``` now") == (
        "<p>Run</p>\n<pre><code>ls -la</code></pre>\n<p>now</p>"
    )


def test_fence_protects_heading_and_list_markers():
    out = render("```\n# not a heading\n- not a list\n```")
    assert out == "<pre><code># not a heading\n- not a list</code></pre>"


# -------------------------------------------------------------
# Inline code and emphasis
# -------------------------------------------------------------

def test_inline_code_is_inert():
    assert render("Use `**not bold**` here") == "<p>Use <code>**not bold**</code> here</p>"


def test_inline_code_escapes_content():
    assert render("`<br>`") == "<p><code>&lt;br&gt;</code></p>"


def test_bold_before_italic_without_cross_contamination():
    assert render("**bold** and *italic*") == (
        "<p><strong>bold</strong> and <em>italic</em></p>"
    )


def test_underscore_emphasis():
    assert render("__bold__ and _italic_") == (
        "<p><strong>bold</strong> and <em>italic</em></p>"
    )


@pytest.mark.parametrize("raw", ["***x***", "___x___"])
def test_triple_emphasis_is_bold_wrapping_italic(raw):
    assert render(raw) == "<p><strong><em>x</em></strong></p>"


def test_italic_inside_bold():
    assert render("**a *b* c**") == "<p><strong>a <em>b</em> c</strong></p>"


@pytest.mark.parametrize("raw", ["*a **b** c*", "_a __b__ c_"])
def test_bold_inside_italic(raw):
    assert render(raw) == "<p><em>a <strong>b</strong> c</em></p>"


def test_bold_inside_italic_inside_list_item():
    assert render("- *see **this** now*") == (
        "<ul><li><em>see <strong>this</strong> now</em></li></ul>"
    )


def test_snake_case_identifiers_stay_literal():
    assert render("call snake_case_name now") == "<p>call snake_case_name now</p>"


def test_unmatched_markers_stay_literal():
    assert render("2 * 3 = 6 and **open") == "<p>2 * 3 = 6 and **open</p>"


def test_emphasis_does_not_cross_lines():
    assert render("*start\nend*") == "<p>*start<br>end*</p>"


# -------------------------------------------------------------
# Headings, blockquotes, lists
# -------------------------------------------------------------

def test_heading_levels():
    assert render("# One\n## Two\n### Three\n#### Four") == (
        "<h1>One</h1>\n<h2>Two</h2>\n<h3>Three</h3>\n<p>#### Four</p>"
    )


def test_heading_text_gets_inline_formatting():
    assert render("## **Bold** title") == "<h2><strong>Bold</strong> title</h2>"


def test_marker_without_space_is_not_a_heading():
    assert render("#hashtag") == "<p>#hashtag</p>"


def test_contiguous_quote_lines_share_one_blockquote():
    assert render("> quoted\n> more") == "<blockquote>quoted<br>more</blockquote>"


def test_blockquote_is_one_level_only():
    assert render("> > inner") == "<blockquote>&gt; inner</blockquote>"


def test_bullet_items_grouped_into_one_list():
    out = render("- a\n- b\n- c")
    assert out == "<ul><li>a</li><li>b</li><li>c</li></ul>"
    assert out.count("<ul>") == 1
    assert out.count("<li>") == 3


def test_star_bullets():
    assert render("* a\n* b") == "<ul><li>a</li><li>b</li></ul>"


def test_ordered_items_grouped_into_one_ordered_list():
    out = render("1. one\n2. two\n3. three")
    assert out == "<ol><li>one</li><li>two</li><li>three</li></ol>"
    assert "<ul>" not in out


def test_bullet_and_ordered_runs_stay_separate():
    assert render("- a\n1. b") == "<ul><li>a</li></ul>\n<ol><li>b</li></ol>"


def test_list_items_get_inline_formatting():
    assert render("- **a**\n- `b`") == "<ul><li><strong>a</strong></li><li><code>b</code></li></ul>"


def test_paragraph_directly_followed_by_list():
    assert render("Intro:\n- a\n- b") == "<p>Intro:</p>\n<ul><li>a</li><li>b</li></ul>"


# -------------------------------------------------------------
# Links
# -------------------------------------------------------------

def test_link_has_target_and_rel():
    out = render("[docs](https://example.com/a?b=1&c=2)")
    assert 'href="https://example.com/a?b=1&amp;c=2"' in out
    assert 'target="_blank"' in out
    assert 'rel="noopener noreferrer"' in out
    assert ">docs</a>" in out


def test_javascript_link_renders_as_text():
    out = render("[x](javascript:alert(1))")
    assert out == "<p>[x](javascript:alert(1))</p>"
    assert "<a" not in out


@pytest.mark.parametrize(
    "target",
    [
        "JaVaScRiPt:alert(1)",
        "data:text/html;base64,PHNjcmlwdD4=",
        "vbscript:msgbox(1)",
        "https://example.com/\x01",
    ],
)
def test_disallowed_link_targets_have_no_anchor(target):
    assert "<a" not in render(f"[x]({target})")


def test_quote_in_link_target_cannot_break_attribute():
    out = render('[x](https://a.com/"onmouseover="alert(1))')
    assert 'onmouseover="' not in out
    assert "&quot;" in out


def test_relative_link_is_allowed():
    assert 'href="/chat"' in render("[home](/chat)")


def test_link_target_with_parentheses():
    out = render("[A](https://en.wikipedia.org/wiki/A_(b))")
    assert 'href="https://en.wikipedia.org/wiki/A_(b)"' in out


def test_link_label_gets_emphasis():
    assert "<strong>bold</strong></a>" in render("[**bold**](https://x.io)")


def test_link_target_is_not_parsed_for_emphasis():
    out = render("[x](https://a.com/_snake_path_)")
    assert "<em>" not in out
    assert 'href="https://a.com/_snake_path_"' in out


def test_custom_allowed_schemes():
    assert 'href="mailto:a@b.co"' in render("[m](mailto:a@b.co)")
    assert "<a" not in render("[m](mailto:a@b.co)", allowed_schemes={"https"})


# -------------------------------------------------------------
# Paragraphs, purity and limits
# -------------------------------------------------------------

def test_paragraphs_and_line_breaks():
    assert render("line one\nline two\n\nsecond") == (
        "<p>line one<br>line two</p>\n<p>second</p>"
    )


def test_windows_line_endings():
    assert render("a\r\nb") == "<p>a<br>b</p>"


def test_rendering_plain_text_is_repeatable():
    raw = "Just some plain text.\nWith two lines."
    assert render(raw) == render(raw) == "<p>Just some plain text.<br>With two lines.</p>"


def test_alias_matches_render():
    assert render_markdown_to_html("**x**") == render("**x**")


def test_oversized_input_raises():
    with pytest.raises(RenderInputTooLarge) as exc_info:
        render("x" * 11, max_chars=10)
    assert exc_info.value.length == 11
    assert exc_info.value.limit == 10
    assert exc_info.value.status_code == 413


@pytest.mark.parametrize(
    "raw",
    [
        "**a " * 12500,
        "__a " * 12500,
        "***a " * 10000,
        "___a " * 10000,
        "*a **b " * 7000,
        "_a __b " * 7000,
        "**b " * 12500,
        "[a](b" * 10000,
        "*a **b** " * 5500,
    ],
    ids=[
        "bold-star", "bold-underscore", "triple-star", "triple-underscore",
        "italic-star-open-bold", "italic-underscore-open-bold", "italic-over-bold-openers",
        "unclosed-links", "italic-without-closer",
    ],
)
def test_unmatched_markers_at_the_length_limit_render_quickly(raw):
    assert len(raw) <= 50_000
    started = time.perf_counter()
    out = render(raw)
    elapsed = time.perf_counter() - started
    assert out.startswith("<p>")
    assert elapsed < 5.0


def test_render_preview_truncates():
    assert render_preview("abcdef", max_chars=3) == ("<p>abc</p>", True)
    assert render_preview("abc", max_chars=3) == ("<p>abc</p>", False)
