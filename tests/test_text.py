import re

import pytest

from canvas_relay.scrapers.text import ENTITIES, html_to_text


def test_empty_and_none_yield_empty_string():
    assert html_to_text(None) == ""
    assert html_to_text("") == ""


def test_breaks_and_paragraphs_become_newlines():
    html = "<p>First paragraph</p><p>Second<br>line two<BR />line three</p>"
    assert html_to_text(html) == "First paragraph\nSecond\nline two\nline three"


def test_list_items_become_bullets():
    html = "<ul><li>Read chapter 1</li><li class='x'>Do exercises</li></ul>"
    assert html_to_text(html) == "• Read chapter 1\n• Do exercises"


def test_known_entities_are_decoded():
    html = "Tom&nbsp;&amp;&nbsp;Jerry &lt;3 &quot;quoted&quot; it&#39;s &gt;"
    assert html_to_text(html) == "Tom & Jerry <3 \"quoted\" it's >"


def test_unknown_entities_pass_through():
    assert html_to_text("caf&eacute; &copy; 2024") == "caf&eacute; &copy; 2024"


def test_entities_are_decoded_in_a_single_pass():
    assert html_to_text("&amp;lt;b&amp;gt;") == "&lt;b&gt;"


def test_lines_are_trimmed_and_blank_runs_collapsed():
    html = "  <p>  one  </p>\n\n\n\n<p>two</p>  "
    assert html_to_text(html) == "one\n\ntwo"


def test_malformed_markup_degrades_gracefully():
    html = "<div><p>Unclosed <b>bold <i>text</div> trailing < not a tag"
    assert html_to_text(html) == "Unclosed bold text trailing < not a tag"


@pytest.mark.parametrize(
    "html",
    [
        "<p>Hello <a href='https://x.test'>link</a></p>",
        "<table><tr><td>cell</td></tr></table>&amp;&nbsp;&quot;",
        "<script>alert(1)</script><style>p{}</style>text&#39;",
        "<ul><li><strong>Due</strong>: Friday</li></ul>&lt;&gt;",
    ],
)
def test_output_has_no_tags_or_recognized_entities(html):
    text = html_to_text(html)
    assert not re.search(r"<[a-zA-Z/][^>]*>", text)
    for entity in ENTITIES:
        assert entity not in text
