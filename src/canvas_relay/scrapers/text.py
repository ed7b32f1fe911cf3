"""
Plain-text conversion for Canvas announcement bodies.

Canvas returns announcement messages as HTML. Chat messages need plain
text, so tags are rewritten or stripped by pattern. Nothing is parsed
structurally, which keeps malformed markup from ever raising.
"""

import re
from typing import Optional

_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_PARAGRAPH_END_RE = re.compile(r"</p\s*>", re.IGNORECASE)
_LIST_ITEM_RE = re.compile(r"<li\b[^>]*>", re.IGNORECASE)
_LIST_ITEM_END_RE = re.compile(r"</li\s*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_RUN_RE = re.compile(r"\n{3,}")

# Only these entities are decoded; anything else is left as-is
ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
}
_ENTITY_RE = re.compile("|".join(re.escape(entity) for entity in ENTITIES))

BULLET = "• "


def html_to_text(html: Optional[str]) -> str:
    """
    Convert announcement HTML to plain text.

    Line breaks and closing paragraphs become newlines, list items become
    bullet lines, remaining tags are dropped and a fixed set of entities
    is decoded. Lines are trimmed and long blank runs collapse to a
    single blank line.

    Args:
        html: Raw HTML (may be None or empty)

    Returns:
        str: Plain text, never None
    """
    if not html:
        return ""

    text = _BREAK_RE.sub("\n", html)
    text = _PARAGRAPH_END_RE.sub("\n", text)
    text = _LIST_ITEM_RE.sub(BULLET, text)
    text = _LIST_ITEM_END_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)

    # Single pass so "&amp;lt;" decodes to "&lt;", not "<"
    text = _ENTITY_RE.sub(lambda m: ENTITIES[m.group(0)], text)

    text = "\n".join(line.strip() for line in text.split("\n"))
    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()
