"""Convert Zenodo description HTML into wiki markup.

Only the small tag subset Zenodo descriptions actually use is handled:
bold/italic, paragraphs, line breaks, list items and tables. Tables are
pulled out of the prose first and returned separately so the upload URL
budget can shorten them independently. Every other tag is stripped.
"""

import html
import logging
import re

from zenodo2commons.wiki.models import ConvertedText

logger = logging.getLogger(__name__)

TABLE_OPEN = '{| class="wikitable"'
TABLE_CLOSE = "|}"
ROW_SEPARATOR = "|-"

# ── Patterns ─────────────────────────────────────────────────────────

_TABLE_RE = re.compile(r"<table\b[^>]*>(.*?)</table\s*>", re.IGNORECASE | re.DOTALL)
_TABLE_START_RE = re.compile(r"<table\b", re.IGNORECASE)
# Closing </tr>, </td> and </th> are optional in HTML
_ROW_RE = re.compile(
    r"<tr\b[^>]*>(.*?)(?=</tr\s*>|<tr\b|\Z)", re.IGNORECASE | re.DOTALL
)
_CELL_RE = re.compile(
    r"<(th|td)\b[^>]*>(.*?)(?=</t[hd]\s*>|<t[hdr]\b|</tr\s*>|\Z)",
    re.IGNORECASE | re.DOTALL,
)

_BOLD_RES = (
    re.compile(r"<strong\b[^>]*>(.*?)</strong\s*>", re.IGNORECASE),
    re.compile(r"<b\b[^>]*>(.*?)</b\s*>", re.IGNORECASE),
)
_ITALIC_RES = (
    re.compile(r"<em\b[^>]*>(.*?)</em\s*>", re.IGNORECASE),
    re.compile(r"<i\b[^>]*>(.*?)</i\s*>", re.IGNORECASE),
)

_ORPHAN_CELL_RE = re.compile(r"</td\s*>\s*<td\b[^>]*>", re.IGNORECASE)
_ORPHAN_ROW_END_RE = re.compile(r"</tr\s*>", re.IGNORECASE)
_PARAGRAPH_END_RE = re.compile(r"</p\s*>", re.IGNORECASE)
_BREAK_RE = re.compile(r"<br\b[^>]*>", re.IGNORECASE)
_LIST_ITEM_RE = re.compile(r"<li\b[^>]*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_QUOTE_RUN_RE = re.compile(r"'{2,}")


# ── Public API ───────────────────────────────────────────────────────


def convert(html_text: str | None) -> ConvertedText:
    """Split an HTML description into wiki-markup prose and wiki tables.

    >>> convert("<p>This is <strong>bold</strong> text</p>").description
    "This is '''bold''' text"
    """
    if not html_text:
        return ConvertedText()

    blocks: list[str] = []

    def _extract(match: re.Match) -> str:
        body = match.group(1)
        if _TABLE_START_RE.search(body):
            logger.warning("Nested <table> is not supported; inner table converted as-is")
        block = _convert_table(body)
        if not block:
            # Nothing tabular to render; keep the text in the prose
            return f"\n{body}\n"
        blocks.append(block)
        return "\n"

    prose = _TABLE_RE.sub(_extract, html_text)
    return ConvertedText(
        description=_convert_prose(prose),
        tables="\n\n".join(blocks),
    )


# ── Prose ────────────────────────────────────────────────────────────


def _convert_prose(text: str) -> str:
    text = _apply_inline(text)
    text = _ORPHAN_CELL_RE.sub(": ", text)
    text = _ORPHAN_ROW_END_RE.sub("\n", text)
    text = _PARAGRAPH_END_RE.sub("\n\n", text)
    text = _BREAK_RE.sub("\n", text)
    text = _LIST_ITEM_RE.sub("\n* ", text)
    text = _finish(text)

    lines = (line.strip() for line in text.split("\n"))
    return "\n".join(line for line in lines if line)


# ── Tables ───────────────────────────────────────────────────────────


def _convert_table(fragment: str) -> str:
    """Render the rows of one <table> body as a wikitable block."""
    lines = [TABLE_OPEN]
    row_count = 0

    for row in _ROW_RE.findall(fragment):
        cells = _CELL_RE.findall(row)
        if not cells:
            continue
        if row_count:
            lines.append(ROW_SEPARATOR)
        for tag, content in cells:
            marker = "!" if tag.lower() == "th" else "|"
            lines.append(f"{marker} {_cell_text(content)}".rstrip())
        row_count += 1

    if not row_count:
        return ""

    lines.append(TABLE_CLOSE)
    return "\n".join(lines)


def _cell_text(fragment: str) -> str:
    """Single-line wiki text for one cell."""
    text = _apply_inline(fragment)
    text = _BREAK_RE.sub(" ", text)
    text = _finish(text)
    return " ".join(text.split())


# ── Helpers ──────────────────────────────────────────────────────────


def _apply_inline(text: str) -> str:
    for pattern in _BOLD_RES:
        text = pattern.sub(r"'''\1'''", text)
    for pattern in _ITALIC_RES:
        text = pattern.sub(r"''\1''", text)
    return text


def _finish(text: str) -> str:
    """Strip leftover tags, drop empty emphasis and decode entities."""
    text = _TAG_RE.sub("", text)
    text = _QUOTE_RUN_RE.sub(_keep_emphasis, text)
    return html.unescape(text)


def _keep_emphasis(match: re.Match) -> str:
    # '' and ''' are markup; longer runs come from emptied tags
    run = match.group(0)
    return run if len(run) in (2, 3) else ""
