"""Fit record metadata into a Commons Special:Upload URL of bounded length.

Commons pre-fills the upload form from query parameters. Web servers and
proxies reject very long URLs, so the Information template is shortened
step by step until the URL fits:

1. full content
2. tables truncated to a share of the remaining space
3. tables dropped
4. notes dropped
5. description truncated (last resort)

The template skeleton (fields, reference template, categories) is never cut.
"""

import logging
import math
import re
from typing import Callable
from urllib.parse import urlencode

from zenodo2commons.core.settings import BudgetConfig, CommonsSettings
from zenodo2commons.wiki.markup import ROW_SEPARATOR, TABLE_CLOSE
from zenodo2commons.wiki.models import BudgetResult, UploadParams

logger = logging.getLogger(__name__)

TABLE_START_MARKER = "{|"

TABLES_TRUNCATED_NOTE = (
    "\n\n(Tables truncated due to length constraints. See full metadata at source.)"
)
TABLE_ROWS_TRUNCATED_NOTE = (
    f"\n{TABLE_CLOSE}\n\n"
    "(Table truncated due to length constraints. See full metadata at source.)"
)
TABLES_OMITTED = (
    "(Metadata tables omitted due to length constraints. See full metadata at source.)"
)
DESCRIPTION_TRUNCATED_NOTE = (
    "\n\n(Description truncated. See full description at source.)"
)
DESCRIPTION_ELLIPSIS_NOTE = (
    "... (Description truncated. See full description at source.)"
)

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")


class BudgetUnsatisfiableError(ValueError):
    """The fixed template fields alone do not fit into the URL budget."""


# ── Length Check ─────────────────────────────────────────────────────


def is_url_too_long(url: str, config: BudgetConfig | None = None) -> bool:
    config = config or BudgetConfig()
    return len(url) > config.max_url_length


# ── Table Truncation ─────────────────────────────────────────────────


def truncate_tables(tables: str | None, max_length: int) -> str | None:
    """Shorten wikitable blocks to at most ``max_length`` characters.

    Whole trailing tables go first, then trailing rows of the first table.
    When not even the header row fits, a fixed placeholder sentence is
    returned instead (which may itself exceed ``max_length``).
    """
    if not tables or len(tables) <= max_length:
        return tables

    blocks = _split_table_blocks(tables)
    if not blocks:
        return TABLES_OMITTED

    # Drop whole tables from the end, always keeping the first one
    for keep in range(len(blocks) - 1, 0, -1):
        candidate = "\n\n".join(blocks[:keep]) + TABLES_TRUNCATED_NOTE
        if len(candidate) <= max_length:
            return candidate

    lines = blocks[0].split("\n")
    if lines and lines[-1] == TABLE_CLOSE:
        lines = lines[:-1]

    # Drop trailing rows of the first table
    for cut in range(len(lines) - 1, 0, -1):
        if not _is_row_line(lines[cut]):
            continue
        kept = lines[:cut]
        while kept and kept[-1] == ROW_SEPARATOR:
            kept.pop()
        if not _has_table_start(kept):
            continue
        candidate = "\n".join(kept) + TABLE_ROWS_TRUNCATED_NOTE
        if len(candidate) <= max_length:
            return candidate

    # Table opener plus its first line only
    header = lines[:2]
    if _has_table_start(header):
        candidate = "\n".join(header) + TABLE_ROWS_TRUNCATED_NOTE
        if len(candidate) <= max_length:
            return candidate

    return TABLES_OMITTED


def _split_table_blocks(tables: str) -> list[str]:
    """Split concatenated wikitables into one string per table."""
    blocks: list[list[str]] = []
    for line in tables.split("\n"):
        if line.startswith(TABLE_START_MARKER) or not blocks:
            blocks.append([])
        blocks[-1].append(line)

    result = []
    for block in blocks:
        while block and not block[-1].strip():
            block.pop()
        if block:
            result.append("\n".join(block))
    return result


def _is_row_line(line: str) -> bool:
    return line.startswith("|") or line.startswith("!")


def _has_table_start(lines: list[str]) -> bool:
    return any(line.startswith(TABLE_START_MARKER) for line in lines)


# ── Description Truncation ───────────────────────────────────────────


def truncate_description(description: str | None, max_length: int) -> str | None:
    """Shorten a description to at most ``max_length`` characters.

    Cuts at paragraph boundaries when possible, then at sentence
    boundaries, and finally at a fixed character offset. A notice pointing
    to the source is always appended to a shortened description.
    """
    if not description or len(description) <= max_length:
        return description

    # Paragraph boundaries
    kept = ""
    for paragraph in description.split("\n\n"):
        candidate = f"{kept}\n\n{paragraph}" if kept else paragraph
        if len(candidate) + len(DESCRIPTION_TRUNCATED_NOTE) > max_length:
            break
        kept = candidate
    if kept:
        return kept + DESCRIPTION_TRUNCATED_NOTE

    # Sentence boundaries
    sentences = _SENTENCE_RE.findall(description) or [description]
    kept = ""
    for sentence in sentences:
        if len(kept + sentence) + len(DESCRIPTION_ELLIPSIS_NOTE) > max_length:
            break
        kept += sentence
    if kept.strip():
        return kept.strip() + DESCRIPTION_ELLIPSIS_NOTE

    # Hard cut
    hard_length = max_length - len(DESCRIPTION_ELLIPSIS_NOTE)
    if hard_length > 0:
        return description[:hard_length] + DESCRIPTION_ELLIPSIS_NOTE
    return DESCRIPTION_ELLIPSIS_NOTE


# ── Template & URL ───────────────────────────────────────────────────


def build_information_template(
    params: UploadParams,
    description: str,
    notes: str = "",
    tables: str = "",
    commons: CommonsSettings | None = None,
) -> str:
    """Assemble the {{Information}} template used as the upload description."""
    commons = commons or CommonsSettings()

    body = description
    if notes:
        body = f"{body}\n\n{notes}" if body else notes

    lines = [
        "{{Information",
        f"|description={params.title}:",
        body,
        f"|date={params.date}",
        f"|source={params.source}",
        f"|author={params.authors}",
        "|permission=",
        "|other versions=",
        "}}",
        f"{{{{{commons.reference_template}|{params.record_id}}}}}",
    ]
    lines.extend(f"[[Category:{category}]]" for category in commons.categories)

    template = "\n".join(lines)
    if tables:
        template += f"\n\n{tables}"
    return template


def build_upload_url(
    params: UploadParams, template: str, commons: CommonsSettings | None = None
) -> str:
    """Encode a template and the fixed upload fields into a Special:Upload URL."""
    commons = commons or CommonsSettings()
    query = urlencode(
        {
            "wpUploadDescription": template,
            "wpLicense": params.commons_license,
            "wpDestFile": params.dest_file,
            "wpSourceType": "url",
            "wpUploadFileURL": params.file_url,
        }
    )
    return f"{commons.upload_url}?{query}"


# ── Budget Ladder ────────────────────────────────────────────────────


def build_constrained_upload_url(
    params: UploadParams,
    config: BudgetConfig | None = None,
    commons: CommonsSettings | None = None,
) -> BudgetResult:
    """Build an upload URL no longer than ``config.max_url_length``.

    Raises BudgetUnsatisfiableError when the template skeleton alone
    (title, date, source, authors, file fields) is already too long.
    """
    config = config or BudgetConfig()
    commons = commons or CommonsSettings()

    def url_for(description: str, notes: str = "", tables: str = "") -> str:
        template = build_information_template(params, description, notes, tables, commons)
        return build_upload_url(params, template, commons)

    def full_content() -> str:
        return url_for(params.description, params.notes, params.tables)

    def truncated_tables() -> str | None:
        if not params.tables:
            return None
        skeleton_length = len(url_for(params.description, params.notes))
        remaining = config.max_url_length - skeleton_length - config.url_encoding_margin
        max_table_length = min(
            len(params.tables), math.floor(remaining * config.table_space_ratio)
        )
        if max_table_length <= config.min_table_length:
            return None
        tables = truncate_tables(params.tables, max_table_length)
        return url_for(params.description, params.notes, tables)

    def without_tables() -> str | None:
        if not params.tables:
            return None
        return url_for(params.description, params.notes)

    def without_notes() -> str | None:
        if not params.notes:
            return None
        return url_for(params.description)

    steps: list[tuple[str, Callable[[], str | None]]] = [
        ("full", full_content),
        ("truncate_tables", truncated_tables),
        ("drop_tables", without_tables),
        ("drop_notes", without_notes),
    ]

    for strategy, step in steps:
        url = step()
        if url is None or is_url_too_long(url, config):
            continue
        if strategy != "full":
            logger.info(
                "Upload URL for %s shortened (%s): %d chars",
                params.dest_file,
                strategy,
                len(url),
            )
        return BudgetResult(url=url, was_truncated=strategy != "full", strategy=strategy)

    return _truncated_description_result(params, config, url_for)


def _truncated_description_result(
    params: UploadParams,
    config: BudgetConfig,
    url_for: Callable[[str], str],
) -> BudgetResult:
    """Last resort: keep only a truncated description."""
    minimal_length = len(url_for(""))
    if minimal_length > config.max_url_length:
        raise BudgetUnsatisfiableError(
            f"Upload URL skeleton for {params.dest_file!r} is {minimal_length} chars, "
            f"over the {config.max_url_length} char budget"
        )

    max_desc_length = config.max_url_length - minimal_length - config.url_encoding_margin

    # Percent-encoding can expand non-ASCII text several times over, so
    # shrink the allowance by the overflow, scaled back to raw characters.
    while True:
        description = truncate_description(params.description, max_desc_length) or ""
        url = url_for(description)
        overflow = len(url) - config.max_url_length
        if overflow <= 0:
            break
        if max_desc_length <= 0:
            # Not even the notice fits; the bare skeleton was checked above
            url = url_for("")
            break
        expansion = max((len(url) - minimal_length) / max(len(description), 1), 1.0)
        max_desc_length = max(max_desc_length - math.ceil(overflow / expansion), 0)

    logger.info(
        "Upload URL for %s shortened (truncate_description): %d chars",
        params.dest_file,
        len(url),
    )
    return BudgetResult(url=url, was_truncated=True, strategy="truncate_description")
