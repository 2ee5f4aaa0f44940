"""Record field helpers: creators, licenses, file names and record ids."""

import re

_ORCID_PREFIX_RE = re.compile(r"^https?://orcid\.org/", re.IGNORECASE)
_RECORD_PATH_RE = re.compile(r"/records?/(\d+)")
_ZENODO_DOI_RE = re.compile(r"zenodo[./](\d+)", re.IGNORECASE)

# Characters MediaWiki does not allow in page titles
_FORBIDDEN_FILENAME_CHARS_RE = re.compile(r"[#<>\[\]|{}/:\x00-\x1f\x7f]")
_WHITESPACE_RUN_RE = re.compile(r"\s+")


# ── Creators ─────────────────────────────────────────────────────────


def normalize_orcid(orcid: str | None) -> str:
    """Strip an orcid.org URL prefix, leaving the bare identifier."""
    return _ORCID_PREFIX_RE.sub("", orcid or "").strip()


def format_creators(creators: list[dict] | None) -> str:
    """Render Zenodo creators as a Commons author string.

    Creators with an ORCID get an ``{{ORCID|...}}`` template after their
    name; entries are joined with ``"; "``.
    """
    if not creators:
        return ""

    parts = []
    for creator in creators:
        name = (creator.get("name") or "").strip()
        orcid = normalize_orcid(creator.get("orcid"))
        value = f"{name} ({{{{ORCID|{orcid}}}}})" if orcid else name
        if value:
            parts.append(value)
    return "; ".join(parts)


# ── Licenses ─────────────────────────────────────────────────────────


def map_license(license_id: str | None, licenses: dict[str, str]) -> str | None:
    """Return the Commons license for a Zenodo license id, or None if unsupported."""
    if not license_id:
        return None
    return licenses.get(license_id.strip().lower())


# ── File Names ───────────────────────────────────────────────────────


def sanitize_filename(name: str) -> str:
    """Make a Zenodo file key usable as a Commons destination file name."""
    cleaned = _WHITESPACE_RUN_RE.sub(" ", name or "").strip()
    cleaned = _FORBIDDEN_FILENAME_CHARS_RE.sub("-", cleaned)
    return cleaned or "file"


# ── Record IDs ───────────────────────────────────────────────────────


def extract_record_id(value: str | None) -> str | None:
    """Find a Zenodo record id in a bare id, a record URL or a Zenodo DOI.

    >>> extract_record_id("https://zenodo.org/records/14213247")
    '14213247'
    >>> extract_record_id("10.5281/zenodo.14213247")
    '14213247'
    """
    value = (value or "").strip()
    if value.isdigit():
        return value

    match = _RECORD_PATH_RE.search(value) or _ZENODO_DOI_RE.search(value)
    return match.group(1) if match else None
