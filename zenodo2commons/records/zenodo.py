"""Zenodo record client using the requests library."""

import logging
import time

import requests

from zenodo2commons.core.settings import Settings, ZenodoSettings
from zenodo2commons.records.metadata import format_creators
from zenodo2commons.records.models import RawRecord, RecordFile

logger = logging.getLogger(__name__)


# ── Public API ───────────────────────────────────────────────────────


def fetch_record(record_id: str, settings: Settings | None = None) -> RawRecord:
    """Fetch a single Zenodo record and return it as a RawRecord.

    Raises requests.HTTPError for 4xx responses (e.g. unknown record id)
    and after the last retry for network errors and 5xx responses.
    """
    settings = settings or Settings()
    zenodo = settings.zenodo

    url = f"{zenodo.api_url}/{record_id}"
    logger.info("Fetching Zenodo record %s", url)

    data = _get_json(url, zenodo)
    record = parse_record(data, zenodo.record_url)
    logger.info(
        "Record %s: %r (%d files, license %s)",
        record.id,
        record.title,
        len(record.files),
        record.license_id,
    )
    return record


# ── HTTP with Retry ──────────────────────────────────────────────────


def _get_json(url: str, zenodo: ZenodoSettings) -> dict:
    """GET a JSON document, retrying connection errors, timeouts and 5xx."""
    headers = {"User-Agent": zenodo.user_agent, "Accept": "application/json"}

    for attempt in range(1, zenodo.max_retries + 1):
        try:
            response = requests.get(url, headers=headers, timeout=zenodo.timeout)
            if response.status_code >= 500:
                response.raise_for_status()
            break
        except (requests.ConnectionError, requests.Timeout, requests.HTTPError) as exc:
            if attempt == zenodo.max_retries:
                raise
            wait = 2**attempt
            logger.warning(
                "Zenodo request failed (attempt %d/%d): %s, retrying in %ds",
                attempt,
                zenodo.max_retries,
                exc,
                wait,
            )
            time.sleep(wait)

    response.raise_for_status()
    return response.json()


# ── Record Parser ────────────────────────────────────────────────────


def parse_record(data: dict, record_url: str = "https://zenodo.org/records") -> RawRecord:
    """Convert a Zenodo API record document into a RawRecord."""
    record_id = str(data.get("id") or data.get("recid") or "")
    metadata = data.get("metadata") or {}
    license_info = metadata.get("license") or {}

    files = []
    for entry in data.get("files") or []:
        links = entry.get("links") or {}
        name = entry.get("key") or entry.get("filename")
        download_url = links.get("self") or links.get("download")
        if not name or not download_url:
            continue
        files.append(
            RecordFile(
                name=name,
                size_bytes=entry.get("size") or 0,
                download_url=download_url,
            )
        )

    return RawRecord(
        id=record_id,
        title=metadata.get("title") or "",
        description_html=metadata.get("description") or "",
        notes=metadata.get("notes"),
        publication_date=metadata.get("publication_date") or "",
        source_url=f"{record_url.rstrip('/')}/{record_id}",
        authors=format_creators(metadata.get("creators")),
        license_id=license_info.get("id"),
        files=files,
        raw_data=data,
    )
