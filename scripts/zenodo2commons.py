#!/usr/bin/env python3
"""Print Wikimedia Commons upload links for the files of a Zenodo record."""

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from zenodo2commons.core.settings import load_settings
from zenodo2commons.records.metadata import extract_record_id
from zenodo2commons.records.zenodo import fetch_record
from zenodo2commons.upload import UploadLink, build_upload_links

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("zenodo2commons")


# ── Runner ───────────────────────────────────────────────────────────


def run(record: str, config_path: str | None = None, as_json: bool = False) -> int:
    """Fetch a record, build its upload links and print them. Returns an exit code."""
    record_id = extract_record_id(record)
    if record_id is None:
        logger.error("Could not find a Zenodo record id in %r", record)
        return 1

    settings = load_settings(config_path)

    try:
        raw_record = fetch_record(record_id, settings)
        links = build_upload_links(raw_record, settings)
    except Exception as exc:
        logger.error("Failed to build upload links for %s: %s", record_id, exc, exc_info=True)
        return 1

    if not links:
        logger.warning("Record %s has no files", record_id)

    if as_json:
        print(json.dumps([link.model_dump() for link in links], indent=2))
    else:
        for link in links:
            print(_format_link(link))

    return 0


def _format_link(link: UploadLink) -> str:
    if not link.uploadable:
        return f"{link.dest_file}: not uploadable ({link.reason})"
    suffix = " [metadata truncated]" if link.was_truncated else ""
    return f"{link.dest_file}{suffix}\n  {link.url}"


# ── CLI ──────────────────────────────────────────────────────────────


def main():
    parser = argparse.ArgumentParser(
        description="Build pre-filled Wikimedia Commons upload links for a Zenodo record"
    )
    parser.add_argument("record", help="Zenodo record id, record URL or Zenodo DOI")
    parser.add_argument("--config", default=None, help="Path to settings YAML file")
    parser.add_argument("--json", action="store_true", help="Print links as JSON")
    args = parser.parse_args()

    sys.exit(run(args.record, config_path=args.config, as_json=args.json))


if __name__ == "__main__":
    main()
