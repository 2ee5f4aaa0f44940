"""Turn a Zenodo record into one Commons upload link per file."""

import logging

from pydantic import BaseModel

from zenodo2commons.core.settings import Settings
from zenodo2commons.records.metadata import map_license, sanitize_filename
from zenodo2commons.records.models import RawRecord, RecordFile
from zenodo2commons.wiki.budget import build_constrained_upload_url
from zenodo2commons.wiki.markup import convert
from zenodo2commons.wiki.models import UploadParams

logger = logging.getLogger(__name__)


class UploadLink(BaseModel):
    """Pre-filled upload URL for one record file, or why there is none."""

    file: RecordFile
    dest_file: str
    url: str | None = None
    was_truncated: bool = False
    uploadable: bool = True
    reason: str | None = None


def build_upload_links(record: RawRecord, settings: Settings | None = None) -> list[UploadLink]:
    """Build Special:Upload links for every file of a record."""
    settings = settings or Settings()

    commons_license = map_license(record.license_id, settings.licenses)
    if commons_license is None:
        reason = f"License {record.license_id or '(none)'} has no Commons equivalent"
        logger.warning("Record %s not uploadable: %s", record.id, reason)
        return [
            UploadLink(
                file=f,
                dest_file=sanitize_filename(f.name),
                uploadable=False,
                reason=reason,
            )
            for f in record.files
        ]

    converted = convert(record.description_html)
    notes = convert(record.notes).description

    links = []
    for f in record.files:
        dest_file = sanitize_filename(f.name)
        params = UploadParams(
            title=record.title,
            description=converted.description,
            notes=notes,
            tables=converted.tables,
            date=record.publication_date,
            source=record.source_url,
            authors=record.authors,
            record_id=record.id,
            commons_license=commons_license,
            dest_file=dest_file,
            file_url=f.download_url,
        )
        result = build_constrained_upload_url(params, settings.budget, settings.commons)
        links.append(
            UploadLink(
                file=f,
                dest_file=dest_file,
                url=result.url,
                was_truncated=result.was_truncated,
            )
        )

    logger.info("Built %d upload links for record %s", len(links), record.id)
    return links
