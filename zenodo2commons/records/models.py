"""Shared data models for Zenodo records."""

from pydantic import BaseModel, Field


class RecordFile(BaseModel):
    """A single file attached to a Zenodo record."""

    name: str
    size_bytes: int = Field(ge=0, default=0)
    download_url: str


class RawRecord(BaseModel):
    """Record metadata as needed to build Commons upload links."""

    id: str
    title: str
    description_html: str = ""
    notes: str | None = None
    publication_date: str = ""
    source_url: str
    authors: str = ""
    license_id: str | None = None
    files: list[RecordFile] = Field(default_factory=list)
    raw_data: dict = Field(default_factory=dict)
