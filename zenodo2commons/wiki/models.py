"""Shared data models for markup conversion and upload URL budgeting."""

from typing import Literal

from pydantic import BaseModel

Strategy = Literal[
    "full",
    "truncate_tables",
    "drop_tables",
    "drop_notes",
    "truncate_description",
]


class ConvertedText(BaseModel):
    """Prose and extracted tables produced from one HTML description."""

    description: str = ""
    tables: str = ""


class UploadParams(BaseModel):
    """Everything that goes into a Commons Special:Upload URL."""

    title: str
    description: str = ""
    notes: str = ""
    tables: str = ""
    date: str
    source: str
    authors: str
    record_id: str
    commons_license: str
    dest_file: str
    file_url: str


class BudgetResult(BaseModel):
    """An upload URL within the length budget and how it was reached."""

    url: str
    was_truncated: bool
    strategy: Strategy = "full"
