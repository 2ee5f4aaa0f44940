"""Tests for building per-file upload links from a record."""

from urllib.parse import parse_qs, urlsplit

import pytest

from zenodo2commons.core.settings import MAX_URL_LENGTH, BudgetConfig, Settings
from zenodo2commons.records.models import RawRecord, RecordFile
from zenodo2commons.upload import UploadLink, build_upload_links


def _record(**kw) -> RawRecord:
    base = dict(
        id="12345",
        title="Test Record",
        description_html=(
            "<p>A <strong>microscopy</strong> image.</p>"
            "<table><tr><th>Study</th></tr><tr><td>Ultrastructure</td></tr></table>"
        ),
        notes="<p>Funded by <em>NFDI</em>.</p>",
        publication_date="2025-01-15",
        source_url="https://zenodo.org/records/12345",
        authors="Doe, John",
        license_id="CC-BY-4.0",
        files=[
            RecordFile(name="figure 1.png", size_bytes=100, download_url="https://zenodo.org/f/1"),
            RecordFile(name="data/raw.tif", size_bytes=200, download_url="https://zenodo.org/f/2"),
        ],
    )
    base.update(kw)
    return RawRecord(**base)


def _query(url: str) -> dict:
    return {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}


# ── Uploadable Records ───────────────────────────────────────────────


def test_one_link_per_file():
    links = build_upload_links(_record())
    assert len(links) == 2
    assert all(isinstance(link, UploadLink) for link in links)
    assert [link.dest_file for link in links] == ["figure 1.png", "data-raw.tif"]
    assert all(link.uploadable and link.url for link in links)


def test_link_carries_converted_metadata():
    link = build_upload_links(_record())[0]
    query = _query(link.url)

    assert query["wpLicense"] == "cc-by-4.0"
    assert query["wpDestFile"] == "figure 1.png"
    assert query["wpSourceType"] == "url"
    assert query["wpUploadFileURL"] == "https://zenodo.org/f/1"

    description = query["wpUploadDescription"]
    assert "A '''microscopy''' image." in description
    assert "Funded by ''NFDI''." in description
    assert "! Study\n|-\n| Ultrastructure" in description
    assert "|author=Doe, John" in description
    assert not link.was_truncated


def test_long_record_is_truncated():
    record = _record(description_html="<p>" + "Long text. " * 1000 + "</p>")
    links = build_upload_links(record)
    assert all(len(link.url) <= MAX_URL_LENGTH for link in links)
    assert all(link.was_truncated for link in links)


def test_budget_from_settings():
    settings = Settings(budget=BudgetConfig(max_url_length=1200))
    links = build_upload_links(_record(), settings)
    assert all(len(link.url) <= 1200 for link in links)


def test_record_without_files():
    assert build_upload_links(_record(files=[])) == []


# ── Unsupported Licenses ─────────────────────────────────────────────


@pytest.mark.parametrize("license_id", ["cc-by-nc-4.0", None])
def test_unsupported_license_not_uploadable(license_id):
    links = build_upload_links(_record(license_id=license_id))
    assert len(links) == 2
    for link in links:
        assert not link.uploadable
        assert link.url is None
        assert "no Commons equivalent" in link.reason
