"""Tests for settings loading and validation."""

from pathlib import Path

import pytest
import yaml

from zenodo2commons.core.settings import (
    MAX_URL_LENGTH,
    MIN_TABLE_LENGTH,
    TABLE_SPACE_RATIO,
    URL_ENCODING_MARGIN,
    BudgetConfig,
    Settings,
    load_settings,
)

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "zenodo2commons.yaml"


# ── Defaults ─────────────────────────────────────────────────────────


def test_budget_constants():
    assert MAX_URL_LENGTH == 4000
    assert MIN_TABLE_LENGTH == 100
    assert TABLE_SPACE_RATIO == 0.4
    assert URL_ENCODING_MARGIN == 100


def test_defaults_without_file():
    settings = load_settings()
    assert settings.budget == BudgetConfig()
    assert settings.budget.max_url_length == MAX_URL_LENGTH
    assert settings.commons.upload_url == "https://commons.wikimedia.org/wiki/Special:Upload"
    assert settings.zenodo.api_url == "https://zenodo.org/api/records"
    assert settings.licenses["cc-by-4.0"] == "cc-by-4.0"


# ── Loading ──────────────────────────────────────────────────────────


def test_load_example_config():
    settings = load_settings(CONFIG_PATH)
    assert settings == Settings()


def test_partial_config_keeps_defaults(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump({"budget": {"max_url_length": 2000}}))
    settings = load_settings(path)
    assert settings.budget.max_url_length == 2000
    assert settings.budget.table_space_ratio == TABLE_SPACE_RATIO
    assert settings.commons.categories == ["Media from Zenodo", "Uploaded with zenodo2commons"]


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_settings(path) == Settings()


def test_license_ids_lowercased(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump({"licenses": {"CC-BY-4.0": "cc-by-4.0"}}))
    settings = load_settings(path)
    assert settings.licenses == {"cc-by-4.0": "cc-by-4.0"}


def test_trailing_slash_stripped():
    settings = Settings.model_validate({"zenodo": {"api_url": "https://sandbox.zenodo.org/api/records/"}})
    assert settings.zenodo.api_url == "https://sandbox.zenodo.org/api/records"


# ── Validation Errors ────────────────────────────────────────────────


@pytest.mark.parametrize(
    "budget",
    [
        {"max_url_length": 0},
        {"table_space_ratio": 0},
        {"table_space_ratio": 1.5},
        {"url_encoding_margin": -1},
    ],
)
def test_invalid_budget(budget):
    with pytest.raises(Exception):
        Settings.model_validate({"budget": budget})


def test_empty_license_map_rejected():
    with pytest.raises(Exception):
        Settings.model_validate({"licenses": {}})


def test_invalid_retries_rejected():
    with pytest.raises(Exception):
        Settings.model_validate({"zenodo": {"max_retries": 0}})
