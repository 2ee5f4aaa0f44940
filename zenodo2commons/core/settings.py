"""Settings: YAML loader and Pydantic models for budget, Commons and Zenodo."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

# ── URL Budget Constants ─────────────────────────────────────────────

MAX_URL_LENGTH = 4000  # conservative, well below the ~8KB server limit
MIN_TABLE_LENGTH = 100
TABLE_SPACE_RATIO = 0.4
URL_ENCODING_MARGIN = 100

# Zenodo license id → Commons wpLicense value
DEFAULT_LICENSES: dict[str, str] = {
    "cc-by-4.0": "cc-by-4.0",
    "cc-by-sa-4.0": "cc-by-sa-4.0",
    "cc-by-3.0": "cc-by-3.0",
    "cc-by-sa-3.0": "cc-by-sa-3.0",
    "cc-by-2.0": "cc-by-2.0",
    "cc-by-sa-2.0": "cc-by-sa-2.0",
    "cc-zero": "cc-zero",
    "cc0-1.0": "cc-zero",
}


# ── Budget ───────────────────────────────────────────────────────────


class BudgetConfig(BaseModel):
    """Length thresholds applied when fitting metadata into an upload URL."""

    max_url_length: int = Field(default=MAX_URL_LENGTH, gt=0)
    min_table_length: int = Field(default=MIN_TABLE_LENGTH, ge=0)
    table_space_ratio: float = Field(
        default=TABLE_SPACE_RATIO,
        gt=0.0,
        le=1.0,
        description="Share of the space left after the skeleton given to tables",
    )
    url_encoding_margin: int = Field(default=URL_ENCODING_MARGIN, ge=0)


# ── Commons ──────────────────────────────────────────────────────────


class CommonsSettings(BaseModel):
    """Upload target and the fixed parts of the Information template."""

    upload_url: str = "https://commons.wikimedia.org/wiki/Special:Upload"
    reference_template: str = "Zenodo"
    categories: list[str] = Field(
        default_factory=lambda: [
            "Media from Zenodo",
            "Uploaded with zenodo2commons",
        ]
    )


# ── Zenodo ───────────────────────────────────────────────────────────


class ZenodoSettings(BaseModel):
    """Record API endpoint and request behaviour."""

    api_url: str = "https://zenodo.org/api/records"
    record_url: str = "https://zenodo.org/records"
    timeout: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    user_agent: str = "zenodo2commons/0.1 (+https://lubianat.github.io/zenodo2commons/)"

    @field_validator("api_url", "record_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


# ── Settings (top-level) ─────────────────────────────────────────────


class Settings(BaseModel):
    """Top-level configuration."""

    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    commons: CommonsSettings = Field(default_factory=CommonsSettings)
    zenodo: ZenodoSettings = Field(default_factory=ZenodoSettings)
    licenses: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_LICENSES))

    @field_validator("licenses")
    @classmethod
    def lowercase_license_ids(cls, v: dict[str, str]) -> dict[str, str]:
        if not v:
            raise ValueError("At least one license mapping is required")
        return {key.strip().lower(): value for key, value in v.items()}


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file, or return the defaults when no path is given."""
    if path is None:
        return Settings()
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    return Settings.model_validate(raw)
