"""
Configuration for extraction and the trend display layer.

Settings are plain pydantic models handed to the code that needs them; a YAML
file (read with ruamel.yaml) and a few environment variables can override the
defaults.
"""

import os
import re
from pathlib import Path
from typing import List, Literal, Optional, Set
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigError

load_dotenv()

DEFAULT_CONFIG_PATH = "config/vet_trends.yml"
DEFAULT_DB_PATH = "data/vet-trends.sqlite"
DATE_FORMATS = ("numeric", "result_date")


class ExtractionSettings(BaseModel):
    # permissive: any row with a panel label; strict: CBC/Chemistry/Urinalysis only
    panel_filter_mode: Literal["strict", "permissive"] = "permissive"
    date_formats: List[str] = Field(default_factory=lambda: list(DATE_FORMATS))
    panel_label_strategy: Literal["auto", "clinic_notes", "reference"] = "auto"
    normalize_panels: bool = True
    sanitize_cells: bool = True
    pdf_placeholder: str = "(See ezyVet for pdf.)"

    @field_validator("date_formats")
    @classmethod
    def _known_formats(cls, v: List[str]) -> List[str]:
        unknown = [f for f in v if f not in DATE_FORMATS]
        if unknown:
            raise ValueError(f"unknown date formats: {unknown} (expected {list(DATE_FORMATS)})")
        return v


def normalize_key(value) -> str:
    text = re.sub(r"[“”\"'`]", "", str(value or ""))
    return re.sub(r"\s+", " ", text).strip().lower()


def normalize_panel_key(value) -> str:
    key = normalize_key(value)
    if not key:
        return ""
    if key == "ua":
        return "urinalysis"
    if "urinalysis" in key or "urine analysis" in key:
        return "urinalysis"
    if "chem" in key:
        return "chemistry"
    if "cbc" in key:
        return "cbc"
    return key


def normalize_test_key(value) -> str:
    return normalize_key(value)


class TrendSettings(BaseModel):
    """Panels/tests excluded from trendline computation. Display only."""

    disable_panels: Set[str] = Field(default_factory=set)
    disable_tests: Set[str] = Field(default_factory=set)

    @field_validator("disable_panels", mode="before")
    @classmethod
    def _panel_keys(cls, v):
        return {k for k in (normalize_panel_key(x) for x in (v or [])) if k}

    @field_validator("disable_tests", mode="before")
    @classmethod
    def _test_keys(cls, v):
        return {k for k in (normalize_test_key(x) for x in (v or [])) if k}

    def is_trend_disabled(self, panel_name: Optional[str], test_name: Optional[str] = None) -> bool:
        if normalize_panel_key(panel_name) in self.disable_panels:
            return True
        if normalize_test_key(test_name) in self.disable_tests:
            return True
        return False


class DatabaseSettings(BaseModel):
    path: str = Field(default_factory=lambda: os.getenv("VET_TRENDS_DB", DEFAULT_DB_PATH))


class AppConfig(BaseModel):
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    trends: TrendSettings = Field(default_factory=TrendSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)


def load_config(path: str | None = None) -> AppConfig:
    """
    Load configuration from YAML. A missing file at the default location
    yields the defaults; a missing explicitly requested file is an error.
    """
    explicit = path is not None or bool(os.getenv("VET_TRENDS_CONFIG"))
    path = path or os.getenv("VET_TRENDS_CONFIG", DEFAULT_CONFIG_PATH)
    cfg_path = Path(path)
    if not cfg_path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return AppConfig()

    yaml = YAML(typ="safe")
    try:
        with open(cfg_path) as f:
            raw = yaml.load(f) or {}
    except (OSError, YAMLError) as e:
        raise ConfigError(f"Could not read config {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config {path} must be a mapping")
    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e}") from e
