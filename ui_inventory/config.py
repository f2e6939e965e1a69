"""Configuration loading and validation using Pydantic models."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .derive.signature import GroupingMode


class DatabaseConfig(BaseModel):
    url: str = Field(
        "sqlite:///./ui_inventory.db",
        description="SQLAlchemy URL for the capture record store.",
    )
    echo: bool = False


class ViewerConfig(BaseModel):
    grouping_mode: GroupingMode = Field(
        GroupingMode.NAME_ONLY,
        description="Grouping mode applied when a viewer session starts.",
    )
    capture_list_limit: int = Field(
        300,
        ge=1,
        description="Maximum captures fetched per session listing.",
    )
    include_drafts: bool = Field(
        False,
        description="Include draft captures in project-scoped listings.",
    )


class ExportConfig(BaseModel):
    batch_size: int = Field(50, ge=1, description="Captures fetched per export batch.")
    yield_every: int = Field(
        10,
        ge=1,
        description="Yield to the event loop after this many single-record fetches.",
    )
    include_viewer_derived: bool = Field(
        False,
        description="Annotate exported records with group/variant keys.",
    )
    output_dir: Path = Field(Path("./exports"))


class LoggingConfig(BaseModel):
    level: str = Field("INFO")
    log_dir: Optional[Path] = None

    @field_validator("level")
    @classmethod
    def normalize_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


class AppConfig(BaseModel):
    database: DatabaseConfig = DatabaseConfig()
    viewer: ViewerConfig = ViewerConfig()
    export: ExportConfig = ExportConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: Path | str) -> AppConfig:
    """Load YAML configuration from disk; a missing file yields defaults."""

    config_path = Path(path)
    if not config_path.exists():
        return AppConfig()
    with config_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping")
    return AppConfig.model_validate(data)
