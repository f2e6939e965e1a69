from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from ui_inventory.config import AppConfig, load_config
from ui_inventory.derive.signature import GroupingMode


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "absent.yml")
    assert config == AppConfig()
    assert config.viewer.grouping_mode is GroupingMode.NAME_ONLY
    assert config.viewer.capture_list_limit == 300
    assert config.export.batch_size == 50
    assert config.export.yield_every == 10


def test_yaml_overrides(tmp_path: Path) -> None:
    path = tmp_path / "config.yml"
    path.write_text(
        "viewer:\n"
        "  grouping_mode: nameTypePrimitives\n"
        "export:\n"
        "  batch_size: 10\n"
        "  include_viewer_derived: true\n"
        "logging:\n"
        "  level: debug\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.viewer.grouping_mode is GroupingMode.NAME_TYPE_PRIMITIVES
    assert config.export.batch_size == 10
    assert config.export.include_viewer_derived is True
    assert config.logging.level == "DEBUG"


def test_invalid_values_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("export:\n  batch_size: 0\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_config(path)

    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
