from __future__ import annotations

from pathlib import Path

from loguru import logger

from ui_inventory.logging_utils import configure_logging, get_logger


def test_file_sink_receives_component(tmp_path: Path) -> None:
    configure_logging(tmp_path / "logs", "DEBUG")
    get_logger("store").info("hello from test")
    logger.complete()
    content = (tmp_path / "logs" / "ui_inventory.log").read_text(encoding="utf-8")
    assert "hello from test" in content
    assert "store" in content
    configure_logging(None, "INFO")


def test_unwritable_log_dir_disables_file_sink(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    configure_logging(blocker / "logs", "INFO")
    get_logger("x").info("still logging")
    assert not (blocker / "logs").exists()
    configure_logging(None, "INFO")
