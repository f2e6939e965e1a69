"""Structured logging configuration built on top of loguru."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger


def configure_logging(log_dir: Path | str | None = None, level: str = "INFO") -> None:
    """Configure Loguru sinks for console and optional file output."""

    logger.remove()
    logger.configure(extra={"component": "app"})

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[component]}</cyan> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stderr,
        format=log_format,
        colorize=True,
        level=level,
    )

    if log_dir is None:
        return

    path = Path(log_dir)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.warning("File logging disabled; cannot create {}: {}", path, exc)
        return
    logger.add(
        path / "ui_inventory.log",
        rotation="1 day",
        retention="14 days",
        compression="gz",
        level=level,
        backtrace=False,
        diagnose=False,
        format=log_format,
    )


def get_logger(name: Optional[str] = None):
    """Return a child logger with contextualized name."""

    if name:
        return logger.bind(component=name)
    return logger
