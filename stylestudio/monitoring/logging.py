"""Logging configuration module."""

from __future__ import annotations

import logging

from stylestudio.config.settings import get_settings


def configure_logging(level: str | None = None) -> None:
    """Configure root logger according to project conventions."""

    desired = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, desired, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
