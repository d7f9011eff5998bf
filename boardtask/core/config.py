from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    log_level: str = "WARNING"
    catalog_file: Optional[str] = None


def settings_from_env() -> Settings:
    """Read settings from BOARDTASK_* environment variables."""
    level = (os.getenv("BOARDTASK_LOG_LEVEL", "") or "").strip().upper() or "WARNING"
    catalog_file = (os.getenv("BOARDTASK_CATALOG_FILE", "") or "").strip() or None
    return Settings(log_level=level, catalog_file=catalog_file)


def configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"unknown log level: {level}")
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger("boardtask").setLevel(numeric)
