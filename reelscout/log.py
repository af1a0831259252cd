"""Logging setup.

The application logs through loguru. ``configure`` replaces the default
stderr sink with one at the requested level and, when the generation
exchange log is enabled, adds a JSON-lines file sink that only receives
records bound with ``channel="generation"``.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

GENERATION_CHANNEL = "generation"

TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str) -> bool:
    value = os.environ.get(name)
    if not value:
        return False
    return value.strip().lower() in TRUTHY


def generation_log_path() -> Path:
    """Resolve the file the generation exchange log is appended to."""
    base_dir = Path(os.environ.get("API_LOG_DIR") or Path.cwd() / ".logs")
    configured = os.environ.get("API_LOG_OPENAI_FILE")
    if not configured:
        return base_dir / "openai.log"
    path = Path(configured)
    return path if path.is_absolute() else base_dir / path


def configure(level: Optional[str] = None) -> None:
    level = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        filter=lambda record: record["extra"].get("channel") != GENERATION_CHANNEL,
    )
    if env_flag("API_LOG_OPENAI"):
        path = generation_log_path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning(f"[Log] Cannot create generation log directory {path.parent}: {exc}")
            return
        logger.add(
            str(path),
            level="INFO",
            format="{message}",
            filter=lambda record: record["extra"].get("channel") == GENERATION_CHANNEL,
            catch=True,
        )
        logger.info(f"[Log] Generation exchanges are logged to {path}")
