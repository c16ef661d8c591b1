"""Logging helpers: handler setup, action records and secret masking."""
from __future__ import annotations

import json
import logging
from typing import Any

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""

    root = logging.getLogger()
    root.setLevel(level.upper())
    if not any(getattr(handler, "_patient_room", False) for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
        handler._patient_room = True  # type: ignore[attr-defined]
        root.addHandler(handler)


def mask_secret(secret: str | None) -> str:
    if not secret:
        return ""
    if len(secret) <= 6:
        return "*" * len(secret)
    return f"{secret[:3]}***{secret[-3:]}"


def _safe_dumps(meta: dict[str, Any]) -> str:
    try:
        return json.dumps(meta, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return '"[unserializable]"'


def log_action(logger: logging.Logger, action: str, level: int = logging.INFO, **meta: Any) -> None:
    """Log a flow step as ``<action> <json meta>``."""

    if meta:
        logger.log(level, "%s %s", action, _safe_dumps(meta))
    else:
        logger.log(level, "%s", action)
