"""Translation dictionaries loaded once from the bundled locale files."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Mapping

LOCALES_DIR = Path(__file__).resolve().parent.parent / "locales"
DEFAULT_LANGUAGE = "en"

Translations = Mapping[str, Mapping[str, str]]

logger = logging.getLogger(__name__)


def load_translations(directory: Path = LOCALES_DIR) -> dict[str, dict[str, str]]:
    """Read every ``<locale>.json`` file in ``directory``."""

    locales: dict[str, dict[str, str]] = {}
    if not directory.is_dir():
        logger.warning("Locales directory %s not found, localization is disabled.", directory)
        return locales

    for path in sorted(directory.glob("*.json")):
        with path.open(encoding="utf-8") as handle:
            table = json.load(handle)
        if not isinstance(table, dict):
            logger.warning("Skipping %s: expected a JSON object", path.name)
            continue
        locales[path.stem] = {str(key): str(value) for key, value in table.items()}

    if not locales:
        logger.warning("No locale files in %s, localization is disabled.", directory)
    return locales


def resolve_language(path: str, query_lang: str | None, available: Translations) -> str:
    """Pick the locale from the first path segment, then ``?lang=``, then ``en``."""

    segment = path.strip("/").split("/", 1)[0]
    if segment and segment in available:
        return segment
    if query_lang and query_lang in available:
        return query_lang
    return DEFAULT_LANGUAGE


translations = load_translations()
logger.info("Loaded translations: %s", ", ".join(translations) or "none")
