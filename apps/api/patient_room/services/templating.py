"""Server-side rendering of the single page: translations and runtime config."""
from __future__ import annotations

import json
import logging
import re
from html import escape
from html.parser import HTMLParser
from pathlib import Path
from typing import Any, Mapping

from ..core.config import Settings
from .i18n import DEFAULT_LANGUAGE, Translations

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"
INDEX_FILE = STATIC_DIR / "index.html"

I18N_ATTRIBUTE = "data-i18n"
ENV_MARKER = "<!--ENV-->"

VOID_ELEMENTS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
)

_BODY_CLOSE_RE = re.compile(r"</body\s*>", re.IGNORECASE)

logger = logging.getLogger(__name__)


class _TranslationRewriter(HTMLParser):
    """Re-emit a document, swapping the content of ``data-i18n`` elements.

    Markup outside translated elements is written back as parsed. An element
    whose key is unknown, or that is never closed, keeps its original content.
    """

    def __init__(self, table: Mapping[str, str]) -> None:
        super().__init__(convert_charrefs=False)
        self._table = table
        self._out: list[str] = []
        self._target: str | None = None
        self._depth = 0
        self._replacement = ""
        self._skipped: list[str] = []
        self._endtag_start: int | None = None

    def render(self, html: str) -> str:
        self.feed(html)
        self.close()
        if self._target is not None:
            self._out.extend(self._skipped)
        return "".join(self._out)

    def _emit(self, text: str) -> None:
        if self._target is not None:
            self._skipped.append(text)
        else:
            self._out.append(text)

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        raw = self.get_starttag_text() or f"<{tag}>"
        if self._target is not None:
            if tag == self._target:
                self._depth += 1
            self._skipped.append(raw)
            return

        self._out.append(raw)
        key = dict(attrs).get(I18N_ATTRIBUTE)
        if key and key in self._table and tag not in VOID_ELEMENTS:
            self._target = tag
            self._depth = 1
            self._replacement = escape(self._table[key], quote=False)
            self._skipped = []

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._emit(self.get_starttag_text() or f"<{tag} />")

    def parse_endtag(self, i: int) -> int:
        self._endtag_start = i
        try:
            return super().parse_endtag(i)
        finally:
            self._endtag_start = None

    def _endtag_text(self, tag: str) -> str:
        start = self._endtag_start
        if start is not None:
            end = self.rawdata.find(">", start)
            if end != -1:
                return self.rawdata[start:end + 1]
        return f"</{tag}>"

    def handle_endtag(self, tag: str) -> None:
        if self._target is not None and tag == self._target:
            self._depth -= 1
            if self._depth == 0:
                self._out.append(self._replacement)
                self._out.append(self._endtag_text(tag))
                self._target = None
                self._skipped = []
                return
        self._emit(self._endtag_text(tag))

    def handle_data(self, data: str) -> None:
        self._emit(data)

    def handle_entityref(self, name: str) -> None:
        self._emit(f"&{name};")

    def handle_charref(self, name: str) -> None:
        self._emit(f"&#{name};")

    def handle_comment(self, data: str) -> None:
        self._emit(f"<!--{data}-->")

    def handle_decl(self, decl: str) -> None:
        self._emit(f"<!{decl}>")

    def handle_pi(self, data: str) -> None:
        self._emit(f"<?{data}>")

    def unknown_decl(self, data: str) -> None:
        self._emit(f"<![{data}]>")


def translate_html(html: str, table: Mapping[str, str]) -> str:
    """Replace the inner text of every ``data-i18n`` element found in ``table``."""

    if not table:
        return html
    return _TranslationRewriter(table).render(html)


def localize(html: str, lang: str, translations: Translations) -> str:
    table = translations.get(lang) or translations.get(DEFAULT_LANGUAGE)
    if not table:
        logger.warning("Translations for language '%s' not found, serving untranslated page.", lang)
        return html
    return translate_html(html, table)


def config_script(config: Mapping[str, Any]) -> str:
    payload = json.dumps(config, ensure_ascii=False).replace("</", "<\\/")
    return f"<script>window.APP_CONFIG = {payload};</script>"


def inject_env_config(html: str, config: Mapping[str, Any]) -> str:
    """Insert the runtime config at ``<!--ENV-->`` or right before ``</body>``."""

    script = config_script(config)
    if ENV_MARKER in html:
        return html.replace(ENV_MARKER, script, 1)

    closing = None
    for closing in _BODY_CLOSE_RE.finditer(html):
        pass
    if closing is None:
        return f"{html}{script}\n"
    return f"{html[:closing.start()]}{script}\n{html[closing.start():]}"


def frontend_config(settings: Settings, lang: str = DEFAULT_LANGUAGE) -> dict[str, Any]:
    """Browser-visible settings; never includes credentials."""

    return {
        "SERVER_CONFIGURED": settings.server_configured,
        "CONF_OWNER_TRUECONF_ID": settings.conf_owner_trueconf_id,
        "CONF_TOPIC_TEMPLATE": settings.conf_topic_template,
        "CURRENT_LANGUAGE": lang,
    }


def render_index(lang: str, translations: Translations, settings: Settings, index_file: Path = INDEX_FILE) -> str:
    html = index_file.read_text(encoding="utf-8")
    return inject_env_config(localize(html, lang, translations), frontend_config(settings, lang))
