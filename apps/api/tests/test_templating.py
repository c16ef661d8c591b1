"""Tests for HTML localization and runtime config injection."""
from __future__ import annotations

import json
import re

import pytest

from patient_room.core.config import Settings
from patient_room.services import i18n, templating

CONFIG_RE = re.compile(r"<script>window\.APP_CONFIG = (.*?);</script>", re.DOTALL)


def _injected_config(html: str) -> dict:
    match = CONFIG_RE.search(html)
    assert match, html
    return json.loads(match.group(1))


def test_inject_replaces_marker() -> None:
    html = "<html><body><p>x</p><!--ENV--><script src='a.js'></script></body></html>"

    result = templating.inject_env_config(html, {"a": 1})

    assert "<!--ENV-->" not in result
    assert _injected_config(result) == {"a": 1}
    assert result.index("APP_CONFIG") < result.index("a.js")


def test_inject_without_marker_goes_before_body_close() -> None:
    html = "<html><body><p>x</p></BODY></html>"

    result = templating.inject_env_config(html, {"a": 1})

    assert _injected_config(result) == {"a": 1}
    assert result.index("APP_CONFIG") < result.index("</BODY>")
    assert result.endswith("</BODY></html>")


def test_inject_without_body_appends() -> None:
    result = templating.inject_env_config("<p>fragment</p>", {"a": 1})

    assert result.startswith("<p>fragment</p><script>")
    assert _injected_config(result) == {"a": 1}


def test_injected_json_cannot_close_the_script() -> None:
    config = {"CONF_TOPIC_TEMPLATE": "</script><script>alert(1)</script>"}

    result = templating.inject_env_config("<body></body>", config)

    assert result.count("</script>") == 1
    assert _injected_config(result) == config


def test_translate_replaces_inner_text_of_known_keys() -> None:
    html = (
        '<title data-i18n="title">Old</title>'
        '<button class="b" data-i18n="go"><span>Go</span> now</button>'
        '<p data-i18n="missing">Keep me</p>'
        '<p>plain &amp; simple</p>'
    )

    result = templating.translate_html(html, {"title": "Новый", "go": "Create <room>"})

    assert '<title data-i18n="title">Новый</title>' in result
    assert '<button class="b" data-i18n="go">Create &lt;room&gt;</button>' in result
    assert '<p data-i18n="missing">Keep me</p>' in result
    assert "<p>plain &amp; simple</p>" in result


def test_translate_handles_nested_same_tag() -> None:
    html = '<div data-i18n="k"><div>inner</div>tail</div><div>after</div>'

    assert templating.translate_html(html, {"k": "T"}) == '<div data-i18n="k">T</div><div>after</div>'


def test_translate_leaves_unclosed_element_untouched() -> None:
    html = '<body><p data-i18n="k">never closed'

    assert templating.translate_html(html, {"k": "T"}) == html


def test_translate_preserves_markers_scripts_and_doctype() -> None:
    html = (
        "<!DOCTYPE html><html><head><meta charset=\"UTF-8\" /></head><body>"
        "<!--ENV--><script>if (a < b && c) { x(); }</script><br/></body></html>"
    )

    assert templating.translate_html(html, {"k": "T"}) == html


def test_localize_falls_back_to_english() -> None:
    translations = {"en": {"k": "Hello"}}

    assert templating.localize('<p data-i18n="k">x</p>', "de", translations) == '<p data-i18n="k">Hello</p>'
    assert templating.localize('<p data-i18n="k">x</p>', "de", {}) == '<p data-i18n="k">x</p>'


def test_frontend_config_has_no_secrets() -> None:
    settings = Settings(
        _env_file=None,
        server="video.example.com",
        client_id="id",
        client_secret="top-secret",
        conf_owner_trueconf_id="owner",
    )

    config = templating.frontend_config(settings, "ru")

    assert config == {
        "SERVER_CONFIGURED": True,
        "CONF_OWNER_TRUECONF_ID": "owner",
        "CONF_TOPIC_TEMPLATE": "Meeting with patient {{name}}",
        "CURRENT_LANGUAGE": "ru",
    }
    assert "top-secret" not in json.dumps(config)


def test_load_translations(tmp_path) -> None:
    (tmp_path / "en.json").write_text('{"a": "A"}', encoding="utf-8")
    (tmp_path / "ru.json").write_text('{"a": "А"}', encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    assert i18n.load_translations(tmp_path) == {"en": {"a": "A"}, "ru": {"a": "А"}}


def test_load_translations_missing_directory(tmp_path) -> None:
    assert i18n.load_translations(tmp_path / "absent") == {}


def test_bundled_locales_share_keys() -> None:
    assert set(i18n.translations) >= {"en", "ru"}
    assert set(i18n.translations["en"]) == set(i18n.translations["ru"])


@pytest.mark.parametrize(
    ("path", "query", "expected"),
    [
        ("/ru", None, "ru"),
        ("/en/", "ru", "en"),
        ("/", "ru", "ru"),
        ("/", "de", "en"),
        ("/de", None, "en"),
        ("/", None, "en"),
    ],
)
def test_resolve_language(path, query, expected) -> None:
    assert i18n.resolve_language(path, query, {"en": {}, "ru": {}}) == expected


def test_translate_keeps_end_tag_text_verbatim() -> None:
    html = '<DIV class="x">keep</DIV ><P data-i18n="k">old</P\n>'

    assert templating.translate_html(html, {"k": "new"}) == '<DIV class="x">keep</DIV ><P data-i18n="k">new</P\n>'
