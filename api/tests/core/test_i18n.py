"""Unit tests for core.i18n (message catalogs and language resolution)."""

import json

import pytest

from core.config import clear_settings_cache
from core.i18n import clear_catalog_cache, localize_params, resolve_language, t


@pytest.mark.unit
class TestResolveLanguage:
    def test_first_supported_candidate_wins(self):
        assert resolve_language("vi", "en") == "vi"

    def test_skips_unsupported_and_empty(self):
        assert resolve_language(None, "", "fr", "vi") == "vi"

    def test_parses_accept_language_header(self):
        assert resolve_language(None, "fr-FR,vi-VN;q=0.9,en;q=0.8") == "vi"

    def test_falls_back_to_default(self):
        assert resolve_language("fr", "de-DE") == "en"


@pytest.mark.unit
class TestTranslate:
    def test_formats_params(self):
        assert t("errors.not_found", "en", entity="Topic") == "Topic not found"

    def test_translates_into_requested_language(self):
        assert t("main.entity.product", "vi") == "Sản phẩm"

    def test_unknown_key_returns_key(self):
        assert t("errors.no_such_message", "vi") == "errors.no_such_message"

    def test_missing_param_returns_template(self):
        assert t("errors.not_found", "en") == "{entity} not found"

    def test_falls_back_to_default_language(self, tmp_path, monkeypatch):
        (tmp_path / "en.json").write_text(
            json.dumps({"errors": {"only_en": "English only"}}), encoding="utf-8"
        )
        (tmp_path / "vi.json").write_text(json.dumps({}), encoding="utf-8")
        monkeypatch.setenv("LOCALES_DIR", str(tmp_path))
        clear_settings_cache()
        clear_catalog_cache()

        assert t("errors.only_en", "vi") == "English only"


@pytest.mark.unit
class TestLocalizeParams:
    def test_translates_message_key_values_only(self):
        params = {"entity": "main.entity.category", "name": "Lego City", "count": 2}

        assert localize_params(params, "vi") == {
            "entity": "Danh mục",
            "name": "Lego City",
            "count": 2,
        }
