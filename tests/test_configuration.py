"""Tests for layered converter settings."""

from __future__ import annotations

import pytest

from vuei18n.configuration import ConverterSettings, get_settings, load_settings
from vuei18n.errors import ConfigurationError


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestSettings:
    def test_defaults(self, workdir):
        settings = load_settings()
        assert settings.skip_unmatched is False
        assert settings.match_path is None
        assert settings.report_file == "nomatch.txt"
        assert settings.template_function == "$t"
        assert settings.script_function == "$i18n.t"
        assert settings.script_quote == '"'
        assert settings.dictionary_names == ["zh.js"]

    def test_yaml_file(self, workdir):
        (workdir / "vue-i18n.yaml").write_text(
            "match_path: pda.\nscript_quote: \"'\"\ndictionary_names: [zh.ts, zh.js]\n",
            encoding="utf-8",
        )
        settings = load_settings()
        assert settings.match_path == "pda"
        assert settings.script_quote == "'"
        assert settings.dictionary_names == ["zh.ts", "zh.js"]

    def test_dotenv_beats_yaml(self, workdir):
        (workdir / "vue-i18n.yaml").write_text("report_file: from-yaml.txt\n", encoding="utf-8")
        (workdir / ".env").write_text("VUE_I18N_REPORT_FILE=from-dotenv.txt\n", encoding="utf-8")
        assert load_settings().report_file == "from-dotenv.txt"

    def test_environment_beats_files(self, workdir, monkeypatch):
        (workdir / ".env").write_text("VUE_I18N_SKIP_UNMATCHED=false\n", encoding="utf-8")
        monkeypatch.setenv("VUE_I18N_SKIP_UNMATCHED", "true")
        assert load_settings().skip_unmatched is True

    def test_explicit_values_win(self, workdir, monkeypatch):
        monkeypatch.setenv("VUE_I18N_MATCH_PATH", "order")
        settings = load_settings(match_path="pda", skip_unmatched=None)
        assert settings.match_path == "pda"
        assert settings.skip_unmatched is False

    def test_blank_match_path_means_no_scope(self, workdir):
        assert ConverterSettings(match_path="  ").match_path is None

    def test_invalid_values_are_reported(self, workdir):
        (workdir / "vue-i18n.yaml").write_text("script_quote: '`'\ntemplate_function: ' '\n", encoding="utf-8")
        with pytest.raises(ConfigurationError) as excinfo:
            load_settings()
        message = str(excinfo.value)
        assert message.startswith("Configuration validation errors detected:")
        assert "- script_quote:" in message
        assert "- template_function:" in message

    def test_get_settings_is_cached(self, workdir):
        assert get_settings() is get_settings()
