"""Tests for the command line interface."""

from __future__ import annotations

import pytest

from vuei18n.cli import build_parser, main, split_paths
from vuei18n.errors import UnsupportedFileTypeError, VueI18nError


@pytest.fixture
def component(project_dir):
    return project_dir / "src" / "components" / "Demo.vue"


class TestParser:
    def test_short_flags(self):
        args = build_parser().parse_args(["a.vue", "-s", "-mp", "pda.barcode", "-v"])
        assert args.paths == ["a.vue"]
        assert args.skip_unmatched is True
        assert args.match_path == "pda.barcode"
        assert args.verbose

    def test_skip_defaults_to_unset(self):
        assert build_parser().parse_args(["a.vue"]).skip_unmatched is None

    def test_split_paths(self):
        inputs, dictionary = split_paths(["a.vue", "locales/zh.js", "b.VUE"])
        assert [str(path) for path in inputs] == ["a.vue", "b.VUE"]
        assert str(dictionary) == "locales/zh.js"

    def test_split_paths_rejects_unknown(self):
        with pytest.raises(UnsupportedFileTypeError):
            split_paths(["a.vue", "notes.txt"])

    def test_split_paths_rejects_two_dictionaries(self):
        with pytest.raises(VueI18nError):
            split_paths(["a.vue", "zh.js", "zh.json"])


class TestMain:
    def test_no_arguments_prints_usage(self, capsys):
        assert main([]) == 0
        assert "usage: vue-i18n-convert" in capsys.readouterr().out

    def test_converts_with_positional_dictionary(self, project_dir, component, capsys):
        assert main([str(component), str(project_dir / "zh.js")]) == 0
        assert "{{ $t('page.hello') }}" in component.read_text(encoding="utf-8")
        output = capsys.readouterr().out
        assert "converted" in output
        assert "Unmatched:    1" in output
        assert (project_dir / "nomatch.txt").exists()

    def test_match_path(self, project_dir, component):
        assert main([str(component), "-mp", "pda"]) == 0
        content = component.read_text(encoding="utf-8")
        assert "{{ $t('保存') }}" in content
        assert "{{ $t('common.title') + '：' }}" in content
        report = (project_dir / "nomatch.txt").read_text(encoding="utf-8")
        assert "'保存'" in report and "'你好'" in report

    def test_skip_unmatched(self, project_dir, component):
        assert main([str(component), "--skip-unmatched"]) == 0
        assert "<p>新功能</p>" in component.read_text(encoding="utf-8")

    def test_dry_run_with_diff(self, project_dir, component, capsys):
        before = component.read_text(encoding="utf-8")
        assert main([str(component), "--dry-run"]) == 0
        assert component.read_text(encoding="utf-8") == before
        output = capsys.readouterr().out
        assert "would change" in output
        assert "+++ " in output

    def test_failure_does_not_stop_other_files(self, project_dir, component, capsys):
        assert main([str(project_dir / "missing.vue"), str(component)]) == 1
        output = capsys.readouterr().out
        assert "Input file not found" in output
        assert "{{ $t('page.hello') }}" in component.read_text(encoding="utf-8")

    def test_unknown_argument_type(self, project_dir, capsys):
        assert main(["notes.txt"]) == 1
        assert "Cannot tell what 'notes.txt' is" in capsys.readouterr().out

    def test_dictionary_given_twice(self, project_dir, component):
        assert main([str(component), "zh.js", "-d", "zh.js"]) == 1

    def test_dictionary_without_component(self, project_dir, capsys):
        assert main(["zh.js"]) == 1
        assert "No .vue file given." in capsys.readouterr().out

    def test_configuration_from_yaml(self, project_dir, component):
        (project_dir / "vue-i18n.yaml").write_text(
            "template_function: t\nscript_function: i18n.global.t\nreport_file: reports/missing.txt\n",
            encoding="utf-8",
        )
        assert main([str(component)]) == 0
        content = component.read_text(encoding="utf-8")
        assert "{{ t('page.hello') }}" in content
        assert 'i18n.global.t("common.confirm")' in content
        assert (project_dir / "reports" / "missing.txt").exists()

    def test_invalid_configuration(self, project_dir, component, capsys):
        (project_dir / "vue-i18n.yaml").write_text("script_quote: x\n", encoding="utf-8")
        assert main([str(component)]) == 1
        assert "Configuration validation errors detected" in capsys.readouterr().out
