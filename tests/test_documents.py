"""Tests for single-file component splitting and the Vue handler."""

from __future__ import annotations

import pytest

from vuei18n.documents import VueDocumentHandler, detect_handler, reassemble, split_sfc
from vuei18n.errors import ErrorCategory, UnsupportedFileTypeError

COMPONENT = """\
<!-- <template><p>旧</p></template> -->
<template>
  <div>
    <template v-if="ok"><span>你好</span></template>
  </div>
</template>

<script setup>
const a = '取消'
</script>

<script lang="ts">
export default { name: 'Demo' }
</script>

<style scoped>
.a { content: '保存'; }
</style>
"""


class TestSplit:
    def test_nested_templates_are_balanced(self):
        layout = split_sfc(COMPONENT)
        assert layout.template is not None
        assert layout.template.content == (
            "\n  <div>\n"
            '    <template v-if="ok"><span>你好</span></template>\n'
            "  </div>\n"
        )
        assert COMPONENT[layout.template.start:layout.template.end] == layout.template.content

    def test_plain_script_wins_over_setup(self):
        layout = split_sfc(COMPONENT)
        assert layout.script is not None
        assert layout.script.content == "\nexport default { name: 'Demo' }\n"
        assert layout.script.lang == "ts"

    def test_setup_script_is_used_alone(self):
        layout = split_sfc("<script setup lang='ts'>\nconst a = 1\n</script>\n")
        assert layout.script.content == "\nconst a = 1\n"
        assert layout.script.lang == "ts"
        assert layout.template is None

    def test_regions_are_sorted(self):
        source = "<script>\nx\n</script>\n<template><p/></template>"
        layout = split_sfc(source)
        assert [region.content for region in layout.regions()] == ["\nx\n", "<p/>"]

    def test_script_content_is_raw_text(self):
        source = "<script>\nconst html = '<template>';\n</script>"
        assert split_sfc(source).script.content == "\nconst html = '<template>';\n"

    def test_unclosed_block(self):
        assert split_sfc("<template><div>").template is None

    def test_reassemble_keeps_the_rest(self):
        layout = split_sfc(COMPONENT)
        rebuilt = reassemble(COMPONENT, [(layout.template, "X"), (layout.script, "Y")])
        assert "<template>X</template>" in rebuilt
        assert '<script lang="ts">Y</script>' in rebuilt
        assert "const a = '取消'" in rebuilt
        assert rebuilt.endswith("<style scoped>\n.a { content: '保存'; }\n</style>\n")


class TestVueDocumentHandler:
    def test_convert_rewrites_both_regions(self, tmp_path, context):
        path = tmp_path / "Demo.vue"
        path.write_bytes(
            (
                "<template>\r\n  <p>你好</p>\r\n</template>\r\n"
                "<script>\r\nconst a = '取消';\r\n</script>\r\n"
                "<style>\r\n.b { content: '保存'; }\r\n</style>\r\n"
            ).encode("utf-8")
        )
        handler = VueDocumentHandler(path)
        converted = handler.convert(context)
        assert converted == (
            "<template>\r\n  <p>{{ $t('page.hello') }}</p>\r\n</template>\r\n"
            '<script>\r\nconst a = $i18n.t("common.cancel");\r\n</script>\r\n'
            "<style>\r\n.b { content: '保存'; }\r\n</style>\r\n"
        )
        assert handler.changed

        handler.save(path)
        assert path.read_bytes() == converted.encode("utf-8")

    def test_unchanged_document(self, tmp_path, context):
        path = tmp_path / "Plain.vue"
        path.write_text("<template><p>Hello</p></template>\n", encoding="utf-8")
        handler = VueDocumentHandler(path)
        assert handler.convert(context) == handler.original
        assert not handler.changed

    def test_missing_blocks_are_recorded(self, tmp_path, context):
        path = tmp_path / "Empty.vue"
        path.write_text("<style>.a{}</style>\n", encoding="utf-8")
        VueDocumentHandler(path).convert(context)
        assert [record.category for record in context.records] == [ErrorCategory.SOURCE_PARSE]

    def test_script_parse_failure_keeps_template_conversion(self, tmp_path, context):
        path = tmp_path / "Broken.vue"
        path.write_text("<template><p>你好</p></template>\n<script>\nconst = ;\n</script>\n", encoding="utf-8")
        converted = VueDocumentHandler(path).convert(context)
        assert "{{ $t('page.hello') }}" in converted
        assert "\nconst = ;\n" in converted
        assert context.records[0].category is ErrorCategory.SOURCE_PARSE

    def test_custom_functions(self, tmp_path, context):
        path = tmp_path / "Custom.vue"
        path.write_text("<template><p>你好</p></template>\n<script>\nconst a = '你好';\n</script>\n", encoding="utf-8")
        handler = VueDocumentHandler(path, template_function="t", script_function="t", script_quote="'")
        converted = handler.convert(context)
        assert "{{ t('page.hello') }}" in converted
        assert "const a = t('page.hello');" in converted


class TestDetectHandler:
    def test_vue(self, tmp_path):
        path = tmp_path / "A.vue"
        path.write_text("<template></template>", encoding="utf-8")
        kind, handler = detect_handler(path)
        assert kind == "vue"
        assert isinstance(handler, VueDocumentHandler)

    def test_other_suffix(self, tmp_path):
        with pytest.raises(UnsupportedFileTypeError):
            detect_handler(tmp_path / "A.jsx")
