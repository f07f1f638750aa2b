"""Shared fixtures for the converter tests."""

from __future__ import annotations

import copy
import os
import pathlib
from typing import Callable, Optional

import pytest

from vuei18n.configuration import get_settings
from vuei18n.dictionary import ConversionContext, DictionaryIndex, build_index
from vuei18n.structures import ResolutionOptions

SAMPLE_DICTIONARY = {
    "common": {
        "confirm": "确定",
        "cancel": "取消",
        "title": "标题：",
    },
    "user": {
        "login": "登录",
        "name": "用户名",
        "current": "当前用户{param1}",
        "total": "共{param1}条",
    },
    "pda": {
        "barcode": {"scan": "扫描条码"},
        "delete": "删除",
    },
    "order": {
        "delete": "删除",
        "save": "保存",
    },
    "page": {"hello": "你好"},
}

SAMPLE_ZH_JS = """\
// Chinese messages
export default {
  common: {
    confirm: '确定',
    cancel: '取消',
    title: '标题：',
  },
  user: {
    login: '登录',
    name: '用户名',
    current: '当前用户{param1}',
    total: '共{param1}条',
  },
  pda: {
    barcode: { scan: '扫描条码' },
    delete: '删除',
  },
  order: {
    delete: '删除',
    save: '保存',
  },
  page: { hello: '你好' },
}
"""

SAMPLE_COMPONENT = """\
<template>
  <div class="page">
    <h1>你好</h1>
    <el-input placeholder="用户名" v-model="name" />
    <span>标题：</span>
    <el-button @click="save">保存</el-button>
    <p>新功能</p>
  </div>
</template>

<script>
export default {
  methods: {
    save() {
      console.log('保存中');
      this.$message.success('确定');
    },
  },
};
</script>

<style scoped>
.page { color: red; }
</style>
"""


@pytest.fixture
def sample_index() -> DictionaryIndex:
    return build_index(SAMPLE_DICTIONARY)


@pytest.fixture
def make_context(sample_index: DictionaryIndex) -> Callable[..., ConversionContext]:
    """Factory for contexts over the sample dictionary."""

    def _make(skip_unmatched: bool = False, scope_prefix: Optional[str] = None) -> ConversionContext:
        return ConversionContext(
            sample_index,
            ResolutionOptions(skip_unmatched=skip_unmatched, scope_prefix=scope_prefix),
        )

    return _make


@pytest.fixture
def context(make_context: Callable[..., ConversionContext]) -> ConversionContext:
    return make_context()


@pytest.fixture
def project_dir(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> pathlib.Path:
    """A working directory holding a component and its zh.js dictionary."""

    (tmp_path / "zh.js").write_text(SAMPLE_ZH_JS, encoding="utf-8")
    components = tmp_path / "src" / "components"
    components.mkdir(parents=True)
    (components / "Demo.vue").write_text(SAMPLE_COMPONENT, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep configuration from the environment out of every test."""

    for name in list(os.environ):
        if name.startswith("VUE_I18N_"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_dictionary() -> dict:
    return copy.deepcopy(SAMPLE_DICTIONARY)


@pytest.fixture
def sample_zh_js() -> str:
    return SAMPLE_ZH_JS
