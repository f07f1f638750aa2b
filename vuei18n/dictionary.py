"""Dictionary index and per-run resolution context."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .errors import ErrorCategory, ErrorRecord
from .structures import (
    KeyCandidates,
    KeyGroup,
    Resolution,
    ResolutionOptions,
    SingleKey,
    TranslationEntry,
)
from .text import detect_trailing_punctuation, is_convertible, normalize

COMMON_PREFIX = "common."


def iter_entries(data: Any, prefix: str = "") -> Iterator[TranslationEntry]:
    """Yield every string leaf of a nested mapping with its dotted key."""

    if not isinstance(data, Mapping):
        return
    for name, value in data.items():
        key = f"{prefix}.{name}" if prefix else str(name)
        if isinstance(value, Mapping):
            yield from iter_entries(value, key)
        elif isinstance(value, str):
            text = detect_trailing_punctuation(value).body
            yield TranslationEntry(key=key, text=text)


def _add_key(group: Optional[KeyGroup], key: str) -> KeyGroup:
    if group is None:
        return SingleKey(key)
    if key in group.keys:
        return group
    return KeyCandidates(group.keys + (key,))


class DictionaryIndex(Mapping):
    """Immutable mapping from normalised text to its candidate keys."""

    def __init__(self, groups: Optional[Dict[str, KeyGroup]] = None) -> None:
        self._groups = MappingProxyType(dict(groups or {}))

    @classmethod
    def empty(cls) -> "DictionaryIndex":
        return cls()

    def __getitem__(self, text: str) -> KeyGroup:
        return self._groups[text]

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    @property
    def entry_count(self) -> int:
        """Total number of keys, counting every candidate of every text."""

        return sum(len(group.keys) for group in self._groups.values())


def build_index(dictionary: Any) -> DictionaryIndex:
    """Flatten a nested dictionary into text -> KeyGroup.

    The first key seen for a text is kept first; a trailing colon on the
    dictionary value is ignored so "标题" and "标题：" share one group.
    """

    groups: Dict[str, KeyGroup] = {}
    for entry in iter_entries(dictionary):
        groups[entry.text] = _add_key(groups.get(entry.text), entry.key)
    return DictionaryIndex(groups)


def key_in_scope(key: str, scope_prefix: Optional[str]) -> bool:
    """Check a key against the active scope; `common.` keys always pass."""

    if not scope_prefix:
        return True
    if key.startswith(COMMON_PREFIX):
        return True
    return key.startswith(scope_prefix + ".")


def select_key(group: KeyGroup, scope_prefix: Optional[str]) -> Optional[str]:
    """Pick the key for a group, or None when the pick falls outside scope.

    Priority for several candidates: a `common.` key, then a key under the
    scope prefix, then the first key seen while flattening.
    """

    if isinstance(group, SingleKey):
        return group.key if key_in_scope(group.key, scope_prefix) else None

    for key in group.keys:
        if key.startswith(COMMON_PREFIX):
            return key
    if scope_prefix:
        for key in group.keys:
            if key.startswith(scope_prefix + "."):
                return key
    first = group.keys[0]
    return first if key_in_scope(first, scope_prefix) else None


class ConversionContext:
    """State of one conversion run, passed to every rewriter explicitly."""

    def __init__(
        self,
        index: Optional[DictionaryIndex] = None,
        options: Optional[ResolutionOptions] = None,
    ) -> None:
        self.index = index if index is not None else DictionaryIndex.empty()
        self.options = options or ResolutionOptions()
        self._unmatched: Dict[str, None] = {}
        self.records: List[ErrorRecord] = []

    def lookup(self, text: str) -> Optional[str]:
        """Return the dictionary key for a text without recording a miss."""

        group = self.index.get(text)
        if group is None:
            return None
        return select_key(group, self.options.scope_prefix)

    def resolve(self, text: str) -> Optional[str]:
        """Return the key for a text, the text itself, or None to skip it."""

        key = self.lookup(text)
        if key is not None:
            return key
        return self._miss(text)

    def _miss(self, text: str) -> Optional[str]:
        self._unmatched.setdefault(text, None)
        if self.options.skip_unmatched:
            return None
        return text

    def convert(self, text: str) -> Optional[Resolution]:
        """Classify, split the trailing colon and resolve one candidate."""

        cleaned = normalize(text)
        if not is_convertible(cleaned):
            return None
        punctuation = detect_trailing_punctuation(cleaned)
        key = self.resolve(punctuation.body)
        if key is None:
            return None
        return Resolution(key=key, mark=punctuation.mark)

    def convert_template(self, body: str, static_text: str) -> Optional[Resolution]:
        """Resolve text whose expressions were replaced by `{paramN}`.

        The placeholder body is looked up first. When it has no entry, the
        static text alone (expressions removed) is tried, so `当前用户：${name}`
        matches an entry for `当前用户` and keeps its colon as the mark. Only a
        miss on both records the placeholder body as unmatched.
        """

        if not is_convertible(static_text):
            return None
        punctuation = detect_trailing_punctuation(normalize(body))
        key = self.lookup(punctuation.body)
        if key is not None:
            return Resolution(key=key, mark=punctuation.mark)

        fallback = detect_trailing_punctuation(normalize(static_text))
        key = self.lookup(fallback.body)
        if key is not None:
            return Resolution(key=key, mark=fallback.mark)

        key = self._miss(punctuation.body)
        if key is None:
            return None
        return Resolution(key=key, mark=punctuation.mark)

    def record_error(
        self,
        category: ErrorCategory,
        message: str,
        details: Optional[str] = None,
    ) -> None:
        self.records.append(ErrorRecord(category=category, message=message, details=details))

    @property
    def unmatched(self) -> Tuple[str, ...]:
        return tuple(self._unmatched)

    def drain_unmatched(self) -> Tuple[str, ...]:
        """Hand over the unmatched texts collected so far and clear them."""

        drained = tuple(self._unmatched)
        self._unmatched.clear()
        return drained

    def reset(self) -> None:
        self._unmatched.clear()
        self.records.clear()
