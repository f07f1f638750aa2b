"""Core data structures for the Vue i18n converter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class TranslationEntry:
    """A string leaf of the dictionary, keyed by its dotted path."""

    key: str
    text: str


@dataclass(frozen=True)
class SingleKey:
    """The only key referencing a text."""

    key: str

    @property
    def keys(self) -> Tuple[str, ...]:
        return (self.key,)


@dataclass(frozen=True)
class KeyCandidates:
    """Several keys referencing the same text, in first-seen order."""

    keys: Tuple[str, ...]


KeyGroup = Union[SingleKey, KeyCandidates]


@dataclass(frozen=True)
class ResolutionOptions:
    """Options fixed for the duration of one conversion run."""

    skip_unmatched: bool = False
    scope_prefix: Optional[str] = None


@dataclass(frozen=True)
class Resolution:
    """A resolved key plus the punctuation to re-append after the call."""

    key: str
    mark: str = ""


@dataclass(frozen=True)
class TrailingPunctuation:
    """Outcome of splitting one trailing colon off a text."""

    present: bool
    mark: str
    body: str


@dataclass(frozen=True)
class TemplateParam:
    """A `${...}` expression replaced by a positional placeholder."""

    name: str
    expression: str


@dataclass(frozen=True)
class Interpolation:
    """Template text with its expressions swapped for `{paramN}` placeholders."""

    body: str
    params: Tuple[TemplateParam, ...] = field(default_factory=tuple)
    convertible: bool = False
    static_text: str = ""


@dataclass(frozen=True)
class Region:
    """A block of a single-file component, located by character offsets."""

    start: int
    end: int
    content: str
    lang: Optional[str] = None


@dataclass(frozen=True)
class SfcLayout:
    """Top-level template and script blocks found in a component."""

    template: Optional[Region] = None
    script: Optional[Region] = None

    def regions(self) -> Tuple[Region, ...]:
        found = [region for region in (self.template, self.script) if region is not None]
        return tuple(sorted(found, key=lambda region: region.start))
