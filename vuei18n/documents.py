"""Single-file component loading, splitting and reassembly."""

from __future__ import annotations

import pathlib
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from .dictionary import ConversionContext
from .errors import ErrorCategory, UnsupportedFileTypeError
from .markup import DEFAULT_TEMPLATE_FUNCTION, convert_markup_region
from .script import DEFAULT_SCRIPT_FUNCTION, DEFAULT_SCRIPT_QUOTE, convert_code_region
from .structures import Region, SfcLayout


BLOCK_START_PATTERN = re.compile(
    r"<!--[\s\S]*?-->|<(?P<name>[A-Za-z][\w-]*)(?P<attrs>(?:[^>\"']|\"[^\"]*\"|'[^']*')*)>"
)
LANG_PATTERN = re.compile(r"(?:^|\s)lang\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|([^\s>]+))")
SETUP_PATTERN = re.compile(r"(?:^|\s)setup(?=\s|=|/|$)")
RAW_TEXT_BLOCKS = {"script", "style"}


def _block_end(source: str, name: str, content_start: int) -> Optional[Tuple[int, int]]:
    """Locate the closing tag of a top-level block.

    Returns the offset where the content ends and the offset just past the
    closing tag, or None when the block is never closed.
    """

    close_pattern = re.compile(rf"</{name}\s*>", re.IGNORECASE)
    if name.lower() in RAW_TEXT_BLOCKS:
        match = close_pattern.search(source, content_start)
        return (match.start(), match.end()) if match else None

    nested_pattern = re.compile(
        rf"<!--[\s\S]*?-->|<{name}(?=[\s/>])(?:[^>\"']|\"[^\"]*\"|'[^']*')*>|</{name}\s*>",
        re.IGNORECASE,
    )
    depth = 1
    for match in nested_pattern.finditer(source, content_start):
        token = match.group(0)
        if token.startswith("<!--"):
            continue
        if token.startswith("</"):
            depth -= 1
            if depth == 0:
                return match.start(), match.end()
        elif not token.endswith("/>"):
            depth += 1
    return None


def _lang_of(attrs: str) -> Optional[str]:
    match = LANG_PATTERN.search(attrs)
    if not match:
        return None
    return next(value for value in match.groups() if value is not None)


def split_sfc(source: str) -> SfcLayout:
    """Find the top-level `<template>` and `<script>` blocks of a component.

    A plain `<script>` is preferred over `<script setup>`; only one script
    block is reported.
    """

    template: Optional[Region] = None
    script: Optional[Region] = None
    script_setup: Optional[Region] = None

    cursor = 0
    while True:
        match = BLOCK_START_PATTERN.search(source, cursor)
        if match is None:
            break
        name = match.group("name")
        if name is None:
            cursor = match.end()
            continue
        attrs = match.group("attrs") or ""
        if attrs.rstrip().endswith("/"):
            cursor = match.end()
            continue

        content_start = match.end()
        end = _block_end(source, name, content_start)
        if end is None:
            break
        content_end, cursor = end

        region = Region(
            start=content_start,
            end=content_end,
            content=source[content_start:content_end],
            lang=_lang_of(attrs),
        )
        kind = name.lower()
        if kind == "template" and template is None:
            template = region
        elif kind == "script":
            if SETUP_PATTERN.search(attrs):
                script_setup = script_setup or region
            else:
                script = script or region

    return SfcLayout(template=template, script=script or script_setup)


def reassemble(source: str, replacements: List[Tuple[Region, str]]) -> str:
    """Swap region contents for their rewritten text, keeping everything else."""

    pieces: List[str] = []
    cursor = 0
    for region, content in sorted(replacements, key=lambda item: item[0].start):
        pieces.append(source[cursor:region.start])
        pieces.append(content)
        cursor = region.end
    pieces.append(source[cursor:])
    return "".join(pieces)


class BaseDocumentHandler(ABC):
    """Common base class for source document handlers."""

    def __init__(self, source_path: pathlib.Path):
        self.source_path = source_path
        self.original: str = ""
        self.converted: Optional[str] = None

    @abstractmethod
    def convert(self, context: ConversionContext) -> str:
        """Rewrite the convertible text and return the new document."""

    @abstractmethod
    def save(self, destination: pathlib.Path) -> None:
        """Persist the converted document."""

    @property
    def changed(self) -> bool:
        return self.converted is not None and self.converted != self.original


class VueDocumentHandler(BaseDocumentHandler):
    """Converts the template and script blocks of a `.vue` component."""

    def __init__(
        self,
        source_path: pathlib.Path,
        *,
        template_function: str = DEFAULT_TEMPLATE_FUNCTION,
        script_function: str = DEFAULT_SCRIPT_FUNCTION,
        script_quote: str = DEFAULT_SCRIPT_QUOTE,
    ):
        super().__init__(source_path)
        self.template_function = template_function
        self.script_function = script_function
        self.script_quote = script_quote
        with open(source_path, "r", encoding="utf-8", newline="") as handle:
            self.original = handle.read()
        self.layout = split_sfc(self.original)

    def convert(self, context: ConversionContext) -> str:
        replacements: List[Tuple[Region, str]] = []
        if self.layout.template is not None:
            replacements.append(
                (
                    self.layout.template,
                    convert_markup_region(
                        self.layout.template.content,
                        context,
                        function=self.template_function,
                    ),
                )
            )
        if self.layout.script is not None:
            replacements.append(
                (
                    self.layout.script,
                    convert_code_region(
                        self.layout.script.content,
                        context,
                        lang=self.layout.script.lang,
                        function=self.script_function,
                        quote=self.script_quote,
                    ),
                )
            )
        if not replacements:
            context.record_error(
                ErrorCategory.SOURCE_PARSE,
                f"No <template> or <script> block found in {self.source_path.name}.",
            )
        self.converted = reassemble(self.original, replacements)
        return self.converted

    def save(self, destination: pathlib.Path) -> None:
        content = self.converted if self.converted is not None else self.original
        with open(destination, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)


def detect_handler(
    path: pathlib.Path,
    **options: str,
) -> Tuple[str, BaseDocumentHandler]:
    """Return the handler for a source file based on its extension."""

    suffix = path.suffix.lower()
    if suffix == ".vue":
        return "vue", VueDocumentHandler(path, **options)
    raise UnsupportedFileTypeError(
        f"Unsupported file type '{suffix or path.name}'. Please provide a .vue file."
    )
