"""High-level orchestration for component conversion."""

from __future__ import annotations

import difflib
import pathlib
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .dictionary import ConversionContext, DictionaryIndex, build_index
from .documents import detect_handler
from .errors import DictionaryLoadError, ErrorCategory, UnsupportedFileTypeError, VueI18nError
from .locales import DEFAULT_DICTIONARY_NAMES, find_dictionary, load_dictionary
from .markup import DEFAULT_TEMPLATE_FUNCTION
from .report import DEFAULT_REPORT_FILE, write_unmatched_report
from .script import DEFAULT_SCRIPT_FUNCTION, DEFAULT_SCRIPT_QUOTE
from .structures import ResolutionOptions


@dataclass
class ConversionSummary:
    """Report returned after processing a component."""

    input_path: pathlib.Path
    document_type: str
    dictionary_path: Optional[pathlib.Path]
    dictionary_keys: int
    changed: bool
    written: bool
    unmatched: Tuple[str, ...]
    report_path: Optional[pathlib.Path]
    elapsed_seconds: float
    diff: Optional[str] = None
    total_errors: int = 0
    error_messages: List[str] = field(default_factory=list)


class ConversionRunner:
    """Coordinates dictionary loading, rewriting, saving and reporting."""

    def __init__(
        self,
        *,
        input_path: pathlib.Path,
        dictionary_path: Optional[pathlib.Path] = None,
        options: Optional[ResolutionOptions] = None,
        report_path: Optional[pathlib.Path] = None,
        template_function: str = DEFAULT_TEMPLATE_FUNCTION,
        script_function: str = DEFAULT_SCRIPT_FUNCTION,
        script_quote: str = DEFAULT_SCRIPT_QUOTE,
        dictionary_names: Sequence[str] = DEFAULT_DICTIONARY_NAMES,
        dry_run: bool = False,
        show_diff: bool = False,
        verbose: bool = False,
        cwd: Optional[pathlib.Path] = None,
    ) -> None:
        self.input_path = input_path
        self.dictionary_path = dictionary_path
        self.options = options or ResolutionOptions()
        self.cwd = cwd or pathlib.Path.cwd()
        self.report_path = report_path or self.cwd / DEFAULT_REPORT_FILE
        self.template_function = template_function
        self.script_function = script_function
        self.script_quote = script_quote
        self.dictionary_names = tuple(dictionary_names)
        self.dry_run = dry_run
        self.show_diff = show_diff
        self.verbose = verbose

    def run(self) -> ConversionSummary:
        start_time = time.time()

        context = ConversionContext(options=self.options)
        dictionary_path = self._resolve_dictionary_path(context)
        context.index = self._load_index(dictionary_path, context)

        document_type, handler = detect_handler(
            self.input_path,
            template_function=self.template_function,
            script_function=self.script_function,
            script_quote=self.script_quote,
        )
        converted = handler.convert(context)

        written = False
        if handler.changed and not self.dry_run:
            handler.save(self.input_path)
            written = True
            if self.verbose:
                print(f"Wrote converted component to {self.input_path}.")

        unmatched = context.drain_unmatched()
        report_path: Optional[pathlib.Path] = None
        if unmatched and not self.dry_run:
            report_path = self._write_report(unmatched, context)

        diff = None
        if self.show_diff or self.dry_run:
            diff = unified_diff(handler.original, converted, self.input_path)

        return ConversionSummary(
            input_path=self.input_path,
            document_type=document_type,
            dictionary_path=dictionary_path,
            dictionary_keys=context.index.entry_count,
            changed=handler.changed,
            written=written,
            unmatched=unmatched,
            report_path=report_path,
            elapsed_seconds=time.time() - start_time,
            diff=diff,
            total_errors=len(context.records),
            error_messages=[record.message for record in context.records],
        )

    def _write_report(
        self,
        unmatched: Tuple[str, ...],
        context: ConversionContext,
    ) -> Optional[pathlib.Path]:
        try:
            write_unmatched_report(unmatched, self.report_path)
        except OSError as exc:
            context.record_error(
                ErrorCategory.FILE_IO,
                f"Could not append unmatched texts to {self.report_path}: {exc}",
                details=repr(exc),
            )
            return None
        if self.verbose:
            print(f"Appended {len(unmatched)} unmatched texts to {self.report_path}.")
        return self.report_path

    def _resolve_dictionary_path(self, context: ConversionContext) -> Optional[pathlib.Path]:
        if self.dictionary_path is not None:
            path = self.dictionary_path.expanduser().resolve()
            if not path.is_file():
                context.record_error(
                    ErrorCategory.DICTIONARY,
                    f"Dictionary file not found: {self.dictionary_path}. "
                    "Chinese text will be used as the key.",
                )
                return None
            return path

        path = find_dictionary(self.input_path, cwd=self.cwd, names=self.dictionary_names)
        if path is None and self.verbose:
            print(
                f"No {' / '.join(self.dictionary_names)} found near {self.input_path.name}; "
                "Chinese text will be used as the key."
            )
        return path

    def _load_index(
        self,
        dictionary_path: Optional[pathlib.Path],
        context: ConversionContext,
    ) -> DictionaryIndex:
        if dictionary_path is None:
            return DictionaryIndex.empty()
        try:
            index = build_index(load_dictionary(dictionary_path))
        except DictionaryLoadError as exc:
            context.record_error(
                ErrorCategory.DICTIONARY,
                f"Could not load dictionary {dictionary_path}; continuing without it. {exc}",
            )
            return DictionaryIndex.empty()
        if self.verbose:
            print(f"Loaded dictionary {dictionary_path} ({index.entry_count} keys).")
        return index


def unified_diff(original: str, converted: str, path: pathlib.Path) -> str:
    lines = difflib.unified_diff(
        original.splitlines(keepends=True),
        converted.splitlines(keepends=True),
        fromfile=str(path),
        tofile=f"{path} (converted)",
    )
    return "".join(lines)


def validate_input(input_path: pathlib.Path) -> None:
    """Validate that the input is an existing `.vue` file."""

    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")
    if not input_path.is_file():
        raise VueI18nError(f"Input path must be a file: {input_path}")
    if input_path.suffix.lower() != ".vue":
        raise UnsupportedFileTypeError(f"Please provide a .vue file: {input_path}")
