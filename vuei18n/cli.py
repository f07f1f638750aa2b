"""Command line interface for the Vue i18n converter."""

from __future__ import annotations

import argparse
import pathlib
import sys
from typing import Iterable, List, Optional, Tuple

from .configuration import ConverterSettings, get_settings, load_settings
from .converter import ConversionRunner, ConversionSummary, validate_input
from .errors import ConfigurationError, UnsupportedFileTypeError, VueI18nError
from .locales import DICTIONARY_SUFFIXES
from .structures import ResolutionOptions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vue-i18n-convert",
        description=(
            "Replace Chinese text in Vue single-file components with vue-i18n lookups, "
            "using the keys of a zh.js dictionary."
        ),
        epilog=(
            "examples:\n"
            "  vue-i18n-convert ./src/components/HelloWorld.vue\n"
            "  vue-i18n-convert ./src/components/HelloWorld.vue ./locales/zh.js\n"
            "  vue-i18n-convert ./src/views/*.vue --skip-unmatched\n"
            "  vue-i18n-convert ./src/components/HelloWorld.vue -mp pda.barcode"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help="One or more .vue files, optionally followed by the zh.js dictionary.",
    )
    parser.add_argument(
        "-d",
        "--dictionary",
        help="Dictionary file (.js, .mjs, .cjs, .ts or .json). Searched near each file when omitted.",
    )
    parser.add_argument(
        "-s",
        "--skip-unmatched",
        action="store_true",
        default=None,
        help="Leave text without a dictionary key unconverted (default: use the text as the key).",
    )
    parser.add_argument(
        "-mp",
        "--match-path",
        metavar="PREFIX",
        help="Only accept keys under this prefix, e.g. 'pda' or 'pda.barcode'. common.* keys always match.",
    )
    parser.add_argument(
        "--report-file",
        help="File that unmatched texts are appended to (default: nomatch.txt).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without writing any file.",
    )
    parser.add_argument(
        "--diff",
        action="store_true",
        help="Print a unified diff of each converted file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information.",
    )
    return parser


def split_paths(paths: Iterable[str]) -> Tuple[List[pathlib.Path], Optional[pathlib.Path]]:
    """Separate component inputs from a positional dictionary argument."""

    inputs: List[pathlib.Path] = []
    dictionary: Optional[pathlib.Path] = None
    for raw in paths:
        path = pathlib.Path(raw)
        suffix = path.suffix.lower()
        if suffix in DICTIONARY_SUFFIXES:
            if dictionary is not None:
                raise VueI18nError("Only one dictionary file can be given.")
            dictionary = path
        elif suffix == ".vue":
            inputs.append(path)
        else:
            raise UnsupportedFileTypeError(
                f"Cannot tell what '{raw}' is. Pass .vue components and one .js/.ts/.json dictionary."
            )
    return inputs, dictionary


def resolve_settings(args: argparse.Namespace) -> ConverterSettings:
    overrides = {
        "skip_unmatched": args.skip_unmatched,
        "match_path": args.match_path,
        "report_file": args.report_file,
    }
    if all(value is None for value in overrides.values()):
        return get_settings()
    return load_settings(**overrides)


def execute_conversion(
    *,
    input_file: pathlib.Path,
    dictionary_file: Optional[pathlib.Path],
    settings: ConverterSettings,
    dry_run: bool,
    show_diff: bool,
    verbose: bool,
) -> tuple[int, ConversionSummary | None, str | None]:
    """Convert one component and return the exit code, summary, and message."""

    input_path = input_file.expanduser().resolve()
    try:
        validate_input(input_path)
    except FileNotFoundError as exc:
        return 1, None, str(exc)
    except VueI18nError as exc:
        return 1, None, str(exc)

    if verbose:
        print(f"\nProcessing {input_path}")

    runner = ConversionRunner(
        input_path=input_path,
        dictionary_path=dictionary_file,
        options=ResolutionOptions(
            skip_unmatched=settings.skip_unmatched,
            scope_prefix=settings.match_path,
        ),
        report_path=pathlib.Path(settings.report_file).expanduser().resolve(),
        template_function=settings.template_function,
        script_function=settings.script_function,
        script_quote=settings.script_quote,
        dictionary_names=settings.dictionary_names,
        dry_run=dry_run,
        show_diff=show_diff,
        verbose=verbose,
    )

    try:
        summary = runner.run()
    except VueI18nError as exc:
        return 1, None, str(exc)
    except OSError as exc:
        return 1, None, f"Could not read or write {input_path}: {exc}"
    except KeyboardInterrupt:
        return 2, None, "Conversion interrupted by user."
    except Exception as exc:  # pragma: no cover
        error_message = (
            f"{exc}\n"
            "An unexpected error occurred. Please rerun with --verbose for more details."
        )
        return 1, None, error_message

    return 0, summary, None


def print_summary(summary: ConversionSummary, dry_run: bool = False) -> None:
    """Output a short report once a component is processed."""

    if dry_run:
        state = "would change" if summary.changed else "no changes"
    elif summary.written:
        state = "converted"
    else:
        state = "no changes"
    print(f"\n{summary.input_path}: {state}")
    if summary.dictionary_path is not None:
        print(f"  Dictionary:   {summary.dictionary_path} ({summary.dictionary_keys} keys)")
    else:
        print("  Dictionary:   none (Chinese text used as the key)")
    print(f"  Unmatched:    {len(summary.unmatched)}")
    if summary.report_path is not None:
        print(f"  Report:       {summary.report_path}")
    print(f"  Elapsed time: {summary.elapsed_seconds:.2f} seconds")
    if summary.total_errors:
        print("  Notes:")
        for message in summary.error_messages:
            print(f"    - {message}")
    if summary.diff:
        print()
        print(summary.diff, end="" if summary.diff.endswith("\n") else "\n")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if not args.paths:
        parser.print_help()
        return 0

    try:
        inputs, dictionary = split_paths(args.paths)
    except VueI18nError as exc:
        print(exc)
        return 1
    if args.dictionary:
        if dictionary is not None:
            print("Give the dictionary either as a path argument or with --dictionary, not both.")
            return 1
        dictionary = pathlib.Path(args.dictionary)
    if not inputs:
        print("No .vue file given.")
        return 1

    try:
        settings = resolve_settings(args)
    except ConfigurationError as exc:
        print(exc)
        return 1

    exit_code = 0
    for input_file in inputs:
        code, summary, message = execute_conversion(
            input_file=input_file,
            dictionary_file=dictionary,
            settings=settings,
            dry_run=args.dry_run,
            show_diff=args.diff,
            verbose=args.verbose,
        )
        if message:
            print(f"{input_file}: {message}")
        if summary:
            print_summary(summary, dry_run=args.dry_run)
        exit_code = max(exit_code, code)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
