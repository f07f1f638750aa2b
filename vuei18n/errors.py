"""Error definitions for the Vue i18n converter."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ErrorCategory(Enum):
    """Categorises handled errors for the run summary."""

    FILE_IO = auto()
    DICTIONARY = auto()
    SOURCE_PARSE = auto()
    OTHER = auto()


class VueI18nError(Exception):
    """Base exception for all custom errors."""


class UnsupportedFileTypeError(VueI18nError):
    """Raised when a given file extension is not supported."""


class DictionaryLoadError(VueI18nError):
    """Raised when a translation dictionary cannot be read or evaluated."""


class SourceParseError(VueI18nError):
    """Raised when a code region cannot be parsed into a syntax tree."""


class ConfigurationError(VueI18nError):
    """Raised when the converter settings are invalid."""


@dataclass
class ErrorRecord:
    """Stores context for a handled error."""

    category: ErrorCategory
    message: str
    details: Optional[str] = None
