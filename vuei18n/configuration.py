"""Layered configuration for the converter.

Values are read, highest priority first, from explicit keyword arguments,
`VUE_I18N_*` environment variables, a `.env` file and a `vue-i18n.yaml`
file, both looked up in the working directory.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, List, Literal, Optional, Sequence, Tuple, Type

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .errors import ConfigurationError

CONFIG_FILE_NAME = "vue-i18n.yaml"


class ConverterSettings(BaseSettings):
    """Schema describing all supported configuration options."""

    model_config = SettingsConfigDict(
        env_prefix="VUE_I18N_",
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file=CONFIG_FILE_NAME,
        yaml_file_encoding="utf-8",
        extra="ignore",
    )

    skip_unmatched: bool = Field(
        default=False,
        description="Leave texts without a dictionary key unconverted.",
    )
    match_path: Optional[str] = Field(
        default=None,
        description="Only accept keys under this dotted prefix (common.* always passes).",
    )
    report_file: str = Field(
        default="nomatch.txt",
        description="File the unmatched texts are appended to.",
    )
    template_function: str = Field(default="$t", description="Lookup function used in templates.")
    script_function: str = Field(default="$i18n.t", description="Lookup function used in scripts.")
    script_quote: Literal['"', "'"] = Field(
        default='"',
        description="Quote character for keys emitted into scripts.",
    )
    dictionary_names: List[str] = Field(
        default_factory=lambda: ["zh.js"],
        description="File names probed when no dictionary is given.",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @field_validator("match_path", mode="before")
    @classmethod
    def _normalise_match_path(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().strip(".")
            return value or None
        return value

    @field_validator("template_function", "script_function")
    @classmethod
    def _require_function_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must name a function, e.g. $t")
        return value

    @field_validator("dictionary_names")
    @classmethod
    def _require_dictionary_names(cls, value: List[str]) -> List[str]:
        names = [name.strip() for name in value if name and name.strip()]
        if not names:
            raise ValueError("at least one dictionary file name is required")
        return names


def _format_validation_errors(entries: Sequence[Any]) -> str:
    details: list[str] = []
    for entry in entries:
        path = entry.get("loc") or []
        if isinstance(path, (list, tuple)):
            location = ".".join(str(part) for part in path if part not in {None, ""})
        else:
            location = str(path)
        message = str(entry.get("msg") or "Invalid value")
        prefix = f"{location}: " if location else ""
        details.append(f"- {prefix}{message}")
    return "Configuration validation errors detected:\n" + "\n".join(details)


def load_settings(**overrides: Any) -> ConverterSettings:
    """Build settings, letting explicit values win over every file source."""

    values = {name: value for name, value in overrides.items() if value is not None}
    try:
        return ConverterSettings(**values)
    except ValidationError as exc:
        raise ConfigurationError(_format_validation_errors(exc.errors())) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Configuration file {CONFIG_FILE_NAME} is not valid YAML: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Configuration files could not be read: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> ConverterSettings:
    """Return the settings from the file and environment layers, loaded once."""

    return load_settings()
