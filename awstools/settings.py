"""Layered key/value settings and the derived output configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

_TRUE_WORDS = frozenset({"1", "t", "true"})
_FALSE_WORDS = frozenset({"0", "f", "false"})


def _to_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    return False


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip(), 0)
        except ValueError:
            return 0
    return 0


class Settings:
    """Case-insensitive store of dotted setting keys."""

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = {}
        for key, value in (values or {}).items():
            self.set(key, value)

    def set(self, key: str, value: Any) -> None:
        """Store a value; nested mappings are stored under dotted keys."""
        if isinstance(value, Mapping):
            for sub_key, sub_value in value.items():
                self.set(f"{key}.{sub_key}", sub_value)
            return
        self._values[key.lower()] = value

    def is_set(self, key: str) -> bool:
        return key.lower() in self._values

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key.lower(), default)

    def reset(self) -> None:
        self._values.clear()


@dataclass
class OutputSettings:
    """How results are rendered and where they are written."""

    use_emoji: bool = False
    output_format: str = ""
    output_file: str = ""
    should_append: bool = False
    table_style: str = ""
    table_max_column_width: int = 0

    def set_output_format(self, output_format: str) -> None:
        self.output_format = output_format.lower()


@dataclass
class Config:
    """Typed access to the global configuration settings."""

    settings: Settings = field(default_factory=Settings)

    def get_lc_string(self, setting: str) -> str:
        """Return the setting as a lowercase string, or "" when unset."""
        if self.settings.is_set(setting):
            return _to_string(self.settings.get(setting)).lower()
        return ""

    def get_output_format(self) -> str:
        return self.get_lc_string("output.format")

    def get_string(self, setting: str) -> str:
        if self.settings.is_set(setting):
            return _to_string(self.settings.get(setting))
        return ""

    def get_bool(self, setting: str) -> bool:
        return _to_bool(self.settings.get(setting))

    def get_int(self, setting: str) -> int:
        if self.settings.is_set(setting):
            return _to_int(self.settings.get(setting))
        return 0

    def get_separator(self) -> str:
        """Return the list separator suited to the output format."""
        output_format = self.new_output_settings().output_format
        if output_format == "table":
            return "\r\n"
        if output_format == "dot":
            return ","
        return ", "

    def is_drawio(self) -> bool:
        return self.new_output_settings().output_format == "drawio"

    def should_append(self) -> bool:
        return self.get_bool("output.append")

    def should_combine_and_append(self) -> bool:
        output = self.new_output_settings()
        if not output.should_append:
            return False
        return output.output_format != "html"

    def is_verbose(self) -> bool:
        return self.get_bool("output.verbose")

    def new_output_settings(self) -> OutputSettings:
        """Build output settings from the current configuration."""
        output = OutputSettings(
            use_emoji=self.get_bool("output.use-emoji"),
            output_file=self.get_lc_string("output.file"),
            should_append=self.get_bool("output.append"),
            table_style=self.get_string("output.table.style"),
            table_max_column_width=self.get_int("output.table.max-column-width"),
        )
        output.set_output_format(self.get_lc_string("output.format"))
        return output