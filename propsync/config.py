#!/usr/bin/env python3
"""
File set configuration.

A configuration file lists one or more file sets, each describing how a
group of translation files is written to disk:

```yaml
status_file: translations/languages.properties
file_sets:
  - target_folder: translations
    type: properties
    encoding: Properties
    escape_unicode: true
    line_separator: "\\n"
    includes: ["*.properties"]
  - target_folder: web/i18n
    type: text
    excludes: ["*.bak"]
```

Unset values are resolved from the file type, so only deviations from
the defaults need to be written.
"""

import codecs
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from .properties import DEFAULT_ENCODING, LineSeparator, SerializeOptions

DEFAULT_COMMENT = "This file is automatically generated, please do not edit this file."
STATUS_FILE_NAME = "languages.properties"

# Special encoding name for ISO 8859-1 with \uxxxx escapes
PROPERTIES_ENCODING = "Properties"

PROPERTIES_TYPE = "properties"
TEXT_TYPE = "text"


class ConfigError(ValueError):
    """Invalid configuration value or file."""


def _wildcard_to_regex(pattern: str) -> re.Pattern:
    """Translate a ``?``/``*`` wildcard into a regex; everything else is literal."""
    parts = []
    for ch in pattern:
        if ch == '*':
            parts.append('.*')
        elif ch == '?':
            parts.append('.')
        else:
            parts.append(re.escape(ch))
    return re.compile(''.join(parts), re.DOTALL)


@dataclass
class FileSet:
    """
    Settings for one set of translation files.

    Attributes:
        target_folder: Folder the translation files are written to
        type: Format handler name, or None to detect from each file name
        encoding: Target charset name or "Properties" (ISO 8859-1)
        source_encoding: Charset of the files as delivered
        sort_lines: Sort entries by key grouping (properties only)
        add_comment: Write a header comment
        comment: Header comment text (a generic one is used if unset)
        line_separator: "\\n", "\\r" or "\\r\\n"
        escape_unicode: Write non-ASCII characters as \\uxxxx (properties only)
        includes: Wildcard paths to include; non-empty makes a whitelist
        excludes: Wildcard paths to exclude
    """
    target_folder: str
    type: Optional[str] = None
    encoding: Optional[str] = None
    source_encoding: Optional[str] = None
    sort_lines: Optional[bool] = None
    add_comment: bool = True
    comment: Optional[str] = None
    line_separator: Optional[str] = None
    escape_unicode: bool = True
    includes: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)

    def __post_init__(self):
        if self.type is not None:
            self.type = self.type.lower()
        if self.encoding is not None:
            self._check_encoding(self.encoding)
        if self.source_encoding is not None:
            self._check_encoding(self.source_encoding)
        if self.line_separator is not None:
            try:
                LineSeparator.from_string(self.line_separator)
            except ValueError as e:
                raise ConfigError(str(e)) from e

    @staticmethod
    def _check_encoding(name: str) -> None:
        if name.lower() == PROPERTIES_ENCODING.lower():
            return
        try:
            codecs.lookup(name)
        except LookupError as e:
            raise ConfigError(f"Unknown encoding: {name}") from e

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileSet":
        """Create from a configuration mapping, rejecting unknown keys."""
        if not isinstance(data, dict):
            raise ConfigError(f"File set must be a mapping, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown file set option(s): {', '.join(unknown)}")
        if "target_folder" not in data:
            raise ConfigError("File set is missing 'target_folder'")
        for name in ("includes", "excludes"):
            if name in data and not isinstance(data[name], list):
                raise ConfigError(f"'{name}' must be a list of patterns")
        return cls(**data)

    def resolve_type(self, file_name: str) -> str:
        """Configured type, or the type implied by the file extension."""
        if self.type:
            return self.type
        if file_name.lower().endswith(".properties"):
            return PROPERTIES_TYPE
        return TEXT_TYPE

    def resolve_encoding(self, file_type: str) -> str:
        """Target charset for a file of the given type."""
        encoding = self.encoding
        if encoding is None:
            encoding = PROPERTIES_ENCODING if file_type == PROPERTIES_TYPE else "UTF-8"
        if encoding.lower() == PROPERTIES_ENCODING.lower():
            return DEFAULT_ENCODING
        return encoding

    def resolve_source_encoding(self, file_type: str) -> str:
        """Charset of the delivered files."""
        if self.source_encoding:
            if self.source_encoding.lower() == PROPERTIES_ENCODING.lower():
                return DEFAULT_ENCODING
            return self.source_encoding
        return DEFAULT_ENCODING if file_type == PROPERTIES_TYPE else "UTF-8"

    def serialize_options(self, file_type: str = PROPERTIES_TYPE) -> SerializeOptions:
        """Resolve all defaults into codec options."""
        sort_lines = self.sort_lines
        if sort_lines is None:
            sort_lines = file_type == PROPERTIES_TYPE
        separator = LineSeparator.LF
        if self.line_separator is not None:
            separator = LineSeparator.from_string(self.line_separator)
        return SerializeOptions(
            header_comment=(self.comment or DEFAULT_COMMENT) if self.add_comment else None,
            escape_non_ascii=self.escape_unicode,
            line_separator=separator,
            sort_lines=sort_lines,
            encoding=self.resolve_encoding(file_type),
        )

    def matches(self, path: str) -> bool:
        """Check a relative path against the include/exclude patterns."""
        path = path.replace('\\', '/')
        if self.includes and not any(_wildcard_to_regex(p).fullmatch(path) for p in self.includes):
            return False
        return not any(_wildcard_to_regex(p).fullmatch(path) for p in self.excludes)


@dataclass
class Config:
    """Top-level configuration."""
    file_sets: list[FileSet] = field(default_factory=list)
    status_file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be a mapping")
        unknown = sorted(set(data) - {"file_sets", "status_file"})
        if unknown:
            raise ConfigError(f"Unknown configuration option(s): {', '.join(unknown)}")
        file_sets = data.get("file_sets") or []
        if not isinstance(file_sets, list):
            raise ConfigError("'file_sets' must be a list")
        return cls(
            file_sets=[FileSet.from_dict(item) for item in file_sets],
            status_file=data.get("status_file"),
        )

    def file_set_for(self, path: str) -> Optional[FileSet]:
        """First file set whose patterns match the path."""
        for file_set in self.file_sets:
            if file_set.matches(path):
                return file_set
        return None

    def status_path(self) -> Path:
        """Status file path; defaults to the first file set's target folder."""
        if self.status_file:
            return Path(self.status_file)
        if self.file_sets:
            return Path(self.file_sets[0].target_folder) / STATUS_FILE_NAME
        return Path(STATUS_FILE_NAME)


def load_config(path: str) -> Config:
    """
    Load configuration from a YAML file.

    Raises:
        ConfigError: If the file is missing, not valid YAML or has invalid values
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        data = {}
    return Config.from_dict(data)
