#!/usr/bin/env python3
"""
Plain text handler for file types without a dedicated handler.

Content is passed through unchanged apart from charset conversion and
line separator normalization.
"""

import re

from ..config import FileSet, TEXT_TYPE
from ..properties import EncodingError, LineSeparator
from .base import FormatHandler

_LINE_BREAK = re.compile(r'\r\n|\r|\n')


class TextHandler(FormatHandler):
    """Fallback handler for any other translation file."""

    @property
    def name(self) -> str:
        return TEXT_TYPE

    @property
    def file_extensions(self) -> list[str]:
        return ["txt"]

    def _decode(self, data: bytes, encoding: str) -> str:
        try:
            return data.decode(encoding)
        except LookupError as e:
            raise EncodingError(f"Unknown encoding: {encoding}") from e
        except UnicodeDecodeError as e:
            raise EncodingError(
                f"Invalid {encoding} byte sequence at offset {e.start}",
                line_num=data.count(b'\n', 0, e.start) + 1,
            ) from e

    def convert(self, data: bytes, file_set: FileSet) -> bytes:
        """Re-encode and normalize line separators."""
        text = self._decode(data, file_set.resolve_source_encoding(self.name))
        if file_set.line_separator is not None:
            separator = LineSeparator.from_string(file_set.line_separator)
            text = _LINE_BREAK.sub(separator.value, text)

        encoding = file_set.resolve_encoding(self.name)
        try:
            return text.encode(encoding)
        except UnicodeEncodeError as e:
            raise EncodingError(
                f"Character {text[e.start]!r} cannot be encoded as {encoding}",
                line_num=text.count('\n', 0, e.start) + 1,
            ) from e

    def validate_content(self, data: bytes, encoding: str) -> list[dict]:
        try:
            self._decode(data, encoding)
        except EncodingError as e:
            return [e.to_dict()]
        return []
