#!/usr/bin/env python3
"""
Codec for the legacy .properties key/value format.

File structure:
    # This file is automatically generated, please do not edit this file.
    #second comment line

    menu.1.label=Open
    menu.1.tooltip=Open a file
    menu.2.label=Caf\\u00e9

Entries are written in key grouping order (see keys.py) and escaped so
that parsing the output gives back exactly the same table. Parsing follows
the conventional rules: ``#``/``!`` comments, backslash line continuation,
``=``/``:``/whitespace separators and backslash escapes.
"""

import logging
import re
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from .keys import sort_keys

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "iso-8859-1"

# Separators and continuation whitespace recognised by the format
_WHITESPACE = ' \t\f'
_LINE_BREAK = re.compile(r'\r\n|\r|\n')
_SURROGATE_PAIR = re.compile('[\ud800-\udbff][\udc00-\udfff]')
_HEX_DIGITS = frozenset('0123456789abcdefABCDEF')

_CONTROL_ESCAPES = {'\t': 't', '\n': 'n', '\r': 'r', '\f': 'f'}
_STRUCTURAL = '=:#!'
_UNESCAPES = {
    't': '\t',
    'n': '\n',
    'r': '\r',
    'f': '\f',
    '\\': '\\',
    ' ': ' ',
    '=': '=',
    ':': ':',
    '#': '#',
    '!': '!',
}


class PropertiesError(ValueError):
    """Base class for codec errors, structured for agent-friendly reporting."""

    error_type = "PROPERTIES_ERROR"

    def __init__(self, message: str, line_num: Optional[int] = None, suggestion: str = ""):
        if line_num is not None:
            super().__init__(f"Line {line_num}: {message}")
        else:
            super().__init__(message)
        self.message = message
        self.line_num = line_num
        self.suggestion = suggestion

    def to_dict(self) -> dict:
        return {
            "line": self.line_num,
            "type": self.error_type,
            "message": self.message,
            "fix": self.suggestion,
        }


class FormatError(PropertiesError):
    """Malformed escape sequence or line structure."""

    error_type = "FORMAT_ERROR"


class EncodingError(PropertiesError):
    """Bytes or text not representable in the declared charset."""

    error_type = "ENCODING_ERROR"


class LineSeparator(Enum):
    """Line separator written after every output line."""
    LF = "\n"
    CR = "\r"
    CRLF = "\r\n"

    @classmethod
    def from_string(cls, value: str) -> "LineSeparator":
        """
        Resolve a separator from its name (``lf``), its characters or their
        backslash-escaped spelling (``\\r\\n``).
        """
        if value.upper() in cls.__members__:
            return cls[value.upper()]
        unescaped = value.replace('\\n', '\n').replace('\\r', '\r')
        for member in cls:
            if member.value == unescaped:
                return member
        raise ValueError(f"Invalid line separator: {value!r}. Use \\n, \\r or \\r\\n")


class CharClass(Enum):
    """Character classes that decide how a character is escaped."""
    BACKSLASH = "backslash"
    SPACE = "space"
    CONTROL = "control"
    STRUCTURAL = "structural"
    PRINTABLE = "printable"
    OTHER = "other"


def classify(ch: str) -> CharClass:
    """Classify a single character for escaping."""
    if ch == '\\':
        return CharClass.BACKSLASH
    if ch == ' ':
        return CharClass.SPACE
    if ch in _CONTROL_ESCAPES:
        return CharClass.CONTROL
    if ch in _STRUCTURAL:
        return CharClass.STRUCTURAL
    if ' ' < ch <= '~':
        return CharClass.PRINTABLE
    return CharClass.OTHER


@dataclass
class SerializeOptions:
    """Options controlling how a table is written."""
    header_comment: Optional[str] = None
    escape_non_ascii: bool = True
    line_separator: LineSeparator = LineSeparator.LF
    sort_lines: bool = True
    encoding: str = DEFAULT_ENCODING


class PropertiesTable(MutableMapping):
    """
    Key/value table whose iteration order is always key grouping order.

    Insertion order is remembered only for callers that write files
    unsorted. Setting an existing key replaces its value in place.
    """

    def __init__(self, entries=None):
        self._entries: dict[str, str] = {}
        if entries is not None:
            self.update(entries)

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __setitem__(self, key: str, value: str) -> None:
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError(
                f"Keys and values must be strings, got {type(key).__name__}={type(value).__name__}"
            )
        self._entries[key] = value

    def __delitem__(self, key: str) -> None:
        del self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(sort_keys(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        items = ', '.join(f'{k!r}: {v!r}' for k, v in self.items())
        return f"{type(self).__name__}({{{items}}})"

    def insertion_order(self) -> list[str]:
        """Keys in the order they were first inserted."""
        return list(self._entries)


# --- Writing ---

def _utf16_units(ch: str) -> list[int]:
    data = ch.encode('utf-16-be', 'surrogatepass')
    return [int.from_bytes(data[i:i + 2], 'big') for i in range(0, len(data), 2)]


def _unicode_escape(ch: str) -> str:
    return ''.join(f'\\u{unit:04x}' for unit in _utf16_units(ch))


def escape(text: str, is_key: bool, escape_unicode: bool = True) -> str:
    """
    Escape a key or value for writing.

    Args:
        text: Raw key or value
        is_key: Keys escape every space plus ``=`` and ``:`` (and a leading
            ``#`` or ``!``); values only escape a leading space
        escape_unicode: Write characters outside printable ASCII as
            ``\\uxxxx``, one escape per UTF-16 code unit

    Returns:
        Escaped text
    """
    out = []
    for i, ch in enumerate(text):
        kind = classify(ch)
        if kind is CharClass.PRINTABLE:
            out.append(ch)
        elif kind is CharClass.BACKSLASH:
            out.append('\\\\')
        elif kind is CharClass.SPACE:
            out.append('\\ ' if is_key or i == 0 else ' ')
        elif kind is CharClass.CONTROL:
            out.append('\\' + _CONTROL_ESCAPES[ch])
        elif kind is CharClass.STRUCTURAL:
            if is_key and (ch in '=:' or i == 0):
                out.append('\\' + ch)
            else:
                out.append(ch)
        elif escape_unicode:
            out.append(_unicode_escape(ch))
        else:
            out.append(ch)
    return ''.join(out)


def format_comment(comment: str, line_separator: str = "\n") -> str:
    """
    Format a header comment as ``#`` comment lines.

    The first line starts with ``# ``. Each line break in the comment
    starts a new line prefixed with ``#``, unless the caller already
    started it with ``#`` or ``!``. Characters above U+00FF are written
    as ``\\uxxxx``.
    """
    out = ['# ']
    i = 0
    length = len(comment)
    while i < length:
        ch = comment[i]
        if ch in '\r\n':
            out.append(line_separator)
            if ch == '\r' and i + 1 < length and comment[i + 1] == '\n':
                i += 1
            if i == length - 1 or comment[i + 1] not in '#!':
                out.append('#')
        elif ord(ch) > 0xFF:
            out.append(_unicode_escape(ch))
        else:
            out.append(ch)
        i += 1
    out.append(line_separator)
    return ''.join(out)


def dumps(table: Mapping, options: Optional[SerializeOptions] = None) -> str:
    """
    Serialize a table to properties text.

    Args:
        table: PropertiesTable or any str -> str mapping
        options: SerializeOptions (defaults apply if omitted)

    Returns:
        Complete file content as string
    """
    options = options or SerializeOptions()
    separator = options.line_separator.value
    parts = []

    if options.header_comment is not None:
        parts.append(format_comment(options.header_comment, separator))
        parts.append(separator)

    if options.sort_lines:
        keys = sort_keys(table.keys())
    elif isinstance(table, PropertiesTable):
        keys = table.insertion_order()
    else:
        keys = list(table.keys())

    for key in keys:
        escaped_key = escape(key, True, options.escape_non_ascii)
        escaped_value = escape(table[key], False, options.escape_non_ascii)
        parts.append(f"{escaped_key}={escaped_value}{separator}")

    return ''.join(parts)


def serialize(table: Mapping, options: Optional[SerializeOptions] = None) -> bytes:
    """
    Serialize a table to bytes in the configured encoding.

    Raises:
        EncodingError: If the text cannot be represented in the encoding
    """
    options = options or SerializeOptions()
    text = dumps(table, options)
    try:
        return text.encode(options.encoding)
    except LookupError as e:
        raise EncodingError(f"Unknown encoding: {options.encoding}") from e
    except UnicodeEncodeError as e:
        line_num = text.count('\n', 0, e.start) + 1
        raise EncodingError(
            f"Character {text[e.start]!r} cannot be encoded as {options.encoding}",
            line_num=line_num,
            suggestion="Enable Unicode escaping or use an encoding such as UTF-8",
        ) from e


# --- Reading ---

def _is_continued(line: str) -> bool:
    trailing = len(line) - len(line.rstrip('\\'))
    return trailing % 2 == 1


def _logical_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield (line number, logical line) pairs, skipping comments and blanks."""
    physical = _LINE_BREAK.split(text)
    # A terminator on the last line leaves an empty trailing piece
    if physical[-1] == '':
        physical.pop()

    i = 0
    while i < len(physical):
        line_num = i + 1
        line = physical[i].lstrip(_WHITESPACE)
        i += 1
        if not line or line[0] in '#!':
            continue

        parts = []
        while _is_continued(line):
            parts.append(line[:-1])
            if i >= len(physical):
                raise FormatError(
                    "Line continuation at end of input",
                    line_num=i,
                    suggestion="Remove the trailing backslash or add the continued line",
                )
            line = physical[i].lstrip(_WHITESPACE)
            i += 1
        parts.append(line)
        yield line_num, ''.join(parts)


def _split_entry(line: str) -> tuple[str, str]:
    """Split a logical line into raw (still escaped) key and value."""
    limit = len(line)
    key_len = 0
    value_start = limit
    has_separator = False
    preceding_backslash = False

    while key_len < limit:
        ch = line[key_len]
        if ch in '=:' and not preceding_backslash:
            value_start = key_len + 1
            has_separator = True
            break
        if ch in _WHITESPACE and not preceding_backslash:
            value_start = key_len + 1
            break
        if ch == '\\':
            preceding_backslash = not preceding_backslash
        else:
            preceding_backslash = False
        key_len += 1

    while value_start < limit:
        ch = line[value_start]
        if ch not in _WHITESPACE:
            if not has_separator and ch in '=:':
                has_separator = True
            else:
                break
        value_start += 1

    return line[:key_len], line[value_start:]


def unescape(text: str, line_num: Optional[int] = None) -> str:
    """
    Decode backslash escapes in a key or value.

    ``\\uxxxx`` escapes are UTF-16 code units; surrogate pairs are joined
    into a single character.

    Raises:
        FormatError: On a truncated ``\\u`` escape or an unknown escape
    """
    if '\\' not in text:
        return text

    out = []
    i = 0
    length = len(text)
    while i < length:
        ch = text[i]
        i += 1
        if ch != '\\':
            out.append(ch)
            continue

        if i >= length:
            raise FormatError("Dangling backslash at end of line", line_num=line_num)
        ch = text[i]
        i += 1
        if ch == 'u':
            digits = text[i:i + 4]
            if len(digits) < 4 or not all(d in _HEX_DIGITS for d in digits):
                raise FormatError(
                    f"Malformed \\uxxxx encoding: \\u{digits}",
                    line_num=line_num,
                    suggestion="Unicode escapes need exactly four hex digits, e.g. \\u00e9",
                )
            out.append(chr(int(digits, 16)))
            i += 4
        elif ch in _UNESCAPES:
            out.append(_UNESCAPES[ch])
        else:
            raise FormatError(
                f"Invalid escape sequence: \\{ch}",
                line_num=line_num,
                suggestion=f"Write a literal backslash as \\\\ or drop it before {ch!r}",
            )

    return _SURROGATE_PAIR.sub(
        lambda m: m.group(0).encode('utf-16-be', 'surrogatepass').decode('utf-16-be'),
        ''.join(out),
    )


def loads(text: str) -> PropertiesTable:
    """
    Parse properties text into a table.

    Later duplicates of a key replace earlier values.

    Raises:
        FormatError: On malformed escapes or a dangling line continuation
    """
    if text.startswith('\ufeff'):
        text = text[1:]

    table = PropertiesTable()
    for line_num, line in _logical_lines(text):
        raw_key, raw_value = _split_entry(line)
        key = unescape(raw_key, line_num)
        if key in table:
            logger.debug("Line %d: duplicate key %r overrides earlier value", line_num, key)
        table[key] = unescape(raw_value, line_num)
    return table


def parse(data: bytes, encoding: str = DEFAULT_ENCODING) -> PropertiesTable:
    """
    Parse properties bytes into a table.

    Args:
        data: Raw file content
        encoding: Charset of the content

    Raises:
        EncodingError: If the bytes are not valid in the charset
        FormatError: On malformed escapes or a dangling line continuation
    """
    try:
        text = data.decode(encoding)
    except LookupError as e:
        raise EncodingError(f"Unknown encoding: {encoding}") from e
    except UnicodeDecodeError as e:
        raise EncodingError(
            f"Invalid {encoding} byte sequence at offset {e.start}",
            line_num=data.count(b'\n', 0, e.start) + 1,
            suggestion="Check the declared encoding of the file",
        ) from e
    return loads(text)
