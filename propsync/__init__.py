"""
propsync - translation file synchronization for build projects

Writes translation files delivered by a translation-management service
into a project, keeping legacy .properties files in a stable, grouped
order with the format's escaping rules.

Quick start:
    propsync format messages.properties
    propsync deploy --source download --config propsync.yml
"""

__version__ = "1.0.0"

from .keys import KeySegment, compare_keys, compare_segments, decompose, sort_key, sort_keys
from .properties import (
    EncodingError,
    FormatError,
    LineSeparator,
    PropertiesTable,
    SerializeOptions,
    dumps,
    loads,
    parse,
    serialize,
)

__all__ = [
    "KeySegment",
    "compare_keys",
    "compare_segments",
    "decompose",
    "sort_key",
    "sort_keys",
    "EncodingError",
    "FormatError",
    "LineSeparator",
    "PropertiesTable",
    "SerializeOptions",
    "dumps",
    "loads",
    "parse",
    "serialize",
]
