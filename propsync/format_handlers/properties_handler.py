#!/usr/bin/env python3
"""
.properties format handler.

Re-writes Java-style properties files with sorted, escaped entries and a
header comment, in the encoding the project expects.
"""

import logging

from ..config import FileSet, PROPERTIES_TYPE
from ..properties import PropertiesError, parse, serialize
from .base import FormatHandler

logger = logging.getLogger(__name__)


class PropertiesHandler(FormatHandler):
    """
    Handler for .properties files.

    Structure:
    ```
    # Comment
    menu.1.label=Open
    menu.2.label=Caf\\u00e9
    ```

    Comments in the delivered file are dropped; the file set's header
    comment replaces them.
    """

    @property
    def name(self) -> str:
        return PROPERTIES_TYPE

    @property
    def file_extensions(self) -> list[str]:
        return ["properties"]

    @property
    def supports_sorting(self) -> bool:
        return True

    def convert(self, data: bytes, file_set: FileSet) -> bytes:
        """Parse the delivered file and serialize it with the file set's options."""
        table = parse(data, file_set.resolve_source_encoding(self.name))
        options = file_set.serialize_options(self.name)
        logger.debug(
            "Writing %d entries (sorted=%s, encoding=%s)",
            len(table), options.sort_lines, options.encoding,
        )
        return serialize(table, options)

    def validate_content(self, data: bytes, encoding: str) -> list[dict]:
        """Validate escapes, continuations and encoding."""
        try:
            parse(data, encoding)
        except PropertiesError as e:
            return [e.to_dict()]
        return []
