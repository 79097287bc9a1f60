#!/usr/bin/env python3
"""
Format handlers for translation file types.

Supported formats:
- properties: Java-style .properties files (sorted, escaped)
- text: any other file, re-encoded with normalized line separators
"""

from .base import FormatHandler, FormatRegistry
from .properties_handler import PropertiesHandler
from .text_handler import TextHandler

FormatRegistry.register(PropertiesHandler)
FormatRegistry.register(TextHandler)

__all__ = [
    'FormatHandler',
    'FormatRegistry',
    'PropertiesHandler',
    'TextHandler',
]
