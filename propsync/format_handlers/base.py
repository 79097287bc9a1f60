#!/usr/bin/env python3
"""
Base classes for format handlers.

FormatHandler is the abstract base class that all file-type handlers must
implement. A handler converts a translation file, as delivered by the
translation service, into the bytes written to the project.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from ..config import FileSet


class FormatHandler(ABC):
    """
    Abstract base class for file-type handlers.

    Each handler knows how to read one kind of translation file and write
    it back according to a FileSet's settings (encoding, line separator,
    header comment, ordering).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Format name, as used in configuration."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> list[str]:
        """List of file extensions this handler supports (without dot)."""
        pass

    @property
    def supports_sorting(self) -> bool:
        """Whether entries can be reordered by key."""
        return False

    @abstractmethod
    def convert(self, data: bytes, file_set: FileSet) -> bytes:
        """
        Convert delivered file content into the content to write.

        Args:
            data: Raw file content from the translation service
            file_set: Settings of the file set the file belongs to

        Returns:
            Bytes to write to the target file
        """
        pass

    def validate_content(self, data: bytes, encoding: str) -> list[dict]:
        """
        Validate that content can be converted by this handler.

        Args:
            data: Raw file content
            encoding: Charset of the content

        Returns:
            List of error dicts (empty if valid)
        """
        return []


class FormatRegistry:
    """Registry of available format handlers."""

    _handlers: dict[str, type[FormatHandler]] = {}
    _extension_map: dict[str, str] = {}  # extension -> handler name

    @classmethod
    def register(cls, handler_class: type[FormatHandler]) -> None:
        """Register a format handler class."""
        handler = handler_class()
        cls._handlers[handler.name.lower()] = handler_class
        for ext in handler.file_extensions:
            cls._extension_map[ext.lower()] = handler.name.lower()

    @classmethod
    def get_handler(cls, name: str) -> FormatHandler:
        """Get handler instance by name."""
        name_lower = name.lower()
        if name_lower not in cls._handlers:
            available = ', '.join(cls._handlers.keys())
            raise ValueError(f"Unknown format: {name}. Available: {available}")
        return cls._handlers[name_lower]()

    @classmethod
    def detect_format(cls, filepath: str, fallback: str = "text") -> FormatHandler:
        """
        Detect the handler from the file extension.

        Args:
            filepath: Path or file name
            fallback: Handler name used for unknown extensions

        Returns:
            Appropriate FormatHandler instance
        """
        ext = Path(filepath).suffix.lower().lstrip('.')
        return cls.get_handler(cls._extension_map.get(ext, fallback))

    @classmethod
    def list_formats(cls) -> list[dict[str, Any]]:
        """List all registered formats with their extensions."""
        result = []
        for name, handler_class in cls._handlers.items():
            handler = handler_class()
            result.append({
                'name': handler.name,
                'extensions': handler.file_extensions,
                'supports_sorting': handler.supports_sorting,
            })
        return result
