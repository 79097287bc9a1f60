#!/usr/bin/env python3
"""
Tests for format handlers and the format registry.
"""

import pytest

from propsync.config import FileSet
from propsync.format_handlers import FormatRegistry, PropertiesHandler, TextHandler


@pytest.fixture
def file_set():
    """Fixture for a file set with default settings."""
    return FileSet(target_folder="out")


# --- Registry ---

def test_registry_lookup():
    """Handlers are registered by name."""
    assert isinstance(FormatRegistry.get_handler("properties"), PropertiesHandler)
    assert isinstance(FormatRegistry.get_handler("TEXT"), TextHandler)


def test_registry_unknown_name():
    """Unknown names list what is available."""
    with pytest.raises(ValueError, match="Available"):
        FormatRegistry.get_handler("xliff")


def test_detect_format():
    """Extension detection falls back to the text handler."""
    assert FormatRegistry.detect_format("a/messages.properties").name == "properties"
    assert FormatRegistry.detect_format("help.html").name == "text"


def test_list_formats():
    """Listing reports sorting support."""
    formats = {f["name"]: f for f in FormatRegistry.list_formats()}
    assert formats["properties"]["supports_sorting"] is True
    assert formats["text"]["supports_sorting"] is False


# --- PropertiesHandler ---

def test_properties_convert(file_set):
    """Delivered files are sorted, escaped and get the header comment."""
    delivered = "# from service\nb=Ünïcode\na.10=ten\na.2=two\n".encode("iso-8859-1")
    result = PropertiesHandler().convert(delivered, file_set)
    assert result == (
        b"# This file is automatically generated, please do not edit this file.\n"
        b"\n"
        b"a.2=two\n"
        b"a.10=ten\n"
        b"b=\\u00dcn\\u00efcode\n"
    )


def test_properties_convert_utf8_unsorted():
    """File set settings control encoding and ordering."""
    file_set = FileSet(
        target_folder="out",
        source_encoding="utf-8",
        encoding="utf-8",
        escape_unicode=False,
        sort_lines=False,
        add_comment=False,
        line_separator="\\r\\n",
    )
    delivered = "z=日本\na=b\n".encode("utf-8")
    result = PropertiesHandler().convert(delivered, file_set)
    assert result == "z=日本\r\na=b\r\n".encode("utf-8")


def test_properties_validate():
    """Validation reports format errors with line numbers."""
    handler = PropertiesHandler()
    assert handler.validate_content(b"a=1\n", "iso-8859-1") == []
    errors = handler.validate_content(b"a=1\nb=\\u12\n", "iso-8859-1")
    assert len(errors) == 1
    assert errors[0]["line"] == 2
    assert errors[0]["type"] == "FORMAT_ERROR"


# --- TextHandler ---

def test_text_convert_reencodes(file_set):
    """Text files are re-encoded and left in order."""
    file_set.encoding = "iso-8859-1"
    result = TextHandler().convert("b\na é\n".encode("utf-8"), file_set)
    assert result == b"b\na \xe9\n"


def test_text_convert_line_separator():
    """A configured separator replaces all line breaks."""
    file_set = FileSet(target_folder="out", line_separator="crlf")
    assert TextHandler().convert(b"a\nb\rc\r\n", file_set) == b"a\r\nb\r\nc\r\n"


def test_text_validate_bad_bytes():
    """Invalid bytes are reported as encoding errors."""
    errors = TextHandler().validate_content(b"ok\n\xff", "utf-8")
    assert errors[0]["type"] == "ENCODING_ERROR"
    assert errors[0]["line"] == 2
