#!/usr/bin/env python3
"""
Tests for the .properties codec.

Tests verify:
1. Table ordering and overwrite semantics
2. Escaping of keys, values, control and non-ASCII characters
3. Header comment wrapping
4. Parsing of comments, separators, continuations and escapes
5. Rejection of malformed input
6. Round trips through serialize/parse, including generated tables
"""

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from propsync.properties import (
    CharClass,
    EncodingError,
    FormatError,
    LineSeparator,
    PropertiesTable,
    SerializeOptions,
    classify,
    dumps,
    escape,
    format_comment,
    loads,
    parse,
    serialize,
    unescape,
)


@pytest.fixture
def table():
    """Table inserted deliberately out of order."""
    t = PropertiesTable()
    t["item.10.name"] = "Ten"
    t["item.2.name"] = "Two"
    t["item.1.name"] = "One"
    return t


# --- PropertiesTable ---

def test_table_iterates_in_grouping_order(table):
    """Iteration ignores insertion order."""
    assert list(table) == ["item.1.name", "item.2.name", "item.10.name"]


def test_table_keeps_insertion_order_for_raw_output(table):
    """Insertion order is still available."""
    assert table.insertion_order() == ["item.10.name", "item.2.name", "item.1.name"]


def test_table_overwrite_replaces_value(table):
    """Setting an existing key keeps one entry with the new value."""
    table["item.2.name"] = "Deux"
    assert len(table) == 3
    assert table["item.2.name"] == "Deux"
    assert table.insertion_order()[1] == "item.2.name"


def test_table_rejects_non_string_values():
    """Values may be empty but must be text."""
    t = PropertiesTable()
    t["empty"] = ""
    with pytest.raises(TypeError):
        t["count"] = 3


def test_table_equals_plain_dict(table):
    """Content equality ignores order."""
    assert table == {"item.1.name": "One", "item.2.name": "Two", "item.10.name": "Ten"}


# --- Escaping ---

def test_classify():
    """Characters fall into their escaping class."""
    assert classify('\\') is CharClass.BACKSLASH
    assert classify(' ') is CharClass.SPACE
    assert classify('\t') is CharClass.CONTROL
    assert classify('=') is CharClass.STRUCTURAL
    assert classify('a') is CharClass.PRINTABLE
    assert classify('é') is CharClass.OTHER
    assert classify('\x7f') is CharClass.OTHER


def test_escape_control_characters():
    """Control characters become escape sequences."""
    assert escape("a\tb\nc", is_key=False) == "a\\tb\\nc"
    assert escape("\r\f", is_key=False) == "\\r\\f"


def test_escape_backslash_always():
    """Backslashes are doubled with or without Unicode escaping."""
    assert escape("C:\\dir", is_key=False) == "C:\\\\dir"
    assert escape("C:\\dir", is_key=False, escape_unicode=False) == "C:\\\\dir"


def test_key_spaces_always_escaped():
    """Every space in a key is escaped."""
    assert escape(" a b ", is_key=True) == "\\ a\\ b\\ "


def test_value_only_leading_space_escaped():
    """Values keep inner spaces and escape a leading one."""
    assert escape(" a b ", is_key=False) == "\\ a b "


def test_key_separators_escaped():
    """Separators in keys are escaped; comment markers only at the start."""
    assert escape("a=b:c", is_key=True) == "a\\=b\\:c"
    assert escape("#a#", is_key=True) == "\\#a#"
    assert escape("!a", is_key=True) == "\\!a"


def test_value_separators_not_escaped():
    """Values never escape separators or comment markers."""
    assert escape("#a=b:c!", is_key=False) == "#a=b:c!"


def test_escape_non_ascii():
    """Non-ASCII becomes lowercase \\uxxxx escapes."""
    assert escape("é", is_key=False) == "\\u00e9"
    assert escape("日本", is_key=False) == "\\u65e5\\u672c"
    assert escape("\x01", is_key=False) == "\\u0001"


def test_escape_surrogate_pair():
    """Characters above U+FFFF are escaped as two code units."""
    assert escape("\U0001F600", is_key=False) == "\\ud83d\\ude00"


def test_escape_non_ascii_disabled():
    """Without Unicode escaping characters pass through."""
    assert escape("é日", is_key=False, escape_unicode=False) == "é日"


# --- Header comments ---

def test_comment_two_lines():
    """Each comment line is prefixed, followed by one blank line."""
    text = dumps({"k": "v"}, SerializeOptions(header_comment="line one\nline two"))
    assert text == "# line one\n#line two\n\nk=v\n"


def test_comment_keeps_existing_markers():
    """Lines the caller already marked get no extra #."""
    assert format_comment("a\n# b\n!c") == "# a\n# b\n!c\n"


def test_comment_crlf_is_one_break():
    """\\r\\n in the comment is a single line break."""
    assert format_comment("a\r\nb", "\r\n") == "# a\r\n#b\r\n"
    assert format_comment("a\rb") == "# a\n#b\n"


def test_comment_trailing_break():
    """A break at the end of the comment produces an empty comment line."""
    assert format_comment("a\n") == "# a\n#\n"


def test_comment_escapes_above_latin1():
    """Only characters above U+00FF are escaped in comments."""
    assert format_comment("é 日") == "# é \\u65e5\n"


def test_no_comment_no_blank_line():
    """Without a header the entries start on the first line."""
    # The blank line only separates a header from the entries; writers that
    # always emit it would start this file with an empty line instead.
    assert serialize({"a": "1"}) == b"a=1\n"


# --- Serialization ---

def test_serialize_numeric_grouping(table):
    """Entries are written in numeric grouping order."""
    assert serialize(table) == b"item.1.name=One\nitem.2.name=Two\nitem.10.name=Ten\n"


def test_serialize_unsorted_keeps_insertion_order(table):
    """sort_lines=False writes raw insertion order."""
    data = serialize(table, SerializeOptions(sort_lines=False))
    assert data == b"item.10.name=Ten\nitem.2.name=Two\nitem.1.name=One\n"


def test_serialize_deterministic():
    """Same content in a different insertion order gives identical bytes."""
    first = PropertiesTable()
    second = PropertiesTable()
    items = [("b.1", "x"), ("a", "y"), ("b.label", "z"), ("#odd", "w"), ("b.10", "v")]
    for k, v in items:
        first[k] = v
    for k, v in reversed(items):
        second[k] = v
    options = SerializeOptions(header_comment="Generated")
    assert serialize(first, options) == serialize(second, options)


def test_serialize_escape_fidelity():
    """Control characters are written as escape sequences."""
    assert serialize({"k": "a\tb\nc"}) == b"k=a\\tb\\nc\n"


def test_serialize_unicode_escaped_and_raw():
    """é is escaped by default, raw when escaping is off."""
    assert serialize({"k": "é"}) == b"k=\\u00e9\n"
    raw_latin1 = serialize({"k": "é"}, SerializeOptions(escape_non_ascii=False))
    assert raw_latin1 == b"k=\xe9\n"
    raw_utf8 = serialize({"k": "é"}, SerializeOptions(escape_non_ascii=False, encoding="utf-8"))
    assert raw_utf8 == b"k=\xc3\xa9\n"


def test_serialize_line_separators():
    """The configured separator ends every line."""
    options = SerializeOptions(header_comment="c", line_separator=LineSeparator.CRLF)
    assert serialize({"a": "1", "b": "2"}, options) == b"# c\r\n\r\na=1\r\nb=2\r\n"
    options = SerializeOptions(line_separator=LineSeparator.CR)
    assert serialize({"a": "1"}, options) == b"a=1\r"


def test_serialize_unencodable_raises_encoding_error():
    """Raw characters outside the charset are an encoding error."""
    with pytest.raises(EncodingError):
        serialize({"k": "日"}, SerializeOptions(escape_non_ascii=False))


def test_line_separator_from_string():
    """Separators resolve from names, characters and escaped spellings."""
    assert LineSeparator.from_string("crlf") is LineSeparator.CRLF
    assert LineSeparator.from_string("\r") is LineSeparator.CR
    assert LineSeparator.from_string("\\r\\n") is LineSeparator.CRLF
    with pytest.raises(ValueError):
        LineSeparator.from_string("\\t")


# --- Parsing ---

def test_parse_separators():
    """=, : and whitespace all separate key from value."""
    data = b"a=1\nb:2\nc 3\nd\te\nf = spaced value\ng\nh:=v\n"
    assert parse(data) == {
        "a": "1",
        "b": "2",
        "c": "3",
        "d": "e",
        "f": "spaced value",
        "g": "",
        "h": "=v",
    }


def test_parse_skips_comments_and_blank_lines():
    """# and ! lines, indented or not, are ignored."""
    data = b"# comment\n! other\n   # indented\n\n   \nkey=value\n"
    assert parse(data) == {"key": "value"}


def test_parse_comment_line_does_not_continue():
    """A backslash at the end of a comment does not join lines."""
    assert parse(b"# comment \\\nkey=value\n") == {"key": "value"}


def test_parse_continuation():
    """Continued lines are joined without their leading whitespace."""
    data = b"key = first \\\n      second \\\n\tthird\nnext=1\n"
    assert parse(data) == {"key": "first second third", "next": "1"}


def test_parse_continuation_line_starting_with_hash():
    """A continued line starting with # is content, not a comment."""
    assert parse(b"key=a\\\n#b\n") == {"key": "a#b"}


def test_parse_escaped_backslash_is_not_continuation():
    """An even number of trailing backslashes is literal."""
    assert parse(b"path=C:\\\\\nnext=1\n") == {"path": "C:\\", "next": "1"}


def test_parse_line_endings():
    """\\r\\n, \\r and \\n all end lines."""
    assert parse(b"a=1\r\nb=2\rc=3\nd=4") == {"a": "1", "b": "2", "c": "3", "d": "4"}


def test_parse_escapes():
    """Standard escapes decode in keys and values."""
    data = b"my\\ key\\=x=tab\\there\\nnew\\\\ \\u00E9\\u00e9\\:\n"
    assert parse(data) == {"my key=x": "tab\there\nnew\\ éé:"}


def test_parse_surrogate_pair():
    """Two \\u escapes forming a pair decode to one character."""
    assert parse(b"k=\\ud83d\\ude00\n") == {"k": "\U0001F600"}


def test_parse_duplicate_key_later_wins():
    """The later occurrence of a key replaces the earlier value."""
    table = parse(b"x=first\ny=other\nx=second\n")
    assert table["x"] == "second"
    assert len(table) == 2


def test_parse_utf8_and_bom():
    """UTF-8 content parses with the matching charset; a BOM is dropped."""
    data = "\ufeffkey=Café\n".encode("utf-8")
    assert parse(data, "utf-8") == {"key": "Café"}


def test_parse_latin1_raw_byte():
    """Raw ISO 8859-1 bytes decode with the default charset."""
    assert parse(b"k=\xe9\n") == {"k": "é"}


# --- Malformed input ---

@pytest.mark.parametrize("data", [
    b"key=\\u12\n",
    b"key=\\u12",
    b"key=\\u12zz\n",
    b"key=\\uXYZW\n",
])
def test_parse_truncated_unicode_escape(data):
    """Incomplete \\u escapes are rejected."""
    with pytest.raises(FormatError):
        parse(data)


def test_parse_unknown_escape():
    """Unrecognized escape letters are rejected."""
    with pytest.raises(FormatError) as exc_info:
        parse(b"ok=1\nbad=\\q\n")
    assert exc_info.value.line_num == 2
    assert exc_info.value.to_dict()["type"] == "FORMAT_ERROR"


@pytest.mark.parametrize("data", [b"key=value\\", b"key=value\\\n"])
def test_parse_dangling_continuation(data):
    """A continuation at the end of input is rejected."""
    with pytest.raises(FormatError):
        parse(data)


def test_parse_invalid_bytes_raise_encoding_error():
    """Bytes invalid in the charset are an encoding error, not a format error."""
    with pytest.raises(EncodingError) as exc_info:
        parse(b"a=1\nb=\xff\n", "utf-8")
    assert exc_info.value.line_num == 2
    assert not isinstance(exc_info.value, FormatError)


def test_parse_unknown_charset():
    """Unknown charsets are reported as encoding errors."""
    with pytest.raises(EncodingError):
        parse(b"a=1", "no-such-charset")


def test_unescape_without_backslash_is_identity():
    """Plain text passes through untouched."""
    assert unescape("plain text") == "plain text"


# --- Round trips ---

TRICKY_TABLE = {
    "": "empty key",
    " lead": " leading space value",
    "trail ": "trailing space ",
    "a=b:c": "x=y:z",
    "#hash": "#not a comment",
    "!bang": "!",
    "tabs\tand\nnewlines": "\r\n\t\f",
    "back\\slash": "ends with backslash\\",
    "unicode.é": "Café 日本 \U0001F600",
    "control": "\x00\x01\x0b\x1f\x7f",
    "empty.value": "",
    "item.10": "ten",
    "item.2": "two",
}


@pytest.mark.parametrize("options", [
    SerializeOptions(),
    SerializeOptions(header_comment="Header\nwith é and 日"),
    SerializeOptions(escape_non_ascii=False, encoding="utf-8", line_separator=LineSeparator.CRLF),
    SerializeOptions(sort_lines=False, line_separator=LineSeparator.CR),
])
def test_round_trip(options):
    """parse(serialize(T)) reproduces T."""
    table = PropertiesTable(TRICKY_TABLE)
    assert parse(serialize(table, options), options.encoding) == TRICKY_TABLE


def test_text_round_trip():
    """loads(dumps(T)) reproduces T."""
    assert loads(dumps(TRICKY_TABLE)) == TRICKY_TABLE


def test_no_comment_crlf_starts_with_entries():
    """No leading blank line for other separators either."""
    options = SerializeOptions(line_separator=LineSeparator.CRLF)
    assert serialize({"b": "2", "a": "1"}, options) == b"a=1\r\nb=2\r\n"


# Surrogates never survive a text round trip; a BOM would be dropped at the
# start of an unescaped file
_TEXT = st.text(st.characters(exclude_categories=("Cs",), exclude_characters="\ufeff"))


@settings(suppress_health_check=[HealthCheck.too_slow], deadline=None, max_examples=50)
@given(
    entries=st.dictionaries(_TEXT, _TEXT, max_size=8),
    header=st.one_of(st.none(), _TEXT),
    separator=st.sampled_from(list(LineSeparator)),
    sort_lines=st.booleans(),
)
def test_generated_round_trip_escaped(entries, header, separator, sort_lines):
    """Any table survives serialize/parse with Unicode escaping to ISO 8859-1."""
    options = SerializeOptions(
        header_comment=header,
        line_separator=separator,
        sort_lines=sort_lines,
    )
    table = PropertiesTable(entries)
    assert parse(serialize(table, options), options.encoding) == entries


@settings(suppress_health_check=[HealthCheck.too_slow], deadline=None, max_examples=50)
@given(
    entries=st.dictionaries(_TEXT, _TEXT, max_size=8),
    separator=st.sampled_from(list(LineSeparator)),
)
def test_generated_round_trip_raw_utf8(entries, separator):
    """Any table survives serialize/parse as raw UTF-8."""
    options = SerializeOptions(
        escape_non_ascii=False,
        encoding="utf-8",
        line_separator=separator,
    )
    table = PropertiesTable(entries)
    assert parse(serialize(table, options), "utf-8") == entries
