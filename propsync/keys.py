#!/usr/bin/env python3
"""
Key grouping and ordering for dotted translation keys.

Keys such as ``menu.1.label`` are split into dot-separated segments and
compared segment by segment, numeric value first and name second. This
keeps related keys together and orders numbered groups numerically:

    menu.label
    menu.1.label
    menu.1.tooltip
    menu.2.label
    menu.10.label

A plain string sort would put ``menu.10.label`` before ``menu.2.label``.
"""

import re
from dataclasses import dataclass
from typing import Iterable

# Segments that are not all digits get this value, so at any given depth
# words sort before numbered groups.
NOT_NUMERIC = -1

_GROUP_PATTERN = re.compile(r'[A-Za-z0-9_-]+(?:\.[A-Za-z0-9_-]+)*')
_DIGITS_PATTERN = re.compile(r'[0-9]+')


@dataclass(frozen=True)
class KeySegment:
    """One dot-delimited component of a key."""
    name: str
    numeric: int = NOT_NUMERIC

    @classmethod
    def from_name(cls, name: str) -> "KeySegment":
        """Create a segment, parsing the name as an integer when it is all digits."""
        if _DIGITS_PATTERN.fullmatch(name):
            return cls(name, int(name))
        return cls(name)


def decompose(key: str) -> tuple[KeySegment, ...]:
    """
    Split a key into its segments.

    Only the leading run of dot-separated ``[A-Za-z0-9_-]`` words is used;
    anything after it is ignored. A key that does not start with such a
    word has no segments.

    Args:
        key: Property key

    Returns:
        Tuple of KeySegment, possibly empty
    """
    match = _GROUP_PATTERN.match(key)
    if not match:
        return ()
    return tuple(KeySegment.from_name(name) for name in match.group(0).split('.'))


def compare_segments(a: tuple[KeySegment, ...], b: tuple[KeySegment, ...]) -> int:
    """
    Compare two segment sequences.

    Returns:
        Negative if a sorts first, positive if b sorts first, 0 if equal
    """
    i = 0
    while True:
        if i < len(a) and i < len(b):
            if a[i].numeric != b[i].numeric:
                return -1 if a[i].numeric < b[i].numeric else 1
            if a[i].name != b[i].name:
                return -1 if a[i].name < b[i].name else 1
        elif i < len(a):
            return 1
        elif i < len(b):
            return -1
        else:
            return 0
        i += 1


def compare_keys(a: str, b: str) -> int:
    """Compare two keys by their decomposed segments."""
    return compare_segments(decompose(a), decompose(b))


def sort_key(key: str) -> tuple:
    """
    Sort key ordering exactly like compare_segments.

    Tuples compare element-wise with a shorter prefix first, which is the
    segment walk above. The key itself breaks ties between keys whose
    segments are equal (for example two keys without any segments).
    """
    return tuple((segment.numeric, segment.name) for segment in decompose(key)), key


def sort_keys(keys: Iterable[str]) -> list[str]:
    """Return keys in grouping order."""
    return sorted(keys, key=sort_key)
