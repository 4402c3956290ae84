"""
Track metadata decoding for `ANS_metadata=` replies.

mplayer reports metadata as a flat comma-separated list of alternating keys
and values, e.g. `Title,Kid A,Artist,Radiohead,Year,2000`.
"""

import re
from dataclasses import dataclass
from typing import Optional

NULL_METADATA = "(null)"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class Metadata:
    """Immutable track metadata. Missing fields are None."""

    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    year: Optional[int] = None
    comment: Optional[str] = None
    track: Optional[int] = None
    genre: Optional[str] = None


def parse_key_value_list(data: str) -> dict[str, str]:
    """Parse alternating keys and values into a dict.

    Keys are lower-cased, values stripped of surrounding whitespace. A trailing
    key without a value maps to an empty string.

    >>> parse_key_value_list("key1,value1,Key2, value2 ")
    {'key1': 'value1', 'key2': 'value2'}
    """
    items = data.split(",")
    result: dict[str, str] = {}
    for i in range(0, len(items), 2):
        value = items[i + 1] if i + 1 < len(items) else ""
        result[items[i].strip().lower()] = value.strip()
    return result


def _parse_int(value: Optional[str]) -> Optional[int]:
    """Parse the leading integer of a value, None when there is none."""
    if not value:
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def parse_metadata(data: str) -> Metadata:
    """Parse an `ANS_metadata=` payload into a Metadata record."""
    data = data.strip()
    if data == NULL_METADATA:
        return Metadata()

    raw = parse_key_value_list(data)
    return Metadata(
        title=raw.get("title"),
        artist=raw.get("artist"),
        album=raw.get("album"),
        year=_parse_int(raw.get("year")),
        comment=raw.get("comment"),
        track=_parse_int(raw.get("track")),
        genre=raw.get("genre"),
    )
