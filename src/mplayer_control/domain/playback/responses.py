"""
Predicates recognising mplayer status lines.

Data matchers return the parsed value (never None) for a matching line and
None otherwise. Error matchers return an exception instance or None.
"""

import re
from typing import Callable, Optional, TypeVar

from mplayer_control.core.exceptions import PlaybackError

from .metadata import Metadata, parse_metadata

T = TypeVar("T")

STARTING_PLAYBACK = "Starting playback"

# EOF codes that mean the file played to the end normally
NORMAL_EOF_CODES = frozenset({0, 1})

_OPEN_ERROR = re.compile(r"OPEN: ((?:File not found|Failed to open).*)$")
_PAUSE_BANNER = re.compile(r"=+\s*PAUSE\s*=+")
_POSITION_REPORT = re.compile(r"\bPosition:\s*(-?[\d.]+)")
_EOF_REPORT = re.compile(r"EOF code:\s*(-?\d+)")
_ANS_ERROR = re.compile(r"ANS_ERROR=(\S+)")


def match_starting_playback(line: str) -> Optional[bool]:
    return True if STARTING_PLAYBACK in line else None


def match_open_error(line: str) -> Optional[PlaybackError]:
    """Reject with the text after `OPEN: `, e.g. `File not found "bob"`."""
    match = _OPEN_ERROR.search(line)
    if match is None:
        return None
    return PlaybackError(match.group(1).strip())


def match_pause_banner(line: str) -> Optional[bool]:
    return True if _PAUSE_BANNER.search(line) else None


def match_position_report(line: str) -> Optional[float]:
    match = _POSITION_REPORT.search(line)
    return float(match.group(1)) if match else None


def eof_code(line: str) -> Optional[int]:
    match = _EOF_REPORT.search(line)
    return int(match.group(1)) if match else None


def answer_matcher(
    property_name: str, convert: Callable[[str], T]
) -> Callable[[str], Optional[T]]:
    """Build a matcher for `ANS_<property>=<value>` replies."""
    pattern = re.compile(rf"ANS_{re.escape(property_name)}=(.*)$")

    def match(line: str) -> Optional[T]:
        found = pattern.search(line)
        return convert(found.group(1).strip()) if found else None

    return match


def match_answer_error(line: str) -> Optional[PlaybackError]:
    """mplayer prints ANS_ERROR=... when a property cannot be read."""
    match = _ANS_ERROR.search(line)
    if match is None:
        return None
    return PlaybackError(f"Property query failed: {match.group(1)}")


def parse_flag(value: str) -> bool:
    """Parse a yes/no property value."""
    if value not in ("yes", "no"):
        raise PlaybackError(f"Unexpected flag value: {value!r}")
    return value == "yes"


def parse_number(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise PlaybackError(f"Unexpected numeric value: {value!r}") from None


match_metadata: Callable[[str], Optional[Metadata]] = answer_matcher(
    "metadata", parse_metadata
)
