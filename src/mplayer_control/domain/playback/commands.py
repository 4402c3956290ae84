"""
Command text formatting for the mplayer slave protocol.

Each command is a single line of space-joined tokens. Keywords and property
names are written bare, numbers in plain decimal and string arguments
(file paths) double-quoted.
"""

from typing import Union

# Seek type codes understood by the `seek` command
SEEK_RELATIVE = 0
SEEK_PERCENT = 1
SEEK_ABSOLUTE = 2

# Prefixes that keep the current pause state while running a command
PAUSING_KEEP = "pausing_keep"
PAUSING_KEEP_FORCE = "pausing_keep_force"


class Quoted(str):
    """A string argument that must be double-quoted on the wire."""

    __slots__ = ()


Token = Union[str, int, float]


def quote(value: str) -> Quoted:
    """Mark a string as a quoted argument."""
    return Quoted(value)


def _render_number(value: Union[int, float]) -> str:
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise ValueError(f"Cannot send non-finite number: {value}")
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def _render_token(token: Token) -> str:
    if isinstance(token, bool):
        raise TypeError("Booleans are not valid command arguments")
    if isinstance(token, Quoted):
        escaped = token.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(token, (int, float)):
        return _render_number(token)
    if isinstance(token, str):
        if not token or any(c.isspace() for c in token):
            raise ValueError(f"Bare token must be a non-empty word: {token!r}")
        return token
    raise TypeError(f"Unsupported command argument type: {type(token).__name__}")


def format_command(*tokens: Token) -> str:
    """Format a command name and its arguments into one protocol line.

    The returned line has no trailing newline; the transport adds it.

    >>> format_command(PAUSING_KEEP, "seek", 15, SEEK_ABSOLUTE)
    'pausing_keep seek 15 2'
    >>> format_command("loadfile", quote("bob"))
    'loadfile "bob"'
    """
    if not tokens:
        raise ValueError("A command needs at least a name")
    return " ".join(_render_token(token) for token in tokens)


def loadfile(path: str) -> str:
    return format_command("loadfile", quote(path))


def pause() -> str:
    return format_command("pause")


def stop() -> str:
    return format_command("stop")


def seek(value: Union[int, float], seek_type: int) -> str:
    return format_command(PAUSING_KEEP, "seek", value, seek_type)


def get_property(name: str) -> str:
    return format_command(PAUSING_KEEP_FORCE, "get_property", name)


def set_property(name: str, value: Token) -> str:
    return format_command(PAUSING_KEEP_FORCE, "set_property", name, value)
