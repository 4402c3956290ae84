"""Exceptions raised by player operations."""

from typing import Optional


class PlayerError(Exception):
    """Base exception for MPlayer operations."""

    pass


class BusyError(PlayerError):
    """Raised when a critical operation is already outstanding."""

    def __init__(self, message: str = "Busy - cannot execute operation"):
        super().__init__(message)


class InvalidStateError(PlayerError):
    """Raised when an operation is attempted on an item that is no longer active."""

    def __init__(self, message: str = "Media item is not in a valid state"):
        super().__init__(message)


class PlaybackError(PlayerError):
    """Raised when mplayer reports an explicit failure (file not found, etc.)."""

    pass


class OperationTimeoutError(PlayerError, TimeoutError):
    """Raised when no matching line arrives within the operation's timeout."""

    def __init__(self, message: str = "Timed out"):
        super().__init__(message)


class ProcessFaultError(PlayerError):
    """Raised when the mplayer process exits or fails while an operation is outstanding."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        super().__init__(message)


class PrematureEndError(PlayerError):
    """Raised when playback ends with an abnormal EOF code."""

    def __init__(self, code: int, message: Optional[str] = None):
        self.code = code
        super().__init__(message or f"Playback ended prematurely (EOF code {code})")
