"""Playback domain - mplayer slave-mode integration.

This domain handles:
- The mplayer process lifecycle (spawn, readiness, shutdown, crash recovery)
- Correlating output lines with pending requests
- Mutual exclusion for state-changing commands
- The media item state machine (playing, paused, invalid)
"""

# Protocol
from .commands import format_command, quote
from .metadata import Metadata, parse_key_value_list, parse_metadata

# Process management
from .transport import LineTransport
from .session import MPLAYER_ARGS, READY_BANNER, Session, SessionState
from .correlator import Operation, ResponseCorrelator
from .gate import IDLE, Busy, CriticalSectionGate, GateState, Idle
from .manager import MPlayerManager

# Player
from .media_item import MediaItem
from .player import MPlayer, check_mplayer_available, format_time

__all__ = [
    # Protocol
    "format_command",
    "quote",
    "Metadata",
    "parse_key_value_list",
    "parse_metadata",
    # Process management
    "LineTransport",
    "MPLAYER_ARGS",
    "READY_BANNER",
    "Session",
    "SessionState",
    "Operation",
    "ResponseCorrelator",
    "IDLE",
    "Busy",
    "CriticalSectionGate",
    "GateState",
    "Idle",
    "MPlayerManager",
    # Player
    "MediaItem",
    "MPlayer",
    "check_mplayer_available",
    "format_time",
]
