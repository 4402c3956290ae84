"""
mplayer-control - asyncio control of mplayer in slave mode
"""

from loguru import logger

from mplayer_control.core.config import PlayerConfig
from mplayer_control.core.exceptions import (
    BusyError,
    InvalidStateError,
    OperationTimeoutError,
    PlaybackError,
    PlayerError,
    PrematureEndError,
    ProcessFaultError,
)
from mplayer_control.domain.playback import (
    MediaItem,
    Metadata,
    MPlayer,
    check_mplayer_available,
)

__version__ = "0.3.0"

# Library logging stays silent until an application opts in
logger.disable("mplayer_control")

__all__ = [
    "MPlayer",
    "MediaItem",
    "Metadata",
    "PlayerConfig",
    "check_mplayer_available",
    "BusyError",
    "InvalidStateError",
    "OperationTimeoutError",
    "PlaybackError",
    "PlayerError",
    "PrematureEndError",
    "ProcessFaultError",
]
