"""
MPlayer - public entry point for opening files and shutting mplayer down.
"""

import subprocess
from typing import Optional

from loguru import logger

from mplayer_control.core.config import PlayerConfig
from mplayer_control.core.exceptions import PlaybackError, PlayerError, ProcessFaultError

from . import commands
from .manager import MPlayerManager
from .media_item import MediaItem
from .responses import match_open_error, match_starting_playback
from .session import TransportFactory
from .transport import LineTransport


def check_mplayer_available(binary: str = "mplayer") -> bool:
    """Check if mplayer is available on the system."""
    try:
        result = subprocess.run(
            [binary], capture_output=True, text=True, timeout=5
        )
        return "MPlayer" in (result.stdout + result.stderr)
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


class MPlayer:
    """Plays one file at a time through a single mplayer process.

    The process is spawned lazily by the first operation and respawned after
    a crash by the next one.
    """

    def __init__(
        self,
        config: Optional[PlayerConfig] = None,
        log_enabled: bool = False,
        transport_factory: TransportFactory = LineTransport,
    ):
        if log_enabled:
            logger.enable("mplayer_control")

        self.config = config or PlayerConfig()
        self._manager = MPlayerManager(self.config, transport_factory)
        self._manager.add_fault_listener(self._on_fault)
        self._current: Optional[MediaItem] = None

    @property
    def manager(self) -> MPlayerManager:
        return self._manager

    @property
    def current_item(self) -> Optional[MediaItem]:
        """The most recently opened item, if it is still valid."""
        if self._current is not None and self._current.is_active:
            return self._current
        return None

    async def open_file(self, file_name: str) -> MediaItem:
        """Open a file and start playing it.

        A still-valid previous item is stopped first.

        Raises:
            PlaybackError: If mplayer cannot open the file, or the previous
                item cannot be stopped
            OperationTimeoutError: If playback does not start in time
        """
        logger.info(f"Opening file '{file_name}'")

        previous = self.current_item
        if previous is not None:
            try:
                await previous.stop()
            except PlayerError as e:
                raise PlaybackError(
                    f"Unable to stop '{previous.file_name}' before opening '{file_name}': {e}"
                ) from e

        def match_started(line: str) -> Optional[MediaItem]:
            if not match_starting_playback(line):
                return None
            item = MediaItem(file_name, self._manager, self.config)
            item.watch_end()
            return item

        item = await self._manager.do_critical_operation(
            lambda send: send(commands.loadfile(file_name)),
            match_started,
            match_open_error,
            self.config.open_timeout,
        )
        self._current = item
        logger.info(f"Playing '{file_name}'")
        return item

    async def shutdown(self) -> None:
        """Shut down mplayer. Does nothing when no process is running."""
        await self._manager.shutdown()

    def _on_fault(self, fault: ProcessFaultError) -> None:
        if self._current is not None:
            self._current.invalidate()


def format_time(seconds: float) -> str:
    """Format time in seconds to MM:SS format."""
    if seconds < 0:
        return "00:00"

    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"
