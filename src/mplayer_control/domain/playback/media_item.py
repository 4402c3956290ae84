"""
MediaItem - handle to the file currently loaded in mplayer.

States: playing, paused, and invalid (terminal). An item becomes invalid when
it is stopped, when playback ends, when another file is opened or when the
mplayer process goes away. Every operation on an invalid item fails without
touching mplayer.
"""

import asyncio
import math
from typing import Optional, Union

from loguru import logger

from mplayer_control.core.config import PlayerConfig
from mplayer_control.core.exceptions import (
    BusyError,
    InvalidStateError,
    PlaybackError,
    PlayerError,
    PrematureEndError,
)

from . import commands
from .manager import MPlayerManager
from .metadata import Metadata
from .responses import (
    NORMAL_EOF_CODES,
    answer_matcher,
    eof_code,
    match_answer_error,
    match_metadata,
    match_pause_banner,
    match_position_report,
    parse_flag,
    parse_number,
)

Number = Union[int, float]

_match_pause_answer = answer_matcher("pause", parse_flag)
_match_volume = answer_matcher("volume", parse_number)


def _match_unpaused(line: str) -> Optional[bool]:
    return True if _match_pause_answer(line) is False else None


def _match_still_paused(line: str) -> Optional[PlaybackError]:
    if _match_pause_answer(line) is True:
        return PlaybackError("mplayer is still paused")
    return None


class MediaItem:
    """A loaded file. Created in the playing state once playback has started."""

    def __init__(
        self,
        file_name: str,
        manager: MPlayerManager,
        config: Optional[PlayerConfig] = None,
    ):
        self._file_name = file_name
        self._manager = manager
        self._config = config or manager.config
        self._playing = True
        self._active = True
        self._ended: Optional[asyncio.Future] = None

    def __repr__(self) -> str:
        state = "invalid" if not self._active else ("playing" if self._playing else "paused")
        return f"<MediaItem {self._file_name!r} {state}>"

    @property
    def file_name(self) -> str:
        return self._file_name

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def is_active(self) -> bool:
        return self._active

    def invalidate(self) -> None:
        """Move to the terminal invalid state."""
        if self._active:
            logger.debug(f"Media item '{self._file_name}' invalidated")
        self._active = False
        self._playing = False

        ended = self._ended
        if ended is not None and not ended.done():
            ended.set_exception(InvalidStateError("Media item was invalidated"))

    def watch_end(self) -> None:
        """Watch for the end-of-stream report and invalidate the item on it.

        Requires a ready session. Called by MPlayer as soon as playback starts,
        so the item goes invalid when the file ends even if nobody listens.
        """
        if self._ended is not None:
            return
        self._ended = self._manager.watch(eof_code)
        self._ended.add_done_callback(self._on_end)

    def _on_end(self, ended: asyncio.Future) -> None:
        error = ended.exception()
        if error is None:
            logger.info(f"'{self._file_name}' ended (EOF code {ended.result()})")
        self.invalidate()

    def _check_active(self) -> None:
        if not self._active:
            raise InvalidStateError()

    async def play(self) -> None:
        """Resume playback. No-op when already playing.

        mplayer only has a pause toggle and prints nothing when unpausing, so
        the toggle is followed by a pause-state query to confirm.
        """
        self._check_active()
        if self._playing:
            return

        timeout = self._config.command_timeout

        async def toggle_and_confirm(send) -> None:
            await send(commands.pause())
            await self._manager.do_operation(
                lambda s: s(commands.get_property("pause")),
                _match_pause_answer,
                match_answer_error,
                timeout,
            )

        await self._manager.do_critical_operation(
            toggle_and_confirm, _match_unpaused, _match_still_paused, timeout
        )
        self._playing = True

    async def pause(self) -> None:
        """Pause playback. No-op when already paused."""
        self._check_active()
        if not self._playing:
            return

        await self._manager.do_critical_operation(
            lambda send: send(commands.pause()),
            match_pause_banner,
            None,
            self._config.command_timeout,
        )
        self._playing = False

    async def seek_to(self, seconds: Number) -> None:
        """Seek to an absolute position in seconds."""
        await self._seek(seconds, commands.SEEK_ABSOLUTE)

    async def seek_by(self, seconds: Number) -> None:
        """Seek relative to the current position (negative seeks backwards)."""
        await self._seek(seconds, commands.SEEK_RELATIVE)

    async def _seek(self, value: Number, seek_type: int) -> None:
        self._check_active()
        await self._manager.do_critical_operation(
            lambda send: send(commands.seek(value, seek_type)),
            match_position_report,
            None,
            self._config.command_timeout,
        )

    async def _get_number(self, property_name: str) -> float:
        self._check_active()
        return await self._manager.do_operation(
            lambda send: send(commands.get_property(property_name)),
            answer_matcher(property_name, parse_number),
            match_answer_error,
            self._config.command_timeout,
        )

    async def get_current_time(self) -> float:
        """Current position in seconds."""
        return await self._get_number("time_pos")

    async def get_current_percent(self) -> float:
        """Current position as a percentage of the length."""
        return await self._get_number("percent_pos")

    async def get_length(self) -> float:
        """Length of the file in seconds."""
        return await self._get_number("length")

    async def get_volume(self) -> float:
        return await self._get_number("volume")

    async def set_volume(self, volume: Number) -> float:
        """Set the volume, clamped to 0-100. Returns the volume mplayer reports."""
        self._check_active()
        if not math.isfinite(volume):
            raise ValueError(f"Volume must be a finite number (got {volume})")
        volume = max(0, min(100, volume))

        async def set_and_confirm(send) -> None:
            await send(commands.set_property("volume", volume))
            await send(commands.get_property("volume"))

        return await self._manager.do_critical_operation(
            set_and_confirm,
            _match_volume,
            match_answer_error,
            self._config.command_timeout,
        )

    async def get_metadata(self) -> Metadata:
        self._check_active()
        return await self._manager.do_operation(
            lambda send: send(commands.get_property("metadata")),
            match_metadata,
            match_answer_error,
            self._config.command_timeout,
        )

    async def stop(self) -> None:
        """Stop playback. The item is invalid afterwards, even if stop fails."""
        self._check_active()
        try:
            await self._manager.do_critical_operation(
                lambda send: send(commands.stop()),
                eof_code,
                None,
                self._config.command_timeout,
            )
        except BusyError:
            raise
        except PlayerError:
            self.invalidate()
            raise
        self.invalidate()

    async def listen(self) -> None:
        """Wait, without a timeout, for playback of this item to end.

        Raises:
            PrematureEndError: If playback ended with an abnormal EOF code
            InvalidStateError: If the item is invalidated some other way first
        """
        self._check_active()
        if self._ended is None:
            await self._manager.ensure_ready()
            self._check_active()
            self.watch_end()

        try:
            code = await asyncio.shield(self._ended)
        except PlayerError:
            self.invalidate()
            raise
        self.invalidate()

        if code not in NORMAL_EOF_CODES:
            raise PrematureEndError(code)
