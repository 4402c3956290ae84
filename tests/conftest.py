"""Shared fixtures: a scripted stand-in for the mplayer process."""

import asyncio
from collections import defaultdict, deque
from typing import Optional

import pytest

from mplayer_control.core.config import PlayerConfig
from mplayer_control.core.exceptions import ProcessFaultError
from mplayer_control.domain.playback import MPlayer, MPlayerManager

BANNER = "CPLAYER: MPlayer 1.5-12.2.0 (C) 2000-2022 MPlayer Team"


class FakeTransport:
    """Replaces LineTransport: records writes and emits scripted replies."""

    def __init__(self, engine: "FakeEngine", argv, on_line, on_exit):
        self.engine = engine
        self.argv = list(argv)
        self._on_line = on_line
        self._on_exit = on_exit
        self.running = False
        self.written: list[str] = []
        self.terminated = False
        self.killed = False
        self.closed = False

    async def start(self) -> None:
        if self.engine.spawn_error is not None:
            raise self.engine.spawn_error
        self.running = True
        if self.engine.print_banner:
            asyncio.get_running_loop().call_soon(self.emit, BANNER)

    async def write_line(self, line: str) -> None:
        if not self.running:
            raise ProcessFaultError("mplayer is not running")
        if self.engine.write_error is not None:
            raise self.engine.write_error
        self.written.append(line)
        self.engine.written.append(line)

        batches = self.engine.replies.get(line)
        if batches:
            for reply in batches.popleft():
                asyncio.get_running_loop().call_soon(self.emit, reply)

    def emit(self, line: str) -> None:
        if self.running:
            self._on_line(line)

    def exit(self, returncode: Optional[int]) -> None:
        if self.running:
            self.running = False
            self._on_exit(returncode)

    def terminate(self) -> None:
        if self.engine.terminate_error is not None:
            raise self.engine.terminate_error
        self.terminated = True
        if self.engine.exit_on_terminate:
            asyncio.get_running_loop().call_soon(self.exit, -15)

    def kill(self) -> None:
        self.killed = True
        asyncio.get_running_loop().call_soon(self.exit, -9)

    def close(self) -> None:
        self.closed = True
        self._on_line = lambda line: None
        self._on_exit = lambda returncode: None


class FakeEngine:
    """Scripted mplayer: maps command lines to the output lines they produce."""

    def __init__(self):
        self.transports: list[FakeTransport] = []
        self.written: list[str] = []
        self.replies: dict[str, deque] = defaultdict(deque)
        self.print_banner = True
        self.exit_on_terminate = True
        self.spawn_error: Optional[BaseException] = None
        self.write_error: Optional[BaseException] = None
        self.terminate_error: Optional[BaseException] = None

    def factory(self, argv, on_line, on_exit) -> FakeTransport:
        transport = FakeTransport(self, argv, on_line, on_exit)
        self.transports.append(transport)
        return transport

    def reply(self, command: str, *lines: str) -> None:
        """Queue one batch of output lines for the next write of `command`."""
        self.replies[command].append(list(lines))

    @property
    def current(self) -> FakeTransport:
        return self.transports[-1]

    def emit(self, line: str) -> None:
        self.current.emit(line)

    def crash(self, returncode: int = 1) -> None:
        self.current.exit(returncode)


async def settle(rounds: int = 20) -> None:
    """Let scheduled callbacks and woken tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def config() -> PlayerConfig:
    return PlayerConfig(
        startup_timeout=1.0,
        open_timeout=0.5,
        command_timeout=0.2,
        shutdown_timeout=0.2,
    )


@pytest.fixture
def manager(engine: FakeEngine, config: PlayerConfig) -> MPlayerManager:
    return MPlayerManager(config, engine.factory)


@pytest.fixture
def mplayer(engine: FakeEngine, config: PlayerConfig) -> MPlayer:
    return MPlayer(config, transport_factory=engine.factory)
