"""
Line protocol transport around the mplayer subprocess.

Spawns the process with piped stdin/stdout/stderr, decodes every output line
from either stream and reports process exit. Knows nothing about the meaning
of the lines.
"""

import asyncio
from typing import Callable, Optional, Sequence

from loguru import logger

from mplayer_control.core.exceptions import ProcessFaultError

# Status lines can be long (metadata, file paths); raise the StreamReader limit
STREAM_LIMIT = 1024 * 1024

# How long to let readers drain buffered output after the process exits
DRAIN_TIMEOUT = 1.0

LineCallback = Callable[[str], None]
ExitCallback = Callable[[Optional[int]], None]


def split_lines(raw: bytes, encoding: str = "utf-8") -> list[str]:
    """Decode a chunk and split it on both newline and carriage return.

    mplayer redraws its status line with bare carriage returns, so a single
    newline-terminated chunk may hold several logical lines.
    """
    text = raw.decode(encoding, errors="replace")
    return [part for part in text.replace("\r", "\n").split("\n") if part.strip()]


class LineTransport:
    """An mplayer process seen as a stream of text lines."""

    def __init__(
        self,
        argv: Sequence[str],
        on_line: LineCallback,
        on_exit: ExitCallback,
        encoding: str = "utf-8",
    ):
        self.argv = list(argv)
        self._on_line = on_line
        self._on_exit = on_exit
        self._encoding = encoding
        self._process: Optional[asyncio.subprocess.Process] = None
        self._readers: list[asyncio.Task] = []
        self._waiter: Optional[asyncio.Task] = None

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start(self) -> None:
        """Spawn the process and start reading its output.

        Raises:
            OSError: If the executable cannot be started
        """
        self._process = await asyncio.create_subprocess_exec(
            *self.argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=STREAM_LIMIT,
        )
        logger.info(f"Spawned mplayer (pid={self._process.pid}): {' '.join(self.argv)}")

        self._readers = [
            asyncio.create_task(self._read_stream(self._process.stdout, "stdout")),
            asyncio.create_task(self._read_stream(self._process.stderr, "stderr")),
        ]
        self._waiter = asyncio.create_task(self._wait_exit())

    async def _read_stream(self, stream: asyncio.StreamReader, name: str) -> None:
        while True:
            try:
                raw = await stream.readline()
            except (asyncio.LimitOverrunError, ValueError) as e:
                logger.warning(f"Dropping oversized {name} line: {e}")
                continue
            if not raw:
                break
            for line in split_lines(raw, self._encoding):
                logger.debug(f"[{name}] {line}")
                self._on_line(line)

    async def _wait_exit(self) -> None:
        returncode = await self._process.wait()
        # Deliver whatever the process printed before exiting
        if self._readers:
            await asyncio.wait(self._readers, timeout=DRAIN_TIMEOUT)
        for task in self._readers:
            task.cancel()
        logger.info(f"mplayer exited (pid={self._process.pid}, code={returncode})")
        self._on_exit(returncode)

    async def write_line(self, line: str) -> None:
        """Write one command line to stdin.

        Raises:
            ProcessFaultError: If the process is not running
            OSError: If the pipe is broken
        """
        if not self.running or self._process.stdin is None:
            raise ProcessFaultError("mplayer is not running")

        logger.debug(f"Executing: '{line}'")
        self._process.stdin.write(f"{line}\n".encode(self._encoding))
        await self._process.stdin.drain()

    def terminate(self) -> None:
        if self.running:
            self._process.terminate()

    def kill(self) -> None:
        if self.running:
            self._process.kill()

    def close(self) -> None:
        """Stop reading output and forget the callbacks."""
        for task in self._readers:
            task.cancel()
        waiter = self._waiter
        if waiter is not None and not waiter.done() and waiter is not asyncio.current_task():
            waiter.cancel()
        self._readers = []
        self._waiter = None
        self._on_line = lambda line: None
        self._on_exit = lambda returncode: None
