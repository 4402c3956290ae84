"""
mplayer session lifecycle.

Owns the transport and walks it through NO_PROCESS -> STARTING -> READY ->
SHUTTING_DOWN -> NO_PROCESS. A crash from any state lands back in NO_PROCESS,
and the next ensure_ready() spawns a fresh process.
"""

import asyncio
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence

from loguru import logger

from mplayer_control.core.config import PlayerConfig
from mplayer_control.core.exceptions import OperationTimeoutError, ProcessFaultError

from .transport import ExitCallback, LineCallback, LineTransport

# Flags required for slave-mode control and module-prefixed status lines
MPLAYER_ARGS = [
    "-msgmodule",
    "-msglevel",
    "all=6:statusline=4",
    "-idle",
    "-slave",
    "-fs",
    "-noborder",
    "-nofontconfig",
]

READY_BANNER = "CPLAYER: MPlayer"


class SessionState(Enum):
    NO_PROCESS = "no_process"
    STARTING = "starting"
    READY = "ready"
    SHUTTING_DOWN = "shutting_down"


class Transport(Protocol):
    running: bool

    async def start(self) -> None: ...

    async def write_line(self, line: str) -> None: ...

    def terminate(self) -> None: ...

    def kill(self) -> None: ...

    def close(self) -> None: ...


TransportFactory = Callable[[Sequence[str], LineCallback, ExitCallback], Transport]
FaultListener = Callable[[ProcessFaultError], None]


class Session:
    """The single mplayer process and its readiness handshake."""

    def __init__(
        self,
        config: Optional[PlayerConfig] = None,
        transport_factory: TransportFactory = LineTransport,
    ):
        self._config = config or PlayerConfig()
        self._transport_factory = transport_factory
        self._transport: Optional[Transport] = None
        self._state = SessionState.NO_PROCESS
        self._ready: Optional[asyncio.Future] = None
        self._stopped: Optional[asyncio.Future] = None
        self._line_listener: Optional[LineCallback] = None
        self._fault_listeners: list[FaultListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is SessionState.READY

    @property
    def argv(self) -> list[str]:
        return [self._config.binary, *MPLAYER_ARGS, *self._config.extra_args]

    def set_line_listener(self, listener: LineCallback) -> None:
        """Attach the one listener that receives post-readiness output lines."""
        if self._line_listener is not None and self._line_listener != listener:
            raise RuntimeError("Session already has a line listener")
        self._line_listener = listener

    def add_fault_listener(self, listener: FaultListener) -> None:
        """Register a callback invoked whenever the process goes away."""
        self._fault_listeners.append(listener)

    async def ensure_ready(self) -> None:
        """Make sure a process exists and has printed its startup banner.

        Raises:
            ProcessFaultError: If mplayer cannot be started or dies during startup
            OperationTimeoutError: If the banner does not appear in time
        """
        if self._state is SessionState.READY:
            return

        if self._state is SessionState.SHUTTING_DOWN:
            await self.shutdown()

        if self._state is SessionState.STARTING:
            await asyncio.shield(self._ready)
            return

        await self._spawn()

    async def _spawn(self) -> None:
        loop = asyncio.get_running_loop()
        self._state = SessionState.STARTING
        ready = self._ready = loop.create_future()
        transport = self._transport = self._transport_factory(
            self.argv, self._handle_line, self._handle_exit
        )

        logger.info(f"Starting mplayer: {' '.join(self.argv)}")
        try:
            await transport.start()
        except OSError as e:
            logger.error(f"Failed to start mplayer: {e}")
            self._teardown(ProcessFaultError(f"Failed to start mplayer: {e}"))

        try:
            await asyncio.wait_for(
                asyncio.shield(ready), self._config.startup_timeout or None
            )
        except asyncio.TimeoutError:
            logger.error(
                f"mplayer did not become ready within {self._config.startup_timeout}s"
            )
            if transport.running:
                transport.kill()
            self._teardown(
                ProcessFaultError("mplayer killed after startup timeout"),
            )
            raise OperationTimeoutError("Timed out waiting for mplayer to start")

    def _handle_line(self, line: str) -> None:
        if self._state is SessionState.STARTING:
            if READY_BANNER in line:
                logger.info("mplayer ready")
                self._state = SessionState.READY
                if self._ready is not None and not self._ready.done():
                    self._ready.set_result(None)
            return

        if self._line_listener is not None:
            self._line_listener(line)

    def _handle_exit(self, returncode: Optional[int]) -> None:
        if self._state is SessionState.SHUTTING_DOWN:
            logger.info(f"mplayer shut down (code {returncode})")
        else:
            logger.warning(f"mplayer exited unexpectedly (code {returncode})")
        self._teardown(
            ProcessFaultError(f"mplayer exited (code {returncode})", returncode)
        )

    def _teardown(self, fault: ProcessFaultError) -> None:
        """Forget the process, settle startup/shutdown waiters, notify listeners."""
        transport, self._transport = self._transport, None
        if transport is not None:
            transport.close()
        self._state = SessionState.NO_PROCESS

        ready, self._ready = self._ready, None
        if ready is not None and not ready.done():
            ready.set_exception(fault)
            # Waiters still see the fault; an unwatched startup must not log it
            ready.exception()

        stopped, self._stopped = self._stopped, None
        if stopped is not None and not stopped.done():
            stopped.set_result(None)

        for listener in list(self._fault_listeners):
            listener(fault)

    async def write_line(self, line: str) -> None:
        """Write one command line to the ready process.

        Raises:
            ProcessFaultError: If there is no ready process or the pipe is broken
        """
        if self._state is not SessionState.READY or self._transport is None:
            raise ProcessFaultError("mplayer is not ready")

        transport = self._transport
        try:
            await transport.write_line(line)
        except OSError as e:
            logger.error(f"Failed to write to mplayer: {e}")
            fault = ProcessFaultError(f"Failed to write to mplayer: {e}")
            if transport.running:
                transport.kill()
            if self._transport is transport:
                self._teardown(fault)
            raise fault from e

    async def shutdown(self) -> None:
        """Terminate the process, escalating to kill after the grace period.

        Raises:
            ProcessFaultError: If the process cannot be signalled
        """
        if self._transport is None:
            return

        if self._state is SessionState.SHUTTING_DOWN:
            await asyncio.shield(self._stopped)
            return

        transport = self._transport
        logger.info("Shutting down mplayer")
        try:
            transport.terminate()
        except ProcessLookupError:
            pass  # Already exiting, the exit callback will follow
        except OSError as e:
            logger.error(f"Failed to stop mplayer: {e}")
            fault = ProcessFaultError(f"Failed to stop mplayer: {e}")
            self._teardown(fault)
            raise fault from e

        if self._transport is not transport:
            return  # Exit was observed synchronously

        self._state = SessionState.SHUTTING_DOWN
        stopped = self._stopped = asyncio.get_running_loop().create_future()
        grace = self._config.shutdown_timeout or None

        try:
            await asyncio.wait_for(asyncio.shield(stopped), grace)
            return
        except asyncio.TimeoutError:
            logger.warning("mplayer ignored SIGTERM, killing it")
            transport.kill()

        try:
            await asyncio.wait_for(asyncio.shield(stopped), grace)
        except asyncio.TimeoutError:
            fault = ProcessFaultError("mplayer did not exit after kill")
            logger.error(str(fault))
            if self._transport is transport:
                self._teardown(fault)
            raise fault
