"""
MPlayerManager - low level access to the mplayer process.

Bundles the session, the response correlator and the critical-section gate
behind the two entry points media items use: do_operation for non-exclusive
requests and do_critical_operation for ones that must not interleave.
"""

import asyncio
from typing import Optional, TypeVar

from mplayer_control.core.config import PlayerConfig

from .correlator import DataMatcher, ErrorMatcher, ResponseCorrelator, WriteStep
from .gate import CriticalSectionGate, GateState
from .session import FaultListener, Session, SessionState, TransportFactory
from .transport import LineTransport

T = TypeVar("T")


class MPlayerManager:
    def __init__(
        self,
        config: Optional[PlayerConfig] = None,
        transport_factory: TransportFactory = LineTransport,
    ):
        self.config = config or PlayerConfig()
        self.session = Session(self.config, transport_factory)
        self.correlator = ResponseCorrelator(self.session)
        self.gate = CriticalSectionGate(self.correlator)

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def gate_state(self) -> GateState:
        return self.gate.state

    def add_fault_listener(self, listener: FaultListener) -> None:
        self.session.add_fault_listener(listener)

    async def ensure_ready(self) -> None:
        await self.session.ensure_ready()

    async def do_operation(
        self,
        write: Optional[WriteStep],
        match_data: DataMatcher,
        match_error: Optional[ErrorMatcher] = None,
        timeout: Optional[float] = None,
    ) -> T:
        """Perform a non-exclusive operation."""
        return await self.correlator.submit(write, match_data, match_error, timeout)

    async def do_critical_operation(
        self,
        write: Optional[WriteStep],
        match_data: DataMatcher,
        match_error: Optional[ErrorMatcher] = None,
        timeout: Optional[float] = None,
    ) -> T:
        """Perform an operation, rejecting it if another critical one is outstanding."""
        return await self.gate.submit_critical(write, match_data, match_error, timeout)

    def watch(
        self, match_data: DataMatcher, match_error: Optional[ErrorMatcher] = None
    ) -> asyncio.Future:
        """Wait, without writing or timing out, for a line on the ready session."""
        return self.correlator.watch(match_data, match_error)

    async def shutdown(self) -> None:
        await self.session.shutdown()
