"""
Critical-section gate over the correlator.

Pause toggling, seeking, loading and stopping change mplayer's state; two of
them in flight at once leave the engine in an undefined state. The gate lets
at most one such critical operation be outstanding and rejects any other
immediately instead of queueing it.
"""

from dataclasses import dataclass
from typing import Optional, TypeVar, Union

from loguru import logger

from mplayer_control.core.exceptions import BusyError

from .correlator import DataMatcher, ErrorMatcher, ResponseCorrelator, WriteStep

T = TypeVar("T")


@dataclass(frozen=True)
class Idle:
    """No critical operation outstanding."""


@dataclass(frozen=True)
class Busy:
    """A critical operation holds the gate."""

    operation_id: int


GateState = Union[Idle, Busy]

IDLE = Idle()


class CriticalSectionGate:
    def __init__(self, correlator: ResponseCorrelator):
        self._correlator = correlator
        self._state: GateState = IDLE

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def busy(self) -> bool:
        return isinstance(self._state, Busy)

    async def submit_critical(
        self,
        write: Optional[WriteStep],
        match_data: DataMatcher,
        match_error: Optional[ErrorMatcher] = None,
        timeout: Optional[float] = None,
    ) -> T:
        """Submit an operation that must not overlap another critical one.

        Raises:
            BusyError: If a critical operation is already outstanding. Nothing
                is written to mplayer in that case.
        """
        if isinstance(self._state, Busy):
            logger.warning(
                f"Busy - operation #{self._state.operation_id} still outstanding"
            )
            raise BusyError()

        operation_id = self._correlator.next_operation_id()
        self._state = Busy(operation_id)
        try:
            return await self._correlator.submit(
                write, match_data, match_error, timeout, operation_id=operation_id
            )
        finally:
            self._state = IDLE
