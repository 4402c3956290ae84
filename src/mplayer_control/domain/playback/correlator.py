"""
Response correlation for the mplayer line protocol.

mplayer replies carry no request identifier, so each pending operation
supplies predicates that recognise its reply. The correlator is the session's
only line listener: every output line is offered to the pending operations in
the order they were submitted, and an operation is detached as soon as it
settles (match, error line, timeout or process fault).
"""

import asyncio
import itertools
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from loguru import logger

from mplayer_control.core.exceptions import OperationTimeoutError, ProcessFaultError

from .session import Session

T = TypeVar("T")

DataMatcher = Callable[[str], Optional[T]]
ErrorMatcher = Callable[[str], Optional[BaseException]]
Send = Callable[[str], Awaitable[None]]
WriteStep = Callable[[Send], Awaitable[None]]


class Operation(Generic[T]):
    """A pending request awaiting the line that answers it.

    The result lives in an asyncio.Future, so it can be settled exactly once.
    """

    def __init__(
        self,
        operation_id: int,
        match_data: DataMatcher,
        match_error: Optional[ErrorMatcher] = None,
        timeout: Optional[float] = None,
    ):
        self.operation_id = operation_id
        self.match_data = match_data
        self.match_error = match_error
        self.timeout = timeout
        self.future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._timer: Optional[asyncio.TimerHandle] = None

    def __repr__(self) -> str:
        return f"<Operation #{self.operation_id} done={self.done}>"

    @property
    def done(self) -> bool:
        return self.future.done()

    def offer(self, line: str) -> bool:
        """Evaluate a line against the predicates. Returns True if it settled."""
        if self.future.done():
            return False

        try:
            value = self.match_data(line)
            if value is not None:
                self.future.set_result(value)
                return True

            if self.match_error is not None:
                reason = self.match_error(line)
                if reason is not None:
                    self.future.set_exception(reason)
                    return True
        except Exception as e:
            logger.exception(f"Operation #{self.operation_id} failed to parse: {line!r}")
            self.future.set_exception(e)
            return True

        return False

    def fail(self, reason: BaseException) -> None:
        if not self.future.done():
            self.future.set_exception(reason)

    def start_timer(self) -> None:
        """Start the timeout clock. A falsy timeout waits forever."""
        if self.timeout and not self.future.done():
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self.timeout, self._expire)

    def cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _expire(self) -> None:
        self._timer = None
        if not self.future.done():
            logger.warning(
                f"Operation #{self.operation_id} timed out after {self.timeout}s"
            )
            self.future.set_exception(OperationTimeoutError())


class ResponseCorrelator:
    """Registry of pending operations fed by the session's output lines."""

    def __init__(self, session: Session):
        self._session = session
        self._pending: list[Operation] = []
        self._ids = itertools.count(1)
        session.set_line_listener(self._dispatch)
        session.add_fault_listener(self._fail_all)

    @property
    def pending(self) -> tuple[Operation, ...]:
        """Operations still waiting for a reply, in submission order."""
        return tuple(op for op in self._pending if not op.done)

    def next_operation_id(self) -> int:
        return next(self._ids)

    async def submit(
        self,
        write: Optional[WriteStep],
        match_data: DataMatcher,
        match_error: Optional[ErrorMatcher] = None,
        timeout: Optional[float] = None,
        operation_id: Optional[int] = None,
    ) -> T:
        """Run one request/response exchange.

        Args:
            write: Coroutine function given `send(line)`; writes the command(s).
                None for operations that only wait for a line.
            match_data: Returns the result for a matching line, else None
            match_error: Returns an exception for a failure line, else None
            timeout: Seconds to wait after the write; None or 0 waits forever
            operation_id: Id reserved by the caller (the critical-section gate)

        Raises:
            ProcessFaultError: If mplayer dies or cannot be written to
            OperationTimeoutError: If no matching line arrives in time
        """
        await self._session.ensure_ready()

        # Listen before writing so a fast reply cannot slip past
        op = self._register(match_data, match_error, timeout, operation_id)

        if write is not None:
            try:
                await write(self._session.write_line)
            except asyncio.CancelledError:
                op.future.cancel()
                raise
            except Exception as e:
                op.fail(e)

        op.start_timer()
        return await op.future

    def watch(
        self, match_data: DataMatcher, match_error: Optional[ErrorMatcher] = None
    ) -> asyncio.Future:
        """Register a write-less operation without a timeout, synchronously.

        Safe to call from inside a predicate: the operation sees every line
        after the one being dispatched.

        Raises:
            ProcessFaultError: If the session is not ready
        """
        if not self._session.ready:
            raise ProcessFaultError("mplayer is not ready")
        return self._register(match_data, match_error, None, None).future

    def _register(
        self,
        match_data: DataMatcher,
        match_error: Optional[ErrorMatcher],
        timeout: Optional[float],
        operation_id: Optional[int],
    ) -> Operation:
        op = Operation(
            operation_id if operation_id is not None else self.next_operation_id(),
            match_data,
            match_error,
            timeout,
        )
        self._pending.append(op)
        op.future.add_done_callback(lambda _: self._detach(op))
        return op

    def _detach(self, op: Operation) -> None:
        op.cancel_timer()
        if op in self._pending:
            self._pending.remove(op)

    def _dispatch(self, line: str) -> None:
        for op in list(self._pending):
            if op.offer(line):
                logger.debug(f"Operation #{op.operation_id} settled by: {line}")

    def _fail_all(self, fault: ProcessFaultError) -> None:
        for op in list(self._pending):
            op.fail(fault)
