"""Tests for matching mplayer output lines to pending operations."""

import asyncio
from typing import Optional

import pytest
from conftest import FakeEngine, settle

from mplayer_control.core.config import PlayerConfig
from mplayer_control.core.exceptions import (
    OperationTimeoutError,
    PlaybackError,
    ProcessFaultError,
)
from mplayer_control.domain.playback.correlator import ResponseCorrelator
from mplayer_control.domain.playback.session import Session


def starts_with(prefix: str):
    def match(line: str) -> Optional[str]:
        return line[len(prefix):] if line.startswith(prefix) else None

    return match


def fails_on(prefix: str):
    def match(line: str) -> Optional[Exception]:
        return PlaybackError(line) if line.startswith(prefix) else None

    return match


def send(line: str):
    async def write(send_line) -> None:
        await send_line(line)

    return write


@pytest.fixture
def session(engine: FakeEngine, config: PlayerConfig) -> Session:
    return Session(config, engine.factory)


@pytest.fixture
def correlator(session: Session) -> ResponseCorrelator:
    return ResponseCorrelator(session)


class TestSubmit:
    async def test_resolves_with_matched_value(
        self, correlator: ResponseCorrelator, engine: FakeEngine
    ) -> None:
        engine.reply("get", "noise", "ANS:42")

        result = await correlator.submit(send("get"), starts_with("ANS:"), timeout=0.2)

        assert result == "42"
        assert engine.written == ["get"]
        assert correlator.pending == ()

    async def test_spawns_process_on_demand(
        self, correlator: ResponseCorrelator, engine: FakeEngine
    ) -> None:
        engine.reply("get", "ANS:1")

        await correlator.submit(send("get"), starts_with("ANS:"), timeout=0.2)

        assert len(engine.transports) == 1

    async def test_rejects_on_error_line(
        self, correlator: ResponseCorrelator, engine: FakeEngine
    ) -> None:
        engine.reply("get", "ERR: nope")

        with pytest.raises(PlaybackError, match="ERR: nope"):
            await correlator.submit(
                send("get"), starts_with("ANS:"), fails_on("ERR:"), timeout=0.2
            )

        assert correlator.pending == ()

    async def test_data_checked_before_error(
        self, correlator: ResponseCorrelator, engine: FakeEngine
    ) -> None:
        engine.reply("get", "X-both")

        result = await correlator.submit(
            send("get"), starts_with("X-"), fails_on("X-"), timeout=0.2
        )

        assert result == "both"

    async def test_falsy_values_still_match(
        self, correlator: ResponseCorrelator, engine: FakeEngine
    ) -> None:
        engine.reply("get", "zero")

        result = await correlator.submit(
            send("get"), lambda line: 0 if line == "zero" else None, timeout=0.2
        )

        assert result == 0

    async def test_timeout_detaches(
        self, correlator: ResponseCorrelator, engine: FakeEngine
    ) -> None:
        with pytest.raises(OperationTimeoutError):
            await correlator.submit(send("get"), starts_with("ANS:"), timeout=0.05)

        assert correlator.pending == ()
        engine.emit("ANS:late")  # ignored

    async def test_no_timeout_waits_forever(
        self, correlator: ResponseCorrelator, engine: FakeEngine
    ) -> None:
        task = asyncio.create_task(
            correlator.submit(None, starts_with("END"), timeout=None)
        )
        await asyncio.sleep(0.1)

        assert not task.done()
        engine.emit("END")
        assert await task == ""

    async def test_predicate_exception_rejects(
        self, correlator: ResponseCorrelator, engine: FakeEngine
    ) -> None:
        def explode(line: str) -> Optional[int]:
            return int(line)

        engine.reply("get", "not a number")

        with pytest.raises(ValueError):
            await correlator.submit(send("get"), explode, timeout=0.2)

        assert correlator.pending == ()

    async def test_write_failure_rejects(
        self, correlator: ResponseCorrelator, session: Session, engine: FakeEngine
    ) -> None:
        await session.ensure_ready()
        engine.write_error = BrokenPipeError("Broken pipe")

        with pytest.raises(ProcessFaultError):
            await correlator.submit(send("get"), starts_with("ANS:"), timeout=0.2)

        assert correlator.pending == ()

    async def test_startup_failure_rejects_without_registering(
        self, correlator: ResponseCorrelator, engine: FakeEngine
    ) -> None:
        engine.spawn_error = FileNotFoundError("mplayer")

        with pytest.raises(ProcessFaultError):
            await correlator.submit(send("get"), starts_with("ANS:"), timeout=0.2)

        assert correlator.pending == ()
        assert engine.written == []


class TestFanOut:
    async def test_line_offered_to_all_pending_in_order(
        self, correlator: ResponseCorrelator, session: Session, engine: FakeEngine
    ) -> None:
        await session.ensure_ready()
        settled: list[str] = []

        async def run(name: str, prefix: str) -> None:
            await correlator.submit(None, starts_with(prefix))
            settled.append(name)

        first = asyncio.create_task(run("first", "A"))
        second = asyncio.create_task(run("second", "A"))
        third = asyncio.create_task(run("third", "B"))
        await settle()
        assert len(correlator.pending) == 3

        engine.emit("A")
        await asyncio.gather(first, second)

        assert settled == ["first", "second"]
        assert len(correlator.pending) == 1

        engine.emit("B")
        await third

    async def test_operation_settles_once(
        self, correlator: ResponseCorrelator, session: Session, engine: FakeEngine
    ) -> None:
        await session.ensure_ready()
        seen: list[str] = []

        def match(line: str) -> Optional[str]:
            seen.append(line)
            return line

        task = asyncio.create_task(correlator.submit(None, match))
        await settle()

        engine.emit("one")
        engine.emit("two")

        assert await task == "one"
        assert seen == ["one"]

    async def test_process_fault_rejects_every_pending_operation(
        self, correlator: ResponseCorrelator, session: Session, engine: FakeEngine
    ) -> None:
        await session.ensure_ready()
        tasks = [
            asyncio.create_task(correlator.submit(None, starts_with("never")))
            for _ in range(3)
        ]
        await settle()

        engine.crash(1)

        results = await asyncio.gather(*tasks, return_exceptions=True)
        assert all(isinstance(r, ProcessFaultError) for r in results)
        assert correlator.pending == ()

    async def test_cancelled_caller_detaches(
        self, correlator: ResponseCorrelator, session: Session, engine: FakeEngine
    ) -> None:
        await session.ensure_ready()
        task = asyncio.create_task(correlator.submit(None, starts_with("never")))
        await settle()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert correlator.pending == ()


class TestWatch:
    async def test_watch_requires_ready_session(
        self, correlator: ResponseCorrelator, engine: FakeEngine
    ) -> None:
        with pytest.raises(ProcessFaultError, match="not ready"):
            correlator.watch(starts_with("GLOBAL: EOF code: "))

        assert engine.transports == []
        assert correlator.pending == ()

    async def test_watch_registered_mid_dispatch_sees_later_lines(
        self, correlator: ResponseCorrelator, session: Session, engine: FakeEngine
    ) -> None:
        await session.ensure_ready()
        watched: list[asyncio.Future] = []

        def match_and_watch(line: str) -> Optional[str]:
            if line != "CPLAYER: Starting playback...":
                return None
            watched.append(correlator.watch(starts_with("GLOBAL: EOF code: ")))
            return line

        engine.reply(
            "loadfile bob",
            "CPLAYER: Starting playback...",
            "GLOBAL: EOF code: 1",
        )

        await correlator.submit(send("loadfile bob"), match_and_watch, timeout=0.2)

        assert await watched[0] == "1"
        assert correlator.pending == ()


class TestOperationIds:
    async def test_ids_increase(self, correlator: ResponseCorrelator) -> None:
        first = correlator.next_operation_id()
        second = correlator.next_operation_id()

        assert second == first + 1
