"""
Unit tests for InFlight memoization.
"""

import asyncio

import pytest

from studyaid.session.inflight import InFlight


class TestInFlight:
    @pytest.mark.asyncio
    async def test_idle_by_default(self) -> None:
        holder: InFlight[int] = InFlight("test op")

        assert holder.in_progress is False
        assert holder.pending is None

    @pytest.mark.asyncio
    async def test_pending_visible_while_running_and_cleared_after(self) -> None:
        holder: InFlight[int] = InFlight("test op")
        release = asyncio.Event()

        async def op() -> int:
            await release.wait()
            return 42

        task = holder.start(op)
        assert holder.in_progress is True
        assert holder.pending is task

        release.set()
        assert await task == 42
        assert holder.pending is None

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_run(self) -> None:
        holder: InFlight[int] = InFlight("test op")
        calls = 0
        release = asyncio.Event()

        async def op() -> int:
            nonlocal calls
            calls += 1
            await release.wait()
            return calls

        async def caller() -> int:
            pending = holder.pending or holder.start(op)
            return await asyncio.shield(pending)

        waiters = [asyncio.create_task(caller()) for _ in range(5)]
        await asyncio.sleep(0)
        release.set()

        assert await asyncio.gather(*waiters) == [1, 1, 1, 1, 1]
        assert calls == 1

    @pytest.mark.asyncio
    async def test_cleared_after_failure(self) -> None:
        holder: InFlight[int] = InFlight("test op")

        async def op() -> int:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await holder.start(op)

        assert holder.pending is None

    @pytest.mark.asyncio
    async def test_start_twice_raises(self) -> None:
        holder: InFlight[None] = InFlight("test op")
        release = asyncio.Event()

        task = holder.start(release.wait)
        with pytest.raises(RuntimeError, match="already in progress"):
            holder.start(release.wait)

        release.set()
        await task
