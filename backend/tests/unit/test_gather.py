"""Unit tests for the partial-failure gather combinator"""
import asyncio

import pytest

from venturehub.errors import ExternalServiceFailure, PartialHydrationFailure
from venturehub.services.gather import gather_partial


class TestGatherPartial:
    """Tests for gather_partial"""

    @pytest.mark.asyncio
    async def test_all_succeed(self):
        async def double(x):
            return x * 2

        result = await gather_partial([1, 2, 3], double)
        assert result.values == [2, 4, 6]
        assert result.succeeded == [(1, 2), (2, 4), (3, 6)]
        assert result.failed == []

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self):
        async def fetch(x):
            if x == 2:
                raise ExternalServiceFailure("node timeout")
            if x == 4:
                raise RuntimeError("decode error")
            return x

        result = await gather_partial([1, 2, 3, 4, 5], fetch, key=lambda x: f"item-{x}")
        assert result.values == [1, 3, 5]
        assert len(result.failed) == 2
        assert all(isinstance(f, PartialHydrationFailure) for f in result.failed)
        assert [f.key for f in result.failed] == ["item-2", "item-4"]
        assert result.failed[0].details == "node timeout"
        assert result.failed[1].details == "decode error"

    @pytest.mark.asyncio
    async def test_runs_concurrently(self):
        started = []
        release = asyncio.Event()

        async def fetch(x):
            started.append(x)
            await release.wait()
            return x

        task = asyncio.create_task(gather_partial([1, 2, 3], fetch))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert sorted(started) == [1, 2, 3]
        release.set()
        result = await task
        assert result.values == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        async def fetch(x):
            return x

        result = await gather_partial([], fetch)
        assert result.values == []
        assert result.failed == []

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        async def fetch(x):
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await gather_partial([1], fetch)
