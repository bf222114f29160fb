"""Tests for SingleFlight coalescing."""

from __future__ import annotations

import asyncio

import pytest

from httpstash.client import SingleFlight


class TestSingleFlight:
    def test_concurrent_callers_share_one_call(self) -> None:
        calls = 0

        async def scenario():
            nonlocal calls
            flight = SingleFlight()
            gate = asyncio.Event()

            async def work():
                nonlocal calls
                calls += 1
                await gate.wait()
                return {"id": 1}

            waiters = [asyncio.ensure_future(flight.do("k", work)) for _ in range(5)]
            await asyncio.sleep(0)
            assert flight.in_flight("k")
            gate.set()
            results = await asyncio.gather(*waiters)
            return flight, results

        flight, results = asyncio.run(scenario())
        assert calls == 1
        assert results == [{"id": 1}] * 5
        assert len(flight) == 0

    def test_different_keys_run_separately(self) -> None:
        seen = []

        async def scenario():
            flight = SingleFlight()

            async def work(tag):
                seen.append(tag)
                await asyncio.sleep(0)
                return tag

            return await asyncio.gather(
                flight.do("a", lambda: work("a")), flight.do("b", lambda: work("b"))
            )

        assert asyncio.run(scenario()) == ["a", "b"]
        assert sorted(seen) == ["a", "b"]

    def test_key_released_after_completion(self) -> None:
        calls = 0

        async def scenario():
            nonlocal calls
            flight = SingleFlight()

            async def work():
                nonlocal calls
                calls += 1
                return calls

            first = await flight.do("k", work)
            second = await flight.do("k", work)
            return first, second

        assert asyncio.run(scenario()) == (1, 2)

    def test_exception_reaches_every_waiter(self) -> None:
        async def scenario():
            flight = SingleFlight()
            gate = asyncio.Event()

            async def work():
                await gate.wait()
                raise ValueError("boom")

            waiters = [asyncio.ensure_future(flight.do("k", work)) for _ in range(3)]
            await asyncio.sleep(0)
            gate.set()
            return await asyncio.gather(*waiters, return_exceptions=True), flight

        results, flight = asyncio.run(scenario())
        assert all(isinstance(r, ValueError) for r in results)
        assert not flight.in_flight("k")

    def test_cancelling_one_waiter_keeps_the_shared_call(self) -> None:
        async def scenario():
            flight = SingleFlight()
            gate = asyncio.Event()

            async def work():
                await gate.wait()
                return 42

            first = asyncio.ensure_future(flight.do("k", work))
            second = asyncio.ensure_future(flight.do("k", work))
            await asyncio.sleep(0)
            first.cancel()
            await asyncio.sleep(0)
            gate.set()
            value = await second
            with pytest.raises(asyncio.CancelledError):
                await first
            return value

        assert asyncio.run(scenario()) == 42
