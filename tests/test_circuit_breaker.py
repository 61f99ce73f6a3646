"""
Unit tests for the shared circuit breaker.
"""

import pytest
from unittest.mock import AsyncMock

from shared.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError, CircuitBreakerState
from shared.errors import StoreUnavailableError
from shared.test_helpers import FakeClock


class TestCircuitBreaker:
    """Test cases for CircuitBreaker."""

    @pytest.fixture
    def clock(self):
        return FakeClock(start=0.0)

    @pytest.fixture
    def breaker(self, clock):
        return CircuitBreaker(
            "store",
            failure_threshold=2,
            recovery_timeout=10.0,
            expected_exceptions=(ConnectionError,),
            clock=clock,
        )

    async def _fail(self, breaker):
        with pytest.raises(ConnectionError):
            await breaker.call(AsyncMock(side_effect=ConnectionError("down")))

    @pytest.mark.asyncio
    async def test_passes_results_through(self, breaker):
        assert await breaker.call(AsyncMock(return_value=42)) == 42
        assert breaker.state == CircuitBreakerState.CLOSED

    @pytest.mark.asyncio
    async def test_opens_at_threshold(self, breaker):
        await self._fail(breaker)
        assert breaker.state == CircuitBreakerState.CLOSED

        await self._fail(breaker)
        assert breaker.is_open()

        func = AsyncMock()
        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            await breaker.call(func)
        func.assert_not_awaited()
        assert isinstance(exc_info.value, StoreUnavailableError)

    @pytest.mark.asyncio
    async def test_unexpected_errors_do_not_count(self, breaker):
        for _ in range(3):
            with pytest.raises(ValueError):
                await breaker.call(AsyncMock(side_effect=ValueError("bad input")))

        assert breaker.state == CircuitBreakerState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_after_recovery(self, breaker, clock):
        await self._fail(breaker)
        await self._fail(breaker)

        clock.advance(10.0)
        assert breaker.state == CircuitBreakerState.HALF_OPEN

        assert await breaker.call(AsyncMock(return_value="ok")) == "ok"
        assert breaker.state == CircuitBreakerState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_failure_reopens(self, breaker, clock):
        await self._fail(breaker)
        await self._fail(breaker)
        clock.advance(10.0)

        await self._fail(breaker)

        assert breaker.is_open()

    def test_get_state(self, breaker):
        assert breaker.get_state() == {
            "name": "store",
            "state": "closed",
            "failure_count": 0,
            "failure_threshold": 2,
            "recovery_timeout": 10.0,
        }
