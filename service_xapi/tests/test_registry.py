"""
Unit tests for in-process session state.
"""

import asyncio

import pytest

from service_xapi.app.auth.models import Cookie
from service_xapi.app.auth.registry import CookieMemo, InstanceRegistry, KeyedLock


class TestInstanceRegistry:
    """Test cases for InstanceRegistry."""

    def test_last_write_wins(self):
        registry = InstanceRegistry()
        first, second = object(), object()

        registry.set("alice", first)
        registry.set("alice", second)

        assert registry.get("alice") is second
        assert len(registry) == 1

    def test_missing_identity(self):
        registry = InstanceRegistry()

        assert registry.get("nobody") is None
        assert "nobody" not in registry

    def test_clear(self):
        registry = InstanceRegistry()
        registry.set("alice", object())

        registry.clear()

        assert len(registry) == 0


class TestCookieMemo:
    """Test cases for CookieMemo."""

    def test_stores_a_copy(self):
        memo = CookieMemo()
        jar = [Cookie(key="auth_token", value="a")]

        memo.set("alice", jar)
        jar.append(Cookie(key="ct0", value="b"))

        assert [c.key for c in memo.get("alice")] == ["auth_token"]


class TestKeyedLock:
    """Test cases for KeyedLock."""

    @pytest.mark.asyncio
    async def test_same_key_is_serialized(self):
        locks = KeyedLock()
        events = []

        async def worker(name):
            async with locks.acquire("alice"):
                events.append(f"{name}-start")
                await asyncio.sleep(0.01)
                events.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))

        assert events == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_different_keys_do_not_block(self):
        locks = KeyedLock()
        release = asyncio.Event()

        async def hold_alice():
            async with locks.acquire("alice"):
                await release.wait()

        holder = asyncio.create_task(hold_alice())
        await asyncio.sleep(0)

        async with locks.acquire("bob"):
            acquired_bob = True

        release.set()
        await holder

        assert acquired_bob

    @pytest.mark.asyncio
    async def test_locks_are_dropped_when_released(self):
        locks = KeyedLock()

        async with locks.acquire("alice"):
            assert len(locks) == 1

        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_released_on_error(self):
        locks = KeyedLock()

        with pytest.raises(RuntimeError):
            async with locks.acquire("alice"):
                raise RuntimeError("boom")

        assert len(locks) == 0
        async with locks.acquire("alice"):
            pass
