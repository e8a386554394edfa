"""Tests for the per-line lock registry."""

import asyncio

import pytest

from subway.services.line_locks import LineLockRegistry


def test_same_line_shares_a_lock():
    registry = LineLockRegistry()

    assert registry.get(1) is registry.get(1)
    assert registry.get(1) is not registry.get(2)
    assert len(registry) == 2


@pytest.mark.asyncio
async def test_hold_serializes_one_line():
    registry = LineLockRegistry()
    events = []

    async def mutate(name):
        async with registry.hold(7):
            events.append(f"{name}-start")
            await asyncio.sleep(0.01)
            events.append(f"{name}-end")

    await asyncio.gather(mutate("first"), mutate("second"))

    assert events == ["first-start", "first-end", "second-start", "second-end"]


@pytest.mark.asyncio
async def test_different_lines_do_not_wait_on_each_other():
    registry = LineLockRegistry()

    async with registry.hold(1):
        async with registry.hold(2):
            assert registry.get(1).locked()
            assert registry.get(2).locked()


@pytest.mark.asyncio
async def test_discard_keeps_held_locks():
    registry = LineLockRegistry()

    async with registry.hold(3):
        registry.discard(3)
        assert len(registry) == 1

    registry.discard(3)
    assert len(registry) == 0
