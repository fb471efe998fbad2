"""Tests for the per-file upload lock registry."""

import asyncio

import pytest

from filestore.upload_locks import UploadLockRegistry


@pytest.mark.asyncio
async def test_hold_serializes_same_file():
    locks = UploadLockRegistry()
    events = []

    async def writer(name):
        async with locks.hold("share", "file"):
            events.append(f"{name}-start")
            await asyncio.sleep(0.01)
            events.append(f"{name}-end")

    await asyncio.gather(writer("a"), writer("b"))

    assert events == ["a-start", "a-end", "b-start", "b-end"]


@pytest.mark.asyncio
async def test_different_files_do_not_block_each_other():
    locks = UploadLockRegistry()
    entered = asyncio.Event()

    async def first():
        async with locks.hold("share", "file-1"):
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def second():
        async with locks.hold("share", "file-2"):
            entered.set()

    await asyncio.gather(first(), second())


@pytest.mark.asyncio
async def test_entries_released_after_use():
    locks = UploadLockRegistry()

    async with locks.hold("share", "file"):
        assert locks.is_held("share", "file")
        assert locks.count() == 1

    assert not locks.is_held("share", "file")
    assert locks.count() == 0


@pytest.mark.asyncio
async def test_entry_released_when_body_raises():
    locks = UploadLockRegistry()

    with pytest.raises(RuntimeError):
        async with locks.hold("share", "file"):
            raise RuntimeError("write failed")

    assert locks.count() == 0
