"""Keyed Locks - per-key serialization of read-check-write sections.

Invariants:
    - Holders of the same key run one at a time
    - Different keys do not block each other
    - Keys nobody holds or waits on leave no entry behind
"""

import asyncio

from memoria.infrastructure.locks import KeyedLocks


async def test_same_key_is_serialized():
    locks = KeyedLocks()
    active = 0
    peak = 0

    async def guarded():
        nonlocal active, peak
        async with locks.hold("group-1"):
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

    await asyncio.gather(*(guarded() for _ in range(5)))

    assert peak == 1


async def test_check_then_write_never_oversubscribes():
    locks = KeyedLocks()
    members = ["creator"]
    capacity = 3
    rejected = []

    async def join(user_id):
        async with locks.hold("group-1"):
            count = len(members)
            await asyncio.sleep(0)
            if count >= capacity:
                rejected.append(user_id)
                return
            members.append(user_id)

    await asyncio.gather(*(join(f"user-{i}") for i in range(6)))

    assert len(members) == capacity
    assert len(rejected) == 4


async def test_different_keys_run_concurrently():
    locks = KeyedLocks()
    entered = asyncio.Event()

    async def first():
        async with locks.hold("a"):
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def second():
        async with locks.hold("b"):
            entered.set()

    await asyncio.gather(first(), second())
    assert entered.is_set()


async def test_released_keys_are_dropped():
    locks = KeyedLocks()
    inside = asyncio.Event()
    release = asyncio.Event()

    async def holder():
        async with locks.hold("group-1"):
            inside.set()
            await release.wait()

    async def waiter():
        await inside.wait()
        async with locks.hold("group-1"):
            pass

    tasks = [asyncio.create_task(holder()), asyncio.create_task(waiter())]
    await inside.wait()
    await asyncio.sleep(0)
    assert len(locks) == 1

    release.set()
    await asyncio.gather(*tasks)
    assert len(locks) == 0

    for key in range(10):
        async with locks.hold(key):
            pass
    assert len(locks) == 0
