"""Unit tests for KeyedLocks."""

import asyncio

from dynamic_api.core.locks import KeyedLocks


def test_same_key_same_lock():
    """Holders of one key share a lock; other keys do not."""
    locks = KeyedLocks()

    acme = locks("acme")

    assert locks("acme") is acme
    assert locks("globex") is not acme


async def test_same_key_is_serialized():
    """A second holder of a key waits for the first to finish."""
    locks = KeyedLocks()
    order: list[str] = []

    async def hold(name: str) -> None:
        async with locks("acme"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(hold("first"), hold("second"))

    assert order == ["first-in", "first-out", "second-in", "second-out"]
