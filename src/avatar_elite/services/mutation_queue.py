"""Per-key serialization of read-modify-write sequences."""

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from typing import TypeVar

T = TypeVar("T")


class MutationQueue:
    """Run async operations for the same key one at a time, in submission order.

    Each key maps to the tail future of the last scheduled operation. A new
    operation waits for the tail, runs, then resolves its own tail. Tails only
    ever resolve with ``None``, so a failed operation never blocks the next one
    for that key; the failure is still raised to the caller that submitted it.
    Different keys never wait on each other.
    """

    def __init__(self) -> None:
        self._tails: dict[Hashable, asyncio.Future[None]] = {}

    def __len__(self) -> int:
        return len(self._tails)

    async def run(self, key: Hashable, operation: Callable[[], Awaitable[T]]) -> T:
        """Schedule ``operation`` after all earlier operations for ``key``."""
        previous = self._tails.get(key)
        tail: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._tails[key] = tail
        try:
            if previous is not None:
                await asyncio.shield(previous)
            return await operation()
        finally:
            if previous is None or previous.done():
                self._release(key, tail)
            else:
                # Cancelled while waiting: keep the chain ordered behind previous.
                previous.add_done_callback(lambda _: self._release(key, tail))

    def _release(self, key: Hashable, tail: "asyncio.Future[None]") -> None:
        if not tail.done():
            tail.set_result(None)
        if self._tails.get(key) is tail:
            del self._tails[key]
