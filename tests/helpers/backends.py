"""Backends and clocks for exercising the store in tests."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

from upi_pay.errors import StorageUnavailable
from upi_pay.storage import MemoryBackend


class FakeClock:
    """Manually advanced clock; ``tick`` moves it forward."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 3, 14, 9, 30, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def tick(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


class SlowBackend(MemoryBackend):
    """Yields to the event loop inside every call to widen race windows."""

    def __init__(self, delay: float = 0.001) -> None:
        super().__init__()
        self.delay = delay

    async def get(self, key: str) -> str | None:
        value = await super().get(key)
        await asyncio.sleep(self.delay)
        return value

    async def set(self, key: str, value: str) -> None:
        await asyncio.sleep(self.delay)
        await super().set(key, value)


class FlakyBackend(MemoryBackend):
    """Memory backend whose reads/writes can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_reads = False
        self.fail_writes = False

    async def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise StorageUnavailable("disk unavailable")
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError(28, "No space left on device")
        await super().set(key, value)

    async def remove(self, key: str) -> None:
        if self.fail_writes:
            raise OSError(28, "No space left on device")
        await super().remove(key)


class GatedReadBackend(MemoryBackend):
    """Holds the next ``get`` after it has read the value, until ``release``."""

    def __init__(self) -> None:
        super().__init__()
        self._gate: asyncio.Event | None = None

    def hold_next_read(self) -> None:
        self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()

    async def get(self, key: str) -> str | None:
        value = await super().get(key)
        gate, self._gate = self._gate, None
        if gate is not None:
            await gate.wait()
        return value
