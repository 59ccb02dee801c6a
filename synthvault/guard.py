"""Single-writer serialization with re-entry rejection."""
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar

from .errors import ReentrancyError


class OperationGuard:
    """Coarse per-component guard.

    Concurrent callers queue on the lock; a call made from inside a guarded
    operation (same task context) is rejected instead of deadlocking.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._lock = asyncio.Lock()
        self._active: ContextVar[bool] = ContextVar(f"{name}_guard", default=False)

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def enter(self, operation: str) -> AsyncIterator[None]:
        if self._active.get():
            raise ReentrancyError(f"{self._name}: reentrant call to {operation}")
        async with self._lock:
            token = self._active.set(True)
            try:
                yield
            finally:
                self._active.reset(token)
