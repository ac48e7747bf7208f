"""Per-practitioner mutual exclusion for check-then-write booking sequences."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID


class PractitionerLocks:
    """
    Registry of one ``asyncio.Lock`` per practitioner.

    Holding the lock across "find overlapping appointments" and "write" makes
    the conflict check and the write atomic within this process. Cross-process
    exclusion is the repository's job (see ``transaction``).

    A practitioner's lock lives only while some task holds or waits for it.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._users: dict[UUID, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def _checkout(self, practitioner_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(practitioner_id)
        if lock is None:
            lock = self._locks[practitioner_id] = asyncio.Lock()
        self._users[practitioner_id] = self._users.get(practitioner_id, 0) + 1
        return lock

    def _checkin(self, practitioner_id: UUID) -> None:
        remaining = self._users[practitioner_id] - 1
        if remaining:
            self._users[practitioner_id] = remaining
        else:
            del self._users[practitioner_id]
            del self._locks[practitioner_id]

    @asynccontextmanager
    async def hold(self, *practitioner_ids: UUID) -> AsyncIterator[None]:
        """Acquire locks for the given practitioners in a stable order."""
        keys = sorted(set(practitioner_ids), key=str)
        locks = [self._checkout(pid) for pid in keys]
        acquired: list[asyncio.Lock] = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for pid in keys:
                self._checkin(pid)


# Shared by every request handled by this process
practitioner_locks = PractitionerLocks()
