"""Per-note write locks.

Writers of the same note are serialized so their grant reconciliations do not
interleave. With ``REDIS_URL`` set the lock lives in Redis and holds across
service replicas; otherwise each process keeps one ``asyncio.Lock`` per note.
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as redis
from domain.services.note_service import NoteLockTimeoutError
from redis.exceptions import LockError

logger = logging.getLogger(__name__)


class NoteLockManager:
    """Hands out a lock per note id.

    Example:
        >>> locks = NoteLockManager(timeout=5)
        >>> async with locks.lock(42):
        ...     await service.replace_note(...)
    """

    def __init__(self, redis_url: Optional[str] = None, timeout: float = 10.0):
        self._timeout = timeout
        self._redis: Optional[redis.Redis] = (
            redis.from_url(redis_url, decode_responses=True) if redis_url else None
        )
        self._local_locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    @property
    def distributed(self) -> bool:
        return self._redis is not None

    @asynccontextmanager
    async def lock(self, note_id: int) -> AsyncIterator[None]:
        """Hold the lock of one note for the duration of the block.

        Args:
            note_id (int): Note to lock.

        Raises:
            NoteLockTimeoutError: If the lock is not acquired within the timeout.
        """
        if self._redis is not None:
            async with self._redis_lock(note_id):
                yield
            return

        local_lock = self._local_locks.get(note_id)
        if local_lock is None:
            local_lock = asyncio.Lock()
            self._local_locks[note_id] = local_lock

        try:
            await asyncio.wait_for(local_lock.acquire(), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"Timed out waiting for the lock of note {note_id}")
            raise NoteLockTimeoutError(f"Note {note_id} is locked by another writer") from e

        try:
            yield
        finally:
            local_lock.release()

    @asynccontextmanager
    async def _redis_lock(self, note_id: int) -> AsyncIterator[None]:
        redis_lock = self._redis.lock(
            f"note_lock:{note_id}",
            timeout=self._timeout,
            blocking_timeout=self._timeout,
        )
        acquired = await redis_lock.acquire()
        if not acquired:
            logger.warning(f"Timed out waiting for the Redis lock of note {note_id}")
            raise NoteLockTimeoutError(f"Note {note_id} is locked by another writer")

        try:
            yield
        finally:
            try:
                await redis_lock.release()
            except LockError as e:
                # The lock expired while held; the transaction has already ended
                logger.warning(f"Lock of note {note_id} expired before release: {str(e)}")

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.close()
