"""Result cache keyed by request fingerprint, plus in-flight deduplication."""

import asyncio
import hashlib
import logging
import threading
import time
from collections import OrderedDict
from typing import Awaitable, Callable, Generic, TypeVar

from ..models import TryOnRequest, TryOnResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fingerprint(request: TryOnRequest) -> str:
    """SHA-256 over user id, category and the complete image payloads."""
    digest = hashlib.sha256()
    for part in (
        request.user_id,
        request.garment_type.value,
        request.user_image,
        request.garment_image,
    ):
        encoded = part.encode("utf-8")
        # length prefix keeps field boundaries unambiguous
        digest.update(len(encoded).to_bytes(8, "big"))
        digest.update(encoded)
    return digest.hexdigest()


class ResultCache:
    """Thread-safe LRU cache of TryOnResult with an optional time-to-live."""

    def __init__(
        self,
        max_entries: int = 512,
        ttl_s: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_s = ttl_s
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, TryOnResult]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> TryOnResult | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            stored_at, result = entry
            if self.ttl_s is not None and self._clock() - stored_at > self.ttl_s:
                del self._entries[key]
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return result

    def put(self, key: str, result: TryOnResult) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), result)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Cache evicted %s", evicted[:12])

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class SingleFlight(Generic[T]):
    """At most one in-progress computation per key; late callers await the same future."""

    def __init__(self):
        self._pending: dict[str, asyncio.Future[T]] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._pending

    async def run(self, key: str, compute: Callable[[], Awaitable[T]]) -> tuple[T, bool]:
        """Run ``compute`` for ``key`` unless already running.

        Returns the result and whether this caller was the one that computed it.
        If the computing caller is cancelled, waiting callers start over rather
        than inherit its cancellation.
        """
        pending = self._pending.get(key)
        if pending is not None:
            logger.debug("Joining in-flight computation %s", key[:12])
            try:
                return await asyncio.shield(pending), False
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
            logger.debug("In-flight computation %s was abandoned, retrying", key[:12])
            return await self.run(key, compute)

        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        try:
            result = await compute()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            if not future.done():
                future.set_exception(e)
                # mark retrieved so an unjoined failure is not reported as unhandled
                future.exception()
            raise
        else:
            future.set_result(result)
            return result, True
        finally:
            self._pending.pop(key, None)
