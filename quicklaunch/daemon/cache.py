"""Per-source cache stores.

A `CacheStore` holds one source's previously fetched collection together
with its `loaded` flag. Fills are lazy and serialized by a lock, so two
queries that both find the cache empty trigger a single fetch: the second
waiter re-checks `loaded` after acquiring the lock. A fill either stores a
complete snapshot or leaves the store exactly as it was.
"""

import asyncio
import functools
from typing import Awaitable, Callable, Dict, Generic, Hashable, Iterable, Optional, Tuple, TypeVar

from loguru import logger


T = TypeVar("T")
K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Fetcher = Callable[[], Awaitable[Iterable[T]]]


class CacheStore(Generic[T]):
    """Lazily populated, explicitly refreshed collection for one source."""

    def __init__(self, name: str):
        self.name = name
        self._items: Tuple[T, ...] = ()
        self._loaded = False
        self._lock = asyncio.Lock()
        self.fetch_count = 0

    @property
    def items(self) -> Tuple[T, ...]:
        return self._items

    @property
    def loaded(self) -> bool:
        return self._loaded

    def __len__(self) -> int:
        return len(self._items)

    async def get_or_load(
        self,
        fetch: Fetcher,
        on_load: Optional[Callable[[Tuple[T, ...]], None]] = None
    ) -> Tuple[T, ...]:
        """
        Return the cached items, fetching them first if never loaded.

        `on_load` is called only by the caller that performed the fill.
        Raises whatever `fetch` raises; the store stays unloaded in that
        case so the next call retries.
        """
        if self._loaded:
            return self._items

        async with self._lock:
            if self._loaded:
                return self._items
            items = await self._fetch(fetch)
            self._store(items)
            logger.info(f"Cache {self.name} loaded with {len(items)} items")
            if on_load is not None:
                on_load(self._items)
            return self._items

    async def refresh(self, fetch: Fetcher) -> Tuple[T, ...]:
        """
        Unconditionally re-fetch and overwrite, marking the store loaded.

        On failure the previous contents and flag are left untouched and
        the error propagates to the caller.
        """
        async with self._lock:
            items = await self._fetch(fetch)
            self._store(items)
            logger.info(f"Cache {self.name} refreshed with {len(items)} items")
            return self._items

    def invalidate(self) -> None:
        """Forget the loaded flag so the next lookup fetches again."""
        self._loaded = False

    async def _fetch(self, fetch: Fetcher) -> Tuple[T, ...]:
        self.fetch_count += 1
        return tuple(await fetch())

    def _store(self, items: Tuple[T, ...]) -> None:
        self._items = items
        self._loaded = True

    def snapshot(self) -> Dict[str, object]:
        return {
            'loaded': self._loaded,
            'size': len(self._items),
            'fetches': self.fetch_count,
        }


class KeyedCache(Generic[K, V]):
    """
    Opportunistically populated mapping, never invalidated.

    Used for per-file icons: each key is resolved at most once, misses
    (a resolver returning None) are remembered too.
    """

    def __init__(self, name: str):
        self.name = name
        self._values: Dict[K, Optional[V]] = {}
        self._pending: Dict[K, "asyncio.Future[Optional[V]]"] = {}

    def __contains__(self, key: K) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def get(self, key: K) -> Optional[V]:
        return self._values.get(key)

    async def get_or_resolve(
        self,
        key: K,
        resolve: Callable[[], Awaitable[Optional[V]]]
    ) -> Optional[V]:
        if key in self._values:
            return self._values[key]

        pending = self._pending.get(key)
        if pending is None:
            # Shared by every caller, independent of any one caller's cancellation
            pending = asyncio.ensure_future(resolve())
            self._pending[key] = pending
            pending.add_done_callback(functools.partial(self._settle, key))
        return await asyncio.shield(pending)

    def _settle(self, key: K, task: "asyncio.Future[Optional[V]]") -> None:
        self._pending.pop(key, None)
        if task.cancelled():
            return
        # Failures are not remembered; calling exception() also marks them retrieved
        if task.exception() is None:
            self._values[key] = task.result()
