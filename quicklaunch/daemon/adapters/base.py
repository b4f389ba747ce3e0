"""Shared machinery for source adapters."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Sequence, TypeVar

from loguru import logger

from ..bus import Event, EventBus
from ..cache import CacheStore, Fetcher
from ..error_handling import BackendFetchError, HealthTracker
from ..gate import CommitGate, QueryTicket
from ..models import Source


T = TypeVar("T")


def contains(field: Optional[str], needle: str) -> bool:
    """Case-insensitive substring test; `needle` must already be lowercase."""
    return bool(field) and needle in field.lower()


class SourceAdapter(ABC):
    """Translates a query into a committed result set for one source."""

    source: Source

    def __init__(
        self,
        gate: CommitGate,
        setter: Callable[[QueryTicket, Any], None],
        health: Optional[HealthTracker] = None,
        bus: Optional[EventBus] = None
    ):
        self.gate = gate
        self.setter = setter
        self.health = health or HealthTracker()
        self.bus = bus

    @property
    def name(self) -> str:
        return self.source.value

    def commit(self, ticket: QueryTicket, value: Any) -> bool:
        return self.gate.commit(ticket, self.setter, value, source=self.source)

    def emit(self, event_type: str, data: Dict[str, Any]) -> None:
        if self.bus is not None and self.bus.running:
            self.bus.emit_nowait(Event(type=event_type, data=data, source=self.name))


class CachedSourceAdapter(SourceAdapter, Generic[T]):
    """
    Adapter over a lazily filled cache.

    Blank queries commit an empty result without touching the cache. The
    first real query fills the cache; a failed fill is logged, commits an
    empty result and leaves the cache unloaded so the next query retries.
    """

    def __init__(
        self,
        cache: CacheStore[T],
        fetch: Fetcher,
        gate: CommitGate,
        setter: Callable[[QueryTicket, Any], None],
        max_results: int = 10,
        health: Optional[HealthTracker] = None,
        bus: Optional[EventBus] = None
    ):
        super().__init__(gate, setter, health=health, bus=bus)
        self.cache = cache
        self.fetch = fetch
        self.max_results = max_results

    async def search(self, ticket: QueryTicket) -> bool:
        """Match `ticket` against the cache and commit. Never raises."""
        if ticket.is_blank:
            return self.commit(ticket, [])

        try:
            items = await self.cache.get_or_load(self.fetch, on_load=self._on_load)
        except Exception as e:
            error = BackendFetchError(self.name, e)
            logger.error(str(error))
            self.health.record_failure(self.name, e, {'query': ticket.text})
            self.emit("cache.failed", {'source': self.name, 'error': str(e)})
            return self.commit(ticket, [])

        self.health.record_success(self.name)

        needle = ticket.normalized.lower()
        matches = self.filter(items, needle)[:self.max_results]
        results = await self.decorate(matches)
        return self.commit(ticket, results)

    def _on_load(self, items: Sequence[T]) -> None:
        self.emit("cache.loaded", {'source': self.name, 'count': len(items)})

    def filter(self, items: Iterable[T], needle: str) -> List[T]:
        return [item for item in items if self.matches(item, needle)]

    @abstractmethod
    def matches(self, item: T, needle: str) -> bool:
        """Whether `item` matches the lowercased, trimmed query."""

    async def decorate(self, matches: Sequence[T]) -> List[T]:
        """Hook for per-result enrichment after filtering."""
        return list(matches)
