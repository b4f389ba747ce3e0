"""Query controller: fans each keystroke out to every source adapter.

The controller owns the live query, the caches and the presented result
set. `set_query` bumps the query generation and schedules one task per
adapter; adapters finish in any order and their results pass through the
commit gate, so only results for the query that is live at commit time
ever become visible. In-flight backend calls are never cancelled; their
late results are simply discarded.
"""

import asyncio
from collections import defaultdict
from typing import Any, Dict, List, Optional, Set

from loguru import logger

from .adapters import (
    ApplicationAdapter,
    DirectPathAdapter,
    FileHistoryAdapter,
    INTENT_SOURCES,
    FolderAdapter,
    MemoAdapter,
    PluginAdapter,
    QueryIntentAdapter,
)
from .backends import Backends
from .bus import Event, EventBus
from .cache import CacheStore, KeyedCache
from .config import Config
from .error_handling import HealthTracker
from .gate import CommitGate, PresentedResults, QueryState, QueryTicket
from .models import (
    AppInfo,
    DirectPathResult,
    FileHistoryItem,
    PluginDescriptor,
    SearchIntent,
    Source,
    SystemFolderEntry,
)
from .plugins import PluginRegistry


class QueryController:
    """Single owner of the current query and of what is presented."""

    def __init__(
        self,
        backends: Backends,
        config: Optional[Config] = None,
        registry: Optional[PluginRegistry] = None,
        event_bus: Optional[EventBus] = None
    ):
        self.config = config or Config.default()
        self.backends = backends
        self.event_bus = event_bus
        self.health = HealthTracker()

        self.state = QueryState()
        self.presented = PresentedResults()
        self.gate = CommitGate(self.state, bus=event_bus)

        # Created empty and unloaded, filled lazily on first real query
        self.folders_cache: CacheStore[SystemFolderEntry] = CacheStore("folders")
        self.apps_cache: CacheStore[AppInfo] = CacheStore("applications")
        self.history_cache: CacheStore[FileHistoryItem] = CacheStore("file_history")
        self.icon_cache: KeyedCache[str, str] = KeyedCache("file_icons")

        max_results = self.config.search.max_results
        common = {'health': self.health, 'bus': event_bus}

        self.memos = MemoAdapter(
            backends.memos, self.gate, self.presented.setter(Source.MEMOS),
            max_results=max_results, **common
        )
        self.folders = FolderAdapter(
            self.folders_cache, backends.folders.list_system_folders,
            self.gate, self.presented.setter(Source.FOLDERS),
            max_results=max_results, **common
        )
        self.applications = ApplicationAdapter(
            backends.applications, self.apps_cache,
            self.gate, self.presented.setter(Source.APPLICATIONS),
            excluded_patterns=self.config.applications.excluded_patterns,
            max_results=max_results, **common
        )
        self.file_history = FileHistoryAdapter(
            backends.history, self.history_cache,
            self.gate, self.presented.setter(Source.FILE_HISTORY),
            icon_cache=self.icon_cache, icon_resolver=backends.icons,
            max_results=max_results, **common
        )
        self.plugins = PluginAdapter(
            registry or PluginRegistry(),
            self.gate, self.presented.setter(Source.PLUGINS), **common
        )
        self.direct_path = DirectPathAdapter(
            backends.paths, self.gate, self.presented.setter(Source.DIRECT_PATH),
            **common
        )
        self.intent = QueryIntentAdapter(
            self.config.search.engines, self.gate,
            {source: self.presented.setter(source) for source in INTENT_SOURCES}
        )

        self._tasks: Set[asyncio.Task] = set()
        self._stats = defaultdict(int)

    @property
    def current_query(self) -> str:
        return self.state.text

    @property
    def generation(self) -> int:
        return self.state.generation

    # Public operations

    def set_query(self, text: str) -> None:
        """
        Make `text` the current query and fan out to every source.

        Must be called from a running event loop. Returns immediately;
        results surface only through the presented result set.
        """
        ticket = self.state.advance(text)
        self._stats['queries'] += 1
        logger.debug(f"Query {ticket.generation}: {text!r}")
        self._emit("query.changed", {'text': text, 'generation': ticket.generation})

        self._spawn(Source.MEMOS, self.memos.search, ticket)
        self._spawn(Source.FOLDERS, self.folders.search, ticket)
        self._spawn(Source.APPLICATIONS, self.applications.search, ticket)
        self._spawn(Source.FILE_HISTORY, self.file_history.search, ticket)
        self._spawn(Source.DIRECT_PATH, self.direct_path.search, ticket)
        self.plugins.search(ticket)
        self.intent.search(ticket)

    async def search_memos(self, text: str) -> None:
        await self.memos.search(self.state.ticket(text))

    async def search_folders(self, text: str) -> None:
        await self.folders.search(self.state.ticket(text))

    async def search_applications(self, text: str) -> None:
        await self.applications.search(self.state.ticket(text))

    async def search_file_history(self, text: str) -> None:
        await self.file_history.search(self.state.ticket(text))

    def search_plugins(self, text: str) -> List[PluginDescriptor]:
        return self.plugins.search(self.state.ticket(text))

    async def lookup_direct_path(self, text: str) -> None:
        await self.direct_path.search(self.state.ticket(text))

    def detect_intent(self, text: str) -> Dict[Source, Any]:
        return self.intent.search(self.state.ticket(text))

    async def refresh_file_history_cache(self) -> None:
        """Re-fetch the whole history store. Failure keeps the old contents."""
        try:
            items = await self.history_cache.refresh(self.backends.history.get_all_file_history)
        except Exception as e:
            logger.error(f"Failed to refresh file history cache: {e}")
            self.health.record_failure(Source.FILE_HISTORY.value, e, {'operation': 'refresh'})
            self._emit("cache.failed", {'source': Source.FILE_HISTORY.value, 'error': str(e)})
            return

        self.health.record_success(Source.FILE_HISTORY.value)
        self._emit("cache.refreshed", {'source': Source.FILE_HISTORY.value, 'count': len(items)})

    # Results and bookkeeping

    def results(self, source: Source) -> Any:
        return self.presented.get(source)

    @property
    def direct_path_result(self) -> DirectPathResult:
        return self.presented.get(Source.DIRECT_PATH)

    @property
    def search_intent(self) -> Optional[SearchIntent]:
        return self.presented.get(Source.SEARCH_INTENT)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every scheduled adapter task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Drop any outstanding adapter work."""
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()

    def statistics(self) -> Dict[str, Any]:
        return {
            'current_query': self.state.text,
            'generation': self.state.generation,
            'queries': self._stats['queries'],
            'committed': self.gate.committed,
            'discarded': self.gate.discarded,
            'pending_tasks': len(self._tasks),
            'caches': {
                cache.name: cache.snapshot()
                for cache in (self.folders_cache, self.apps_cache, self.history_cache)
            },
            'icon_cache_size': len(self.icon_cache),
            'source_health': self.health.report(),
        }

    def _spawn(self, source: Source, search, ticket: QueryTicket) -> None:
        task = asyncio.create_task(self._run(source, search, ticket), name=f"search-{source.value}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, source: Source, search, ticket: QueryTicket) -> None:
        if self.config.search.yield_before_search:
            # Let pending keystrokes be handled before any adapter work
            await asyncio.sleep(0)
        try:
            await search(ticket)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Adapters contain their own failures; this is a bug guard
            logger.exception(f"Adapter {source.value} raised: {e}")
            self.health.record_failure(source.value, e)

    def _emit(self, event_type: str, data: Dict[str, Any]) -> None:
        if self.event_bus is not None and self.event_bus.running:
            self.event_bus.emit_nowait(Event(type=event_type, data=data, source="controller"))
