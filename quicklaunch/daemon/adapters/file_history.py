"""File-open history adapter with per-file icon resolution."""

import asyncio
from dataclasses import replace
from pathlib import PurePath
from typing import Any, Callable, List, Optional, Sequence

from loguru import logger

from ..backends import HistoryStore, IconResolver
from ..bus import EventBus
from ..cache import CacheStore, KeyedCache
from ..error_handling import HealthTracker
from ..gate import CommitGate, QueryTicket
from ..models import FileHistoryItem, Source
from .base import CachedSourceAdapter, contains


# Files whose icon is specific to the file itself rather than its type
PER_FILE_ICON_SUFFIXES = {".exe", ".lnk", ".app", ".desktop", ".ico"}


def icon_key(path: str) -> str:
    """Cache key for a file's icon: its extension, or the path itself."""
    suffix = PurePath(path.replace("\\", "/")).suffix.lower()
    if not suffix or suffix in PER_FILE_ICON_SUFFIXES:
        return path
    return suffix


class FileHistoryAdapter(CachedSourceAdapter[FileHistoryItem]):
    """Matches history entries by file name and attaches icons."""

    source = Source.FILE_HISTORY

    def __init__(
        self,
        store: HistoryStore,
        cache: CacheStore[FileHistoryItem],
        gate: CommitGate,
        setter: Callable[[QueryTicket, Any], None],
        icon_cache: Optional[KeyedCache[str, str]] = None,
        icon_resolver: Optional[IconResolver] = None,
        max_results: int = 10,
        health: Optional[HealthTracker] = None,
        bus: Optional[EventBus] = None
    ):
        super().__init__(
            cache, store.get_all_file_history, gate, setter,
            max_results=max_results, health=health, bus=bus
        )
        self.store = store
        self.icon_cache = icon_cache if icon_cache is not None else KeyedCache("file_icons")
        self.icon_resolver = icon_resolver

    def matches(self, item: FileHistoryItem, needle: str) -> bool:
        return contains(item.name, needle)

    async def decorate(self, matches: Sequence[FileHistoryItem]) -> List[FileHistoryItem]:
        if self.icon_resolver is None or not matches:
            return list(matches)
        icons = await asyncio.gather(*(self._icon_for(item) for item in matches))
        return [
            replace(item, icon=icon) if icon and not item.icon else item
            for item, icon in zip(matches, icons)
        ]

    async def _icon_for(self, item: FileHistoryItem) -> Optional[str]:
        try:
            return await self.icon_cache.get_or_resolve(
                icon_key(item.path),
                lambda: self.icon_resolver.extract_icon(item.path)
            )
        except Exception as e:
            # One bad icon never costs the whole result set
            logger.debug(f"Icon extraction failed for {item.path}: {e}")
            return None
