"""Installed applications adapter."""

import sys
from typing import Any, Callable, Iterable, List, Optional, Sequence

from ..backends import ApplicationStore
from ..bus import EventBus
from ..cache import CacheStore
from ..error_handling import HealthTracker
from ..gate import CommitGate, QueryTicket
from ..models import AppInfo, Source
from .base import CachedSourceAdapter, contains


# Extra path fragments that never point at user-facing apps, per platform
PLATFORM_EXCLUDED_PATHS = {
    "win": ("\\windows\\system32\\", "\\windows\\syswow64\\", "\\windowsapps\\microsoft."),
    "darwin": ("/system/library/coreservices/",),
    "linux": (),
}


def _platform_key(platform: str) -> str:
    if platform.startswith("win"):
        return "win"
    if platform == "darwin":
        return "darwin"
    return "linux"


def filter_user_facing(
    apps: Iterable[AppInfo],
    excluded_patterns: Sequence[str],
    platform: str = sys.platform
) -> List[AppInfo]:
    """Drop uninstallers, help shortcuts and system packages."""
    patterns = [p.lower() for p in excluded_patterns if p]
    paths = PLATFORM_EXCLUDED_PATHS[_platform_key(platform)]

    kept = []
    for app in apps:
        name = app.name.lower()
        path = app.path.lower()
        if any(p in name or p in path for p in patterns):
            continue
        if any(fragment in path for fragment in paths):
            continue
        kept.append(app)
    return kept


class ApplicationAdapter(CachedSourceAdapter[AppInfo]):
    """Matches application names and their phonetic aliases."""

    source = Source.APPLICATIONS

    def __init__(
        self,
        store: ApplicationStore,
        cache: CacheStore[AppInfo],
        gate: CommitGate,
        setter: Callable[[QueryTicket, Any], None],
        excluded_patterns: Sequence[str] = (),
        platform: str = sys.platform,
        max_results: int = 10,
        health: Optional[HealthTracker] = None,
        bus: Optional[EventBus] = None
    ):
        super().__init__(
            cache, self._scan, gate, setter,
            max_results=max_results, health=health, bus=bus
        )
        self.store = store
        self.excluded_patterns = list(excluded_patterns)
        self.platform = platform

    async def _scan(self) -> List[AppInfo]:
        apps = await self.store.scan_applications()
        return filter_user_facing(apps, self.excluded_patterns, self.platform)

    def matches(self, app: AppInfo, needle: str) -> bool:
        return (
            contains(app.name, needle)
            or contains(app.name_pinyin, needle)
            or contains(app.name_pinyin_initials, needle)
        )
