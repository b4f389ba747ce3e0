"""Backing-store contracts and local implementations.

The search core only needs the narrow contracts below. The local classes
satisfy them well enough to run the launcher core outside the desktop
shell; filesystem work is pushed off the event loop.
"""

import asyncio
import configparser
import mimetypes
import os
import re
import sys
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, runtime_checkable

from loguru import logger
from pypinyin import Style, lazy_pinyin

from .models import AppInfo, FileHistoryItem, MemoItem, SystemFolderEntry


@runtime_checkable
class MemoStore(Protocol):
    @property
    def memos(self) -> Sequence[MemoItem]: ...


@runtime_checkable
class FolderStore(Protocol):
    async def list_system_folders(self) -> Sequence[SystemFolderEntry]: ...


@runtime_checkable
class ApplicationStore(Protocol):
    async def scan_applications(self) -> Sequence[AppInfo]: ...


@runtime_checkable
class HistoryStore(Protocol):
    async def get_all_file_history(self) -> Sequence[FileHistoryItem]: ...


@runtime_checkable
class PathResolver(Protocol):
    async def check_path_exists(self, path: str) -> Optional[FileHistoryItem]: ...


@runtime_checkable
class IconResolver(Protocol):
    async def extract_icon(self, path: str) -> Optional[str]: ...


@dataclass
class Backends:
    """The collaborators one controller consumes."""
    memos: MemoStore
    folders: FolderStore
    applications: ApplicationStore
    history: HistoryStore
    paths: PathResolver
    icons: Optional[IconResolver] = None


_DRIVE_PATTERN = re.compile(r"^[a-zA-Z]:[\\/]")
_HAN_PATTERN = re.compile(
    "[\u4e00-\u9fff\u3400-\u4dbf\uf900-\ufaff\U00020000-\U0002a6df"
    "\U0002a700-\U0002b81f\U0002f800-\U0002fa1f]"
)


def looks_like_absolute_path(text: str) -> bool:
    """Drive-letter, UNC or rooted path with at least one separator."""
    trimmed = text.strip()
    if len(trimmed) < 3:
        return False
    has_separator = "\\" in trimmed or "/" in trimmed
    if not has_separator:
        return False
    return (
        bool(_DRIVE_PATTERN.match(trimmed))
        or trimmed.startswith("\\\\")
        or trimmed.startswith("/")
        or trimmed.startswith("~/")
    )


def pinyin_aliases(name: str) -> Dict[str, Optional[str]]:
    """
    Full pinyin and pinyin initials for names containing Chinese characters.

    Non-Chinese characters are dropped from both aliases; names without any
    Chinese characters get no aliases.
    """
    if not _HAN_PATTERN.search(name):
        return {'name_pinyin': None, 'name_pinyin_initials': None}
    syllables = lazy_pinyin(name, errors="ignore")
    initials = lazy_pinyin(name, style=Style.FIRST_LETTER, errors="ignore")
    return {
        'name_pinyin': "".join(syllables).lower(),
        'name_pinyin_initials': "".join(initials).lower(),
    }

class InMemoryMemoStore:
    """Notes that are always available in memory."""

    def __init__(self, memos: Optional[Iterable[MemoItem]] = None):
        self._memos: List[MemoItem] = list(memos or [])

    @property
    def memos(self) -> Sequence[MemoItem]:
        return tuple(self._memos)

    def add(self, memo: MemoItem) -> None:
        self._memos.append(memo)


# (native name, english name, home-relative dir)
_WELL_KNOWN_FOLDERS = [
    ("主目录", "Home", ""),
    ("桌面", "Desktop", "Desktop"),
    ("文档", "Documents", "Documents"),
    ("下载", "Downloads", "Downloads"),
    ("图片", "Pictures", "Pictures"),
    ("音乐", "Music", "Music"),
    ("视频", "Videos", "Videos"),
]


class LocalFolderStore:
    """Well-known user folders that exist on this machine."""

    def __init__(self, home: Optional[Path] = None):
        self.home = home or Path.home()

    async def list_system_folders(self) -> List[SystemFolderEntry]:
        return await asyncio.to_thread(self._collect)

    def _collect(self) -> List[SystemFolderEntry]:
        folders = []
        for name, english, relative in _WELL_KNOWN_FOLDERS:
            path = self.home / relative if relative else self.home
            if not path.is_dir():
                continue
            folders.append(SystemFolderEntry(
                name=english,
                path=str(path),
                display_name=f"{name} ({english})",
                **pinyin_aliases(name),
            ))
        return folders


def _default_app_dirs() -> List[Path]:
    if sys.platform.startswith("win"):
        dirs = []
        for var in ("APPDATA", "PROGRAMDATA"):
            base = os.environ.get(var)
            if base:
                dirs.append(Path(base) / "Microsoft" / "Windows" / "Start Menu" / "Programs")
        return dirs
    if sys.platform == "darwin":
        return [Path("/Applications"), Path.home() / "Applications"]
    data_home = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
    return [
        data_home / "applications",
        Path("/usr/local/share/applications"),
        Path("/usr/share/applications"),
    ]


class LocalApplicationStore:
    """Scans platform application directories for launchable entries."""

    def __init__(
        self,
        scan_dirs: Optional[Sequence[Path]] = None,
        max_depth: int = 3,
        max_apps: int = 2000
    ):
        self.scan_dirs = list(scan_dirs) if scan_dirs is not None else _default_app_dirs()
        self.max_depth = max_depth
        self.max_apps = max_apps

    async def scan_applications(self) -> List[AppInfo]:
        return await asyncio.to_thread(self._scan)

    def _scan(self) -> List[AppInfo]:
        apps: Dict[str, AppInfo] = {}
        for directory in self.scan_dirs:
            if directory.is_dir():
                self._scan_directory(directory, apps, 0)
        return sorted(apps.values(), key=lambda a: a.name.lower())

    def _scan_directory(self, directory: Path, apps: Dict[str, AppInfo], depth: int) -> None:
        if depth > self.max_depth or len(apps) >= self.max_apps:
            return

        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            logger.debug(f"Skipping unreadable directory {directory}: {e}")
            return

        for entry in entries:
            if len(apps) >= self.max_apps:
                break
            try:
                app = self._read_entry(entry)
                if app is None and entry.is_dir() and entry.suffix != ".app":
                    self._scan_directory(entry, apps, depth + 1)
            except (OSError, UnicodeDecodeError, configparser.Error) as e:
                logger.debug(f"Skipping malformed application entry {entry}: {e}")
                continue
            if app is not None and app.name not in apps:
                apps[app.name] = app

    def _read_entry(self, entry: Path) -> Optional[AppInfo]:
        suffix = entry.suffix.lower()
        if suffix in (".lnk", ".exe", ".app"):
            return AppInfo(name=entry.stem, path=str(entry), **pinyin_aliases(entry.stem))
        if suffix == ".desktop":
            return _parse_desktop_file(entry)
        return None


def _parse_desktop_file(path: Path) -> Optional[AppInfo]:
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    parser.read(path, encoding="utf-8")
    if not parser.has_section("Desktop Entry"):
        return None
    entry = parser["Desktop Entry"]
    if entry.get("Type", "Application") != "Application":
        return None
    if entry.getboolean("NoDisplay", fallback=False) or entry.getboolean("Hidden", fallback=False):
        return None
    name = entry.get("Name")
    if not name:
        return None
    return AppInfo(
        name=name,
        path=str(path),
        icon=entry.get("Icon"),
        description=entry.get("Comment"),
        **pinyin_aliases(name),
    )


class InMemoryHistoryStore:
    """File-open history, most recent first."""

    def __init__(self, items: Optional[Iterable[FileHistoryItem]] = None, max_items: int = 500):
        self.max_items = max_items
        self._items: Dict[str, FileHistoryItem] = {item.path: item for item in items or []}

    def record_open(self, path: str, timestamp: Optional[int] = None) -> FileHistoryItem:
        now = int(timestamp if timestamp is not None else time.time())
        normalized = str(Path(path).expanduser().absolute())
        existing = self._items.get(normalized)
        if existing:
            item = replace(existing, last_used=now, use_count=existing.use_count + 1)
        else:
            item = FileHistoryItem(
                path=normalized,
                name=Path(normalized).name or normalized,
                last_used=now,
                use_count=1,
            )
        self._items[normalized] = item
        return item

    async def get_all_file_history(self) -> List[FileHistoryItem]:
        items = sorted(self._items.values(), key=lambda i: i.last_used, reverse=True)
        return items[:self.max_items]


class LocalPathResolver:
    """Interprets text as a literal filesystem path."""

    async def check_path_exists(self, path: str) -> Optional[FileHistoryItem]:
        return await asyncio.to_thread(self._check, path)

    def _check(self, raw: str) -> Optional[FileHistoryItem]:
        candidate = Path(raw.strip()).expanduser()
        try:
            stat = candidate.stat()
        except (OSError, ValueError):
            return None
        return FileHistoryItem(
            path=str(candidate),
            name=candidate.name or str(candidate),
            last_used=int(stat.st_mtime),
            use_count=0,
        )


@dataclass
class MimeIconResolver:
    """Freedesktop-style icon names derived from MIME types."""
    overrides: Dict[str, str] = field(default_factory=lambda: {
        ".exe": "application-x-executable",
        ".lnk": "emblem-symbolic-link",
        ".app": "application-x-executable",
        ".desktop": "application-x-desktop",
    })

    async def extract_icon(self, path: str) -> Optional[str]:
        candidate = Path(path)
        suffix = candidate.suffix.lower()
        if suffix in self.overrides:
            return self.overrides[suffix]
        if not suffix:
            return "folder"
        mime, _ = mimetypes.guess_type(candidate.name)
        if mime is None:
            return None
        major, _, minor = mime.partition("/")
        if major in ("text", "image", "audio", "video"):
            return f"{major}-x-generic"
        return f"{major}-{minor}".replace("+", "-").replace(".", "-")
