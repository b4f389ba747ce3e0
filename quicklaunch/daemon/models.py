"""Data models for the quicklaunch search core."""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional


class Source(Enum):
    """Sources contributing one category of launcher results."""
    MEMOS = "memos"
    FOLDERS = "folders"
    APPLICATIONS = "applications"
    FILE_HISTORY = "file_history"
    PLUGINS = "plugins"
    DIRECT_PATH = "direct_path"
    # Derived from the query text itself
    DETECTED_URLS = "detected_urls"
    DETECTED_EMAILS = "detected_emails"
    DETECTED_JSON = "detected_json"
    SEARCH_INTENT = "search_intent"


@dataclass(frozen=True)
class MemoItem:
    """A saved note."""
    id: str
    title: str
    content: str = ""
    created_at: Optional[float] = None
    updated_at: Optional[float] = None

    @property
    def display_name(self) -> str:
        return self.title


@dataclass(frozen=True)
class SystemFolderEntry:
    """A well-known folder (Downloads, Recycle Bin, ...)."""
    name: str
    path: str
    display_name: str
    is_folder: bool = True
    icon: Optional[str] = None
    name_pinyin: Optional[str] = None  # full phonetic spelling
    name_pinyin_initials: Optional[str] = None  # acronym form


@dataclass(frozen=True)
class AppInfo:
    """An installed application entry."""
    name: str
    path: str
    icon: Optional[str] = None
    description: Optional[str] = None
    name_pinyin: Optional[str] = None
    name_pinyin_initials: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name


@dataclass(frozen=True)
class FileHistoryItem:
    """A previously opened file or folder."""
    path: str
    name: str
    last_used: int = 0  # Unix timestamp
    use_count: int = 0
    icon: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name


@dataclass(frozen=True)
class PluginDescriptor:
    """Statically registered plugin, immutable at runtime."""
    id: str
    name: str
    description: Optional[str] = None
    keywords: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class DirectPathResult:
    """Outcome of interpreting the raw query as a literal path."""
    present: bool
    record: Optional[FileHistoryItem] = None

    @classmethod
    def absent(cls) -> "DirectPathResult":
        return cls(present=False)

    @classmethod
    def found(cls, record: FileHistoryItem) -> "DirectPathResult":
        return cls(present=True, record=record)


@dataclass(frozen=True)
class SearchIntent:
    """A query typed as `<engine prefix> <keyword>`."""
    engine: str
    prefix: str
    keyword: str
    url: str

    @property
    def display_name(self) -> str:
        return f"在 {self.engine} 搜索：{self.keyword}"
