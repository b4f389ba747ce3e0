"""Source adapters for notes, folders, applications, history, plugins, paths and query intent."""

from .applications import ApplicationAdapter, filter_user_facing
from .base import CachedSourceAdapter, SourceAdapter
from .direct_path import DirectPathAdapter
from .file_history import FileHistoryAdapter, icon_key
from .folders import FolderAdapter
from .intent import INTENT_SOURCES, QueryIntentAdapter
from .memos import MemoAdapter
from .plugins import PluginAdapter

__all__ = [
    "ApplicationAdapter",
    "CachedSourceAdapter",
    "DirectPathAdapter",
    "FileHistoryAdapter",
    "FolderAdapter",
    "INTENT_SOURCES",
    "MemoAdapter",
    "PluginAdapter",
    "QueryIntentAdapter",
    "SourceAdapter",
    "filter_user_facing",
    "icon_key",
]
