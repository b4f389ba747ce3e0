"""System folder adapter."""

from ..models import Source, SystemFolderEntry
from .base import CachedSourceAdapter, contains


class FolderAdapter(CachedSourceAdapter[SystemFolderEntry]):
    """Matches folder names, display names and their phonetic aliases."""

    source = Source.FOLDERS

    def matches(self, folder: SystemFolderEntry, needle: str) -> bool:
        return (
            contains(folder.name, needle)
            or contains(folder.display_name, needle)
            or contains(folder.name_pinyin, needle)
            or contains(folder.name_pinyin_initials, needle)
        )
