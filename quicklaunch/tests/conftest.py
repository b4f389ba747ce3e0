"""Shared fakes for launcher search tests.

Every fake collaborator counts its calls and can be told to hold its next
call until the test releases it, which lets a test force any completion
order between overlapping queries.
"""

import asyncio
from typing import Dict, Iterable, List, Optional

import pytest

from quicklaunch.daemon.backends import Backends, InMemoryMemoStore
from quicklaunch.daemon.config import Config
from quicklaunch.daemon.controller import QueryController
from quicklaunch.daemon.models import AppInfo, FileHistoryItem, MemoItem, SystemFolderEntry


class Holds:
    """Per-call gates, consumed in call order."""

    def __init__(self):
        self._pending: List[asyncio.Event] = []

    def hold(self) -> asyncio.Event:
        event = asyncio.Event()
        self._pending.append(event)
        return event

    async def wait(self) -> None:
        if self._pending:
            await self._pending.pop(0).wait()


class FakeStore:
    """Bulk-fetch collaborator usable as folder, application or history store."""

    def __init__(self, items: Iterable = (), fail: int = 0):
        self.items = list(items)
        self.fail = fail
        self.calls = 0
        self.holds = Holds()

    async def fetch(self) -> List:
        self.calls += 1
        await self.holds.wait()
        if self.fail:
            self.fail -= 1
            raise RuntimeError("backend unavailable")
        return list(self.items)

    list_system_folders = fetch
    scan_applications = fetch
    get_all_file_history = fetch


class FakePathResolver:
    def __init__(self, records: Optional[Dict[str, FileHistoryItem]] = None, fail: bool = False):
        self.records = dict(records or {})
        self.fail = fail
        self.calls: List[str] = []
        self.holds = Holds()

    async def check_path_exists(self, path: str) -> Optional[FileHistoryItem]:
        self.calls.append(path)
        await self.holds.wait()
        if self.fail:
            raise OSError("resolver crashed")
        return self.records.get(path)


class FakeIconResolver:
    def __init__(self, icons: Optional[Dict[str, str]] = None, broken: Iterable[str] = ()):
        self.icons = dict(icons or {})
        self.broken = set(broken)
        self.calls: List[str] = []
        self.holds = Holds()

    async def extract_icon(self, path: str) -> Optional[str]:
        self.calls.append(path)
        await self.holds.wait()
        if path in self.broken:
            raise ValueError(f"corrupt icon data in {path}")
        suffix = path.rsplit(".", 1)[-1] if "." in path else ""
        return self.icons.get(suffix)


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run up to their next real suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def memos():
    return InMemoryMemoStore([
        MemoItem(id="1", title="Grocery list", content="milk, eggs, bread"),
        MemoItem(id="2", title="Meeting notes", content="Discuss Q3 roadmap"),
        MemoItem(id="3", title="Ideas", content="Launcher plugin for timers"),
    ])


@pytest.fixture
def folder_store():
    return FakeStore([
        SystemFolderEntry(name="Downloads", path="/home/u/Downloads", display_name="下载 (Downloads)",
                          name_pinyin="xiazai", name_pinyin_initials="xz"),
        SystemFolderEntry(name="Documents", path="/home/u/Documents", display_name="文档 (Documents)",
                          name_pinyin="wendang", name_pinyin_initials="wd"),
        SystemFolderEntry(name="Recycle Bin", path="::{645FF040}", display_name="回收站 (Recycle Bin)",
                          name_pinyin="huishouzhan", name_pinyin_initials="hsz"),
    ])


@pytest.fixture
def app_store():
    return FakeStore([
        AppInfo(name="Firefox", path="/usr/share/applications/firefox.desktop"),
        AppInfo(name="微信", path="C:/Programs/WeChat.lnk", name_pinyin="weixin", name_pinyin_initials="wx"),
        AppInfo(name="Uninstall Firefox", path="/opt/firefox/uninstall"),
        AppInfo(name="Terminal", path="/usr/share/applications/terminal.desktop"),
    ])


@pytest.fixture
def history_store():
    return FakeStore([
        FileHistoryItem(path="/home/u/report.pdf", name="report.pdf", last_used=300, use_count=4),
        FileHistoryItem(path="/home/u/notes.txt", name="notes.txt", last_used=200, use_count=1),
        FileHistoryItem(path="/home/u/Reports", name="Reports", last_used=100, use_count=2),
    ])


@pytest.fixture
def path_resolver():
    return FakePathResolver({
        "/existing/file.txt": FileHistoryItem(path="/existing/file.txt", name="file.txt"),
    })


@pytest.fixture
def icon_resolver():
    return FakeIconResolver({"pdf": "application-pdf", "txt": "text-x-generic"})


@pytest.fixture
def backends(memos, folder_store, app_store, history_store, path_resolver, icon_resolver):
    return Backends(
        memos=memos,
        folders=folder_store,
        applications=app_store,
        history=history_store,
        paths=path_resolver,
        icons=icon_resolver,
    )


@pytest.fixture
def config(tmp_path):
    return Config(data_dir=tmp_path)


@pytest.fixture
def controller(backends, config):
    return QueryController(backends, config=config)
