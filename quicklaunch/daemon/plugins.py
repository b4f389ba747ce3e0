"""Static plugin registry."""

from typing import Iterable, List, Optional, Tuple

from .models import PluginDescriptor


BUILTIN_PLUGINS: Tuple[PluginDescriptor, ...] = (
    PluginDescriptor(
        id="show_main_window",
        name="录制动作",
        description="打开主程序窗口",
        keywords=frozenset({
            "录制动作", "录制", "主窗口", "主程序", "窗口",
            "luzhidongzuo", "lzdz", "luzhi", "lz",
            "zhuchuangkou", "zck", "zhuchengxu", "zcx",
            "chuangkou", "ck", "main",
        }),
    ),
    PluginDescriptor(
        id="memo_center",
        name="备忘录",
        description="查看和编辑已有的备忘录",
        keywords=frozenset({
            "备忘录", "beiwanglu", "bwl", "memo", "note", "记录", "jilu", "jl",
        }),
    ),
    PluginDescriptor(
        id="show_plugin_list",
        name="显示插件列表",
        description="查看所有可用插件",
        keywords=frozenset({
            "显示插件列表", "插件列表", "插件", "列表", "所有插件",
            "xianshichajianliebiao", "xscjlb", "chajianliebiao", "cjlb",
            "chajian", "cj", "suoyouchajian", "sycj", "plugin",
        }),
    ),
    PluginDescriptor(
        id="json_formatter",
        name="JSON 格式化查看",
        description="格式化、压缩和验证 JSON 数据",
        keywords=frozenset({
            "JSON", "格式化", "json", "geshihua", "gsh", "格式化查看",
            "geshihuachakan", "gshck", "json格式化", "json查看", "json验证",
            "json压缩", "formatter", "validator", "minify",
        }),
    ),
)


class PluginRegistry:
    """Read-only list of plugin descriptors, filtered by substring."""

    def __init__(self, plugins: Iterable[PluginDescriptor] = BUILTIN_PLUGINS):
        self._plugins: Tuple[PluginDescriptor, ...] = tuple(plugins)

    def __iter__(self):
        return iter(self._plugins)

    def __len__(self) -> int:
        return len(self._plugins)

    def get(self, plugin_id: str) -> Optional[PluginDescriptor]:
        for plugin in self._plugins:
            if plugin.id == plugin_id:
                return plugin
        return None

    def search(self, query: str) -> List[PluginDescriptor]:
        """Case-insensitive match on name, description or any keyword."""
        needle = query.strip().lower()
        if not needle:
            return []
        return [plugin for plugin in self._plugins if _plugin_matches(plugin, needle)]


def _plugin_matches(plugin: PluginDescriptor, needle: str) -> bool:
    if needle in plugin.name.lower():
        return True
    if plugin.description and needle in plugin.description.lower():
        return True
    return any(needle in keyword.lower() for keyword in plugin.keywords)
