"""Tests for the plugin registry."""

from quicklaunch.daemon.models import PluginDescriptor
from quicklaunch.daemon.plugins import BUILTIN_PLUGINS, PluginRegistry


def ids(plugins):
    return [p.id for p in plugins]


def test_empty_query_matches_nothing():
    registry = PluginRegistry()

    assert registry.search("") == []
    assert registry.search("   ") == []


def test_keyword_match():
    assert ids(PluginRegistry().search("memo")) == ["memo_center"]


def test_no_match():
    assert PluginRegistry().search("zzz-no-match") == []


def test_case_and_whitespace_insensitive():
    assert ids(PluginRegistry().search("  JSON ")) == ["json_formatter"]


def test_phonetic_and_native_keywords():
    registry = PluginRegistry()

    assert ids(registry.search("cj")) == ["show_plugin_list"]
    assert ids(registry.search("备忘")) == ["memo_center"]


def test_description_match():
    registry = PluginRegistry([
        PluginDescriptor(id="calc", name="Calculator", description="Evaluate arithmetic"),
    ])

    assert ids(registry.search("arith")) == ["calc"]


def test_lookup_by_id():
    registry = PluginRegistry()

    assert len(registry) == len(BUILTIN_PLUGINS)
    assert registry.get("json_formatter").name == "JSON 格式化查看"
    assert registry.get("missing") is None
