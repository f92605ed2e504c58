"""Tests for tool configuration."""

from orbital_cli.services.ai.tools import (
    default_tool_config,
    enable_tools,
    get_enabled_tool_names,
    get_enabled_tools,
    reset_tools,
)


def test_nothing_enabled_by_default():
    config = default_tool_config()

    assert [t.id for t in config.available] == ["google_search", "code_execution", "url_context"]
    assert get_enabled_tools(config) == []


def test_enable_keeps_availability_order_and_ignores_unknown():
    config = enable_tools(default_tool_config(), ["url_context", "web_browse", "google_search"])

    assert config.enabled == frozenset({"url_context", "google_search"})
    assert get_enabled_tools(config) == [{"google_search": {}}, {"url_context": {}}]
    assert get_enabled_tool_names(config) == ["Google Search", "URL Context"]


def test_enable_replaces_previous_selection():
    config = enable_tools(default_tool_config(), ["google_search"])
    config = enable_tools(config, ["code_execution"])

    assert config.enabled == frozenset({"code_execution"})


def test_reset_and_immutability():
    original = enable_tools(default_tool_config(), ["google_search"])
    cleared = reset_tools(original)

    assert cleared.enabled == frozenset()
    assert original.enabled == frozenset({"google_search"})


def test_payloads_are_copies():
    config = enable_tools(default_tool_config(), ["google_search"])
    get_enabled_tools(config)[0]["google_search"]["x"] = 1

    assert config.get("google_search").payload == {"google_search": {}}


def test_mutating_payloads_does_not_leak_into_later_calls():
    config = enable_tools(default_tool_config(), ["google_search", "code_execution"])
    for payload in get_enabled_tools(config):
        for options in payload.values():
            options["changed"] = True

    fresh = enable_tools(default_tool_config(), ["google_search", "code_execution"])
    assert get_enabled_tools(fresh) == [{"google_search": {}}, {"code_execution": {}}]
