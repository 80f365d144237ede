import json

import pytest

from qai.response import parse_response
from qai.tools import MODERN_TOOLS, ToolCache, default_cache_path, extract_binary


def test_extract_binary_simple():
    assert extract_binary("ls -la") == "ls"
    assert extract_binary("find . -name '*.rs'") == "find"


def test_extract_binary_skips_wrappers_and_assignments():
    assert extract_binary("sudo apt install pkg") == "apt"
    assert extract_binary("env VAR=value cmd arg") == "cmd"
    assert extract_binary("FOO=bar baz") == "baz"
    assert extract_binary("time ls -la") == "ls"
    assert extract_binary("nice -n 10 make") == "make"
    assert extract_binary("nohup strace -f doas ltrace server") == "server"


def test_extract_binary_nothing_left():
    assert extract_binary("") is None
    assert extract_binary("   ") is None
    assert extract_binary("FOO=bar BAZ=qux") is None


def test_is_available_probes_once(monkeypatch):
    calls = []

    def fake_which(name):
        calls.append(name)
        return "/usr/bin/" + name if name == "ls" else None

    monkeypatch.setattr("qai.tools.shutil.which", fake_which)
    cache = ToolCache()

    assert cache.is_available("ls")
    assert cache.is_available("ls")
    assert not cache.is_available("nope")
    assert not cache.is_available("nope")
    assert calls == ["ls", "nope"]
    assert cache.available == {"ls"}
    assert cache.unavailable == {"nope"}
    assert cache.dirty


def test_filter_commands_partitions(monkeypatch):
    monkeypatch.setattr("qai.tools.shutil.which", lambda name: None if name.startswith("missing") else "/bin/x")
    cache = ToolCache()
    available, unavailable = cache.filter_commands(
        ["ls -la", "missing_tool arg", "FOO=1", "find . -name '*.rs'"]
    )
    # "FOO=1" has no binary and is assumed available
    assert available == ["ls -la", "FOO=1", "find . -name '*.rs'"]
    assert unavailable == ["missing_tool arg"]


def test_filter_commands_empty():
    assert ToolCache().filter_commands([]) == ([], [])


def test_process_response_drops_unavailable_modern():
    cache = ToolCache(available=["ls", "find"], unavailable=["eza"])
    parsed = parse_response("MODERN:\neza -l\nSTANDARD:\nls -la\nfind .")
    assert cache.process_response(parsed) == ["ls -la", "find ."]


def test_process_response_falls_back_to_unfiltered_standard():
    cache = ToolCache(unavailable=["ls", "find"])
    parsed = parse_response("STANDARD:\nls -la\nfind .")
    assert cache.process_response(parsed) == ["ls -la", "find ."]


def test_process_response_modern_only_reply_falls_back():
    cache = ToolCache(unavailable=["eza"])
    parsed = parse_response("MODERN:\neza -l")
    assert cache.process_response(parsed) == ["eza -l"]


def test_process_response_empty():
    assert ToolCache().process_response(parse_response("")) == []


def test_persistence_round_trip(tmp_path):
    path = tmp_path / "cache" / "tools.json"
    cache = ToolCache(["eza", "rg"], ["nonexistent"])
    cache.dirty = True
    cache.save_to(path)
    assert not cache.dirty

    loaded = ToolCache.load_from(path)
    assert loaded.available == {"eza", "rg"}
    assert loaded.unavailable == {"nonexistent"}
    assert loaded.version == ToolCache.CACHE_VERSION
    assert not loaded.dirty
    assert json.loads(path.read_text())["version"] == ToolCache.CACHE_VERSION
    # no temporary files left behind
    assert [p.name for p in path.parent.iterdir()] == ["tools.json"]


def test_save_skips_clean_cache(tmp_path):
    path = tmp_path / "tools.json"
    ToolCache(["ls"]).save_to(path)
    assert not path.exists()


def test_load_missing_file(tmp_path):
    cache = ToolCache.load_from(tmp_path / "nope" / "tools.json")
    assert cache.available == set()
    assert cache.version == ToolCache.CACHE_VERSION


def test_load_invalid_json(tmp_path):
    path = tmp_path / "tools.json"
    path.write_text("not valid json")
    assert ToolCache.load_from(path).available == set()


def test_load_wrong_version_resets(tmp_path):
    path = tmp_path / "tools.json"
    path.write_text('{"available":["ls"],"unavailable":[],"version":999}')
    cache = ToolCache.load_from(path)
    assert cache.available == set()
    assert cache.version == ToolCache.CACHE_VERSION


@pytest.mark.parametrize("version", ["true", "1.0", "\"1\"", "null"])
def test_load_non_integer_version_resets(tmp_path, version):
    path = tmp_path / "tools.json"
    path.write_text('{"available":["fd"],"unavailable":[],"version":' + version + "}")
    assert ToolCache.load_from(path).available == set()


def test_save_uses_loaded_path(tmp_path):
    path = tmp_path / "tools.json"
    cache = ToolCache.load_from(path)
    cache.available.add("rg")
    cache.dirty = True
    cache.save()
    assert ToolCache.load_from(path).available == {"rg"}


def test_default_path_follows_xdg_cache(isolated_home):
    assert default_cache_path() == isolated_home / ".cache" / "qai" / "tools.json"


def test_clear_marks_dirty():
    cache = ToolCache(["ls"], ["xyz"])
    cache.clear()
    assert cache.available == set() and cache.unavailable == set()
    assert cache.dirty


def test_refresh_probes_modern_tools(monkeypatch):
    monkeypatch.setattr("qai.tools.shutil.which", lambda name: "/bin/rg" if name == "rg" else None)
    cache = ToolCache(["stale"])
    cache.refresh()
    assert cache.available == {"rg"}
    assert cache.unavailable == set(MODERN_TOOLS) - {"rg"}


def test_prompt_hint_and_stats():
    cache = ToolCache(["ls", "cat", "zoxide", "eza", "bat"], ["nonexistent"])
    hint = cache.available_tools_for_prompt()
    assert "bat, eza, zoxide" in hint
    assert " ls" not in hint

    stats = cache.stats()
    assert stats.available_count == 5
    assert stats.unavailable_count == 1
    assert stats.modern_tools_count == 3


def test_prompt_hint_empty_for_standard_tools_only():
    assert ToolCache(["ls", "grep"]).available_tools_for_prompt() == ""
    assert ToolCache().available_tools_for_prompt() == ""
