from pathlib import Path

import pytest

from qai.config import (
    BindingsConfig,
    Config,
    cache_dir,
    config_dir,
    config_from_dict,
    data_dir,
    load_config,
)
from qai.errors import ConfigurationError


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults():
    config = Config()
    assert config.api_key is None
    assert config.model == "gpt-4o-mini"
    assert config.api_base == "https://api.openai.com/v1"
    assert config.timeout == 30.0
    assert config.count == 5
    assert config.bindings.trigger == "tab"
    assert config.bindings.submit == "enter"


def test_no_file_gives_defaults():
    assert load_config() == Config()


def test_xdg_dirs(isolated_home):
    assert config_dir() == isolated_home / ".config" / "qai"
    assert cache_dir() == isolated_home / ".cache" / "qai"
    assert data_dir() == isolated_home / ".local" / "share" / "qai"


def test_loads_user_config(isolated_home):
    _write(
        isolated_home / ".config" / "qai" / "qai.yml",
        "api_key: sk-file\nmodel: gpt-4o\ntimeout: 12\nbindings:\n  trigger: ctrl-space\n",
    )
    config = load_config()
    assert config.api_key == "sk-file"
    assert config.model == "gpt-4o"
    assert config.timeout == 12.0
    assert config.bindings == BindingsConfig(trigger="ctrl-space")


def test_local_config_used_when_no_user_config(tmp_path):
    _write(tmp_path / "qai.yml", "model: local-model\n")
    assert load_config().model == "local-model"


def test_user_config_wins_over_local(isolated_home, tmp_path):
    _write(isolated_home / ".config" / "qai" / "qai.yml", "model: user\n")
    _write(tmp_path / "qai.yml", "model: local\n")
    assert load_config().model == "user"


def test_explicit_path(tmp_path):
    path = _write(tmp_path / "custom.yml", "api-base: http://localhost:8080/v1\n")
    assert load_config(path).api_base == "http://localhost:8080/v1"


def test_explicit_missing_path_is_an_error(tmp_path):
    with pytest.raises(ConfigurationError, match="Failed to read config file"):
        load_config(tmp_path / "missing.yml")


def test_broken_default_file_is_skipped(isolated_home, tmp_path):
    _write(isolated_home / ".config" / "qai" / "qai.yml", "model: [unclosed\n")
    _write(tmp_path / "qai.yml", "model: fallback\n")
    assert load_config().model == "fallback"


def test_broken_explicit_file_is_an_error(tmp_path):
    path = _write(tmp_path / "bad.yml", "model: [unclosed\n")
    with pytest.raises(ConfigurationError, match="Failed to parse config file"):
        load_config(path)


def test_unknown_keys_are_ignored():
    config = config_from_dict({"model": "m", "colour": "blue", "bindings": {"submit": "f1"}})
    assert config.model == "m"
    assert config.bindings.submit == "enter"


@pytest.mark.parametrize(
    "data",
    [
        ["not", "a", "mapping"],
        {"bindings": "tab"},
        {"bindings": {"trigger": 3}},
        {"timeout": "soon"},
        {"count": "many"},
    ],
)
def test_invalid_values(data):
    with pytest.raises(ConfigurationError):
        config_from_dict(data)


def test_empty_document():
    assert config_from_dict(None) == Config()


def test_env_api_key_overrides_file(monkeypatch):
    config = Config(api_key="sk-file")
    assert config.get_api_key() == "sk-file"
    monkeypatch.setenv("QAI_API_KEY", "sk-env")
    assert config.get_api_key() == "sk-env"
