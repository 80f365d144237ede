import logging

import pytest


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point every XDG directory at a temporary location."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(home / ".cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    monkeypatch.delenv("QAI_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    yield home
    logger = logging.getLogger("qai")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
