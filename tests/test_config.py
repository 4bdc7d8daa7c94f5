"""Tests for environment-driven settings."""

from ceilidh.config import DEFAULT_DATA, DEFAULT_STATE, Settings
from ceilidh.storage import JsonFileStore, MemoryStore


def test_defaults(monkeypatch):
    for name in ("CEILIDH_DATA", "CEILIDH_STATE", "CEILIDH_ROLE_SET", "CEILIDH_TIMEOUT", "CEILIDH_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    s = Settings.from_env()
    assert (s.data, s.state, s.role_set, s.timeout, s.log_level) == (
        DEFAULT_DATA,
        DEFAULT_STATE,
        None,
        10.0,
        "WARNING",
    )


def test_from_env(monkeypatch):
    monkeypatch.setenv("CEILIDH_DATA", "https://example.org/data")
    monkeypatch.setenv("CEILIDH_STATE", "")
    monkeypatch.setenv("CEILIDH_ROLE_SET", "larks-robins")
    monkeypatch.setenv("CEILIDH_TIMEOUT", "not a number")
    monkeypatch.setenv("CEILIDH_LOG_LEVEL", "debug")
    s = Settings.from_env()
    assert s.data == "https://example.org/data"
    assert s.state is None
    assert s.role_set == "larks-robins"
    assert s.timeout == 10.0
    assert s.log_level == "DEBUG"


def test_override_skips_none():
    s = Settings().override(data="elsewhere", state=None)
    assert s.data == "elsewhere"
    assert s.state == DEFAULT_STATE


def test_make_store(tmp_path):
    assert isinstance(Settings(state=None).make_store(), MemoryStore)
    assert isinstance(Settings(state="").make_store(), MemoryStore)
    store = Settings(state=str(tmp_path / "s.json")).make_store()
    assert isinstance(store, JsonFileStore)
