"""Tests for loading the four resources, with cache fallback."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from ceilidh.loader import (
    RESOURCES,
    LoadError,
    cached_catalog,
    fetch_all,
    fetch_json,
    load_catalog,
    load_payload,
    merge_with_cache,
    resource_location,
)
from ceilidh.storage import CATALOG_CACHE_KEY, MemoryStore


def test_resource_location(tmp_path):
    assert resource_location("https://example.org/data/", "dances") == (
        "https://example.org/data/dances.json"
    )
    assert resource_location(tmp_path, "roles") == str(tmp_path / "roles.json")


def test_fetch_json_from_directory(data_dir):
    assert [d["id"] for d in fetch_json(data_dir, "dances")] == ["b", "a", "c"]


def test_fetch_json_missing_file(tmp_path):
    with pytest.raises(LoadError, match="dances.json"):
        fetch_json(tmp_path, "dances")


def test_fetch_json_bad_json(tmp_path):
    (tmp_path / "dances.json").write_text("[{")
    with pytest.raises(LoadError):
        fetch_json(tmp_path, "dances")


# ---------------------------------------------------------------------------
# URLs (requests is mocked)
# ---------------------------------------------------------------------------


def _response(payload=None, error=None):
    resp = MagicMock()
    resp.json.return_value = payload
    if error is not None:
        resp.raise_for_status.side_effect = error
    return resp


def test_fetch_json_from_url():
    with patch("ceilidh.loader.requests.get", return_value=_response([{"id": "x"}])) as get:
        assert fetch_json("https://example.org/data", "dances", timeout=3) == [{"id": "x"}]
    get.assert_called_once_with("https://example.org/data/dances.json", timeout=3)


def test_fetch_json_http_error():
    resp = _response(error=requests.HTTPError("404 Not Found"))
    with patch("ceilidh.loader.requests.get", return_value=resp):
        with pytest.raises(LoadError, match="404"):
            fetch_json("https://example.org/data", "dances")


def test_fetch_json_connection_error():
    with patch("ceilidh.loader.requests.get", side_effect=requests.ConnectionError("offline")):
        with pytest.raises(LoadError, match="offline"):
            fetch_json("https://example.org/data", "roles")


def test_fetch_all_requests_every_resource():
    with patch("ceilidh.loader.requests.get", return_value=_response([])) as get:
        fresh, errors = fetch_all("https://example.org/data")
    assert errors == {}
    assert set(fresh) == set(RESOURCES)
    assert get.call_count == len(RESOURCES)


# ---------------------------------------------------------------------------
# Joining and the offline cache
# ---------------------------------------------------------------------------


def test_fetch_all_reports_failures(data_dir):
    (data_dir / "roles.json").unlink()
    (data_dir / "setlists.json").write_text(json.dumps({"not": "a list"}))
    fresh, errors = fetch_all(data_dir)
    assert set(fresh) == {"dances", "formations"}
    assert set(errors) == {"roles", "setlists"}


def test_load_payload_refreshes_cache(data_dir, raw):
    store = MemoryStore()
    payload, errors = load_payload(data_dir, store)
    assert errors == {}
    assert payload == raw
    assert store.get(CATALOG_CACHE_KEY) == raw


def test_failed_resource_falls_back_to_cache(data_dir, raw):
    store = MemoryStore({CATALOG_CACHE_KEY: {"roles": [{"id": "cached-role"}]}})
    (data_dir / "roles.json").write_text("not json")
    payload, errors = load_payload(data_dir, store)
    assert set(errors) == {"roles"}
    assert payload["roles"] == [{"id": "cached-role"}]
    assert payload["dances"] == raw["dances"]
    # the cached copy survives for the resource that failed
    assert store.get(CATALOG_CACHE_KEY)["roles"] == [{"id": "cached-role"}]


def test_everything_fails_without_cache(tmp_path):
    catalog = load_catalog(tmp_path / "nowhere", MemoryStore())
    assert catalog.dances == []
    assert catalog.setlists == []


def test_merge_with_cache_leaves_cache_alone_when_nothing_fresh():
    store = MemoryStore({CATALOG_CACHE_KEY: {"dances": [{"id": "x"}]}})
    payload = merge_with_cache({}, store)
    assert payload == {"dances": [{"id": "x"}], "formations": [], "roles": [], "setlists": []}
    assert store.get(CATALOG_CACHE_KEY) == {"dances": [{"id": "x"}]}


def test_merge_with_broken_store(broken_store):
    payload = merge_with_cache({"dances": [{"id": "x"}]}, broken_store)
    assert payload["dances"] == [{"id": "x"}]
    assert payload["roles"] == []


def test_cached_catalog(raw):
    store = MemoryStore({CATALOG_CACHE_KEY: raw})
    assert cached_catalog(store).dance("a").title == "Apple Tree"
    assert cached_catalog(MemoryStore({CATALOG_CACHE_KEY: "garbage"})).dances == []


def test_fetch_json_reads_utf8(tmp_path):
    dances = [{"id": "ril", "title": "Ríl Mhór – Strip the Willow"}]
    (tmp_path / "dances.json").write_text(json.dumps(dances, ensure_ascii=False), encoding="utf-8")
    assert fetch_json(tmp_path, "dances") == dances
