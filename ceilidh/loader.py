"""Data loading — the four JSON resources, from a directory or a base URL.

The resources are fetched in parallel and joined. A resource that fails to
load (network, HTTP status, bad JSON) falls back to the copy cached in the
state store by the last successful load, and to an empty list when there is
no cache. Loading never raises.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import requests

from .catalog import Catalog
from .storage import CATALOG_CACHE_KEY, safe_get, safe_set

logger = logging.getLogger(__name__)

RESOURCES = ("dances", "formations", "roles", "setlists")
DEFAULT_TIMEOUT = 10


class LoadError(RuntimeError):
    """A resource could not be fetched or parsed."""


def is_url(source: str) -> bool:
    return str(source).startswith(("http://", "https://"))


def resource_location(source: str | Path, name: str) -> str:
    if is_url(str(source)):
        return f"{str(source).rstrip('/')}/{name}.json"
    return str(Path(source) / f"{name}.json")


def fetch_json(source: str | Path, name: str, timeout: float = DEFAULT_TIMEOUT):
    """Fetch and decode one resource. Raises LoadError on any failure."""
    location = resource_location(source, name)
    try:
        if is_url(str(source)):
            resp = requests.get(location, timeout=timeout)
            resp.raise_for_status()
            return resp.json()
        with open(location, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError, requests.RequestException) as e:
        # requests' JSON errors and json.JSONDecodeError are ValueErrors
        raise LoadError(f"Failed to load {location}: {e}") from e


def cached_payload(store) -> dict:
    cache = safe_get(store, CATALOG_CACHE_KEY, {})
    return cache if isinstance(cache, dict) else {}


def cached_catalog(store) -> Catalog:
    """Catalog built from the offline cache alone."""
    return Catalog.from_raw(cached_payload(store))


def fetch_all(
    source: str | Path, timeout: float = DEFAULT_TIMEOUT
) -> tuple[dict, dict[str, str]]:
    """Fetch every resource in parallel and join.

    Returns (fresh, errors): fresh maps resource name to its JSON array for
    the resources that loaded; errors maps the others to a message. Touches
    no state, so it is safe to run off the UI thread.
    """
    with ThreadPoolExecutor(max_workers=len(RESOURCES)) as pool:
        futures = {
            name: pool.submit(fetch_json, source, name, timeout) for name in RESOURCES
        }

    fresh, errors = {}, {}
    for name, future in futures.items():
        try:
            data = future.result()
        except LoadError as e:
            logger.warning("%s", e)
            errors[name] = str(e)
            continue
        if isinstance(data, list):
            fresh[name] = data
        else:
            logger.warning("Ignoring %s: expected a JSON array", name)
            errors[name] = f"{name}: expected a JSON array"
    return fresh, errors


def merge_with_cache(fresh: dict, store=None) -> dict:
    """Fill missing resources from the cache and refresh the cache."""
    cache = cached_payload(store)
    payload = {}
    for name in RESOURCES:
        if name in fresh:
            payload[name] = fresh[name]
            continue
        cached = cache.get(name)
        payload[name] = cached if isinstance(cached, list) else []
    if fresh:
        safe_set(store, CATALOG_CACHE_KEY, {**cache, **fresh})
    return payload


def load_payload(
    source: str | Path, store=None, timeout: float = DEFAULT_TIMEOUT
) -> tuple[dict, dict[str, str]]:
    """Fetch, fall back to the cache per resource, refresh the cache.

    Returns (payload, errors); payload always has every resource name.
    """
    fresh, errors = fetch_all(source, timeout)
    return merge_with_cache(fresh, store), errors


def load_catalog(
    source: str | Path, store=None, timeout: float = DEFAULT_TIMEOUT
) -> Catalog:
    payload, _ = load_payload(source, store, timeout)
    return Catalog.from_raw(payload)
