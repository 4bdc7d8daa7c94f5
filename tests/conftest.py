"""Shared fixtures — a small in-memory catalog and state store."""

import json

import pytest

from ceilidh.catalog import Catalog
from ceilidh.storage import MemoryStore
from ceilidh.viewer import Viewer


@pytest.fixture
def anyio_backend():
    return "asyncio"


def _raw():
    return {
        "dances": [
            {
                "id": "b",
                "title": "Bonny Breast Knot",
                "formationId": "f2",
                "structure": {"barsPerPart": 48, "parts": ["A", "B", "C"]},
                "speed": "fast",
                "musicType": "jig",
                "difficulty": 2,
                "calls": [{"part": "A", "bars": "1-8", "call": "[P1s] advance"}],
            },
            {
                "id": "a",
                "title": "Apple Tree",
                "formationId": "f1",
                "structure": {"barsPerPart": 32, "parts": ["A", "B"]},
                "speed": "medium",
                "musicType": "reel",
                "difficulty": 1,
                "notes": "[P1] crosses to [P2s]",
                "calls": [
                    {"part": "A1", "bars": "1-8", "call": "<b>[P1]</b> turns [P2]"},
                    {"part": "B", "bars": 16, "call": "Swing"},
                ],
            },
            {
                "id": "c",
                "title": "circle waltz",
                "formationName": "Big Circle",
                "structure": {"parts": ["A"]},
                "calls": [],
            },
        ],
        "formations": [
            {"id": "f1", "name": "Longways set", "description": "Lines of [P1s] and [P2s]"},
            {"id": "f2", "name": "Sicilian circle", "diagramImage": "img/sicilian.svg"},
            {"id": "f3", "name": "Big circle"},
        ],
        "roles": [
            {
                "id": "larks-robins",
                "label": "Larks / Robins",
                "mapping": {"P1": "Lark", "P2": "Robin", "P1S": "Larks", "P2S": "Robins"},
            },
            {"id": "gents-ladies", "label": "Gents / Ladies", "mapping": {"P1": "Gent", "P2": "Lady", "P2S": "Ladies"}},
        ],
        "setlists": [
            {"id": "s1", "name": "Evening", "danceIds": ["b", "missing", "a"]},
            {
                "id": "s2",
                "name": "Empty",
                "items": [],
            },
        ],
    }


@pytest.fixture
def raw():
    return _raw()


@pytest.fixture
def catalog(raw):
    return Catalog.from_raw(raw)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def viewer(catalog, store):
    return Viewer(catalog, store)


@pytest.fixture
def data_dir(tmp_path, raw):
    """A data directory holding the four resource files."""
    directory = tmp_path / "data"
    directory.mkdir()
    for name, records in raw.items():
        (directory / f"{name}.json").write_text(json.dumps(records))
    return directory


class BrokenStore:
    """A state store whose every read and write fails."""

    def get(self, key, default=None):
        raise OSError("storage disabled")

    def set(self, key, value):
        raise OSError("quota exceeded")

    def delete(self, key):
        raise OSError("storage disabled")


@pytest.fixture
def broken_store():
    return BrokenStore()
