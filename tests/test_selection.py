"""Tests for the selection state machine."""

import pytest

from ceilidh.models import Dance
from ceilidh.selection import Selection
from ceilidh.storage import LAST_DANCE_KEY, MemoryStore


@pytest.fixture
def abc():
    return [Dance(id=i, title=i.upper()) for i in "abc"]


def test_starts_with_no_selection():
    sel = Selection()
    assert not sel.is_selected
    assert sel.current([]) is None


def test_reconcile_keeps_visible_selection(abc):
    sel = Selection()
    sel.current_id = "b"
    assert not sel.reconcile(abc[1:])
    assert sel.current_id == "b"


def test_reconcile_falls_to_first(abc):
    sel = Selection()
    sel.current_id = "a"
    assert sel.reconcile(abc[1:])
    assert sel.current_id == "b"


def test_reconcile_empty_set_is_no_selection(abc):
    sel = Selection()
    sel.current_id = "a"
    assert sel.reconcile([])
    assert sel.current_id is None


def test_pick_must_be_visible(abc):
    sel = Selection()
    assert sel.pick("c", abc)
    assert sel.current_id == "c"
    assert not sel.pick("zzz", abc)
    assert sel.current_id == "c"


@pytest.mark.parametrize(
    "start,delta,expected",
    [("a", 1, "b"), ("c", 1, "a"), ("a", -1, "c"), ("b", -1, "a")],
)
def test_step_wraps(abc, start, delta, expected):
    sel = Selection()
    sel.current_id = start
    assert sel.step(delta, abc)
    assert sel.current_id == expected


def test_step_no_op_when_current_not_in_sequence(abc):
    sel = Selection()
    sel.current_id = "zzz"
    assert not sel.step(1, abc)
    assert sel.current_id == "zzz"
    assert not sel.step(1, [])


def test_selected_id_is_persisted(abc):
    store = MemoryStore()
    sel = Selection(store)
    sel.pick("b", abc)
    assert store.get(LAST_DANCE_KEY) == "b"
    sel.reconcile([])
    assert store.get(LAST_DANCE_KEY) == "b"


def test_restore_last_dance(abc):
    store = MemoryStore({LAST_DANCE_KEY: "c"})
    sel = Selection(store)
    sel.restore(abc)
    assert sel.current_id == "c"


def test_restore_unknown_falls_to_first(abc):
    sel = Selection(MemoryStore({LAST_DANCE_KEY: "gone"}))
    sel.restore(abc)
    assert sel.current_id == "a"


def test_persistence_failure_is_not_fatal(abc, broken_store, caplog):
    sel = Selection(broken_store)
    sel.restore(abc)
    assert sel.current_id == "a"
    assert sel.step(1, abc)
    assert sel.current_id == "b"
    assert "quota exceeded" in caplog.text
