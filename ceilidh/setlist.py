"""Setlist editor — session-mutable working copies of the setlists.

The originals loaded from setlists.json are never touched. Each setlist has
a working copy (deep copy at load or reset) that the caller edits: add the
current dance, remove, move, or rewrite it as raw id lines. Working copies
are persisted as one JSON blob and restored on the next load.
"""

from __future__ import annotations

import logging
from typing import Callable

from pydantic import ValidationError

from .models import Dance, Setlist, SetlistItem
from .storage import WORKING_SETLISTS_KEY, safe_get, safe_set

logger = logging.getLogger(__name__)


def snapshot_item(dance: Dance, rough_order: int, form: str = "") -> SetlistItem:
    """A setlist item with display fields copied from the dance now."""
    return SetlistItem(
        rough_order=rough_order,
        dance_id=dance.id,
        name=dance.title,
        speed=dance.speed,
        form=form or dance.formation_name,
        bars=dance.bars,
        music_type=dance.music_type,
    )


class SetlistEditor:
    def __init__(self, originals: list[Setlist], store=None):
        self.store = store
        self.originals: dict[str, Setlist] = {s.id: s for s in originals}
        self.working: dict[str, Setlist] = {}
        self.active_id: str | None = None

    # -- Loading ---------------------------------------------------------------

    def load(self) -> None:
        """Restore persisted working copies; clone originals for the rest."""
        persisted = safe_get(self.store, WORKING_SETLISTS_KEY, {})
        if not isinstance(persisted, dict):
            persisted = {}

        self.working = {}
        for setlist_id, original in self.originals.items():
            saved = persisted.get(setlist_id)
            if saved is not None:
                try:
                    self.working[setlist_id] = Setlist.model_validate(saved)
                    continue
                except ValidationError as e:
                    logger.debug("Discarding stored working copy %s: %s", setlist_id, e)
            self.working[setlist_id] = original.model_copy(deep=True)

        if self.active_id not in self.working:
            self.active_id = None

    def persist(self) -> bool:
        blob = {sid: s.to_json() for sid, s in self.working.items()}
        return safe_set(self.store, WORKING_SETLISTS_KEY, blob)

    # -- Active setlist ----------------------------------------------------------

    @property
    def active(self) -> Setlist | None:
        if self.active_id is None:
            return None
        return self.working.get(self.active_id)

    def select(self, setlist_id: str | None) -> bool:
        if setlist_id is not None and setlist_id not in self.working:
            logger.debug("Ignoring unknown setlist %r", setlist_id)
            return False
        if setlist_id == self.active_id:
            return False
        self.active_id = setlist_id
        return True

    def original(self, setlist_id: str | None) -> Setlist | None:
        if setlist_id is None:
            return None
        return self.originals.get(setlist_id)

    # -- Mutations (all return True when the active setlist changed) -------------

    def add(self, dance: Dance | None, form: str = "") -> bool:
        active = self.active
        if dance is None or active is None:
            return False
        if any(item.dance_id == dance.id for item in active.items):
            return False
        next_order = max((item.rough_order for item in active.items), default=0) + 1
        active.items.append(snapshot_item(dance, next_order, form))
        return True

    def remove(self, index: int) -> bool:
        active = self.active
        if active is None or not 0 <= index < len(active.items):
            return False
        del active.items[index]
        return True

    def move(self, index: int, delta: int) -> bool:
        """Move the item at ``index`` to ``index + delta``. No renumbering."""
        active = self.active
        if active is None or delta == 0:
            return False
        target = index + delta
        if not (0 <= index < len(active.items) and 0 <= target < len(active.items)):
            return False
        item = active.items.pop(index)
        active.items.insert(target, item)
        return True

    def reset(self) -> bool:
        """Discard edits: the active copy takes the original's items again."""
        active = self.active
        original = self.original(self.active_id)
        if active is None or original is None:
            return False
        active.items = [item.model_copy(deep=True) for item in original.items]
        return True

    # -- Raw id editor ------------------------------------------------------------

    def raw_text(self) -> str:
        active = self.active
        if active is None:
            return ""
        return "\n".join(item.dance_id for item in active.items)

    def apply_raw_text(
        self, text: str, snapshot: Callable[[str, int], SetlistItem | None]
    ) -> bool:
        """Rebuild the active setlist from one dance id per line.

        Existing items are kept as they are; new ids go through ``snapshot``
        (which may return None for ids it cannot resolve, dropping the line).
        """
        active = self.active
        if active is None:
            return False

        existing = {item.dance_id: item for item in active.items}
        next_order = max((item.rough_order for item in active.items), default=0) + 1
        items = []
        seen = set()
        for line in text.splitlines():
            dance_id = line.strip()
            if not dance_id or dance_id in seen:
                continue
            seen.add(dance_id)
            item = existing.get(dance_id)
            if item is None:
                item = snapshot(dance_id, next_order)
                if item is None:
                    continue
                next_order += 1
            items.append(item)

        if [i.dance_id for i in items] == [i.dance_id for i in active.items]:
            return False
        active.items = items
        return True
