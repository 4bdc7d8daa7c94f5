"""Selection state machine — which dance is current.

States are NoSelection (current_id is None) and Selected(current_id). The
current dance stays put across recomputes of the visible set while it is
still visible; otherwise the first visible dance takes over.
"""

from __future__ import annotations

import logging

from .models import Dance
from .storage import LAST_DANCE_KEY, safe_get, safe_set

logger = logging.getLogger(__name__)


def _index_of(dances: list[Dance], dance_id: str | None) -> int:
    if dance_id is None:
        return -1
    for i, d in enumerate(dances):
        if d.id == dance_id:
            return i
    return -1


class Selection:
    def __init__(self, store=None):
        self.store = store
        self.current_id: str | None = None

    @property
    def is_selected(self) -> bool:
        return self.current_id is not None

    def _enter(self, dance_id: str | None) -> bool:
        """Move to Selected(dance_id) or NoSelection. Returns True on change."""
        if dance_id == self.current_id:
            return False
        self.current_id = dance_id
        if dance_id is not None:
            safe_set(self.store, LAST_DANCE_KEY, dance_id)
        return True

    def current(self, dances: list[Dance]) -> Dance | None:
        i = _index_of(dances, self.current_id)
        return dances[i] if i >= 0 else None

    def reconcile(self, visible: list[Dance]) -> bool:
        """Keep the current dance if visible, else take the first, else none."""
        if _index_of(visible, self.current_id) >= 0:
            return False
        return self._enter(visible[0].id if visible else None)

    def pick(self, dance_id: str, visible: list[Dance]) -> bool:
        if _index_of(visible, dance_id) < 0:
            logger.debug("Ignoring pick of %r: not in the visible set", dance_id)
            return False
        return self._enter(dance_id)

    def step(self, delta: int, sequence: list[Dance]) -> bool:
        """Move ``delta`` places through ``sequence``, wrapping at both ends."""
        if not sequence:
            return False
        i = _index_of(sequence, self.current_id)
        if i < 0:
            return False
        return self._enter(sequence[(i + delta) % len(sequence)].id)

    def restore(self, visible: list[Dance]) -> bool:
        """Select the last persisted dance if visible, else the first one."""
        last_id = safe_get(self.store, LAST_DANCE_KEY)
        if isinstance(last_id, str) and _index_of(visible, last_id) >= 0:
            return self._enter(last_id)
        return self._enter(visible[0].id if visible else None)
