"""Viewer — the single owner of application state.

Holds the catalog, the setlist editor, the selection, the filter criteria,
the role-set and the calling-mode flag. UIs call its methods and read its
getters; they never touch the parts directly.

Every mutating method finishes its whole cascade before returning:
persist (when setlists changed), recompute the visible set, reconcile the
selection, notify subscribers. A call that changes nothing notifies no one.
"""

from __future__ import annotations

import logging
from typing import Callable

from .catalog import Catalog
from .filters import FilterCriteria, FilterOptions, filter_options, visible_dances
from .models import Dance, RoleSet, Setlist, SetlistItem
from .roles import render_markup, substitute
from .selection import Selection
from .setlist import SetlistEditor, snapshot_item
from .storage import ROLE_SET_KEY, safe_get, safe_set

logger = logging.getLogger(__name__)

_UNSET = object()


class Viewer:
    def __init__(self, catalog: Catalog | None = None, store=None, default_role_set: str | None = None):
        self.store = store
        self.default_role_set = default_role_set
        self.catalog = catalog or Catalog()
        self.criteria = FilterCriteria()
        self.selection = Selection(store)
        self.editor = SetlistEditor(self.catalog.setlists, store)
        self.role_set: RoleSet | None = None
        self.calling_mode = False
        self._visible: list[Dance] = []
        self._subscribers: list[Callable[[Viewer], None]] = []

        self.editor.load()
        self._visible = self._compute_visible()
        self.selection.restore(self._visible)

        self.role_set = self._restored_role_set()

    # -- Subscribers --------------------------------------------------------------

    def subscribe(self, callback: Callable[[Viewer], None]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[Viewer], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback(self)

    def _refresh(self) -> None:
        self._visible = self._compute_visible()
        self.selection.reconcile(self._visible)
        self._notify()

    def _compute_visible(self) -> list[Dance]:
        return visible_dances(
            self.catalog.dances,
            self.criteria,
            self.editor.active,
            self.catalog.index.dance_by_id,
        )

    # -- Getters --------------------------------------------------------------------

    def get_visible_dances(self) -> list[Dance]:
        return list(self._visible)

    def get_current_dance(self) -> Dance | None:
        return self.selection.current(self._visible) or self.catalog.dance(
            self.selection.current_id
        )

    def get_active_setlist(self) -> Setlist | None:
        return self.editor.active

    def get_original_setlist(self) -> Setlist | None:
        return self.editor.original(self.editor.active_id)

    def get_filter_options(self) -> FilterOptions:
        return filter_options(self.catalog.dances, self.catalog.formations)

    def step_sequence(self) -> list[Dance]:
        """Dances that next/previous walk through.

        With a non-empty setlist active the visible set is already that
        setlist, in its order, narrowed by the filters.
        """
        return list(self._visible)

    # -- Filters and selection -------------------------------------------------------

    def apply_filters(self, criteria: FilterCriteria) -> None:
        self.criteria = criteria
        self._refresh()

    def clear_filters(self) -> None:
        # The active setlist stays selected.
        self.apply_filters(self.criteria.cleared())

    def select_setlist(self, setlist_id: str | None) -> bool:
        if not self.editor.select(setlist_id):
            return False
        self._refresh()
        return True

    def select_dance(self, dance_id: str) -> bool:
        if not self.selection.pick(dance_id, self._visible):
            return False
        self._notify()
        return True

    def step(self, delta: int) -> bool:
        if not self.selection.step(delta, self.step_sequence()):
            return False
        self._notify()
        return True

    # -- Setlist editing ----------------------------------------------------------------

    def _after_setlist_edit(self, changed: bool) -> bool:
        if changed:
            self.editor.persist()
            self._refresh()
        return changed

    def add_current_to_setlist(self) -> bool:
        dance = self.get_current_dance()
        form = self.catalog.formation_label(dance) if dance else ""
        return self._after_setlist_edit(self.editor.add(dance, form))

    def remove_setlist_item(self, index: int) -> bool:
        return self._after_setlist_edit(self.editor.remove(index))

    def move_setlist_item(self, index: int, delta: int) -> bool:
        return self._after_setlist_edit(self.editor.move(index, delta))

    def reset_setlist(self) -> bool:
        return self._after_setlist_edit(self.editor.reset())

    def raw_setlist_text(self) -> str:
        return self.editor.raw_text()

    def apply_raw_setlist(self, text: str) -> bool:
        return self._after_setlist_edit(self.editor.apply_raw_text(text, self._snapshot))

    def _snapshot(self, dance_id: str, rough_order: int) -> SetlistItem:
        dance = self.catalog.dance(dance_id)
        if dance is None:
            return SetlistItem(rough_order=rough_order, dance_id=dance_id)
        return snapshot_item(dance, rough_order, self.catalog.formation_label(dance))

    # -- Role-sets and rendering ---------------------------------------------------------

    def _restored_role_set(self) -> RoleSet | None:
        # A stored None means the user chose no role-set; only a missing key
        # falls back to the default.
        role_set_id = safe_get(self.store, ROLE_SET_KEY, _UNSET)
        if role_set_id is _UNSET:
            role_set_id = self.default_role_set
        if not role_set_id or not isinstance(role_set_id, str):
            return None
        return self.catalog.role_set_by_id.get(role_set_id)

    def set_role_set(self, role_set_id: str | None) -> bool:
        role_set = self.catalog.role_set_by_id.get(role_set_id) if role_set_id else None
        if role_set_id and role_set is None:
            logger.debug("Unknown role-set %r, using none", role_set_id)
        if role_set is self.role_set:
            return False
        self.role_set = role_set
        safe_set(self.store, ROLE_SET_KEY, role_set.id if role_set else None)
        self._notify()
        return True

    def render_text(self, text: str) -> str:
        return substitute(text, self.role_set)

    def render_markup(self, html: str) -> str:
        return render_markup(html, self.role_set)

    def toggle_calling_mode(self) -> bool:
        self.calling_mode = not self.calling_mode
        self._notify()
        return self.calling_mode

    # -- Reload ----------------------------------------------------------------------------

    def reload(self, catalog: Catalog) -> None:
        """Swap in a freshly loaded catalog, rebuilding everything derived."""
        active_id = self.editor.active_id
        self.catalog = catalog
        self.editor = SetlistEditor(catalog.setlists, self.store)
        self.editor.load()
        self.editor.select(active_id)
        if self.role_set is not None:
            self.role_set = catalog.role_set_by_id.get(self.role_set.id)
        else:
            self.role_set = self._restored_role_set()

        had_selection = self.selection.current_id is not None
        self._visible = self._compute_visible()
        if had_selection:
            self.selection.reconcile(self._visible)
        else:
            self.selection.restore(self._visible)
        self._notify()
