"""Textual TUI for ceilidh — browse dances and call them live.

Launch with `ceilidh` (no args). Two screens:
  1. BrowseScreen — setlist, role terms and filters; dance list; dance card
  2. SetlistScreen — reorder, remove, reset, or edit the active setlist as raw ids

The app shows the cached catalog at once and swaps in the freshly loaded one
when the background fetch finishes.
"""

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widgets import (
    Button,
    Footer,
    Label,
    ListItem,
    ListView,
    Select,
    Static,
    TextArea,
)

from .catalog import Catalog
from .config import Settings
from .filters import FilterCriteria
from .loader import cached_catalog, fetch_all, merge_with_cache
from .render import dance_panel, project
from .viewer import Viewer

FILTER_SELECTS = ("formation", "bars", "music-type", "difficulty")


def _value(select: Select):
    if select.is_blank():
        return None
    return select.value


def _set_value(select: Select, value, allowed=None) -> None:
    if allowed is not None and value not in allowed:
        value = None
    if _value(select) == value:
        return
    if value is None:
        select.clear()
    else:
        select.value = value


# ---------------------------------------------------------------------------
# BrowseScreen
# ---------------------------------------------------------------------------


class BrowseScreen(Screen):
    """Filters, dance list and the current dance."""

    DEFAULT_CSS = """
    BrowseScreen {
        layout: vertical;
    }

    #sidebar {
        width: 40;
        padding: 0 1;
        border-right: solid $primary;
    }

    #sidebar Select {
        margin-bottom: 1;
    }

    #clear {
        width: 100%;
        margin-bottom: 1;
    }

    #dances {
        height: 1fr;
        border: solid $secondary;
    }

    #card-pane {
        width: 1fr;
        padding: 0 1;
    }

    BrowseScreen.calling #sidebar {
        display: none;
    }
    """

    BINDINGS = [
        ("n", "step(1)", "Next"),
        ("p", "step(-1)", "Previous"),
        ("c", "toggle_calling", "Calling mode"),
        ("a", "add_to_setlist", "Add to setlist"),
        ("e", "edit_setlist", "Edit setlist"),
        ("q", "app.quit", "Quit"),
    ]

    def __init__(self, viewer: Viewer) -> None:
        super().__init__()
        self.viewer = viewer
        self._listed_ids: list[str] = []
        self._allowed: dict[str, set] = {}
        self._catalog: Catalog | None = None

    def compose(self) -> ComposeResult:
        with Horizontal():
            with Vertical(id="sidebar"):
                yield Select([], prompt="All dances", id="setlist")
                yield Select([], prompt="Person 1 / Person 2", id="role-set")
                yield Select([], prompt="Any formation", id="formation")
                yield Select([], prompt="Any bars", id="bars")
                yield Select([], prompt="Any music", id="music-type")
                yield Select([], prompt="Any difficulty", id="difficulty")
                yield Button("Clear filters", id="clear")
                yield ListView(id="dances")
            with VerticalScroll(id="card-pane"):
                yield Static(id="card")
        yield Footer()

    def on_mount(self) -> None:
        self.viewer.subscribe(self._on_viewer_change)
        self._on_viewer_change(self.viewer)

    def on_unmount(self) -> None:
        self.viewer.unsubscribe(self._on_viewer_change)

    # -- Viewer -> widgets -------------------------------------------------------------

    def _on_viewer_change(self, viewer: Viewer) -> None:
        if viewer.catalog is not self._catalog:
            self._catalog = viewer.catalog
            self._populate_selects()
        self._sync_selects()
        self.set_class(viewer.calling_mode, "calling")
        card = self.query_one("#card", Static)
        card.update(dance_panel(project(viewer), calling_mode=viewer.calling_mode))
        self.call_later(self._sync_list)

    def _populate_selects(self) -> None:
        catalog = self.viewer.catalog
        options = self.viewer.get_filter_options()
        choices = {
            "setlist": [(Text(s.label), s.id) for s in catalog.setlists],
            "role-set": [(Text(r.label), r.id) for r in catalog.role_sets],
            "formation": [(Text(label), fid) for fid, label in options.formations],
            "bars": [(f"{b} bars", str(b)) for b in options.bars],
            "music-type": [(Text(m), m) for m in options.music_types],
            "difficulty": [(f"Difficulty {d}", str(d)) for d in options.difficulties],
        }
        for select_id, select_options in choices.items():
            self.query_one(f"#{select_id}", Select).set_options(select_options)
            self._allowed[select_id] = {value for _, value in select_options}

    def _sync_selects(self) -> None:
        v = self.viewer
        c = v.criteria
        values = {
            "setlist": v.editor.active_id,
            "role-set": v.role_set.id if v.role_set else None,
            "formation": c.formation_id,
            "bars": str(c.bars) if c.bars else None,
            "music-type": c.music_type,
            "difficulty": str(c.difficulty) if c.difficulty else None,
        }
        for select_id, value in values.items():
            _set_value(
                self.query_one(f"#{select_id}", Select),
                value,
                self._allowed.get(select_id, set()),
            )

    async def _sync_list(self) -> None:
        lv = self.query_one("#dances", ListView)
        visible = self.viewer.get_visible_dances()
        ids = [d.id for d in visible]
        if ids != self._listed_ids:
            self._listed_ids = ids
            await lv.clear()
            await lv.extend(ListItem(Label(Text(d.title)), name=d.id) for d in visible)
        current = self.viewer.selection.current_id
        if current in ids:
            lv.index = ids.index(current)

    # -- Widgets -> viewer -------------------------------------------------------------

    def on_select_changed(self, event: Select.Changed) -> None:
        # Read the select itself: a queued event may be older than its value.
        value = _value(event.select)
        select_id = event.select.id
        if select_id == "setlist":
            self.viewer.select_setlist(value)
        elif select_id == "role-set":
            self.viewer.set_role_set(value)
        elif select_id in FILTER_SELECTS:
            criteria = FilterCriteria.from_strings(
                *(_value(self.query_one(f"#{name}", Select)) for name in FILTER_SELECTS)
            )
            if criteria != self.viewer.criteria:
                self.viewer.apply_filters(criteria)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "clear":
            self.viewer.clear_filters()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        dance_id = event.item.name
        if dance_id:
            self.viewer.select_dance(dance_id)

    def action_step(self, delta: int) -> None:
        self.viewer.step(delta)

    def action_toggle_calling(self) -> None:
        self.viewer.toggle_calling_mode()

    def action_add_to_setlist(self) -> None:
        if self.viewer.get_active_setlist() is None:
            self.notify("Choose a setlist first", severity="warning")
            return
        if self.viewer.add_current_to_setlist():
            self.notify("Added to setlist")
        else:
            self.notify("Already in the setlist", severity="warning")

    def action_edit_setlist(self) -> None:
        if self.viewer.get_active_setlist() is None:
            self.notify("Choose a setlist first", severity="warning")
            return
        self.app.push_screen(SetlistScreen(self.viewer))


# ---------------------------------------------------------------------------
# SetlistScreen
# ---------------------------------------------------------------------------


class SetlistScreen(Screen):
    """Edit the active setlist's working copy."""

    DEFAULT_CSS = """
    SetlistScreen {
        layout: vertical;
        padding: 0 1;
    }

    #setlist-title {
        height: 1;
        text-style: bold;
    }

    #items {
        height: 1fr;
        border: solid $primary;
    }

    #raw {
        height: 8;
    }

    #apply {
        margin: 1 0;
    }
    """

    BINDINGS = [
        ("escape", "app.pop_screen", "Back"),
        ("u", "move(-1)", "Move up"),
        ("d", "move(1)", "Move down"),
        ("x", "remove", "Remove"),
        ("r", "reset", "Reset to original"),
    ]

    def __init__(self, viewer: Viewer) -> None:
        super().__init__()
        self.viewer = viewer
        self._focus_index: int | None = None

    def compose(self) -> ComposeResult:
        yield Static("", id="setlist-title")
        yield ListView(id="items")
        yield Label("Raw dance ids, one per line:")
        yield TextArea(id="raw")
        yield Button("Apply raw list", id="apply", variant="primary")
        yield Footer()

    def on_mount(self) -> None:
        self.viewer.subscribe(self._on_viewer_change)
        self.query_one("#raw", TextArea).load_text(self.viewer.raw_setlist_text())
        self.call_later(self._rebuild, 0)

    def on_unmount(self) -> None:
        self.viewer.unsubscribe(self._on_viewer_change)

    def _on_viewer_change(self, viewer: Viewer) -> None:
        index = self._focus_index
        if index is None:
            index = self.query_one("#items", ListView).index or 0
        self._focus_index = None
        self.call_later(self._rebuild, index)

    async def _rebuild(self, index: int) -> None:
        setlist = self.viewer.get_active_setlist()
        title = self.query_one("#setlist-title", Static)
        lv = self.query_one("#items", ListView)
        await lv.clear()
        if setlist is None:
            title.update("No setlist selected")
            return
        title.update(Text(f"{setlist.label} ({len(setlist.items)} dances)"))
        items = []
        for i, item in enumerate(setlist.items, start=1):
            dance = self.viewer.catalog.dance(item.dance_id)
            name = item.name or (dance.title if dance else item.dance_id)
            extra = " · ".join(
                str(v) for v in (item.form, item.bars and f"{item.bars} bars", item.music_type) if v
            )
            label = f"{i:>2}. {name}" + (f"  ({extra})" if extra else "")
            items.append(ListItem(Label(Text(label)), name=item.dance_id))
        await lv.extend(items)
        if items:
            lv.index = min(index, len(items) - 1)

    def _selected_index(self) -> int | None:
        return self.query_one("#items", ListView).index

    def action_move(self, delta: int) -> None:
        index = self._selected_index()
        if index is None:
            return
        self._focus_index = index + delta
        if not self.viewer.move_setlist_item(index, delta):
            self._focus_index = None

    def action_remove(self) -> None:
        index = self._selected_index()
        if index is not None:
            self.viewer.remove_setlist_item(index)

    def action_reset(self) -> None:
        if self.viewer.reset_setlist():
            self.query_one("#raw", TextArea).load_text(self.viewer.raw_setlist_text())
            self.notify("Setlist reset to original")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "apply":
            text = self.query_one("#raw", TextArea).text
            if self.viewer.apply_raw_setlist(text):
                self.notify("Setlist updated")
            self.query_one("#raw", TextArea).load_text(self.viewer.raw_setlist_text())


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


class CeilidhApp(App):
    """ceilidh TUI — dance reference and calling aid."""

    TITLE = "ceilidh"
    CSS = """
    Screen {
        background: $background;
    }
    """

    def __init__(self, settings: Settings | None = None, viewer: Viewer | None = None) -> None:
        super().__init__()
        self.settings = settings or Settings.from_env()
        self._preloaded = viewer is not None
        if viewer is None:
            store = self.settings.make_store()
            viewer = Viewer(
                cached_catalog(store), store, default_role_set=self.settings.role_set
            )
        self.viewer = viewer

    def on_mount(self) -> None:
        self.push_screen(BrowseScreen(self.viewer))
        if not self._preloaded:
            self._load()

    @work(thread=True, exclusive=True)
    def _load(self) -> None:
        """Fetch the data files in a background thread."""
        fresh, errors = fetch_all(self.settings.data, self.settings.timeout)
        self.call_from_thread(self._loaded, fresh, errors)

    def _loaded(self, fresh: dict, errors: dict) -> None:
        payload = merge_with_cache(fresh, self.viewer.store)
        self.viewer.reload(Catalog.from_raw(payload))
        if errors:
            self.notify(
                f"Could not load: {', '.join(sorted(errors))} (using cached data)",
                severity="warning",
            )
