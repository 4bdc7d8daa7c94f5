"""Render projection — viewer state to display data and rich renderables.

project() flattens the current dance into a DanceView with every piece of
text already passed through the role-set engine. The rich helpers turn
DanceViews, dance lists and setlists into panels and tables for the CLI and
the TUI.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .catalog import Catalog
from .models import Dance, Setlist
from .roles import markup_to_text

NO_MATCH = "No dance matches these filters"
NO_CALLS = "No calls defined for this dance."
NO_DIAGRAM = "No formation image added yet."
NO_FIGURE = "No dance illustration added yet."


@dataclass
class CallRow:
    part: str
    bars: str
    call: str


@dataclass
class DanceView:
    title: str
    dance_id: str | None = None
    formation: str = ""
    formation_description: str = ""
    structure: str = ""
    speed: str = ""
    music_type: str = ""
    difficulty: str = ""
    notes: str = ""
    instructions: str = ""
    calls: list[CallRow] = field(default_factory=list)
    diagram_image: str | None = None
    figure: str = ""
    figure_image: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.dance_id is None


def structure_line(dance: Dance) -> str:
    s = dance.structure
    if s is None or not s.parts:
        return ""
    parts = ", ".join(s.parts)
    if s.bars_per_part:
        return f"{s.bars_per_part} bars: {parts}"
    return f"Parts: {parts}"


def project(viewer) -> DanceView:
    """DanceView for the viewer's current dance (or the empty state)."""
    dance = viewer.get_current_dance()
    if dance is None:
        return DanceView(title=NO_MATCH)

    def text(markup: str | None) -> str:
        return markup_to_text(viewer.render_markup(markup or ""))

    catalog: Catalog = viewer.catalog
    formation = catalog.resolve_formation(dance)
    return DanceView(
        title=viewer.render_text(dance.title),
        dance_id=dance.id,
        formation=catalog.formation_label(dance),
        formation_description=text(formation.description) if formation else "",
        structure=structure_line(dance),
        speed=dance.speed or "",
        music_type=dance.music_type or "",
        difficulty=str(dance.difficulty) if dance.difficulty else "",
        notes=viewer.render_text(dance.notes),
        instructions=text(dance.instructions_html),
        calls=[
            CallRow(part=c.part, bars=c.bars or "", call=text(c.call))
            for c in dance.calls
        ],
        diagram_image=formation.diagram_image if formation else None,
        figure=text(dance.figure_html),
        figure_image=dance.figure_image,
    )


# ---------------------------------------------------------------------------
# Rich renderables
# ---------------------------------------------------------------------------


def calls_table(view: DanceView) -> Table | Text:
    if not view.calls:
        return Text(NO_CALLS, style="dim")
    table = Table(expand=True, show_lines=False)
    table.add_column("Part", style="bold cyan", no_wrap=True)
    table.add_column("Bars", style="magenta", no_wrap=True)
    table.add_column("Call", ratio=1)
    for row in view.calls:
        table.add_row(Text(row.part), Text(row.bars), Text(row.call))
    return table


def _meta_line(view: DanceView) -> Text:
    line = Text()
    for label, value in (
        ("Formation", view.formation),
        ("Structure", view.structure),
        ("Speed", view.speed),
        ("Music", view.music_type),
        ("Difficulty", view.difficulty),
    ):
        if not value:
            continue
        if line:
            line.append("  |  ", style="dim")
        line.append(f"{label}: ", style="bold")
        line.append(value)
    return line


def dance_panel(view: DanceView, calling_mode: bool = False) -> Panel:
    """The dance card. Calling mode keeps only structure and calls."""
    if view.is_empty:
        return Panel(Text(view.title, style="yellow"), title="ceilidh")

    parts = []
    if calling_mode:
        if view.structure:
            parts.append(Text(view.structure, style="bold"))
        parts.append(calls_table(view))
        return Panel(Group(*parts), title=Text(view.title), border_style="green")

    parts.append(_meta_line(view))
    if view.formation_description:
        parts.append(Text(view.formation_description, style="italic"))
    if view.notes:
        parts.append(Text(view.notes))
    if view.instructions:
        parts.append(Text(view.instructions))
    parts.append(calls_table(view))
    parts.append(
        Text(
            f"Diagram: {view.diagram_image}" if view.diagram_image else NO_DIAGRAM,
            style="dim",
        )
    )
    if view.figure:
        parts.append(Text(view.figure, style="dim"))
    else:
        parts.append(
            Text(
                f"Illustration: {view.figure_image}" if view.figure_image else NO_FIGURE,
                style="dim",
            )
        )
    return Panel(Group(*parts), title=Text(view.title), border_style="blue")


def dance_table(dances: list[Dance], catalog: Catalog, current_id: str | None = None) -> Table:
    table = Table(title=f"{len(dances)} dances")
    table.add_column("", width=1)
    table.add_column("Id", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Formation")
    table.add_column("Bars", justify="right")
    table.add_column("Music")
    table.add_column("Diff", justify="right")
    for d in dances:
        table.add_row(
            ">" if d.id == current_id else "",
            Text(d.id),
            Text(d.title),
            Text(catalog.formation_label(d)),
            str(d.bars or ""),
            Text(d.music_type or ""),
            str(d.difficulty or ""),
        )
    return table


def setlist_table(setlist: Setlist, catalog: Catalog | None = None) -> Table:
    """Setlist items, showing the snapshot taken when each was added."""
    table = Table(title=Text(setlist.label))
    table.add_column("#", justify="right", style="dim")
    table.add_column("Order", justify="right")
    table.add_column("Dance", style="bold")
    table.add_column("Form")
    table.add_column("Bars", justify="right")
    table.add_column("Music")
    table.add_column("Speed")
    for i, item in enumerate(setlist.items):
        name = item.name
        if not name and catalog is not None:
            dance = catalog.dance(item.dance_id)
            name = dance.title if dance else None
        table.add_row(
            str(i + 1),
            str(item.rough_order),
            Text(name or item.dance_id),
            Text(item.form or ""),
            str(item.bars or ""),
            Text(item.music_type or ""),
            Text(item.speed or ""),
        )
    return table
