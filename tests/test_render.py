"""Tests for the render projection and the rich renderables."""

from rich.console import Console

from ceilidh.models import Dance, Setlist
from ceilidh.render import (
    NO_CALLS,
    NO_DIAGRAM,
    NO_FIGURE,
    NO_MATCH,
    CallRow,
    dance_panel,
    dance_table,
    project,
    setlist_table,
    structure_line,
)
from ceilidh.viewer import Viewer


def _text(renderable, width=100):
    console = Console(record=True, width=width, color_system=None)
    console.print(renderable)
    return console.export_text()


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def test_structure_line():
    assert structure_line(Dance.model_validate({"id": "x", "structure": {"barsPerPart": 32, "parts": ["A", "B"]}})) == "32 bars: A, B"
    assert structure_line(Dance.model_validate({"id": "x", "structure": {"parts": ["A"]}})) == "Parts: A"
    assert structure_line(Dance(id="x")) == ""


def test_project_current_dance(viewer):
    view = project(viewer)
    assert view.dance_id == "a"
    assert view.title == "Apple Tree"
    assert view.formation == "Longways set"
    assert view.formation_description == "Lines of Person 1s and Person 2s"
    assert view.structure == "32 bars: A, B"
    assert view.difficulty == "1"
    assert view.notes == "Person 1 crosses to Person 2s"
    assert view.calls == [
        CallRow(part="A1", bars="1-8", call="Person 1 turns Person 2"),
        CallRow(part="B", bars="16", call="Swing"),
    ]
    assert view.diagram_image is None


def test_project_uses_role_set(viewer):
    viewer.set_role_set("larks-robins")
    view = project(viewer)
    assert view.notes == "Lark crosses to Robins"
    assert view.calls[0].call == "Lark turns Robin"
    assert view.formation_description == "Lines of Larks and Robins"


def test_project_diagram(viewer):
    viewer.select_dance("b")
    assert project(viewer).diagram_image == "img/sicilian.svg"


def test_project_empty():
    view = project(Viewer())
    assert view.is_empty
    assert view.title == NO_MATCH


# ---------------------------------------------------------------------------
# Rich
# ---------------------------------------------------------------------------


def test_dance_panel_full_card(viewer):
    out = _text(dance_panel(project(viewer)))
    assert "Apple Tree" in out
    assert "Formation: Longways set" in out
    assert "Person 1 turns Person 2" in out
    assert NO_DIAGRAM in out
    assert NO_FIGURE in out


def test_dance_panel_calling_mode(viewer):
    out = _text(dance_panel(project(viewer), calling_mode=True))
    assert "32 bars: A, B" in out
    assert "Person 1 turns Person 2" in out
    assert "Formation:" not in out
    assert NO_DIAGRAM not in out


def test_dance_panel_no_calls(viewer):
    viewer.select_dance("c")
    out = _text(dance_panel(project(viewer)))
    assert NO_CALLS in out
    assert "Parts: A" in out


def test_dance_panel_empty():
    assert NO_MATCH in _text(dance_panel(project(Viewer())))


def test_brackets_are_not_markup():
    view = project(Viewer())
    view.title = "[bold]literal[/bold]"
    assert "[bold]literal[/bold]" in _text(dance_panel(view))


def test_dance_table(catalog):
    out = _text(dance_table(catalog.dances, catalog, current_id="a"))
    assert "3 dances" in out
    assert "Bonny Breast Knot" in out
    assert "Big circle" in out


def test_setlist_table(catalog):
    setlist = Setlist.model_validate(
        {"id": "s", "name": "Evening", "items": [{"roughOrder": 5, "danceId": "a"}, {"danceId": "ghost"}]}
    )
    out = _text(setlist_table(setlist, catalog))
    assert "Evening" in out
    assert "Apple Tree" in out
    assert "ghost" in out
