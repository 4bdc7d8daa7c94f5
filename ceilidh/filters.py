"""Filter engine — the ordered, visible subset of the catalog.

A setlist narrows the base set and fixes its order; without one the whole
catalog is the base and the result is sorted by title. Every active
criterion must hold; a dance missing the filtered field never matches.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Callable

from .models import Dance, Formation, Setlist


@dataclass(frozen=True)
class FilterCriteria:
    formation_id: str | None = None
    bars: int | None = None
    music_type: str | None = None
    difficulty: int | None = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) in (None, "") for f in fields(self))

    def cleared(self) -> FilterCriteria:
        return FilterCriteria()

    def with_value(self, name: str, value) -> FilterCriteria:
        return replace(self, **{name: value})

    @classmethod
    def from_strings(
        cls,
        formation_id: str | None = None,
        bars: str | int | None = None,
        music_type: str | None = None,
        difficulty: str | int | None = None,
    ) -> FilterCriteria:
        """Parse control values; blanks and non-integers mean "any"."""
        return cls(
            formation_id=_blank_to_none(formation_id),
            bars=_to_int(bars),
            music_type=_blank_to_none(music_type),
            difficulty=_to_int(difficulty),
        )


def _blank_to_none(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _to_int(value) -> int | None:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Predicates, one per criterion, applied in this order
# ---------------------------------------------------------------------------


def _formation_matches(dance: Dance, wanted: str) -> bool:
    return bool(dance.formation_id) and dance.formation_id == wanted


def _bars_match(dance: Dance, wanted: int) -> bool:
    return dance.bars is not None and dance.bars == wanted


def _music_type_matches(dance: Dance, wanted: str) -> bool:
    return bool(dance.music_type) and dance.music_type.strip() == wanted.strip()


def _difficulty_matches(dance: Dance, wanted: int) -> bool:
    return dance.difficulty is not None and dance.difficulty == wanted


PREDICATES: list[tuple[str, Callable[[Dance, object], bool]]] = [
    ("formation_id", _formation_matches),
    ("bars", _bars_match),
    ("music_type", _music_type_matches),
    ("difficulty", _difficulty_matches),
]


def matches(dance: Dance, criteria: FilterCriteria) -> bool:
    for name, predicate in PREDICATES:
        wanted = getattr(criteria, name)
        if wanted in (None, ""):
            continue
        if not predicate(dance, wanted):
            return False
    return True


def setlist_dances(setlist: Setlist | None, dance_by_id: dict[str, Dance]) -> list[Dance]:
    """Catalog dances referenced by the setlist, in item order.

    Ids missing from the catalog and repeated ids are skipped.
    """
    if setlist is None:
        return []
    seen = set()
    result = []
    for item in setlist.items:
        dance = dance_by_id.get(item.dance_id)
        if dance is None or dance.id in seen:
            continue
        seen.add(dance.id)
        result.append(dance)
    return result


def visible_dances(
    dances: list[Dance],
    criteria: FilterCriteria,
    setlist: Setlist | None = None,
    dance_by_id: dict[str, Dance] | None = None,
) -> list[Dance]:
    """Compute the visible set for the current criteria and setlist."""
    if dance_by_id is None:
        dance_by_id = {d.id: d for d in dances}
    from_setlist = setlist is not None and bool(setlist.items)
    base = setlist_dances(setlist, dance_by_id) if from_setlist else list(dances)

    result = [d for d in base if matches(d, criteria)]
    if not from_setlist:
        result.sort(key=lambda d: d.title.casefold())
    return result


# ---------------------------------------------------------------------------
# Filter control options
# ---------------------------------------------------------------------------


@dataclass
class FilterOptions:
    formations: list[tuple[str, str]]  # (id, label)
    bars: list[int]
    music_types: list[str]
    difficulties: list[int]


def filter_options(dances: list[Dance], formations: list[Formation]) -> FilterOptions:
    """Distinct values offered by the filter controls."""
    seen = set()
    formation_choices = []
    for f in formations:
        if f.id in seen:
            continue
        seen.add(f.id)
        formation_choices.append((f.id, f.name or f.id))

    return FilterOptions(
        formations=formation_choices,
        bars=sorted({d.bars for d in dances if d.bars}),
        music_types=sorted({d.music_type.strip() for d in dances if d.music_type and d.music_type.strip()}),
        difficulties=sorted({d.difficulty for d in dances if d.difficulty}),
    )
