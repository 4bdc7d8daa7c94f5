"""Catalog index — id lookups and formation resolution.

Formation resolution is an explicit list of strategies tried in order, so
the precedence between an exact ``formationId`` and fuzzy name matching on
the legacy free-text ``formationName`` can be tested one piece at a time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable

from .models import Dance, Formation, RoleSet, Setlist, parse_records

_DASHES = re.compile("[–—]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalised_formation_name(text: str | None) -> str:
    """Lowercase, fold dashes and punctuation runs to single spaces, trim."""
    value = _DASHES.sub("-", (text or "").lower())
    return _NON_ALNUM.sub(" ", value).strip()


def build_index(
    dances: list[Dance], formations: list[Formation]
) -> CatalogIndex:
    """Build id lookups. Duplicate ids: the last record wins."""
    return CatalogIndex(
        dance_by_id={d.id: d for d in dances},
        formation_by_id={f.id: f for f in formations},
        formations=list(formations),
    )


# ---------------------------------------------------------------------------
# Formation resolution strategies
# ---------------------------------------------------------------------------


def _by_id(index: CatalogIndex, dance: Dance) -> Formation | None:
    if not dance.formation_id:
        return None
    return index.formation_by_id.get(dance.formation_id)


def _by_exact_name(index: CatalogIndex, dance: Dance) -> Formation | None:
    wanted = normalised_formation_name(dance.formation_name)
    if not wanted:
        return None
    for f in index.formations:
        if normalised_formation_name(f.name) == wanted:
            return f
    return None


def _by_substring(index: CatalogIndex, dance: Dance) -> Formation | None:
    wanted = normalised_formation_name(dance.formation_name)
    if not wanted:
        return None
    for f in index.formations:
        name = normalised_formation_name(f.name)
        if name and (wanted in name or name in wanted):
            return f
    return None


FORMATION_STRATEGIES: list[Callable[[CatalogIndex, Dance], Formation | None]] = [
    _by_id,
    _by_exact_name,
    _by_substring,
]


@dataclass
class CatalogIndex:
    dance_by_id: dict[str, Dance] = field(default_factory=dict)
    formation_by_id: dict[str, Formation] = field(default_factory=dict)
    formations: list[Formation] = field(default_factory=list)

    def dance(self, dance_id: str | None) -> Dance | None:
        if not dance_id:
            return None
        return self.dance_by_id.get(dance_id)

    def resolve_formation(self, dance: Dance) -> Formation | None:
        for strategy in FORMATION_STRATEGIES:
            found = strategy(self, dance)
            if found is not None:
                return found
        return None

    def formation_label(self, dance: Dance) -> str:
        formation = self.resolve_formation(dance)
        if formation is not None:
            return formation.name or formation.id
        return dance.formation_name or ""


# ---------------------------------------------------------------------------
# Catalog: the four loaded files plus their indices
# ---------------------------------------------------------------------------


@dataclass
class Catalog:
    dances: list[Dance] = field(default_factory=list)
    formations: list[Formation] = field(default_factory=list)
    role_sets: list[RoleSet] = field(default_factory=list)
    setlists: list[Setlist] = field(default_factory=list)
    index: CatalogIndex = field(init=False)

    def __post_init__(self):
        self.index = build_index(self.dances, self.formations)

    @classmethod
    def from_raw(cls, raw: dict) -> Catalog:
        """Build from the raw JSON arrays keyed by resource name."""
        return cls(
            dances=parse_records(Dance, raw.get("dances")),
            formations=parse_records(Formation, raw.get("formations")),
            role_sets=parse_records(RoleSet, raw.get("roles")),
            setlists=parse_records(Setlist, raw.get("setlists")),
        )

    @property
    def role_set_by_id(self) -> dict[str, RoleSet]:
        return {r.id: r for r in self.role_sets}

    @property
    def setlist_by_id(self) -> dict[str, Setlist]:
        return {s.id: s for s in self.setlists}

    def dance(self, dance_id: str | None) -> Dance | None:
        return self.index.dance(dance_id)

    def resolve_formation(self, dance: Dance) -> Formation | None:
        return self.index.resolve_formation(dance)

    def formation_label(self, dance: Dance) -> str:
        return self.index.formation_label(dance)
