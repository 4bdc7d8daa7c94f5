"""Pydantic models for the dance data files.

Field names follow the JSON files (camelCase) through aliases; Python code
uses the snake_case attribute names. Both setlist schema generations are
accepted: a plain ``danceIds`` list or denormalized ``items``.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)


class Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Structure(Record):
    bars_per_part: int | None = Field(default=None, alias="barsPerPart")
    parts: list[str] = []

    @field_validator("parts", mode="before")
    @classmethod
    def _parts_as_strings(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [str(p) for p in v]
        return v


class Call(Record):
    part: str = ""
    bars: str | None = None
    call: str = ""  # markup

    @field_validator("bars", mode="before")
    @classmethod
    def _bars_as_string(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class Dance(Record):
    id: str = Field(min_length=1)
    title: str = ""
    formation_id: str | None = Field(default=None, alias="formationId")
    formation_name: str | None = Field(default=None, alias="formationName")
    structure: Structure | None = None
    speed: str | None = None
    music_type: str | None = Field(default=None, alias="musicType")
    difficulty: int | None = None
    notes: str = ""
    calls: list[Call] = []
    instructions_html: str | None = Field(default=None, alias="instructionsHtml")
    info_html: str | None = Field(default=None, alias="infoHtml")
    figure_html: str | None = Field(default=None, alias="figureHtml")
    figure_image: str | None = Field(default=None, alias="figureImage")

    @field_validator("difficulty", mode="before")
    @classmethod
    def _difficulty_in_range(cls, v: Any) -> int | None:
        # Out-of-range or unparseable difficulty means "no difficulty".
        try:
            level = int(str(v).strip())
        except (TypeError, ValueError):
            return None
        return level if 1 <= level <= 3 else None

    @field_validator("speed", "music_type", mode="before")
    @classmethod
    def _scalar_as_string(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @model_validator(mode="after")
    def _title_defaults_to_id(self) -> Dance:
        if not self.title:
            self.title = self.id
        return self

    @property
    def bars(self) -> int | None:
        return self.structure.bars_per_part if self.structure else None


class Formation(Record):
    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    diagram_image: str | None = Field(default=None, alias="diagramImage")


class RoleMapping(Record):
    p1: str | None = Field(default=None, alias="P1")
    p2: str | None = Field(default=None, alias="P2")
    p1s: str | None = Field(default=None, alias="P1S")
    p2s: str | None = Field(default=None, alias="P2S")


class RoleSet(Record):
    id: str = Field(min_length=1)
    label: str = ""
    mapping: RoleMapping = Field(default_factory=RoleMapping)

    @model_validator(mode="before")
    @classmethod
    def _legacy_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("label") and data.get("name"):
            data = {**data, "label": data["name"]}
        return data

    @model_validator(mode="after")
    def _label_defaults_to_id(self) -> RoleSet:
        if not self.label:
            self.label = self.id
        return self


class SetlistItem(Record):
    rough_order: int = Field(default=0, alias="roughOrder")
    dance_id: str = Field(alias="danceId", min_length=1)
    # Snapshot taken when the item was added; never refreshed from the catalog.
    name: str | None = None
    speed: str | None = None
    form: str | None = None
    bars: int | None = None
    music_type: str | None = Field(default=None, alias="musicType")


class Setlist(Record):
    id: str = Field(min_length=1)
    name: str = ""
    items: list[SetlistItem] = []

    @model_validator(mode="before")
    @classmethod
    def _dance_ids_to_items(cls, data: Any) -> Any:
        if isinstance(data, dict) and "items" not in data and isinstance(data.get("danceIds"), list):
            items = [
                {"roughOrder": i, "danceId": dance_id}
                for i, dance_id in enumerate(data["danceIds"], start=1)
                if isinstance(dance_id, str) and dance_id
            ]
            data = {**data, "items": items}
        return data

    @property
    def dance_ids(self) -> list[str]:
        return [item.dance_id for item in self.items]

    @property
    def label(self) -> str:
        return self.name or self.id


R = TypeVar("R", bound=Record)


def parse_records(model: type[R], raw: Any) -> list[R]:
    """Validate a JSON array into records, skipping malformed entries."""
    if not isinstance(raw, list):
        return []
    records = []
    for i, entry in enumerate(raw):
        try:
            records.append(model.model_validate(entry))
        except ValidationError as e:
            logger.debug("Skipping malformed %s #%d: %s", model.__name__, i, e)
    return records
