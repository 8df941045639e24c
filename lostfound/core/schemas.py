"""Core data models for the lost & found matcher."""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ItemStatus(str, Enum):
    LOST = "lost"
    FOUND = "found"

    @property
    def opposite(self) -> "ItemStatus":
        return ItemStatus.FOUND if self is ItemStatus.LOST else ItemStatus.LOST


class Item(BaseModel):
    """A lost or found report.

    Frozen: matching only ever reads items. Optional text fields are
    coerced from None to "" so scoring never has to null-check. Timestamps
    are stored as aware UTC datetimes.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    status: ItemStatus
    title: str = ""
    description: str = ""
    category: str = ""
    location: str = ""
    reported_by: str
    created_at: datetime = Field(default_factory=utc_now)
    date_lost_found: datetime | None = None
    is_resolved: bool = False

    @field_validator("title", "description", "category", "location", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("created_at", "date_lost_found")
    @classmethod
    def normalize_timestamp(cls, v: datetime | None) -> datetime | None:
        return None if v is None else to_utc(v)

    @property
    def text(self) -> str:
        """Lowercased title and description, the text scanned for tokens."""
        return f"{self.title} {self.description}".lower()

    @property
    def occurred_at(self) -> datetime:
        return self.date_lost_found or self.created_at


class MatchResult(BaseModel):
    """Wrapper that pairs a frozen Item with its match score."""

    model_config = ConfigDict(frozen=True)

    item: Item
    score: int = Field(default=0, ge=0, le=100)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready ``{"item": ..., "matchScore": ...}`` shape."""
        return {"item": self.item.model_dump(mode="json"), "matchScore": self.score}


class SearchHit(BaseModel):
    """An item returned by free-text search."""

    model_config = ConfigDict(frozen=True)

    item: Item
    score: int = Field(default=0, ge=0)


class ItemBatch(BaseModel):
    """A file of item reports to import."""

    items: list[Item] = Field(default_factory=list)

    @classmethod
    def from_file(cls, path: str | Path) -> "ItemBatch":
        """Load items from a YAML (or JSON) file.

        Accepts either a top-level list or a mapping with an ``items`` key.
        """
        path = Path(path)
        if not path.exists():
            msg = f"Items file not found: {path}"
            raise FileNotFoundError(msg)
        raw = yaml.safe_load(path.read_text()) or []
        if isinstance(raw, list):
            raw = {"items": raw}
        return cls.model_validate(raw)
