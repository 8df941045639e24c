"""Configuration models and YAML loader for the lost & found matcher."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


class VocabularyRule(BaseModel):
    """A fixed word list whose shared terms each add ``weight`` to a score."""

    name: str
    terms: list[str]
    weight: int = Field(ge=0)

    @field_validator("terms")
    @classmethod
    def normalize_terms(cls, v: list[str]) -> list[str]:
        terms = [" ".join(t.lower().split()) for t in v]
        return [t for t in terms if t]


def _default_vocabularies() -> list[VocabularyRule]:
    return [
        VocabularyRule(
            name="color",
            terms=[
                "red", "blue", "green", "yellow", "black", "white", "brown",
                "pink", "purple", "orange", "gray", "grey", "silver", "gold",
            ],
            weight=20,
        ),
        VocabularyRule(
            name="brand",
            terms=[
                "apple", "samsung", "sony", "nike", "adidas",
                "hp", "dell", "lenovo", "canon", "nikon",
            ],
            weight=25,
        ),
        VocabularyRule(
            name="material",
            terms=[
                "leather", "plastic", "metal", "fabric", "wood",
                "glass", "rubber", "cotton", "silk", "denim",
            ],
            weight=10,
        ),
        VocabularyRule(
            name="size",
            terms=["small", "medium", "large", "big", "tiny", "huge", "mini"],
            weight=15,
        ),
        VocabularyRule(
            name="condition",
            terms=["new", "old", "damaged", "worn", "broken", "cracked", "scratched", "mint"],
            weight=5,
        ),
        VocabularyRule(
            name="feature",
            terms=[
                "cracked screen", "missing button", "sticker", "engraving",
                "keychain", "charm", "case", "cover",
            ],
            weight=15,
        ),
        VocabularyRule(
            name="value",
            terms=["expensive", "cheap", "valuable", "priceless", "costly", "budget", "premium"],
            weight=10,
        ),
    ]


class ScoringConfig(BaseModel):
    """Weights for the item-pair scorer.

    Every vocabulary and weight lives here so all callers share one table.
    """

    category_bonus: int = Field(default=40, ge=0)
    location_exact_bonus: int = Field(default=30, ge=0)
    location_partial_bonus: int = Field(default=20, ge=0)
    vocabularies: list[VocabularyRule] = Field(default_factory=_default_vocabularies)
    keyword_bonus: int = Field(default=3, ge=0)
    keyword_min_length: int = Field(default=3, ge=1)
    keyword_cap: int = Field(default=15, ge=0)
    recent_days: float = Field(default=7.0, ge=0.0)
    recent_bonus: int = Field(default=10, ge=0)
    window_days: float = Field(default=30.0, ge=0.0)
    window_bonus: int = Field(default=5, ge=0)
    max_score: int = Field(default=100, ge=1, le=100)

    @field_validator("vocabularies")
    @classmethod
    def unique_vocabulary_names(cls, v: list[VocabularyRule]) -> list[VocabularyRule]:
        names = [rule.name for rule in v]
        if len(names) != len(set(names)):
            msg = "vocabulary names must be unique"
            raise ValueError(msg)
        return v


class MatchingConfig(BaseModel):
    """Thresholds and result sizes for the matching entry points."""

    min_score: int = Field(default=15, ge=0)
    top_k: int = Field(default=6, ge=1)
    pool_window_days: int = Field(default=30, ge=1)
    similar_min_score: int = Field(default=15, ge=0)
    similar_top_k: int = Field(default=10, ge=1)
    search_limit: int = Field(default=20, ge=1)


class CacheConfig(BaseModel):
    """Per-user match cache."""

    enabled: bool = True
    ttl_seconds: int = Field(default=600, ge=1)


class SweepConfig(BaseModel):
    """Periodic background recomputation of every user's matches."""

    interval_seconds: int = Field(default=600, ge=1)


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/lostfound.db"


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    sweep: SweepConfig = Field(default_factory=SweepConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
