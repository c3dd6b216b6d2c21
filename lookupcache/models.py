"""Pydantic models for lookup tables and their entries.

Lookup tables are declared explicitly (one ``LookupTable`` per backing table)
and passed by reference to whatever needs to resolve names.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_SIBILANT_ENDINGS = ("s", "x", "z", "ch", "sh")
_VOWELS = "aeiou"


def pluralize(word: str) -> str:
    """Naive English plural used for attribute -> table naming (car_type -> car_types)."""
    if word.endswith(_SIBILANT_ENDINGS):
        return word + "es"
    if word.endswith("y") and len(word) > 1 and word[-2] not in _VOWELS:
        return word[:-1] + "ies"
    return word + "s"


class LookupEntry(BaseModel):
    """One persisted row of a lookup table."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class LookupTable(BaseModel):
    """Declaration of a lookup table and its columns."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "name": "car_types",
                "id_column": "id",
                "name_column": "name",
                "name_max_length": 255,
            }
        },
    )

    name: str
    id_column: str = "id"
    name_column: str = "name"
    name_max_length: int = Field(default=255, gt=0)

    @field_validator("name", "id_column", "name_column")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        if not _IDENTIFIER.match(v):
            raise ValueError(f"{v!r} is not a valid SQL identifier")
        return v

    @classmethod
    def for_attribute(cls, attribute: str, **kwargs) -> LookupTable:
        """Declare the table backing ``attribute`` (``car_type`` -> ``car_types``)."""
        return cls(name=pluralize(attribute), **kwargs)


class CacheStats(BaseModel):
    """Counters for one InternCache."""

    table: str
    size: int = 0
    hits: int = 0
    misses: int = 0
    creations: int = 0
    races_recovered: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0
