"""
Taxonomy value types shared by the tree builder, prompt builder and validator.

TypeRecord is the immutable leaf entry; TaxonomySnapshot is the active-type list
handed explicitly to every consumer so a request reads the taxonomy once.
"""

import enum
import json
from collections import Counter
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from taxonomy.labels import is_valid_type_code


class CognitiveDomain(str, enum.Enum):
    """Reasoning skill a problem primarily exercises"""
    CALCULATION = "CALCULATION"
    UNDERSTANDING = "UNDERSTANDING"
    INFERENCE = "INFERENCE"
    PROBLEM_SOLVING = "PROBLEM_SOLVING"


class DuplicateTypeCodeError(ValueError):
    """Raised when the same type_code appears more than once in one input set."""

    def __init__(self, codes: Iterable[str]):
        self.codes = sorted(set(codes))
        super().__init__(f"Duplicate type_code(s): {', '.join(self.codes)}")


def check_unique_codes(codes: Iterable[str]) -> None:
    """Single pass over the codes; raises DuplicateTypeCodeError naming every repeat."""
    duplicates = [code for code, count in Counter(codes).items() if count > 1]
    if duplicates:
        raise DuplicateTypeCodeError(duplicates)


# expanded_math_types.type_code column width
TYPE_CODE_MAX_LENGTH = 32


class TypeRecord(BaseModel):
    """One taxonomy leaf (a fine-grained problem type)."""
    type_code: str = Field(..., min_length=1, max_length=TYPE_CODE_MAX_LENGTH)
    type_name: str = Field(..., min_length=1)
    description: Optional[str] = None
    solution_method: Optional[str] = None
    subject: str = ""
    area: str = ""
    standard_code: str = Field(..., min_length=1)
    standard_content: Optional[str] = None
    cognitive: CognitiveDomain
    difficulty_min: int = Field(..., ge=1, le=5)
    difficulty_max: int = Field(..., ge=1, le=5)
    keywords: Tuple[str, ...] = ()
    school_level: str = ""
    level_code: str = Field(..., min_length=1)
    domain_code: str = Field(..., min_length=1)
    is_active: bool = True

    model_config = ConfigDict(frozen=True, from_attributes=True, use_enum_values=True)

    @field_validator("type_code")
    @classmethod
    def _check_code(cls, value: str) -> str:
        if not is_valid_type_code(value):
            raise ValueError(f"type_code '{value}' does not match PREFIX-LEVEL-DOMAIN-STD-SEQ")
        return value

    @field_validator("keywords", mode="before")
    @classmethod
    def _parse_keywords(cls, value):
        # rows imported from older dumps carry keywords as a JSON-encoded string
        if value is None:
            return ()
        if isinstance(value, str):
            value = json.loads(value) if value.strip() else []
        return tuple(value)

    @model_validator(mode="after")
    def _check_difficulty_band(self) -> "TypeRecord":
        if self.difficulty_min > self.difficulty_max:
            raise ValueError(
                f"difficulty_min ({self.difficulty_min}) > difficulty_max ({self.difficulty_max})"
            )
        return self


class TaxonomySnapshot:
    """
    Immutable view over the active TypeRecords at one point in time.

    Inactive records are dropped on construction; duplicate codes are rejected.
    """

    def __init__(self, records: Iterable[TypeRecord]):
        by_code: Dict[str, TypeRecord] = {}
        duplicates: List[str] = []
        for record in records:
            if record.type_code in by_code:
                duplicates.append(record.type_code)
                continue
            by_code[record.type_code] = record
        if duplicates:
            raise DuplicateTypeCodeError(duplicates)

        self._records: Tuple[TypeRecord, ...] = tuple(
            sorted((r for r in by_code.values() if r.is_active), key=lambda r: r.type_code)
        )
        self._by_code = {r.type_code: r for r in self._records}

    @property
    def records(self) -> Tuple[TypeRecord, ...]:
        return self._records

    def get(self, type_code: Optional[str]) -> Optional[TypeRecord]:
        if not type_code:
            return None
        return self._by_code.get(type_code)

    def for_level(self, level_code: Optional[str]) -> "TaxonomySnapshot":
        if not level_code:
            return self
        return TaxonomySnapshot(r for r in self._records if r.level_code == level_code)

    def __contains__(self, type_code: object) -> bool:
        return type_code in self._by_code

    def __iter__(self) -> Iterator[TypeRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)


# ─── Tree nodes (Level → Domain → Standard → Type) ───────────────────────────

class StandardNode(BaseModel):
    standard_code: str
    standard_content: str = ""
    type_count: int = 0
    types: List[TypeRecord] = Field(default_factory=list)


class DomainNode(BaseModel):
    domain_code: str
    label: str
    standard_count: int = 0
    type_count: int = 0
    standards: List[StandardNode] = Field(default_factory=list)


class LevelNode(BaseModel):
    level_code: str
    label: str
    school_level: str = ""
    domain_count: int = 0
    type_count: int = 0
    domains: List[DomainNode] = Field(default_factory=list)
