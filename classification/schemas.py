"""
Pydantic schemas for the classification pipeline.
"""

import enum
from typing import List, Optional

from pydantic import BaseModel, Field

# classifications.type_code column width; longer model codes are cut to fit
CLASSIFIED_CODE_MAX_LENGTH = 64


class ClassificationMode(str, enum.Enum):
    """light = type table only; full = type table + six-axis difficulty rubric"""
    LIGHT = "light"
    FULL = "full"


class IssueCode(str, enum.Enum):
    UNKNOWN_TYPE_CODE = "UNKNOWN_TYPE_CODE"
    MISSING_FIELD = "MISSING_FIELD"
    DIFFICULTY_CLAMPED = "DIFFICULTY_CLAMPED"
    COGNITIVE_REPAIRED = "COGNITIVE_REPAIRED"
    CONFIDENCE_CLAMPED = "CONFIDENCE_CLAMPED"
    SCORING_RECOMPUTED = "SCORING_RECOMPUTED"
    SCORING_INVALID = "SCORING_INVALID"
    SCORING_MISSING = "SCORING_MISSING"
    TYPE_CODE_TRUNCATED = "TYPE_CODE_TRUNCATED"


class ValidationIssue(BaseModel):
    code: IssueCode
    severity: str = Field("warning", description="warning | error")
    message: str

    model_config = {"use_enum_values": True}


class ValidatedClassification(BaseModel):
    """Model output after validation/repair, ready to persist."""
    type_code: str = ""
    type_name: Optional[str] = None
    standard_code: Optional[str] = None
    known_type: bool = False
    difficulty: int = Field(..., ge=1, le=5)
    difficulty_scoring: Optional[dict] = None
    cognitive_domain: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    is_verified: bool = False
    mode: ClassificationMode = ClassificationMode.LIGHT
    issues: List[ValidationIssue] = Field(default_factory=list)

    # written back onto the problem, not the classification row
    solution_latex: Optional[str] = None
    final_answer: Optional[str] = None
    corrected_content: Optional[str] = None

    model_config = {"use_enum_values": True}

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    def has_issue(self, code: IssueCode) -> bool:
        return any(i.code == code for i in self.issues)
