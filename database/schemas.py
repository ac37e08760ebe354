"""
Pydantic schemas for request/response validation
Separate from SQLAlchemy models for clean API contracts
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime

from classification.schemas import ClassificationMode
from database.models import ExamStatus
from taxonomy.schemas import LevelNode


# ==========================================
# EXPANDED TYPE SCHEMAS
# ==========================================

class TypeResponse(BaseModel):
    """One taxonomy leaf as stored"""
    id: int
    type_code: str
    type_name: str
    description: Optional[str] = None
    solution_method: Optional[str] = None
    subject: str = ""
    area: str = ""
    standard_code: str
    standard_content: Optional[str] = None
    cognitive: str
    difficulty_min: int
    difficulty_max: int
    keywords: List[str] = []
    school_level: str = ""
    level_code: str
    domain_code: str
    problem_count: int = 0
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)


class TypeListResponse(BaseModel):
    """Paged list, ordered by type_code"""
    items: List[TypeResponse]
    total: int = Field(..., description="Count of all rows matching the filters, ignoring paging")
    limit: int
    offset: int


class ClassificationSummary(BaseModel):
    """Classification row as shown on a type's detail page"""
    id: int
    problem_id: int
    difficulty: int
    cognitive_domain: str
    confidence: float
    is_verified: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TypeDetailResponse(BaseModel):
    type: TypeResponse
    classifications: List[ClassificationSummary] = []
    related_types: List[TypeResponse] = Field(default=[], description="Other active types under the same standard")


class TreeResponse(BaseModel):
    tree: List[LevelNode]
    total_types: int
    total_standards: int


class StatsResponse(BaseModel):
    total: int
    total_standards: int
    by_level: Dict[str, int]
    by_domain: Dict[str, int]
    by_cognitive: Dict[str, int]
    by_school: Dict[str, int]


# ==========================================
# CLASSIFICATION SCHEMAS
# ==========================================

class ClassifyRequest(BaseModel):
    """Schema for classifying one stored problem"""
    mode: ClassificationMode = Field(default=ClassificationMode.LIGHT, description="light | full (adds rubric scoring)")
    level_code: Optional[str] = Field(None, max_length=10, description="Restrict candidate types to one level, e.g. HS0")
    advanced: bool = Field(default=False, description="Use the advanced model")


class ClassificationResponse(BaseModel):
    id: int
    problem_id: int
    type_code: str
    type_name: Optional[str] = None
    difficulty: int
    difficulty_scoring: Optional[dict] = None
    cognitive_domain: str
    confidence: float
    is_verified: bool
    mode: str
    model: Optional[str] = None
    issues: List[dict] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class VerifyRequest(BaseModel):
    is_verified: bool = True


# ==========================================
# EXAM SCHEMAS
# ==========================================

class ExamCriteria(BaseModel):
    subject: Optional[str] = Field(None, max_length=100)
    chapters: List[str] = Field(default=[], description="Empty = every chapter of the subject")
    difficulty_distribution: Dict[str, int] = Field(
        ..., min_length=1,
        description="Bucket label (최상/상/중/하/최하) → requested count",
    )


class ExamGenerateRequest(BaseModel):
    """Schema for assembling a new exam"""
    title: str = Field(..., min_length=1, max_length=255)
    criteria: ExamCriteria
    seed: Optional[int] = Field(None, description="Fix the shuffle for a reproducible selection")


class ShortfallResponse(BaseModel):
    bucket: str
    difficulty: int
    requested: int
    selected: int


class ExamGenerateResponse(BaseModel):
    exam_id: int
    problem_count: int
    requested_count: int
    seed: int = Field(..., description="Pass back as `seed` to repeat this selection")
    shortfalls: List[ShortfallResponse] = []
    warnings: List[str] = []


class ExamProblemResponse(BaseModel):
    problem_id: int
    order_index: int
    points: int

    model_config = ConfigDict(from_attributes=True)


class ExamResponse(BaseModel):
    id: int
    title: str
    created_by: Optional[str] = None
    subject: Optional[str] = None
    status: ExamStatus
    problem_count: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ExamDetailResponse(ExamResponse):
    """Exam with its ordered problem links"""
    problems: List[ExamProblemResponse] = []


class ExamListResponse(BaseModel):
    items: List[ExamResponse]
    total: int


class ExamStatusUpdate(BaseModel):
    status: ExamStatus
