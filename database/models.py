"""
SQLAlchemy models for the math taxonomy and exam layer
ExpandedMathType (taxonomy leaf) · Problem · Classification · Exam → ExamProblem

expanded_math_types is the SOURCE OF TRUTH for the curriculum taxonomy.
Rows are never hard-deleted; re-import upserts on type_code, retirement flips is_active.
"""

from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey, DateTime, Text, Float, JSON,
    UniqueConstraint, Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from database.database import Base
from classification.schemas import CLASSIFIED_CODE_MAX_LENGTH
from taxonomy.schemas import TYPE_CODE_MAX_LENGTH


class ExamStatus(str, enum.Enum):
    """Exam lifecycle"""
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


# ==========================================
# TAXONOMY: EXPANDED MATH TYPES
# ==========================================

class ExpandedMathType(Base):
    """
    One fine-grained problem type (taxonomy leaf), e.g. MA-HS0-POL-01-003.
    Path in the tree: level_code → domain_code → standard_code → type_code.
    difficulty_min/max: band on the 1 (최하) .. 5 (최상) scale, min <= max.
    """
    __tablename__ = "expanded_math_types"

    id = Column(Integer, primary_key=True, index=True)
    type_code = Column(String(TYPE_CODE_MAX_LENGTH), unique=True, nullable=False, index=True)
    type_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    solution_method = Column(Text, nullable=True)

    subject = Column(String(100), nullable=False, default="")
    area = Column(String(100), nullable=False, default="")
    standard_code = Column(String(50), nullable=False, index=True)
    standard_content = Column(Text, nullable=False, default="")

    cognitive = Column(String(20), nullable=False, index=True)
    difficulty_min = Column(Integer, nullable=False, default=1)
    difficulty_max = Column(Integer, nullable=False, default=5)
    keywords = Column(JSON, default=list, nullable=False)  # ordered list of strings

    school_level = Column(String(20), nullable=False, default="", index=True)
    level_code = Column(String(10), nullable=False, index=True)
    domain_code = Column(String(10), nullable=False, index=True)

    problem_count = Column(Integer, default=0, nullable=False)  # informational only
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<ExpandedMathType(type_code='{self.type_code}', active={self.is_active})>"


# ==========================================
# PROBLEM POOL
# ==========================================

class Problem(Base):
    """
    A stored math problem. Ingestion happens elsewhere; this layer reads the pool
    and writes back what classification produces: difficulty, worked solution,
    final answer and, when the model fixed a transcription error, the content.
    """
    __tablename__ = "problems"

    id = Column(Integer, primary_key=True, index=True)
    content_latex = Column(Text, nullable=False)
    solution_latex = Column(Text, nullable=True)
    answer = Column(JSON, nullable=True)  # {"finalAnswer": ...}
    subject = Column(String(100), nullable=True, index=True)
    chapter = Column(String(100), nullable=True, index=True)
    difficulty = Column(Integer, nullable=True, index=True)  # 1..5, null until classified
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    classification = relationship(
        "Classification", back_populates="problem", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Problem(id={self.id}, subject='{self.subject}', difficulty={self.difficulty})>"


class Classification(Base):
    """
    AI classification of one problem. One row per problem; re-classification
    replaces the row. type_code is free-form (not a FK) so unknown codes are kept
    with confidence 0 instead of being dropped.
    """
    __tablename__ = "classifications"

    id = Column(Integer, primary_key=True, index=True)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    type_code = Column(String(CLASSIFIED_CODE_MAX_LENGTH), nullable=False, default="", index=True)
    type_name = Column(String(255), nullable=True)
    difficulty = Column(Integer, nullable=False)
    difficulty_scoring = Column(JSON, nullable=True)   # six sub-scores + total + grade (full mode)
    cognitive_domain = Column(String(20), nullable=False)
    confidence = Column(Float, default=0.0, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    mode = Column(String(10), nullable=False, default="light")
    model = Column(String(100), nullable=True)
    issues = Column(JSON, default=list, nullable=False)  # [{code, severity, message}]
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    problem = relationship("Problem", back_populates="classification")

    def __repr__(self):
        return f"<Classification(problem_id={self.problem_id}, type_code='{self.type_code}', verified={self.is_verified})>"


# ==========================================
# EXAMS
# ==========================================

class Exam(Base):
    """
    An assembled exam. problem_count always equals len(problems); both are
    written in the same transaction.
    """
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    created_by = Column(String(100), nullable=True)
    subject = Column(String(100), nullable=True)
    status = Column(
        SQLEnum(ExamStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False, default=ExamStatus.DRAFT, index=True,
    )
    problem_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    problems = relationship(
        "ExamProblem", back_populates="exam", cascade="all, delete-orphan",
        order_by="ExamProblem.order_index",
    )

    def __repr__(self):
        return f"<Exam(id={self.id}, title='{self.title}', problems={self.problem_count})>"


class ExamProblem(Base):
    """Ordered link from an exam to a problem (order_index 1..N)."""
    __tablename__ = "exam_problems"
    __table_args__ = (UniqueConstraint("exam_id", "problem_id", name="uq_exam_problem"),)

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False, index=True)
    order_index = Column(Integer, nullable=False)
    points = Column(Integer, nullable=False)

    exam = relationship("Exam", back_populates="problems")
    problem = relationship("Problem")

    def __repr__(self):
        return f"<ExamProblem(exam_id={self.exam_id}, problem_id={self.problem_id}, order={self.order_index})>"
