"""
CRUD operations for the taxonomy, classification and exam layer
All database operations go through these functions
"""

import logging
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from classification.schemas import ValidatedClassification
from database import models
from taxonomy.schemas import TaxonomySnapshot, TypeRecord, check_unique_codes

log = logging.getLogger("database.crud")

# columns re-import is allowed to overwrite; type_code is the identity and never changes
_UPSERT_FIELDS = (
    "type_name", "description", "solution_method", "subject", "area",
    "standard_code", "standard_content", "cognitive", "difficulty_min",
    "difficulty_max", "keywords", "school_level", "level_code", "domain_code",
)


# ==========================================
# EXPANDED TYPE CRUD
# ==========================================

def list_types(
    db: Session,
    level: Optional[str] = None,
    domain: Optional[str] = None,
    cognitive: Optional[str] = None,
    school: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[models.ExpandedMathType], int]:
    """Filtered page of active types ordered by type_code, plus the unpaged total"""
    T = models.ExpandedMathType
    query = db.query(T).filter(T.is_active.is_(True))
    if level:
        query = query.filter(T.level_code == level)
    if domain:
        query = query.filter(T.domain_code == domain)
    if cognitive:
        query = query.filter(T.cognitive == cognitive)
    if school:
        query = query.filter(T.school_level == school)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            T.type_code.ilike(pattern),
            T.type_name.ilike(pattern),
            T.standard_content.ilike(pattern),
            T.description.ilike(pattern),
        ))

    total = query.count()
    rows = query.order_by(T.type_code).offset(offset).limit(limit).all()
    return rows, total


def get_type(db: Session, type_code: str) -> Optional[models.ExpandedMathType]:
    """Get an active type by code"""
    T = models.ExpandedMathType
    return db.query(T).filter(T.type_code == type_code, T.is_active.is_(True)).first()


def get_related_types(db: Session, db_type: models.ExpandedMathType) -> List[models.ExpandedMathType]:
    """Other active types under the same achievement standard"""
    T = models.ExpandedMathType
    return db.query(T).filter(
        T.standard_code == db_type.standard_code,
        T.type_code != db_type.type_code,
        T.is_active.is_(True),
    ).order_by(T.type_code).all()


def get_classifications_for_type(db: Session, type_code: str, limit: int = 50) -> List[models.Classification]:
    """Most recent classifications pointing at a type"""
    C = models.Classification
    return db.query(C).filter(C.type_code == type_code).order_by(
        C.created_at.desc(), C.id.desc()
    ).limit(limit).all()


def get_tree_types(db: Session, school: Optional[str] = None, level: Optional[str] = None) -> List[models.ExpandedMathType]:
    """Active types in type_code order, input for the tree builder"""
    T = models.ExpandedMathType
    query = db.query(T).filter(T.is_active.is_(True))
    if school:
        query = query.filter(T.school_level == school)
    if level:
        query = query.filter(T.level_code == level)
    return query.order_by(T.type_code).all()


def get_type_stats(db: Session) -> dict:
    """Four independent group-by counts over active types"""
    T = models.ExpandedMathType
    active = T.is_active.is_(True)

    def _group(column) -> Dict[str, int]:
        rows = db.query(column, func.count(T.id)).filter(active).group_by(column).order_by(column).all()
        return {key: count for key, count in rows}

    return {
        "total": db.query(func.count(T.id)).filter(active).scalar() or 0,
        "total_standards": db.query(func.count(func.distinct(T.standard_code))).filter(active).scalar() or 0,
        "by_level": _group(T.level_code),
        "by_domain": _group(T.domain_code),
        "by_cognitive": _group(T.cognitive),
        "by_school": _group(T.school_level),
    }


def get_snapshot(db: Session) -> TaxonomySnapshot:
    """Read every active type once and freeze it for one request"""
    rows = get_tree_types(db)
    return TaxonomySnapshot(TypeRecord.model_validate(row) for row in rows)


def upsert_types(db: Session, records: Iterable[TypeRecord]) -> Tuple[int, int]:
    """
    Insert new types, update existing ones keyed on type_code, reactivate both.
    Codes missing from the batch are left untouched.

    Returns:
        (created, updated)

    Raises:
        DuplicateTypeCodeError: the batch repeats a type_code (nothing is written)
    """
    records = list(records)
    codes = [r.type_code for r in records]
    check_unique_codes(codes)

    T = models.ExpandedMathType
    existing = {row.type_code: row for row in db.query(T).filter(T.type_code.in_(codes)).all()} if codes else {}
    created = updated = 0

    try:
        for record in records:
            values = record.model_dump(include=set(_UPSERT_FIELDS))
            values["keywords"] = list(record.keywords)
            values["standard_content"] = record.standard_content or ""
            db_type = existing.get(record.type_code)
            if db_type is None:
                db.add(T(type_code=record.type_code, is_active=True, **values))
                created += 1
            else:
                for field, value in values.items():
                    setattr(db_type, field, value)
                db_type.is_active = True
                updated += 1
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    log.info(f"[TAXONOMY] upsert created={created} updated={updated}")
    return created, updated


def deactivate_types(db: Session, codes: Sequence[str]) -> int:
    """Soft-delete; rows stay for historical classifications"""
    T = models.ExpandedMathType
    count = db.query(T).filter(T.type_code.in_(list(codes)), T.is_active.is_(True)).update(
        {T.is_active: False}, synchronize_session=False
    )
    db.commit()
    log.info(f"[TAXONOMY] deactivated {count} type(s)")
    return count


# ==========================================
# PROBLEM & CLASSIFICATION CRUD
# ==========================================

def get_problem(db: Session, problem_id: int) -> Optional[models.Problem]:
    """Get problem by ID"""
    return db.query(models.Problem).filter(models.Problem.id == problem_id).first()


def get_candidate_pool(
    db: Session, subject: Optional[str] = None, chapters: Optional[Sequence[str]] = None
) -> List[models.Problem]:
    """Active problems matching subject/chapters, the input to exam selection"""
    P = models.Problem
    query = db.query(P).filter(P.is_active.is_(True))
    if subject:
        query = query.filter(P.subject == subject)
    if chapters:
        query = query.filter(P.chapter.in_(list(chapters)))
    return query.order_by(P.id).all()


def get_classification(db: Session, problem_id: int) -> Optional[models.Classification]:
    """Get the classification of a problem"""
    return db.query(models.Classification).filter(models.Classification.problem_id == problem_id).first()


def replace_classification(
    db: Session, problem: models.Problem, result: ValidatedClassification, model: Optional[str] = None
) -> models.Classification:
    """
    Full replace: drop the previous classification, insert the new one and copy
    the validated difficulty, solution, final answer and corrected content onto
    the problem, all in one transaction. Fields the model left out keep their
    stored values.
    """
    try:
        previous = get_classification(db, problem.id)
        if previous is not None:
            db.delete(previous)
            db.flush()
            db.expire(problem, ["classification"])

        db_classification = models.Classification(
            problem_id=problem.id,
            type_code=result.type_code,
            type_name=result.type_name,
            difficulty=result.difficulty,
            difficulty_scoring=result.difficulty_scoring,
            cognitive_domain=result.cognitive_domain,
            confidence=result.confidence,
            is_verified=False,
            mode=result.mode,
            model=model,
            issues=[issue.model_dump() for issue in result.issues],
        )
        db.add(db_classification)
        problem.difficulty = result.difficulty
        if result.solution_latex:
            problem.solution_latex = result.solution_latex
        if result.final_answer:
            problem.answer = {**(problem.answer or {}), "finalAnswer": result.final_answer}
        if result.corrected_content:
            log.info(f"[CLASSIFY] problem={problem.id} content replaced by corrected version")
            problem.content_latex = result.corrected_content
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(db_classification)
    return db_classification


def verify_classification(db: Session, classification_id: int, is_verified: bool = True) -> Optional[models.Classification]:
    """Human review flag"""
    db_classification = db.query(models.Classification).filter(
        models.Classification.id == classification_id
    ).first()
    if not db_classification:
        return None
    db_classification.is_verified = is_verified
    db.commit()
    db.refresh(db_classification)
    return db_classification


# ==========================================
# EXAM CRUD
# ==========================================

class ExamPersistenceError(RuntimeError):
    """The exam + link write failed and was rolled back."""
    code = "STORAGE_ERROR"


class InvalidStatusTransitionError(ValueError):
    code = "INVALID_STATUS_TRANSITION"


EXAM_STATUS_TRANSITIONS = {
    models.ExamStatus.DRAFT: {models.ExamStatus.PUBLISHED, models.ExamStatus.ARCHIVED},
    models.ExamStatus.PUBLISHED: {models.ExamStatus.ARCHIVED},
    models.ExamStatus.ARCHIVED: set(),
}


def create_exam_with_problems(
    db: Session,
    title: str,
    problem_ids: Sequence[int],
    points: int,
    created_by: Optional[str] = None,
    subject: Optional[str] = None,
) -> models.Exam:
    """
    Write the exam and its ordered links in a single transaction.
    order_index is 1..N in the given order; problem_count == len(problem_ids).

    Raises:
        ExamPersistenceError: after rollback, so no exam row survives
    """
    try:
        db_exam = models.Exam(
            title=title,
            created_by=created_by,
            subject=subject,
            status=models.ExamStatus.DRAFT,
            problem_count=len(problem_ids),
        )
        db.add(db_exam)
        db.flush()

        for order_index, problem_id in enumerate(problem_ids, start=1):
            db.add(models.ExamProblem(
                exam_id=db_exam.id,
                problem_id=problem_id,
                order_index=order_index,
                points=points,
            ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"[EXAM] write failed, rolled back: {e}")
        raise ExamPersistenceError(f"Failed to save exam '{title}'") from e

    db.refresh(db_exam)
    return db_exam


def get_exam(db: Session, exam_id: int) -> Optional[models.Exam]:
    """Get exam with its ordered problem links loaded"""
    return db.query(models.Exam).options(
        joinedload(models.Exam.problems)
    ).filter(models.Exam.id == exam_id).first()


def list_exams(db: Session, skip: int = 0, limit: int = 50) -> Tuple[List[models.Exam], int]:
    """Newest first"""
    query = db.query(models.Exam)
    total = query.count()
    rows = query.order_by(models.Exam.created_at.desc(), models.Exam.id.desc()).offset(skip).limit(limit).all()
    return rows, total


def update_exam_status(db: Session, exam: models.Exam, status: models.ExamStatus) -> models.Exam:
    """DRAFT → PUBLISHED → ARCHIVED, or DRAFT → ARCHIVED"""
    current = models.ExamStatus(exam.status)
    if status == current:
        return exam
    if status not in EXAM_STATUS_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(f"Cannot move exam from {current.value} to {status.value}")
    exam.status = status
    db.commit()
    db.refresh(exam)
    return exam
