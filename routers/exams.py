"""
Exam assembly: criteria → candidate pool → bucket selection → store Exam + ExamProblems.
"""

import logging
import random
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from database import schemas, crud
from database.database import get_db
from generation.exam_assembler import (
    NoCandidatesError, NoMatchingProblemsError, UnknownBucketError, assemble_exam,
)

log = logging.getLogger("routers.exams")

router = APIRouter(prefix="/exams", tags=["exams"])


def _error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": code, "message": message})


@router.post("/generate", response_model=schemas.ExamGenerateResponse, status_code=status.HTTP_201_CREATED)
def generate_exam(
    request: schemas.ExamGenerateRequest,
    db: Session = Depends(get_db),
    x_user_id: Optional[str] = Header(None),
):
    """
    Select problems per difficulty bucket and store the exam.
    Buckets short of candidates are filled as far as possible and reported in
    `shortfalls`; no other difficulty is substituted.
    """
    seed = request.seed if request.seed is not None else random.randint(0, 2**31 - 1)
    criteria = request.criteria

    try:
        exam, selection = assemble_exam(
            db,
            title=request.title,
            subject=criteria.subject,
            chapters=criteria.chapters,
            distribution=criteria.difficulty_distribution,
            created_by=x_user_id or "system",
            rng=random.Random(seed),
        )
    except UnknownBucketError as e:
        raise _error(422, e.code, str(e))
    except NoCandidatesError as e:
        raise _error(status.HTTP_404_NOT_FOUND, e.code, str(e))
    except NoMatchingProblemsError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, e.code, str(e))
    except crud.ExamPersistenceError as e:
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, e.code, str(e))

    return {
        "exam_id": exam.id,
        "problem_count": exam.problem_count,
        "requested_count": selection.requested_total,
        "seed": seed,
        "shortfalls": [s.model_dump() for s in selection.shortfalls],
        "warnings": selection.warnings,
    }


@router.get("/", response_model=schemas.ExamListResponse)
def list_exams(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """
    List exams, newest first
    """
    rows, total = crud.list_exams(db, skip=skip, limit=limit)
    return {"items": rows, "total": total}


@router.get("/{exam_id}", response_model=schemas.ExamDetailResponse)
def get_exam(exam_id: int, db: Session = Depends(get_db)):
    """
    Exam with its problems in order_index order
    """
    exam = crud.get_exam(db, exam_id)
    if not exam:
        raise _error(status.HTTP_404_NOT_FOUND, "EXAM_NOT_FOUND", f"Exam {exam_id} not found")
    return exam


@router.patch("/{exam_id}/status", response_model=schemas.ExamResponse)
def update_exam_status(exam_id: int, update: schemas.ExamStatusUpdate, db: Session = Depends(get_db)):
    """
    DRAFT → PUBLISHED → ARCHIVED (a draft may also be archived directly)
    """
    exam = crud.get_exam(db, exam_id)
    if not exam:
        raise _error(status.HTTP_404_NOT_FOUND, "EXAM_NOT_FOUND", f"Exam {exam_id} not found")
    try:
        return crud.update_exam_status(db, exam, update.status)
    except crud.InvalidStatusTransitionError as e:
        raise _error(status.HTTP_409_CONFLICT, e.code, str(e))
