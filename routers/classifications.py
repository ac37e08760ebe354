"""
Classification API endpoints
AI classification of stored problems against the expanded type taxonomy
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from openai import APIError
from sqlalchemy.orm import Session

from classification.gpt_client import MissingApiKeyError
from classification.pipeline import classify_problem
from classification.result_validator import ModelResponseError
from database import schemas, crud
from database.database import get_db

log = logging.getLogger("routers.classifications")

router = APIRouter(tags=["classifications"])


def _error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": code, "message": message})


@router.post("/problems/{problem_id}/classify", response_model=schemas.ClassificationResponse)
async def classify(problem_id: int, request: schemas.ClassifyRequest, db: Session = Depends(get_db)):
    """
    Classify one problem and replace its stored classification.
    Repairs (clamped difficulty, recomputed rubric, unknown type code) are
    returned in `issues`; an unknown type code is stored with confidence 0.
    """
    problem = crud.get_problem(db, problem_id)
    if not problem:
        raise _error(status.HTTP_404_NOT_FOUND, "PROBLEM_NOT_FOUND", f"Problem {problem_id} not found")

    snapshot = crud.get_snapshot(db)
    try:
        result, model = await classify_problem(
            problem.content_latex,
            snapshot,
            mode=request.mode,
            level_code=request.level_code,
            advanced=request.advanced,
        )
    except MissingApiKeyError as e:
        raise _error(status.HTTP_503_SERVICE_UNAVAILABLE, "MODEL_UNAVAILABLE", str(e))
    except ModelResponseError as e:
        log.error(f"[CLASSIFY] problem={problem_id} unusable model response: {e}")
        raise _error(status.HTTP_502_BAD_GATEWAY, "MODEL_RESPONSE_INVALID", str(e))
    except APIError as e:
        log.error(f"[CLASSIFY] problem={problem_id} model call failed: {e}")
        raise _error(status.HTTP_502_BAD_GATEWAY, "MODEL_CALL_FAILED", f"Model call failed: {e}")

    return crud.replace_classification(db, problem, result, model=model)


@router.get("/problems/{problem_id}/classification", response_model=schemas.ClassificationResponse)
def get_problem_classification(problem_id: int, db: Session = Depends(get_db)):
    """
    Current classification of a problem
    """
    db_classification = crud.get_classification(db, problem_id)
    if not db_classification:
        raise _error(status.HTTP_404_NOT_FOUND, "CLASSIFICATION_NOT_FOUND", f"Problem {problem_id} has no classification")
    return db_classification


@router.patch("/classifications/{classification_id}/verify", response_model=schemas.ClassificationResponse)
def verify_classification(classification_id: int, request: schemas.VerifyRequest, db: Session = Depends(get_db)):
    """
    Human review: mark a classification verified (or take the mark back)
    """
    db_classification = crud.verify_classification(db, classification_id, request.is_verified)
    if not db_classification:
        raise _error(status.HTTP_404_NOT_FOUND, "CLASSIFICATION_NOT_FOUND", f"Classification {classification_id} not found")
    return db_classification
