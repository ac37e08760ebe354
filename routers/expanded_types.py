"""
Expanded math type API endpoints
Read-only views over the curriculum taxonomy: list, tree, stats, detail
"""

import os
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from database import schemas, crud
from database.database import get_db
from taxonomy.schemas import CognitiveDomain, TypeRecord
from taxonomy.tree_builder import build_type_tree, count_standards

router = APIRouter(prefix="/expanded-types", tags=["expanded-types"])

DEFAULT_PAGE_SIZE = int(os.getenv("TYPES_PAGE_SIZE", "50"))
MAX_PAGE_SIZE = 500
DETAIL_CLASSIFICATION_LIMIT = 50


@router.get("/", response_model=schemas.TypeListResponse)
def list_types(
    level: Optional[str] = Query(None, max_length=10, description="Level code, e.g. HS0"),
    domain: Optional[str] = Query(None, max_length=10, description="Domain code, e.g. POL"),
    cognitive: Optional[CognitiveDomain] = None,
    school: Optional[str] = Query(None, max_length=20, description="School level label"),
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """
    List active types ordered by type_code
    `total` counts every matching row regardless of limit/offset
    """
    rows, total = crud.list_types(
        db,
        level=level,
        domain=domain,
        cognitive=cognitive.value if cognitive else None,
        school=school,
        search=search.strip() if search else None,
        limit=limit,
        offset=offset,
    )
    return {"items": rows, "total": total, "limit": limit, "offset": offset}


@router.get("/stats", response_model=schemas.StatsResponse)
def type_stats(db: Session = Depends(get_db)):
    """
    Counts of active types by level, domain, cognitive domain and school level
    """
    return crud.get_type_stats(db)


@router.get("/tree", response_model=schemas.TreeResponse)
def type_tree(
    school: Optional[str] = Query(None, max_length=20),
    level: Optional[str] = Query(None, max_length=10),
    db: Session = Depends(get_db),
):
    """
    Level → Domain → Standard → Type hierarchy of active types
    """
    records = [TypeRecord.model_validate(row) for row in crud.get_tree_types(db, school=school, level=level)]
    return {
        "tree": build_type_tree(records),
        "total_types": len(records),
        "total_standards": count_standards(records),
    }


@router.get("/{type_code}", response_model=schemas.TypeDetailResponse)
def get_type(type_code: str, db: Session = Depends(get_db)):
    """
    One type with recent classifications and sibling types under the same standard
    """
    db_type = crud.get_type(db, type_code)
    if not db_type:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Type '{type_code}' not found"
        )

    return {
        "type": db_type,
        "classifications": crud.get_classifications_for_type(db, type_code, limit=DETAIL_CLASSIFICATION_LIMIT),
        "related_types": crud.get_related_types(db, db_type),
    }
