"""
Exam Assembly Engine

Selects a concrete, ordered problem set that satisfies a difficulty distribution
and persists it as one Exam + ExamProblem unit.

Selection:
1. Map each bucket label (최상/상/중/하/최하) to its difficulty (5..1)
2. Shuffle the candidate pool (fresh randomness per call unless a seed is given)
3. Per bucket, in request order, take up to `count` problems of that difficulty
4. Shortfall: take what exists, never backfill from another difficulty
5. Nothing selected → NO_MATCHING_PROBLEMS; an exam is never created empty
"""

import logging
import os
import random
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from database import crud, models
from taxonomy.labels import BUCKET_TO_DIFFICULTY

log = logging.getLogger("generation.exams")

DEFAULT_POINTS = int(os.getenv("EXAM_DEFAULT_POINTS", "4"))


# ─── Errors ────────────────────────────────────────────────────────────────────

class UnknownBucketError(ValueError):
    """Unknown bucket label, negative count, or nothing requested."""
    code = "UNKNOWN_BUCKET"


class NoCandidatesError(LookupError):
    """The pool is empty before any difficulty matching."""
    code = "NO_CANDIDATES"


class NoMatchingProblemsError(LookupError):
    """Candidates exist, but none match any requested bucket."""
    code = "NO_MATCHING_PROBLEMS"


# ─── Types ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Candidate:
    problem_id: int
    difficulty: Optional[int]


class BucketShortfall(BaseModel):
    bucket: str
    difficulty: int
    requested: int
    selected: int


class SelectionResult(BaseModel):
    problem_ids: List[int] = Field(default_factory=list)   # selection order
    requested_total: int = 0
    shortfalls: List[BucketShortfall] = Field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return [
            f"{s.bucket}: requested {s.requested}, only {s.selected} available"
            for s in self.shortfalls
        ]


# ─── Selection (pure) ──────────────────────────────────────────────────────────

def resolve_distribution(distribution: Mapping[str, int]) -> List[Tuple[str, int, int]]:
    """
    Map bucket labels to difficulties, keeping the caller's order.

    Returns:
        [(label, difficulty, count), ...] with zero-count buckets dropped

    Raises:
        UnknownBucketError
    """
    unknown = [label for label in distribution if label not in BUCKET_TO_DIFFICULTY]
    if unknown:
        raise UnknownBucketError(
            f"Unknown difficulty bucket(s): {', '.join(map(str, unknown))}. "
            f"Use one of {', '.join(BUCKET_TO_DIFFICULTY)}"
        )
    buckets = []
    for label, count in distribution.items():
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise UnknownBucketError(f"Count for '{label}' must be a non-negative integer, got {count!r}")
        if count:
            buckets.append((label, BUCKET_TO_DIFFICULTY[label], count))
    if not buckets:
        raise UnknownBucketError("difficulty_distribution must request at least one problem")
    return buckets


def select_problems(
    pool: Iterable[Candidate],
    distribution: Mapping[str, int],
    rng: Optional[random.Random] = None,
) -> SelectionResult:
    """
    Pick problems per difficulty bucket from a shuffled pool.

    Args:
        pool:         Eligible problems (already filtered to active/subject/chapter)
        distribution: bucket label → requested count
        rng:          Random source; a fresh non-deterministically seeded one by default

    Returns:
        SelectionResult; shortfalls recorded per bucket, never backfilled

    Raises:
        UnknownBucketError, NoCandidatesError, NoMatchingProblemsError
    """
    buckets = resolve_distribution(distribution)
    candidates = list(pool)
    if not candidates:
        raise NoCandidatesError("No problems found for the given subject/chapters")

    rng = rng or random.Random()
    rng.shuffle(candidates)

    result = SelectionResult(requested_total=sum(count for _, _, count in buckets))
    taken: Set[int] = set()

    for label, difficulty, count in buckets:
        picked = 0
        for candidate in candidates:
            if picked >= count:
                break
            if candidate.difficulty != difficulty or candidate.problem_id in taken:
                continue
            taken.add(candidate.problem_id)
            result.problem_ids.append(candidate.problem_id)
            picked += 1

        if picked < count:
            log.warning(f"[ASSEMBLE] shortfall bucket={label} difficulty={difficulty} requested={count} selected={picked}")
            result.shortfalls.append(
                BucketShortfall(bucket=label, difficulty=difficulty, requested=count, selected=picked)
            )

    if not result.problem_ids:
        raise NoMatchingProblemsError("No problems match the requested difficulty distribution")
    return result


# ─── Assembly (selection + atomic persistence) ─────────────────────────────────

def assemble_exam(
    db: Session,
    title: str,
    subject: Optional[str],
    chapters: Sequence[str],
    distribution: Mapping[str, int],
    created_by: Optional[str] = None,
    rng: Optional[random.Random] = None,
    points: int = DEFAULT_POINTS,
) -> Tuple[models.Exam, SelectionResult]:
    """
    Read the candidate pool, select, and write Exam + links as one transaction.

    Raises:
        UnknownBucketError, NoCandidatesError, NoMatchingProblemsError,
        crud.ExamPersistenceError (after rollback; no exam row remains)
    """
    resolve_distribution(distribution)
    pool = [
        Candidate(problem_id=p.id, difficulty=p.difficulty)
        for p in crud.get_candidate_pool(db, subject=subject, chapters=chapters)
    ]
    selection = select_problems(pool, distribution, rng=rng)

    exam = crud.create_exam_with_problems(
        db,
        title=title,
        created_by=created_by,
        subject=subject,
        problem_ids=selection.problem_ids,
        points=points,
    )
    log.info(
        f"[ASSEMBLE] exam={exam.id} problems={exam.problem_count}/{selection.requested_total} "
        f"pool={len(pool)} shortfalls={len(selection.shortfalls)}"
    )
    return exam, selection
