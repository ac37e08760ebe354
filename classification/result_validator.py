"""
Classification result validator.

Checks the external model's structured response against the active taxonomy
snapshot and the difficulty rubric before it is persisted:
- Unknown type code  → kept, flagged, confidence forced to 0
- Difficulty outside [1,5] or the type's band → clamped, recorded as warning
- Rubric total/grade → always recomputed from the sub-scores
- Solution steps, final answer and correctedContent → carried along for the problem row
Nothing is silently dropped: every repair leaves a ValidationIssue behind.
"""

import logging
import math
from typing import Any, List, Optional, Tuple

from classification.rubric import RubricScoreError, score_difficulty
from classification.schemas import (
    CLASSIFIED_CODE_MAX_LENGTH, ClassificationMode, IssueCode, ValidatedClassification, ValidationIssue,
)
from taxonomy.schemas import CognitiveDomain, TaxonomySnapshot, TypeRecord

log = logging.getLogger(__name__)

VALID_COGNITIVE = {c.value for c in CognitiveDomain}

# used only when neither the model nor the taxonomy gives a value
DEFAULT_DIFFICULTY = 3
DEFAULT_COGNITIVE = CognitiveDomain.UNDERSTANDING.value


class ModelResponseError(ValueError):
    """The model response is not a JSON object; there is nothing to repair."""


def _issue(issues: List[ValidationIssue], code: IssueCode, message: str, severity: str = "warning") -> None:
    issues.append(ValidationIssue(code=code, severity=severity, message=message))


def _unwrap(raw: Any) -> dict:
    if not isinstance(raw, dict):
        raise ModelResponseError(f"Expected a JSON object, got {type(raw).__name__}")
    body = raw.get("classification", raw)
    if not isinstance(body, dict):
        raise ModelResponseError("'classification' must be a JSON object")
    return body


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_number(value: Any) -> Optional[float]:
    """Accept ints, floats and numeric strings; None otherwise."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, (int, float)) and math.isfinite(value):
        return value
    return None


def _resolve_difficulty(
    value: Any, record: Optional[TypeRecord], issues: List[ValidationIssue]
) -> Tuple[int, bool]:
    """Returns (difficulty, authoritative). Rounds, then clamps to [1,5] and the type's band."""
    number = _as_number(value)
    claimed = None if number is None else int(round(number))
    if claimed is not None and claimed != number:
        _issue(
            issues, IssueCode.DIFFICULTY_CLAMPED,
            f"difficulty {value!r} is not an integer; rounded to {claimed}",
        )
    if claimed is None:
        fallback = record.difficulty_min if record else DEFAULT_DIFFICULTY
        _issue(
            issues, IssueCode.MISSING_FIELD,
            f"difficulty missing or not a number ({value!r}); defaulted to {fallback}",
            severity="error",
        )
        return fallback, False

    low, high = (record.difficulty_min, record.difficulty_max) if record else (1, 5)
    low, high = max(1, low), min(5, high)
    clamped = min(max(claimed, low), high)
    if clamped != claimed:
        _issue(
            issues, IssueCode.DIFFICULTY_CLAMPED,
            f"difficulty {claimed} outside {low}-{high}; clamped to {clamped}",
        )
    return clamped, True


def _resolve_cognitive(
    value: Any, record: Optional[TypeRecord], issues: List[ValidationIssue]
) -> Tuple[str, bool]:
    if isinstance(value, str) and value.strip().upper() in VALID_COGNITIVE:
        return value.strip().upper(), True
    if record is not None:
        _issue(
            issues, IssueCode.COGNITIVE_REPAIRED,
            f"cognitiveDomain {value!r} invalid; using type's domain {record.cognitive}",
        )
        return record.cognitive, True
    _issue(
        issues, IssueCode.MISSING_FIELD,
        f"cognitiveDomain {value!r} invalid and no type to fall back on; defaulted to {DEFAULT_COGNITIVE}",
        severity="error",
    )
    return DEFAULT_COGNITIVE, False


def _resolve_confidence(value: Any, issues: List[ValidationIssue]) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        _issue(issues, IssueCode.MISSING_FIELD, f"confidence missing or not a number ({value!r}); set to 0")
        return 0.0
    clamped = max(0.0, min(1.0, float(value)))
    if clamped != value:
        _issue(issues, IssueCode.CONFIDENCE_CLAMPED, f"confidence {value} clamped to {clamped}")
    return round(clamped, 3)


def _resolve_scoring(value: Any, issues: List[ValidationIssue]) -> Optional[dict]:
    """Recompute total/grade from sub-scores; the model's arithmetic is discarded."""
    if not isinstance(value, dict):
        _issue(issues, IssueCode.SCORING_MISSING, "full mode requires difficultyScoring sub-scores")
        return None
    try:
        scoring = score_difficulty(value)
    except RubricScoreError as e:
        _issue(issues, IssueCode.SCORING_INVALID, f"difficultyScoring rejected: {e}", severity="error")
        return None

    claimed_total, claimed_grade = value.get("total"), value.get("grade")
    if (claimed_total is not None and claimed_total != scoring.total) or (
        claimed_grade is not None and claimed_grade != scoring.grade
    ):
        _issue(
            issues, IssueCode.SCORING_RECOMPUTED,
            f"model claimed total={claimed_total!r} grade={claimed_grade!r}; "
            f"rubric gives total={scoring.total} grade={scoring.grade}",
        )
    return scoring.to_dict()


def _solution_text(solution: Any) -> Optional[str]:
    """Numbered steps as "N. description" followed by their LaTeX, one block per step."""
    if not isinstance(solution, dict):
        return None
    blocks = []
    approach = _text(solution.get("approach"))
    if approach and approach.strip():
        blocks.append(approach.strip())
    steps = solution.get("steps")
    for index, step in enumerate(steps if isinstance(steps, list) else [], start=1):
        if not isinstance(step, dict):
            continue
        number = step.get("stepNumber") or index
        lines = [f"{number}. {_text(step.get('description')) or ''}".rstrip()]
        latex = _text(step.get("latex"))
        if latex and latex.strip():
            lines.append(latex.strip())
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) or None


def _final_answer(solution: Any) -> Optional[str]:
    if not isinstance(solution, dict):
        return None
    answer = solution.get("finalAnswer")
    if isinstance(answer, (int, float)) and not isinstance(answer, bool):
        answer = str(answer)
    answer = _text(answer)
    return answer.strip() if answer and answer.strip() else None


def _corrected_content(value: Any) -> Optional[str]:
    text = _text(value)
    return text.strip() if text and text.strip() else None


def validate_classification(
    raw: Any,
    snapshot: TaxonomySnapshot,
    mode: ClassificationMode = ClassificationMode.LIGHT,
) -> ValidatedClassification:
    """
    Validate and repair one model response.

    Args:
        raw:      Parsed JSON from the model (with or without the "classification" wrapper)
        snapshot: Active taxonomy snapshot; the type code must be one of its records
        mode:     "full" additionally validates and recomputes difficultyScoring

    Returns:
        ValidatedClassification with every repair recorded in `issues`

    Raises:
        ModelResponseError: if the response is not a JSON object at all
    """
    mode = ClassificationMode(mode)
    body = _unwrap(raw)
    issues: List[ValidationIssue] = []

    code = body.get("expandedTypeCode") or body.get("typeCode")
    code = code.strip() if isinstance(code, str) else ""
    record = snapshot.get(code)
    if record is None:
        _issue(
            issues, IssueCode.UNKNOWN_TYPE_CODE,
            f"type code {code!r} is not an active taxonomy entry" if code else "expandedTypeCode missing",
            severity="error",
        )
        if len(code) > CLASSIFIED_CODE_MAX_LENGTH:
            _issue(
                issues, IssueCode.TYPE_CODE_TRUNCATED,
                f"type code {len(code)} chars long; kept first {CLASSIFIED_CODE_MAX_LENGTH}",
            )
            code = code[:CLASSIFIED_CODE_MAX_LENGTH]

    # solution and correctedContent sit beside the classification object
    extras = raw if "classification" in raw else {}

    confidence = _resolve_confidence(body.get("confidence"), issues)
    difficulty, difficulty_ok = _resolve_difficulty(body.get("difficulty"), record, issues)
    cognitive, cognitive_ok = _resolve_cognitive(body.get("cognitiveDomain"), record, issues)
    scoring = _resolve_scoring(body.get("difficultyScoring"), issues) if mode is ClassificationMode.FULL else None

    if record is None or not difficulty_ok or not cognitive_ok:
        confidence = 0.0

    for issue in issues:
        log.warning(f"[VALIDATE] code={code or '-'} {issue.code}: {issue.message}")

    return ValidatedClassification(
        type_code=code,
        type_name=record.type_name if record else _text(body.get("typeName")),
        standard_code=record.standard_code if record else _text(body.get("standardCode")),
        known_type=record is not None,
        difficulty=difficulty,
        difficulty_scoring=scoring,
        cognitive_domain=cognitive,
        confidence=confidence,
        is_verified=False,
        mode=mode,
        issues=issues,
        solution_latex=_solution_text(extras.get("solution")),
        final_answer=_final_answer(extras.get("solution")),
        corrected_content=_corrected_content(extras.get("correctedContent")),
    )
