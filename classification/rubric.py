"""
Six-axis difficulty rubric.

The rubric is the only authority for a problem's total score and grade label.
The external model supplies raw sub-scores; totals and grades are always
recomputed here.

    | axis               | domain | meaning                               |
    |--------------------|--------|---------------------------------------|
    | conceptCount       | 1-3    | concepts needed (1, 2, 3+)            |
    | stepCount          | 1-3    | solution steps (1-2, 3-4, 5+)         |
    | calcComplexity     | 1-3    | simple / moderate / heavy computation |
    | thinkingLevel      | 1-3    | direct use / adaptation / proof       |
    | dataInterpretation | 0-2    | none / simple / compound data reading |
    | trapMisconception  | 0-2    | no trap / - / trap or misconception   |
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Mapping, Tuple

# axis → (min, max, korean label); order is the order used in prompts and output
RUBRIC_AXES: Dict[str, Tuple[int, int, str]] = {
    "conceptCount": (1, 3, "필요 개념 수"),
    "stepCount": (1, 3, "풀이 단계 수"),
    "calcComplexity": (1, 3, "계산 복잡도"),
    "thinkingLevel": (1, 3, "사고력 요구"),
    "dataInterpretation": (0, 2, "자료 해석"),
    "trapMisconception": (0, 2, "함정/오개념"),
}

# (lowest total, grade); a total belongs to the last band whose floor it reaches
GRADE_BANDS: List[Tuple[int, str]] = [
    (3, "하"),
    (6, "중하"),
    (8, "중"),
    (10, "중상"),
    (12, "상"),
]


class RubricScoreError(ValueError):
    """A sub-score is missing, not an integer, or outside its axis domain."""

    def __init__(self, problems: List[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


@dataclass(frozen=True)
class DifficultyScoring:
    conceptCount: int
    stepCount: int
    calcComplexity: int
    thinkingLevel: int
    dataInterpretation: int
    trapMisconception: int
    total: int
    grade: str

    def to_dict(self) -> dict:
        return asdict(self)


def grade_for_total(total: int) -> str:
    """Map a rubric total to its grade. Totals below the first band are '하'."""
    grade = GRADE_BANDS[0][1]
    for floor, label in GRADE_BANDS:
        if total >= floor:
            grade = label
    return grade


def check_sub_scores(scores: Mapping[str, object]) -> Dict[str, int]:
    """
    Validate the six sub-scores against their axis domains.

    Returns:
        axis → int, in RUBRIC_AXES order

    Raises:
        RubricScoreError: listing every offending axis
    """
    problems: List[str] = []
    clean: Dict[str, int] = {}
    for axis, (low, high, _label) in RUBRIC_AXES.items():
        value = scores.get(axis)
        if value is None:
            problems.append(f"{axis} is missing")
            continue
        if isinstance(value, bool) or not isinstance(value, int):
            problems.append(f"{axis} must be an integer, got {value!r}")
            continue
        if not low <= value <= high:
            problems.append(f"{axis}={value} outside {low}-{high}")
            continue
        clean[axis] = value
    if problems:
        raise RubricScoreError(problems)
    return clean


def score_difficulty(scores: Mapping[str, object]) -> DifficultyScoring:
    """Validate sub-scores and derive total + grade. Extra keys are ignored."""
    clean = check_sub_scores(scores)
    total = sum(clean.values())
    return DifficultyScoring(**clean, total=total, grade=grade_for_total(total))


def grade_band_text() -> str:
    """'하(3~5점), 중하(6~7점), ...' built from GRADE_BANDS."""
    parts = []
    for i, (floor, label) in enumerate(GRADE_BANDS):
        if i + 1 < len(GRADE_BANDS):
            parts.append(f"{label}({floor}~{GRADE_BANDS[i + 1][0] - 1}점)")
        else:
            parts.append(f"{label}({floor}+점)")
    return ", ".join(parts)
