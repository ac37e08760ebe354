"""
Classification prompt builder.

Builds the system prompt for the structured-output classification call from a
taxonomy snapshot. Pure: the same snapshot, mode and level always give the same
text, and the text is never empty.
  - light mode: type table for the level + compact response schema (~2K tokens)
  - full mode:  same table + six-axis difficulty rubric, sub-scores demanded
"""

import logging
from typing import Iterable, Optional, Union

from classification.rubric import RUBRIC_AXES, grade_band_text
from classification.schemas import ClassificationMode
from taxonomy.labels import COGNITIVE_LABELS_KR, DOMAIN_CODE_LABELS, LEVEL_CODE_LABELS
from taxonomy.schemas import TaxonomySnapshot, TypeRecord

log = logging.getLogger(__name__)

_RULE = "═══════════════════════════════════════"

_LEVEL_SHORT = {
    "ES12": "초1-2", "ES34": "초3-4", "ES56": "초5-6", "MS": "중", "HS0": "고공통",
    "HS1": "수I", "HS2": "수II", "CAL": "미적분", "PRB": "확통", "GEO": "기하",
}


def _section(title: str, body: str) -> str:
    return f"{_RULE}\n■ {title}\n{_RULE}\n\n{body}"


def build_type_table(types: Iterable[TypeRecord]) -> str:
    """Markdown table of candidate types, one row per record, in the given order."""
    lines = [
        "| type_code | type_name | standard | cognitive | diff |",
        "|-----------|-----------|----------|-----------|------|",
    ]
    for t in types:
        lines.append(
            f"| {t.type_code} | {t.type_name} | {t.standard_code} | {t.cognitive} "
            f"| {t.difficulty_min}-{t.difficulty_max} |"
        )
    return "\n".join(lines)


def fallback_type_lookup() -> str:
    """Code grammar used when no taxonomy rows are available (free-form mode)."""
    levels = ", ".join(f"{code}({_LEVEL_SHORT.get(code, label)})" for code, label in LEVEL_CODE_LABELS.items())
    domains = ", ".join(f"{code}({label})" for code, label in DOMAIN_CODE_LABELS.items())
    return (
        "유형 코드 형식: MA-{LEVEL}-{DOMAIN}-{STD}-{SEQ}\n\n"
        f"LEVEL: {levels}\n"
        f"DOMAIN: {domains}\n\n"
        "유형 코드 DB 데이터를 사용할 수 없어 자유 분류합니다. "
        "위 코드 체계에 맞는 typeCode를 생성하세요."
    )


def _type_lookup(snapshot: TaxonomySnapshot, level_code: Optional[str]) -> str:
    candidates = snapshot.for_level(level_code)
    if len(candidates) == 0:
        log.warning(f"[PROMPT] no active types for level={level_code or '*'}; using code-grammar fallback")
        return fallback_type_lookup()
    return build_type_table(candidates)


def _rubric_table() -> str:
    three_point = [
        ("conceptCount", "1개", "2개", "3개+"),
        ("stepCount", "1~2단계", "3~4단계", "5단계+"),
        ("calcComplexity", "단순", "중간", "복잡"),
        ("thinkingLevel", "단순 적용", "응용/변형", "추론/증명"),
    ]
    two_point = [
        ("dataInterpretation", "불필요", "단순", "복합"),
        ("trapMisconception", "없음", "-", "있음"),
    ]
    lines = [
        "| 항목 | 1점 | 2점 | 3점 |",
        "|------|-----|-----|-----|",
    ]
    for axis, a, b, c in three_point:
        lines.append(f"| {RUBRIC_AXES[axis][2]} ({axis}) | {a} | {b} | {c} |")
    lines += [
        "",
        "| 항목 | 0점 | 1점 | 2점 |",
        "|------|-----|-----|-----|",
    ]
    for axis, a, b, c in two_point:
        lines.append(f"| {RUBRIC_AXES[axis][2]} ({axis}) | {a} | {b} | {c} |")
    lines += ["", f"난이도 등급: {grade_band_text()}"]
    return "\n".join(lines)


_LIGHT_SCHEMA = """{
  "classification": {
    "expandedTypeCode": "MA-HS0-POL-01-003",
    "typeName": "곱셈 공식 활용",
    "standardCode": "[10수학01-01]",
    "difficulty": 3,
    "cognitiveDomain": "CALCULATION|UNDERSTANDING|INFERENCE|PROBLEM_SOLVING",
    "confidence": 0.92
  },
  "solution": {
    "approach": "풀이 접근법",
    "steps": [{"stepNumber": 1, "description": "단계 설명", "latex": "수식"}],
    "finalAnswer": "최종 답"
  },
  "correctedContent": null
}"""

_FULL_SCHEMA = """{
  "classification": {
    "expandedTypeCode": "MA-HS0-POL-01-003",
    "typeName": "곱셈 공식 활용",
    "standardCode": "[10수학01-01]",
    "difficulty": 3,
    "difficultyScoring": {
      "conceptCount": 2,
      "stepCount": 2,
      "calcComplexity": 1,
      "thinkingLevel": 2,
      "dataInterpretation": 0,
      "trapMisconception": 0
    },
    "cognitiveDomain": "CALCULATION",
    "confidence": 0.92
  },
  "solution": {
    "approach": "풀이 접근법",
    "steps": [{"stepNumber": 1, "description": "단계 설명", "latex": "수식"}],
    "finalAnswer": "최종 답"
  },
  "correctedContent": null
}"""

_COGNITIVE_CHOICES = ", ".join(f"{code}({label})" for code, label in COGNITIVE_LABELS_KR.items())

_LIGHT_RULES = f"""규칙:
1. expandedTypeCode는 반드시 위 테이블에 있는 코드 중 하나를 선택하세요.
2. difficulty는 1(최하)~5(최상) 정수이며, 선택한 유형의 diff 범위 안에 있어야 합니다.
3. cognitiveDomain은 {_COGNITIVE_CHOICES} 중 하나입니다.
4. confidence는 0.0~1.0 사이의 분류 확신도입니다.
5. 수식은 LaTeX 형식($...$)으로 표기하세요.
6. 문제 본문에 오탈자나 수식 오류가 있으면 correctedContent에 수정본을, 없으면 null을 넣으세요."""

_FULL_RULES = f"""규칙:
1. expandedTypeCode는 반드시 위 테이블의 코드 중 하나를 선택하세요.
2. difficulty는 1(최하)~5(최상) 정수이며, 선택한 유형의 diff 범위 안에 있어야 합니다.
3. 난이도 6항목을 모두 정수로 채점하세요. 총점과 등급은 시스템이 계산하므로 출력하지 마세요.
4. cognitiveDomain은 {_COGNITIVE_CHOICES} 중 선택하세요.
5. confidence는 0.0~1.0 사이의 분류 확신도입니다.
6. 수식은 LaTeX 형식($...$)으로 표기하세요.
7. 문제 본문에 오탈자나 수식 오류가 있으면 correctedContent에 수정본을, 없으면 null을 넣으세요."""


def build_classification_prompt(
    snapshot: Union[TaxonomySnapshot, Iterable[TypeRecord]],
    mode: Union[ClassificationMode, str] = ClassificationMode.LIGHT,
    level_code: Optional[str] = None,
) -> str:
    """
    Build the classification system prompt.

    Args:
        snapshot:   Active taxonomy snapshot (or any iterable of TypeRecord)
        mode:       "light" or "full"
        level_code: Restrict the candidate table to one level (HS0, MS, ...)

    Returns:
        Self-contained instruction text; falls back to the code grammar when
        the filtered snapshot is empty
    """
    if not isinstance(snapshot, TaxonomySnapshot):
        snapshot = TaxonomySnapshot(snapshot)
    mode = ClassificationMode(mode)
    lookup = _type_lookup(snapshot, level_code)

    if mode is ClassificationMode.LIGHT:
        return "\n\n".join([
            "당신은 한국 수학 교육 전문가입니다. "
            "주어진 수학 문제를 분석하여 아래 유형 테이블에서 가장 적합한 유형을 선택하세요.",
            _section("유형 분류 테이블", lookup),
            _section("응답 형식 (반드시 JSON)", _LIGHT_SCHEMA),
            _LIGHT_RULES,
        ])

    return "\n\n".join([
        "당신은 AI 수학 교육 전문가입니다.\n"
        "한국 교육과정(2015 개정, 2022 개정)에 기반하여 수학 문제를 분석합니다.",
        _section("유형 분류 테이블", lookup),
        _section("난이도 채점 기준 (6항목)", _rubric_table()),
        _section("응답 형식 (반드시 JSON)", _FULL_SCHEMA),
        _FULL_RULES,
    ])
