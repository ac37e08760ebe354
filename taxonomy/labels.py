"""
Display labels and code grammar for the curriculum taxonomy.

Type codes follow MA-{LEVEL}-{DOMAIN}-{STD}-{SEQ}, e.g. MA-HS0-POL-01-003.
"""

import re

# ── Level codes (school stage) ────────────────────────────────────────────────
LEVEL_CODE_LABELS = {
    "ES12": "초등 1-2학년",
    "ES34": "초등 3-4학년",
    "ES56": "초등 5-6학년",
    "MS":   "중학교",
    "HS0":  "고등 공통(수학)",
    "HS1":  "수학Ⅰ / 대수",
    "HS2":  "수학Ⅱ",
    "CAL":  "미적분",
    "PRB":  "확률과 통계",
    "GEO":  "기하",
}

# ── Domain codes (subject area) ───────────────────────────────────────────────
DOMAIN_CODE_LABELS = {
    "POL": "다항식",      "EQU": "방정식",       "INE": "부등식",
    "SET": "집합과 명제", "FUN": "함수",         "CNT": "경우의 수",
    "CRD": "좌표와 도형", "EXP": "지수와 로그",   "TRI": "삼각함수",
    "SEQ": "수열",        "LIM": "극한",         "DIF": "미분",
    "INT": "적분",        "PER": "순열과 조합",   "PRB": "확률",
    "STA": "통계",        "VEC": "벡터",         "CON": "이차곡선",
    "SPC": "공간도형",    "NUM": "수와 연산",     "GEO": "도형과 측정",
    "PAT": "변화와 관계", "DAT": "자료와 가능성",
}

COGNITIVE_LABELS_KR = {
    "CALCULATION": "계산",
    "UNDERSTANDING": "이해",
    "INFERENCE": "추론",
    "PROBLEM_SOLVING": "해결",
}

# ── Difficulty buckets (5-point scale) ────────────────────────────────────────
DIFFICULTY_LABELS = {1: "최하", 2: "하", 3: "중", 4: "상", 5: "최상"}
BUCKET_TO_DIFFICULTY = {label: value for value, label in DIFFICULTY_LABELS.items()}

TYPE_CODE_PATTERN = re.compile(r"^[A-Z]+-[A-Z0-9]+-[A-Z0-9]+-\d+-\d+$")


def level_label(level_code: str, default: str = "") -> str:
    return LEVEL_CODE_LABELS.get(level_code) or default or level_code


def domain_label(domain_code: str, default: str = "") -> str:
    return DOMAIN_CODE_LABELS.get(domain_code) or default or domain_code


def is_valid_type_code(type_code: str) -> bool:
    return bool(type_code) and TYPE_CODE_PATTERN.match(type_code) is not None
