"""
Tests for validating and repairing the external model's classification response.
"""

import pytest

from classification.pipeline import parse_model_json
from classification.result_validator import ModelResponseError, validate_classification
from classification.schemas import CLASSIFIED_CODE_MAX_LENGTH, IssueCode
from taxonomy.schemas import TaxonomySnapshot


@pytest.fixture
def snapshot(sample_types):
    return TaxonomySnapshot(sample_types)


def response(**overrides):
    body = {
        "expandedTypeCode": "MA-HS0-POL-01-002",   # band 2-4
        "typeName": "model name",
        "standardCode": "[model]",
        "difficulty": 3,
        "cognitiveDomain": "CALCULATION",
        "confidence": 0.9,
    }
    body.update(overrides)
    return {"classification": body}


FULL_SCORES = {
    "conceptCount": 2, "stepCount": 2, "calcComplexity": 1, "thinkingLevel": 2,
    "dataInterpretation": 0, "trapMisconception": 0,
}


class TestKnownType:

    def test_clean_response_passes_through(self, snapshot):
        result = validate_classification(response(), snapshot)
        assert result.known_type
        assert result.issues == []
        assert result.difficulty == 3
        assert result.confidence == 0.9
        assert result.is_verified is False

    def test_names_come_from_taxonomy(self, snapshot):
        result = validate_classification(response(), snapshot)
        assert result.type_name == "유형 MA-HS0-POL-01-002"
        assert result.standard_code == "[HS0-POL-01]"

    def test_unwrapped_body_accepted(self, snapshot):
        result = validate_classification(response()["classification"], snapshot)
        assert result.type_code == "MA-HS0-POL-01-002"


class TestUnknownType:

    def test_kept_flagged_confidence_zero(self, snapshot):
        result = validate_classification(response(expandedTypeCode="MA-HS0-POL-99-999"), snapshot)
        assert result.type_code == "MA-HS0-POL-99-999"
        assert not result.known_type
        assert result.confidence == 0.0
        assert result.has_issue(IssueCode.UNKNOWN_TYPE_CODE)
        assert result.is_verified is False

    def test_inactive_type_counts_as_unknown(self, sample_types):
        from conftest import make_type
        inactive = make_type("MA-HS0-POL-07-001", is_active=False)
        result = validate_classification(
            response(expandedTypeCode="MA-HS0-POL-07-001"), TaxonomySnapshot(sample_types + [inactive])
        )
        assert result.has_issue(IssueCode.UNKNOWN_TYPE_CODE)

    def test_missing_code_flagged(self, snapshot):
        result = validate_classification(response(expandedTypeCode=None), snapshot)
        assert result.type_code == ""
        assert result.has_issue(IssueCode.UNKNOWN_TYPE_CODE)
        assert result.confidence == 0.0

    def test_overlong_code_cut_to_column_width(self, snapshot):
        code = "MA-HS0-POL-01-" + "9" * 80
        result = validate_classification(response(expandedTypeCode=code), snapshot)
        assert result.type_code == code[:CLASSIFIED_CODE_MAX_LENGTH]
        assert result.has_issue(IssueCode.TYPE_CODE_TRUNCATED)
        assert result.has_issue(IssueCode.UNKNOWN_TYPE_CODE)
        assert result.confidence == 0.0


class TestDifficulty:

    def test_below_band_clamped_up_to_min(self, snapshot):
        result = validate_classification(response(difficulty=1), snapshot)
        assert result.difficulty == 2
        assert result.has_issue(IssueCode.DIFFICULTY_CLAMPED)
        assert result.confidence == 0.9

    def test_above_band_clamped_to_max(self, snapshot):
        result = validate_classification(response(difficulty=5), snapshot)
        assert result.difficulty == 4

    def test_outside_scale_clamped_for_unknown_type(self, snapshot):
        result = validate_classification(response(expandedTypeCode="MA-X-Y-1-1", difficulty=9), snapshot)
        assert result.difficulty == 5

    def test_clamp_is_warning_not_error(self, snapshot):
        result = validate_classification(response(difficulty=1), snapshot)
        assert [i.severity for i in result.issues] == ["warning"]

    def test_missing_difficulty_uses_type_min(self, snapshot):
        result = validate_classification(response(difficulty=None), snapshot)
        assert result.difficulty == 2
        assert result.has_issue(IssueCode.MISSING_FIELD)
        assert result.confidence == 0.0

    def test_fractional_difficulty_rounded_with_warning(self, snapshot):
        result = validate_classification(response(difficulty=3.4), snapshot)
        assert result.difficulty == 3
        assert result.has_issue(IssueCode.DIFFICULTY_CLAMPED)
        assert result.confidence == 0.9

    def test_integral_float_and_string_accepted_silently(self, snapshot):
        assert validate_classification(response(difficulty=3.0), snapshot).issues == []
        assert validate_classification(response(difficulty="3"), snapshot).issues == []


class TestCognitive:

    def test_invalid_domain_repaired_from_type(self, snapshot):
        result = validate_classification(
            response(expandedTypeCode="MA-HS0-POL-02-001", cognitiveDomain="GUESSING"), snapshot
        )
        assert result.cognitive_domain == "UNDERSTANDING"
        assert result.has_issue(IssueCode.COGNITIVE_REPAIRED)


class TestFullMode:

    def test_wrong_arithmetic_recomputed(self, snapshot):
        scoring = dict(FULL_SCORES, total=12, grade="상")
        result = validate_classification(response(difficultyScoring=scoring), snapshot, mode="full")
        assert result.difficulty_scoring["total"] == 7
        assert result.difficulty_scoring["grade"] == "중하"
        assert result.has_issue(IssueCode.SCORING_RECOMPUTED)

    def test_consistent_scoring_not_flagged(self, snapshot):
        scoring = dict(FULL_SCORES, total=7, grade="중하")
        result = validate_classification(response(difficultyScoring=scoring), snapshot, mode="full")
        assert not result.has_issue(IssueCode.SCORING_RECOMPUTED)
        assert result.difficulty_scoring["total"] == 7

    def test_out_of_domain_sub_score_rejected(self, snapshot):
        scoring = dict(FULL_SCORES, conceptCount=7)
        result = validate_classification(response(difficultyScoring=scoring), snapshot, mode="full")
        assert result.difficulty_scoring is None
        assert result.has_issue(IssueCode.SCORING_INVALID)

    def test_missing_scoring_flagged(self, snapshot):
        result = validate_classification(response(), snapshot, mode="full")
        assert result.difficulty_scoring is None
        assert result.has_issue(IssueCode.SCORING_MISSING)

    def test_light_mode_ignores_scoring(self, snapshot):
        result = validate_classification(response(difficultyScoring=FULL_SCORES), snapshot, mode="light")
        assert result.difficulty_scoring is None


class TestMalformed:

    def test_non_object_rejected(self, snapshot):
        with pytest.raises(ModelResponseError):
            validate_classification(["not", "an", "object"], snapshot)

    def test_parse_strips_markdown_fence(self):
        assert parse_model_json('```json\n{"a": 1}\n```') == {"a": 1}

    def test_parse_rejects_prose(self):
        with pytest.raises(ModelResponseError):
            parse_model_json("I could not classify this problem.")


class TestSolution:

    def test_steps_answer_and_correction_carried(self, snapshot):
        raw = response()
        raw["solution"] = {
            "approach": "합차 공식",
            "steps": [
                {"stepNumber": 1, "description": "합차 공식 적용", "latex": "$x^2-1=(x+1)(x-1)$"},
                {"stepNumber": 2, "description": "정리"},
            ],
            "finalAnswer": "(x+1)(x-1)",
        }
        raw["correctedContent"] = "$x^2-1$ 을 인수분해하시오."
        result = validate_classification(raw, snapshot)
        assert result.solution_latex == "합차 공식\n\n1. 합차 공식 적용\n$x^2-1=(x+1)(x-1)$\n\n2. 정리"
        assert result.final_answer == "(x+1)(x-1)"
        assert result.corrected_content == "$x^2-1$ 을 인수분해하시오."

    def test_null_correction_and_missing_solution(self, snapshot):
        raw = response()
        raw["correctedContent"] = None
        result = validate_classification(raw, snapshot)
        assert result.solution_latex is None
        assert result.final_answer is None
        assert result.corrected_content is None

    def test_numeric_answer_kept_as_text(self, snapshot):
        raw = response()
        raw["solution"] = {"finalAnswer": 12}
        assert validate_classification(raw, snapshot).final_answer == "12"


class TestLogging:

    def test_issues_logged_under_module_logger(self, snapshot, caplog):
        with caplog.at_level("WARNING", logger="classification.result_validator"):
            validate_classification(response(difficulty=1), snapshot)
        assert [r.name for r in caplog.records] == ["classification.result_validator"]
