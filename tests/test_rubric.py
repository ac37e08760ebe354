"""
Tests for the six-axis difficulty rubric.
"""

import pytest

from classification.rubric import (
    RubricScoreError, grade_band_text, grade_for_total, score_difficulty,
)


def scores(**overrides):
    base = dict(
        conceptCount=1, stepCount=1, calcComplexity=1, thinkingLevel=1,
        dataInterpretation=0, trapMisconception=0,
    )
    base.update(overrides)
    return base


class TestGradeBands:

    @pytest.mark.parametrize("total,grade", [
        (3, "하"), (5, "하"),
        (6, "중하"), (7, "중하"),
        (8, "중"), (9, "중"),
        (10, "중상"), (11, "중상"),
        (12, "상"), (16, "상"),
    ])
    def test_boundaries(self, total, grade):
        assert grade_for_total(total) == grade

    def test_total_below_first_band_is_lowest_grade(self):
        assert grade_for_total(0) == "하"

    def test_band_text(self):
        assert grade_band_text() == "하(3~5점), 중하(6~7점), 중(8~9점), 중상(10~11점), 상(12+점)"


class TestScoring:

    def test_total_five_is_ha(self):
        result = score_difficulty(scores(stepCount=2, calcComplexity=1, dataInterpretation=0))
        assert result.total == 5
        assert result.grade == "하"

    def test_total_six_is_jungha(self):
        result = score_difficulty(scores(stepCount=2, thinkingLevel=2))
        assert result.total == 6
        assert result.grade == "중하"

    def test_maximum(self):
        result = score_difficulty(scores(
            conceptCount=3, stepCount=3, calcComplexity=3, thinkingLevel=3,
            dataInterpretation=2, trapMisconception=2,
        ))
        assert result.total == 16
        assert result.grade == "상"

    def test_repeatable(self):
        s = scores(conceptCount=2, trapMisconception=2)
        assert score_difficulty(s) == score_difficulty(s)

    def test_extra_keys_ignored(self):
        result = score_difficulty(scores(total=99, grade="상"))
        assert result.total == 4
        assert result.grade == "하"

    def test_to_dict_has_all_axes(self):
        d = score_difficulty(scores()).to_dict()
        assert set(d) == {
            "conceptCount", "stepCount", "calcComplexity", "thinkingLevel",
            "dataInterpretation", "trapMisconception", "total", "grade",
        }


class TestDomainErrors:

    def test_out_of_domain_rejected_not_clamped(self):
        with pytest.raises(RubricScoreError) as exc_info:
            score_difficulty(scores(conceptCount=4))
        assert "conceptCount" in str(exc_info.value)

    def test_zero_on_one_based_axis_rejected(self):
        with pytest.raises(RubricScoreError):
            score_difficulty(scores(stepCount=0))

    def test_missing_axis_rejected(self):
        s = scores()
        del s["trapMisconception"]
        with pytest.raises(RubricScoreError):
            score_difficulty(s)

    def test_non_integer_rejected(self):
        with pytest.raises(RubricScoreError):
            score_difficulty(scores(calcComplexity="2"))
        with pytest.raises(RubricScoreError):
            score_difficulty(scores(dataInterpretation=True))

    def test_all_problems_reported(self):
        with pytest.raises(RubricScoreError) as exc_info:
            score_difficulty(scores(conceptCount=9, dataInterpretation=-1))
        assert len(exc_info.value.problems) == 2
