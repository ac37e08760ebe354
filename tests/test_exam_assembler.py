"""
Tests for difficulty-distribution exam assembly.

Selection is random, so properties are checked independently of shuffle order,
or with an injected seeded random.Random.
"""

import random
from collections import Counter

import pytest

from database import crud, models
from generation.exam_assembler import (
    Candidate, NoCandidatesError, NoMatchingProblemsError, UnknownBucketError,
    assemble_exam, select_problems,
)

TEN_POOL_DIFFICULTIES = [5, 5, 4, 4, 4, 3, 3, 2, 1, 1]


@pytest.fixture
def pool():
    return [Candidate(problem_id=i + 1, difficulty=d) for i, d in enumerate(TEN_POOL_DIFFICULTIES)]


def difficulties(pool, ids):
    by_id = {c.problem_id: c.difficulty for c in pool}
    return Counter(by_id[i] for i in ids)


class TestSelection:

    @pytest.mark.parametrize("seed", range(20))
    def test_exact_distribution_any_shuffle(self, pool, seed):
        result = select_problems(pool, {"상": 2, "중": 1, "하": 1}, rng=random.Random(seed))
        assert difficulties(pool, result.problem_ids) == Counter({4: 2, 3: 1, 2: 1})
        assert len(result.problem_ids) == 4
        assert result.shortfalls == []

    def test_default_rng(self, pool):
        result = select_problems(pool, {"최하": 2})
        assert difficulties(pool, result.problem_ids) == Counter({1: 2})

    def test_no_duplicates(self, pool):
        result = select_problems(pool, {"최상": 2, "상": 3, "중": 2, "하": 1, "최하": 2}, rng=random.Random(1))
        assert sorted(result.problem_ids) == list(range(1, 11))

    def test_buckets_selected_in_request_order(self, pool):
        result = select_problems(pool, {"하": 1, "최상": 2}, rng=random.Random(3))
        by_id = {c.problem_id: c.difficulty for c in pool}
        assert [by_id[i] for i in result.problem_ids] == [2, 5, 5]

    def test_same_seed_same_selection(self, pool):
        request = {"상": 2, "최하": 1}
        assert select_problems(pool, request, rng=random.Random(42)).problem_ids == \
            select_problems(pool, request, rng=random.Random(42)).problem_ids

    def test_pool_not_mutated(self, pool):
        before = list(pool)
        select_problems(pool, {"상": 1}, rng=random.Random(0))
        assert pool == before

    def test_zero_count_bucket_ignored(self, pool):
        result = select_problems(pool, {"상": 1, "중": 0}, rng=random.Random(0))
        assert difficulties(pool, result.problem_ids) == Counter({4: 1})


class TestShortfall:

    def test_takes_what_exists_without_backfill(self):
        pool = [Candidate(1, 5), Candidate(2, 4), Candidate(3, 4), Candidate(4, 3)]
        result = select_problems(pool, {"최상": 5}, rng=random.Random(0))
        assert result.problem_ids == [1]
        assert result.requested_total == 5
        assert len(result.shortfalls) == 1
        shortfall = result.shortfalls[0]
        assert (shortfall.bucket, shortfall.requested, shortfall.selected) == ("최상", 5, 1)
        assert result.warnings == ["최상: requested 5, only 1 available"]

    def test_unclassified_problems_never_match(self):
        pool = [Candidate(1, None), Candidate(2, 3)]
        result = select_problems(pool, {"중": 2}, rng=random.Random(0))
        assert result.problem_ids == [2]


class TestFailures:

    def test_empty_pool(self):
        with pytest.raises(NoCandidatesError):
            select_problems([], {"중": 1})

    def test_nothing_matches(self, pool):
        with pytest.raises(NoMatchingProblemsError):
            select_problems([c for c in pool if c.difficulty != 3], {"중": 2})

    def test_unknown_bucket(self, pool):
        with pytest.raises(UnknownBucketError):
            select_problems(pool, {"어려움": 1})

    def test_negative_count(self, pool):
        with pytest.raises(UnknownBucketError):
            select_problems(pool, {"상": -1})

    def test_nothing_requested(self, pool):
        with pytest.raises(UnknownBucketError):
            select_problems(pool, {"상": 0})

    def test_bad_bucket_reported_before_empty_pool(self):
        with pytest.raises(UnknownBucketError):
            select_problems([], {"어려움": 1})


class TestAssembleExam:

    def test_persists_exam_and_ordered_links(self, db, make_problem):
        for d in TEN_POOL_DIFFICULTIES:
            make_problem(difficulty=d)

        exam, selection = assemble_exam(
            db, title="1학기 중간", subject="수학", chapters=["다항식"],
            distribution={"상": 2, "중": 1, "하": 1}, created_by="teacher-1",
            rng=random.Random(7),
        )

        stored = crud.get_exam(db, exam.id)
        assert stored.problem_count == 4
        assert len(stored.problems) == stored.problem_count
        assert [link.order_index for link in stored.problems] == [1, 2, 3, 4]
        assert [link.problem_id for link in stored.problems] == selection.problem_ids
        assert {link.points for link in stored.problems} == {4}
        assert stored.status == models.ExamStatus.DRAFT
        assert stored.created_by == "teacher-1"

    def test_filters_subject_chapter_and_inactive(self, db, make_problem):
        wanted = make_problem(difficulty=3, chapter="다항식")
        make_problem(difficulty=3, chapter="함수")
        make_problem(difficulty=3, subject="물리")
        make_problem(difficulty=3, is_active=False)

        exam, _ = assemble_exam(
            db, title="t", subject="수학", chapters=["다항식"], distribution={"중": 5},
        )
        assert [link.problem_id for link in crud.get_exam(db, exam.id).problems] == [wanted.id]

    def test_empty_pool_creates_no_exam(self, db):
        with pytest.raises(NoCandidatesError):
            assemble_exam(db, title="t", subject="수학", chapters=[], distribution={"중": 1})
        assert db.query(models.Exam).count() == 0

    def test_no_match_creates_no_exam(self, db, make_problem):
        make_problem(difficulty=1)
        with pytest.raises(NoMatchingProblemsError):
            assemble_exam(db, title="t", subject="수학", chapters=[], distribution={"최상": 1})
        assert db.query(models.Exam).count() == 0


class TestAtomicWrite:

    def test_failed_link_write_leaves_no_exam(self, db, make_problem):
        p = make_problem(difficulty=3)
        # the same problem twice violates uq_exam_problem on the link rows
        with pytest.raises(crud.ExamPersistenceError):
            crud.create_exam_with_problems(db, title="broken", problem_ids=[p.id, p.id], points=4)
        assert db.query(models.Exam).count() == 0
        assert db.query(models.ExamProblem).count() == 0

    def test_count_always_matches_links(self, db, make_problem):
        ids = [make_problem(difficulty=2).id for _ in range(3)]
        exam = crud.create_exam_with_problems(db, title="ok", problem_ids=ids, points=5)
        assert exam.problem_count == db.query(models.ExamProblem).filter_by(exam_id=exam.id).count() == 3
