"""
Tests for building the Level → Domain → Standard → Type tree from flat rows.
"""

import pytest

from conftest import make_type
from taxonomy.schemas import DuplicateTypeCodeError, TaxonomySnapshot
from taxonomy.tree_builder import build_type_tree, count_standards, flatten_tree, index_paths


class TestTreeShape:

    def test_flatten_recovers_input_set(self, sample_types):
        tree = build_type_tree(sample_types)
        flat = flatten_tree(tree)
        assert len(flat) == len(sample_types)
        assert {t.type_code for t in flat} == {t.type_code for t in sample_types}

    def test_one_level_node_per_distinct_level_code(self, sample_types):
        tree = build_type_tree(sample_types)
        assert len(tree) == len({t.level_code for t in sample_types})

    def test_every_type_sits_under_its_own_path(self, sample_types):
        paths = index_paths(build_type_tree(sample_types))
        for t in sample_types:
            assert paths[t.type_code] == (t.level_code, t.domain_code, t.standard_code)

    def test_node_order_follows_first_occurrence(self, sample_types):
        tree = build_type_tree(sample_types)
        assert [level.level_code for level in tree] == ["HS0", "MS"]
        assert [d.domain_code for d in tree[0].domains] == ["POL", "EQU"]

    def test_types_within_standard_sorted_by_code(self, sample_types):
        tree = build_type_tree(sample_types)
        first_standard = tree[0].domains[0].standards[0]
        assert [t.type_code for t in first_standard.types] == ["MA-HS0-POL-01-001", "MA-HS0-POL-01-002"]

    def test_counts_roll_up(self, sample_types):
        tree = build_type_tree(sample_types)
        hs0 = tree[0]
        assert hs0.type_count == 4
        assert hs0.domain_count == 2
        pol = hs0.domains[0]
        assert pol.standard_count == 2
        assert pol.type_count == 3
        assert sum(s.type_count for s in pol.standards) == pol.type_count

    def test_labels_fall_back_to_record_fields(self):
        tree = build_type_tree([make_type("MA-XX9-ZZZ-01-001", subject="특수과목", area="특수영역")])
        assert tree[0].label == "특수과목"
        assert tree[0].domains[0].label == "특수영역"

    def test_known_codes_use_label_table(self, sample_types):
        tree = build_type_tree(sample_types)
        assert tree[0].label == "고등 공통(수학)"
        assert tree[0].domains[0].label == "다항식"


class TestDeterminism:

    def test_rebuild_is_identical(self, sample_types):
        assert build_type_tree(sample_types) == build_type_tree(sample_types)

    def test_input_is_not_mutated(self, sample_types):
        before = list(sample_types)
        build_type_tree(sample_types)
        assert sample_types == before

    def test_empty_input_gives_empty_tree(self):
        assert build_type_tree([]) == []


class TestDuplicates:

    def test_duplicate_code_rejected(self, sample_types):
        with pytest.raises(DuplicateTypeCodeError) as exc_info:
            build_type_tree(sample_types + [make_type("MA-HS0-POL-01-001")])
        assert exc_info.value.codes == ["MA-HS0-POL-01-001"]

    def test_snapshot_rejects_duplicates(self, sample_types):
        with pytest.raises(DuplicateTypeCodeError):
            TaxonomySnapshot(sample_types + [sample_types[0]])


def test_count_standards(sample_types):
    assert count_standards(sample_types) == 4


def test_snapshot_drops_inactive_and_sorts(sample_types):
    inactive = make_type("MA-HS0-POL-09-001", is_active=False)
    snapshot = TaxonomySnapshot(sample_types + [inactive])
    assert "MA-HS0-POL-09-001" not in snapshot
    codes = [t.type_code for t in snapshot]
    assert codes == sorted(codes)
    assert len(snapshot.for_level("MS")) == 1
