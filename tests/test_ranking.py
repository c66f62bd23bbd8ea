"""
Tests for nrtgrading/ranking.py — competition ranking and display orders.
"""

import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from nrtgrading.config import GradingConfiguration
from nrtgrading.models import ComputedSubjectResult, ProcessedStudent
from nrtgrading.ranking import assign_ranks, rank_cohort

_SUBJECT = ComputedSubjectResult(
    subject="Mathematics", section_a=None, section_b=None, sba_score=None,
    exam_score=0.0, final_composite_score=0.0, z_score=0.0, grade="C4", grade_value=4,
)


def _student(sid, name, aggregate, total, graded=True):
    return ProcessedStudent(
        student_id=sid,
        name=name,
        subjects=(_SUBJECT,) if graded else (),
        total_score=total,
        best_six=(),
        best_six_aggregate=aggregate,
        category="Pass",
    )


@pytest.fixture
def cohort():
    return [
        _student(4, "Dede", 12, 90.0),
        _student(1, "Abena", 10, 70.0),
        _student(3, "Efua", 10, 65.0),
        _student(2, "Kwame", 10, 70.0),
        _student(5, "Yaw", 30, 40.0),
    ]


class TestAssignRanks:
    """Standard competition ranking ("1224")."""

    def test_engineered_tie(self, cohort):
        ranks = {s.student_id: s.rank for s in assign_ranks(cohort)}
        assert ranks[1] == 1
        assert ranks[2] == 1
        assert ranks[3] == 3
        assert ranks[4] == 4
        assert ranks[5] == 5

    def test_next_rank_skips_tied_count(self):
        students = [_student(i, f"P{i}", 8, 75.0) for i in range(3)] + [_student(9, "Last", 9, 99.0)]
        ranked = assign_ranks(students)
        assert [s.rank for s in ranked] == [1, 1, 1, 4]

    def test_total_score_breaks_aggregate_tie(self):
        ranked = assign_ranks([_student(1, "A", 10, 60.0), _student(2, "B", 10, 61.0)])
        assert [(s.student_id, s.rank) for s in ranked] == [(2, 1), (1, 2)]

    def test_ungraded_students_rank_last(self):
        ranked = assign_ranks([_student(1, "Absent", 0, 0.0, graded=False), _student(2, "Sat", 40, 30.0)])
        assert [(s.student_id, s.rank) for s in ranked] == [(2, 1), (1, 2)]

    def test_returns_new_objects(self, cohort):
        ranked = assign_ranks(cohort)
        assert all(s.rank == 0 for s in cohort)
        assert all(s.rank > 0 for s in ranked)


class TestRankCohort:
    """Display order never changes the rank field."""

    def test_default_order_is_rank(self, cohort):
        ranked = rank_cohort(cohort, GradingConfiguration())
        assert [s.rank for s in ranked] == [1, 1, 3, 4, 5]

    @pytest.mark.parametrize("order,expected", [
        ("name-asc", ["Abena", "Dede", "Efua", "Kwame", "Yaw"]),
        ("name-desc", ["Yaw", "Kwame", "Efua", "Dede", "Abena"]),
        ("id-asc", ["Abena", "Kwame", "Efua", "Dede", "Yaw"]),
        ("score-desc", ["Dede", "Abena", "Kwame", "Efua", "Yaw"]),
    ])
    def test_display_orders(self, cohort, order, expected):
        ranked = rank_cohort(cohort, GradingConfiguration(sort_order=order))
        assert [s.name for s in ranked] == expected
        ranks = {s.student_id: s.rank for s in ranked}
        assert ranks == {1: 1, 2: 1, 3: 3, 4: 4, 5: 5}

    def test_mixed_id_types(self):
        students = [_student("B7", "X", 10, 1.0), _student(3, "Y", 10, 2.0), _student(12, "Z", 10, 3.0)]
        ranked = rank_cohort(students, GradingConfiguration(sort_order="id-asc"))
        assert [s.student_id for s in ranked] == [3, 12, "B7"]
