"""
Tests for nrtgrading/grading.py — blending, normalization, z-scores, threshold walk.
"""

import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from nrtgrading.config import GradingConfiguration, NormalizationConfig, SBAConfig
from nrtgrading.grading import (
    assign_grade,
    blend_score,
    compute_subject_result,
    walk_thresholds,
    z_score,
)
from nrtgrading.models import RawScoreEntry, SubjectPopulationStats


@pytest.fixture
def config():
    return GradingConfiguration()


@pytest.fixture
def no_sba():
    return GradingConfiguration(sba=SBAConfig(enabled=False))


def _stats(mean, sd, subject="Mathematics"):
    return SubjectPopulationStats(subject=subject, mean=mean, standard_deviation=sd, count=10)


class TestBlendScore:
    """SBA weighting and pass-through."""

    def test_full_marks_blend_to_100(self, config):
        entry = RawScoreEntry("Mathematics", section_a=40, section_b=60, sba_score=100)
        assert blend_score(entry, config) == pytest.approx(100.0)

    def test_zero_sba_caps_at_exam_weight(self, config):
        entry = RawScoreEntry("Mathematics", section_a=40, section_b=60, sba_score=0)
        assert blend_score(entry, config) == pytest.approx(70.0)

    def test_missing_sba_counts_as_zero(self, config):
        entry = RawScoreEntry("Mathematics", section_a=20, section_b=30)
        assert blend_score(entry, config) == pytest.approx(35.0)

    def test_sba_disabled_passes_exam_through(self, no_sba):
        entry = RawScoreEntry("Science", section_a=30, section_b=45, sba_score=90)
        assert blend_score(entry, no_sba) == pytest.approx(75.0)

    def test_locked_sba_passes_exam_through(self):
        config = GradingConfiguration(sba=SBAConfig(is_locked=True))
        entry = RawScoreEntry("Science", section_a=30, section_b=45, sba_score=90)
        assert blend_score(entry, config) == pytest.approx(75.0)


class TestNormalization:
    """Single-subject rescaling from a nonstandard paper ceiling."""

    def test_rescales_matching_subject(self):
        config = GradingConfiguration(
            sba=SBAConfig(enabled=False),
            normalization=NormalizationConfig(enabled=True, subject="Mathematics", max_score=50),
        )
        entry = RawScoreEntry("Mathematics", section_a=20, section_b=20)
        assert blend_score(entry, config) == pytest.approx(80.0)

    def test_other_subjects_untouched(self):
        config = GradingConfiguration(
            sba=SBAConfig(enabled=False),
            normalization=NormalizationConfig(enabled=True, subject="Mathematics", max_score=50),
        )
        entry = RawScoreEntry("Science", section_a=20, section_b=20)
        assert blend_score(entry, config) == pytest.approx(40.0)

    def test_disabled_normalization_ignored(self, no_sba):
        entry = RawScoreEntry("Mathematics", section_a=20, section_b=20)
        assert blend_score(entry, no_sba) == pytest.approx(40.0)


class TestZScore:
    def test_standard_case(self):
        assert z_score(80, 70, 5) == pytest.approx(2.0)

    def test_zero_std_dev_is_zero(self):
        assert z_score(55, 70, 0) == 0.0
        assert z_score(70, 70, 0.0) == 0.0


class TestWalkThresholds:
    """The walk is shared by z-score and percentage modes."""

    @pytest.mark.parametrize("value,expected", [
        (3.0, ("A1", 1)),
        (1.645, ("A1", 1)),
        (1.644, ("B2", 2)),
        (0.524, ("B3", 3)),
        (0.0, ("C4", 4)),
        (-0.5, ("C5", 5)),
        (-1.2, ("D7", 7)),
        (-2.326, ("E8", 8)),
        (-2.4, ("F9", 9)),
    ])
    def test_default_z_scale(self, config, value, expected):
        assert walk_thresholds(value, config.grading_thresholds, config.floor_grade) == expected


class TestComputeSubjectResult:
    """End-to-end per-subject grading."""

    def test_z_score_mode(self, no_sba):
        entry = RawScoreEntry("Mathematics", section_a=35, section_b=45)
        result = compute_subject_result(entry, _stats(60, 10), no_sba)
        assert result.final_composite_score == pytest.approx(80.0)
        assert result.z_score == pytest.approx(2.0)
        assert result.grade == "A1"
        assert result.grade_value == 1
        assert result.exam_score == pytest.approx(80.0)

    def test_zero_std_dev_gives_mid_grade(self, no_sba):
        entry = RawScoreEntry("Mathematics", section_a=35, section_b=45)
        result = compute_subject_result(entry, _stats(50, 0), no_sba)
        assert result.z_score == 0.0
        assert result.grade == "C4"

    def test_missing_stats_uses_degenerate_reference(self, config):
        entry = RawScoreEntry("French", section_a=12, section_b=30, sba_score=70, remark="Keen interest.")
        result = compute_subject_result(entry, None, config)
        assert result.z_score == 0.0
        assert result.grade == "C4"
        assert result.grade_value == 4
        assert result.remark == "Keen interest."

    @pytest.mark.parametrize("a,b,grade", [
        (40, 42, "A1"),
        (30, 30, "C4"),
        (20, 19, "F9"),
    ])
    def test_percentage_mode(self, a, b, grade):
        config = GradingConfiguration(sba=SBAConfig(enabled=False), use_t_distribution=False)
        entry = RawScoreEntry("Science", section_a=a, section_b=b)
        result = compute_subject_result(entry, _stats(90, 1, "Science"), config)
        assert result.grade == grade

    def test_grade_is_monotonic_in_score(self, no_sba):
        stats = _stats(50, 12)
        previous = None
        for score in range(0, 101):
            a = min(score, 40)
            entry = RawScoreEntry("Mathematics", section_a=a, section_b=score - a)
            value = compute_subject_result(entry, stats, no_sba).grade_value
            if previous is not None:
                assert value <= previous
            previous = value

    def test_negative_score_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            RawScoreEntry("Mathematics", section_a=-1)


class TestCutPointResidue:
    """Floating-point residue from blending must not drop a score below a cut it sits on."""

    def test_z_residue_below_zero_meets_c4(self, config):
        assert assign_grade(55.0, -2.07e-15, config) == ("C4", 4)

    def test_z_residue_below_a1_cut_meets_a1(self, config):
        assert assign_grade(90.0, 1.645 - 1e-13, config) == ("A1", 1)

    def test_percentage_residue_meets_cut(self):
        config = GradingConfiguration(sba=SBAConfig(enabled=False), use_t_distribution=False)
        assert assign_grade(59.99999999999999, 0.0, config) == ("C4", 4)
        assert assign_grade(59.9999, 0.0, config) == ("C5", 5)

    def test_reported_z_is_rounded(self):
        assert z_score(70.00000000000001, 70.0, 8.0) == 0.0
