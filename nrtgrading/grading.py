"""
grading.py — Score blending and grade assignment for one subject.

Steps per entry:
- Optional normalization of a subject's exam total from a nonstandard paper ceiling
- Blending of exam sections with the SBA component
- z-score standardization against the cohort statistics
- Threshold walk from the best grade downward (z-score or raw-percentage mode)
"""

import logging
from typing import Optional, Sequence, Tuple

from nrtgrading.config import GradingConfiguration
from nrtgrading.models import ComputedSubjectResult, RawScoreEntry, SubjectPopulationStats

logger = logging.getLogger(__name__)

# Measures are rounded to this many places before the threshold walk.
GRADE_PRECISION = 9


# ── Blending ────────────────────────────────────────────────────────

def normalized_exam_total(entry: RawScoreEntry, config: GradingConfiguration) -> float:
    """Exam total (section A + B), rescaled when normalization targets this subject."""
    total = entry.exam_total
    norm = config.normalization
    if norm.applies_to(entry.subject):
        total = total / norm.max_score * config.exam_ceiling
    return total


def blend_score(entry: RawScoreEntry, config: GradingConfiguration) -> float:
    """
    Composite score on a 0–100 scale.

    With SBA blending on: exam scaled to exam_weight plus SBA (0–100) scaled
    to sba_weight. Otherwise the exam total passes through unchanged.
    """
    exam_total = normalized_exam_total(entry, config)
    if not config.sba.blends or config.exam_ceiling <= 0:
        return exam_total

    exam_component = exam_total / config.exam_ceiling * config.sba.exam_weight
    sba_component = (entry.sba_score or 0.0) / 100.0 * config.sba.sba_weight
    return exam_component + sba_component


# ── Standardization ─────────────────────────────────────────────────

def z_score(score: float, mean: float, standard_deviation: float) -> float:
    if standard_deviation == 0:
        return 0.0
    return round((score - mean) / standard_deviation, GRADE_PRECISION)


def degenerate_stats(subject: str, score: float) -> SubjectPopulationStats:
    """Stand-in statistics for a subject nobody else in the cohort attempted."""
    return SubjectPopulationStats(subject=subject, mean=score, standard_deviation=0.0, count=1)


# ── Grade assignment ────────────────────────────────────────────────

def walk_thresholds(
    value: float, thresholds: Sequence[Tuple[float, str]], floor_grade: str
) -> Tuple[str, int]:
    """
    Return (label, grade_value) for the first cut point `value` meets.

    `thresholds` must already be ordered best grade first; anything below
    the last cut gets `floor_grade`.
    """
    for position, (cut, label) in enumerate(thresholds, start=1):
        if value >= cut:
            return label, position
    return floor_grade, len(thresholds) + 1


def assign_grade(composite: float, z: float, config: GradingConfiguration) -> Tuple[str, int]:
    measure = z if config.use_t_distribution else composite
    measure = round(measure, GRADE_PRECISION)
    return walk_thresholds(measure, config.active_thresholds, config.floor_grade)


def compute_subject_result(
    entry: RawScoreEntry,
    stats: Optional[SubjectPopulationStats],
    config: GradingConfiguration,
) -> ComputedSubjectResult:
    """Blend, standardize and grade a single subject entry."""
    composite = blend_score(entry, config)
    if stats is None:
        logger.warning("No cohort statistics for %s; grading against a degenerate reference.", entry.subject)
        stats = degenerate_stats(entry.subject, composite)

    z = z_score(composite, stats.mean, stats.standard_deviation)
    grade, grade_value = assign_grade(composite, z, config)

    return ComputedSubjectResult(
        subject=entry.subject,
        section_a=entry.section_a,
        section_b=entry.section_b,
        sba_score=entry.sba_score,
        exam_score=normalized_exam_total(entry, config),
        final_composite_score=composite,
        z_score=z,
        grade=grade,
        grade_value=grade_value,
        remark=entry.remark,
    )
