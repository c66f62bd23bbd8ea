"""
pipeline.py — End-to-end cohort processing.

Stage 1 builds cohort statistics for every subject; stage 2 grades each
student against them; a final pass ranks the cohort. Nothing is cached:
every call recomputes from the raw entries, so repeated runs on the same
input give identical results.
"""

import logging
import math
from typing import Dict, Mapping, Optional, Sequence

from nrtgrading.aggregate import compute_aggregate, split_core_electives
from nrtgrading.config import GradingConfiguration
from nrtgrading.grading import compute_subject_result
from nrtgrading.models import (
    CohortResult,
    ProcessedStudent,
    SeriesRecord,
    StudentId,
    StudentRecord,
    SubjectPopulationStats,
)
from nrtgrading.ranking import rank_cohort
from nrtgrading.stats import build_statistics

logger = logging.getLogger(__name__)


def process_student(
    record: StudentRecord,
    statistics: Mapping[str, SubjectPopulationStats],
    config: GradingConfiguration,
) -> ProcessedStudent:
    """Grade one student against precomputed cohort statistics. Rank stays 0."""
    results = tuple(
        compute_subject_result(entry, statistics.get(entry.subject), config)
        for entry in record.entries
        if entry.is_recorded
    )
    if len(results) < config.best_n:
        logger.info(
            "Student %s has %d graded subjects (< %d); aggregate is partial.",
            record.student_id, len(results), config.best_n,
        )

    total = math.fsum(r.final_composite_score for r in results) / len(results) if results else 0.0
    aggregate = compute_aggregate(results, config)
    core, electives = split_core_electives(aggregate.best_six, config.core_subjects)

    return ProcessedStudent(
        student_id=record.student_id,
        name=record.name,
        gender=record.gender,
        subjects=results,
        total_score=total,
        best_six=aggregate.best_six,
        best_six_aggregate=aggregate.aggregate,
        category=aggregate.category,
        best_core_subjects=core,
        best_elective_subjects=electives,
    )


def process_cohort(cohort: Sequence[StudentRecord], config: Optional[GradingConfiguration] = None) -> CohortResult:
    """Statistics, per-student grading and ranking for a whole cohort."""
    config = config or GradingConfiguration()
    if not cohort:
        logger.warning("Empty cohort; nothing to grade.")
        return CohortResult(statistics={}, students=())

    statistics = build_statistics(cohort, config)
    logger.debug("Built statistics for %d subjects over %d students.", len(statistics), len(cohort))

    processed = [process_student(record, statistics, config) for record in cohort]
    ranked = rank_cohort(processed, config)
    logger.debug("Ranked %d students (display order %s).", len(ranked), config.sort_order)

    return CohortResult(statistics=statistics, students=tuple(ranked))


def build_series_snapshot(result: CohortResult, series: str, date: str) -> Dict[StudentId, SeriesRecord]:
    """
    Per-student records for the series history of `series`.

    Each subject summary pairs the cohort mean of that subject with the
    student's grade.
    """
    snapshot: Dict[StudentId, SeriesRecord] = {}
    for student in result.students:
        summary = {}
        for subject in student.subjects:
            stats = result.statistics.get(subject.subject)
            summary[subject.subject] = (
                stats.mean if stats is not None else subject.final_composite_score,
                subject.grade,
            )
        snapshot[student.student_id] = SeriesRecord(
            series=series,
            aggregate=student.best_six_aggregate,
            rank=student.rank,
            date=date,
            category=student.category,
            subject_summary=summary,
        )
    return snapshot
