"""
aggregate.py — Best-N subject selection and aggregate categorization.

The aggregate is the sum of grade values over a student's best subjects
(default six). Lower is better: 6 is the best possible with six subjects.
A student with fewer graded subjects than best_n is aggregated over what
exists; nothing is padded.
"""

from typing import Sequence, Tuple

from nrtgrading.config import UNCATEGORIZED, CategoryBand, GradingConfiguration
from nrtgrading.models import AggregateResult, ComputedSubjectResult


def _selection_key(result: ComputedSubjectResult):
    return (result.grade_value, -result.final_composite_score, result.subject)


def select_best(
    results: Sequence[ComputedSubjectResult], count: int
) -> Tuple[ComputedSubjectResult, ...]:
    """Best `count` results: lowest grade value first, higher raw score wins a tie."""
    return tuple(sorted(results, key=_selection_key)[:count])


def categorize(aggregate: float, bands: Sequence[CategoryBand]) -> str:
    for band in bands:
        if band.contains(aggregate):
            return band.label
    return UNCATEGORIZED


def compute_aggregate(
    subject_results: Sequence[ComputedSubjectResult], config: GradingConfiguration
) -> AggregateResult:
    best = select_best(subject_results, config.best_n)
    aggregate = sum(r.grade_value for r in best)
    # A student with no graded subject has no aggregate to place in a band.
    category = categorize(aggregate, config.category_thresholds) if best else UNCATEGORIZED
    return AggregateResult(best_six=best, aggregate=aggregate, category=category)


def split_core_electives(
    best: Sequence[ComputedSubjectResult], core_subjects: Sequence[str]
) -> Tuple[Tuple[ComputedSubjectResult, ...], Tuple[ComputedSubjectResult, ...]]:
    """Partition the selected subjects into (core, elective), keeping selection order."""
    core = tuple(r for r in best if r.subject in core_subjects)
    electives = tuple(r for r in best if r.subject not in core_subjects)
    return core, electives
