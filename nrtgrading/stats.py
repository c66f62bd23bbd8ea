"""
stats.py — Cohort statistics with numpy/scipy.

Computes:
- Per-subject population mean / standard deviation of the blended composite
- Per-section (objective / theory) means and standard deviations
- Per-subject analytics: quality-pass rate, strength index, section correlation
- Cohort summary for the institutional performance ledger
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy import stats as sp_stats

from nrtgrading.config import QUALITY_PASS_GRADE_VALUE, GradingConfiguration
from nrtgrading.grading import blend_score
from nrtgrading.models import ProcessedStudent, StudentRecord, SubjectPopulationStats


# ── Helpers ─────────────────────────────────────────────────────────

def _safe_float(val) -> Optional[float]:
    """Convert to float or return None."""
    try:
        v = float(val)
        return None if np.isnan(v) or np.isinf(v) else round(v, 2)
    except (TypeError, ValueError):
        return None


def population_moments(values: Sequence[float]) -> Optional[Tuple[float, float]]:
    """
    Population mean and standard deviation (ddof=0).

    Returns None for an empty sample. A sample with no spread (including a
    single value) gets exactly 0.0 rather than floating-point residue.
    """
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return None
    if np.ptp(arr) == 0:
        return float(arr[0]), 0.0
    return float(arr.mean()), float(arr.std(ddof=0))


# ── Cohort Statistics ───────────────────────────────────────────────

def build_statistics(
    cohort: Sequence[StudentRecord], config: GradingConfiguration
) -> Dict[str, SubjectPopulationStats]:
    """Per-subject population statistics over every student with a recorded entry."""
    composites: Dict[str, List[float]] = {}
    section_a: Dict[str, List[float]] = {}
    section_b: Dict[str, List[float]] = {}

    for student in cohort:
        for entry in student.entries:
            if not entry.is_recorded:
                continue
            composites.setdefault(entry.subject, []).append(blend_score(entry, config))
            if entry.section_a is not None:
                section_a.setdefault(entry.subject, []).append(entry.section_a)
            if entry.section_b is not None:
                section_b.setdefault(entry.subject, []).append(entry.section_b)

    statistics: Dict[str, SubjectPopulationStats] = {}
    for subject in sorted(composites):
        scores = composites[subject]
        mean, std = population_moments(scores)
        a = population_moments(section_a.get(subject, []))
        b = population_moments(section_b.get(subject, []))
        statistics[subject] = SubjectPopulationStats(
            subject=subject,
            mean=mean,
            standard_deviation=std,
            count=len(scores),
            section_a_mean=a[0] if a else None,
            section_a_std_dev=a[1] if a else None,
            section_b_mean=b[0] if b else None,
            section_b_std_dev=b[1] if b else None,
        )
    return statistics


# ── Subject Analytics ───────────────────────────────────────────────

def _section_correlation(pairs: List[Tuple[float, float]]) -> Optional[float]:
    if len(pairs) < 3:
        return None
    a = np.array([p[0] for p in pairs], dtype=float)
    b = np.array([p[1] for p in pairs], dtype=float)
    if np.ptp(a) == 0 or np.ptp(b) == 0:
        return None
    r, _ = sp_stats.pearsonr(a, b)
    return _safe_float(r)


def compute_subject_analytics(
    students: Sequence[ProcessedStudent],
    statistics: Mapping[str, SubjectPopulationStats],
) -> List[Dict[str, Any]]:
    """
    Subject-level analytics for broad-sheets.

    Strength index = 40% mean + 40% quality-pass rate + 20% consistency,
    where consistency is 100 - 3.33 * sd, floored at zero. Quality-pass rate
    is taken over the whole cohort, not only those who sat the subject.
    """
    total = len(students)
    rows = []
    for subject, s in statistics.items():
        results = [st.subject(subject) for st in students]
        results = [r for r in results if r is not None]
        quality = sum(1 for r in results if r.grade_value <= QUALITY_PASS_GRADE_VALUE)
        qpr = quality / total * 100 if total else 0.0
        consistency = max(0.0, 100.0 - s.standard_deviation * 3.33)
        strength = s.mean * 0.4 + qpr * 0.4 + consistency * 0.2

        pairs = [(r.section_a, r.section_b) for r in results if r.section_a is not None and r.section_b is not None]
        rows.append({
            "subject": subject,
            "count": s.count,
            "mean": _safe_float(s.mean),
            "std": _safe_float(s.standard_deviation),
            "section_a_mean": _safe_float(s.section_a_mean),
            "section_b_mean": _safe_float(s.section_b_mean),
            "quality_pass_count": quality,
            "quality_pass_rate": _safe_float(qpr),
            "strength_index": _safe_float(strength),
            "section_correlation": _section_correlation(pairs),
        })

    rows.sort(key=lambda x: (-(x["strength_index"] or 0), x["subject"]))
    return rows


# ── Cohort Summary ──────────────────────────────────────────────────

def compute_cohort_summary(students: Sequence[ProcessedStudent], series: str = "") -> Dict[str, Any]:
    """Institutional performance for one assessment series."""
    section_a = [r.section_a for s in students for r in s.subjects if r.section_a is not None]
    section_b = [r.section_b for s in students for r in s.subjects if r.section_b is not None]
    graded = [s for s in students if s.subjects]

    return {
        "series": series,
        "student_count": len(students),
        "avg_composite": _safe_float(np.mean([s.total_score for s in graded])) if graded else None,
        "avg_aggregate": _safe_float(np.mean([s.best_six_aggregate for s in graded])) if graded else None,
        "avg_objective": _safe_float(np.mean(section_a)) if section_a else None,
        "avg_theory": _safe_float(np.mean(section_b)) if section_b else None,
    }
