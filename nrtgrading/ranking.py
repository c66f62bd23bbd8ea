"""
ranking.py — Cohort ranking with standard competition ties.

Rank order is aggregate ascending, then total score descending. Students
equal on both share a rank and the next student skips ahead ("1224").
The configured sort order only changes the order students are returned in.
"""

import dataclasses
from typing import Callable, Dict, List, Sequence

from nrtgrading.config import GradingConfiguration
from nrtgrading.models import ProcessedStudent


def _rank_key(student: ProcessedStudent):
    # Students with nothing graded rank after everyone with an aggregate.
    return (not student.subjects, student.best_six_aggregate, -student.total_score)


def _id_key(student: ProcessedStudent):
    sid = student.student_id
    return (0, sid, "") if isinstance(sid, int) else (1, 0, str(sid))


DISPLAY_ORDERS: Dict[str, Callable[[List[ProcessedStudent]], List[ProcessedStudent]]] = {
    "aggregate-asc": lambda students: sorted(students, key=lambda s: (s.rank, s.name)),
    "name-asc": lambda students: sorted(students, key=lambda s: (s.name.lower(), s.rank)),
    "name-desc": lambda students: sorted(students, key=lambda s: (s.name.lower(), -s.rank), reverse=True),
    "id-asc": lambda students: sorted(students, key=_id_key),
    "score-desc": lambda students: sorted(students, key=lambda s: (-s.total_score, s.rank)),
}


def assign_ranks(students: Sequence[ProcessedStudent]) -> List[ProcessedStudent]:
    """Return new ranked copies, in rank order."""
    ordered = sorted(students, key=_rank_key)
    ranked: List[ProcessedStudent] = []
    previous_key = None
    current_rank = 0
    for position, student in enumerate(ordered, start=1):
        key = _rank_key(student)
        if key != previous_key:
            current_rank = position
            previous_key = key
        ranked.append(dataclasses.replace(student, rank=current_rank))
    return ranked


def rank_cohort(students: Sequence[ProcessedStudent], config: GradingConfiguration) -> List[ProcessedStudent]:
    """Rank the cohort, then order it for display according to config.sort_order."""
    ranked = assign_ranks(students)
    return DISPLAY_ORDERS[config.sort_order](ranked)
