"""
models.py — Immutable value objects flowing through the grading engine.

Everything here is derived and ephemeral: the engine builds these from raw
scores on every call and never mutates them afterwards.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union

StudentId = Union[int, str]


@dataclass(frozen=True)
class RawScoreEntry:
    """One student's raw input for one subject in the active cycle."""

    subject: str
    section_a: Optional[float] = None
    section_b: Optional[float] = None
    sba_score: Optional[float] = None
    remark: str = ""

    def __post_init__(self):
        for name in ("section_a", "section_b", "sba_score"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{self.subject}: {name} cannot be negative (got {value}).")

    @property
    def is_recorded(self) -> bool:
        """True when any score component has been entered."""
        return any(v is not None for v in (self.section_a, self.section_b, self.sba_score))

    @property
    def exam_total(self) -> float:
        return (self.section_a or 0.0) + (self.section_b or 0.0)


@dataclass(frozen=True)
class StudentRecord:
    student_id: StudentId
    name: str
    entries: Tuple[RawScoreEntry, ...] = ()
    gender: str = ""

    def __post_init__(self):
        if not isinstance(self.entries, tuple):
            object.__setattr__(self, "entries", tuple(self.entries))
        subjects = [e.subject for e in self.entries]
        if len(subjects) != len(set(subjects)):
            raise ValueError(f"Student {self.student_id} has more than one entry for a subject.")


@dataclass(frozen=True)
class SubjectPopulationStats:
    subject: str
    mean: float
    standard_deviation: float
    count: int
    section_a_mean: Optional[float] = None
    section_a_std_dev: Optional[float] = None
    section_b_mean: Optional[float] = None
    section_b_std_dev: Optional[float] = None


@dataclass(frozen=True)
class ComputedSubjectResult:
    subject: str
    section_a: Optional[float]
    section_b: Optional[float]
    sba_score: Optional[float]
    exam_score: float
    final_composite_score: float
    z_score: float
    grade: str
    grade_value: int
    remark: str = ""


@dataclass(frozen=True)
class AggregateResult:
    best_six: Tuple[ComputedSubjectResult, ...]
    aggregate: int
    category: str


@dataclass(frozen=True)
class ProcessedStudent:
    student_id: StudentId
    name: str
    subjects: Tuple[ComputedSubjectResult, ...]
    total_score: float
    best_six: Tuple[ComputedSubjectResult, ...]
    best_six_aggregate: int
    category: str
    gender: str = ""
    best_core_subjects: Tuple[ComputedSubjectResult, ...] = ()
    best_elective_subjects: Tuple[ComputedSubjectResult, ...] = ()
    rank: int = 0

    def subject(self, name: str) -> Optional[ComputedSubjectResult]:
        for result in self.subjects:
            if result.subject == name:
                return result
        return None


@dataclass(frozen=True)
class SeriesRecord:
    """Per-student snapshot handed to the series-history store."""

    series: str
    aggregate: int
    rank: int
    date: str
    category: str
    subject_summary: Mapping[str, Tuple[float, str]] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "subject_summary", MappingProxyType(dict(self.subject_summary)))


@dataclass(frozen=True)
class CohortResult:
    statistics: Mapping[str, SubjectPopulationStats] = field(hash=False)
    students: Tuple[ProcessedStudent, ...] = ()

    def __post_init__(self):
        # Read-only views; mapping fields are left out of the hash.
        object.__setattr__(self, "statistics", MappingProxyType(dict(self.statistics)))
        object.__setattr__(self, "students", tuple(self.students))

    def student(self, student_id: StudentId) -> Optional[ProcessedStudent]:
        for s in self.students:
            if s.student_id == student_id:
                return s
        return None
