"""
nrtgrading — Norm-referenced grading engine.

Turns raw per-subject section and SBA scores for a cohort into composite
scores, z-score grades, best-six aggregates, categories and ranks.
"""

from nrtgrading.aggregate import compute_aggregate
from nrtgrading.config import ConfigurationError, GradingConfiguration, load_configuration
from nrtgrading.grading import compute_subject_result
from nrtgrading.models import RawScoreEntry, StudentRecord
from nrtgrading.pipeline import process_cohort
from nrtgrading.ranking import rank_cohort
from nrtgrading.stats import build_statistics

__all__ = [
    "ConfigurationError",
    "GradingConfiguration",
    "RawScoreEntry",
    "StudentRecord",
    "build_statistics",
    "compute_aggregate",
    "compute_subject_result",
    "load_configuration",
    "process_cohort",
    "rank_cohort",
]
