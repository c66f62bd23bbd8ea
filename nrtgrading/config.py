"""
config.py — Grading configuration, defaults and validation.

Covers:
- Canonical grade scale (A1 … F9) and default z-score / percentage cut points
- Category bands for the best-six aggregate
- SBA weighting and single-subject normalization settings
- Loading from environment variables (.env) and from settings payloads

A GradingConfiguration is an immutable value passed into every engine call.
It validates itself on construction and raises ConfigurationError on any
contract violation.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from dotenv import load_dotenv


class ConfigurationError(ValueError):
    """Raised when a grading configuration violates its invariants."""


# ── Defaults ────────────────────────────────────────────────────────

# Canonical order of the grade scale. grade_value is the 1-based position.
GRADE_LABELS: Tuple[str, ...] = ("A1", "B2", "B3", "C4", "C5", "C6", "D7", "E8", "F9")
FLOOR_GRADE = "F9"

# (cut_point, label), ordered high to low. Below the last cut -> F9.
DEFAULT_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (1.645, "A1"),
    (1.036, "B2"),
    (0.524, "B3"),
    (0.0, "C4"),
    (-0.524, "C5"),
    (-1.036, "C6"),
    (-1.645, "D7"),
    (-2.326, "E8"),
)

# Raw-percentage cut points used when z-score grading is switched off.
DEFAULT_PERCENTAGE_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (80.0, "A1"),
    (70.0, "B2"),
    (65.0, "B3"),
    (60.0, "C4"),
    (55.0, "C5"),
    (50.0, "C6"),
    (45.0, "D7"),
    (40.0, "E8"),
)

UNCATEGORIZED = "Uncategorized"

CORE_SUBJECTS: Tuple[str, ...] = ("Mathematics", "English Language", "Social Studies", "Science")

SORT_ORDERS = ("aggregate-asc", "name-asc", "name-desc", "id-asc", "score-desc")

# Grade values at or below this count as a quality pass (A1 … C6).
QUALITY_PASS_GRADE_VALUE = 6


@dataclass(frozen=True)
class CategoryBand:
    """Inclusive [minimum, maximum] aggregate band with a label."""

    label: str
    minimum: int
    maximum: int

    def contains(self, aggregate: float) -> bool:
        return self.minimum <= aggregate <= self.maximum


DEFAULT_CATEGORY_THRESHOLDS: Tuple[CategoryBand, ...] = (
    CategoryBand("Distinction", 6, 10),
    CategoryBand("Merit", 11, 20),
    CategoryBand("Pass", 21, 36),
    CategoryBand("Fail", 37, 54),
)


@dataclass(frozen=True)
class SBAConfig:
    enabled: bool = True
    is_locked: bool = False
    sba_weight: float = 30.0
    exam_weight: float = 70.0

    @property
    def blends(self) -> bool:
        """True when SBA is mixed into the composite score."""
        return self.enabled and not self.is_locked


@dataclass(frozen=True)
class NormalizationConfig:
    """Rescale one subject's exam total from a nonstandard paper ceiling."""

    enabled: bool = False
    subject: str = "Mathematics"
    max_score: float = 100.0
    is_locked: bool = False

    def applies_to(self, subject: str) -> bool:
        return self.enabled and subject == self.subject


# ── Configuration value ─────────────────────────────────────────────

@dataclass(frozen=True)
class GradingConfiguration:
    grading_thresholds: Tuple[Tuple[float, str], ...] = DEFAULT_THRESHOLDS
    percentage_thresholds: Tuple[Tuple[float, str], ...] = DEFAULT_PERCENTAGE_THRESHOLDS
    floor_grade: str = FLOOR_GRADE
    sba: SBAConfig = field(default_factory=SBAConfig)
    category_thresholds: Tuple[CategoryBand, ...] = DEFAULT_CATEGORY_THRESHOLDS
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)
    best_n: int = 6
    use_t_distribution: bool = True
    max_section_a: float = 40.0
    max_section_b: float = 60.0
    sort_order: str = "aggregate-asc"
    core_subjects: Tuple[str, ...] = CORE_SUBJECTS

    def __post_init__(self):
        # Accept lists from callers but store tuples so the value stays hashable.
        for name in ("grading_thresholds", "percentage_thresholds", "category_thresholds", "core_subjects"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(tuple(v) if isinstance(v, list) else v for v in value))
        validate_configuration(self)

    @property
    def exam_ceiling(self) -> float:
        return self.max_section_a + self.max_section_b

    @property
    def active_thresholds(self) -> Tuple[Tuple[float, str], ...]:
        """Cut points for the selected grading mode."""
        return self.grading_thresholds if self.use_t_distribution else self.percentage_thresholds

    @property
    def grade_scale(self) -> Tuple[str, ...]:
        """Every grade label in canonical order, best first."""
        return tuple(label for _, label in self.grading_thresholds) + (self.floor_grade,)

    def grade_value(self, label: str) -> int:
        return self.grade_scale.index(label) + 1


# ── Validation ──────────────────────────────────────────────────────

def _check_thresholds(name: str, thresholds: Sequence[Tuple[float, str]], floor_grade: str) -> None:
    if not thresholds:
        raise ConfigurationError(f"{name} must contain at least one cut point.")
    labels = [label for _, label in thresholds]
    if len(set(labels + [floor_grade])) != len(labels) + 1:
        raise ConfigurationError(f"{name} has duplicate grade labels: {labels + [floor_grade]}")
    cuts = [float(cut) for cut, _ in thresholds]
    for higher, lower in zip(cuts, cuts[1:]):
        if not higher > lower:
            raise ConfigurationError(
                f"{name} must be strictly descending; got {higher} followed by {lower}."
            )


def validate_configuration(config: GradingConfiguration) -> None:
    """Raise ConfigurationError if the configuration breaks any invariant."""
    _check_thresholds("grading_thresholds", config.grading_thresholds, config.floor_grade)
    _check_thresholds("percentage_thresholds", config.percentage_thresholds, config.floor_grade)

    z_labels = [label for _, label in config.grading_thresholds]
    pct_labels = [label for _, label in config.percentage_thresholds]
    if z_labels != pct_labels:
        raise ConfigurationError(
            "percentage_thresholds must use the same grade labels, in the same order, as grading_thresholds."
        )

    sba = config.sba
    if sba.sba_weight < 0 or sba.exam_weight < 0:
        raise ConfigurationError("SBA and exam weights cannot be negative.")
    if sba.enabled and abs(sba.sba_weight + sba.exam_weight - 100.0) > 1e-9:
        raise ConfigurationError(
            f"sba_weight + exam_weight must equal 100; got {sba.sba_weight} + {sba.exam_weight}."
        )

    previous: Optional[CategoryBand] = None
    for band in config.category_thresholds:
        if band.minimum > band.maximum:
            raise ConfigurationError(f"Category '{band.label}' has min {band.minimum} > max {band.maximum}.")
        if previous is not None and band.minimum <= previous.maximum:
            raise ConfigurationError(
                f"Category '{band.label}' overlaps or precedes '{previous.label}'; bands must be ascending and disjoint."
            )
        previous = band

    if config.best_n < 1:
        raise ConfigurationError("best_n must be at least 1.")
    if config.max_section_a <= 0 or config.max_section_b <= 0:
        raise ConfigurationError("max_section_a and max_section_b must be positive.")
    if config.normalization.enabled and config.normalization.max_score <= 0:
        raise ConfigurationError("normalization max_score must be positive when normalization is enabled.")
    if config.sort_order not in SORT_ORDERS:
        raise ConfigurationError(f"Unknown sort_order '{config.sort_order}'. Expected one of {SORT_ORDERS}.")


# ── Loaders ─────────────────────────────────────────────────────────

def _as_bool(value: Any) -> bool:
    """Booleans from env strings or JSON payloads; "false" and "0" are False."""
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return _as_bool(raw)


def load_configuration() -> GradingConfiguration:
    """Build a configuration from NRT_* environment variables (and .env)."""
    load_dotenv()
    sba = SBAConfig(
        enabled=_env_bool("NRT_SBA_ENABLED", True),
        sba_weight=float(os.getenv("NRT_SBA_WEIGHT", "30")),
        exam_weight=float(os.getenv("NRT_EXAM_WEIGHT", "70")),
    )
    return GradingConfiguration(
        sba=sba,
        best_n=int(os.getenv("NRT_BEST_N", "6")),
        use_t_distribution=_env_bool("NRT_USE_T_DISTRIBUTION", True),
        max_section_a=float(os.getenv("NRT_MAX_SECTION_A", "40")),
        max_section_b=float(os.getenv("NRT_MAX_SECTION_B", "60")),
        sort_order=os.getenv("NRT_SORT_ORDER", "aggregate-asc").strip(),
    )


def _ordered_cuts(mapping: Mapping[str, Any]) -> Tuple[Tuple[float, str], ...]:
    """Order a {label: cut} mapping by the canonical scale, not by key order."""
    unknown = set(mapping) - set(GRADE_LABELS)
    if unknown:
        raise ConfigurationError(f"Unknown grade labels in thresholds: {sorted(unknown)}")
    return tuple((float(mapping[label]), label) for label in GRADE_LABELS if label in mapping)


def configuration_from_settings(settings: Mapping[str, Any]) -> GradingConfiguration:
    """
    Convert a stored settings payload (camelCase keys) into a configuration.

    Keys that are absent fall back to the defaults.
    """
    kwargs: Dict[str, Any] = {}

    if "gradingThresholds" in settings:
        kwargs["grading_thresholds"] = _ordered_cuts(settings["gradingThresholds"])
    if "percentageThresholds" in settings:
        kwargs["percentage_thresholds"] = _ordered_cuts(settings["percentageThresholds"])
    if "categoryThresholds" in settings:
        kwargs["category_thresholds"] = tuple(
            CategoryBand(str(b["label"]), int(b["min"]), int(b["max"]))
            for b in settings["categoryThresholds"]
        )

    sba = settings.get("sbaConfig")
    if sba is not None:
        kwargs["sba"] = SBAConfig(
            enabled=_as_bool(sba.get("enabled", True)),
            is_locked=_as_bool(sba.get("isLocked", False)),
            sba_weight=float(sba.get("sbaWeight", 30)),
            exam_weight=float(sba.get("examWeight", 70)),
        )

    norm = settings.get("normalizationConfig")
    if norm is not None:
        kwargs["normalization"] = NormalizationConfig(
            enabled=_as_bool(norm.get("enabled", False)),
            subject=str(norm.get("subject", "Mathematics")),
            max_score=float(norm.get("maxScore", 100)),
            is_locked=_as_bool(norm.get("isLocked", False)),
        )

    simple_keys = {
        "maxSectionA": ("max_section_a", float),
        "maxSectionB": ("max_section_b", float),
        "useTDistribution": ("use_t_distribution", _as_bool),
        "sortOrder": ("sort_order", str),
        "bestN": ("best_n", int),
    }
    for key, (attr, cast) in simple_keys.items():
        if key in settings:
            kwargs[attr] = cast(settings[key])
    if "coreSubjects" in settings:
        kwargs["core_subjects"] = tuple(settings["coreSubjects"])

    return GradingConfiguration(**kwargs)
