"""
frame.py — pandas boundary between score-entry tables and the engine.

Handles:
- Alias-based column detection for long-format score tables
- Subject name normalization to the canonical subject list
- Numeric coercion with "A"/"AA" absence markers
- Duplicate (student, subject) rows, keeping the last entry
- Flattening processed results back into a broad-sheet DataFrame
"""

import logging
from typing import Dict, List, Optional

import pandas as pd

from nrtgrading.models import CohortResult, RawScoreEntry, StudentRecord

logger = logging.getLogger(__name__)


COLUMN_ALIASES: Dict[str, List[str]] = {
    "student_id": [
        "student_id", "studentid", "student id", "id", "index_no", "index no",
        "adm_no", "admission_no", "pupil_id",
    ],
    "name": ["name", "student_name", "student name", "pupil_name", "pupil name", "full_name"],
    "gender": ["gender", "sex", "m/f"],
    "subject": ["subject", "subject_name", "subject name", "paper"],
    "section_a": ["section_a", "sectiona", "section a", "objective", "obj", "paper_1", "paper 1"],
    "section_b": ["section_b", "sectionb", "section b", "theory", "essay", "paper_2", "paper 2"],
    "sba": ["sba", "sba_score", "sba score", "class_score", "class score", "continuous_assessment"],
    "remark": ["remark", "remarks", "facilitator_remark", "comment"],
}

REQUIRED_FIELDS = ("student_id", "subject")

SUBJECT_MAP = {
    "english": "English Language", "english language": "English Language", "eng": "English Language",
    "maths": "Mathematics", "math": "Mathematics", "mathematics": "Mathematics",
    "sci": "Science", "science": "Science", "integrated science": "Science",
    "social": "Social Studies", "social studies": "Social Studies", "sst": "Social Studies",
    "career tech": "Career Technology", "career technology": "Career Technology",
    "cat": "Creative Arts and Designing", "creative arts": "Creative Arts and Designing",
    "creative arts and designing": "Creative Arts and Designing",
    "twi": "Ghana Language (Twi)", "ghana language": "Ghana Language (Twi)",
    "ghana language (twi)": "Ghana Language (Twi)",
    "rme": "Religious and Moral Education", "religious and moral education": "Religious and Moral Education",
    "ict": "Computing", "computing": "Computing",
    "french": "French", "fre": "French",
}

ABSENT_MARKERS = ("A", "AA")


# ── Helpers ─────────────────────────────────────────────────────────

def _find_col(df: pd.DataFrame, aliases: List[str]) -> Optional[str]:
    """Find the first column matching any alias (case-insensitive)."""
    cols_lower = {str(c).lower().strip(): c for c in df.columns}
    for a in aliases:
        if a.lower() in cols_lower:
            return cols_lower[a.lower()]
    return None


def normalize_subject(value) -> str:
    """Map subject name variants to the canonical subject names."""
    cleaned = str(value).strip()
    return SUBJECT_MAP.get(cleaned.lower(), cleaned.title())


def parse_score(value) -> Optional[float]:
    """
    Parse one score cell.

    Blank cells and absence markers ("A", "AA") become None. Anything else
    must be a non-negative number.
    """
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    if not text or text.lower() == "nan" or text.upper() in ABSENT_MARKERS:
        return None
    try:
        number = float(text)
    except ValueError:
        raise ValueError(f"Score must be a number, 'A', 'AA' or blank. Got: {text!r}")
    if number < 0:
        raise ValueError(f"Score cannot be negative: {text}")
    return number


def _student_id(value):
    text = str(value).strip()
    # "0012" and "12" are different index numbers; only canonical digits become ints.
    return int(text) if text.isdigit() and str(int(text)) == text else text


# ── Ingestion ───────────────────────────────────────────────────────

def cohort_from_frame(df: pd.DataFrame) -> List[StudentRecord]:
    """
    Build StudentRecords from a long-format table (one row per student per subject).

    Students keep the order of their first appearance.
    """
    cols = {field: _find_col(df, aliases) for field, aliases in COLUMN_ALIASES.items()}
    missing = [f for f in REQUIRED_FIELDS if cols[f] is None]
    if missing:
        raise ValueError(
            f"Required column(s) {missing} not found. "
            f"Expected one of: {[COLUMN_ALIASES[f] for f in missing]}"
        )

    work = df.copy()
    work = work[work[cols["subject"]].notna() & work[cols["student_id"]].notna()].copy()
    work["_sid"] = work[cols["student_id"]].apply(_student_id)
    work["_subject"] = work[cols["subject"]].apply(normalize_subject)

    before = len(work)
    work = work.drop_duplicates(subset=["_sid", "_subject"], keep="last")
    if len(work) < before:
        logger.warning("Dropped %d duplicate student/subject rows (kept the last).", before - len(work))

    def _cell(row, field):
        col = cols[field]
        return row[col] if col is not None else None

    names: Dict = {}
    genders: Dict = {}
    entries: Dict = {}
    for _, row in work.iterrows():
        sid = row["_sid"]
        if sid not in entries:
            entries[sid] = []
            raw_name = _cell(row, "name")
            names[sid] = str(raw_name).strip() if raw_name is not None and not pd.isna(raw_name) else str(sid)
            raw_gender = _cell(row, "gender")
            genders[sid] = str(raw_gender).strip() if raw_gender is not None and not pd.isna(raw_gender) else ""
        remark = _cell(row, "remark")
        entries[sid].append(RawScoreEntry(
            subject=row["_subject"],
            section_a=parse_score(_cell(row, "section_a")),
            section_b=parse_score(_cell(row, "section_b")),
            sba_score=parse_score(_cell(row, "sba")),
            remark="" if remark is None or pd.isna(remark) else str(remark).strip(),
        ))

    return [
        StudentRecord(student_id=sid, name=names[sid], entries=tuple(subject_entries), gender=genders[sid])
        for sid, subject_entries in entries.items()
    ]


# ── Broad-sheet ─────────────────────────────────────────────────────

BROADSHEET_COLUMNS = [
    "rank", "student_id", "name", "subject", "section_a", "section_b", "sba",
    "composite", "z_score", "grade", "grade_value", "in_best_six",
    "aggregate", "total_score", "category",
]


def results_to_frame(result: CohortResult) -> pd.DataFrame:
    """One row per student per subject, in the result's display order."""
    rows = []
    for student in result.students:
        best = {r.subject for r in student.best_six}
        for subject in student.subjects:
            rows.append({
                "rank": student.rank,
                "student_id": student.student_id,
                "name": student.name,
                "subject": subject.subject,
                "section_a": subject.section_a,
                "section_b": subject.section_b,
                "sba": subject.sba_score,
                "composite": round(subject.final_composite_score, 2),
                "z_score": round(subject.z_score, 3),
                "grade": subject.grade,
                "grade_value": subject.grade_value,
                "in_best_six": subject.subject in best,
                "aggregate": student.best_six_aggregate,
                "total_score": round(student.total_score, 2),
                "category": student.category,
            })
    return pd.DataFrame(rows, columns=BROADSHEET_COLUMNS)
