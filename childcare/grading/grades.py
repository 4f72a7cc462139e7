"""
Letter grade normalization.

Grades are stored loosely: older records hold numeric scores (0-100), newer
ones hold a letter from the five point scale. Everything here is pure and
never raises, so it is safe to call on whatever comes out of storage.
"""

import math
from dataclasses import dataclass
from enum import Enum
from numbers import Rational, Real
from typing import Any, Optional, Union

NEUTRAL_CHIP_COLOR = "#757575"


class LetterGrade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"

    @property
    def description(self) -> str:
        return LETTER_GRADE_DETAILS[self]["description"]

    @property
    def min_score(self) -> int:
        return LETTER_GRADE_DETAILS[self]["min_score"]

    @property
    def chip_color(self) -> str:
        return LETTER_GRADE_DETAILS[self]["chip_color"]


# Ordered from the highest band down; numeric_to_letter_grade relies on it.
LETTER_GRADE_DETAILS = {
    LetterGrade.A: {"description": "Outstanding", "min_score": 90, "chip_color": "#2e7d32"},
    LetterGrade.B: {"description": "Very Good", "min_score": 80, "chip_color": "#388e3c"},
    LetterGrade.C: {"description": "Satisfactory", "min_score": 70, "chip_color": "#f9a825"},
    LetterGrade.D: {"description": "Developing", "min_score": 60, "chip_color": "#fb8c00"},
    LetterGrade.E: {"description": "Emerging", "min_score": 0, "chip_color": "#e53935"},
}

LETTER_GRADE_VALUES = [letter.value for letter in LetterGrade]


@dataclass(frozen=True)
class LegacyGrade:
    """
    A stored grade that is not a canonical letter.

    `raw` is kept as-is so it can be written back unchanged; `letter` is the
    best-effort coercion, computed once when the value is read.
    """

    raw: Union[str, float]
    letter: Optional[LetterGrade] = None


Grade = Union[LetterGrade, LegacyGrade]


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def normalize_letter_grade(value: Any) -> Optional[LetterGrade]:
    """Return the letter for `value` if it is exactly A-E once trimmed and uppercased."""
    if not isinstance(value, str):
        return None

    try:
        return LetterGrade(value.strip().upper())
    except ValueError:
        return None


def numeric_to_letter_grade(numeric: Any) -> Optional[LetterGrade]:
    """
    Map a score onto the letter bands.

    Only finiteness is checked: negative scores land on E and anything above
    100 lands on A.
    """
    if not _is_number(numeric):
        return None
    # ints and fractions are always finite and may not fit in a float
    if not isinstance(numeric, Rational) and not math.isfinite(numeric):
        return None

    for letter, detail in LETTER_GRADE_DETAILS.items():
        if numeric >= detail["min_score"]:
            return letter
    return LetterGrade.E


def coerce_to_letter_grade(value: Any) -> Optional[LetterGrade]:
    normalized = normalize_letter_grade(value)
    if normalized:
        return normalized

    if _is_number(value):
        return numeric_to_letter_grade(value)

    if isinstance(value, str):
        # float() also accepts digit separators like "9_5"
        if "_" in value:
            return None
        try:
            return numeric_to_letter_grade(float(value))
        except ValueError:
            return None

    return None


def format_letter_grade(
    value: Any,
    include_description: bool = True,
    separator: str = " - ",
) -> str:
    """
    Render a grade for display, e.g. "A - Outstanding".

    Values that cannot be resolved to a letter are passed through unchanged
    so bad data stays visible.
    """
    letter = coerce_to_letter_grade(value)
    if not letter:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    if not include_description:
        return letter.value

    return f"{letter.value}{separator}{letter.description}"


def get_letter_grade_chip_color(value: Any) -> str:
    letter = coerce_to_letter_grade(value)
    return letter.chip_color if letter else NEUTRAL_CHIP_COLOR


def is_letter_grade_value(value: Any) -> bool:
    return normalize_letter_grade(value) is not None


def parse_grade(raw: Any) -> Optional[Grade]:
    """Convert a stored grade into a `Grade`. Empty values mean "not graded"."""
    if isinstance(raw, (LetterGrade, LegacyGrade)):
        return raw
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None

    letter = normalize_letter_grade(raw)
    if letter:
        return letter

    if not _is_number(raw):
        raw = str(raw)
    return LegacyGrade(raw=raw, letter=coerce_to_letter_grade(raw))


def grade_to_storage(grade: Optional[Grade]) -> Optional[Union[str, float]]:
    if grade is None:
        return None
    if isinstance(grade, LetterGrade):
        return grade.value
    return grade.raw


def grade_letter(grade: Optional[Grade]) -> Optional[LetterGrade]:
    if isinstance(grade, LegacyGrade):
        return grade.letter
    return grade
