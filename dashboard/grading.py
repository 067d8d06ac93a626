"""Grade scale, course totals, end-term prediction post-processing and SGPA."""

import logging
import math
import re
from collections import namedtuple
from typing import Iterable, Optional, Tuple, Union

import numpy as np

from dashboard.models import CourseRecord, PredictedResult

logger = logging.getLogger(__name__)

# (lower bound inclusive, letter, grade point), evaluated top-down
GRADE_BANDS = (
    (91.0, 'O', 10),
    (81.0, 'A+', 9),
    (71.0, 'A', 8),
    (61.0, 'B+', 7),
    (51.0, 'B', 6),
    (46.0, 'C', 5),
    (40.0, 'P', 4),
)
FAIL_GRADE = ('F', 0)

END_TERM_MAX = 50.0

GRADE_LETTER_PATTERN = re.compile(r'^([A-Z+]+)')
GRADE_POINT_PATTERN = re.compile(r'GP:\s*(\d+)')
TOTAL_PATTERN = re.compile(r'Total:\s*([\d.]+)')

_LEADING_NUMBER = re.compile(
    r'^\s*([+-]?(?:inf(?:inity)?|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))',
    re.IGNORECASE
)

GradeFields = namedtuple('GradeFields', ['letter', 'grade_point', 'total'])


def grade_for(total_score: float) -> Tuple[str, int]:
    """
    Map a total score to its letter grade and grade point.

    Args:
        total_score: Total course score, nominally 0-100

    Returns:
        Tuple of (letter, grade_point); anything below 40 is ('F', 0)
    """
    for lower_bound, letter, grade_point in GRADE_BANDS:
        if total_score >= lower_bound:
            return letter, grade_point
    return FAIL_GRADE


def total_score(
    mid_term: float,
    assignments: float,
    attendance: float,
    quiz_score: Optional[float],
    end_term: float
) -> float:
    """
    Combine the course components into a 0-100 total.

    Mid-term (/20), assignments (/10) and end-term (/50) count as-is;
    attendance and quiz percentages are each scaled to 10 marks.
    A missing quiz score counts as 0.
    """
    quiz = quiz_score if quiz_score is not None else 0.0
    return mid_term + assignments + (attendance * 0.1) + (quiz * 0.1) + end_term


def parse_end_term(raw: Union[float, int, str, None]) -> float:
    """
    Read a numeric end-term prediction out of raw gateway output.

    Accepts numbers or free text starting with a number ("37.5", " 42 marks",
    "Infinity"). Integers too large for a float become +/-inf.
    Anything unparseable is 0.0.
    """
    if raw is None or isinstance(raw, bool):
        return 0.0

    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            value = math.inf if raw > 0 else -math.inf
    else:
        match = _LEADING_NUMBER.match(str(raw))
        if not match:
            logger.warning(f"Unparseable end-term prediction {raw!r}, using 0")
            return 0.0
        value = float(match.group(1))

    if np.isnan(value):
        return 0.0
    return value


def clamp_end_term(value: float) -> float:
    return min(END_TERM_MAX, max(0.0, value))


def grade_course(record: CourseRecord, end_term: float) -> PredictedResult:
    """Score and grade a course for an already-clamped end-term mark."""
    total = total_score(
        record.mid_term_marks,
        record.assignments,
        record.attendance,
        record.quiz_score,
        end_term
    )
    letter, grade_point = grade_for(total)

    logger.debug(
        f"Total marks breakdown for {record.student_id}/{record.course_id}: "
        f"mid_term={record.mid_term_marks}, assignments={record.assignments}, "
        f"attendance={record.attendance * 0.1:.2f}, quiz={(record.quiz_score or 0.0) * 0.1:.2f}, "
        f"end_term={end_term}, total={total:.2f}"
    )
    logger.info(f"Predicted grade for {record.student_id}/{record.course_id}: {letter} (GP {grade_point})")

    return PredictedResult(
        total_score=total,
        letter=letter,
        grade_point=grade_point,
        end_term=end_term
    )


def predict(record: CourseRecord, raw_end_term: Union[float, int, str, None]) -> PredictedResult:
    """
    Turn a raw end-term prediction into a graded course result.

    Never fails on numeric input: unparseable predictions become 0 and
    everything is clamped to [0, 50] before scoring. The caller persists
    the result.
    """
    parsed = parse_end_term(raw_end_term)
    end_term = clamp_end_term(parsed)
    if end_term != parsed:
        logger.warning(
            f"End-term prediction {raw_end_term!r} for {record.student_id}/{record.course_id} "
            f"clamped to {end_term}"
        )
    return grade_course(record, end_term)


def format_predicted_grade(letter: str, grade_point: int, total: float) -> str:
    """Render the stored grade string, e.g. 'A+ (GP: 9, Total: 87.50/100)'."""
    return f"{letter} (GP: {grade_point}, Total: {total:.2f}/100)"


def serialize_result(result: PredictedResult) -> str:
    return format_predicted_grade(result.letter, result.grade_point, result.total_score)


def parse_predicted_grade(text: Optional[str]) -> GradeFields:
    """
    Pull letter, grade point and total back out of a stored grade string.

    Each part is matched independently; missing parts come back as None.
    """
    if not isinstance(text, str) or not text:
        return GradeFields(None, None, None)

    letter_match = GRADE_LETTER_PATTERN.match(text)
    gp_match = GRADE_POINT_PATTERN.search(text)
    total_match = TOTAL_PATTERN.search(text)

    total = None
    if total_match:
        try:
            total = float(total_match.group(1))
        except ValueError:
            total = None

    return GradeFields(
        letter_match.group(1) if letter_match else None,
        int(gp_match.group(1)) if gp_match else None,
        total
    )


def extract_grade_point(text: Optional[str]) -> Optional[int]:
    return parse_predicted_grade(text).grade_point


def weighted_grade_points(courses: Iterable[Tuple[int, Optional[int]]]) -> Tuple[int, int]:
    """Sum credits*GP and credits over the courses that carry a grade point."""
    if courses is None:
        raise ValueError("courses must be a sequence, not None")

    total_points = 0
    total_credits = 0
    for credits, grade_point in courses:
        if grade_point is None:
            continue
        total_points += credits * grade_point
        total_credits += credits
    return total_points, total_credits


def sgpa_from_grade_points(courses: Iterable[Tuple[int, Optional[int]]]) -> Optional[float]:
    """Credit-weighted grade point average; None when no course contributes."""
    total_points, total_credits = weighted_grade_points(courses)
    if total_credits == 0:
        return None
    return total_points / total_credits


def sgpa(courses: Iterable[Tuple[int, Optional[str]]]) -> Optional[float]:
    """
    Compute SGPA from (credits, stored grade string) pairs.

    Strings without a 'GP: <n>' part are skipped rather than counted as zero.

    Returns:
        The SGPA, or None when nothing contributes (render as "N/A")
    """
    if courses is None:
        raise ValueError("courses must be a sequence, not None")
    return sgpa_from_grade_points(
        (credits, extract_grade_point(grade)) for credits, grade in courses
    )


def record_sgpa(records: Iterable[CourseRecord], semester: Optional[int] = None) -> Optional[float]:
    """SGPA over course records, optionally restricted to one semester."""
    if records is None:
        raise ValueError("records must be a sequence, not None")
    return sgpa(
        (r.credits, r.predicted_grade)
        for r in records
        if semester is None or r.semester == semester
    )


def format_sgpa(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    return f"{value:.2f}"
