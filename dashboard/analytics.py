"""Dashboard aggregates over a snapshot of course records."""

from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from dashboard.grading import extract_grade_point, format_sgpa, parse_predicted_grade, record_sgpa
from dashboard.models import CourseRecord

FAILING_GRADE_PATTERN = r'^[PF]\s'


def course_difficulty(avg_mid_term: float) -> str:
    """
    Classify a course by its average mid-term mark (out of 20).

    Returns:
        'easy' for >= 15, 'hard' for < 10, else 'medium'
    """
    if avg_mid_term >= 15:
        return 'easy'
    elif avg_mid_term < 10:
        return 'hard'
    return 'medium'


def records_to_frame(records: Iterable[CourseRecord]) -> pd.DataFrame:
    """Flatten records into a DataFrame with parsed grade columns."""
    if records is None:
        raise ValueError("records must be a sequence, not None")

    df = pd.DataFrame(
        [r.model_dump() for r in records],
        columns=list(CourseRecord.model_fields)
    )
    grades = df['predicted_grade']
    df['grade_point'] = pd.to_numeric(grades.map(extract_grade_point), errors='coerce')
    df['grade_letter'] = grades.map(lambda g: parse_predicted_grade(g).letter)

    # Only courses with a parseable GP count towards SGPA
    has_gp = df['grade_point'].notna()
    df['weighted_gp'] = np.where(has_gp, df['credits'] * df['grade_point'].fillna(0), 0.0)
    df['graded_credits'] = np.where(has_gp, df['credits'], 0)
    return df


def _avg_sgpa(weighted: float, credits: float) -> Optional[float]:
    """Average SGPA of a group, None when no course in it carries a grade point."""
    if credits <= 0:
        return None
    return round(float(weighted) / float(credits), 2)


def course_difficulty_report(records: Iterable[CourseRecord]) -> List[Dict]:
    """Average mid-term and difficulty per course, hardest first."""
    df = records_to_frame(records)
    if df.empty:
        return []

    grouped = df.groupby('course_name').agg(
        avg_mid_term=('mid_term_marks', 'mean'),
        student_count=('student_id', 'size')
    ).reset_index()

    report = [
        {
            'course_name': row.course_name,
            'avg_mid_term': round(float(row.avg_mid_term), 1),
            'difficulty': course_difficulty(float(row.avg_mid_term)),
            'student_count': int(row.student_count),
        }
        for row in grouped.itertuples(index=False)
    ]
    report.sort(key=lambda item: item['avg_mid_term'])
    return report


def semester_performance(records: Iterable[CourseRecord]) -> List[Dict]:
    """Credit-weighted average SGPA per semester."""
    df = records_to_frame(records)
    if df.empty:
        return []

    grouped = df.groupby('semester').agg(
        weighted_gp=('weighted_gp', 'sum'),
        graded_credits=('graded_credits', 'sum'),
        course_count=('course_name', 'nunique'),
        student_count=('student_id', 'nunique')
    ).reset_index().sort_values('semester')

    return [
        {
            'semester': int(row.semester),
            'avg_sgpa': _avg_sgpa(row.weighted_gp, row.graded_credits),
            'course_count': int(row.course_count),
            'student_count': int(row.student_count),
        }
        for row in grouped.itertuples(index=False)
    ]


def course_performance(records: Iterable[CourseRecord]) -> List[Dict]:
    """Average SGPA and component averages per course, best first."""
    df = records_to_frame(records)
    if df.empty:
        return []

    grouped = df.groupby('course_name').agg(
        weighted_gp=('weighted_gp', 'sum'),
        graded_credits=('graded_credits', 'sum'),
        credits=('credits', 'first'),
        student_count=('student_id', 'size'),
        avg_mid_term=('mid_term_marks', 'mean'),
        avg_attendance=('attendance', 'mean'),
        avg_assignments=('assignments', 'mean')
    ).reset_index()

    report = [
        {
            'course_name': row.course_name,
            'avg_sgpa': _avg_sgpa(row.weighted_gp, row.graded_credits),
            'credits': int(row.credits),
            'student_count': int(row.student_count),
            'avg_mid_term': round(float(row.avg_mid_term), 1),
            'avg_attendance': int(round(float(row.avg_attendance))),
            'avg_assignments': round(float(row.avg_assignments), 1),
        }
        for row in grouped.itertuples(index=False)
    ]
    # Best first; groups without any graded course go last
    report.sort(key=lambda item: (item['avg_sgpa'] is None, -(item['avg_sgpa'] or 0.0)))
    return report


def _failing_mask(df: pd.DataFrame) -> pd.Series:
    return df['predicted_grade'].fillna('').astype(str).str.contains(
        FAILING_GRADE_PATTERN, case=False, regex=True
    )


def overview_stats(records: Iterable[CourseRecord]) -> Dict:
    """Headline numbers for the faculty overview."""
    df = records_to_frame(records)
    if df.empty:
        return {
            'total_students': 0,
            'unique_courses': 0,
            'at_risk_courses': 0,
            'avg_attendance': 0,
            'grade_distribution': {},
        }

    distribution = df['grade_letter'].fillna('N/A').value_counts()
    return {
        'total_students': int(df['student_id'].nunique()),
        'unique_courses': int(df['course_id'].nunique()),
        'at_risk_courses': int(_failing_mask(df).sum()),
        'avg_attendance': int(round(float(df['attendance'].mean()))),
        'grade_distribution': {str(k): int(v) for k, v in distribution.items()},
    }


def student_overview(records: Iterable[CourseRecord]) -> Dict:
    """Headline numbers for one student's dashboard."""
    records = list(records) if records is not None else None
    df = records_to_frame(records)
    if df.empty:
        return {
            'total_courses': 0,
            'sgpa': format_sgpa(None),
            'avg_attendance': 0,
            'at_risk_courses': 0,
        }

    return {
        'total_courses': int(len(df)),
        'sgpa': format_sgpa(record_sgpa(records)),
        'avg_attendance': int(round(float(df['attendance'].mean()))),
        'at_risk_courses': int(_failing_mask(df).sum()),
    }
