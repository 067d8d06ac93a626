"""Shared fixtures for the dashboard tests."""

import pytest

from dashboard.models import CourseRecord


def build_record(**overrides) -> CourseRecord:
    """Course record with comfortable, non-risky defaults."""
    fields = {
        'student_id': 'S001',
        'student_name': 'Asha Rao',
        'student_email': 'asha@example.edu',
        'course_id': 'CS101',
        'course_name': 'Data Structures',
        'credits': 4,
        'semester': 3,
        'mid_term_marks': 15.0,
        'attendance': 90.0,
        'assignments': 8.0,
        'quiz_score': None,
        'faculty_id': 'F01',
    }
    fields.update(overrides)
    return CourseRecord(**fields)


@pytest.fixture
def make_record():
    return build_record
