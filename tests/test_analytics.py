"""Unit tests for dashboard analytics."""

import pytest

from dashboard.analytics import (
    course_difficulty,
    course_difficulty_report,
    course_performance,
    overview_stats,
    semester_performance,
    student_overview,
)


@pytest.fixture
def roster(make_record):
    return [
        make_record(student_id='S1', course_id='C1', course_name='Algorithms', credits=4, semester=3,
                    mid_term_marks=16, attendance=90, assignments=9,
                    predicted_grade="A+ (GP: 9, Total: 85.00/100)"),
        make_record(student_id='S2', course_id='C1', course_name='Algorithms', credits=4, semester=3,
                    mid_term_marks=14, attendance=70, assignments=6,
                    predicted_grade="P (GP: 4, Total: 42.00/100)"),
        make_record(student_id='S1', course_id='C2', course_name='Networks', credits=2, semester=3,
                    mid_term_marks=6, attendance=80, assignments=4,
                    predicted_grade="B (GP: 6, Total: 55.00/100)"),
        make_record(student_id='S2', course_id='C3', course_name='Compilers', credits=3, semester=4,
                    mid_term_marks=12, attendance=60, assignments=5),
    ]


def test_course_difficulty():
    assert course_difficulty(15) == 'easy'
    assert course_difficulty(14.9) == 'medium'
    assert course_difficulty(10) == 'medium'
    assert course_difficulty(9.9) == 'hard'


def test_course_difficulty_report(roster):
    report = course_difficulty_report(roster)
    assert [r['course_name'] for r in report] == ['Networks', 'Compilers', 'Algorithms']
    algorithms = report[-1]
    assert algorithms['avg_mid_term'] == 15.0
    assert algorithms['difficulty'] == 'easy'
    assert algorithms['student_count'] == 2
    assert report[0]['difficulty'] == 'hard'


def test_semester_performance(roster):
    """Ungraded courses count towards students but not SGPA."""
    report = semester_performance(roster)
    assert [r['semester'] for r in report] == [3, 4]

    sem3 = report[0]
    assert sem3['avg_sgpa'] == pytest.approx(round((36 + 16 + 12) / 10, 2))
    assert sem3['course_count'] == 2
    assert sem3['student_count'] == 2

    sem4 = report[1]
    assert sem4['avg_sgpa'] is None
    assert sem4['student_count'] == 1


def test_course_performance(roster):
    report = course_performance(roster)
    assert [r['course_name'] for r in report] == ['Algorithms', 'Networks', 'Compilers']

    algorithms = report[0]
    assert algorithms['avg_sgpa'] == 6.5
    assert algorithms['credits'] == 4
    assert algorithms['student_count'] == 2
    assert algorithms['avg_attendance'] == 80
    assert algorithms['avg_assignments'] == 7.5


def test_overview_stats(roster):
    stats = overview_stats(roster)
    assert stats['total_students'] == 2
    assert stats['unique_courses'] == 3
    assert stats['at_risk_courses'] == 1
    assert stats['avg_attendance'] == 75
    assert stats['grade_distribution'] == {'A+': 1, 'P': 1, 'B': 1, 'N/A': 1}


def test_student_overview(roster):
    s1 = [r for r in roster if r.student_id == 'S1']
    overview = student_overview(s1)
    assert overview['total_courses'] == 2
    assert overview['sgpa'] == "8.00"
    assert overview['avg_attendance'] == 85
    assert overview['at_risk_courses'] == 0


def test_empty_snapshots():
    assert course_difficulty_report([]) == []
    assert semester_performance([]) == []
    assert course_performance([]) == []
    assert overview_stats([])['total_students'] == 0
    assert student_overview([])['sgpa'] == "N/A"


def test_ungraded_course_sorts_after_failing_course(make_record):
    """A course with no grade points has no average SGPA, not zero."""
    records = [
        make_record(student_id='S1', course_id='C1', course_name='Ungraded'),
        make_record(student_id='S1', course_id='C2', course_name='Failed',
                    predicted_grade="F (GP: 0, Total: 20.00/100)"),
        make_record(student_id='S1', course_id='C3', course_name='Passed',
                    predicted_grade="B (GP: 6, Total: 55.00/100)"),
    ]
    report = course_performance(records)

    assert [r['course_name'] for r in report] == ['Passed', 'Failed', 'Ungraded']
    assert report[1]['avg_sgpa'] == 0.0
    assert report[2]['avg_sgpa'] is None
