"""At-risk classification over a faculty roster."""

import logging
from typing import Dict, Iterable, List, Optional

from dashboard.grading import parse_predicted_grade
from dashboard.models import CourseRecord, CourseRisk, StudentRiskGroup

logger = logging.getLogger(__name__)

SAFE_GRADES = frozenset({'O', 'A+', 'A', 'B'})
HIGH_RISK_GRADES = frozenset({'P', 'F'})
LOW_RISK_GRADES = frozenset({'C', 'B+'})

ATTENDANCE_THRESHOLD = 75.0
MID_TERM_THRESHOLD = 8.0
ASSIGNMENT_THRESHOLD = 5.0
QUIZ_THRESHOLD = 50.0

# Sort rank: highest risk first
RISK_ORDER = {'high': 0, 'medium': 1, 'low': 2}


def _num(value: float) -> str:
    """Render 70.0 as '70' and keep every digit otherwise (74.9999999 stays as is)."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def grade_risk_signal(grade: Optional[str]) -> Optional[str]:
    """Risk signal carried by the letter grade alone: 'high', 'low' or None."""
    if grade in HIGH_RISK_GRADES:
        return 'high'
    if grade in LOW_RISK_GRADES:
        return 'low'
    return None


def threshold_factors(record: CourseRecord) -> List[str]:
    """Risk factors from attendance, mid-term, assignment and quiz thresholds."""
    factors = []
    if record.attendance < ATTENDANCE_THRESHOLD:
        factors.append(f"Low attendance ({_num(record.attendance)}%)")
    if record.mid_term_marks < MID_TERM_THRESHOLD:
        factors.append(f"Poor mid-term marks ({_num(record.mid_term_marks)}/20)")
    if record.assignments < ASSIGNMENT_THRESHOLD:
        factors.append(f"Low assignment score ({_num(record.assignments)}/10)")
    if record.quiz_taken and record.quiz_score < QUIZ_THRESHOLD:
        factors.append(f"Low quiz score ({_num(record.quiz_score)}%)")
    return factors


def level_from_factor_count(count: int) -> Optional[str]:
    if count >= 3:
        return 'high'
    elif count >= 2:
        return 'medium'
    elif count >= 1:
        return 'low'
    return None


def assess_course(record: CourseRecord) -> Optional[CourseRisk]:
    """
    Assess one student-course pair.

    Returns None when the course is not at risk: either the predicted grade
    is O/A+/A/B, or nothing at all was flagged. A P/F grade forces 'high' and
    a C/B+ grade forces 'low' regardless of how many thresholds are crossed;
    without a grade signal the level follows the number of factors.
    """
    grade = parse_predicted_grade(record.predicted_grade).letter
    if grade in SAFE_GRADES:
        return None

    factors = []
    signal = grade_risk_signal(grade)
    if signal == 'high':
        factors.append(f"High risk grade ({grade})")
    elif signal == 'low':
        factors.append(f"Low risk grade ({grade})")

    factors.extend(threshold_factors(record))
    if not factors:
        return None

    level = signal or level_from_factor_count(len(factors))
    return CourseRisk(
        course_name=record.course_name,
        risk_factors=factors,
        risk_level=level,
        risk_color=get_risk_color(level)
    )


def max_risk_level(levels: Iterable[str]) -> str:
    return min(levels, key=lambda level: RISK_ORDER[level])


def classify(roster: Iterable[CourseRecord]) -> List[StudentRiskGroup]:
    """
    Build the grouped at-risk report for a roster.

    Args:
        roster: All course records for one faculty member

    Returns:
        One group per student with at least one at-risk course, highest
        overall risk first. Students keep roster order within a level.
    """
    if roster is None:
        raise ValueError("roster must be a sequence, not None")

    groups: Dict[str, dict] = {}
    for record in roster:
        assessment = assess_course(record)
        if assessment is None:
            continue

        group = groups.get(record.student_id)
        if group is None:
            group = {
                'student_id': record.student_id,
                'student_name': record.student_name,
                'student_email': record.student_email,
                'courses': [],
            }
            groups[record.student_id] = group
        group['courses'].append(assessment)

    results = []
    for group in groups.values():
        overall = max_risk_level(c.risk_level for c in group['courses'])
        results.append(StudentRiskGroup(
            overall_risk_level=overall,
            risk_color=get_risk_color(overall),
            **group
        ))
    results.sort(key=lambda g: RISK_ORDER[g.overall_risk_level])

    logger.info(f"Risk report: {len(results)} at-risk students")
    return results


def risk_summary(groups: List[StudentRiskGroup]) -> Dict[str, int]:
    """Count students per overall risk level."""
    summary = {'high': 0, 'medium': 0, 'low': 0}
    for group in groups:
        summary[group.overall_risk_level] += 1
    summary['total'] = len(groups)
    return summary


def get_risk_color(level: str) -> str:
    """Dashboard badge variant for a risk level."""
    if level == 'high':
        return 'destructive'
    if level == 'medium':
        return 'default'
    return 'secondary'
