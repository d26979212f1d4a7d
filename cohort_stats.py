"""
Cohort-level summaries for the faculty and admin dashboards and the
institution report.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List

from errors import ValidationError
from models import STATUS_AT_RISK, STATUS_AVERAGE, STATUS_SAFE


def round_half_up(value: float, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def summarize(students: List[Dict]) -> Dict:
    """
    Averages and status counts over the whole collection.

    The mean of an empty cohort is undefined, so an empty list raises
    ValidationError; callers should check before summarising.
    """
    if not students:
        raise ValidationError("Cannot summarise an empty student collection")

    count = len(students)
    avg_attendance = sum(s['attendance'] for s in students) / count
    avg_gpa = sum(s['gpa'] for s in students) / count

    counts = {STATUS_SAFE: 0, STATUS_AVERAGE: 0, STATUS_AT_RISK: 0}
    for student in students:
        counts[student['status']] += 1

    return {
        'count': count,
        'avg_attendance': round_half_up(avg_attendance),
        'avg_gpa': round_half_up(avg_gpa),
        'safe_count': counts[STATUS_SAFE],
        'average_count': counts[STATUS_AVERAGE],
        'at_risk_count': counts[STATUS_AT_RISK],
    }


def _percent(part: int, whole: int) -> float:
    return round_half_up(part / whole * 100, 1)


def status_distribution(summary: Dict) -> Dict[str, float]:
    """Share of each status as a percentage (1 decimal place)."""
    count = summary['count']
    return {
        STATUS_SAFE: _percent(summary['safe_count'], count),
        STATUS_AVERAGE: _percent(summary['average_count'], count),
        STATUS_AT_RISK: _percent(summary['at_risk_count'], count),
    }


def quality_indicators(summary: Dict) -> Dict[str, str]:
    avg_gpa = summary['avg_gpa']
    avg_attendance = summary['avg_attendance']

    if avg_gpa >= 7:
        performance = 'Excellent'
    elif avg_gpa >= 6:
        performance = 'Good'
    else:
        performance = 'Needs Improvement'

    if avg_attendance >= 85:
        attendance = 'Excellent'
    elif avg_attendance >= 75:
        attendance = 'Good'
    else:
        attendance = 'Needs Improvement'

    retention = _percent(summary['count'] - summary['at_risk_count'], summary['count'])

    return {
        'academic_performance': performance,
        'attendance_rate': attendance,
        'student_retention': f"{retention:.1f}%",
    }
