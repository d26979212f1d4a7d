from typing import Dict, Iterable

from errors import ValidationError
from models import STATUS_AT_RISK, STATUS_AVERAGE, STATUS_SAFE

# Status thresholds
AT_RISK_ATTENDANCE = 75
AT_RISK_GPA = 5.0
SAFE_ATTENDANCE = 85
SAFE_GPA = 7.5

# Lowest band that earns the banded grade point; each band is 10 marks wide
FIRST_BAND = 40
LAST_BAND = 90


def validate_percentage(value, field: str = 'value') -> float:
    """
    Coerce a percentage to float and check it lies in [0, 100].
    Raises ValidationError for non-numeric or out-of-range input.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number, got {value!r}")
    if number != number or number < 0 or number > 100:
        raise ValidationError(f"{field} must be between 0 and 100, got {value}")
    return number


def score_to_grade_point(marks: float) -> float:
    """
    Map a 0-100 percentage to the 10 point scale.

    Marks in [band, band + 10) for band in 40, 50, ... 90 earn
    band / 10 + (marks - band) * 0.1. The 90 band also covers 100.
    Below 40 the grade point is marks * 0.1, floored at 0.
    """
    if marks < FIRST_BAND:
        return max(0.0, marks * 0.1)

    band = min(int(marks // 10) * 10, LAST_BAND)
    return band / 10 + (marks - band) * 0.1


def student_gpa(marks: float) -> float:
    """Grade point as stored on a student record. Status is classified on this value."""
    return round(score_to_grade_point(marks), 2)


def classify_status(attendance: float, gpa: float) -> str:
    """
    Classify a student as At-Risk, Safe or Average.

    At-Risk is checked first: a student with poor attendance is At-Risk
    even when the GPA alone would make them Safe.
    """
    if attendance < AT_RISK_ATTENDANCE or gpa < AT_RISK_GPA:
        return STATUS_AT_RISK
    if attendance >= SAFE_ATTENDANCE and gpa >= SAFE_GPA:
        return STATUS_SAFE
    return STATUS_AVERAGE


def projected_gpa(current_gpa: float, current_credits: float,
                  additions: Iterable[Dict]) -> float:
    """
    Credit-weighted GPA after adding new subjects.

    Each addition is a dict with 'credits' and 'marks'. Raises
    ValidationError when the total credit count is not positive.
    """
    weighted_total = current_gpa * current_credits
    total_credits = current_credits

    for subject in additions:
        credits = float(subject['credits'])
        marks = validate_percentage(subject['marks'], 'marks')
        weighted_total += score_to_grade_point(marks) * credits
        total_credits += credits

    if total_credits <= 0:
        raise ValidationError("Total credits must be greater than zero")

    return weighted_total / total_credits
