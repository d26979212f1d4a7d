from typing import Dict, List, Tuple

LOW_ATTENDANCE = 75
DECLINING_GPA = 5.5

LOW_ATTENDANCE_KIND = 'low_attendance'
EXAM_ABSENCE_KIND = 'exam_absence'
DECLINING_PERFORMANCE_KIND = 'declining_performance'


def evaluate(student: Dict) -> List[Dict]:
    """
    Return the early-warning indicators for a student.

    Checks run in a fixed order (attendance, exam absence, performance) and
    are independent, so a student can carry any combination of them.
    """
    indicators = []

    if student['attendance'] < LOW_ATTENDANCE:
        indicators.append({
            'kind': LOW_ATTENDANCE_KIND,
            'icon': '🔻',
            'message': 'Low attendance',
        })

    if student.get('absent_flag'):
        indicators.append({
            'kind': EXAM_ABSENCE_KIND,
            'icon': '⭕',
            'message': 'Absent in exam',
        })

    if student['gpa'] < DECLINING_GPA:
        indicators.append({
            'kind': DECLINING_PERFORMANCE_KIND,
            'icon': '📉',
            'message': 'Declining performance',
        })

    return indicators


def flag_students(students: List[Dict]) -> List[Tuple[Dict, List[Dict]]]:
    """Students with at least one indicator, in collection order."""
    flagged = []
    for student in students:
        indicators = evaluate(student)
        if indicators:
            flagged.append((student, indicators))
    return flagged
