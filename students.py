"""
Student record operations: admission, faculty edits and absence marking.

Every function takes the current collection and returns a new one together
with the affected record. gpa and status are recomputed on each change so
they never drift from marks and attendance.
"""
import copy
import logging
import time
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from errors import NotFound, ValidationError
from grading import classify_status, student_gpa, validate_percentage
from models import new_student

logger = logging.getLogger(__name__)


def refresh_derived(student: Dict) -> Dict:
    """Return a copy of the student with gpa and status recomputed."""
    updated = copy.deepcopy(student)
    updated['gpa'] = student_gpa(updated['marks'])
    updated['status'] = classify_status(updated['attendance'], updated['gpa'])
    updated.setdefault('absent_flag', False)
    for field in ('notes', 'achievements', 'certificates'):
        updated.setdefault(field, [])
    return updated


def refresh_all(students: Iterable[Dict]) -> List[Dict]:
    return [refresh_derived(s) for s in students]


def find_student(students: List[Dict], student_id: str) -> Dict:
    for student in students:
        if student['id'] == student_id:
            return student
    raise NotFound(f"Student {student_id} not found")


def generate_student_id(students: List[Dict]) -> str:
    existing = {s['id'] for s in students}
    while True:
        timestamp = str(int(time.time() * 1000))[-4:]
        student_id = f"s{timestamp}{uuid.uuid4().hex[:4]}"
        if student_id not in existing:
            return student_id


def _replace(students: List[Dict], updated: Dict) -> List[Dict]:
    return [updated if s['id'] == updated['id'] else copy.deepcopy(s) for s in students]


def admit_student(students: List[Dict], name: str, attendance, marks,
                  student_id: Optional[str] = None) -> Tuple[List[Dict], Dict]:
    """
    Enrol a new student.

    Raises ValidationError for a blank name, out-of-range percentages or a
    student id that is already taken.
    """
    name = (name or '').strip()
    if not name:
        raise ValidationError("Student name is required")
    attendance = validate_percentage(attendance, 'attendance')
    marks = validate_percentage(marks, 'marks')

    if student_id:
        if any(s['id'] == student_id for s in students):
            raise ValidationError(f"Student id {student_id} already exists")
    else:
        student_id = generate_student_id(students)

    student = refresh_derived(new_student(student_id, name, attendance, marks))
    logger.info(f"Admitted {name} as {student_id} ({student['status']})")
    return [copy.deepcopy(s) for s in students] + [student], student


def update_student(students: List[Dict], student_id: str, marks=None, attendance=None,
                   note: Optional[str] = None, achievement: Optional[str] = None,
                   certificate: Optional[str] = None) -> Tuple[List[Dict], Dict]:
    """Apply a faculty edit. Blank note/achievement/certificate values are ignored."""
    updated = copy.deepcopy(find_student(students, student_id))

    if marks is not None and marks != '':
        updated['marks'] = validate_percentage(marks, 'marks')
    if attendance is not None and attendance != '':
        updated['attendance'] = validate_percentage(attendance, 'attendance')

    for field, value in (('notes', note), ('achievements', achievement), ('certificates', certificate)):
        text = '' if value is None else str(value).strip()
        if text:
            updated.setdefault(field, []).append(text)

    updated = refresh_derived(updated)
    return _replace(students, updated), updated


def mark_absent(students: List[Dict], student_id: str) -> Tuple[List[Dict], Dict]:
    updated = copy.deepcopy(find_student(students, student_id))
    updated['absent_flag'] = True
    return _replace(students, updated), updated


def import_students(students: List[Dict], records: Iterable[Dict]) -> Tuple[List[Dict], int, int]:
    """
    Bulk admission from spreadsheet rows with 'name', 'attendance', 'marks'
    and an optional 'id'. Invalid or duplicate rows are skipped.
    """
    current = [copy.deepcopy(s) for s in students]
    added = skipped = 0

    for record in records:
        try:
            current, _ = admit_student(
                current,
                record.get('name'),
                record.get('attendance'),
                record.get('marks'),
                student_id=record.get('id') or None,
            )
            added += 1
        except ValidationError as e:
            logger.warning(f"Skipping row {record}: {e.message}")
            skipped += 1

    return current, added, skipped
