# Records are kept as plain dicts so they serialise straight to JSON and
# can be handed to pandas for export.
#
# Student:        id, name, attendance, marks, gpa, status, absent_flag,
#                 notes, achievements, certificates
# FeeTransaction: id, student_id, student_name, amount, date, receipt_id, fee_type
# HostelRoom:     id, capacity, occupied, occupants

from typing import Dict, List, Optional

STATUS_SAFE = 'Safe'
STATUS_AVERAGE = 'Average'
STATUS_AT_RISK = 'At-Risk'
STATUSES = (STATUS_SAFE, STATUS_AVERAGE, STATUS_AT_RISK)

ROLE_STUDENT = 'Student'
ROLE_FACULTY = 'Faculty'
ROLE_ADMIN = 'Admin'
ROLES = (ROLE_STUDENT, ROLE_FACULTY, ROLE_ADMIN)

FEE_TYPES = {
    'tuition': 'Tuition Fee',
    'hostel': 'Hostel Fee',
    'library': 'Library Fee',
    'lab': 'Laboratory Fee',
    'examination': 'Examination Fee',
    'misc': 'Miscellaneous',
}

# Collection names used by the persistence gateway
STUDENTS = 'students'
TRANSACTIONS = 'transactions'
ROOMS = 'rooms'
COLLECTIONS = (STUDENTS, TRANSACTIONS, ROOMS)


def new_student(student_id: str, name: str, attendance: float, marks: float,
                notes: Optional[List[str]] = None,
                achievements: Optional[List[str]] = None,
                certificates: Optional[List[str]] = None) -> Dict:
    """Build a student record without derived fields (see students.refresh_derived)."""
    return {
        'id': student_id,
        'name': name,
        'attendance': attendance,
        'marks': marks,
        'absent_flag': False,
        'notes': list(notes or []),
        'achievements': list(achievements or []),
        'certificates': list(certificates or []),
    }


def new_room(room_id: str, capacity: int, occupants: Optional[List[str]] = None) -> Dict:
    occupants = list(occupants or [])
    return {
        'id': room_id,
        'capacity': capacity,
        'occupied': len(occupants),
        'occupants': occupants,
    }
