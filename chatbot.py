"""
Scripted help-desk assistant.

Responses come from an ordered table of keyword rules evaluated top to
bottom against the lower-cased message; the first match wins and anything
unmatched gets the fallback listing the supported topics.
"""
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

Rule = Tuple[Callable[[str], bool], str]

GREETING = (
    "Hello! I'm your Tenacity ERP assistant. I can help you with information "
    "about exams, fees, placements and hostel services. How can I assist you today?"
)


def normalize(text: str) -> str:
    return (text or '').lower().strip()


def contains_any(*keywords: str) -> Callable[[str], bool]:
    return lambda message: any(keyword in message for keyword in keywords)


RULES: List[Rule] = [
    (contains_any('exam', 'test', 'assessment'),
     "Exam Information:\n"
     "- Check your exam schedule in the Student Dashboard\n"
     "- View your current marks and CGPA\n"
     "- Use the CGPA calculator to predict future scores\n"
     "- Contact faculty for exam-related queries\n"
     "Email: exams@tenacityerp.edu"),
    (contains_any('fee', 'payment', 'money', 'receipt'),
     "Fee Information:\n"
     "- Pay fees through the Fee Module\n"
     "- Download receipts instantly after payment\n"
     "- Check fee status and payment history\n"
     "Fee Office Hours: Mon-Fri, 9 AM - 5 PM\n"
     "Email: fees@tenacityerp.edu"),
    (contains_any('placement', 'job', 'career', 'internship'),
     "Placement & Career Services:\n"
     "- Access the placement portal from the student dashboard\n"
     "- Keep your resume and academic records up to date\n"
     "- Register for campus recruitment drives\n"
     "Placement Cell: Mon-Fri, 10 AM - 4 PM\n"
     "Email: placements@tenacityerp.edu"),
    (contains_any('hostel', 'room', 'accommodation', 'mess'),
     "Hostel Information:\n"
     "- Room allocation is managed from the Admin Dashboard\n"
     "- Submit hostel requests and complaints to the warden\n"
     "- Hostel fees are paid through the Fee Module\n"
     "Hostel Office: 24/7 for emergencies\n"
     "Email: hostel@tenacityerp.edu"),
    (contains_any('marks', 'grade', 'cgpa', 'result'),
     "Academic Information:\n"
     "- View your marks in the Student Dashboard\n"
     "- Use the CGPA calculator for predictions\n"
     "- Early warning alerts highlight where to improve\n"
     "Academic Office: Mon-Fri, 9 AM - 5 PM\n"
     "Email: academics@tenacityerp.edu"),
    (contains_any('attendance', 'absent', 'present'),
     "Attendance Information:\n"
     "- View your attendance percentage in the dashboard\n"
     "- Minimum 75% attendance is required\n"
     "- Apply for attendance shortage through faculty"),
    (contains_any('help', 'support', 'contact'),
     "Contact Information:\n"
     "Main Office: Mon-Fri, 9 AM - 6 PM\n"
     "Email: support@tenacityerp.edu\n"
     "Address: Tenacity Institute of Technology, 123 Education Street, Knowledge City"),
    (contains_any('thank'),
     "You're welcome! Is there anything else I can help you with?"),
    (contains_any('hello', 'hi', 'hey'),
     "Hello! You can ask me about:\n"
     "- Exams and assessments\n"
     "- Fee payments and receipts\n"
     "- Placement and career services\n"
     "- Hostel accommodation\n"
     "- Academic records and CGPA"),
]

FALLBACK = (
    'I understand you\'re asking about "{message}". Here are some topics I can help with:\n'
    "- Exams: schedules, marks, CGPA\n"
    "- Fees: payments, receipts, status\n"
    "- Placements: career services, jobs\n"
    "- Hostel: room allocation, mess\n"
    "- Academics: grades, transcripts\n"
    "Or contact support@tenacityerp.edu"
)


def get_response(message: str, rules: Optional[List[Rule]] = None) -> str:
    text = normalize(message)
    for predicate, response in (RULES if rules is None else rules):
        if predicate(text):
            return response
    return FALLBACK.format(message=message)


class ChatSession:
    """Holds the transcript of one conversation; no other state."""

    def __init__(self):
        self.transcript: List[Dict] = []
        self._append('bot', GREETING)

    def _append(self, sender: str, message: str) -> Dict:
        entry = {
            'id': len(self.transcript) + 1,
            'sender': sender,
            'message': message,
            'timestamp': datetime.now().isoformat(),
        }
        self.transcript.append(entry)
        return entry

    def ask(self, message: str) -> Dict:
        self._append('user', message)
        return self._append('bot', get_response(message))
