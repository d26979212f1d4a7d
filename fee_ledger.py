import copy
import logging
import math
import time
import uuid
from datetime import date as date_type, datetime
from typing import Dict, Iterable, List

from errors import InvalidAmount, NotFound, UnknownStudent, ValidationError
from models import FEE_TYPES


def generate_receipt_id() -> str:
    """REC + last 6 digits of the millisecond clock + 8 random hex chars."""
    timestamp = str(int(time.time() * 1000))[-6:]
    return f"REC{timestamp}{uuid.uuid4().hex[:8].upper()}"


def generate_transaction_id() -> str:
    return f"TXN-{datetime.now().strftime('%Y%m%d')}-{uuid.uuid4().hex[:8].upper()}"


def format_currency(amount: float, symbol: str = '₹') -> str:
    """Format an amount with Indian digit grouping, e.g. ₹1,23,456.50."""
    sign = '-' if amount < 0 else ''
    whole, fraction = f"{abs(amount):.2f}".split('.')

    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ','.join(groups + [tail])

    return f"{sign}{symbol}{whole}.{fraction}"


def _parse_amount(amount) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise InvalidAmount(f"Amount must be a number, got {amount!r}")
    if not math.isfinite(value):
        raise InvalidAmount(f"Amount must be a finite number, got {amount!r}")
    value = round(value, 2)
    if value <= 0:
        raise InvalidAmount(f"Amount must be at least 0.01, got {amount}")
    return value


def _parse_date(value) -> str:
    if value is None or value == '':
        return date_type.today().isoformat()
    if isinstance(value, date_type):
        return value.isoformat()
    try:
        return datetime.strptime(str(value), '%Y-%m-%d').date().isoformat()
    except ValueError:
        raise ValidationError(f"Date must be in YYYY-MM-DD format, got {value!r}")


class FeeLedger:
    """
    Append-only log of fee payments.

    Entries are never changed once recorded; the transactions property hands
    out copies so callers cannot edit the log in place.
    """

    def __init__(self, transactions: Iterable[Dict] = ()):
        self.logger = logging.getLogger(__name__)
        self._transactions = [copy.deepcopy(t) for t in transactions]
        self._receipt_ids = {t['receipt_id'] for t in self._transactions}

    @property
    def transactions(self) -> List[Dict]:
        return copy.deepcopy(self._transactions)

    def __len__(self):
        return len(self._transactions)

    def _new_receipt_id(self) -> str:
        receipt_id = generate_receipt_id()
        while receipt_id in self._receipt_ids:
            receipt_id = generate_receipt_id()
        return receipt_id

    def record_payment(self, students: List[Dict], student_id: str, amount,
                       date=None, fee_type: str = 'tuition') -> Dict:
        """
        Record a payment and return the new transaction.

        Raises InvalidAmount for non-positive amounts, UnknownStudent when
        the student id does not resolve and ValidationError for a malformed
        date or unknown fee type. The student's name is copied onto the
        transaction and is not updated if the student is later renamed.
        """
        value = _parse_amount(amount)
        paid_on = _parse_date(date)
        if fee_type not in FEE_TYPES:
            raise ValidationError(f"Unknown fee type {fee_type!r}")

        student = next((s for s in students if s['id'] == student_id), None)
        if student is None:
            raise UnknownStudent(f"Student {student_id} not found")

        transaction = {
            'id': generate_transaction_id(),
            'student_id': student_id,
            'student_name': student['name'],
            'amount': value,
            'date': paid_on,
            'receipt_id': self._new_receipt_id(),
            'fee_type': fee_type,
        }
        self.logger.info(f"Recorded {format_currency(value)} from {student_id}, receipt {transaction['receipt_id']}")
        self._transactions.append(transaction)
        self._receipt_ids.add(transaction['receipt_id'])
        return copy.deepcopy(transaction)

    def total_collected(self) -> float:
        return round(sum(t['amount'] for t in self._transactions), 2)

    def transactions_for(self, student_id: str) -> List[Dict]:
        return [copy.deepcopy(t) for t in self._transactions if t['student_id'] == student_id]

    def total_for(self, student_id: str) -> float:
        return round(sum(t['amount'] for t in self._transactions if t['student_id'] == student_id), 2)

    def find_by_receipt(self, receipt_id: str) -> Dict:
        for transaction in self._transactions:
            if transaction['receipt_id'] == receipt_id:
                return copy.deepcopy(transaction)
        raise NotFound(f"Receipt {receipt_id} not found")
