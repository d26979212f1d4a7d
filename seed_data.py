"""
Seed dataset loaded when storage holds nothing usable for a collection.
"""
import copy

from models import new_room, new_student
from students import refresh_all

SEED_STUDENTS = refresh_all([
    new_student('s1', 'Aman Kumar', 65, 55),
    new_student('s2', 'Riya Singh', 88, 82),
    new_student('s3', 'Vikram Patel', 58, 40),
    new_student('s4', 'Priya Sharma', 92, 91),
    new_student('s5', 'Rahul Verma', 74, 68),
    new_student('s6', 'Neha Gupta', 80, 75),
    new_student('s7', 'Karan Joshi', 69, 60),
    new_student('s8', 'Sneha Reddy', 54, 38),
    new_student('s9', 'Dev Anand', 86, 79),
    new_student('s10', 'Meera Nair', 71, 65),
])

SEED_ROOMS = [
    new_room('R101', 4, ['s1', 's2', 's3']),
    new_room('R102', 4, ['s4', 's5']),
    new_room('R103', 4, ['s6', 's7', 's8', 's9']),
    new_room('R104', 4, ['s10']),
    new_room('R105', 4),
]

SEED_TRANSACTIONS = []


def seed_students():
    return copy.deepcopy(SEED_STUDENTS)


def seed_rooms():
    return copy.deepcopy(SEED_ROOMS)


def seed_transactions():
    return copy.deepcopy(SEED_TRANSACTIONS)
