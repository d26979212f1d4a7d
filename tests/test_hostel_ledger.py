"""
Unit tests for hostel allocation bookkeeping
"""
import copy

import pytest

from errors import AlreadyAllocated, CapacityExceeded, NotFound
from hostel_ledger import allocate, allocate_room, deallocate, deallocate_room, hostel_ledger
from models import new_room


class TestAllocateRoom:
    """Single-room allocation"""

    def test_appends_and_increments(self):
        room = new_room('R1', 2)
        updated = allocate_room(room, 's1')
        assert updated['occupants'] == ['s1']
        assert updated['occupied'] == 1
        # Input is not mutated
        assert room['occupants'] == [] and room['occupied'] == 0

    def test_full_room_raises_and_is_unchanged(self):
        room = new_room('R103', 4, ['s6', 's7', 's8', 's9'])
        before = copy.deepcopy(room)
        with pytest.raises(CapacityExceeded):
            allocate_room(room, 's1')
        assert room == before

    def test_duplicate_in_room_raises(self):
        room = new_room('R1', 4, ['s1'])
        with pytest.raises(AlreadyAllocated):
            allocate_room(room, 's1')


class TestDeallocateRoom:
    """Single-room deallocation"""

    def test_removes_and_decrements(self):
        room = new_room('R1', 4, ['s1', 's2'])
        updated = deallocate_room(room, 's1')
        assert updated['occupants'] == ['s2']
        assert updated['occupied'] == 1

    def test_twice_never_goes_negative(self):
        room = deallocate_room(new_room('R1', 4, ['s1']), 's1')
        assert room['occupied'] == 0
        with pytest.raises(NotFound):
            deallocate_room(room, 's1')
        again = deallocate_room(room, 's1', missing_ok=True)
        assert again['occupied'] == 0
        assert again['occupants'] == []

    def test_floor_on_inconsistent_count(self):
        room = {'id': 'R1', 'capacity': 4, 'occupied': 0, 'occupants': ['s1']}
        assert deallocate_room(room, 's1')['occupied'] == 0


class TestCrossRoomPolicy:
    """Allocation over the full room set"""

    def test_allocate_into_room(self, rooms, students):
        students.append({'id': 's11', 'name': 'New Student'})
        updated = allocate(rooms, 'R105', 's11', students)
        room = next(r for r in updated if r['id'] == 'R105')
        assert room['occupants'] == ['s11']
        assert room['occupied'] == 1
        # Original room list untouched
        assert next(r for r in rooms if r['id'] == 'R105')['occupants'] == []

    def test_student_in_another_room_rejected(self, rooms):
        with pytest.raises(AlreadyAllocated):
            allocate(rooms, 'R105', 's1')

    def test_full_room_rejected(self, rooms):
        with pytest.raises(CapacityExceeded):
            allocate(rooms, 'R103', 'new-student')

    def test_unknown_room(self, rooms):
        with pytest.raises(NotFound):
            allocate(rooms, 'R999', 'new-student')

    def test_unknown_student(self, rooms, students):
        with pytest.raises(NotFound):
            allocate(rooms, 'R105', 'ghost', students)

    def test_move_between_rooms(self, rooms):
        rooms = deallocate(rooms, 'R101', 's1')
        rooms = allocate(rooms, 'R105', 's1')
        assert hostel_ledger.find_room_of(rooms, 's1')['id'] == 'R105'
        assert hostel_ledger.validate_rooms(rooms) == []


class TestOccupancy:

    def test_summary_for_seed_rooms(self, rooms):
        summary = hostel_ledger.occupancy_summary(rooms)
        assert summary['total_capacity'] == 20
        assert summary['total_occupied'] == 10
        assert summary['occupancy_rate'] == 50.0
        assert summary['available_rooms'] == 4
        assert summary['full_rooms'] == 1

    def test_summary_for_no_rooms(self):
        assert hostel_ledger.occupancy_summary([])['occupancy_rate'] == 0.0

    def test_unallocated_students(self, rooms, students):
        students.append({'id': 's11', 'name': 'New Student'})
        assert [s['id'] for s in hostel_ledger.unallocated_students(students, rooms)] == ['s11']

    def test_validate_detects_violations(self):
        rooms = [
            {'id': 'A', 'capacity': 1, 'occupied': 3, 'occupants': ['s1', 's1']},
            {'id': 'B', 'capacity': 2, 'occupied': 1, 'occupants': ['s1']},
        ]
        violations = hostel_ledger.validate_rooms(rooms)
        assert any('does not match' in v for v in violations)
        assert any('over capacity' in v for v in violations)
        assert any('duplicate occupants' in v for v in violations)
        assert any('both A and B' in v for v in violations)

    def test_seed_rooms_are_consistent(self, rooms):
        assert hostel_ledger.validate_rooms(rooms) == []
