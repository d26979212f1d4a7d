import copy
import logging
from typing import Dict, List, Optional

from errors import AlreadyAllocated, CapacityExceeded, NotFound


class HostelLedger:
    """
    Room occupancy bookkeeping.

    Rooms are dicts with 'id', 'capacity', 'occupied' and 'occupants'.
    Every operation returns new room dicts and leaves its input untouched,
    so a failed allocation never partially applies.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def allocate_room(self, room: Dict, student_id: str) -> Dict:
        """
        Add a student to a single room.

        Raises CapacityExceeded when the room is full and AlreadyAllocated
        when the student is already one of its occupants.
        """
        if room['occupied'] >= room['capacity']:
            raise CapacityExceeded(f"Room {room['id']} is at full capacity")
        if student_id in room['occupants']:
            raise AlreadyAllocated(f"Student {student_id} is already in room {room['id']}")

        updated = copy.deepcopy(room)
        updated['occupants'].append(student_id)
        updated['occupied'] += 1
        return updated

    def deallocate_room(self, room: Dict, student_id: str, missing_ok: bool = False) -> Dict:
        """
        Remove a student from a single room.

        The occupied count never drops below zero. A student who is not in
        the room raises NotFound unless missing_ok is set, in which case an
        unchanged copy is returned.
        """
        updated = copy.deepcopy(room)
        if student_id not in updated['occupants']:
            if missing_ok:
                return updated
            raise NotFound(f"Student {student_id} is not in room {room['id']}")

        updated['occupants'] = [sid for sid in updated['occupants'] if sid != student_id]
        updated['occupied'] = max(0, updated['occupied'] - 1)
        return updated

    def find_room_of(self, rooms: List[Dict], student_id: str) -> Optional[Dict]:
        for room in rooms:
            if student_id in room['occupants']:
                return room
        return None

    def _get_room(self, rooms: List[Dict], room_id: str) -> Dict:
        room = next((r for r in rooms if r['id'] == room_id), None)
        if room is None:
            raise NotFound(f"Room {room_id} not found")
        return room

    def allocate(self, rooms: List[Dict], room_id: str, student_id: str,
                 students: Optional[List[Dict]] = None) -> List[Dict]:
        """
        Allocate a student to a room, checking the whole room set.

        A student may hold at most one room. When a student collection is
        passed the id must resolve in it.
        """
        room = self._get_room(rooms, room_id)

        if students is not None and not any(s['id'] == student_id for s in students):
            raise NotFound(f"Student {student_id} not found")

        current = self.find_room_of(rooms, student_id)
        if current is not None:
            raise AlreadyAllocated(f"Student {student_id} is already allocated to room {current['id']}")

        updated = self.allocate_room(room, student_id)
        self.logger.info(f"Allocated {student_id} to room {room_id} ({updated['occupied']}/{updated['capacity']})")
        return [updated if r['id'] == room_id else copy.deepcopy(r) for r in rooms]

    def deallocate(self, rooms: List[Dict], room_id: str, student_id: str,
                   missing_ok: bool = False) -> List[Dict]:
        room = self._get_room(rooms, room_id)
        updated = self.deallocate_room(room, student_id, missing_ok=missing_ok)
        self.logger.info(f"Deallocated {student_id} from room {room_id}")
        return [updated if r['id'] == room_id else copy.deepcopy(r) for r in rooms]

    def unallocated_students(self, students: List[Dict], rooms: List[Dict]) -> List[Dict]:
        allocated = {sid for room in rooms for sid in room['occupants']}
        return [s for s in students if s['id'] not in allocated]

    def available_rooms(self, rooms: List[Dict]) -> List[Dict]:
        return [r for r in rooms if r['occupied'] < r['capacity']]

    def occupancy_summary(self, rooms: List[Dict]) -> Dict:
        total_capacity = sum(r['capacity'] for r in rooms)
        total_occupied = sum(r['occupied'] for r in rooms)
        rate = (total_occupied / total_capacity) * 100 if total_capacity > 0 else 0.0

        return {
            'total_rooms': len(rooms),
            'total_capacity': total_capacity,
            'total_occupied': total_occupied,
            'occupancy_rate': round(rate, 1),
            'available_rooms': len(self.available_rooms(rooms)),
            'full_rooms': sum(1 for r in rooms if r['occupied'] >= r['capacity']),
        }

    def validate_rooms(self, rooms: List[Dict]) -> List[str]:
        """
        Check the occupancy invariants over a room set.
        Returns a list of violations found.
        """
        violations = []
        seen = {}

        for room in rooms:
            room_id = room['id']
            occupants = room['occupants']

            if room['capacity'] <= 0:
                violations.append(f"Room {room_id}: capacity must be positive")
            if room['occupied'] != len(occupants):
                violations.append(
                    f"Room {room_id}: occupied count {room['occupied']} does not match {len(occupants)} occupants"
                )
            if len(occupants) > room['capacity']:
                violations.append(f"Room {room_id}: over capacity")
            if len(set(occupants)) != len(occupants):
                violations.append(f"Room {room_id}: duplicate occupants")

            for student_id in set(occupants):
                if student_id in seen:
                    violations.append(
                        f"Student {student_id} is allocated to both {seen[student_id]} and {room_id}"
                    )
                else:
                    seen[student_id] = room_id

        return violations


# Global wrapper functions for convenience
hostel_ledger = HostelLedger()


def allocate_room(room: Dict, student_id: str) -> Dict:
    return hostel_ledger.allocate_room(room, student_id)


def deallocate_room(room: Dict, student_id: str, missing_ok: bool = False) -> Dict:
    return hostel_ledger.deallocate_room(room, student_id, missing_ok)


def allocate(rooms: List[Dict], room_id: str, student_id: str,
             students: Optional[List[Dict]] = None) -> List[Dict]:
    return hostel_ledger.allocate(rooms, room_id, student_id, students)


def deallocate(rooms: List[Dict], room_id: str, student_id: str,
               missing_ok: bool = False) -> List[Dict]:
    return hostel_ledger.deallocate(rooms, room_id, student_id, missing_ok)
