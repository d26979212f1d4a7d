"""
Unit tests for the persistence gateway
"""
import sqlite3
import threading

import pytest

from errors import ValidationError
from seed_data import seed_rooms, seed_students
from storage import CollectionStore


class TestLoadFallback:

    def test_empty_store_returns_seed(self, store):
        assert store.load('students') == seed_students()
        assert store.load('rooms') == seed_rooms()
        assert store.load('transactions') == []

    def test_fallback_is_a_copy(self, store):
        store.load('students')[0]['name'] = 'Changed'
        assert store.load('students')[0]['name'] == 'Aman Kumar'

    def test_corrupt_payload_falls_back(self, store, caplog):
        conn = store.connect()
        conn.execute(
            "INSERT INTO collections (name, payload, updated_at) VALUES (?, ?, ?)",
            ('rooms', '{not json', '2024-01-01'),
        )
        conn.commit()
        with caplog.at_level('WARNING'):
            assert store.load('rooms') == seed_rooms()
        assert 'not valid JSON' in caplog.text

    def test_non_list_payload_falls_back(self, store):
        store.connect().execute(
            "INSERT INTO collections (name, payload, updated_at) VALUES (?, ?, ?)",
            ('transactions', '{"a": 1}', '2024-01-01'),
        )
        assert store.load('transactions') == []

    def test_unreadable_database_falls_back(self, tmp_path):
        broken = CollectionStore(str(tmp_path / 'missing-dir' / 'store.db'))
        assert broken.load('students') == seed_students()

    def test_unknown_collection(self, store):
        with pytest.raises(ValidationError):
            store.load('payroll')


class TestSave:

    def test_round_trip(self, store):
        rooms = seed_rooms()[:2]
        assert store.save('rooms', rooms) is True
        assert store.load('rooms') == rooms

    def test_stale_student_fields_recomputed_on_load(self, store):
        store.save('students', [
            {'id': 's1', 'name': 'A', 'attendance': 65, 'marks': 55, 'gpa': 6.8, 'status': 'Safe'},
        ])
        student = store.load('students')[0]
        assert student['gpa'] == 5.5
        assert student['status'] == 'At-Risk'

    def test_persists_across_connections(self, tmp_path):
        path = str(tmp_path / 'shared.db')
        first = CollectionStore(path)
        first.save('transactions', [{'receipt_id': 'REC1', 'amount': 10}])
        first.close()
        assert CollectionStore(path).load('transactions') == [{'receipt_id': 'REC1', 'amount': 10}]

    def test_write_failure_is_not_fatal(self, store, caplog):
        assert store.save('rooms', [{'id': object()}]) is False
        assert 'Could not save rooms' in caplog.text

    def test_reset_restores_seed(self, store):
        store.save('students', [])
        store.save('transactions', [{'receipt_id': 'REC1'}])
        assert store.reset() is True
        assert store.load('students') == seed_students()
        assert store.load('transactions') == []


class TestLocking:

    def test_locked_is_reentrant(self, store):
        with store.locked('rooms'):
            with store.locked('rooms'):
                assert store.save('rooms', seed_rooms())

    def test_lock_blocks_other_threads(self, store):
        acquired = []

        def worker():
            with store.locked('students'):
                acquired.append(True)

        with store.locked('students'):
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join(timeout=0.2)
            assert acquired == []
        thread.join(timeout=2)
        assert acquired == [True]

    def test_unknown_collection_lock(self, store):
        with pytest.raises(ValidationError):
            with store.locked('payroll'):
                pass


class TestMalformedStudents:

    def test_missing_fields_fall_back(self, store):
        store.save('students', [{'id': 's1', 'name': 'No marks'}])
        assert store.load('students') == seed_students()
