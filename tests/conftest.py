"""
Tenacity ERP - Test Configuration and Fixtures
"""
import os
import tempfile

import pytest

# Keep import-time side effects of app.py out of the working tree
_scratch = tempfile.mkdtemp(prefix='tenacity-tests-')
os.environ.setdefault('TENACITY_DATABASE', os.path.join(_scratch, 'import.db'))
os.environ.setdefault('UPLOAD_FOLDER', os.path.join(_scratch, 'uploads'))
os.environ.setdefault('EXPORT_FOLDER', os.path.join(_scratch, 'exports'))

from seed_data import seed_rooms, seed_students  # noqa: E402
from storage import CollectionStore  # noqa: E402


@pytest.fixture
def students():
    """A fresh copy of the seed cohort"""
    return seed_students()


@pytest.fixture
def rooms():
    """A fresh copy of the seed hostel rooms"""
    return seed_rooms()


@pytest.fixture
def store(tmp_path):
    """A store backed by a throwaway sqlite file"""
    collection_store = CollectionStore(str(tmp_path / 'store.db'))
    yield collection_store
    collection_store.close()


@pytest.fixture
def app(tmp_path):
    from app import app as flask_app

    flask_app.config.update(
        TESTING=True,
        DATABASE=str(tmp_path / 'app.db'),
        UPLOAD_FOLDER=str(tmp_path / 'uploads'),
        EXPORT_FOLDER=str(tmp_path / 'exports'),
    )
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, role, student_id=None):
    body = {'role': role}
    if student_id:
        body['student_id'] = student_id
    return client.post('/select_role', json=body)


@pytest.fixture
def admin_client(client):
    login(client, 'Admin')
    return client


@pytest.fixture
def faculty_client(client):
    login(client, 'Faculty')
    return client
