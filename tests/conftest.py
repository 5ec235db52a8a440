"""
Pytest configuration and fixtures for offers loader tests.
"""

import io
import os

# Configure the app for tests before any settings are loaded
os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('INGESTION_BACKEND', 'inline')
os.environ.setdefault('LOG_FILE', os.devnull)

import openpyxl
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.models.schema import Base
from backend.models.task import TaskStatus
from services.exceptions import PersistenceError, SellerNotFoundError, TaskNotFoundError, TaskStateError
from services.gateway import PersistenceGateway, SqlAlchemyGateway

# Use in-memory SQLite for unit tests (fast, isolated)
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope='function')
def engine():
    """Create a fresh in-memory database for a test."""
    eng = create_engine(
        TEST_DATABASE_URL,
        connect_args={'check_same_thread': False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def gateway(engine):
    """Gateway over the test database."""
    return SqlAlchemyGateway(sessionmaker(autocommit=False, autoflush=False, bind=engine))


@pytest.fixture
def seller_id(gateway):
    """A registered seller."""
    return gateway.create_seller('First')


@pytest.fixture
def make_workbook():
    """
    Build .xlsx bytes from lists of rows, one list per sheet.

    make_workbook() gives a workbook with a single empty sheet.
    """
    def build(*sheets):
        workbook = openpyxl.Workbook()
        for index, rows in enumerate(sheets):
            sheet = workbook.active if index == 0 else workbook.create_sheet(f'Sheet{index + 1}')
            for row in rows:
                sheet.append(row)
        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    return build


@pytest.fixture
def scenario_a_rows():
    """Five rows, the fourth has a non-numeric price."""
    return [
        [1, 'Pencil HB', 30, 100, 'true'],
        [2, 'Notebook A5', 120, 40, 'true'],
        [3, 'Eraser', 15, 200, 'true'],
        [4, 'Ruler 30cm', 'cheap', 10, 'true'],
        [5, 'Stapler', 450, 7, 'true'],
    ]


class RecordingGateway(PersistenceGateway):
    """
    In-memory gateway that records calls.

    Tasks are plain dicts; bulk_apply counts every available offer as
    created. Set fail_bulk_apply / fail_force_error to simulate outages.
    """

    def __init__(self, seller_ids=(1,)):
        self.sellers = set(seller_ids)
        self.tasks = {}
        self.calls = []
        self.batches = []
        self.fail_bulk_apply = False
        self.fail_force_error = False
        self._next_id = 1

    def seller_exists(self, seller_id):
        return seller_id in self.sellers

    def create_task(self, seller_id):
        self.calls.append(('create_task', seller_id))
        if seller_id not in self.sellers:
            raise SellerNotFoundError(seller_id)
        task_id = self._next_id
        self._next_id += 1
        self.tasks[task_id] = {
            'task_id': task_id,
            'seller_id': seller_id,
            'status': TaskStatus.RUNNING.value,
            'num_errors': None,
            'num_created': None,
            'num_updated': None,
            'num_deleted': None,
        }
        return task_id

    def _task(self, task_id):
        if task_id not in self.tasks:
            raise TaskNotFoundError(task_id)
        return self.tasks[task_id]

    def bulk_apply(self, task_id, error_count, batch):
        self.calls.append(('bulk_apply', task_id))
        self.batches.append(list(batch))
        if self.fail_bulk_apply:
            raise PersistenceError("connection reset")
        task = self._task(task_id)
        if task['status'] != TaskStatus.RUNNING.value:
            raise TaskStateError(task_id, task['status'], TaskStatus.COMPLETED.value)
        created = sum(1 for offer in batch if offer.available)
        task.update(status=TaskStatus.COMPLETED.value, num_errors=error_count,
                    num_created=created, num_updated=0, num_deleted=0)
        return created, 0, 0

    def force_error(self, task_id):
        self.calls.append(('force_error', task_id))
        if self.fail_force_error:
            raise PersistenceError("connection reset")
        task = self._task(task_id)
        if task['status'] == TaskStatus.ERROR.value:
            return False
        if task['status'] == TaskStatus.COMPLETED.value:
            raise TaskStateError(task_id, task['status'], TaskStatus.ERROR.value)
        task.update(status=TaskStatus.ERROR.value, num_errors=None,
                    num_created=None, num_updated=None, num_deleted=None)
        return True

    def sweep_abandoned(self):
        self.calls.append(('sweep_abandoned',))
        running = [t for t in self.tasks.values() if t['status'] == TaskStatus.RUNNING.value]
        for task in running:
            task['status'] = TaskStatus.ERROR.value
        return len(running)

    def get_task(self, task_id):
        task = self.tasks.get(task_id)
        return dict(task) if task else None

    def call_names(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def recording_gateway():
    """Fake gateway with seller 1 registered."""
    return RecordingGateway()
