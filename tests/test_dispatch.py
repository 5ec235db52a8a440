"""
Tests for ingestion dispatchers and the Celery ingestion task.
"""

import base64
import threading

import pytest

from tasks.dispatch import (
    CeleryDispatcher, IngestionRequest, InlineDispatcher, ThreadDispatcher, build_dispatcher
)


def join_worker(task_id, timeout=10):
    for thread in threading.enumerate():
        if thread.name == f'ingest-task-{task_id}':
            thread.join(timeout)


class TestBuildDispatcher:
    """Test backend selection."""

    @pytest.mark.parametrize('backend,expected', [
        ('thread', ThreadDispatcher),
        ('celery', CeleryDispatcher),
        ('inline', InlineDispatcher),
    ])
    def test_known_backends(self, recording_gateway, backend, expected):
        assert isinstance(build_dispatcher(backend, recording_gateway), expected)

    def test_unknown_backend(self, recording_gateway):
        with pytest.raises(ValueError, match='Unknown ingestion backend'):
            build_dispatcher('process', recording_gateway)


class TestThreadDispatcher:
    def test_worker_runs_in_background(self, gateway, seller_id, make_workbook, scenario_a_rows):
        task_id = gateway.create_task(seller_id)
        request = IngestionRequest(make_workbook(scenario_a_rows), seller_id, task_id)

        ThreadDispatcher(gateway).dispatch(request)
        join_worker(task_id)

        task = gateway.get_task(task_id)
        assert task['status'] == 'Completed'
        assert task['num_created'] == 4


class TestCeleryDispatcher:
    """Test the Celery handoff."""

    def test_payload_is_base64(self, monkeypatch):
        from tasks.ingestion_tasks import ingest_offers_file

        sent = {}

        class FakeResult:
            id = 'job-1'

        def fake_apply_async(args=None, **kwargs):
            sent['args'] = args
            return FakeResult()

        monkeypatch.setattr(ingest_offers_file, 'apply_async', fake_apply_async)

        CeleryDispatcher().dispatch(IngestionRequest(b'\x00xlsx', 3, 11))

        payload, seller_id, task_id = sent['args']
        assert base64.b64decode(payload) == b'\x00xlsx'
        assert (seller_id, task_id) == (3, 11)

    def test_ingestion_task_runs_worker(self, monkeypatch, gateway, seller_id, make_workbook, scenario_a_rows):
        import tasks.ingestion_tasks as ingestion_tasks

        monkeypatch.setattr(ingestion_tasks, 'get_gateway', lambda: gateway)
        task_id = gateway.create_task(seller_id)
        payload = base64.b64encode(make_workbook(scenario_a_rows)).decode('ascii')

        result = ingestion_tasks.ingest_offers_file.apply(args=[payload, seller_id, task_id])

        assert result.get() == {'task_id': task_id, 'status': 'Completed'}
        assert gateway.get_task(task_id)['num_errors'] == 1

    def test_finished_task_is_not_ingested_again(self, monkeypatch, gateway, seller_id, make_workbook, scenario_a_rows):
        import tasks.ingestion_tasks as ingestion_tasks

        monkeypatch.setattr(ingestion_tasks, 'get_gateway', lambda: gateway)
        task_id = gateway.create_task(seller_id)
        payload = base64.b64encode(make_workbook(scenario_a_rows)).decode('ascii')

        ingestion_tasks.ingest_offers_file.apply(args=[payload, seller_id, task_id])
        result = ingestion_tasks.ingest_offers_file.apply(args=[payload, seller_id, task_id])

        assert result.get() == {'task_id': task_id, 'status': 'Completed'}
        assert gateway.get_task(task_id)['num_created'] == 4

    def test_messages_acknowledged_after_run(self):
        from tasks.celery_app import celery_app

        assert celery_app.conf.task_acks_late is True
        assert celery_app.conf.task_reject_on_worker_lost is True
