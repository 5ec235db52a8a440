"""
Tests for the ingestion worker.
"""

import pytest

from services import ingestion_service
from services.exceptions import WorkbookFormatError
from services.ingestion_service import IngestionWorker, extract_row, open_workbook


class TestOpenWorkbook:
    """Test workbook decoding."""

    def test_valid_workbook(self, make_workbook):
        workbook = open_workbook(make_workbook([[1, 'Pen', 10, 1, 'true']]))
        sheet = workbook.worksheets[0]

        assert extract_row(sheet, 1) == (1, 'Pen', 10, 1, 'true')

    @pytest.mark.parametrize('data', [b'', b'not a spreadsheet', b'PK\x03\x04broken'])
    def test_garbage_raises_format_error(self, data):
        with pytest.raises(WorkbookFormatError):
            open_workbook(data)


class TestCollectOffers:
    """Test row collection across sheets."""

    def test_rows_tagged_with_seller(self, recording_gateway, make_workbook, scenario_a_rows):
        workbook = open_workbook(make_workbook(scenario_a_rows))

        batch, errors = IngestionWorker(recording_gateway).collect_offers(workbook, 7)

        assert errors == 1
        assert [offer.offer_id for offer in batch] == [1, 2, 3, 5]
        assert all(offer.seller_id == 7 for offer in batch)

    def test_all_sheets_in_document_order(self, recording_gateway, make_workbook):
        workbook = open_workbook(make_workbook(
            [[3, 'C', 1, 1, 'true'], [1, 'A', 1, 1, 'true']],
            [[2, 'B', 1, 1, 'false']]
        ))

        batch, errors = IngestionWorker(recording_gateway).collect_offers(workbook, 1)

        assert errors == 0
        assert [offer.offer_id for offer in batch] == [3, 1, 2]

    def test_header_row_is_rejected(self, recording_gateway, make_workbook):
        workbook = open_workbook(make_workbook([
            ['offer_id', 'name', 'price', 'quantity', 'available'],
            [1, 'Pen', 10, 1, 'true'],
        ]))

        batch, errors = IngestionWorker(recording_gateway).collect_offers(workbook, 1)

        assert errors == 1
        assert len(batch) == 1

    def test_empty_sheet_counts_one_error(self, recording_gateway, make_workbook):
        workbook = open_workbook(make_workbook())

        batch, errors = IngestionWorker(recording_gateway).collect_offers(workbook, 1)

        assert batch == []
        assert errors == 1

    def test_boolean_availability_cells_are_rejected(self, recording_gateway, make_workbook):
        workbook = open_workbook(make_workbook([
            [1, 'Pen', 10, 1, True],
            [2, 'Ink', 20, 1, 'false'],
        ]))

        batch, errors = IngestionWorker(recording_gateway).collect_offers(workbook, 1)

        assert errors == 1
        assert [offer.offer_id for offer in batch] == [2]

    def test_unreadable_row_is_counted(self, recording_gateway, make_workbook, scenario_a_rows, monkeypatch):
        def failing_extract(sheet, row_index):
            if row_index == 2:
                raise IndexError("cell out of range")
            return real_extract(sheet, row_index)

        real_extract = ingestion_service.extract_row
        monkeypatch.setattr(ingestion_service, 'extract_row', failing_extract)
        task_id = recording_gateway.create_task(1)

        IngestionWorker(recording_gateway).run(make_workbook(scenario_a_rows), 1, task_id)

        task = recording_gateway.tasks[task_id]
        assert task['status'] == 'Completed'
        assert task['num_errors'] == 2
        assert [offer.offer_id for offer in recording_gateway.batches[0]] == [1, 3, 5]


class TestWorkerWithFakeGateway:
    """Test which gateway calls the worker makes."""

    def test_bulk_apply_called_exactly_once(self, recording_gateway, make_workbook, scenario_a_rows):
        task_id = recording_gateway.create_task(1)

        IngestionWorker(recording_gateway).run(make_workbook(scenario_a_rows), 1, task_id)

        assert recording_gateway.call_names() == ['create_task', 'bulk_apply']
        assert len(recording_gateway.batches[0]) == 4
        assert recording_gateway.tasks[task_id]['num_errors'] == 1

    def test_unreadable_file_never_reaches_bulk_apply(self, recording_gateway):
        task_id = recording_gateway.create_task(1)

        IngestionWorker(recording_gateway).run(b'\x00\x01garbage', 1, task_id)

        assert 'bulk_apply' not in recording_gateway.call_names()
        assert recording_gateway.tasks[task_id]['status'] == 'Error'

    def test_no_valid_rows_never_reaches_bulk_apply(self, recording_gateway, make_workbook):
        task_id = recording_gateway.create_task(1)
        data = make_workbook([['x', 'Pen', 10, 1, 'true'], [2, '', 10, 1, 'true']])

        IngestionWorker(recording_gateway).run(data, 1, task_id)

        assert recording_gateway.call_names() == ['create_task', 'force_error']
        assert recording_gateway.tasks[task_id]['status'] == 'Error'

    def test_bulk_apply_failure_marks_error(self, recording_gateway, make_workbook, scenario_a_rows):
        task_id = recording_gateway.create_task(1)
        recording_gateway.fail_bulk_apply = True

        IngestionWorker(recording_gateway).run(make_workbook(scenario_a_rows), 1, task_id)

        assert recording_gateway.call_names() == ['create_task', 'bulk_apply', 'force_error']
        task = recording_gateway.tasks[task_id]
        assert task['status'] == 'Error'
        assert task['num_created'] is None

    def test_run_never_raises(self, recording_gateway, make_workbook, scenario_a_rows):
        task_id = recording_gateway.create_task(1)
        recording_gateway.fail_bulk_apply = True
        recording_gateway.fail_force_error = True

        IngestionWorker(recording_gateway).run(make_workbook(scenario_a_rows), 1, task_id)

        # left Running for the startup sweep
        assert recording_gateway.tasks[task_id]['status'] == 'Running'

    def test_finished_task_is_not_reapplied(self, recording_gateway, make_workbook, scenario_a_rows):
        task_id = recording_gateway.create_task(1)
        recording_gateway.force_error(task_id)

        IngestionWorker(recording_gateway).run(make_workbook(scenario_a_rows), 1, task_id)

        assert recording_gateway.tasks[task_id]['status'] == 'Error'


class TestWorkerWithDatabase:
    """End-to-end ingestion against the SQLite gateway."""

    def test_partial_file_completes(self, gateway, seller_id, make_workbook, scenario_a_rows):
        task_id = gateway.create_task(seller_id)

        IngestionWorker(gateway).run(make_workbook(scenario_a_rows), seller_id, task_id)

        task = gateway.get_task(task_id)
        assert task['status'] == 'Completed'
        assert task['num_errors'] == 1
        assert task['num_created'] == 4
        assert task['num_updated'] == 0
        assert task['num_deleted'] == 0
        assert task['finish_date'] is not None

        offers = gateway.search_offers(seller_id=seller_id)
        assert [offer['offer_id'] for offer in offers] == [1, 2, 3, 5]

    def test_oversized_values_are_row_errors(self, gateway, seller_id, make_workbook, scenario_a_rows):
        rows = [list(row) for row in scenario_a_rows]
        rows[3][2] = '100000000000000000000'
        rows.append([6, 'x' * 600, 10, 1, 'true'])
        task_id = gateway.create_task(seller_id)

        IngestionWorker(gateway).run(make_workbook(rows), seller_id, task_id)

        task = gateway.get_task(task_id)
        assert task['status'] == 'Completed'
        assert task['num_errors'] == 2
        assert task['num_created'] == 4

    def test_corrupted_file_errors_without_changes(self, gateway, seller_id):
        task_id = gateway.create_task(seller_id)

        IngestionWorker(gateway).run(b'this is not xlsx', seller_id, task_id)

        task = gateway.get_task(task_id)
        assert task['status'] == 'Error'
        assert task['finish_date'] is not None
        for counter in ('num_errors', 'num_created', 'num_updated', 'num_deleted'):
            assert task[counter] is None
        assert gateway.search_offers(seller_id=seller_id) == []

    def test_all_rows_invalid_errors(self, gateway, seller_id, make_workbook):
        task_id = gateway.create_task(seller_id)
        data = make_workbook([[1, 'Pen', -5, 1, 'true'], [2, 'Ink', 5, 0, 'true']])

        IngestionWorker(gateway).run(data, seller_id, task_id)

        task = gateway.get_task(task_id)
        assert task['status'] == 'Error'
        assert task['num_errors'] is None
        assert gateway.search_offers(seller_id=seller_id) == []
