"""
po_editor 모듈 테스트
=====================

수정 요청 등록(payload 캐시 + 큐 시트)과 백그라운드 처리 테스트
"""

import pytest

from order_tools import config
from order_tools.po_editor import PoEditorService
from order_tools.results import ResultStatus
from order_tools.runtime import FileTTLCache, TriggerRegistry
from order_tools.sheet_service import SheetService


@pytest.fixture(autouse=True)
def slow_trigger(monkeypatch):
    """테스트 중 트리거가 실행되지 않도록 지연 시간 연장"""
    monkeypatch.setattr(config, 'PO_CORRECTION_TRIGGER_DELAY_SECONDS', 60)


@pytest.fixture
def editor(store, cache, triggers):
    return PoEditorService(store, cache=cache, triggers=triggers)


@pytest.fixture
def basic_info() -> dict:
    return {
        'new_po_number': '1001-R',
        'po_received_date': '2026-01-05',
        'buyer_name': 'ACME Corp',
        'company': 'ACME',
        'rsm': 'Kim',
        'change_note': 'qty fix',
    }


@pytest.fixture
def items() -> list:
    return [
        {'model': 'Model A', 'qty': 3, 'unit_price': 150},
        {'model': 'Model C', 'qty': 1, 'unit_price': 200},
    ]


class TestGetCorrectionData:
    """get_correction_data 테스트"""

    def test_groups_unprocessed_rows(self, editor, store):
        store.append_records(config.PROC_SHIPPING_SHEET, [
            {'Date': '2026-01-05', 'P/O': '1001', 'Buyer Name': 'ACME', 'Model': 'Model A', 'Qty': 2, 'SKU': 'SKU1'},
            {'Date': '2026-01-05', 'P/O': '1001', 'Buyer Name': 'ACME', 'Model': 'Model B', 'Qty': 1,
             'Original SKU': 'SKU2'},
            {'Date': '2026-01-06', 'P/O': '1002', 'Status': 'Done', 'Model': 'Model A'},
        ])
        store.append_records(config.PRICE_BOOK_SHEET, [
            {'Lookup Name': 'Model A Standard', 'SKU': 'SKU1', 'Price': 150},
            {'Lookup Name': 'Model B', 'SKU': 'SKU2', 'Price': 300},
        ])

        result = editor.get_correction_data()

        assert result.success
        pos = result.get('pos')
        assert [p['po_number'] for p in pos] == ['1001']
        assert [i['sku'] for i in pos[0]['items']] == ['SKU1', 'SKU2']
        assert result.get('model_names') == ['Model B', 'Model A Standard']
        assert result.get('model_to_sku')['Model B'] == 'SKU2'
        assert result.get('model_to_price')['Model A Standard'] == 150


class TestAppendOnly:
    """save_po_corrections_append_only 테스트"""

    def test_request_queued(self, editor, store, cache, triggers, basic_info, items):
        result = editor.save_po_corrections_append_only('1001', basic_info, items)

        assert result.status == ResultStatus.QUEUED
        key = result.get('payload_key')
        assert key.startswith(config.PO_CORRECTION_CACHE_PREFIX)
        assert cache.get_json(key)['items'] == items

        queue_rows = store.read_all_records(config.PO_QUEUE_SHEET)
        assert len(queue_rows) == 1
        assert queue_rows[0]['Status'] == config.QUEUE_STATUS_QUEUED
        assert queue_rows[0]['Payload Key'] == key
        assert queue_rows[0]['Submitted By'] == 'tester@example.com'
        assert triggers.has_trigger(config.PO_CORRECTION_TRIGGER_HANDLER)

    def test_single_trigger_for_many_requests(self, editor, triggers, basic_info, items):
        editor.save_po_corrections_append_only('1001', basic_info, items)
        editor.save_po_corrections_append_only('1002', basic_info, items)

        assert len(triggers._timers[config.PO_CORRECTION_TRIGGER_HANDLER]) == 1


class TestProcessQueue:
    """process_po_correction_queue 테스트"""

    def test_applies_correction(self, editor, store, cache, triggers, dealer_po_rows, basic_info, items):
        store.append_records(config.DEALER_PO_RAW_SHEET, dealer_po_rows)
        request = editor.save_po_corrections_append_only('1001', basic_info, items)

        assert editor.process_po_correction_queue() == 1

        queue_row = store.read_all_records(config.PO_QUEUE_SHEET)[0]
        assert queue_row['Status'] == config.QUEUE_STATUS_SUCCESS
        assert '1001-R' in queue_row['Completion Message']
        assert queue_row['Start Time'] != ''
        assert cache.get(request.get('payload_key')) is None
        assert not triggers.has_trigger(config.PO_CORRECTION_TRIGGER_HANDLER)

        originals = store.find_records_by_key(config.DEALER_PO_RAW_SHEET, 'P/O', '1001')
        assert all(r['Status'] == config.STATUS_CHANGE for r in originals)
        assert all(r['Change Note'] == 'qty fix' for r in originals)

        corrected = store.find_records_by_key(config.DEALER_PO_RAW_SHEET, 'P/O', '1001-R')
        assert [r['P/O Line Items'] for r in corrected] == ['Model A', 'Model C']
        assert corrected[0]['P/O - Total'] == 650.0

    def test_missing_payload(self, editor, store):
        store.append_record(config.PO_QUEUE_SHEET, {
            'PO Number': '1001',
            'Status': config.QUEUE_STATUS_QUEUED,
            'Payload Key': 'poCorrection_expired',
        })

        assert editor.process_po_correction_queue() == 1

        queue_row = store.read_all_records(config.PO_QUEUE_SHEET)[0]
        assert queue_row['Status'] == config.QUEUE_STATUS_FAILED
        assert '캐시' in queue_row['Completion Message']

    def test_unknown_po_fails(self, editor, store, dealer_po_rows, basic_info, items):
        store.append_records(config.DEALER_PO_RAW_SHEET, dealer_po_rows)
        editor.save_po_corrections_append_only('9999', basic_info, items)

        editor.process_po_correction_queue()

        queue_row = store.read_all_records(config.PO_QUEUE_SHEET)[0]
        assert queue_row['Status'] == config.QUEUE_STATUS_FAILED
        assert '9999' in queue_row['Completion Message']

    def test_skips_finished_rows(self, editor, store):
        store.append_record(config.PO_QUEUE_SHEET, {
            'PO Number': '1001', 'Status': config.QUEUE_STATUS_SUCCESS, 'Payload Key': 'x',
        })
        assert editor.process_po_correction_queue() == 0

    def test_save_error_marks_failed(self, editor, store, dealer_po_rows, basic_info, items, monkeypatch):
        """워크북 저장 중 OSError가 나도 요청은 'Failed'로 끝남"""
        store.append_records(config.DEALER_PO_RAW_SHEET, dealer_po_rows)
        editor.save_po_corrections_append_only('1001', basic_info, items)

        original_save = store.save
        calls = []

        def failing_save(*args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                raise PermissionError("workbook is locked")
            return original_save(*args, **kwargs)

        monkeypatch.setattr(store, 'save', failing_save)

        assert editor.process_po_correction_queue() == 1

        queue_row = store.read_all_records(config.PO_QUEUE_SHEET)[0]
        assert queue_row['Status'] == config.QUEUE_STATUS_FAILED
        assert 'workbook is locked' in queue_row['Completion Message']


class TestCore:
    """save_po_corrections_core 테스트"""

    def test_empty_raw_sheet(self, editor, basic_info, items):
        result = editor.save_po_corrections_core('1001', basic_info, items)
        assert result.status == ResultStatus.NOT_FOUND

    def test_keeps_po_number_without_new(self, editor, store, dealer_po_rows, items):
        store.append_records(config.DEALER_PO_RAW_SHEET, dealer_po_rows)

        result = editor.save_po_corrections_core('1002', {'buyer_name': 'Globex'}, items)

        assert result.success
        assert result.get('new_po_number') == '1002'
        assert len(store.find_records_by_key(config.DEALER_PO_RAW_SHEET, 'P/O', '1002')) == 3

    def test_no_items(self, editor, store, dealer_po_rows):
        store.append_records(config.DEALER_PO_RAW_SHEET, dealer_po_rows)
        result = editor.save_po_corrections_core('1001', {}, [])
        assert result.status == ResultStatus.VALIDATION_ERROR


class TestSeparateRuns:
    """요청 등록과 처리가 서로 다른 실행에서 일어나는 경우"""

    def test_payload_survives_between_runs(self, store, workbook_path, triggers, dealer_po_rows,
                                           basic_info, items, tmp_path):
        cache_file = tmp_path / "user_cache.json"
        store.append_records(config.DEALER_PO_RAW_SHEET, dealer_po_rows)
        store.save()

        first = PoEditorService(store, cache=FileTTLCache(cache_file), triggers=triggers)
        request = first.save_po_corrections_append_only('1001', basic_info, items)
        assert request.status == ResultStatus.QUEUED

        # 새 실행: 워크북과 캐시를 파일에서 다시 읽음
        reloaded = SheetService(workbook_path)
        second_cache = FileTTLCache(cache_file)
        second = PoEditorService(reloaded, cache=second_cache, triggers=TriggerRegistry())

        assert second.process_po_correction_queue() == 1

        queue_row = reloaded.read_all_records(config.PO_QUEUE_SHEET)[0]
        assert queue_row['Status'] == config.QUEUE_STATUS_SUCCESS
        assert second_cache.get(request.get('payload_key')) is None
        assert len(reloaded.find_records_by_key(config.DEALER_PO_RAW_SHEET, 'P/O', '1001-R')) == 2
