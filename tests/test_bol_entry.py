"""
bol_entry 모듈 테스트
=====================

BOL 대기/완료 목록 캐시, BOL 라인 교체 저장, 출하 완료 상태 반영 테스트
"""

from datetime import datetime

import pytest

from order_tools import config
from order_tools.bol_entry import (
    clear_bol_cache,
    get_existing_bol_data,
    get_initial_bol_data,
    save_bol_data,
    update_fulfillment_status,
)
from order_tools.results import ResultStatus

KEY = '1001|SKU1'


@pytest.fixture
def planning_rows(store):
    store.append_records(config.PRICE_BOOK_QBO_SHEET, [
        {'SKU #': 'SKU1', 'Sales Description': 'Finished Goods:Model A Standard'},
        {'SKU #': 'SKU2', 'Sales Description': 'Model B'},
    ])
    store.append_records(config.PLANNING_DB_SHEET, [
        {'PO|SKU Key': KEY, 'Status': ''},
        {'PO|SKU Key': '1002|SKU2', 'Status': config.STATUS_FULFILLED, 'Timestamp': datetime(2026, 1, 1)},
        {'PO|SKU Key': '1003|SKU2', 'Status': config.STATUS_FULFILLED, 'Timestamp': datetime(2026, 2, 1)},
    ])


class TestInitialData:
    """get_initial_bol_data 테스트"""

    def test_lists(self, store, cache, planning_rows):
        result = get_initial_bol_data(store, cache)

        assert result.get('pending_list') == [{'key': KEY, 'display': '1001|SKU1 (Model A)'}]
        # 완료 목록은 최신순
        assert [i['key'] for i in result.get('fulfilled_list')] == ['1003|SKU2', '1002|SKU2']

    def test_cached(self, store, cache, planning_rows):
        get_initial_bol_data(store, cache)
        store.append_record(config.PLANNING_DB_SHEET, {'PO|SKU Key': '1004|SKU1'})

        result = get_initial_bol_data(store, cache)

        assert result.message == "캐시에서 로드"
        assert len(result.get('pending_list')) == 1

    def test_clear_cache(self, store, cache, planning_rows):
        get_initial_bol_data(store, cache)
        clear_bol_cache(cache)
        assert cache.get_json(config.CACHE_KEY_PENDING_BOL) is None
        assert cache.get_json(config.CACHE_KEY_FULFILLED_BOL) is None


class TestSaveBolData:
    """save_bol_data 테스트"""

    def test_replaces_lines(self, store, cache, planning_rows):
        store.append_record(config.BOL_DB_SHEET, {'BOL #': 'OLD', 'PO|SKU Key': KEY, 'Shipped Qty': 9})
        store.append_record(config.BOL_DB_SHEET, {'BOL #': 'OTHER', 'PO|SKU Key': '1002|SKU2', 'Shipped Qty': 1})

        result = save_bol_data(store, {
            'po_sku_key': KEY,
            'act_ship_date': '2026-02-10',
            'is_fulfilled': True,
            'bols': [
                {'bol_number': 'B1', 'shipped_qty': '2', 'shipping_fee': '25.5', 'signed': 'Y'},
                {'bol_number': '', 'shipped_qty': '1'},
            ],
        }, cache)

        assert result.success
        assert result.get('saved') == 1
        assert result.get('deleted') == 1
        assert len(result.warnings) == 1

        bols = store.find_records_by_key(config.BOL_DB_SHEET, config.PO_SKU_KEY, KEY)
        assert [b['BOL #'] for b in bols] == ['B1']
        assert bols[0]['Shipping Fee'] == 25.5
        assert bols[0]['Status'] == config.STATUS_FULFILLED
        assert len(store.read_all_records(config.BOL_DB_SHEET)) == 2

        plan = store.find_record_by_key(config.PLANNING_DB_SHEET, config.PO_SKU_KEY, KEY)
        assert plan['Status'] == config.STATUS_FULFILLED

    def test_invalidates_cache(self, store, cache, planning_rows):
        get_initial_bol_data(store, cache)
        save_bol_data(store, {'po_sku_key': KEY, 'bols': [{'bol_number': 'B1', 'shipped_qty': 1}]}, cache)
        assert cache.get_json(config.CACHE_KEY_PENDING_BOL) is None

    def test_negative_fee(self, store, cache):
        result = save_bol_data(store, {
            'po_sku_key': KEY,
            'bols': [{'bol_number': 'B1', 'shipped_qty': 1, 'shipping_fee': -5}],
        }, cache)
        assert result.status == ResultStatus.VALIDATION_ERROR

    def test_requires_key(self, store, cache):
        assert save_bol_data(store, {'bols': []}, cache).status == ResultStatus.VALIDATION_ERROR


class TestExistingBolData:
    """get_existing_bol_data 테스트"""

    def test_after_save(self, store, cache, planning_rows):
        save_bol_data(store, {
            'po_sku_key': KEY,
            'act_ship_date': '2026-02-10',
            'is_fulfilled': True,
            'bols': [{'bol_number': 'B1', 'shipped_qty': 2}, {'bol_number': 'B2', 'shipped_qty': 1}],
        }, cache)

        result = get_existing_bol_data(store, KEY)

        assert result.get('act_ship_date') == '2026-02-10'
        assert result.get('is_fulfilled') is True
        assert [b['bol_number'] for b in result.get('bols')] == ['B1', 'B2']

    def test_no_lines(self, store, planning_rows):
        result = get_existing_bol_data(store, KEY)
        assert result.get('bols') == []
        assert result.get('act_ship_date') is None
        assert result.get('is_fulfilled') is False


class TestUpdateFulfillmentStatus:
    """update_fulfillment_status 테스트"""

    def test_updates_first_match(self, store, planning_rows):
        ts = datetime(2026, 3, 1, 10, 0)
        assert update_fulfillment_status(store, KEY, config.STATUS_FULFILLED, ts) is True

        record = store.find_record_by_key(config.PLANNING_DB_SHEET, config.PO_SKU_KEY, KEY)
        assert record['Status'] == config.STATUS_FULFILLED
        assert record['Timestamp'] == ts

    def test_unknown_key(self, store, planning_rows):
        assert update_fulfillment_status(store, '9999|SKU9', config.STATUS_FULFILLED, datetime.now()) is False
