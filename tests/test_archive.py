"""
archive 모듈 테스트
"""

from order_tools import config
from order_tools.archive import archive_processed_pos
from order_tools.results import ResultStatus
from order_tools.sheet_service import SheetService


class TestArchiveProcessedPos:
    """archive_processed_pos 함수 테스트"""

    def test_moves_processed_rows(self, store, dealer_po_rows):
        dealer_po_rows[0]['Status'] = config.STATUS_CHANGE
        dealer_po_rows[1]['Status'] = config.STATUS_VOIDED
        dealer_po_rows.append({'P/O': '1003', 'Status': config.STATUS_REVISED})
        store.append_records(config.DEALER_PO_RAW_SHEET, dealer_po_rows)

        result = archive_processed_pos(store)

        assert result.success
        assert result.get('archived') == 3
        assert result.get('kept') == 1

        archived = store.read_all_records(config.DEALER_PO_ARCHIVE_SHEET)
        assert sorted(r['Status'] for r in archived) == ['Change', 'Revised', 'Voided']

        kept = store.read_all_records(config.DEALER_PO_RAW_SHEET)
        assert [r['P/O'] for r in kept] == ['1002']

    def test_formula_columns_cleared(self, store, dealer_po_rows):
        """남은 행의 수식 컬럼(Model)은 비워서 다시 기록"""
        dealer_po_rows[0]['Status'] = config.STATUS_VOIDED
        store.append_records(config.DEALER_PO_RAW_SHEET, dealer_po_rows)

        archive_processed_pos(store)

        kept = store.read_all_records(config.DEALER_PO_RAW_SHEET)
        assert len(kept) == 2
        assert all(r['Model'] == '' for r in kept)
        assert kept[0]['P/O Line Items'] == 'Model B'

    def test_nothing_to_archive(self, store, dealer_po_rows):
        store.append_records(config.DEALER_PO_RAW_SHEET, dealer_po_rows)

        result = archive_processed_pos(store)

        assert result.success
        assert result.get('archived') == 0
        assert len(store.read_all_records(config.DEALER_PO_RAW_SHEET)) == 3

    def test_empty_source(self, store):
        result = archive_processed_pos(store)
        assert result.success
        assert result.get('archived') == 0

    def test_headers_copied_to_blank_archive(self, store):
        """아카이브 시트가 비어 있으면 원본 헤더 복사"""
        del store.workbook[config.DEALER_PO_ARCHIVE_SHEET]
        store.workbook.create_sheet(config.DEALER_PO_ARCHIVE_SHEET)
        store.append_record(config.DEALER_PO_RAW_SHEET, {'P/O': '1001', 'Status': config.STATUS_VOIDED})

        archive_processed_pos(store)

        _, headers = store.get_sheet_and_headers(config.DEALER_PO_ARCHIVE_SHEET)
        assert headers == list(config.DEALER_PO_HEADERS)
        assert len(store.read_all_records(config.DEALER_PO_ARCHIVE_SHEET)) == 1

    def test_missing_archive_sheet(self, workbook_path):
        store = SheetService.create(workbook_path, [config.SHEET_SPECS[config.DEALER_PO_RAW_SHEET]])

        result = archive_processed_pos(store)

        assert result.status == ResultStatus.SHEET_ERROR
