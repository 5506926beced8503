"""
CLI 테스트
==========

manage_po.py / ship_orders.py 인자 파싱과 main() 실행 테스트
"""

import logging
import sys

import pytest

import manage_po
import ship_orders
from order_tools import config
from order_tools.logging_config import setup_logging
from order_tools.po_editor import PoEditorService
from order_tools.sheet_service import SheetService


class TestSetupLogging:
    """로깅 설정 테스트"""

    def test_setup_logging_default(self):
        setup_logging(verbose=False)
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_verbose(self):
        setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger('order_tools').level == logging.DEBUG

    def test_setup_logging_file(self, tmp_path):
        """로그 파일 지정 시 DEBUG까지 파일에 기록"""
        log_file = tmp_path / "logs" / "queue.log"
        setup_logging(verbose=False, log_file=log_file)
        try:
            logging.getLogger('order_tools.task_queue').debug("큐 디버그")
            for handler in logging.getLogger().handlers:
                handler.flush()
            assert "큐 디버그" in log_file.read_text(encoding='utf-8')
        finally:
            setup_logging(verbose=False)


class TestManagePoArguments:
    """manage_po 인자 파싱 테스트"""

    def test_manual_items(self):
        parser = manage_po.create_argument_parser()
        args = parser.parse_args([
            'manual', '--buyer', 'ACME', '--item', 'Model A:2:150', '--item', 'Model B:1:300',
        ])
        assert args.command == 'manual'
        assert args.item == ['Model A:2:150', 'Model B:1:300']
        assert args.po is None

    def test_correct_optional_args(self):
        parser = manage_po.create_argument_parser()
        args = parser.parse_args(['correct'])
        assert args.po_number is None
        assert args.json_file is None
        assert args.now is False

    def test_global_options(self):
        parser = manage_po.create_argument_parser()
        args = parser.parse_args(['-v', '-w', 'book.xlsx', 'archive'])
        assert args.verbose is True
        assert args.workbook == 'book.xlsx'

    def test_edit_row_is_int(self):
        parser = manage_po.create_argument_parser()
        args = parser.parse_args(['edit', config.ORDER_MGT_SHEET, '3', 'Serial #', 'SN1'])
        assert args.row == 3

    def test_parse_item(self):
        assert manage_po._parse_item('Model A : 2 : 150') == {
            'model': 'Model A', 'quantity': '2', 'unit_price': '150',
        }
        assert manage_po._parse_item('Model A')['quantity'] == ''


class TestShipOrdersArguments:
    """ship_orders 인자 파싱 테스트"""

    def test_serial_assignment(self):
        parser = ship_orders.create_argument_parser()
        args = parser.parse_args(['serial', '1001|SKU1', '--bol', 'B1', '--serials', 'SN1', 'SN2'])
        assert args.key == '1001|SKU1'
        assert args.bol == 'B1'
        assert args.serials == ['SN1', 'SN2']

    def test_serial_defaults_to_empty_list(self):
        parser = ship_orders.create_argument_parser()
        args = parser.parse_args(['serial', '1001|SKU1', '--bol', 'B1'])
        assert args.serials == []

    def test_complete_and_reopen_exclusive(self):
        parser = ship_orders.create_argument_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(['serial', '1001|SKU1', '--complete', '--reopen'])

    def test_plan_quantities(self):
        parser = ship_orders.create_argument_parser()
        args = parser.parse_args(['plan', '1001|SKU1', '--east', '2', '--west', '1'])
        assert (args.east, args.west) == (2, 1)

    def test_parse_bol_line(self):
        assert ship_orders._parse_bol_line('B1:3') == {
            'bol_number': 'B1', 'shipped_qty': '3', 'shipping_fee': '', 'signed': '',
        }
        assert ship_orders._parse_bol_line('B1:3:25.5:Y')['signed'] == 'Y'


class TestMain:
    """main() 실행 테스트"""

    def run(self, monkeypatch, module, *argv) -> int:
        monkeypatch.setattr(sys, 'argv', [module.__name__, *argv])
        return module.main()

    def test_init_creates_workbook(self, monkeypatch):
        assert self.run(monkeypatch, manage_po, 'init') == 0
        assert config.WORKBOOK_FILE.exists()

        # 기존 워크북은 --force 없이 덮어쓰지 않음
        assert self.run(monkeypatch, manage_po, 'init') == 1
        assert self.run(monkeypatch, manage_po, 'init', '--force') == 0

    def test_missing_workbook(self, monkeypatch, capsys):
        assert self.run(monkeypatch, manage_po, 'list') == 1
        assert config.MSG_ERROR in capsys.readouterr().err

    def test_list(self, monkeypatch, store, capsys):
        assert self.run(monkeypatch, manage_po, 'list') == 0
        assert "활성 PO (0건):" in capsys.readouterr().out

    def test_edit_unknown_header(self, monkeypatch, store, capsys):
        code = self.run(monkeypatch, manage_po, 'edit', config.ORDER_MGT_SHEET, '3', 'Nope', 'x')
        assert code == 1
        assert "Nope" in capsys.readouterr().out

    def test_serial_status(self, monkeypatch, store, capsys):
        store.append_record(config.SERIAL_RAW_SHEET, {'Serial #': 'SN1', 'SKU': 'SKU1'})
        store.save()

        assert self.run(monkeypatch, ship_orders, 'serial-status', 'SN1') == 0
        assert "SN1: Non-Inbound" in capsys.readouterr().out

    def test_serial_assign_command(self, monkeypatch, store):
        store.append_records(config.SERIAL_RAW_SHEET, [
            {'Serial #': 'SN1', 'SKU': 'SKU1'},
            {'Serial #': 'SN2', 'SKU': 'SKU1'},
        ])
        store.append_record(config.ORDER_MGT_SHEET, {'P/O': '1001', 'PO|SKU Key': '1001|SKU1'})
        store.save()

        code = self.run(
            monkeypatch, ship_orders, 'serial', '1001|SKU1', '--bol', 'B1', '--serials', 'SN1', 'SN2',
        )

        assert code == 0
        reloaded = SheetService(config.WORKBOOK_FILE)
        rows = reloaded.find_records_by_key(config.SERIAL_DB_SHEET, config.PO_SKU_KEY, '1001|SKU1')
        assert sorted(r['Serial #'] for r in rows) == ['SN1', 'SN2']

    def test_no_command_prints_help(self, monkeypatch, capsys):
        assert self.run(monkeypatch, ship_orders) == 0
        assert 'ship_orders' in capsys.readouterr().out

    def test_process_queue_applies_correction(self, monkeypatch, store, triggers, dealer_po_rows, capsys):
        """이전 실행에서 등록한 수정 요청을 process-queue가 처리"""
        monkeypatch.setattr(config, 'PO_CORRECTION_TRIGGER_DELAY_SECONDS', 60)
        store.append_records(config.DEALER_PO_RAW_SHEET, dealer_po_rows)
        PoEditorService(store, triggers=triggers).save_po_corrections_append_only(
            '1001', {'new_po_number': '1001-R'}, [{'model': 'Model A', 'qty': 1, 'unit_price': 150}],
        )

        assert self.run(monkeypatch, manage_po, 'process-queue') == 0
        assert "수정 요청 1건 처리" in capsys.readouterr().out

        reloaded = SheetService(config.WORKBOOK_FILE)
        queue_row = reloaded.read_all_records(config.PO_QUEUE_SHEET)[0]
        assert queue_row['Status'] == config.QUEUE_STATUS_SUCCESS
