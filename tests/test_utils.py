"""
utils 모듈 테스트
"""

import re
from datetime import date, datetime

import pytest

from order_tools import config
from order_tools.utils import (
    clean_header,
    format_date,
    generate_manual_po_number,
    generate_timestamped_id,
    get_current_user,
    get_str,
    get_value,
    is_blank,
    parse_date,
    parse_float,
    parse_int,
    resolve_column,
    sanitize_filename,
    split_list,
    split_po_sku_key,
    to_key_string,
)


class TestCleanHeader:
    """clean_header 함수 테스트"""

    def test_strips_and_joins_lines(self):
        assert clean_header('  Est. Ship\nDate ') == 'Est. Ship Date'

    def test_none(self):
        assert clean_header(None) == ''


class TestIsBlank:
    """is_blank 함수 테스트"""

    @pytest.mark.parametrize('value', [None, '', '   ', 'nan', 'NaN', float('nan')])
    def test_blank_values(self, value):
        assert is_blank(value) is True

    @pytest.mark.parametrize('value', [0, False, 'Banana', 'x'])
    def test_non_blank_values(self, value):
        assert is_blank(value) is False


class TestToKeyString:
    """to_key_string 함수 테스트"""

    def test_float_po_number(self):
        """숫자로 읽힌 PO 번호"""
        assert to_key_string(1234.0) == '1234'

    def test_trims_string(self):
        assert to_key_string('  1001|SKU1 ') == '1001|SKU1'

    def test_blank(self):
        assert to_key_string(None) == ''


class TestResolveColumn:
    """resolve_column 함수 테스트"""

    def test_exact_match(self):
        assert resolve_column(['P/O', 'SKU'], 'P/O') == 'P/O'

    def test_alias_match(self):
        """별칭으로 찾기"""
        assert resolve_column(['PO Number', 'Status'], 'P/O') == 'PO Number'
        assert resolve_column(['Serial #', 'PO_SKU_Key'], 'PO|SKU Key') == 'PO_SKU_Key'

    def test_case_insensitive_fallback(self):
        assert resolve_column(['status'], 'Status') == 'status'

    def test_missing(self):
        assert resolve_column(['A', 'B'], 'P/O') is None


class TestGetValue:
    """get_value 함수 테스트"""

    def test_alias_lookup(self):
        record = {'Qty': 3, 'Customer': 'ACME'}
        assert get_value(record, 'Total Qty') == 3
        assert get_value(record, 'Buyer Name') == 'ACME'

    def test_blank_returns_default(self):
        record = {'P/O': ''}
        assert get_value(record, 'P/O', 'N/A') == 'N/A'

    def test_missing_returns_default(self):
        assert get_value({}, 'P/O') == ''

    def test_get_str_normalizes_numbers(self):
        assert get_str({'P/O': 1001.0}, 'P/O') == '1001'


class TestNumberParsing:
    """parse_int / parse_float 테스트"""

    def test_parse_int(self):
        assert parse_int('1,234') == 1234
        assert parse_int('2.0') == 2
        assert parse_int('abc') == 0
        assert parse_int('', default=-1) == -1

    def test_parse_float(self):
        assert parse_float('$1,234.50') == 1234.5
        assert parse_float(3) == 3.0
        assert parse_float('abc') == 0.0


class TestDates:
    """format_date / parse_date 테스트"""

    def test_format_date(self):
        assert format_date(datetime(2026, 1, 2, 10, 30)) == '2026-01-02'
        assert format_date(datetime(2026, 1, 2), '%Y/%m/%d') == '2026/01/02'
        assert format_date('') == ''

    def test_parse_date(self):
        assert parse_date('2026-03-04') == datetime(2026, 3, 4)
        assert parse_date(date(2026, 3, 4)) == datetime(2026, 3, 4)
        assert parse_date('') is None

    def test_parse_invalid_date(self):
        assert parse_date('not a date') is None


class TestStrings:
    """문자열 유틸리티 테스트"""

    def test_sanitize_filename(self):
        assert sanitize_filename('ACME Corp') == 'ACME_Corp'
        assert sanitize_filename('A/B: C') == 'A_B_C'

    def test_split_po_sku_key(self):
        """SKU는 마지막 구분자 뒤"""
        assert split_po_sku_key('1001|SKU1') == ('1001', 'SKU1')
        assert split_po_sku_key('PO|1|SKU1') == ('PO|1', 'SKU1')
        assert split_po_sku_key('1001') == ('1001', '')

    def test_split_list(self):
        assert split_list('SN1, SN2,,SN3 ') == ['SN1', 'SN2', 'SN3']
        assert split_list('') == []
        assert split_list(None) == []


class TestIdentifiers:
    """사용자 / ID 생성 테스트"""

    def test_current_user_from_settings(self):
        assert get_current_user() == 'tester@example.com'

    def test_current_user_falls_back_to_os_user(self, monkeypatch):
        monkeypatch.setattr(config, 'USER_EMAIL', None)
        assert get_current_user()

    def test_timestamped_id_format(self):
        assert re.fullmatch(r'\d{13}_[0-9a-f]{8}', generate_timestamped_id())

    def test_timestamped_ids_are_unique(self):
        ids = {generate_timestamped_id() for _ in range(50)}
        assert len(ids) == 50

    def test_manual_po_number_format(self):
        assert re.fullmatch(r'POM[0-9A-F]{4}', generate_manual_po_number())
