"""
config 모듈 테스트
==================

COLUMN_ALIASES, SHEET_SPECS 등 설정값 테스트
"""

import pytest

from order_tools import config
from order_tools.config import (
    ARCHIVE_STATUSES,
    COLUMN_ALIASES,
    EDIT_LOG_HEADERS,
    SHEET_SPECS,
    SheetSpec,
)


class TestColumnAliases:
    """COLUMN_ALIASES 딕셔너리 테스트"""

    def test_key_columns_exist(self):
        """주요 키 컬럼 존재 확인"""
        for key in (config.PO_NUMBER, config.PO_SKU_KEY, config.SERIAL_NUMBER,
                    config.BOL_NUMBER, config.PI_NUMBER, 'SKU'):
            assert key in COLUMN_ALIASES, f"필수 키 누락: {key}"

    def test_alias_values_are_tuples(self):
        """모든 별칭 값이 비어 있지 않은 tuple인지 확인"""
        for key, aliases in COLUMN_ALIASES.items():
            assert isinstance(aliases, tuple), f"{key}: tuple이 아님 - {type(aliases)}"
            assert len(aliases) > 0, f"{key}: 빈 tuple"

    def test_first_alias_is_standard_name(self):
        """첫 번째 별칭이 표준 헤더명"""
        for key, aliases in COLUMN_ALIASES.items():
            assert aliases[0] == key

    def test_no_duplicate_aliases(self):
        """서로 다른 키에 같은 별칭이 없어야 함"""
        seen: dict[str, str] = {}
        for key, aliases in COLUMN_ALIASES.items():
            for alias in aliases:
                assert alias not in seen, f"중복 별칭: {alias} ({seen.get(alias)}, {key})"
                seen[alias] = key


class TestSheetSpecs:
    """SHEET_SPECS 테스트"""

    def test_names_match_keys(self):
        for name, spec in SHEET_SPECS.items():
            assert spec.name == name

    def test_headers_unique(self):
        for name, spec in SHEET_SPECS.items():
            assert len(spec.headers) == len(set(spec.headers)), f"{name}: 중복 헤더"

    @pytest.mark.parametrize("sheet", [
        config.ORDER_MGT_SHEET,
        config.OPERATION_DASHBOARD_SHEET,
        config.PRICE_BOOK_SHEET,
    ])
    def test_second_row_headers(self, sheet):
        """두 번째 행에 헤더가 있는 시트"""
        assert SHEET_SPECS[sheet].header_row == 2
        assert SHEET_SPECS[sheet].data_start_row == 3

    def test_edit_log_sheets(self):
        assert SHEET_SPECS[config.ORDER_SHIPPING_LOG_SHEET].headers == EDIT_LOG_HEADERS
        assert SHEET_SPECS[config.OPERATION_DASHBOARD_LOG_SHEET].headers == EDIT_LOG_HEADERS

    def test_sheet_name_length(self):
        """Excel 시트 이름 길이 제한(31자) 확인"""
        names = set(SHEET_SPECS) | {
            value for key, value in vars(config).items() if key.endswith('_SHEET')
        }
        for name in names:
            assert len(name) <= config.SHEET_NAME_MAX_LENGTH, f"{name}: {len(name)}자"

    def test_spec_is_frozen(self):
        spec = SheetSpec('Sheet', ('A',))
        with pytest.raises(AttributeError):
            spec.name = 'Other'


class TestStatusValues:
    """상태값 테스트"""

    def test_archive_statuses(self):
        assert ARCHIVE_STATUSES == {'Change', 'Voided', 'Revised'}
        assert config.STATUS_FULFILLED not in ARCHIVE_STATUSES

    def test_cache_ttls(self):
        assert config.LIST_CACHE_TTL_SECONDS == 300
        assert config.PAYLOAD_CACHE_TTL_SECONDS == 3600
