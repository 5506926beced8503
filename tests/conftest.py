"""
Pytest fixtures for order_tools tests
"""

from pathlib import Path

import pytest

from order_tools import config
from order_tools.runtime import PropertyStore, ScriptLock, TriggerRegistry, TTLCache
from order_tools.sheet_service import SheetService


@pytest.fixture(autouse=True)
def isolate_data_dir(tmp_path, monkeypatch):
    """데이터 폴더를 테스트로부터 보호

    워크북, 업로드 폴더, 속성 파일이 실제 data 폴더에
    생성/덮어쓰기 되지 않도록 임시 폴더를 사용합니다.
    """
    data_dir = tmp_path / "data"
    data_dir.mkdir()

    monkeypatch.setattr(config, 'DATA_DIR', data_dir)
    monkeypatch.setattr(config, 'WORKBOOK_FILE', data_dir / "Order_Shipping_Tools.xlsx")
    monkeypatch.setattr(config, 'UPLOAD_DIR', data_dir / "po_uploads")
    monkeypatch.setattr(config, 'TEMP_UPLOAD_DIR', data_dir / "po_uploads_temp")
    monkeypatch.setattr(config, 'PROPERTIES_FILE', data_dir / "script_properties.json")
    monkeypatch.setattr(config, 'USER_CACHE_FILE', data_dir / "user_cache.json")
    monkeypatch.setattr(config, 'USER_EMAIL', 'tester@example.com')

    yield


@pytest.fixture
def workbook_path(tmp_path) -> Path:
    return tmp_path / "data" / "Order_Shipping_Tools.xlsx"


@pytest.fixture
def store(workbook_path) -> SheetService:
    """모든 시트를 헤더와 함께 만든 빈 워크북"""
    return SheetService.create(workbook_path)


@pytest.fixture
def cache() -> TTLCache:
    return TTLCache()


@pytest.fixture
def properties(tmp_path) -> PropertyStore:
    return PropertyStore(tmp_path / "properties.json")


@pytest.fixture
def lock() -> ScriptLock:
    return ScriptLock()


@pytest.fixture
def triggers():
    """테스트 후 남은 타이머를 모두 취소하는 트리거 레지스트리"""
    registry = TriggerRegistry()
    yield registry
    for handler in list(registry._timers):
        registry.delete_triggers(handler)


@pytest.fixture
def dealer_po_rows() -> list[dict]:
    """Dealer PO | Raw Data 샘플 행"""
    return [
        {
            'Created Date': '2026-01-05',
            'Buyer Name': 'ACME Corp',
            'P/O': '1001',
            'Status': '',
            'P/O Line Items': 'Model A',
            'P/O QTY': 2,
            'P/O Unit Price': 150,
            'Model': 'Model A',
            'Ship to': '123 Main St, Springfield, IL 62704',
        },
        {
            'Created Date': '2026-01-05',
            'Buyer Name': 'ACME Corp',
            'P/O': '1001',
            'Status': '',
            'P/O Line Items': 'Model B',
            'P/O QTY': 1,
            'P/O Unit Price': 300,
            'Model': 'Model B',
        },
        {
            'Created Date': '2026-01-06',
            'Buyer Name': 'Globex',
            'P/O': '1002',
            'Status': '',
            'P/O Line Items': 'Model A',
            'P/O QTY': 5,
            'P/O Unit Price': 150,
            'Model': 'Model A',
        },
    ]
