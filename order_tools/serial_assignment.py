"""
시리얼 번호 할당
================

BOL이 입력된 PO|SKU에 입고된 시리얼 번호를 할당합니다.

할당 결과는 세 곳에 함께 기록됩니다.
- Serial # | Raw Data: 시리얼 행의 PO_SKU_Key 헬퍼 컬럼
- Serial #_DB: 시리얼별 할당 이력 (키 단위로 삭제 후 재기록)
- Order Shipping Mgt. Table: 할당된 시리얼 목록 (쉼표 구분)
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from order_tools import config
from order_tools.price_book import format_po_sku_display, get_sku_model_map
from order_tools.results import ToolResult
from order_tools.sheet_service import SheetNotFoundError, SheetService
from order_tools.utils import get_current_user, get_str, get_value, to_key_string

logger = logging.getLogger(__name__)

# get_serial_status 결과 상태
SERIAL_NON_INBOUND = 'Non-Inbound'
SERIAL_USED = 'Used'
SERIAL_AVAILABLE = 'Available'
SERIAL_ERROR = 'Error'


def get_po_sku_lists(store: SheetService) -> ToolResult:
    """할당 대기 / 완료 PO|SKU 목록

    BOL_DB에 있는 키를 대상으로, Serial #_DB에서 가장 최근 할당 기록의
    완료 여부로 분류합니다.

    Returns:
        ToolResult (data: pending, finished) - 각 항목은 {'key', 'display', 'is_complete'}
    """
    try:
        serial_records = store.read_all_records(config.SERIAL_DB_SHEET)
        bol_records = store.read_all_records(config.BOL_DB_SHEET)
    except SheetNotFoundError as e:
        logger.error(f"PO|SKU 목록 로드 실패: {e}")
        return ToolResult.sheet_error(str(e))

    sku_model_map = get_sku_model_map(store)

    # 키별 최신 할당 기록 (타임스탬프 기준)
    latest: dict[str, tuple[datetime, bool]] = {}
    for record in serial_records:
        key = get_str(record, config.PO_SKU_KEY)
        timestamp = get_value(record, 'Assigned Timestamp', None)
        timestamp = timestamp if isinstance(timestamp, datetime) else datetime.min
        is_complete = get_str(record, 'Complete') == config.STATUS_COMPLETE_ASSIGNED
        current = latest.get(key)
        if current is None or timestamp > current[0]:
            latest[key] = (timestamp, is_complete)

    keys = {get_str(r, config.PO_SKU_KEY) for r in bol_records} - {''}
    items = []
    for key in keys:
        timestamp, is_complete = latest.get(key, (datetime.min, False))
        items.append((timestamp, {
            'key': key,
            'display': format_po_sku_display(key, sku_model_map),
            'is_complete': is_complete,
        }))

    pending = sorted((i for _, i in items if not i['is_complete']), key=lambda i: i['display'])
    finished = [i for _, i in sorted(
        ((t, i) for t, i in items if i['is_complete']), key=lambda pair: pair[0], reverse=True,
    )]
    return ToolResult.ok(f"대기 {len(pending)}건, 완료 {len(finished)}건", pending=pending, finished=finished)


def update_assignment_completion_status(
    store: SheetService,
    po_sku_key: str,
    is_complete: bool,
    user: str | None = None,
) -> ToolResult:
    """키의 모든 할당 기록에 완료 상태 반영

    완료 시 사용자/시각을 기록하고, 재오픈 시 비웁니다.
    """
    key = to_key_string(po_sku_key)
    if not key:
        return ToolResult.validation_error(["상태를 변경할 PO|SKU Key가 없습니다."])

    try:
        records = store.find_records_by_key(config.SERIAL_DB_SHEET, config.PO_SKU_KEY, key)
    except SheetNotFoundError as e:
        logger.error(f"완료 상태 변경 실패: {e}")
        return ToolResult.sheet_error(str(e))

    if is_complete:
        values = {
            'Complete': config.STATUS_COMPLETE_ASSIGNED,
            'Assigned User': user or get_current_user(),
            'Assigned Timestamp': datetime.now(),
        }
    else:
        values = {'Complete': '', 'Assigned User': '', 'Assigned Timestamp': None}

    for record in records:
        store.update_record(config.SERIAL_DB_SHEET, {**values, '_rowNumber': record['_rowNumber']})
    if records:
        store.save()

    action = "완료 처리" if is_complete else "재오픈"
    return ToolResult.ok(f'"{key}" {action} ({len(records)}건 업데이트)', updated=len(records))


def _serial_owner_map(store: SheetService) -> dict[str, str]:
    """시리얼 → 할당된 PO|SKU 키 (Serial #_DB 기준)"""
    owners: dict[str, str] = {}
    for record in store.read_all_records(config.SERIAL_DB_SHEET):
        owners[get_str(record, config.SERIAL_NUMBER)] = get_str(record, config.PO_SKU_KEY)
    return owners


def get_serials_for_editing(store: SheetService, sku: Any, po_sku_key: str) -> list[str]:
    """할당 가능한 시리얼 목록

    입고일이 있는 해당 SKU의 시리얼 중 다른 키에 할당되지 않은 것 (현재 키 할당분 포함).

    Raises:
        SheetNotFoundError: 필요한 시트가 없는 경우
    """
    sku = to_key_string(sku)
    key = to_key_string(po_sku_key)
    if not sku or not key:
        return []

    inbound = {
        get_str(r, config.SERIAL_NUMBER)
        for r in store.read_all_records(config.SERIAL_RAW_SHEET)
        if get_str(r, 'SKU') == sku and get_str(r, 'Inbound Date')
    } - {''}
    owners = _serial_owner_map(store)
    return sorted(s for s in inbound if s not in owners or owners[s] == key)


def get_assigned_serials_for_po_sku(store: SheetService, po_sku_key: str) -> dict[str, list[str]]:
    """키에 할당된 시리얼을 BOL #별로 묶어서 반환"""
    key = to_key_string(po_sku_key)
    if not key:
        return {}

    assignments: dict[str, list[str]] = {}
    for record in store.find_records_by_key(config.SERIAL_DB_SHEET, config.PO_SKU_KEY, key):
        bol = get_str(record, config.BOL_NUMBER)
        serial = get_str(record, config.SERIAL_NUMBER)
        if bol and serial:
            assignments.setdefault(bol, []).append(serial)
    return assignments


def assign_serials(store: SheetService, assignment_data: dict[str, Any], user: str | None = None) -> ToolResult:
    """시리얼 할당 저장

    Args:
        assignment_data: {'po_sku_key': 키, 'assignments': {BOL #: [시리얼, ...]}}
    """
    key = to_key_string(assignment_data.get('po_sku_key'))
    if not key:
        return ToolResult.validation_error(["PO|SKU Key가 없습니다."])

    assignments: dict[str, list[Any]] = assignment_data.get('assignments') or {}
    serials_to_assign: list[str] = []
    for serials in assignments.values():
        for serial in serials:
            serial = to_key_string(serial)
            if serial and serial not in serials_to_assign:
                serials_to_assign.append(serial)
    assign_set = set(serials_to_assign)

    user = user or get_current_user()
    timestamp = datetime.now()

    try:
        existing = store.find_records_by_key(config.SERIAL_DB_SHEET, config.PO_SKU_KEY, key)
        already_complete = any(
            get_str(r, 'Complete') == config.STATUS_COMPLETE_ASSIGNED for r in existing
        )
        currently_assigned = {get_str(r, config.SERIAL_NUMBER) for r in existing}

        # 1. Raw Data 헬퍼 키 갱신
        raw_by_serial = {
            get_str(r, config.SERIAL_NUMBER): r
            for r in store.read_all_records(config.SERIAL_RAW_SHEET)
        }
        for serial in currently_assigned - assign_set:
            raw = raw_by_serial.get(serial)
            if raw is not None and get_str(raw, config.PO_SKU_KEY) == key:
                store.update_cell(config.SERIAL_RAW_SHEET, raw['_rowNumber'], config.PO_SKU_KEY, '')
        for serial in serials_to_assign:
            raw = raw_by_serial.get(serial)
            if raw is not None:
                store.update_cell(config.SERIAL_RAW_SHEET, raw['_rowNumber'], config.PO_SKU_KEY, key)

        # 2. Serial #_DB 삭제 후 재기록 (기존 완료 상태 유지)
        store.delete_rows_where(config.SERIAL_DB_SHEET, lambda r: get_str(r, config.PO_SKU_KEY) == key)
        complete_status = config.STATUS_COMPLETE_ASSIGNED if already_complete else ''
        store.append_records(config.SERIAL_DB_SHEET, [{
            config.SERIAL_NUMBER: to_key_string(serial),
            config.PO_SKU_KEY: key,
            config.BOL_NUMBER: bol_number,
            'Complete': complete_status,
            'Assigned User': user,
            'Assigned Timestamp': timestamp,
        } for bol_number, serials in assignments.items() for serial in serials])

        # 3. Order Shipping Mgt. Table 시리얼 목록
        update_order_mgt_serials(store, key, serials_to_assign)
        store.save()
    except (SheetNotFoundError, ValueError) as e:
        logger.error(f"시리얼 할당 실패: {e}")
        return ToolResult.failed(str(e))

    logger.info(f"시리얼 할당: {key} ({len(serials_to_assign)}개)")
    return ToolResult.ok("시리얼 번호 업데이트 완료", assigned=len(serials_to_assign))


def update_order_mgt_serials(store: SheetService, po_sku_key: str, serials: list[str]) -> bool:
    """Order Shipping Mgt. Table의 첫 번째 일치 행에 시리얼 목록 기록"""
    if not store.has_sheet(config.ORDER_MGT_SHEET):
        return False
    record = store.find_record_by_key(config.ORDER_MGT_SHEET, config.PO_SKU_KEY, po_sku_key)
    if record is None:
        return False
    return store.update_record(config.ORDER_MGT_SHEET, {
        'Assigned Serials': ', '.join(serials),
        '_rowNumber': record['_rowNumber'],
    })


def get_bols_for_po_sku(store: SheetService, po_sku_key: str) -> list[dict[str, Any]]:
    """키의 BOL 목록 [{'bol_number', 'shipped_qty'}]"""
    return [
        {'bol_number': get_value(r, config.BOL_NUMBER), 'shipped_qty': get_value(r, 'Shipped Qty')}
        for r in store.find_records_by_key(config.BOL_DB_SHEET, config.PO_SKU_KEY, po_sku_key)
    ]


def get_serial_status(store: SheetService, serial_number: Any) -> dict[str, Any]:
    """시리얼 상태 조회

    Returns:
        {'status': 'Non-Inbound' | 'Used' | 'Available' | 'Error', ...}
        'Used'이면 po_sku_key, bol, date(YYYY/MM/DD) 포함
    """
    serial = to_key_string(serial_number)
    if not serial:
        return {'status': SERIAL_ERROR, 'message': "시리얼 번호가 비어 있습니다."}

    try:
        raw = store.find_record_by_key(config.SERIAL_RAW_SHEET, config.SERIAL_NUMBER, serial)
        if raw is None or not get_str(raw, 'Inbound Date'):
            return {'status': SERIAL_NON_INBOUND}

        used = store.find_record_by_key(config.SERIAL_DB_SHEET, config.SERIAL_NUMBER, serial)
    except (SheetNotFoundError, ValueError) as e:
        logger.error(f"시리얼 상태 조회 실패: {e}")
        return {'status': SERIAL_ERROR, 'message': str(e)}

    if used is None:
        return {'status': SERIAL_AVAILABLE}

    timestamp = get_value(used, 'Assigned Timestamp', None)
    return {
        'status': SERIAL_USED,
        'po_sku_key': get_str(used, config.PO_SKU_KEY) or 'N/A',
        'bol': get_str(used, config.BOL_NUMBER) or 'N/A',
        'date': timestamp.strftime('%Y/%m/%d') if isinstance(timestamp, datetime) else 'N/A',
    }
