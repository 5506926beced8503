"""
편집 이력 기록
==============

시트 셀 편집 이벤트를 받아 다음을 처리합니다.

- 감사 컬럼 갱신: Created Time(최초 1회), Last Updated Time, Latest Update Record
- 편집 이력 시트에 한 줄 추가 (시트가 없으면 헤더와 함께 생성)
- Order Shipping Mgt. Table의 시리얼 목록 편집 시 Serial # | Raw Data에 주문번호 태깅
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from order_tools import config
from order_tools.results import ResultStatus, ToolResult
from order_tools.sheet_service import SheetNotFoundError, SheetService
from order_tools.utils import get_current_user, get_str, resolve_column, split_list

logger = logging.getLogger(__name__)

ACTION_CREATED = 'Created'
ACTION_UPDATED = 'Updated'


@dataclass
class EditEvent:
    """셀 편집 이벤트

    Attributes:
        sheet: 시트 이름
        row: 행 번호 (1부터)
        column: 컬럼 번호 (1부터)
        old_value: 편집 전 값
        new_value: 편집 후 값
        user: 편집한 사용자
        timestamp: 편집 시각
    """
    sheet: str
    row: int
    column: int
    old_value: Any = ''
    new_value: Any = ''
    user: str = ''
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class EditLogConfig:
    """시트별 편집 이력 설정

    watch_fields가 None이면 min_column ~ max_column 범위 전체를 감시합니다.
    """
    sheet: str
    log_sheet: str
    id_field: str
    header_row: int = 2
    min_column: int = 1
    max_column: int | None = None
    watch_fields: frozenset[str] | None = None

    def watches(self, column: int, field_name: str) -> bool:
        if column < self.min_column:
            return False
        if self.max_column is not None and column > self.max_column:
            return False
        if self.watch_fields is not None and field_name not in self.watch_fields:
            return False
        return True


ORDER_SHIPPING_LOG = EditLogConfig(
    sheet=config.ORDER_MGT_SHEET,
    log_sheet=config.ORDER_SHIPPING_LOG_SHEET,
    id_field=config.PO_NUMBER,
    max_column=29,
)

OPERATION_DASHBOARD_LOG = EditLogConfig(
    sheet=config.OPERATION_DASHBOARD_SHEET,
    log_sheet=config.OPERATION_DASHBOARD_LOG_SHEET,
    id_field=config.PO_NUMBER,
    watch_fields=frozenset({
        'Order Status', 'Priority', 'Owner', 'Ship Notes', 'Customer Notes', 'Follow-up',
    }),
)

EDIT_LOG_CONFIGS: dict[str, EditLogConfig] = {
    c.sheet: c for c in (ORDER_SHIPPING_LOG, OPERATION_DASHBOARD_LOG)
}


def _as_text(value: Any) -> str:
    return '' if value is None else str(value)


def log_edit(store: SheetService, event: EditEvent, log_config: EditLogConfig) -> bool:
    """편집 이벤트 기록

    Returns:
        기록했으면 True (다른 시트/헤더 행/감시 밖 컬럼/값 변화 없음이면 False)
    """
    if event.sheet != log_config.sheet or event.row <= log_config.header_row:
        return False

    ws, headers = store.get_sheet_and_headers(log_config.sheet, log_config.header_row)
    field_name = headers[event.column - 1] if event.column <= len(headers) else ''
    if not log_config.watches(event.column, field_name):
        return False

    old_value = _as_text(event.old_value)
    new_value = _as_text(event.new_value)
    if old_value == new_value:
        return False

    action = ACTION_CREATED if old_value == '' else ACTION_UPDATED
    timestamp = event.timestamp
    user = event.user or get_current_user()

    id_col = resolve_column(headers, log_config.id_field)
    identifier = ws.cell(row=event.row, column=headers.index(id_col) + 1).value if id_col else ''

    # 감사 컬럼
    if config.CREATED_TIME_FIELD in headers:
        cell = ws.cell(row=event.row, column=headers.index(config.CREATED_TIME_FIELD) + 1)
        if cell.value in (None, ''):
            cell.value = timestamp
    if config.UPDATED_TIME_FIELD in headers:
        ws.cell(row=event.row, column=headers.index(config.UPDATED_TIME_FIELD) + 1, value=timestamp)
    if config.HISTORY_FIELD in headers:
        history = f'{timestamp.strftime("%Y/%m/%d")} {action} "{field_name}"'
        ws.cell(row=event.row, column=headers.index(config.HISTORY_FIELD) + 1, value=history)

    store.ensure_sheet(config.SHEET_SPECS[log_config.log_sheet])
    store.append_record(log_config.log_sheet, {
        'Timestamp': timestamp,
        config.PO_NUMBER: identifier,
        'Row': event.row,
        'Field': field_name,
        'Action': action,
        'New Value': new_value,
        'Old Value': old_value,
        'User': user,
    })
    logger.debug(f"편집 이력: {log_config.sheet} {event.row}행 {field_name} ({action})")
    return True


def on_edit_serial(store: SheetService, event: EditEvent) -> ToolResult | None:
    """시리얼 목록 편집 시 Serial # | Raw Data의 'Order #' 갱신

    추가된 시리얼에는 행의 주문번호를 기록하고, 빠진 시리얼은 비웁니다.
    주문번호가 없는 행에 시리얼을 추가하면 편집을 되돌립니다.

    Returns:
        처리 대상이 아니면 None
    """
    if event.sheet != config.ORDER_MGT_SHEET:
        return None

    ws, headers = store.get_sheet_and_headers(config.ORDER_MGT_SHEET)
    serial_col = resolve_column(headers, config.SERIAL_NUMBER)
    if serial_col is None or event.column != headers.index(serial_col) + 1:
        return None

    order_col = resolve_column(headers, config.PO_NUMBER)
    order_number = ws.cell(row=event.row, column=headers.index(order_col) + 1).value if order_col else None
    old_value = _as_text(event.old_value)
    new_value = _as_text(event.new_value)

    if not order_number and new_value:
        ws.cell(row=event.row, column=event.column).value = old_value or None
        message = "B열 주문번호가 비어 있어 시리얼을 태깅할 수 없습니다. 편집을 되돌렸습니다."
        logger.warning(message)
        return ToolResult.validation_error([message])

    old_serials = set(split_list(old_value))
    new_serials = set(split_list(new_value))
    to_add = new_serials - old_serials
    to_remove = old_serials - new_serials
    if not to_add and not to_remove:
        return ToolResult.ok("변경된 시리얼이 없습니다.", added=0, removed=0)

    try:
        records = store.read_all_records(config.SERIAL_RAW_SHEET)
    except SheetNotFoundError as e:
        logger.error(f"시리얼 태깅 실패: {e}")
        return ToolResult.sheet_error(str(e))

    rows_by_serial = {get_str(r, config.SERIAL_NUMBER): r['_rowNumber'] for r in records}
    for serial in to_add:
        if serial in rows_by_serial:
            store.update_cell(config.SERIAL_RAW_SHEET, rows_by_serial[serial], 'Order #', order_number)
    for serial in to_remove:
        if serial in rows_by_serial:
            store.update_cell(config.SERIAL_RAW_SHEET, rows_by_serial[serial], 'Order #', None)

    return ToolResult.ok("시리얼 태깅 완료", added=len(to_add), removed=len(to_remove))


def on_edit(store: SheetService, event: EditEvent) -> None:
    """편집 이벤트 디스패처

    오류는 기록만 하고 편집 흐름을 막지 않습니다.
    되돌린 시리얼 편집은 이력에 남기지 않습니다.
    """
    try:
        result = on_edit_serial(store, event)
        refused = result is not None and result.status == ResultStatus.VALIDATION_ERROR
        if result is not None and not result.success:
            logger.warning(result.message)

        log_config = EDIT_LOG_CONFIGS.get(event.sheet)
        if log_config is not None and not refused:
            log_edit(store, event, log_config)
        store.save()
    except (SheetNotFoundError, ValueError, OSError) as e:
        logger.error(f"편집 처리 오류: {e}")


def apply_edit(
    store: SheetService,
    sheet: str,
    row: int,
    field_name: str,
    value: Any,
    user: str | None = None,
) -> EditEvent:
    """셀 값을 바꾸고 편집 이벤트를 발생시킴 (CLI 편집용)

    Raises:
        ValueError: 헤더를 찾지 못한 경우
    """
    ws, headers = store.get_sheet_and_headers(sheet)
    column = store.column_index(headers, field_name)
    old_value = ws.cell(row=row, column=column).value
    ws.cell(row=row, column=column).value = value

    event = EditEvent(
        sheet=sheet,
        row=row,
        column=column,
        old_value=old_value,
        new_value=value,
        user=user or get_current_user(),
    )
    on_edit(store, event)
    return event
