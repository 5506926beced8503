"""
원시 데이터 행 ID 부여
======================

Raw Data 시트에서 조건 컬럼에 값이 있고 ID 컬럼이 비어 있는 행에
시간순 정렬 가능한 고유 ID(<epoch 밀리초>_<uuid 8자리>)를 기록합니다.
"""

from __future__ import annotations

import logging
from typing import Union

from order_tools import config
from order_tools.sheet_service import SheetNotFoundError, SheetService
from order_tools.utils import generate_timestamped_id, is_blank

logger = logging.getLogger(__name__)

# 헤더명 또는 1-based 컬럼 번호
ColumnRef = Union[str, int]

# (시트, ID 컬럼, 조건 컬럼)
# Direct Quote 시트는 스키마를 관리하지 않으므로 컬럼 번호(V, F)로 지정
RAW_DATA_ID_TARGETS: list[tuple[str, ColumnRef, ColumnRef]] = [
    (config.DEALER_PO_RAW_SHEET, 'Row ID', config.PO_NUMBER),
    (config.DIRECT_QUOTE_RAW_SHEET, 22, 6),
]


def _column_number(store: SheetService, headers: list[str], ref: ColumnRef) -> int:
    if isinstance(ref, int):
        return ref
    return store.column_index(headers, ref)


def assign_uuid_to_new_rows(
    store: SheetService,
    sheet: str,
    id_column: ColumnRef,
    condition_column: ColumnRef,
) -> int:
    """ID가 비어 있는 데이터 행에 ID 부여

    Returns:
        ID를 부여한 행 수

    Raises:
        SheetNotFoundError: 시트가 없는 경우
        ValueError: 헤더를 찾지 못한 경우
    """
    ws, headers = store.get_sheet_and_headers(sheet)
    id_col = _column_number(store, headers, id_column)
    condition_col = _column_number(store, headers, condition_column)
    start_row = store.header_row_of(sheet) + 1
    last_row = store.last_data_row(ws, start_row)

    assigned = 0
    for row_idx in range(start_row, last_row + 1):
        id_cell = ws.cell(row=row_idx, column=id_col)
        condition = ws.cell(row=row_idx, column=condition_col).value
        if is_blank(id_cell.value) and not is_blank(condition):
            id_cell.value = generate_timestamped_id()
            logger.debug(f"{sheet} {row_idx}행 ID: {id_cell.value}")
            assigned += 1

    logger.info(f"'{sheet}' 신규 행 ID 부여: {assigned}건")
    return assigned


def process_all_raw_data_sheets(store: SheetService) -> dict[str, int]:
    """모든 Raw Data 시트에 ID 부여 (없는 시트는 건너뜀)

    Returns:
        시트별 부여 건수
    """
    counts: dict[str, int] = {}
    for sheet, id_column, condition_column in RAW_DATA_ID_TARGETS:
        try:
            counts[sheet] = assign_uuid_to_new_rows(store, sheet, id_column, condition_column)
        except SheetNotFoundError as e:
            logger.warning(f"건너뜀: {e}")
    if any(counts.values()):
        store.save()
    return counts
