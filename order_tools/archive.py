"""
PO 원본 데이터 아카이브
======================

'Dealer PO | Raw Data'에서 처리 완료(Change / Voided / Revised)된 행을
'Dealer PO | Archive'로 옮기고, 남은 행은 수식 컬럼을 비운 채 다시 기록합니다.
"""

from __future__ import annotations

import logging

from order_tools import config
from order_tools.results import ToolResult
from order_tools.sheet_service import ROW_NUMBER_KEY, SheetNotFoundError, SheetService
from order_tools.utils import get_str

logger = logging.getLogger(__name__)


def archive_processed_pos(store: SheetService) -> ToolResult:
    """처리 완료된 PO 행 아카이브

    Returns:
        ToolResult (data: archived, kept)
    """
    source = config.DEALER_PO_RAW_SHEET
    target = config.DEALER_PO_ARCHIVE_SHEET

    try:
        store.get_sheet(source)
        store.get_sheet(target)
    except SheetNotFoundError as e:
        logger.error(f"아카이브 실패: {e}")
        return ToolResult.sheet_error(str(e))

    records = store.read_all_records(source)
    if not records:
        logger.info("아카이브할 데이터가 없습니다.")
        return ToolResult.ok("아카이브할 데이터가 없습니다.", archived=0, kept=0)

    to_archive = [r for r in records if get_str(r, 'Status') in config.ARCHIVE_STATUSES]
    kept = [r for r in records if get_str(r, 'Status') not in config.ARCHIVE_STATUSES]

    if not to_archive:
        logger.info("아카이브 대상 행이 없습니다.")
        return ToolResult.ok("아카이브 대상 행이 없습니다.", archived=0, kept=len(kept))

    if store.is_empty(target):
        store.copy_headers(source, target)
    store.append_records(target, [_without_row_number(r) for r in to_archive])

    # 수식이 아래로 다시 채울 수 있도록 수식 컬럼은 비워서 기록
    rewritten = []
    for record in kept:
        row = _without_row_number(record)
        for column in config.ARRAY_FORMULA_COLUMNS:
            if column in row:
                row[column] = None
        rewritten.append(row)
    store.replace_records(source, rewritten)
    store.save()

    logger.info(f"{len(to_archive)}건 아카이브, {len(kept)}건 유지")
    return ToolResult.ok(
        f"{len(to_archive)}건을 아카이브했습니다.",
        archived=len(to_archive),
        kept=len(kept),
    )


def _without_row_number(record: dict) -> dict:
    return {k: v for k, v in record.items() if k != ROW_NUMBER_KEY}
