"""
출하 계획 관리
==============

Order Shipping Mgt. Table의 PO|SKU별 총 수량을 집계하고,
East / West 창고 출하 수량과 예상 출하일을 Shipment_Planning_DB에 저장합니다.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from order_tools import config
from order_tools.results import ToolResult
from order_tools.sheet_service import SheetNotFoundError, SheetService
from order_tools.utils import (
    format_date,
    get_current_user,
    get_str,
    get_value,
    parse_date,
    parse_int,
    resolve_column,
    to_key_string,
)
from order_tools.validators import validate_planning_quantities

logger = logging.getLogger(__name__)


def _load_existing_plans(store: SheetService) -> tuple[set[str], dict[str, dict[str, Any]]]:
    """(출하 완료 키 집합, 키별 기존 계획)"""
    fulfilled: set[str] = set()
    plans: dict[str, dict[str, Any]] = {}
    for record in store.read_all_records(config.PLANNING_DB_SHEET):
        key = get_str(record, config.PO_SKU_KEY)
        if not key:
            continue
        if get_str(record, 'Status') == config.STATUS_FULFILLED:
            fulfilled.add(key)
        plans[key] = {
            'est_ship_date': format_date(get_value(record, 'Est. Ship Date')),
            'qty_east': get_value(record, 'Qty (East)'),
            'qty_west': get_value(record, 'Qty (West)'),
        }
    return fulfilled, plans


def aggregate_order_quantities(store: SheetService) -> dict[str, dict[str, Any]]:
    """키와 SKU가 있는 주문 행을 PO|SKU 키별로 집계

    Returns:
        {키: {'total_qty': 합계, 'model_name': 첫 행의 모델명}}
    """
    df = store.read_frame(config.ORDER_MGT_SHEET)
    if df.empty:
        return {}

    columns = list(df.columns)
    key_col = resolve_column(columns, config.PO_SKU_KEY)
    sku_col = resolve_column(columns, 'SKU')
    qty_col = resolve_column(columns, 'Total Qty')
    model_col = resolve_column(columns, 'Model Name')
    if key_col is None or sku_col is None or qty_col is None:
        raise ValueError("Order Shipping Mgt. Table에 키/SKU/수량 헤더가 없습니다.")

    df = df.assign(
        _key=df[key_col].map(to_key_string),
        _sku=df[sku_col].map(to_key_string),
        _qty=df[qty_col].map(parse_int),
        _model=df[model_col].map(to_key_string) if model_col else '',
    )
    df = df[(df['_key'] != '') & (df['_sku'] != '')]

    grouped = df.groupby('_key', sort=False).agg(total_qty=('_qty', 'sum'), model_name=('_model', 'first'))
    return {
        key: {'total_qty': int(row.total_qty), 'model_name': row.model_name or 'N/A'}
        for key, row in grouped.iterrows()
    }


def get_planning_data(store: SheetService) -> ToolResult:
    """출하 계획 대상 목록

    출하 완료(Fulfilled)된 키는 제외하고 'KEY (모델명)' 형식으로 정렬합니다.

    Returns:
        ToolResult (data: pending_list, item_details)
    """
    try:
        fulfilled, plans = _load_existing_plans(store)
        item_details = aggregate_order_quantities(store)
    except (SheetNotFoundError, ValueError) as e:
        logger.error(f"출하 계획 데이터 로드 실패: {e}")
        return ToolResult.sheet_error(str(e))

    for key, details in item_details.items():
        details.update(plans.get(key, {}))

    pending = sorted(
        f"{key} ({details['model_name']})"
        for key, details in item_details.items()
        if key not in fulfilled
    )
    return ToolResult.ok(f"출하 계획 대상 {len(pending)}건", pending_list=pending, item_details=item_details)


def save_planning_data(store: SheetService, data: dict[str, Any], user: str | None = None) -> ToolResult:
    """출하 계획 저장 (PO|SKU 키 기준 갱신 또는 추가)

    Args:
        data: po_sku_key, total_qty, qty_east, qty_west, est_ship_date
    """
    key = to_key_string(data.get('po_sku_key'))
    if not key:
        return ToolResult.validation_error(["PO|SKU Key가 없습니다."])

    errors = validate_planning_quantities(data.get('qty_east'), data.get('qty_west'), data.get('total_qty'))
    if errors:
        return ToolResult.validation_error(errors)

    record = {
        'Timestamp': datetime.now(),
        'User': user or get_current_user(),
        config.PO_SKU_KEY: key,
        'Est. Ship Date': parse_date(data.get('est_ship_date')),
        'Qty (East)': parse_int(data.get('qty_east')),
        'Qty (West)': parse_int(data.get('qty_west')),
    }
    try:
        row = store.upsert_record(config.PLANNING_DB_SHEET, config.PO_SKU_KEY, record)
        store.save()
    except SheetNotFoundError as e:
        logger.error(f"출하 계획 저장 실패: {e}")
        return ToolResult.sheet_error(str(e))

    logger.info(f"출하 계획 저장: {key} (행 {row})")
    return ToolResult.ok("출하 계획 저장 완료", row=row)
