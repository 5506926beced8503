"""
BOL 입력 도구
=============

PO|SKU별 실제 출하 BOL(Bill of Lading) 라인을 BOL_DB에 기록하고,
출하 완료 여부를 Shipment_Planning_DB 상태에 반영합니다.

대기/완료 목록은 5분간 스크립트 캐시에 보관하며, 저장 시 무효화합니다.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from order_tools import config
from order_tools.price_book import format_po_sku_display, get_sku_model_map
from order_tools.results import ToolResult
from order_tools.runtime import TTLCache, get_script_cache
from order_tools.sheet_service import SheetNotFoundError, SheetService
from order_tools.utils import (
    format_date,
    get_str,
    get_value,
    parse_date,
    parse_float,
    parse_int,
    to_key_string,
)
from order_tools.validators import validate_bol_lines

logger = logging.getLogger(__name__)


def get_initial_bol_data(store: SheetService, cache: TTLCache | None = None) -> ToolResult:
    """BOL 입력 대상(대기) / 완료 목록

    Returns:
        ToolResult (data: pending_list, fulfilled_list) - 각 항목은 {'key', 'display'}
    """
    cache = cache or get_script_cache()
    cached_pending = cache.get_json(config.CACHE_KEY_PENDING_BOL)
    cached_fulfilled = cache.get_json(config.CACHE_KEY_FULFILLED_BOL)
    if cached_pending is not None and cached_fulfilled is not None:
        logger.debug("BOL 목록 캐시 사용")
        return ToolResult.ok("캐시에서 로드", pending_list=cached_pending, fulfilled_list=cached_fulfilled)

    try:
        records = store.read_all_records(config.PLANNING_DB_SHEET)
    except SheetNotFoundError as e:
        logger.error(f"BOL 초기 데이터 로드 실패: {e}")
        return ToolResult.sheet_error(str(e))

    sku_model_map = get_sku_model_map(store)
    pending: dict[str, dict[str, str]] = {}
    fulfilled: list[tuple[datetime, dict[str, str]]] = []

    for record in records:
        key = get_str(record, config.PO_SKU_KEY)
        if not key:
            continue
        item = {'key': key, 'display': format_po_sku_display(key, sku_model_map)}
        if get_str(record, 'Status') == config.STATUS_FULFILLED:
            timestamp = get_value(record, 'Timestamp')
            fulfilled.append((timestamp if isinstance(timestamp, datetime) else datetime.min, item))
        elif key not in pending:
            pending[key] = item

    pending_list = sorted(pending.values(), key=lambda i: i['display'])
    fulfilled.sort(key=lambda pair: pair[0], reverse=True)
    fulfilled_list = [item for _, item in fulfilled]

    cache.put_json(config.CACHE_KEY_PENDING_BOL, pending_list, config.LIST_CACHE_TTL_SECONDS)
    cache.put_json(config.CACHE_KEY_FULFILLED_BOL, fulfilled_list, config.LIST_CACHE_TTL_SECONDS)
    return ToolResult.ok(
        f"대기 {len(pending_list)}건, 완료 {len(fulfilled_list)}건",
        pending_list=pending_list,
        fulfilled_list=fulfilled_list,
    )


def get_existing_bol_data(store: SheetService, po_sku_key: str) -> ToolResult:
    """PO|SKU의 기존 BOL 라인, 실제 출하일, 출하 완료 여부"""
    try:
        records = store.find_records_by_key(config.BOL_DB_SHEET, config.PO_SKU_KEY, po_sku_key)
        plan = [
            r for r in store.find_records_by_key(config.PLANNING_DB_SHEET, config.PO_SKU_KEY, po_sku_key)
            if get_str(r, 'Status') == config.STATUS_FULFILLED
        ]
    except SheetNotFoundError as e:
        logger.error(f"BOL 조회 실패: {e}")
        return ToolResult.sheet_error(str(e))

    act_ship_date = None
    bols = []
    for record in records:
        if act_ship_date is None and isinstance(get_value(record, 'Act. Ship Date', None), datetime):
            act_ship_date = format_date(record['Act. Ship Date'])
        bols.append({
            'bol_number': get_value(record, config.BOL_NUMBER),
            'shipped_qty': get_value(record, 'Shipped Qty'),
            'shipping_fee': get_value(record, 'Shipping Fee'),
            'signed': get_value(record, 'Signed'),
        })

    return ToolResult.ok(
        f"BOL {len(bols)}건",
        bols=bols,
        act_ship_date=act_ship_date,
        is_fulfilled=bool(plan),
    )


def save_bol_data(store: SheetService, data: dict[str, Any], cache: TTLCache | None = None) -> ToolResult:
    """BOL 라인 저장

    해당 키의 기존 BOL 행을 모두 지우고, BOL #와 수량(> 0)이 있는 라인만 다시 기록합니다.

    Args:
        data: po_sku_key, act_ship_date, is_fulfilled, bols(bol_number/shipped_qty/shipping_fee/signed)
    """
    key = to_key_string(data.get('po_sku_key'))
    if not key:
        return ToolResult.validation_error(["PO|SKU Key가 없습니다."])

    lines = data.get('bols') or []
    validation = validate_bol_lines(lines)
    if validation.has_errors:
        return ToolResult.validation_error(validation.errors, validation.warnings)

    status = config.STATUS_FULFILLED if data.get('is_fulfilled') else ''
    timestamp = datetime.now()
    act_ship_date = parse_date(data.get('act_ship_date'))

    new_rows = [{
        config.BOL_NUMBER: line['bol_number'],
        config.PO_SKU_KEY: key,
        'Shipped Qty': parse_int(line.get('shipped_qty')),
        'Shipping Fee': parse_float(line.get('shipping_fee')),
        'Act. Ship Date': act_ship_date,
        'Signed': line.get('signed', ''),
        'Status': status,
        'Timestamp': timestamp,
    } for line in lines if to_key_string(line.get('bol_number')) and parse_int(line.get('shipped_qty')) > 0]

    try:
        deleted = store.delete_rows_where(
            config.BOL_DB_SHEET,
            lambda r: get_str(r, config.PO_SKU_KEY) == key,
        )
        store.append_records(config.BOL_DB_SHEET, new_rows)
        update_fulfillment_status(store, key, status, timestamp)
        store.save()
    except SheetNotFoundError as e:
        logger.error(f"BOL 저장 실패: {e}")
        return ToolResult.sheet_error(str(e))

    clear_bol_cache(cache)
    logger.info(f"BOL 저장: {key} (삭제 {deleted}, 추가 {len(new_rows)})")
    result = ToolResult.ok(f"'{key}' 저장 완료", saved=len(new_rows), deleted=deleted)
    result.warnings.extend(validation.warnings)
    return result


def update_fulfillment_status(store: SheetService, key: str, status: str, timestamp: datetime) -> bool:
    """Planning 시트의 첫 번째 일치 행 상태/타임스탬프 갱신

    Returns:
        갱신했으면 True (시트나 키가 없으면 False)
    """
    if not store.has_sheet(config.PLANNING_DB_SHEET):
        return False
    record = store.find_record_by_key(config.PLANNING_DB_SHEET, config.PO_SKU_KEY, key)
    if record is None:
        return False
    return store.update_record(config.PLANNING_DB_SHEET, {
        'Timestamp': timestamp,
        'Status': status,
        '_rowNumber': record['_rowNumber'],
    })


def clear_bol_cache(cache: TTLCache | None = None) -> None:
    """BOL 목록 캐시 삭제"""
    cache = cache or get_script_cache()
    cache.remove(config.CACHE_KEY_PENDING_BOL)
    cache.remove(config.CACHE_KEY_FULFILLED_BOL)
    logger.info("BOL 목록 캐시를 삭제했습니다.")
