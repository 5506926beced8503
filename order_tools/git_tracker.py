"""
GIT(Goods In Transit) 진행 관리
==============================

PI #별 운송 일정(ETC / ETD / ETA / 입고일)과 완료 여부를 조회·수정합니다.
"""

from __future__ import annotations

import logging
from typing import Any

from order_tools import config
from order_tools.results import ToolResult
from order_tools.runtime import TTLCache, get_script_cache
from order_tools.sheet_service import SheetNotFoundError, SheetService
from order_tools.utils import format_date, get_str, get_value, parse_date, to_key_string

logger = logging.getLogger(__name__)

DATE_FIELDS = ('ETC', 'ETD', 'ETA', 'Inbound Date')


def get_git_data(store: SheetService, cache: TTLCache | None = None) -> ToolResult:
    """완료되지 않은 PI # 목록 (5분 캐시)"""
    cache = cache or get_script_cache()
    cached = cache.get_json(config.CACHE_KEY_GIT_PENDING)
    if cached is not None:
        return ToolResult.ok("캐시에서 로드", pi_list=cached)

    try:
        records = store.read_all_records(config.GIT_DB_SHEET)
    except SheetNotFoundError as e:
        logger.error(f"GIT 데이터 로드 실패: {e}")
        return ToolResult.sheet_error(str(e))

    pi_list = sorted(
        get_str(r, config.PI_NUMBER)
        for r in records
        if get_str(r, config.PI_NUMBER) and get_value(r, 'Finish') is not True
    )
    cache.put_json(config.CACHE_KEY_GIT_PENDING, pi_list, config.LIST_CACHE_TTL_SECONDS)
    return ToolResult.ok(f"진행 중인 PI {len(pi_list)}건", pi_list=pi_list)


def get_pi_details(store: SheetService, pi_number: Any) -> ToolResult:
    """PI #의 운송 상세 (날짜는 YYYY-MM-DD, 없으면 None)"""
    if not to_key_string(pi_number):
        return ToolResult.validation_error(["PI Number는 필수입니다."])

    try:
        record = store.find_record_by_key(config.GIT_DB_SHEET, config.PI_NUMBER, pi_number)
    except SheetNotFoundError as e:
        logger.error(f"PI 상세 조회 실패: {e}")
        return ToolResult.sheet_error(str(e))
    if record is None:
        return ToolResult.not_found(f"PI# '{pi_number}'를 찾을 수 없습니다.")

    details = {
        field.lower().replace(' ', '_'): format_date(get_value(record, field)) or None
        for field in DATE_FIELDS
    }
    details['memo'] = get_value(record, 'Memo')
    details['is_finished'] = get_value(record, 'Finish') is True
    return ToolResult.ok("PI 상세 조회 완료", details=details)


def save_git_details(store: SheetService, data: dict[str, Any], cache: TTLCache | None = None) -> ToolResult:
    """PI # 운송 상세 저장 후 목록 캐시 무효화

    빈 날짜는 셀을 비웁니다.
    """
    pi_number = data.get('pi_number')
    if not to_key_string(pi_number):
        return ToolResult.validation_error(["PI Number가 없습니다."])

    try:
        record = store.find_record_by_key(config.GIT_DB_SHEET, config.PI_NUMBER, pi_number)
        if record is None:
            return ToolResult.not_found(f"PI# '{pi_number}'를 찾을 수 없어 저장하지 못했습니다.")

        store.update_record(config.GIT_DB_SHEET, {
            'ETC': parse_date(data.get('etc')),
            'ETD': parse_date(data.get('etd')),
            'ETA': parse_date(data.get('eta')),
            'Memo': data.get('memo', ''),
            'Inbound Date': parse_date(data.get('inbound_date')),
            'Finish': bool(data.get('is_finished')),
            '_rowNumber': record['_rowNumber'],
        })
        store.save()
    except SheetNotFoundError as e:
        logger.error(f"GIT 저장 실패: {e}")
        return ToolResult.sheet_error(str(e))

    (cache or get_script_cache()).remove(config.CACHE_KEY_GIT_PENDING)
    return ToolResult.ok(f"PI# '{pi_number}' 업데이트 완료")
