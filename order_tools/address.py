"""
미국 주소 분리
==============

'Ship to' 전체 주소를 Street / City / State / Zipcode로 나눕니다.
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple

from order_tools import config
from order_tools.results import ToolResult
from order_tools.sheet_service import SheetNotFoundError, SheetService
from order_tools.utils import get_str, get_value

logger = logging.getLogger(__name__)

# "Street, City, ST 12345(-6789)" 형식
US_ADDRESS_PATTERN = re.compile(
    r'([\w\s\.,#-]+?),\s*([\w\s]+),\s*([A-Z]{2})\s*(\d{5}(?:-\d{4})?)\s*$'
)


class UsAddress(NamedTuple):
    """분리된 주소"""
    street: str
    city: str
    state: str
    zipcode: str


def parse_us_address(text: str) -> UsAddress:
    """미국 주소 문자열 분리

    패턴이 맞지 않으면 수동 확인을 위해 원문 전체를 street에 넣습니다.
    """
    cleaned = re.sub(r',+', ',', text.replace('\n', ', ')).strip()
    match = US_ADDRESS_PATTERN.search(cleaned)
    if not match:
        return UsAddress(text, '', '', '')
    street, city, state, zipcode = (part or '' for part in match.groups())
    return UsAddress(
        street=street.strip().rstrip(','),
        city=city.strip(),
        state=state.strip(),
        zipcode=zipcode.strip(),
    )


def split_address_in_place(store: SheetService) -> ToolResult:
    """PO 번호가 있는 행의 'Ship to' 주소를 분리해 같은 행에 기록"""
    sheet = config.DEALER_PO_RAW_SHEET
    try:
        records = store.read_all_records(sheet)
    except SheetNotFoundError as e:
        logger.error(f"주소 분리 실패: {e}")
        return ToolResult.sheet_error(str(e))

    updated = 0
    for record in records:
        full_address = get_value(record, 'Ship to')
        if not get_str(record, config.PO_NUMBER) or not isinstance(full_address, str):
            continue
        if not full_address.strip():
            continue

        address = parse_us_address(full_address)
        store.update_record(sheet, {
            'Street Address': address.street,
            'City': address.city,
            'State': address.state,
            'Zipcode': address.zipcode,
            '_rowNumber': record['_rowNumber'],
        })
        updated += 1

    store.save()
    logger.info(f"주소 분리 완료: {updated}건")
    return ToolResult.ok("주소 분리 및 업데이트 완료", updated=updated)
