"""
가격표 조회
===========

HSUS Price Book 시트에서 SKU → 모델명, 모델명 → SKU/단가 매핑을 만듭니다.
"""

from __future__ import annotations

import logging
import re
from typing import Any, NamedTuple

from order_tools import config
from order_tools.sheet_service import SheetService
from order_tools.utils import get_str, get_value, split_po_sku_key

logger = logging.getLogger(__name__)

# 모델명에서 제거할 접두어/토큰
MODEL_NAME_NOISE = re.compile(r'Finished Goods:|^450\w+|Standard')


def clean_model_name(description: str, fallback: str = '') -> str:
    """Sales Description을 화면 표시용 모델명으로 정리 (비면 fallback)"""
    cleaned = MODEL_NAME_NOISE.sub('', str(description)).strip().replace('_', ' ')
    return cleaned or fallback


def get_sku_model_map(store: SheetService) -> dict[str, str]:
    """SKU → 모델명 매핑

    가격표 시트가 없으면 모델명 없이 진행하도록 빈 dict를 반환합니다.
    """
    if not store.has_sheet(config.PRICE_BOOK_QBO_SHEET):
        logger.warning("가격표(QBO) 시트가 없어 모델명 없이 진행합니다.")
        return {}

    sku_model_map: dict[str, str] = {}
    for record in store.read_all_records(config.PRICE_BOOK_QBO_SHEET):
        sku = get_str(record, 'SKU')
        if sku:
            sku_model_map[sku] = clean_model_name(get_value(record, 'Model Name'), sku)
    return sku_model_map


def format_po_sku_display(key: str, sku_model_map: dict[str, str]) -> str:
    """'PO|SKU (모델명)' 표시 문자열 (모델명이 없으면 SKU)"""
    _, sku = split_po_sku_key(key)
    return f"{key} ({sku_model_map.get(sku) or sku})"


class PriceBookEntry(NamedTuple):
    sku: str
    price: Any


def load_price_book(store: SheetService) -> dict[str, PriceBookEntry]:
    """조회명(Lookup Name) → (SKU, 단가)

    같은 조회명이 여러 번 나오면 마지막 값을 사용합니다.
    """
    entries: dict[str, PriceBookEntry] = {}
    for record in store.read_all_records(config.PRICE_BOOK_SHEET):
        lookup_name = get_str(record, 'Lookup Name')
        sku = get_str(record, 'SKU')
        if lookup_name and sku:
            entries[lookup_name] = PriceBookEntry(sku, get_value(record, 'Price'))
    return entries


def sort_model_names(names: list[str]) -> list[str]:
    """'Standard'가 없는 모델을 먼저, 각각 가나다순 정렬"""
    unique = sorted(set(names))
    non_standard = [n for n in unique if 'Standard' not in n]
    standard = [n for n in unique if 'Standard' in n]
    return non_standard + standard
