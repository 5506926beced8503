"""
수동 PO 생성
============

PDF 없이 직접 입력한 PO를 'Dealer PO | Raw Data'에 라인 아이템별 행으로 기록합니다.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from order_tools import config
from order_tools.results import ToolResult
from order_tools.sheet_service import SheetNotFoundError, SheetService
from order_tools.utils import generate_manual_po_number, get_str, get_value, parse_float, parse_int, to_key_string
from order_tools.validators import validate_manual_po

logger = logging.getLogger(__name__)


def get_manual_po_initial_data(store: SheetService) -> dict[str, Any]:
    """수동 PO 화면 초기 데이터

    고객명, 가격표 모델/단가 목록, 새 PO 번호, 오늘 날짜를 반환합니다.
    """
    customers = [
        get_str(r, 'Buyer Name')
        for r in store.read_all_records(config.CUSTOMERS_SHEET)
    ]
    price_rows = store.read_all_records(config.PRICE_BOOK_SHEET)

    return {
        'customer_names': [c for c in customers if c],
        'models': [m for m in (get_str(r, 'Description') for r in price_rows) if m],
        'prices': [p for p in (get_value(r, 'Price') for r in price_rows) if p != ''],
        'po_number': generate_manual_po_number(),
        'created_date': datetime.now().strftime('%Y-%m-%d'),
    }


def process_and_save_po(store: SheetService, po_data: dict[str, Any]) -> ToolResult:
    """수동 PO 저장 (라인 아이템 1개당 1행)

    Args:
        po_data: created_date, buyer_name, po_number, total, payment_term, type,
            ship_to(address/contact_person/phone/email), line_items(model/unit_price/quantity)
    """
    validation = validate_manual_po(po_data)
    if validation.has_errors:
        return ToolResult.validation_error(validation.errors, validation.warnings)

    ship_to = po_data.get('ship_to') or {}
    rows = []
    for item in po_data['line_items']:
        rows.append({
            'Created Date': po_data['created_date'],
            'Buyer Name': po_data['buyer_name'],
            config.PO_NUMBER: po_data['po_number'],
            'P/O - Total': parse_float(po_data.get('total')),
            'Payment term': po_data.get('payment_term', ''),
            'Type': po_data.get('type', ''),
            'Ship to': ship_to.get('address', ''),
            'Contact Person': ship_to.get('contact_person', ''),
            'Phone': ship_to.get('phone', ''),
            'Email': ship_to.get('email', ''),
            'P/O Line Items': item['model'],
            'P/O Unit Price': parse_float(item.get('unit_price')),
            'P/O QTY': parse_int(item.get('quantity')),
        })

    try:
        store.append_records(config.DEALER_PO_RAW_SHEET, rows)
        store.save()
    except (SheetNotFoundError, ValueError, OSError) as e:
        logger.error(f"수동 PO 저장 실패: {e}")
        return ToolResult.failed(str(e))

    logger.info(f"수동 PO {po_data['po_number']} 저장 ({len(rows)}행)")
    result = ToolResult.ok(f"PO {po_data['po_number']} 생성 및 저장 완료", rows=len(rows))
    result.warnings.extend(validation.warnings)
    return result


def save_pdf_url(store: SheetService, po_number: Any, pdf_url: str) -> ToolResult:
    """PO 첫 행의 'File URL'에 PDF 링크 기록"""
    record = store.find_record_by_key(config.DEALER_PO_RAW_SHEET, config.PO_NUMBER, to_key_string(po_number))
    if record is None:
        return ToolResult.not_found(f"PO {po_number}를 시트에서 찾을 수 없습니다.")

    store.update_record(config.DEALER_PO_RAW_SHEET, {'File URL': pdf_url, '_rowNumber': record['_rowNumber']})
    store.save()
    return ToolResult.ok(f"PO {po_number} PDF URL 저장 완료")
