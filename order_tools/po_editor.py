"""
PO 데이터 수정 도구
==================

처리 대기 중인 PO를 수정(라인 아이템 변경/PO 번호 변경)합니다.

수정 요청은 바로 반영하지 않고 사용자 캐시에 payload를 저장한 뒤
'PO Processing Queue' 시트에 'Queued'로 등록합니다.
5초 후 트리거가 대기 중인 요청을 모두 처리하고 결과를 큐 시트에 기록합니다.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from order_tools import config
from order_tools.price_book import load_price_book, sort_model_names
from order_tools.results import ToolResult
from order_tools.runtime import TTLCache, TriggerRegistry, get_trigger_registry, get_user_cache
from order_tools.sheet_service import SheetNotFoundError, SheetService
from order_tools.utils import (
    format_date,
    get_current_user,
    get_str,
    get_value,
    now_millis,
    parse_date,
    parse_float,
    to_key_string,
)

logger = logging.getLogger(__name__)


class PoEditorService:
    """PO 수정 요청 등록 및 백그라운드 처리"""

    def __init__(
        self,
        store: SheetService,
        cache: TTLCache | None = None,
        triggers: TriggerRegistry | None = None,
    ):
        self.store = store
        self.cache = cache or get_user_cache()
        self.triggers = triggers or get_trigger_registry()

    # === 조회 ===

    def get_correction_data(self) -> ToolResult:
        """수정 화면 데이터

        proc_shipping_management에서 상태가 비어 있는 행을 PO별로 묶고,
        가격표에서 모델명 → SKU / 단가 매핑을 만듭니다.

        Returns:
            ToolResult (data: pos, model_names, model_to_sku, model_to_price)
        """
        try:
            records = self.store.read_all_records(config.PROC_SHIPPING_SHEET)
            price_book = load_price_book(self.store)
        except SheetNotFoundError as e:
            logger.error(f"수정 데이터 로드 실패: {e}")
            return ToolResult.sheet_error(str(e))

        pos: dict[str, dict[str, Any]] = {}
        for record in records:
            po_number = get_str(record, config.PO_NUMBER)
            if not po_number or get_str(record, 'Status'):
                continue

            if po_number not in pos:
                pos[po_number] = {
                    'po_number': po_number,
                    'pdf_url': get_value(record, 'File URL'),
                    'po_received_date': format_date(get_value(record, 'Date')),
                    'rsm': get_value(record, 'RSM'),
                    'payment_term': get_value(record, 'Payment Term'),
                    'contact': get_value(record, 'Contact'),
                    'phone': get_value(record, 'Phone'),
                    'street': get_value(record, 'Street'),
                    'city': get_value(record, 'City'),
                    'state': get_value(record, 'State'),
                    'zipcode': get_value(record, 'Zip'),
                    'buyer_name': get_value(record, 'Buyer Name'),
                    'company': get_value(record, 'Company'),
                    'spiff': '',
                    'items': [],
                }

            pos[po_number]['items'].append({
                'row_number': record['_rowNumber'],
                'model': get_value(record, 'Model'),
                'sku': get_value(record, 'SKU') or get_value(record, 'Original SKU'),
                'qty': get_value(record, 'Qty'),
                'unit_price': get_value(record, 'Unit Price'),
            })

        return ToolResult.ok(
            f"수정 가능한 PO {len(pos)}건",
            pos=list(pos.values()),
            model_names=sort_model_names(list(price_book)),
            model_to_sku={name: entry.sku for name, entry in price_book.items()},
            model_to_price={name: entry.price for name, entry in price_book.items()},
        )

    # === 요청 등록 ===

    def save_po_corrections_append_only(
        self,
        po_number: str,
        basic_info: dict[str, Any],
        items: list[dict[str, Any]],
    ) -> ToolResult:
        """수정 요청 등록 (payload 캐시 + 큐 시트 'Queued' + 트리거)"""
        try:
            key = f"{config.PO_CORRECTION_CACHE_PREFIX}{po_number}_{now_millis()}"
            payload = {'po_number': po_number, 'basic_info': basic_info, 'items': items}
            self.cache.put_json(key, payload, config.PAYLOAD_CACHE_TTL_SECONDS)

            self.store.ensure_sheet(config.SHEET_SPECS[config.PO_QUEUE_SHEET])
            self.store.append_record(config.PO_QUEUE_SHEET, {
                'PO Number': po_number,
                'Status': config.QUEUE_STATUS_QUEUED,
                'Submitted By': get_current_user(),
                'Submitted Time': datetime.now(),
                'Payload Key': key,
            })
            self.store.save()
        except (ValueError, OSError) as e:
            logger.error(f"수정 요청 등록 실패: {e}")
            return ToolResult.failed(str(e))

        self._create_process_trigger()
        return ToolResult.queued(
            "수정 요청이 등록되었습니다. 처리 결과는 'PO Processing Queue' 시트에서 확인하세요.",
            payload_key=key,
        )

    def _create_process_trigger(self) -> None:
        handler = config.PO_CORRECTION_TRIGGER_HANDLER
        if not self.triggers.has_trigger(handler):
            self.triggers.create_after(
                handler,
                config.PO_CORRECTION_TRIGGER_DELAY_SECONDS,
                self.process_po_correction_queue,
            )

    # === 백그라운드 처리 ===

    def process_po_correction_queue(self) -> int:
        """'Queued' 상태 요청을 모두 처리

        Returns:
            처리한 요청 수
        """
        sheet = config.PO_QUEUE_SHEET
        self.store.ensure_sheet(config.SHEET_SPECS[sheet])
        processed = 0

        for record in self.store.read_all_records(sheet):
            key = get_str(record, 'Payload Key')
            if get_str(record, 'Status') != config.QUEUE_STATUS_QUEUED or not key:
                continue

            processed += 1
            row = record['_rowNumber']
            self.store.update_record(sheet, {
                'Status': config.QUEUE_STATUS_IN_PROGRESS,
                'Start Time': datetime.now(),
                '_rowNumber': row,
            })

            status = config.QUEUE_STATUS_FAILED
            message = "처리 실패: 캐시에서 데이터를 찾을 수 없습니다."
            payload = self.cache.get_json(key)
            if payload is not None:
                try:
                    result = self.save_po_corrections_core(
                        payload['po_number'], payload['basic_info'], payload['items'],
                    )
                    if result.success:
                        status = config.QUEUE_STATUS_SUCCESS
                        message = f"PO #{result.get('new_po_number')} 수정 반영 완료"
                    else:
                        message = f"처리 실패 (PO #{payload['po_number']}): {result.message}"
                except (KeyError, TypeError, ValueError, OSError, SheetNotFoundError) as e:
                    logger.error(f"수정 요청 처리 중 오류: {e}")
                    message = f"예기치 않은 오류: {e}"
                self.cache.remove(key)

            self.store.update_record(sheet, {
                'Status': status,
                'Completion Message': message,
                '_rowNumber': row,
            })
            logger.info(f"수정 요청 {record.get('PO Number')}: {status}")

        if processed:
            self.store.save()
        self.triggers.delete_triggers(config.PO_CORRECTION_TRIGGER_HANDLER)
        return processed

    def save_po_corrections_core(
        self,
        po_number: Any,
        basic_info: dict[str, Any],
        items: list[dict[str, Any]],
    ) -> ToolResult:
        """수정 반영

        기존 PO의 미처리 행은 'Change'로 표시하고, 수정된 라인 아이템을 새 행으로 추가합니다.
        새 PO 번호가 있으면 새 행에 사용합니다.
        """
        sheet = config.DEALER_PO_RAW_SHEET
        target = to_key_string(po_number)
        new_po_number = basic_info.get('new_po_number') or po_number

        records = self.store.read_all_records(sheet)
        if not records:
            return ToolResult.not_found(f"'{sheet}' 시트에 처리할 데이터가 없습니다.")

        originals = [r for r in records if get_str(r, config.PO_NUMBER) == target]
        if not originals:
            return ToolResult.not_found(
                f"원본 PO #{po_number}를 찾을 수 없습니다. 아카이브/삭제 여부를 확인하세요."
            )
        if not items:
            return ToolResult.validation_error([f"PO #{new_po_number}에 저장할 라인 아이템이 없습니다."])

        now = datetime.now()
        change_note = basic_info.get('change_note', '')
        for record in originals:
            if get_str(record, 'Status') == '':
                self.store.update_record(sheet, {
                    'Status': config.STATUS_CHANGE,
                    'Change Note': change_note,
                    'Change Time': now,
                    '_rowNumber': record['_rowNumber'],
                })

        file_url = get_value(originals[0], 'File URL')
        po_total = sum(parse_float(i.get('qty')) * parse_float(i.get('unit_price')) for i in items)

        new_rows = [{
            'Created Date': parse_date(basic_info.get('po_received_date')),
            'Buyer Name': basic_info.get('buyer_name', ''),
            'RSM': basic_info.get('rsm', ''),
            config.PO_NUMBER: new_po_number,
            'P/O - Total': po_total,
            'Payment term': basic_info.get('payment_term', ''),
            'Company': basic_info.get('company', ''),
            'P/O Line Items': item.get('model', ''),
            'P/O Unit Price': parse_float(item.get('unit_price')),
            'P/O QTY': parse_float(item.get('qty')),
            'File URL': file_url,
            'Contact Person': basic_info.get('contact', ''),
            'Phone': basic_info.get('phone', ''),
            'Street Address': basic_info.get('street', ''),
            'City': basic_info.get('city', ''),
            'State': basic_info.get('state', ''),
            'Zipcode': basic_info.get('zipcode', ''),
            'Change Note': change_note,
            'Change Time': now,
            'SPIFF': basic_info.get('spiff', ''),
        } for item in items]

        self.store.append_records(sheet, new_rows)
        self.store.save()
        logger.info(f"PO #{po_number} → #{new_po_number}: {len(new_rows)}행 추가")
        return ToolResult.ok(f"PO #{new_po_number} 수정 반영 완료", new_po_number=new_po_number, rows=len(new_rows))
