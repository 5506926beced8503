"""
견적(Estimate) 생성 요청
=======================

Operation 대시보드에서 BOL #는 있고 Estimate #가 비어 있는 주문을 찾아
외부 자동화(webhook)로 견적 생성을 요청합니다.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import requests

from order_tools import config
from order_tools.results import ToolResult
from order_tools.sheet_service import SheetService
from order_tools.utils import get_str

logger = logging.getLogger(__name__)


def get_pending_orders(store: SheetService) -> list[dict[str, Any]]:
    """견적 대기 주문 목록

    Returns:
        [{'po': PO 번호, 'row': 행 번호, 'data': 행 데이터}]

    Raises:
        SheetNotFoundError: 대시보드 시트가 없는 경우
    """
    pending = []
    for record in store.read_all_records(config.OPERATION_DASHBOARD_SHEET):
        if get_str(record, config.BOL_NUMBER) and not get_str(record, 'Estimate #'):
            pending.append({
                'po': get_str(record, config.PO_NUMBER),
                'row': record['_rowNumber'],
                'data': {k: v for k, v in record.items() if not k.startswith('_')},
            })
    return pending


def _post_json(url: str, payload: dict[str, Any]) -> requests.Response:
    response = requests.post(
        url,
        json=payload,
        headers={'Content-Type': 'application/json'},
        timeout=config.WEBHOOK_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return response


def create_estimate(order: dict[str, Any], webhook_url: str | None = None) -> ToolResult:
    """선택한 주문의 견적 생성을 webhook으로 요청"""
    if not order or not order.get('po'):
        return ToolResult.validation_error(["주문 데이터가 없습니다."])

    url = webhook_url or config.ESTIMATE_WEBHOOK_URL
    if not url:
        return ToolResult.validation_error(["견적 webhook URL이 설정되지 않았습니다. (user_settings.ESTIMATE_WEBHOOK_URL)"])

    payload = {
        'po_number': order['po'],
        'row_number': order.get('row'),
        'full_data': order.get('data'),
    }
    try:
        _post_json(url, payload)
    except requests.exceptions.RequestException as e:
        logger.error(f"견적 webhook 호출 실패: {e}")
        return ToolResult.failed(f"webhook 호출 실패. URL과 권한을 확인하세요: {e}")

    logger.info(f"견적 생성 요청 완료: {order['po']}")
    return ToolResult.ok(f"견적 생성 요청 완료: {order['po']}", po=order['po'])


def send_test_webhook(webhook_url: str | None = None) -> ToolResult:
    """테스트 payload를 보내 webhook 연결 확인"""
    url = webhook_url or config.TEST_WEBHOOK_URL
    if not url:
        return ToolResult.validation_error(["테스트 webhook URL이 설정되지 않았습니다. (user_settings.TEST_WEBHOOK_URL)"])

    payload = {
        'test_id': 'ORDER_TOOLS_TEST_001',
        'message': 'Hello from order_tools!',
        'timestamp': datetime.now().isoformat(),
    }
    try:
        response = _post_json(url, payload)
    except requests.exceptions.RequestException as e:
        logger.error(f"테스트 webhook 전송 실패: {e}")
        return ToolResult.failed(str(e))

    logger.info(f"테스트 webhook 전송 완료 (응답 코드 {response.status_code})")
    return ToolResult.ok("webhook 전송 완료", status_code=response.status_code)
